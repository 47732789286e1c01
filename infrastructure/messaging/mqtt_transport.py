"""
MQTT message transport.

Publishes datapoint configuration and reading messages to an MQTT broker.
Each message is a JSON envelope ``{"key": ..., "value": ...}`` published on
``{namespace}/{topic}``; the key carries the organization and operation so
consumers can route without parsing the value.
"""

import json
import logging
import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

import paho.mqtt.client as mqtt

from infrastructure.messaging.client_factory import create_mqtt_client
from sensetif.config import AppConfig
from sensetif.domain.exceptions import PublishError
from sensetif.utils.time import utc_now

logger = logging.getLogger(__name__)


@dataclass
class TransportHealth:
    """Connection state and publish counters of the transport."""

    is_connected: bool = False
    last_error: str | None = None
    last_error_time: datetime | None = None
    successful_publishes: int = 0
    failed_publishes: int = 0

    @property
    def success_rate(self) -> float:
        total = self.successful_publishes + self.failed_publishes
        if total == 0:
            return 0.0
        return (self.successful_publishes / total) * 100

    def record_error(self, error: object) -> None:
        self.last_error = str(error)
        self.last_error_time = utc_now()

    def to_dict(self):
        return {
            "is_connected": self.is_connected,
            "last_error": self.last_error,
            "last_error_time": self.last_error_time.isoformat() if self.last_error_time else None,
            "successful_publishes": self.successful_publishes,
            "failed_publishes": self.failed_publishes,
            "publish_success_rate": round(self.success_rate, 2),
        }


class MqttTransport:
    """
    MessageTransport implementation on top of paho-mqtt.

    Args:
        host: Broker host name.
        port: Broker port.
        namespace: Prefix of every topic.
        client_id: MQTT client identifier.
        tls: Connect over TLS.
        qos: Quality of service of published messages.
        publish_timeout: Seconds to wait for the broker to acknowledge a message (qos > 0).
        client: Pre-built paho client, mainly for tests.
    """

    def __init__(
        self,
        host: str,
        port: int = 1883,
        *,
        namespace: str,
        client_id: str = "",
        tls: bool = False,
        qos: int = 1,
        publish_timeout: float = 5.0,
        client: Optional[mqtt.Client] = None,
    ):
        self.host = host
        self.port = port
        self.namespace = namespace
        self.qos = qos
        self.publish_timeout = publish_timeout
        self.client = client or create_mqtt_client(client_id=client_id, tls=tls)
        self.client.on_connect = self._on_connect
        self.client.on_disconnect = self._on_disconnect
        self.health = TransportHealth()
        self._lock = threading.Lock()

    @classmethod
    def from_config(cls, config: AppConfig) -> "MqttTransport":
        return cls(
            config.mqtt_broker_host,
            config.mqtt_broker_port,
            namespace=config.namespace,
            client_id=config.mqtt_client_id,
            tls=config.mqtt_tls,
        )

    def start(self) -> None:
        """Connect to the broker and start the network loop."""
        logger.info("Connecting to MQTT broker %s:%s", self.host, self.port)
        self.client.connect(self.host, self.port, 60)
        self.client.loop_start()

    def stop(self) -> None:
        self.client.disconnect()
        self.client.loop_stop()
        self.health.is_connected = False
        logger.info("Disconnected from MQTT broker %s:%s", self.host, self.port)

    def topic_for(self, topic: str) -> str:
        return f"{self.namespace}/{topic}"

    def send(self, topic: str, key: str, payload: bytes) -> str:
        """
        Publish ``payload`` under ``key`` and return the message id.

        Raises:
            PublishError: the payload is not UTF-8 text, or the broker did not accept it
        """
        full_topic = self.topic_for(topic)
        try:
            value = payload.decode("utf-8")
        except UnicodeDecodeError as e:
            raise PublishError(f"Payload for {key} is not UTF-8 text", detail={"key": key}) from e
        envelope = json.dumps({"key": key, "value": value})

        try:
            info = self.client.publish(full_topic, envelope, qos=self.qos)
            if info.rc != mqtt.MQTT_ERR_SUCCESS:
                raise PublishError(
                    f"Failed to publish to {full_topic}: {mqtt.error_string(info.rc)}",
                    detail={"topic": full_topic, "key": key, "rc": info.rc},
                )
            if self.qos > 0:
                info.wait_for_publish(timeout=self.publish_timeout)
                if not info.is_published():
                    raise PublishError(
                        f"Timed out publishing to {full_topic}", detail={"topic": full_topic, "key": key}
                    )
        except PublishError as e:
            self._record_failure(e)
            raise
        except (ValueError, RuntimeError) as e:
            # paho raises these when the client is not connected or the queue is full
            self._record_failure(e)
            raise PublishError(f"Failed to publish to {full_topic}: {e}", detail={"topic": full_topic}) from e

        with self._lock:
            self.health.successful_publishes += 1
        logger.debug("Published %s to %s (mid=%s)", key, full_topic, info.mid)
        return str(info.mid)

    def _record_failure(self, error: Exception) -> None:
        with self._lock:
            self.health.failed_publishes += 1
            self.health.record_error(error)
        logger.error("%s", error)

    def _on_connect(self, client, userdata, flags, rc) -> None:
        if rc == 0:
            self.health.is_connected = True
            self.health.last_error = None
            logger.info("Connected to MQTT broker %s:%s", self.host, self.port)
        else:
            self.health.record_error(mqtt.connack_string(rc))
            logger.error("MQTT connection refused: %s", mqtt.connack_string(rc))

    def _on_disconnect(self, client, userdata, rc) -> None:
        self.health.is_connected = False
        if rc != 0:
            logger.warning("Unexpected disconnect from MQTT broker (rc=%s)", rc)
