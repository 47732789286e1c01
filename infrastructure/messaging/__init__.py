"""MQTT messaging adapter."""

from infrastructure.messaging.client_factory import create_mqtt_client
from infrastructure.messaging.mqtt_transport import MqttTransport, TransportHealth

__all__ = ["MqttTransport", "TransportHealth", "create_mqtt_client"]
