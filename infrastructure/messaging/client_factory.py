"""
Helpers for constructing MQTT clients that work across paho-mqtt 1.x and 2.x.

The 2.x releases require a callback API version flag; we ask for the legacy
callback signature so the transport's handlers run unchanged on both.
"""
from __future__ import annotations

from typing import Any, Dict

import paho.mqtt.client as mqtt


def create_mqtt_client(client_id: str = "", *, tls: bool = False, **kwargs: Any) -> mqtt.Client:
    """
    Build an MQTT client for publishing datapoint messages.

    Args:
        client_id: Optional client identifier.
        tls: Enable TLS with the system CA bundle.
        kwargs: Extra keyword arguments forwarded to the client constructor.
    """
    client_kwargs: Dict[str, Any] = {"client_id": client_id or ""}
    client_kwargs["protocol"] = kwargs.pop("protocol", getattr(mqtt, "MQTTv311", 4))
    client_kwargs.update(kwargs)

    callback_api_version = getattr(mqtt, "CallbackAPIVersion", None)
    if callback_api_version is not None:
        client_kwargs["callback_api_version"] = callback_api_version.VERSION1

    client = mqtt.Client(**client_kwargs)
    if tls:
        client.tls_set()
    return client
