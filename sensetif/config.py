"""
Configuration for Sensetif
==========================
Runtime settings for the datapoint service and its messaging collaborator,
loaded from ``SENSETIF_*`` environment variables.
Setups the logging configuration as well.
"""

import logging
import os
import sys
from contextlib import suppress
from dataclasses import dataclass, field


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.lower() in {"1", "true", "t", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"Environment variable {name} must be an integer.") from None


def _default_workers() -> int:
    return os.cpu_count() or 1


@dataclass
class AppConfig:
    """Runtime configuration loaded from environment variables."""

    environment: str = field(default_factory=lambda: os.getenv("SENSETIF_ENV", "development"))
    log_level: str = field(default_factory=lambda: os.getenv("SENSETIF_LOG_LEVEL", "INFO"))

    # Messaging
    mqtt_broker_host: str = field(default_factory=lambda: os.getenv("SENSETIF_MQTT_HOST", "localhost"))
    mqtt_broker_port: int = field(default_factory=lambda: _env_int("SENSETIF_MQTT_PORT", 1883))
    mqtt_client_id: str = field(default_factory=lambda: os.getenv("SENSETIF_MQTT_CLIENT_ID", ""))
    mqtt_tls: bool = field(default_factory=lambda: _env_bool("SENSETIF_MQTT_TLS", False))
    namespace: str = field(default_factory=lambda: os.getenv("SENSETIF_NAMESPACE", "sensetif"))
    configuration_topic: str = field(
        default_factory=lambda: os.getenv("SENSETIF_CONFIGURATION_TOPIC", "configuration")
    )
    readings_topic: str = field(default_factory=lambda: os.getenv("SENSETIF_READINGS_TOPIC", "readings"))

    # Processing fan-out; defaults to the number of cores
    worker_count: int = field(default_factory=lambda: _env_int("SENSETIF_WORKER_COUNT", _default_workers()))

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if self.worker_count < 1:
            raise ValueError("SENSETIF_WORKER_COUNT must be at least 1.")
        if not 0 < self.mqtt_broker_port <= 0xFFFF:
            raise ValueError("SENSETIF_MQTT_PORT must be a valid TCP port.")
        if not self.namespace:
            raise ValueError("SENSETIF_NAMESPACE must not be empty.")


def setup_logging(level: str = "INFO") -> None:
    """Setup logging configuration."""
    log_level = getattr(logging, level.upper(), logging.INFO)

    # Root logger
    root = logging.getLogger()
    root.setLevel(log_level)

    # Avoid adding duplicate handlers when called more than once
    has_console = any(getattr(h, "name", "") == "sensetif_console" for h in root.handlers)

    if not has_console:
        stream = sys.stdout
        with suppress(AttributeError, ValueError):
            stream.reconfigure(encoding="utf-8", errors="replace")
        console_handler = logging.StreamHandler(stream=stream)
        console_handler.name = "sensetif_console"
        console_handler.setFormatter(logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s"))
        root.addHandler(console_handler)
        root.info("Logging initialized at level: %s", logging.getLevelName(log_level))

    for handler in root.handlers:
        if getattr(handler, "name", "") == "sensetif_console":
            handler.setLevel(log_level)

    # paho logs every packet at DEBUG
    logging.getLogger("paho").setLevel(max(log_level, logging.INFO))


def load_config() -> AppConfig:
    """Helper for callers to load configuration and initialise logging."""
    config = AppConfig()
    setup_logging(config.log_level)
    return config
