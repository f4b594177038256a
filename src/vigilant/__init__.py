"""vigilant - Logs, alerts and metrics for the Vigilant platform."""

import logging

from vigilant.adapters.logging import VigilantHandler
from vigilant.agent import (
    Vigilant,
    create_alert,
    get_instance,
    init,
    log_debug,
    log_error,
    log_info,
    log_trace,
    log_warn,
    metric_counter,
    metric_gauge,
    metric_histogram,
    shutdown,
)
from vigilant.attributes import (
    add_attributes,
    attribute_scope,
    clear_attributes,
    get_attributes,
    remove_attributes,
    with_attributes,
)
from vigilant.core.config import Config, ConfigBuilder
from vigilant.core.errors import (
    ConfigError,
    ConfigNameRequiredError,
    ConfigNotValidError,
    ConfigTokenRequiredError,
    InvalidTokenError,
    NotInitializedError,
    ServerError,
    TransportError,
    VigilantError,
)
from vigilant.core.models import Alert, Log, LogLevel

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    # Agent
    "Vigilant",
    "init",
    "shutdown",
    "get_instance",
    # Emitters
    "log_info",
    "log_debug",
    "log_warn",
    "log_error",
    "log_trace",
    "create_alert",
    "metric_counter",
    "metric_gauge",
    "metric_histogram",
    # Attributes
    "add_attributes",
    "attribute_scope",
    "clear_attributes",
    "get_attributes",
    "remove_attributes",
    "with_attributes",
    # Config
    "Config",
    "ConfigBuilder",
    # Models
    "Alert",
    "Log",
    "LogLevel",
    # Errors
    "VigilantError",
    "ConfigError",
    "ConfigNotValidError",
    "ConfigNameRequiredError",
    "ConfigTokenRequiredError",
    "NotInitializedError",
    "TransportError",
    "InvalidTokenError",
    "ServerError",
    # Adapters
    "VigilantHandler",
]
