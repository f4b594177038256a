"""Agent configuration and its fluent builder."""

from dataclasses import dataclass, field, fields, replace
from typing import Any

from vigilant.core.errors import (
    ConfigNameRequiredError,
    ConfigNotValidError,
    ConfigTokenRequiredError,
)

DEFAULT_ENDPOINT = "ingress.vigilant.run"
MESSAGE_PATH = "/api/message"


@dataclass(frozen=True)
class Config:
    """Configuration for a Vigilant agent.

    Attributes:
        name: Service name, attached to every log and alert as service.name.
        token: API token sent with every payload.
        endpoint: Collector host (and optional port), without scheme.
        insecure: Use http instead of https.
        passthrough: Also print events to the local console.
        autocapture: Redirect sys.stdout and sys.stderr into logs.
        noop: Never send anything over the network.
        attributes: Global attributes appended to every log and alert.
        batch_interval: Seconds between batcher flushes.
        max_batch_size: Queue length that triggers an immediate flush.
        metrics_interval: Width in seconds of a metrics time bucket.
        metrics_process_interval: Seconds between raw metric queue drains.
        sender_interval: Seconds between metrics sender flushes.
    """

    name: str
    token: str
    endpoint: str = DEFAULT_ENDPOINT
    insecure: bool = False
    passthrough: bool = False
    autocapture: bool = False
    noop: bool = False
    attributes: dict[str, str] = field(default_factory=dict)
    batch_interval: float = 0.1
    max_batch_size: int = 1000
    metrics_interval: float = 60.0
    metrics_process_interval: float = 1.0
    sender_interval: float = 1.0

    @property
    def url(self) -> str:
        """Full URL of the message endpoint."""
        scheme = "http" if self.insecure else "https"
        return f"{scheme}://{self.endpoint}{MESSAGE_PATH}"


_FIELD_TYPES: dict[str, tuple[type, ...]] = {
    "name": (str,),
    "token": (str,),
    "endpoint": (str,),
    "insecure": (bool,),
    "passthrough": (bool,),
    "autocapture": (bool,),
    "noop": (bool,),
    "attributes": (dict,),
    "batch_interval": (int, float),
    "max_batch_size": (int,),
    "metrics_interval": (int, float),
    "metrics_process_interval": (int, float),
    "sender_interval": (int, float),
}


def gate_config(config: Any) -> None:
    """Validate a configuration before an agent is created.

    Raises:
        ConfigNotValidError: If config is not a Config, a field has the wrong
            type, the endpoint is empty or an interval is not positive.
        ConfigNameRequiredError: If the name is empty.
        ConfigTokenRequiredError: If the token is empty.
    """
    if not isinstance(config, Config):
        raise ConfigNotValidError(f"Expected Config, got {type(config).__name__}.")

    for config_field in fields(config):
        value = getattr(config, config_field.name)
        expected = _FIELD_TYPES[config_field.name]
        # bool is an int subclass; only the flag fields accept it
        if isinstance(value, bool) and bool not in expected:
            raise ConfigNotValidError(f"Field '{config_field.name}' has the wrong type.")
        if not isinstance(value, expected):
            raise ConfigNotValidError(f"Field '{config_field.name}' has the wrong type.")

    if not config.name.strip():
        raise ConfigNameRequiredError()
    if not config.token.strip():
        raise ConfigTokenRequiredError()
    if not config.endpoint.strip():
        raise ConfigNotValidError("Field 'endpoint' must not be empty.")
    if config.max_batch_size < 1:
        raise ConfigNotValidError("Field 'max_batch_size' must be at least 1.")
    for interval in (
        "batch_interval",
        "metrics_interval",
        "metrics_process_interval",
        "sender_interval",
    ):
        if getattr(config, interval) <= 0:
            raise ConfigNotValidError(f"Field '{interval}' must be positive.")


class ConfigBuilder:
    """Fluent builder for Config.

    Example:
        ```python
        config = (
            ConfigBuilder()
            .with_name("backend")
            .with_token("your-token-here")
            .with_passthrough()
            .build()
        )
        ```
    """

    def __init__(self) -> None:
        self._config = Config(name="", token="")

    def _set(self, **changes: Any) -> "ConfigBuilder":
        self._config = replace(self._config, **changes)
        return self

    def with_name(self, name: str) -> "ConfigBuilder":
        return self._set(name=name)

    def with_token(self, token: str) -> "ConfigBuilder":
        return self._set(token=token)

    def with_endpoint(self, endpoint: str) -> "ConfigBuilder":
        return self._set(endpoint=endpoint)

    def with_insecure(self) -> "ConfigBuilder":
        return self._set(insecure=True)

    def with_passthrough(self) -> "ConfigBuilder":
        return self._set(passthrough=True)

    def with_autocapture(self) -> "ConfigBuilder":
        return self._set(autocapture=True)

    def with_noop(self) -> "ConfigBuilder":
        return self._set(noop=True)

    def with_attributes(self, attributes: dict[str, str]) -> "ConfigBuilder":
        return self._set(attributes={**self._config.attributes, **attributes})

    def build(self) -> Config:
        """Return the configuration.

        Raises:
            ConfigTokenRequiredError: If no token was set.
            ConfigNameRequiredError: If no name was set.
        """
        if not self._config.token.strip():
            raise ConfigTokenRequiredError()
        if not self._config.name.strip():
            raise ConfigNameRequiredError()
        return self._config
