"""Vigilant exceptions.

Configuration and lifecycle errors are raised synchronously so misuse
surfaces during development. Transport errors are raised by the transport
and absorbed by the batching loops; they never reach application code.
"""

_BANNER = "[ **** Vigilant Error **** ]"
_USAGE_BANNER = "[ **** Correct Usage **** ]"

_INIT_EXAMPLE = """import vigilant

vigilant.init(vigilant.Config(name="backend", token="your-token-here"))"""


def build_message(message: str, example: str | None = None) -> str:
    """Format an error message with the banner and an optional usage example."""
    text = f"{_BANNER}\n\n{message}\n"
    if example:
        text += f"\n{_USAGE_BANNER}\n\n{example}\n"
    return text


class VigilantError(Exception):
    """Base class for all errors raised by the package."""


class ConfigError(VigilantError):
    """Raised at init or build time when the configuration is unusable."""


class ConfigNotValidError(ConfigError):
    def __init__(self, detail: str = "") -> None:
        message = (
            "The configuration is invalid.\n"
            "The configuration must be a valid Config.\n"
            "Use 'Config' or 'ConfigBuilder' to create a valid configuration."
        )
        if detail:
            message += f"\n{detail}"
        super().__init__(build_message(message, _INIT_EXAMPLE))


class ConfigNameRequiredError(ConfigError):
    def __init__(self) -> None:
        super().__init__(
            build_message(
                "You cannot use an empty name when initializing Vigilant.\n"
                "Use the name of your application or service, e.g. 'backend', 'api', etc.",
                _INIT_EXAMPLE,
            )
        )


class ConfigTokenRequiredError(ConfigError):
    def __init__(self) -> None:
        super().__init__(
            build_message(
                "You cannot have an empty token when initializing Vigilant.\n"
                "Generate one by visiting: https://dashboard.vigilant.run/settings/project/api",
                _INIT_EXAMPLE,
            )
        )


class NotInitializedError(VigilantError):
    def __init__(self) -> None:
        super().__init__(
            build_message(
                "Vigilant has not been initialized.\n"
                "Use the 'init()' function to initialize Vigilant.",
                _INIT_EXAMPLE,
            )
        )


class TransportError(VigilantError):
    """Raised when a payload could not be delivered.

    Attributes:
        status_code: HTTP status of the response, or None for network failures.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class InvalidTokenError(TransportError):
    def __init__(self, status_code: int | None = 401) -> None:
        super().__init__(
            build_message(
                "The token you have provided is invalid.\n"
                "Please generate a new token by visiting: "
                "https://dashboard.vigilant.run/settings/project/api"
            ),
            status_code,
        )


class ServerError(TransportError):
    def __init__(self, status_code: int | None = None, detail: str = "") -> None:
        message = "The server is experiencing issues."
        if status_code is not None:
            message += f"\nStatus: {status_code}"
        if detail:
            message += f"\n{detail}"
        super().__init__(build_message(message), status_code)


# Warning texts for invalid input; these are logged, never raised.
INVALID_MESSAGE_WARNING = build_message(
    "The message is invalid.\nThe message must be a string.",
    "vigilant.log_info('Hello, world!')",
)

INVALID_ATTRIBUTES_WARNING = build_message(
    "The attributes are invalid.\n"
    "Attributes must be a mapping.\n"
    "The keys and values must be strings.",
    "vigilant.log_info('Hello, world!', {'user': 'A Name', 'id': 'An ID'})",
)

INVALID_TAGS_WARNING = build_message(
    "The tags are invalid.\nTags must be a mapping.\nThe keys and values must be strings.",
    "vigilant.metric_counter('my_metric', 1, {'env': 'prod'})",
)

INVALID_METRIC_NAME_WARNING = build_message(
    "The metric name is invalid.\nThe name must be a non-empty string.",
    "vigilant.metric_counter('my_metric', 1)",
)

INVALID_METRIC_VALUE_WARNING = build_message(
    "The metric value is invalid.\nThe value must be a number.",
    "vigilant.metric_gauge('queue_depth', 12)",
)
