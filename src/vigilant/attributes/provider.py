"""Attribute enrichment applied to every log and alert before queuing."""

from collections.abc import Mapping, Sequence

from vigilant.attributes.storage import AttributeStorage, get_attribute_storage
from vigilant.core.ports import AttributeAppender

SERVICE_NAME_KEY = "service.name"


class ServiceNameAppender:
    """Sets service.name to the configured service name."""

    def __init__(self, service_name: str) -> None:
        self._service_name = service_name

    def append(self, attributes: dict[str, str]) -> None:
        attributes[SERVICE_NAME_KEY] = self._service_name


class StoredAttributeAppender:
    """Copies the ambient attributes of the current call chain.

    The storage is looked up on every call unless one was given, so a
    storage swapped in after the provider was built is still honoured.
    """

    def __init__(self, storage: AttributeStorage | None = None) -> None:
        self._storage = storage

    def append(self, attributes: dict[str, str]) -> None:
        storage = self._storage or get_attribute_storage()
        attributes.update(storage.get())


class GlobalAttributeAppender:
    """Copies a fixed set of attributes configured at init."""

    def __init__(self, attributes: Mapping[str, str]) -> None:
        self._attributes = dict(attributes)

    def append(self, attributes: dict[str, str]) -> None:
        attributes.update(self._attributes)


class AttributeProvider:
    """Runs appenders in registration order; later appenders win on collisions."""

    def __init__(self, appenders: Sequence[AttributeAppender]) -> None:
        self._appenders = list(appenders)

    def update(self, attributes: dict[str, str]) -> None:
        """Modify attributes in place."""
        for appender in self._appenders:
            appender.append(attributes)


def create_attribute_provider(
    service_name: str,
    attributes: Mapping[str, str] | None = None,
    storage: AttributeStorage | None = None,
) -> AttributeProvider:
    """Build the standard chain: service name, ambient storage, global attributes."""
    appenders: list[AttributeAppender] = [
        ServiceNameAppender(service_name),
        StoredAttributeAppender(storage),
    ]
    if attributes:
        appenders.append(GlobalAttributeAppender(attributes))
    return AttributeProvider(appenders)
