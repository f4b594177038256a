"""Attribute enrichment and ambient attribute propagation."""

from vigilant.attributes.provider import (
    SERVICE_NAME_KEY,
    AttributeProvider,
    GlobalAttributeAppender,
    ServiceNameAppender,
    StoredAttributeAppender,
    create_attribute_provider,
)
from vigilant.attributes.storage import (
    ContextAttributeStorage,
    NoopAttributeStorage,
    add_attributes,
    attribute_scope,
    clear_attributes,
    get_attribute_storage,
    get_attributes,
    remove_attributes,
    set_attribute_storage,
    with_attributes,
)

__all__ = [
    "SERVICE_NAME_KEY",
    "AttributeProvider",
    "ContextAttributeStorage",
    "GlobalAttributeAppender",
    "NoopAttributeStorage",
    "ServiceNameAppender",
    "StoredAttributeAppender",
    "add_attributes",
    "attribute_scope",
    "clear_attributes",
    "create_attribute_provider",
    "get_attribute_storage",
    "get_attributes",
    "remove_attributes",
    "set_attribute_storage",
    "with_attributes",
]
