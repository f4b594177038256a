"""Ambient attributes propagated through synchronous and async call chains.

Attributes set with ``with_attributes`` (or ``attribute_scope``) are visible
to every log emitted inside the callback, including from awaited coroutines
and tasks created inside it. Sibling tasks never see each other's
attributes because each task runs in its own copy of the context.

Example:
    ```python
    from vigilant import log_info, with_attributes

    def handle(request_id):
        log_info("handling")  # carries request.id

    with_attributes({"request.id": "abc"}, lambda: handle("abc"))
    ```
"""

import contextvars
import inspect
import logging
from collections.abc import Awaitable, Callable, Collection, Iterator, Mapping
from contextlib import contextmanager
from typing import Any, Protocol, TypeVar

from vigilant.core.validation import gate_attributes

logger = logging.getLogger(__name__)

T = TypeVar("T")


class AttributeStorage(Protocol):
    def get(self) -> dict[str, str]:
        """Return a copy of the attributes active in the current context."""
        ...

    def scope(self, attributes: dict[str, str]) -> Any:
        """Context manager making attributes the active map while open."""
        ...


class ContextAttributeStorage:
    """Storage backed by a ContextVar."""

    def __init__(self) -> None:
        self._current: contextvars.ContextVar[dict[str, str] | None] = (
            contextvars.ContextVar("vigilant_attributes", default=None)
        )

    def get(self) -> dict[str, str]:
        current = self._current.get()
        return dict(current) if current else {}

    @contextmanager
    def scope(self, attributes: dict[str, str]) -> Iterator[None]:
        token = self._current.set(dict(attributes))
        try:
            yield
        finally:
            self._current.reset(token)


class NoopAttributeStorage:
    """Degraded storage for runtimes without context isolation.

    Callbacks still run, but nothing propagates and get() is always empty.
    """

    def __init__(self) -> None:
        self._warned = False

    def get(self) -> dict[str, str]:
        return {}

    @contextmanager
    def scope(self, attributes: dict[str, str]) -> Iterator[None]:
        if not self._warned:
            self._warned = True
            logger.warning(
                "Context propagation is unavailable; ambient attributes are disabled."
            )
        yield


def _probe_storage() -> AttributeStorage:
    """Pick a storage by checking that a copied context isolates writes."""
    probe: contextvars.ContextVar[bool] = contextvars.ContextVar(
        "vigilant_probe", default=False
    )
    contextvars.copy_context().run(probe.set, True)
    if probe.get():
        return NoopAttributeStorage()
    return ContextAttributeStorage()


_storage: AttributeStorage = _probe_storage()


def get_attribute_storage() -> AttributeStorage:
    return _storage


def set_attribute_storage(storage: AttributeStorage) -> None:
    """Replace the active storage (e.g. NoopAttributeStorage in tests)."""
    global _storage
    _storage = storage


def get_attributes() -> dict[str, str]:
    """Return a copy of the ambient attributes of the current call chain."""
    return _storage.get()


@contextmanager
def attribute_scope(attributes: Mapping[str, str]) -> Iterator[None]:
    """Merge attributes into the ambient map for the duration of the block."""
    merged = {**_storage.get(), **gate_attributes(attributes)}
    with _storage.scope(merged):
        yield


def _run_scoped(
    attributes: dict[str, str], callback: Callable[[], T]
) -> T | Awaitable[Any]:
    with _storage.scope(attributes):
        result = callback()
    if inspect.isawaitable(result):
        # the coroutine body runs on await, after the scope above has closed
        async def run_async() -> Any:
            with _storage.scope(attributes):
                return await result

        return run_async()
    return result


def with_attributes(attributes: Mapping[str, str], callback: Callable[[], Any]) -> Any:
    """Run callback with attributes merged into the ambient map.

    Args:
        attributes: String key/value pairs; invalid items are dropped.
        callback: Function to run. If it returns an awaitable (a coroutine
            function, or a lambda returning a coroutine), an awaitable is
            returned that awaits it inside the scope.

    Returns:
        The callback's return value, or an awaitable for async callbacks.
    """
    merged = {**_storage.get(), **gate_attributes(attributes)}
    return _run_scoped(merged, callback)


add_attributes = with_attributes


def clear_attributes(callback: Callable[[], Any]) -> Any:
    """Run callback with no ambient attributes."""
    return _run_scoped({}, callback)


def remove_attributes(
    keys: str | Collection[str], callback: Callable[[], Any]
) -> Any:
    """Run callback with the given key or keys removed from the ambient map."""
    removed = {keys} if isinstance(keys, str) else set(keys)
    remaining = {
        key: value for key, value in _storage.get().items() if key not in removed
    }
    return _run_scoped(remaining, callback)
