"""
Model - observable key/value object
===================================

A plain property bag that reports changes. Properties are readable as
attributes (``model.fruit``) as long as the name does not start with an
underscore and does not shadow a method.

Every call to ``set``/``update``/``reset`` produces at most one ``change``
notification, carrying a dict of every changed key mapped to its old value.
Several properties changed together therefore arrive as one batched change.
"""

from typing import Any, Callable, Dict, Mapping, Optional

from .events import CHANGE, EventBus

_MISSING = object()


class Model:
    """Observable property bag."""

    def __init__(
        self, data: Optional[Mapping[str, Any]] = None, event_bus: Optional[EventBus] = None
    ):
        self._event_bus = event_bus or EventBus()
        self._props: Dict[str, Any] = {}
        if data:
            self._update(data, emit=False)

    @property
    def props(self) -> Dict[str, Any]:
        """Copy of all properties."""
        return dict(self._props)

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        try:
            return self._props[name]
        except KeyError:
            raise AttributeError(
                f"{type(self).__name__!s} has no property {name!r}"
            ) from None

    def get(self, key: str, default: Any = None) -> Any:
        return self._props.get(key, default)

    def set(self, **props: Any) -> Optional[Dict[str, Any]]:
        """
        Set properties, notifying once if anything changed.

        Returns:
            Dict of changed keys to their old values, or None if nothing changed
        """
        return self._update(props, emit=True)

    def update(self, props: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
        """Same as ``set`` for keys that are not valid identifiers."""
        return self._update(props, emit=True)

    def reset(self, props: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
        """Replace all properties; keys missing from ``props`` are deleted."""
        return self._update(props, emit=True, reset=True)

    def on(self, events: str, handler: Callable) -> Callable[[], None]:
        return self._event_bus.on(self, events, handler)

    def off(self, events: str, handler: Callable) -> bool:
        return self._event_bus.off(self, events, handler)

    def subscribe(self, callback: Callable[[Dict[str, Any]], None]) -> Callable[[], None]:
        """Observe changes; ``callback`` receives the changed-keys dict."""
        return self._event_bus.on(self, CHANGE, callback)

    def to_dict(self) -> Dict[str, Any]:
        return {
            key: value.to_dict() if isinstance(value, Model) else value
            for key, value in self._props.items()
        }

    def _update(
        self, props: Mapping[str, Any], emit: bool, reset: bool = False
    ) -> Optional[Dict[str, Any]]:
        if props is None:
            return None

        changed: Dict[str, Any] = {}
        if reset:
            for key in list(self._props):
                if key not in props:
                    changed[key] = self._props.pop(key)

        for key, value in props.items():
            old = self._props.get(key, _MISSING)
            if old is not _MISSING and (old is value or old == value):
                continue
            changed[key] = None if old is _MISSING else old
            self._props[key] = value

        if not changed:
            return None
        if emit:
            self._event_bus.emit(self, CHANGE, changed)
        return changed

    def __repr__(self) -> str:
        return f"Model({self._props!r})"


__all__ = ["Model"]
