"""Injectable client state: keyed values, subscribers and named setters."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from smail.logging_config import get_logger

if TYPE_CHECKING:
    from collections.abc import Callable

    # (current value, *args) -> new value
    Setter = Callable[..., Any]
    Listener = Callable[[str, Any], None]

logger = get_logger(__name__)


class UnknownSetterError(KeyError):
    """No setter is registered for a (state_key, setter_key) pair."""

    def __init__(self, state_key: str, setter_key: str):
        self.state_key = state_key
        self.setter_key = setter_key
        super().__init__(f"{state_key}.{setter_key}")


class StateContainer:
    """Named pieces of application state that actions can mutate.

    Setters are pure replacements: a setter receives the current value and
    the action's args and returns the new value.
    """

    __slots__ = ("_values", "_setters", "_listeners")

    def __init__(self) -> None:
        self._values: dict[str, Any] = {}
        self._setters: dict[tuple[str, str], Setter] = {}
        self._listeners: dict[str, list[Listener]] = {}

    def register(
        self,
        key: str,
        value: Any = None,
        setters: dict[str, Setter] | None = None,
    ) -> None:
        """Register a state key with an initial value and its setters."""
        self._values.setdefault(key, value)
        for setter_key, setter in (setters or {}).items():
            self.register_setter(key, setter_key, setter)

    def register_setter(self, key: str, setter_key: str, setter: Setter) -> None:
        self._setters[(key, setter_key)] = setter

    def has_setter(self, key: str, setter_key: str) -> bool:
        return (key, setter_key) in self._setters

    def get(self, key: str, default: Any = None) -> Any:
        return self._values.get(key, default)

    def set(self, key: str, value: Any) -> None:
        """Replace a value and notify its subscribers."""
        self._values[key] = value
        for listener in list(self._listeners.get(key, ())):
            listener(key, value)

    def subscribe(self, key: str, listener: Listener) -> Callable[[], None]:
        """Call ``listener(key, value)`` on every change; returns an unsubscribe function."""
        self._listeners.setdefault(key, []).append(listener)

        def unsubscribe() -> None:
            listeners = self._listeners.get(key, [])
            if listener in listeners:
                listeners.remove(listener)

        return unsubscribe

    def dispatch(self, key: str, setter_key: str, args: list[Any]) -> Any:
        """Run a registered setter and store its result.

        Raises:
            UnknownSetterError: if nothing is registered for the pair
        """
        setter = self._setters.get((key, setter_key))
        if setter is None:
            raise UnknownSetterError(key, setter_key)
        value = setter(self._values.get(key), *args)
        self.set(key, value)
        logger.debug("state_setter_applied", state_key=key, setter_key=setter_key)
        return value

    def keys(self) -> list[str]:
        return list(self._values)
