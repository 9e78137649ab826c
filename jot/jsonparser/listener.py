"""Listener interface receiving JSON parse events."""

from __future__ import annotations

from typing import Any, Union


class JSONParserListener:
    """
    Receives parse events in document order.

    Every method is a no-op; subclasses override what they need. Exceptions
    raised from a callback abort the parse and propagate to the caller.
    """

    def on_object_start(self) -> None:
        pass

    def on_object_end(self) -> None:
        pass

    def on_array_start(self) -> None:
        pass

    def on_array_end(self) -> None:
        pass

    def on_property(self, name: str) -> None:
        pass

    def on_string_value(self, value: str) -> None:
        pass

    def on_number_value(self, value: Union[int, float]) -> None:
        pass

    def on_boolean_value(self, value: bool) -> None:
        pass

    def on_null_value(self) -> None:
        pass


class EventRecorder(JSONParserListener):
    """Records events as ``(name, *args)`` tuples."""

    def __init__(self):
        self.events: list[tuple] = []

    def on_object_start(self) -> None:
        self.events.append(("object_start",))

    def on_object_end(self) -> None:
        self.events.append(("object_end",))

    def on_array_start(self) -> None:
        self.events.append(("array_start",))

    def on_array_end(self) -> None:
        self.events.append(("array_end",))

    def on_property(self, name: str) -> None:
        self.events.append(("property", name))

    def on_string_value(self, value: str) -> None:
        self.events.append(("string", value))

    def on_number_value(self, value: Union[int, float]) -> None:
        self.events.append(("number", value))

    def on_boolean_value(self, value: bool) -> None:
        self.events.append(("boolean", value))

    def on_null_value(self) -> None:
        self.events.append(("null",))


class ValueBuilder(JSONParserListener):
    """Assembles the parsed document into dicts and lists."""

    def __init__(self):
        self.result: Any = None
        self._containers: list[Union[dict, list]] = []
        self._keys: list[str] = []

    def _add(self, value: Any) -> None:
        if not self._containers:
            self.result = value
            return
        top = self._containers[-1]
        if isinstance(top, dict):
            top[self._keys.pop()] = value
        else:
            top.append(value)

    def _open(self, container: Union[dict, list]) -> None:
        self._add(container)
        self._containers.append(container)

    def on_object_start(self) -> None:
        self._open({})

    def on_object_end(self) -> None:
        self._containers.pop()

    def on_array_start(self) -> None:
        self._open([])

    def on_array_end(self) -> None:
        self._containers.pop()

    def on_property(self, name: str) -> None:
        self._keys.append(name)

    def on_string_value(self, value: str) -> None:
        self._add(value)

    def on_number_value(self, value: Union[int, float]) -> None:
        self._add(value)

    def on_boolean_value(self, value: bool) -> None:
        self._add(value)

    def on_null_value(self) -> None:
        self._add(None)
