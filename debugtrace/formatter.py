"""formatter.py - Recursive conversion of runtime values into LineBuffers.

The Formatter turns any Python value into human-readable text. Values are
first classified into a closed set of kinds (see ValueKind), then rendered by
the rules for that kind:

    PRIMITIVE   None, bool, numbers, range  -> ``str(value)``
    TEXT        str                         -> quoted and escaped
    BYTES       bytes, bytearray, memoryview -> ``[HH HH ... | ascii]``
    TEMPORAL    date, time, datetime        -> strftime with the configured format
    COLLECTION  sequences and sets          -> ``[...]``, ``(...)``, ``Set[...]``
    MAPPING     mappings                    -> ``{key: value, ...}``
    OPAQUE      everything else             -> ``str()``/``repr()`` text or
                                               ``TypeName{member: value, ...}``

Composite values are guarded against reference cycles and, for reflected
objects, against excessive nesting. The guard lives on the Formatter instance
and is only safe to use from one thread at a time; the Tracer calls
``render()`` while holding its lock.
"""

import dataclasses
import datetime
import numbers
from collections.abc import Mapping, Sequence, Set
from enum import Enum
from typing import Any, Callable, Iterator, List, Optional, Tuple

from .buffer import LineBuffer
from .config import Config
from .options import PrintOptions

_BUILTIN_CONTAINERS = (list, tuple, set, dict)

_ESCAPES = {
    "\\": "\\\\",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
}


class ValueKind(Enum):
    """Rendering category of a value."""

    PRIMITIVE = "primitive"
    TEXT = "text"
    BYTES = "bytes"
    TEMPORAL = "temporal"
    COLLECTION = "collection"
    MAPPING = "mapping"
    OPAQUE = "opaque"


def classify(value: Any) -> ValueKind:
    """Return the ValueKind that decides how ``value`` is rendered."""
    if value is None or isinstance(value, (bool, numbers.Number, range)):
        return ValueKind.PRIMITIVE
    if isinstance(value, str):
        return ValueKind.TEXT
    if isinstance(value, (bytes, bytearray, memoryview)):
        return ValueKind.BYTES
    if isinstance(value, (datetime.date, datetime.time)):
        return ValueKind.TEMPORAL
    if isinstance(value, Mapping):
        return ValueKind.MAPPING
    if isinstance(value, (Set, Sequence)):
        return ValueKind.COLLECTION
    return ValueKind.OPAQUE


def text_hook(value: Any) -> Optional[Tuple[str, Callable[[Any], str]]]:
    """Return ``(prefix, function)`` for a class-defined textual form, if any.

    A class overriding ``__str__`` wins over one overriding only
    ``__repr__``. Dataclass instances return None so they are always
    rendered by reflection.
    """
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return None
    cls = type(value)
    if cls.__str__ is not object.__str__:
        return "str(): ", str
    if cls.__repr__ is not object.__repr__:
        return "repr(): ", repr
    return None


def members(value: Any) -> Iterator[Tuple[str, Any]]:
    """Yield ``(name, value)`` for the instance attributes of ``value``.

    ``__slots__`` attributes come first, base classes before subclasses,
    followed by the instance ``__dict__`` in insertion order. Unset slots
    are skipped.
    """
    seen = set()
    for cls in reversed(type(value).__mro__):
        slots = cls.__dict__.get("__slots__", ())
        if isinstance(slots, str):
            slots = (slots,)
        for slot in slots:
            if slot in ("__dict__", "__weakref__") or slot in seen:
                continue
            seen.add(slot)
            attr = slot
            if slot.startswith("__") and not slot.endswith("__"):
                attr = f"_{cls.__name__.lstrip('_')}{slot}"
            try:
                yield slot, getattr(value, attr)
            except AttributeError:
                continue

    instance_dict = getattr(value, "__dict__", None)
    if isinstance(instance_dict, Mapping):
        yield from list(instance_dict.items())


class Formatter:
    """Renders values into LineBuffers according to a Config.

    Attributes:
        _config (Config): Thresholds, markers and separators.
        _guard (list): Composite values currently being rendered, compared
            by identity.
        _reflection_depth (int): Number of reflected objects in ``_guard``.
    """

    def __init__(self, config: Config) -> None:
        self._config = config
        self._guard: List[Any] = []
        self._reflection_depth = 0

    def reset(self) -> None:
        """Clear the cycle guard before a new top-level rendering."""
        self._guard.clear()
        self._reflection_depth = 0

    def render(self, name: str, value: Any, options: PrintOptions) -> LineBuffer:
        """Render ``value``, prefixed by ``name`` and the name/value separator.

        Args:
            name: Variable name; no prefix is written when empty.
            value: Any value.
            options: Resolved options (see ``PrintOptions.resolve()``).

        Returns:
            A new LineBuffer holding the rendering.
        """
        config = self._config
        buff = self._new_buffer()
        separator = ""
        if name:
            buff.append(name)
            separator = config.varname_value_separator

        kind = classify(value)
        if kind is ValueKind.TEXT and options.as_bytes:
            value = value.encode("utf-8")
            kind = ValueKind.BYTES

        if kind is ValueKind.PRIMITIVE:
            buff.no_break_append(separator).append(self._call(str, value))
        elif kind is ValueKind.TEMPORAL:
            buff.no_break_append(separator).append(self._temporal(value))
        elif kind is ValueKind.TEXT:
            buff.append_buffer(separator, self._render_str(value, options))
        elif kind is ValueKind.BYTES:
            buff.append_buffer(separator, self._render_bytes(value, options))
        else:
            buff.append_buffer(separator, self._render_composite(value, kind, options))
        return buff

    # ---------------------------------------------------------------------- #
    # Helpers
    # ---------------------------------------------------------------------- #

    def _new_buffer(self) -> LineBuffer:
        return LineBuffer(self._config.maximum_data_output_width)

    def _error_marker(self, exc: Exception) -> str:
        return self._config.error_format.format(type(exc).__name__, exc)

    def _call(self, func: Callable[[Any], str], value: Any) -> str:
        try:
            return func(value)
        except Exception as exc:
            return self._error_marker(exc)

    def _render_element(self, value: Any, options: PrintOptions) -> LineBuffer:
        # Errors stay local to the element.
        try:
            return self.render("", value, options)
        except Exception as exc:
            return self._new_buffer().no_break_append(self._error_marker(exc))

    def _temporal(self, value: Any) -> str:
        config = self._config
        if isinstance(value, datetime.datetime):
            fmt = config.datetime_format
        elif isinstance(value, datetime.date):
            fmt = config.date_format
        else:
            fmt = config.time_format
        return self._call(lambda v: v.strftime(fmt), value)

    # ---------------------------------------------------------------------- #
    # Strings and bytes
    # ---------------------------------------------------------------------- #

    def _render_str(self, value: str, options: PrintOptions) -> LineBuffer:
        config = self._config
        single: List[str] = []
        double: List[str] = []
        has_single_quote = False
        has_double_quote = False

        for count, char in enumerate(value):
            if count >= options.string_limit:
                single.append(config.limit_string)
                double.append(config.limit_string)
                break
            if char == "'":
                single.append("\\'")
                double.append(char)
                has_single_quote = True
            elif char == '"':
                single.append(char)
                double.append('\\"')
                has_double_quote = True
            else:
                escaped = _ESCAPES.get(char)
                if escaped is None:
                    code = ord(char)
                    escaped = "\\x%02X" % code if code <= 0x1F or code == 0x7F else char
                single.append(escaped)
                double.append(escaped)

        if has_single_quote and not has_double_quote:
            quote, body = '"', double
        else:
            quote, body = "'", single

        buff = self._new_buffer()
        if len(value) >= options.minimum_output_length:
            buff.no_break_append(config.length_format.format(len(value)))
        buff.no_break_append(quote + "".join(body) + quote)
        return buff

    def _render_bytes(self, value: Any, options: PrintOptions) -> LineBuffer:
        config = self._config
        data = bytes(value)
        per_line = config.bytes_count_in_line
        buff = self._new_buffer()

        if len(data) >= options.minimum_output_length:
            buff.no_break_append(config.length_format.format(len(data)))
        if type(value) is not bytes:
            buff.no_break_append(type(value).__name__)
        buff.no_break_append("[")

        multi_lines = len(data) >= per_line
        if multi_lines:
            buff.line_feed()
            buff.up_nest()

        chars = ""
        for count, byte in enumerate(data):
            if count != 0 and count % per_line == 0 and multi_lines:
                buff.no_break_append("| " + chars)
                buff.line_feed()
                chars = ""
            if count >= options.bytes_limit:
                buff.no_break_append(config.limit_string)
                break
            buff.no_break_append("%02X " % byte)
            chars += chr(byte) if 0x20 <= byte <= 0x7E else "."

        if multi_lines:
            # pad the hex column so the ASCII column lines up
            full_length = 3 * per_line
            current_length = buff.length or full_length
            buff.no_break_append(" " * (full_length - current_length))
        buff.no_break_append("| " + chars)

        if multi_lines:
            buff.line_feed()
            buff.down_nest()
        buff.no_break_append("]")
        return buff

    # ---------------------------------------------------------------------- #
    # Collections, mappings and reflected objects
    # ---------------------------------------------------------------------- #

    def _render_composite(
        self, value: Any, kind: ValueKind, options: PrintOptions
    ) -> LineBuffer:
        config = self._config
        if kind is ValueKind.OPAQUE:
            hook = None if options.reflection else text_hook(value)
            if hook is not None:
                prefix, func = hook
                return self._new_buffer().append(prefix).no_break_append(
                    self._call(func, value)
                )

        if any(value is guarded for guarded in self._guard):
            return self._new_buffer().no_break_append(config.cyclic_reference_string)

        reflected = kind is ValueKind.OPAQUE
        if reflected and self._reflection_depth > options.reflection_limit:
            return self._new_buffer().no_break_append(config.limit_string)

        self._guard.append(value)
        if reflected:
            self._reflection_depth += 1
        try:
            if reflected:
                return self._render_reflection(value, options)
            return self._render_collection(value, kind, options)
        finally:
            self._guard.pop()
            if reflected:
                self._reflection_depth -= 1

    def _type_name(self, value: Any, count: int, options: PrintOptions) -> str:
        name = "" if type(value) in _BUILTIN_CONTAINERS else type(value).__name__
        if count >= options.minimum_output_size:
            return self._config.size_format.format(count) + name
        return name

    def _render_collection(
        self, values: Any, kind: ValueKind, options: PrintOptions
    ) -> LineBuffer:
        if kind is ValueKind.MAPPING:
            open_char, close_char = "{", "}"
        elif type(values) is set:
            open_char, close_char = "Set[", "]"
        elif isinstance(values, tuple):
            open_char, close_char = "(", ")"
        else:
            open_char, close_char = "[", "]"

        buff = self._new_buffer()
        buff.append(self._type_name(values, len(values), options))
        buff.no_break_append(open_char)

        body = self._render_collection_body(values, kind, options)
        multi_lines = (
            body.is_multi_line
            or buff.length + body.length > self._config.maximum_data_output_width
        )

        if multi_lines:
            buff.line_feed()
            buff.up_nest()
        buff.append_buffer("", body)
        if multi_lines:
            buff.line_feed()
            buff.down_nest()
        buff.no_break_append(close_char)
        return buff

    def _render_collection_body(
        self, values: Any, kind: ValueKind, options: PrintOptions
    ) -> LineBuffer:
        buff = self._new_buffer()
        elements = values.items() if kind is ValueKind.MAPPING else values

        multi_lines = False
        for index, element in enumerate(elements):
            if index > 0:
                buff.no_break_append(", ")
            if index >= options.collection_limit:
                buff.append(self._config.limit_string)
                break

            if kind is ValueKind.MAPPING:
                element_buff = self._render_key_value(element[0], element[1], options)
            else:
                element_buff = self._render_element(element, options)

            if index > 0 and (multi_lines or element_buff.is_multi_line):
                buff.line_feed()
            buff.append_buffer("", element_buff)
            multi_lines = element_buff.is_multi_line
        return buff

    def _render_key_value(self, key: Any, value: Any, options: PrintOptions) -> LineBuffer:
        buff = self._new_buffer()
        buff.append_buffer("", self._render_element(key, options))
        buff.append_buffer(
            self._config.key_value_separator, self._render_element(value, options)
        )
        return buff

    def _render_reflection(self, value: Any, options: PrintOptions) -> LineBuffer:
        buff = self._new_buffer()
        buff.append(type(value).__name__)

        body = self._render_members(value, options)
        multi_lines = (
            body.is_multi_line
            or buff.length + body.length > self._config.maximum_data_output_width
        )

        buff.no_break_append("{")
        if multi_lines:
            buff.line_feed()
            buff.up_nest()
        buff.append_buffer("", body)
        if multi_lines:
            if buff.length > 0:
                buff.line_feed()
            buff.down_nest()
        buff.no_break_append("}")
        return buff

    def _render_members(self, value: Any, options: PrintOptions) -> LineBuffer:
        buff = self._new_buffer()
        multi_lines = False
        for index, (name, member) in enumerate(members(value)):
            if index > 0:
                buff.no_break_append(", ")
            member_buff = self._new_buffer()
            member_buff.append(name)
            member_buff.append_buffer(
                self._config.key_value_separator, self._render_element(member, options)
            )
            if index > 0 and (multi_lines or member_buff.is_multi_line):
                buff.line_feed()
            buff.append_buffer("", member_buff)
            multi_lines = member_buff.is_multi_line
        return buff
