"""buffer.py - Width-aware line buffer for value renderings.

LineBuffer is the scratch pad the Formatter writes into. A single rendering
(one ``print()`` call, one collection element, one object member) is built up
as a list of committed Line records plus an uncommitted tail line. Parent
renderings splice child buffers into themselves with ``append_buffer()``,
which is how nested collections and objects end up indented correctly.

Design decisions:
    - Wrapping is greedy: a breakable append that would push the tail past
      ``maximum_width`` commits the tail first. Punctuation, quotes and
      brackets go through ``no_break_append()`` so they stay attached.
    - Whether a composite renders inline or over several lines is decided
      afterwards by the parent, from the child's ``is_multi_line`` and
      ``length``. No backtracking is needed.
"""

from typing import List, Optional


class Line:
    """One committed line of a LineBuffer.

    Attributes:
        nest_level (int): Data nest level of the line, i.e. how many
            ``data_indent_string`` units precede it when printed.
        text (str): The line content without indentation.
    """

    __slots__ = ("nest_level", "text")

    def __init__(self, nest_level: int, text: str) -> None:
        self.nest_level = nest_level
        self.text = text

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Line):
            return NotImplemented
        return self.nest_level == other.nest_level and self.text == other.text

    def __repr__(self) -> str:  # pragma: no cover
        return f"Line({self.nest_level}, {self.text!r})"


class LineBuffer:
    """Accumulates text lines, wrapping at a maximum width.

    Example:
        >>> buff = LineBuffer(maximum_width=10)
        >>> _ = buff.append("value").no_break_append(" = ").append("12345")
        >>> [line.text for line in buff.lines()]
        ['value =', '12345']
    """

    def __init__(self, maximum_width: int) -> None:
        """Create an empty buffer.

        Args:
            maximum_width: Tail length beyond which a breakable append
                starts a new line.
        """
        self._maximum_width = maximum_width
        self._nest_level = 0
        self._append_nest_level = 0
        self._lines: List[Line] = []
        self._last_line = ""

    def line_feed(self) -> "LineBuffer":
        """Commit the tail as a line (even when empty) and start a new one."""
        self._lines.append(
            Line(self._nest_level + self._append_nest_level, self._last_line.rstrip())
        )
        self._append_nest_level = 0
        self._last_line = ""
        return self

    def up_nest(self) -> "LineBuffer":
        """Increase the nest level applied to subsequently committed lines."""
        self._nest_level += 1
        return self

    def down_nest(self) -> "LineBuffer":
        """Decrease the nest level applied to subsequently committed lines."""
        self._nest_level -= 1
        return self

    def append(
        self, text: Optional[str], nest_level: int = 0, no_break: bool = False
    ) -> "LineBuffer":
        """Append text to the tail, breaking the line first if it would not fit.

        Args:
            text: Text to append. ``None`` and ``""`` are ignored.
            nest_level: Extra nest level for the tail when this text starts it.
            no_break: If True, never break before ``text`` even when the
                maximum width is exceeded.

        Returns:
            This buffer, so calls can be chained.
        """
        if not text:
            return self
        if (
            not no_break
            and self.length > 0
            and self.length + len(text) > self._maximum_width
        ):
            self.line_feed()
        if not self._last_line:
            self._append_nest_level = nest_level
        self._last_line += text
        return self

    def no_break_append(self, text: Optional[str]) -> "LineBuffer":
        """Append text without ever breaking the line."""
        return self.append(text, 0, True)

    def append_buffer(self, separator: str, other: "LineBuffer") -> "LineBuffer":
        """Splice the lines of another buffer into this one.

        The first line of ``other`` joins the current tail; every following
        line is preceded by a line feed. Each spliced line keeps the nest
        level it had in ``other``, offset by this buffer's own nest level.

        Args:
            separator: Text no-break-appended before the first line, if any.
            other: The buffer to splice in. It is not modified.

        Returns:
            This buffer, so calls can be chained.
        """
        if separator:
            self.no_break_append(separator)
        for index, line in enumerate(other.lines()):
            if index > 0:
                self.line_feed()
            self.append(line.text, line.nest_level)
        return self

    @property
    def length(self) -> int:
        """Length of the uncommitted tail line."""
        return len(self._last_line)

    @property
    def is_multi_line(self) -> bool:
        """True if the buffer holds more than one line."""
        return len(self._lines) > 1 or (len(self._lines) == 1 and self.length > 0)

    def lines(self) -> List[Line]:
        """Return the committed lines plus the tail if it is not empty.

        Returns:
            A new list; mutating it does not affect the buffer.
        """
        lines = list(self._lines)
        if self.length > 0:
            lines.append(Line(self._nest_level + self._append_nest_level, self._last_line))
        return lines
