"""Shared expression grammar for schedule fields.

The parser deals with integer values and compound forms only; unit-specific
words (week day names, ``last``, ``2nd Fri``) are delegated to an optional
text parser that is consulted before integer parsing.

Grammar:
    ::

        expression := "*" | list | increment | item
        list       := item ("," item)+          (no increment inside a list)
        increment  := ("*" | INTEGER) "/" INTEGER
        item       := token "-" token | token    (range or scalar)
        token      := text form | [+-]?digits

Range semantics:
    - ``A-B`` with A < B is inclusive
    - ``A-B`` with A > B wraps: ``{minimum..B} ∪ {A..maximum}``
    - ``A-A`` is the singleton ``{A}``

Integer literals are checked against the parser's literal bounds. Values
produced by the text parser are trusted; a text form that denotes nothing in
the current context (a 5th Friday in a four-Friday month) raises
``EmptyValue`` and contributes no value.
"""

from __future__ import annotations

import re
from collections.abc import Callable

from caltimer.core.errors import ExpressionError

TextParser = Callable[[str], "int | None"]

_NUMBER = r"[+-]?\d+"
_WORD = r"(?:(?:[1-5](?:st|nd|rd|th)|last)\s+)?[a-z]+"
_TOKEN = rf"(?:{_NUMBER}|{_WORD})"

RANGE_PATTERN = re.compile(rf"^({_TOKEN})\s*-\s*({_TOKEN})$", re.IGNORECASE)
INTEGER_PATTERN = re.compile(r"^[+-]?\d+$")


class EmptyValue(Exception):
    """A recognised text form that denotes no value in the current context."""


def _no_text(text: str) -> int | None:
    return None


class ExpressionParser:
    """Parse one unit expression into the set of values it denotes.

    Args:
        unit: Unit name used in error messages (``"second"``, ``"dayOfMonth"`` ..)
        bounds: Inclusive range every integer literal must fall in
        text_parser: Optional hook resolving unit words; returns None when
            the text is not a word form it knows

    Example:
        >>> ExpressionParser("second", (0, 59)).parse("50-10", 0, 59) == {
        ...     0, 1, 2, 3, 4, 5, 6, 7, 8, 9, 10, 50, 51, 52, 53, 54, 55, 56, 57, 58, 59}
        True
    """

    def __init__(
        self,
        unit: str,
        bounds: tuple[int, int],
        text_parser: TextParser | None = None,
    ) -> None:
        self.unit = unit
        self.bounds = bounds
        self.text_parser = text_parser or _no_text

    def parse(self, expression: str, minimum: int, maximum: int) -> set[int]:
        """Resolve ``expression`` against the ``[minimum, maximum]`` span.

        ``minimum`` and ``maximum`` drive the wildcard, wrapping ranges and
        the end of increments; they may differ from the literal bounds (day
        of month, year window).

        Raises:
            ExpressionError: on any malformed or out-of-bounds expression
        """
        if not isinstance(expression, str):
            raise self._error(f"Expression must be a string, got {type(expression).__name__}", expression)
        source = expression
        expression = expression.strip()
        if not expression:
            raise self._error("Empty expression", source)

        values: set[int] = set()

        if expression == "*":
            values.update(range(minimum, maximum + 1))
            return values

        if "," in expression:
            for item in expression.split(","):
                item = item.strip()
                if not item:
                    raise self._error("Empty item in list expression", source)
                if "/" in item:
                    raise self._error("Increment is not allowed inside a list", source)
                self._parse_item(item, minimum, maximum, values, source)
            return values

        if "/" in expression:
            self._parse_increment(expression, minimum, maximum, values, source)
            return values

        self._parse_item(expression, minimum, maximum, values, source)
        return values

    def _parse_increment(
        self,
        expression: str,
        minimum: int,
        maximum: int,
        values: set[int],
        source: str,
    ) -> None:
        start_text, _, step_text = (part.strip() for part in expression.partition("/"))
        if not start_text or not step_text or "/" in step_text:
            raise self._error(f"Malformed increment expression: {expression}", source)

        if start_text == "*":
            start = minimum
        elif INTEGER_PATTERN.match(start_text):
            start = self._check_bounds(int(start_text), source)
        else:
            raise self._error(f"Increment start must be numeric or '*': {start_text}", source)

        if not INTEGER_PATTERN.match(step_text) or int(step_text) < 1:
            raise self._error(f"Increment step must be a positive integer: {step_text}", source)

        values.update(range(start, maximum + 1, int(step_text)))

    def _parse_item(
        self,
        item: str,
        minimum: int,
        maximum: int,
        values: set[int],
        source: str,
    ) -> None:
        match = RANGE_PATTERN.match(item)
        if match is None:
            # a dash beyond the leading sign can only be a broken range
            if "-" in item[1:]:
                raise self._error(f"Malformed range expression: {item}", source)
            value = self._resolve_value(item, source)
            if value is not None:
                values.add(value)
            return

        # both ends are checked before an empty end drops the range
        start = self._resolve_value(match.group(1).strip(), source)
        end = self._resolve_value(match.group(2).strip(), source)
        if start is None or end is None:
            return

        if start < end:
            values.update(range(start, end + 1))
        elif start > end:
            values.update(range(minimum, end + 1))
            values.update(range(start, maximum + 1))
        else:
            values.add(start)

    def _resolve_value(self, token: str, source: str) -> int | None:
        """Parse ``token``; None when it is a text form with no value here."""
        try:
            return self._parse_value(token, source)
        except EmptyValue:
            return None

    def _parse_value(self, token: str, source: str) -> int:
        value = self.text_parser(token)
        if value is not None:
            return value
        if not INTEGER_PATTERN.match(token):
            raise self._error(f"Invalid value: {token}", source)
        return self._check_bounds(int(token), source)

    def _check_bounds(self, value: int, source: str) -> int:
        low, high = self.bounds
        if value < low:
            raise self._error(f"Too small value: {value}", source)
        if value > high:
            raise self._error(f"Too large value: {value}", source)
        return value

    def _error(self, message: str, expression: object) -> ExpressionError:
        return ExpressionError(
            f"Invalid {self.unit} expression {expression!r}: {message}",
            unit=self.unit,
            expression=expression if isinstance(expression, str) else repr(expression),
        )
