"""
Text parser toolkit.

Small combinator-style parsers for building ad hoc grammars. A parser is a
callable taking the unconsumed input and returning ``(remaining, value)``;
when it does not match it raises ParseFailure. Parsers never keep state
between calls, so they can be freely reused and nested.

Example:
    >>> point = delimited("(", ")", separated_list1(",", number, strip_whitespace=True))
    >>> run_to_completion(point, "(1, -2, 3)")
    [1, -2, 3]
"""

from __future__ import annotations

import re
from typing import Any, Callable, List, Optional, Tuple, TypeVar

from ..errors import ParseFailure, ParseFailureKind

T = TypeVar("T")
U = TypeVar("U")

Parser = Callable[[str], Tuple[str, Any]]

_NUMBER = re.compile(r"-?([0-9]*)")
_ALPHA = re.compile(r"[A-Za-z]+")
_SPACE = re.compile(r"\s*")


def bounded_int(bits: int, signed: bool = True) -> Callable[[str], int]:
    """
    Build a converter for a fixed-width integer type.

    Python ints never overflow, so narrower targets (i8, u32, ...) are modelled
    with an explicit range check.

    Args:
        bits: Width of the target type.
        signed: Whether negative values are representable.

    Returns:
        A callable turning digit text into an int, raising OverflowError
        when the value does not fit.
    """
    if signed:
        low, high = -(1 << (bits - 1)), (1 << (bits - 1)) - 1
    else:
        low, high = 0, (1 << bits) - 1

    def convert(text: str) -> int:
        value = int(text)
        if not low <= value <= high:
            kind = "i" if signed else "u"
            raise OverflowError(f"{value} does not fit in {kind}{bits}")
        return value

    return convert


def number(text: str, into: Callable[[str], T] = int) -> Tuple[str, T]:
    """
    Parse an optionally negative decimal number.

    Args:
        text: Input to consume.
        into: Converter applied to the matched text (int, float, bounded_int(...)).

    Returns:
        Tuple of (remaining, value).
    """
    match = _NUMBER.match(text)
    if not match.group(1):
        raise ParseFailure(ParseFailureKind.NO_DIGITS_FOUND, "a number", text)

    matched = match.group(0)
    try:
        value = into(matched)
    except (ValueError, OverflowError, TypeError) as e:
        raise ParseFailure(
            ParseFailureKind.NUMERIC_OVERFLOW,
            f"a number convertible by {getattr(into, '__name__', repr(into))} ({e})",
            text,
        ) from e
    return text[match.end():], value


def tag(literal: str) -> Parser:
    """Match a fixed literal and return it."""

    def parse(text: str) -> Tuple[str, str]:
        if not text.startswith(literal):
            raise ParseFailure(ParseFailureKind.UNEXPECTED_INPUT, repr(literal), text)
        return text[len(literal):], literal

    return parse


def alpha1(text: str) -> Tuple[str, str]:
    """Match one or more ASCII letters."""
    match = _ALPHA.match(text)
    if not match:
        raise ParseFailure(ParseFailureKind.UNEXPECTED_INPUT, "letters", text)
    return text[match.end():], match.group(0)


def multispace0(text: str) -> Tuple[str, str]:
    """Consume any amount of whitespace, including none."""
    match = _SPACE.match(text)
    return text[match.end():], match.group(0)


def map_value(parser: Parser, fn: Callable[[Any], U]) -> Parser:
    """Transform the value produced by parser."""

    def parse(text: str) -> Tuple[str, U]:
        rest, value = parser(text)
        return rest, fn(value)

    return parse


def preceded(prefix: Parser, parser: Parser) -> Parser:
    """Run prefix, discard its value, then run parser."""

    def parse(text: str) -> Tuple[str, Any]:
        rest, _ = prefix(text)
        return parser(rest)

    return parse


def sequence(*parsers: Parser) -> Parser:
    """Run parsers one after another and collect their values in a tuple."""

    def parse(text: str) -> Tuple[str, Tuple[Any, ...]]:
        values = []
        rest = text
        for parser in parsers:
            rest, value = parser(rest)
            values.append(value)
        return rest, tuple(values)

    return parse


def alt(*parsers: Parser) -> Parser:
    """
    Try parsers in order and return the first success.

    When every alternative fails, the failure that got furthest into the
    input is re-raised, since it is usually the most informative one.
    """
    if not parsers:
        raise ValueError("alt() requires at least one parser")

    def parse(text: str) -> Tuple[str, Any]:
        best: Optional[ParseFailure] = None
        for parser in parsers:
            try:
                return parser(text)
            except ParseFailure as failure:
                if best is None or len(failure.remaining) < len(best.remaining):
                    best = failure
        raise best

    return parse


def optional(parser: Parser) -> Parser:
    """Run parser, yielding None without consuming anything if it fails."""

    def parse(text: str) -> Tuple[str, Any]:
        try:
            return parser(text)
        except ParseFailure:
            return text, None

    return parse


def delimited(open_tag: str, close_tag: str, inner: Parser) -> Parser:
    """
    Strip a fixed prefix and suffix around inner.

    Args:
        open_tag: Literal that must start the input.
        close_tag: Literal that must follow whatever inner consumed.
        inner: Parser for the enclosed value.

    Returns:
        A parser producing inner's value.
    """

    def parse(text: str) -> Tuple[str, Any]:
        if not text.startswith(open_tag):
            raise ParseFailure(ParseFailureKind.MISSING_DELIMITER, repr(open_tag), text)
        rest, value = inner(text[len(open_tag):])
        if not rest.startswith(close_tag):
            raise ParseFailure(ParseFailureKind.MISSING_DELIMITER, repr(close_tag), rest)
        return rest[len(close_tag):], value

    return parse


def separated_list(
    separator: str,
    item: Parser,
    min_count: int = 0,
    strip_whitespace: bool = False,
) -> Parser:
    """
    Parse items separated by a fixed token.

    Parsing stops at the first separator or item that does not match. A
    separator whose following item fails is left unconsumed.

    Args:
        separator: Literal between items.
        item: Parser for one item.
        min_count: Minimum number of items required.
        strip_whitespace: Allow whitespace around the separator.

    Returns:
        A parser producing the list of items in input order.
    """
    sep = tag(separator)
    if strip_whitespace:
        sep = sequence(multispace0, sep, multispace0)

    def parse(text: str) -> Tuple[str, List[Any]]:
        items: List[Any] = []
        rest = text
        last_failure: Optional[ParseFailure] = None
        try:
            rest, value = item(rest)
        except ParseFailure as failure:
            last_failure = failure
        else:
            items.append(value)
            while True:
                try:
                    after_sep, _ = sep(rest)
                    after_item, value = item(after_sep)
                except ParseFailure as failure:
                    last_failure = failure
                    break
                if len(after_item) == len(rest):
                    # Neither separator nor item consumed anything.
                    break
                items.append(value)
                rest = after_item

        if len(items) < min_count:
            expected = f"at least {min_count} item(s) separated by {separator!r}, got {len(items)}"
            if last_failure is not None:
                expected += f" ({last_failure})"
            raise ParseFailure(ParseFailureKind.TOO_FEW_ITEMS, expected, rest) from last_failure
        return rest, items

    return parse


def separated_list0(separator: str, item: Parser, strip_whitespace: bool = False) -> Parser:
    """separated_list accepting zero items."""
    return separated_list(separator, item, 0, strip_whitespace)


def separated_list1(separator: str, item: Parser, strip_whitespace: bool = False) -> Parser:
    """separated_list requiring at least one item."""
    return separated_list(separator, item, 1, strip_whitespace)


def run_to_completion(parser: Parser, text: str) -> Any:
    """
    Run parser over the whole input.

    Surrounding whitespace is trimmed once before parsing. Any failure is
    re-raised with its absolute position in the trimmed input.

    Raises:
        ParseFailure: If parser fails or leaves input unconsumed.
    """
    text = text.strip()
    try:
        rest, value = parser(text)
    except ParseFailure as failure:
        raise failure.located(len(text)) from failure
    if rest:
        raise ParseFailure(
            ParseFailureKind.TRAILING_INPUT, "end of input", rest
        ).located(len(text))
    return value
