"""Parser factories turning adapter replies into typed values.

Every factory closes over its configuration and returns a plain callable
``RawResponse -> TypedValue``, so a command definition is only data:

    >>> speed = integer_parser(byte_count=1, unit="km/h")
    >>> speed(RawResponse("41 0D 64")).value
    100
"""

from collections.abc import Callable, Mapping
from enum import Enum
from typing import Any

from obd_adapter.core.models import (
    BooleanValue,
    CompositeValue,
    DurationValue,
    EnumValue,
    FloatValue,
    IntegerValue,
    PercentageValue,
    PressureValue,
    StringValue,
    TemperatureValue,
    TypedValue,
)

from .codec import bit_at, bytes_to_int, percentage_of
from .constants import DATA_START
from .response import RawResponse

Parser = Callable[[RawResponse], TypedValue]


def integer_parser(
    byte_count: int = -1,
    multiplier: float = 1.0,
    offset: int = 0,
    unit: str = "",
    start: int = DATA_START,
) -> Parser:
    """Whole number: ``int(raw * multiplier) + offset``."""

    def parse(response: RawResponse) -> TypedValue:
        raw = bytes_to_int(response.byte_buffer, start, byte_count)
        return IntegerValue(value=int(raw * multiplier) + offset, unit=unit)

    return parse


def float_parser(
    byte_count: int = -1,
    multiplier: float = 1.0,
    offset: float = 0.0,
    decimals: int = 2,
    unit: str = "",
    start: int = DATA_START,
) -> Parser:
    """Scaled value: ``raw * multiplier + offset``."""

    def parse(response: RawResponse) -> TypedValue:
        raw = bytes_to_int(response.byte_buffer, start, byte_count)
        return FloatValue(value=raw * multiplier + offset, decimals=decimals, unit=unit)

    return parse


def percentage_parser(byte_count: int = -1, decimals: int = 1) -> Parser:
    """Standard OBD percentage: ``raw * 100 / 255``."""

    def parse(response: RawResponse) -> TypedValue:
        return PercentageValue(value=percentage_of(response.byte_buffer, count=byte_count), decimals=decimals)

    return parse


def temperature_parser(
    byte_count: int = 1,
    offset: float = -40.0,
    decimals: int = 1,
    unit: str = "°C",
    start: int = DATA_START,
) -> Parser:
    """Temperature: ``raw + offset`` (-40 for the standard PIDs)."""

    def parse(response: RawResponse) -> TypedValue:
        raw = bytes_to_int(response.byte_buffer, start, byte_count)
        return TemperatureValue(value=raw + offset, decimals=decimals, unit=unit)

    return parse


def pressure_parser(
    byte_count: int = 1,
    multiplier: float = 1.0,
    offset: float = 0.0,
    decimals: int = 1,
    unit: str = "kPa",
    start: int = DATA_START,
) -> Parser:
    """Pressure: ``raw * multiplier + offset``."""

    def parse(response: RawResponse) -> TypedValue:
        raw = bytes_to_int(response.byte_buffer, start, byte_count)
        return PressureValue(value=raw * multiplier + offset, decimals=decimals, unit=unit)

    return parse


def enum_parser(
    table: Mapping[int, Enum],
    default: Enum,
    byte_count: int = 1,
    display: Callable[[Enum], str] = lambda member: member.name,
) -> Parser:
    """
    Resolve the raw value against an enum table.

    Unknown codes resolve to ``default``; vehicles report manufacturer
    specific values that no table can anticipate.
    """

    def parse(response: RawResponse) -> TypedValue:
        key = bytes_to_int(response.byte_buffer, count=byte_count)
        member = table.get(key, default)
        return EnumValue(value=member, display=display(member))

    return parse


def lookup_parser(
    table: Mapping[int, Any],
    default: Any,
    byte_count: int = 1,
    display: Callable[[Any], str] = str,
) -> Parser:
    """Like :func:`enum_parser` for tables of arbitrary values; non-enum results become strings."""

    def parse(response: RawResponse) -> TypedValue:
        key = bytes_to_int(response.byte_buffer, count=byte_count)
        value = table.get(key, default)
        if isinstance(value, Enum):
            return EnumValue(value=value, display=display(value))
        return StringValue(value=display(value))

    return parse


def boolean_parser(
    byte_index: int = 0,
    bit_position: int = 1,
    bit_width: int = 8,
    true_label: str = "ON",
    false_label: str = "OFF",
) -> Parser:
    """
    Single bit flag.

    Args:
        byte_index: Data byte holding the flag, counted from the first data byte
        bit_position: 1-based position from the most significant bit
        bit_width: Width of the field in bits
        true_label: Display for a set bit
        false_label: Display for a clear bit
    """

    def parse(response: RawResponse) -> TypedValue:
        buffer = response.byte_buffer
        index = DATA_START + byte_index
        byte = buffer[index] if index < len(buffer) else 0
        return BooleanValue(
            value=bit_at(byte, bit_position, bit_width) == 1,
            true_label=true_label,
            false_label=false_label,
        )

    return parse


def duration_parser(byte_count: int = -1, format_as_time: bool = True) -> Parser:
    """Seconds counter, rendered as HH:MM:SS or raw seconds."""

    def parse(response: RawResponse) -> TypedValue:
        seconds = bytes_to_int(response.byte_buffer, count=byte_count)
        return DurationValue(value=seconds, format_as_time=format_as_time)

    return parse


def raw_text_parser(byte_count: int = -1, start_offset: int = 0) -> Parser:
    """Data bytes taken as character codes."""

    def parse(response: RawResponse) -> TypedValue:
        data = response.byte_buffer[DATA_START + start_offset :]
        if byte_count != -1:
            data = data[:byte_count]
        return StringValue(value="".join(chr(b) for b in data))

    return parse


def text_parser() -> Parser:
    """Adapter reply verbatim; for AT commands, which answer in plain text."""

    def parse(response: RawResponse) -> TypedValue:
        return StringValue(value=response.text)

    return parse


def composite_parser(parsers: Mapping[str, Parser]) -> Parser:
    """Apply every named parser to the same reply and collect the results in order."""

    def parse(response: RawResponse) -> TypedValue:
        return CompositeValue.from_parts({name: sub(response) for name, sub in parsers.items()})

    return parse


def map_parser(parser: Parser, transform: Callable[[TypedValue], TypedValue]) -> Parser:
    """Post-process the value a parser produces."""

    def parse(response: RawResponse) -> TypedValue:
        return transform(parser(response))

    return parse


def with_unit(parser: Parser, unit: str) -> Parser:
    """Re-tag a parser's output with another unit."""
    return map_parser(parser, lambda value: value.with_unit(unit))
