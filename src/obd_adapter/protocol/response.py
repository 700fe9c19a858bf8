"""Adapter replies: raw text cleanup and the parsed response pairing."""

from __future__ import annotations

from dataclasses import dataclass
from functools import cached_property
from typing import TYPE_CHECKING, Any

from .constants import BUS_INIT_PATTERN, COLON_PATTERN, WHITESPACE_PATTERN

if TYPE_CHECKING:
    from obd_adapter.core.models import TypedValue
    from obd_adapter.protocol.commands import ObdCommand

# Applied in order: "41 0c 00 0d" arrives as spaced text, possibly with
# "BUS INIT..." chatter and "0:"/"1:" frame markers on multi-frame CAN replies.
_CLEANUP_PIPELINE = (WHITESPACE_PATTERN, BUS_INIT_PATTERN, COLON_PATTERN)


@dataclass(frozen=True)
class RawResponse:
    """
    Adapter reply as received, before any interpretation.

    Attributes:
        text: Reply text with the prompt and status banners removed
        elapsed_ms: Round trip time in milliseconds
    """

    text: str
    elapsed_ms: int = 0

    @cached_property
    def cleaned_text(self) -> str:
        """Reply with whitespace, bus-init noise and colons removed."""
        value = self.text
        for pattern in _CLEANUP_PIPELINE:
            value = pattern.sub("", value)
        return value

    @cached_property
    def byte_buffer(self) -> tuple[int, ...]:
        """
        Cleaned reply as byte values, one per hex pair.

        Index 0 is the response mode (request mode + 0x40), index 1 the PID,
        the rest are data bytes: "410D50" -> (0x41, 0x0D, 0x50).

        Raises:
            ValueError: If a pair is not valid hex
        """
        text = self.cleaned_text
        try:
            return tuple(int(text[i : i + 2], 16) for i in range(0, len(text), 2))
        except ValueError as e:
            raise ValueError(f"Response is not hex encoded: {self.text!r}") from e


@dataclass(frozen=True)
class Response:
    """Parsed result of one command."""

    command: ObdCommand
    raw: RawResponse
    typed_value: TypedValue
    display: str
    unit: str = ""

    @property
    def formatted(self) -> str:
        """Display string with the unit appended, as the command formats it."""
        return self.command.format(self)

    def _value_of(self, kind: str) -> Any:
        if self.typed_value.kind != kind:
            return None
        return self.typed_value.value

    def as_int(self) -> int | None:
        return self._value_of("integer")

    def as_float(self) -> float | None:
        return self._value_of("float")

    def as_percentage(self) -> float | None:
        return self._value_of("percentage")

    def as_temperature(self) -> float | None:
        return self._value_of("temperature")

    def as_pressure(self) -> float | None:
        return self._value_of("pressure")

    def as_string(self) -> str | None:
        return self._value_of("string")

    def as_boolean(self) -> bool | None:
        return self._value_of("boolean")

    def as_enum(self, enum_type: type | None = None) -> Any:
        """Enum member, or None if the value is not an enum (or not of ``enum_type``)."""
        value = self._value_of("enum")
        if value is not None and enum_type is not None and not isinstance(value, enum_type):
            return None
        return value

    def as_list(self) -> list[Any] | None:
        return self._value_of("list")

    def as_composite(self) -> dict[str, Any] | None:
        return self._value_of("composite")

    def as_duration(self) -> int | None:
        return self._value_of("duration")
