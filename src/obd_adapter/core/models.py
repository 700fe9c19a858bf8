"""Data models for the OBD adapter gateway."""

from datetime import datetime
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

from obd_adapter.protocol.codec import format_fixed

# ============================================================================
# Typed Values
# ============================================================================


def _rendered(data: Any, render) -> Any:
    """Return constructor data with ``display`` derived from the other fields."""
    if isinstance(data, dict):
        data = dict(data)
        data["display"] = render(data)
    return data


def _format_duration(seconds: int, format_as_time: bool) -> str:
    if not format_as_time:
        return str(seconds)
    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


class _TypedValueBase(BaseModel):
    """Fields shared by every typed value variant."""

    display: str = Field("", description="Display string derived from the value")
    unit: str = Field("", description="Unit string, may be empty")

    model_config = ConfigDict(frozen=True)

    def with_unit(self, unit: str):
        """Copy of this value tagged with another unit; value and display are kept."""
        return self.model_copy(update={"unit": unit})


class IntegerValue(_TypedValueBase):
    """Whole number such as speed, RPM or distance."""

    kind: Literal["integer"] = "integer"
    value: int

    @model_validator(mode="before")
    @classmethod
    def _render(cls, data: Any) -> Any:
        return _rendered(data, lambda d: str(d["value"]))


class FloatValue(_TypedValueBase):
    """Scaled value such as voltage or mass air flow."""

    kind: Literal["float"] = "float"
    value: float
    decimals: int = Field(2, ge=0)

    @model_validator(mode="before")
    @classmethod
    def _render(cls, data: Any) -> Any:
        return _rendered(data, lambda d: format_fixed(d["value"], d.get("decimals", 2)))


class PercentageValue(_TypedValueBase):
    """Percentage, usually 0-100 (absolute load may exceed 100)."""

    kind: Literal["percentage"] = "percentage"
    value: float
    decimals: int = Field(1, ge=0)
    unit: str = "%"

    @model_validator(mode="before")
    @classmethod
    def _render(cls, data: Any) -> Any:
        return _rendered(data, lambda d: format_fixed(d["value"], d.get("decimals", 1)))


class TemperatureValue(_TypedValueBase):
    """Temperature, Celsius unless re-tagged."""

    kind: Literal["temperature"] = "temperature"
    value: float
    decimals: int = Field(1, ge=0)
    unit: str = "°C"

    @model_validator(mode="before")
    @classmethod
    def _render(cls, data: Any) -> Any:
        return _rendered(data, lambda d: format_fixed(d["value"], d.get("decimals", 1)))


class PressureValue(_TypedValueBase):
    """Pressure, kPa unless re-tagged."""

    kind: Literal["pressure"] = "pressure"
    value: float
    decimals: int = Field(1, ge=0)
    unit: str = "kPa"

    @model_validator(mode="before")
    @classmethod
    def _render(cls, data: Any) -> Any:
        return _rendered(data, lambda d: format_fixed(d["value"], d.get("decimals", 1)))


class StringValue(_TypedValueBase):
    """Text such as a VIN or an adapter reply."""

    kind: Literal["string"] = "string"
    value: str

    @model_validator(mode="before")
    @classmethod
    def _render(cls, data: Any) -> Any:
        return _rendered(data, lambda d: d["value"])


class EnumValue(_TypedValueBase):
    """Discrete state resolved from a lookup table.

    The display defaults to the member name; parsers pass the output of
    their display function instead.
    """

    kind: Literal["enum"] = "enum"
    value: Any

    @model_validator(mode="before")
    @classmethod
    def _render(cls, data: Any) -> Any:
        if isinstance(data, dict) and not data.get("display"):
            value = data["value"]
            data = {**data, "display": getattr(value, "name", str(value))}
        return data


class BooleanValue(_TypedValueBase):
    """On/off flag with caller supplied labels."""

    kind: Literal["boolean"] = "boolean"
    value: bool
    true_label: str = "ON"
    false_label: str = "OFF"

    @model_validator(mode="before")
    @classmethod
    def _render(cls, data: Any) -> Any:
        return _rendered(
            data,
            lambda d: d.get("true_label", "ON") if d["value"] else d.get("false_label", "OFF"),
        )


class ListValue(_TypedValueBase):
    """Ordered items such as trouble codes or supported PIDs."""

    kind: Literal["list"] = "list"
    value: list[Any]
    separator: str = ", "

    @model_validator(mode="before")
    @classmethod
    def _render(cls, data: Any) -> Any:
        if isinstance(data, dict) and not data.get("display"):
            separator = data.get("separator", ", ")
            data = {**data, "display": separator.join(str(item) for item in data["value"])}
        return data


class CompositeValue(_TypedValueBase):
    """Several named values decoded from one response."""

    kind: Literal["composite"] = "composite"
    value: dict[str, Any]

    @model_validator(mode="before")
    @classmethod
    def _render(cls, data: Any) -> Any:
        if isinstance(data, dict) and not data.get("display"):
            data = {**data, "display": ", ".join(f"{k}={v}" for k, v in data["value"].items())}
        return data

    @classmethod
    def from_parts(cls, parts: dict[str, "TypedValue"], unit: str = "") -> "CompositeValue":
        """Build from sub-values, keeping insertion order and their display strings."""
        return cls(
            value={name: part.value for name, part in parts.items()},
            display=", ".join(f"{name}={part.display}" for name, part in parts.items()),
            unit=unit,
        )


class DurationValue(_TypedValueBase):
    """Elapsed time in seconds, shown as HH:MM:SS or raw seconds."""

    kind: Literal["duration"] = "duration"
    value: int
    format_as_time: bool = True

    @model_validator(mode="before")
    @classmethod
    def _render(cls, data: Any) -> Any:
        return _rendered(data, lambda d: _format_duration(int(d["value"]), d.get("format_as_time", True)))


TypedValue = Annotated[
    Union[
        IntegerValue,
        FloatValue,
        PercentageValue,
        TemperatureValue,
        PressureValue,
        StringValue,
        EnumValue,
        BooleanValue,
        ListValue,
        CompositeValue,
        DurationValue,
    ],
    Field(discriminator="kind"),
]

# ============================================================================
# API Request/Response Models
# ============================================================================


class CommandInfo(BaseModel):
    """Registry entry as exposed by GET /api/commands."""

    tag: str = Field(..., description="Unique command tag")
    name: str = Field(..., description="Human readable name")
    mode: str = Field(..., description="OBD-II service mode")
    pid: str = Field(..., description="Parameter ID")
    category: str = Field(..., description="Command category")
    unit: str = Field("", description="Default unit")
    mutating: bool = Field(False, description="Changes vehicle or adapter state; only accepted via POST")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "tag": "SPEED",
                "name": "Vehicle Speed",
                "mode": "01",
                "pid": "0D",
                "category": "engine",
                "unit": "km/h",
            }
        }
    )


class CommandResponse(BaseModel):
    """Result of executing one command."""

    tag: str = Field(..., description="Command tag")
    command: str = Field(..., description="Wire form of the command")
    value: TypedValue = Field(..., description="Typed result")
    display: str = Field(..., description="Display string")
    unit: str = Field("", description="Unit string")
    formatted: str = Field(..., description="Display string with unit")
    raw: str = Field(..., description="Adapter reply as received")
    elapsed_ms: int = Field(..., ge=0, description="Round trip time in milliseconds")
    timestamp: datetime = Field(default_factory=datetime.now, description="Response timestamp")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "tag": "SPEED",
                "command": "01 0D",
                "value": {"kind": "integer", "value": 100, "display": "100", "unit": "km/h"},
                "display": "100",
                "unit": "km/h",
                "formatted": "100km/h",
                "raw": "41 0D 64",
                "elapsed_ms": 120,
                "timestamp": "2026-01-13T10:30:00",
            }
        }
    )


class CacheClearResponse(BaseModel):
    """Response model for DELETE /api/cache."""

    cleared: int = Field(..., ge=0, description="Number of entries removed")


class ErrorResponse(BaseModel):
    """Response model for errors."""

    success: bool = Field(False, description="Operation success status")
    error: str = Field(..., description="Error message")
    detail: str | None = Field(None, description="Additional error details")
    timestamp: datetime = Field(default_factory=datetime.now, description="Error timestamp")


class HealthResponse(BaseModel):
    """Response model for health check."""

    status: str = Field(..., description="Health status (healthy/degraded/unhealthy)")
    adapter_connected: bool = Field(..., description="Whether the adapter transport is open")
    cached_responses: int = Field(..., ge=0, description="Number of cached responses")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "status": "healthy",
                "adapter_connected": True,
                "cached_responses": 12,
            }
        }
    )
