"""Command descriptors and the built-in command catalog.

A command is immutable data: the wire mode and PID, a tag for lookups, and
the parser that decodes its reply. Catalog entries below cover the common
mode 01/03/07/09/0A requests and the ELM327 AT configuration commands.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum

from obd_adapter.core.models import IntegerValue, ListValue, StringValue, TypedValue

from .codec import bit_at, bytes_to_int, format_hex, hex_pairs_to_text
from .constants import (
    BUS_INIT_PATTERN,
    CARRIAGE_COLON_PATTERN,
    CARRIAGE_PATTERN,
    CONTROL_CHARS_PATTERN,
    FRAME_INDEX_PATTERN,
    WHITESPACE_PATTERN,
    CommandCategory,
    ObdProtocol,
)
from .errors import check_for_errors
from .parsers import (
    Parser,
    boolean_parser,
    composite_parser,
    duration_parser,
    enum_parser,
    float_parser,
    integer_parser,
    map_parser,
    percentage_parser,
    pressure_parser,
    temperature_parser,
    text_parser,
)
from .response import RawResponse, Response


@dataclass(frozen=True)
class ObdCommand:
    """
    One request the adapter understands.

    Attributes:
        tag: Unique identifier used for lookups
        name: Human readable name
        mode: Service mode, e.g. "01" or "AT"
        pid: Parameter ID within the mode (may be empty, e.g. mode 03)
        parser: Decodes a reply into a typed value
        unit: Unit applied to parsed values (empty keeps the parser's unit)
        category: Grouping for registry lookups
        skip_validation: Accept replies that are not hex digits
        mutating: Changes vehicle or adapter state; never served from the cache
    """

    tag: str
    name: str
    mode: str
    pid: str
    parser: Parser = field(compare=False, repr=False)
    unit: str = ""
    category: CommandCategory = CommandCategory.CUSTOM
    skip_validation: bool = False
    mutating: bool = False

    def __post_init__(self) -> None:
        for attr in ("tag", "name", "mode"):
            if not getattr(self, attr):
                raise ValueError(f"Command {attr} must not be empty")

    @property
    def raw_command(self) -> str:
        """Wire form without the terminator, e.g. "01 0D"."""
        return f"{self.mode} {self.pid}"

    def parse(self, response: RawResponse) -> TypedValue:
        value = self.parser(response)
        return value.with_unit(self.unit) if self.unit else value

    def handle_response(self, response: RawResponse) -> Response:
        """
        Classify and parse a reply.

        Raises:
            AdapterResponseError: If the reply is an adapter error message
        """
        checked = check_for_errors(self, response)
        value = self.parse(checked)
        return Response(command=self, raw=checked, typed_value=value, display=value.display, unit=value.unit)

    def format(self, response: Response) -> str:
        return f"{response.display}{response.unit}"


def at_command(
    tag: str, name: str, pid: str, parser: Parser | None = None, mutating: bool = False
) -> ObdCommand:
    """Adapter configuration command; replies are plain text so validation is skipped."""
    return ObdCommand(
        tag=tag,
        name=name,
        mode="AT",
        pid=pid,
        parser=parser or text_parser(),
        category=CommandCategory.AT_CONFIGURATION,
        skip_validation=True,
        mutating=mutating,
    )


# ============================================================================
# Freeze Frame
# ============================================================================


def _without_frame_number(parser: Parser) -> Parser:
    """Mode 02 replies echo the frame number after the PID ("42 0D 00 3C"); drop it.

    The wrapped mode 01 parser reads fixed byte offsets, so it is handed the reply
    without the frame byte rather than the reply as received. "42 0D 00 3C" then
    decodes as speed 60 instead of 0.
    """

    def parse(response: RawResponse) -> TypedValue:
        text = response.cleaned_text
        return parser(RawResponse(text[:4] + text[6:], response.elapsed_ms))

    return parse


def freeze_frame(command: ObdCommand, frame: int = 0) -> ObdCommand:
    """Mode 02 variant of a mode 01 command, reading the snapshot stored with a trouble code."""
    return ObdCommand(
        tag=f"FREEZE_FRAME_{command.tag}",
        name=f"Freeze Frame {command.name}",
        mode="02",
        pid=f"{command.pid} {format_hex(frame)}",
        parser=_without_frame_number(command.parser),
        unit=command.unit,
        category=CommandCategory.CONTROL,
        skip_validation=command.skip_validation,
    )


# ============================================================================
# Special Parsers
# ============================================================================

_DTC_LETTERS = "PCBU"


def trouble_codes_parser(response_mode: str) -> Parser:
    """
    Decode a DTC list reply (mode 03/07/0A) into codes like "P0133".

    Each code is two bytes: the top two bits pick the letter, the next two
    the first digit, the remaining twelve bits are three hex digits. The
    list is padded with "P0000" which terminates it.
    """
    header_pattern = re.compile(rf"^{response_mode}|[\r\n]{response_mode}|[\r\n]")

    def parse(response: RawResponse) -> TypedValue:
        raw = response.text
        one_frame = WHITESPACE_PATTERN.sub("", CARRIAGE_PATTERN.sub("", raw))

        if len(one_frame) <= 16 and len(one_frame) % 4 == 0:
            # CAN single frame: <mode><count>[codes]
            data = one_frame[4:]
        elif ":" in raw:
            # CAN multi frame: <length>0:<mode><count>[codes]1:[codes]...
            data = WHITESPACE_PATTERN.sub("", CARRIAGE_COLON_PATTERN.sub("", raw))[7:]
        else:
            # ISO 9141-2 / KWP2000: every line starts with the response mode
            data = WHITESPACE_PATTERN.sub("", header_pattern.sub("", raw))

        codes = []
        for i in range(0, len(data), 4):
            chunk = data[i : i + 4]
            try:
                first = int(chunk[0], 16)
            except ValueError:
                continue
            code = f"{_DTC_LETTERS[(first >> 2) & 0b11]}{first & 0b11:X}{chunk[1:]}".ljust(5, "0")
            if code == "P0000":
                break
            codes.append(code)

        return ListValue(value=codes, separator=",")

    return parse


def available_pids_parser(base_pid: str) -> Parser:
    """Decode a supported-PID bitmap: bit n (from the MSB) set means PID base+n is supported."""
    base = int(base_pid, 16)

    def parse(response: RawResponse) -> TypedValue:
        bitmap = bytes_to_int(response.byte_buffer, count=4)
        pids = [base + i for i in range(1, 33) if bit_at(bitmap, i, 32) == 1]
        return ListValue(value=pids, display=",".join(format_hex(pid) for pid in pids))

    return parse


def vin_parser() -> Parser:
    """Decode the 17 character VIN from a mode 09 PID 02 reply."""

    def parse(response: RawResponse) -> TypedValue:
        raw = BUS_INIT_PATTERN.sub("", WHITESPACE_PATTERN.sub("", response.text))
        if ":" in raw:
            # CAN: "014" length, frame markers, then "490201" before the characters
            data = FRAME_INDEX_PATTERN.sub("", raw)[9:]
        else:
            # ISO 9141-2 / KWP2000: each line starts with "4902" and a line number
            data = re.sub(r"49020.", "", raw)
        return StringValue(value=CONTROL_CHARS_PATTERN.sub("", hex_pairs_to_text(data)))

    return parse


def _protocol_number_parser() -> Parser:
    def parse(response: RawResponse) -> TypedValue:
        text = response.text.strip()
        # "A6" means automatic search settled on protocol 6
        code = text[1] if len(text) == 2 else text[:1]
        protocol = next((p for p in ObdProtocol if p.code == code and p.code), ObdProtocol.UNKNOWN)
        return StringValue(value=protocol.display_name)

    return parse


# ============================================================================
# AT Commands
# ============================================================================


def _switch(enabled: bool) -> str:
    return "1" if enabled else "0"


def reset_adapter() -> ObdCommand:
    return at_command("RESET_ADAPTER", "Reset OBD Adapter", "Z", mutating=True)


def warm_start() -> ObdCommand:
    return at_command("WARM_START", "OBD Warm Start", "WS", mutating=True)


def set_echo(enabled: bool) -> ObdCommand:
    state = "ON" if enabled else "OFF"
    return at_command(f"SET_ECHO_{state}", f"Set Echo {state}", f"E{_switch(enabled)}")


def set_line_feed(enabled: bool) -> ObdCommand:
    state = "ON" if enabled else "OFF"
    return at_command(f"SET_LINE_FEED_{state}", f"Set Line Feed {state}", f"L{_switch(enabled)}")


def set_spaces(enabled: bool) -> ObdCommand:
    state = "ON" if enabled else "OFF"
    return at_command(f"SET_SPACES_{state}", f"Set Spaces {state}", f"S{_switch(enabled)}")


def set_headers(enabled: bool) -> ObdCommand:
    state = "ON" if enabled else "OFF"
    return at_command(f"SET_HEADERS_{state}", f"Set Headers {state}", f"H{_switch(enabled)}")


def set_timeout(timeout: int) -> ObdCommand:
    """Response timeout in units of 4 ms."""
    return at_command("SET_TIMEOUT", f"Set Timeout - {timeout}", f"ST {format_hex(timeout)}")


def select_protocol(protocol: ObdProtocol = ObdProtocol.AUTO) -> ObdCommand:
    if protocol is ObdProtocol.UNKNOWN:
        protocol = ObdProtocol.AUTO
    return at_command(
        f"SELECT_PROTOCOL_{protocol.name}",
        f"Select Protocol - {protocol.display_name}",
        f"SP {protocol.code}",
    )


def describe_protocol() -> ObdCommand:
    return at_command("DESCRIBE_PROTOCOL", "Describe Protocol", "DP")


def describe_protocol_number() -> ObdCommand:
    return at_command("DESCRIBE_PROTOCOL_NUMBER", "Describe Protocol Number", "DPN", _protocol_number_parser())


def adapter_voltage() -> ObdCommand:
    return at_command("ADAPTER_VOLTAGE", "OBD Adapter Voltage", "RV")


# ============================================================================
# Catalog
# ============================================================================


class FuelType(Enum):
    """Fuel type codes reported by PID 51."""

    NOT_AVAILABLE = "Not Available"
    GASOLINE = "Gasoline"
    METHANOL = "Methanol"
    ETHANOL = "Ethanol"
    DIESEL = "Diesel"
    LPG = "GPL/LGP"
    CNG = "Natural Gas"
    PROPANE = "Propane"
    ELECTRIC = "Electric"
    BIFUEL_GASOLINE = "Biodiesel + Gasoline"
    BIFUEL_METHANOL = "Biodiesel + Methanol"
    BIFUEL_ETHANOL = "Biodiesel + Ethanol"
    BIFUEL_LPG = "Biodiesel + GPL/LGP"
    BIFUEL_CNG = "Biodiesel + Natural Gas"
    BIFUEL_PROPANE = "Biodiesel + Propane"
    BIFUEL_ELECTRIC = "Biodiesel + Electric"
    BIFUEL_GASOLINE_ELECTRIC = "Biodiesel + Gasoline/Electric"
    HYBRID_GASOLINE = "Hybrid Gasoline"
    HYBRID_ETHANOL = "Hybrid Ethanol"
    HYBRID_DIESEL = "Hybrid Diesel"
    HYBRID_ELECTRIC = "Hybrid Electric"
    HYBRID_MIXED = "Hybrid Mixed"
    HYBRID_REGENERATIVE = "Hybrid Regenerative"
    UNKNOWN = "Unknown"


FUEL_TYPE_CODES = {code: member for code, member in enumerate(FuelType) if member is not FuelType.UNKNOWN}


class OxygenSensor(Enum):
    """Oxygen sensor location and its PID."""

    BANK_1_SENSOR_1 = "14"
    BANK_1_SENSOR_2 = "15"
    BANK_1_SENSOR_3 = "16"
    BANK_1_SENSOR_4 = "17"
    BANK_2_SENSOR_1 = "18"
    BANK_2_SENSOR_2 = "19"
    BANK_2_SENSOR_3 = "1A"
    BANK_2_SENSOR_4 = "1B"


class PidRange(Enum):
    """Supported-PID bitmap requests (base PID, display name)."""

    PIDS_01_TO_20 = ("00", "PIDs from 01 to 20")
    PIDS_21_TO_40 = ("20", "PIDs from 21 to 40")
    PIDS_41_TO_60 = ("40", "PIDs from 41 to 60")
    PIDS_61_TO_80 = ("60", "PIDs from 61 to 80")
    PIDS_81_TO_A0 = ("80", "PIDs from 81 to A0")

    def __init__(self, pid: str, display_name: str) -> None:
        self.pid = pid
        self.display_name = display_name


def oxygen_sensor(sensor: OxygenSensor) -> ObdCommand:
    """Voltage (A / 200) and short term fuel trim ((B - 128) * 100 / 128) from one reply."""
    return ObdCommand(
        tag=f"O2_VOLTAGE_{sensor.name}",
        name=f"O2 Sensor Voltage {sensor.name.replace('_', ' ')}",
        mode="01",
        pid=sensor.value,
        parser=composite_parser(
            {
                "voltage": float_parser(byte_count=1, multiplier=0.005, decimals=3, unit="V"),
                "fuel_trim": float_parser(start=3, byte_count=1, multiplier=100 / 128, offset=-100, decimals=1, unit="%"),
            }
        ),
        category=CommandCategory.FUEL,
    )


def available_pids(pid_range: PidRange) -> ObdCommand:
    return ObdCommand(
        tag=f"AVAILABLE_COMMANDS_{pid_range.name}",
        name=f"Available Commands - {pid_range.display_name}",
        mode="01",
        pid=pid_range.pid,
        parser=available_pids_parser(pid_range.pid),
        category=CommandCategory.CONTROL,
    )


def _dtc_count(value: TypedValue) -> TypedValue:
    # Bit 7 of byte A is the MIL flag
    return IntegerValue(value=value.value & 0x7F, unit=value.unit)


SPEED = ObdCommand(
    tag="SPEED",
    name="Vehicle Speed",
    mode="01",
    pid="0D",
    parser=integer_parser(byte_count=1),
    unit="km/h",
    category=CommandCategory.ENGINE,
)
ENGINE_RPM = ObdCommand(
    tag="ENGINE_RPM",
    name="Engine RPM",
    mode="01",
    pid="0C",
    parser=integer_parser(multiplier=0.25),
    unit="RPM",
    category=CommandCategory.ENGINE,
)
ENGINE_LOAD = ObdCommand(
    tag="ENGINE_LOAD",
    name="Engine Load",
    mode="01",
    pid="04",
    parser=percentage_parser(byte_count=1),
    category=CommandCategory.ENGINE,
)
ABSOLUTE_LOAD = ObdCommand(
    tag="ABSOLUTE_LOAD",
    name="Absolute Load Value",
    mode="01",
    pid="43",
    parser=percentage_parser(byte_count=2),
    category=CommandCategory.ENGINE,
)
THROTTLE_POSITION = ObdCommand(
    tag="THROTTLE_POSITION",
    name="Throttle Position",
    mode="01",
    pid="11",
    parser=percentage_parser(byte_count=1),
    category=CommandCategory.ENGINE,
)
MASS_AIR_FLOW = ObdCommand(
    tag="MAF",
    name="Mass Air Flow",
    mode="01",
    pid="10",
    parser=float_parser(multiplier=0.01, decimals=2),
    unit="g/s",
    category=CommandCategory.ENGINE,
)
ENGINE_RUNTIME = ObdCommand(
    tag="ENGINE_RUNTIME",
    name="Engine Runtime",
    mode="01",
    pid="1F",
    parser=duration_parser(format_as_time=True),
    category=CommandCategory.ENGINE,
)
TIMING_ADVANCE = ObdCommand(
    tag="TIMING_ADVANCE",
    name="Timing Advance",
    mode="01",
    pid="0E",
    parser=float_parser(byte_count=1, multiplier=0.5, offset=-64, decimals=2),
    unit="°",
    category=CommandCategory.CONTROL,
)
CONTROL_MODULE_VOLTAGE = ObdCommand(
    tag="CONTROL_MODULE_VOLTAGE",
    name="Control Module Power Supply",
    mode="01",
    pid="42",
    parser=float_parser(multiplier=0.001, decimals=2),
    unit="V",
    category=CommandCategory.CONTROL,
)
ENGINE_COOLANT_TEMPERATURE = ObdCommand(
    tag="ENGINE_COOLANT_TEMPERATURE",
    name="Engine Coolant Temperature",
    mode="01",
    pid="05",
    parser=temperature_parser(),
    category=CommandCategory.TEMPERATURE,
)
AIR_INTAKE_TEMPERATURE = ObdCommand(
    tag="AIR_INTAKE_TEMPERATURE",
    name="Air Intake Temperature",
    mode="01",
    pid="0F",
    parser=temperature_parser(),
    category=CommandCategory.TEMPERATURE,
)
AMBIENT_AIR_TEMPERATURE = ObdCommand(
    tag="AMBIENT_AIR_TEMPERATURE",
    name="Ambient Air Temperature",
    mode="01",
    pid="46",
    parser=temperature_parser(),
    category=CommandCategory.TEMPERATURE,
)
FUEL_PRESSURE = ObdCommand(
    tag="FUEL_PRESSURE",
    name="Fuel Pressure",
    mode="01",
    pid="0A",
    parser=pressure_parser(multiplier=3),
    category=CommandCategory.PRESSURE,
)
INTAKE_MANIFOLD_PRESSURE = ObdCommand(
    tag="INTAKE_MANIFOLD_PRESSURE",
    name="Intake Manifold Pressure",
    mode="01",
    pid="0B",
    parser=pressure_parser(),
    category=CommandCategory.PRESSURE,
)
BAROMETRIC_PRESSURE = ObdCommand(
    tag="BAROMETRIC_PRESSURE",
    name="Barometric Pressure",
    mode="01",
    pid="33",
    parser=pressure_parser(),
    category=CommandCategory.PRESSURE,
)
FUEL_LEVEL = ObdCommand(
    tag="FUEL_LEVEL",
    name="Fuel Level",
    mode="01",
    pid="2F",
    parser=percentage_parser(byte_count=1),
    category=CommandCategory.FUEL,
)
FUEL_TYPE = ObdCommand(
    tag="FUEL_TYPE",
    name="Fuel Type",
    mode="01",
    pid="51",
    parser=enum_parser(FUEL_TYPE_CODES, FuelType.UNKNOWN, display=lambda member: member.value),
    category=CommandCategory.FUEL,
)
MIL_ON = ObdCommand(
    tag="MIL_ON",
    name="MIL on",
    mode="01",
    pid="01",
    parser=boolean_parser(byte_index=0, bit_position=1),
    category=CommandCategory.CONTROL,
)
DTC_NUMBER = ObdCommand(
    tag="DTC_NUMBER",
    name="Diagnostic Trouble Codes Number",
    mode="01",
    pid="01",
    parser=map_parser(integer_parser(byte_count=1), _dtc_count),
    unit="codes",
    category=CommandCategory.CONTROL,
)
DISTANCE_MIL_ON = ObdCommand(
    tag="DISTANCE_TRAVELED_MIL_ON",
    name="Distance traveled with MIL on",
    mode="01",
    pid="21",
    parser=integer_parser(),
    unit="km",
    category=CommandCategory.CONTROL,
)
DISTANCE_SINCE_CODES_CLEARED = ObdCommand(
    tag="DISTANCE_TRAVELED_AFTER_CODES_CLEARED",
    name="Distance traveled since codes cleared",
    mode="01",
    pid="31",
    parser=integer_parser(),
    unit="km",
    category=CommandCategory.CONTROL,
)
TIME_SINCE_CODES_CLEARED = ObdCommand(
    tag="TIME_SINCE_CODES_CLEARED",
    name="Time since codes cleared",
    mode="01",
    pid="4E",
    parser=integer_parser(),
    unit="min",
    category=CommandCategory.CONTROL,
)
VIN = ObdCommand(
    tag="VIN",
    name="Vehicle Identification Number (VIN)",
    mode="09",
    pid="02",
    parser=vin_parser(),
    category=CommandCategory.DIAGNOSTIC,
)
TROUBLE_CODES = ObdCommand(
    tag="TROUBLE_CODES",
    name="Trouble Codes",
    mode="03",
    pid="",
    parser=trouble_codes_parser("43"),
    category=CommandCategory.CONTROL,
)
PENDING_TROUBLE_CODES = ObdCommand(
    tag="PENDING_TROUBLE_CODES",
    name="Pending Trouble Codes",
    mode="07",
    pid="",
    parser=trouble_codes_parser("47"),
    category=CommandCategory.CONTROL,
)
PERMANENT_TROUBLE_CODES = ObdCommand(
    tag="PERMANENT_TROUBLE_CODES",
    name="Permanent Trouble Codes",
    mode="0A",
    pid="",
    parser=trouble_codes_parser("4A"),
    category=CommandCategory.CONTROL,
)
RESET_TROUBLE_CODES = ObdCommand(
    tag="RESET_TROUBLE_CODES",
    name="Reset Trouble Codes",
    mode="04",
    pid="",
    parser=text_parser(),
    category=CommandCategory.CONTROL,
    mutating=True,
)

CATALOG: tuple[ObdCommand, ...] = (
    SPEED,
    ENGINE_RPM,
    ENGINE_LOAD,
    ABSOLUTE_LOAD,
    THROTTLE_POSITION,
    MASS_AIR_FLOW,
    ENGINE_RUNTIME,
    TIMING_ADVANCE,
    CONTROL_MODULE_VOLTAGE,
    ENGINE_COOLANT_TEMPERATURE,
    AIR_INTAKE_TEMPERATURE,
    AMBIENT_AIR_TEMPERATURE,
    FUEL_PRESSURE,
    INTAKE_MANIFOLD_PRESSURE,
    BAROMETRIC_PRESSURE,
    FUEL_LEVEL,
    FUEL_TYPE,
    MIL_ON,
    DTC_NUMBER,
    DISTANCE_MIL_ON,
    DISTANCE_SINCE_CODES_CLEARED,
    TIME_SINCE_CODES_CLEARED,
    VIN,
    TROUBLE_CODES,
    PENDING_TROUBLE_CODES,
    PERMANENT_TROUBLE_CODES,
    RESET_TROUBLE_CODES,
    *(oxygen_sensor(sensor) for sensor in OxygenSensor),
    *(available_pids(pid_range) for pid_range in PidRange),
    describe_protocol(),
    describe_protocol_number(),
    adapter_voltage(),
)

# Sent in order by ProtocolHandler.initialize()
INITIALIZATION_SEQUENCE: tuple[ObdCommand, ...] = (
    reset_adapter(),
    set_echo(False),
    set_line_feed(False),
    set_spaces(False),
    set_headers(False),
    select_protocol(ObdProtocol.AUTO),
)
