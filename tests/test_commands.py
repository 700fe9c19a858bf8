"""Unit tests for command descriptors and the catalog."""

import pytest

from obd_adapter.protocol.commands import (
    CATALOG,
    DTC_NUMBER,
    ENGINE_COOLANT_TEMPERATURE,
    ENGINE_RPM,
    FUEL_TYPE,
    INITIALIZATION_SEQUENCE,
    MIL_ON,
    PENDING_TROUBLE_CODES,
    RESET_TROUBLE_CODES,
    SPEED,
    TROUBLE_CODES,
    VIN,
    FuelType,
    ObdCommand,
    OxygenSensor,
    PidRange,
    available_pids,
    describe_protocol_number,
    freeze_frame,
    oxygen_sensor,
    reset_adapter,
    select_protocol,
    set_echo,
    set_headers,
    set_timeout,
    warm_start,
)
from obd_adapter.protocol.constants import CommandCategory, ObdProtocol
from obd_adapter.protocol.errors import NoDataError
from obd_adapter.protocol.parsers import integer_parser
from obd_adapter.protocol.response import RawResponse


class TestObdCommand:
    """Tests for ObdCommand descriptor."""

    def test_raw_command(self):
        """Test wire form joins mode and PID."""
        assert SPEED.raw_command == "01 0D"

    def test_empty_pid_keeps_separator(self):
        """Test commands without a PID still send the separator."""
        assert TROUBLE_CODES.raw_command == "03 "

    @pytest.mark.parametrize("field", ["tag", "name", "mode"])
    def test_required_fields(self, field):
        """Test empty tag, name or mode is rejected."""
        kwargs = {"tag": "X", "name": "X", "mode": "01", "pid": "00", "parser": integer_parser()}
        kwargs[field] = ""

        with pytest.raises(ValueError, match=field):
            ObdCommand(**kwargs)

    def test_immutable(self):
        """Test command attributes cannot be reassigned."""
        with pytest.raises(AttributeError):
            SPEED.pid = "0C"

    def test_handle_response(self):
        """Test a reply is classified, parsed and formatted."""
        response = SPEED.handle_response(RawResponse("41 0D 64"))

        assert response.as_int() == 100
        assert response.display == "100"
        assert response.unit == "km/h"
        assert response.formatted == "100km/h"

    def test_handle_response_error(self):
        """Test adapter errors propagate from handle_response."""
        with pytest.raises(NoDataError):
            SPEED.handle_response(RawResponse("NO DATA"))

    def test_unit_overrides_parser_unit(self):
        """Test a command unit replaces the parser's."""
        command = ObdCommand(tag="T", name="T", mode="01", pid="05", parser=integer_parser(unit="C"), unit="F")

        assert command.parse(RawResponse("41 05 10")).unit == "F"

    def test_empty_unit_keeps_parser_unit(self):
        """Test a command without unit keeps the parser's."""
        response = ENGINE_COOLANT_TEMPERATURE.handle_response(RawResponse("41 05 7B"))

        assert response.as_temperature() == 83
        assert response.formatted == "83.0°C"


class TestCatalog:
    """Tests for catalog command decoding."""

    def test_state_changing_commands_flagged(self):
        """Test only the trouble code reset is marked mutating in the catalog."""
        assert RESET_TROUBLE_CODES.mutating is True
        assert [command.tag for command in CATALOG if command.mutating] == ["RESET_TROUBLE_CODES"]
        assert SPEED.mutating is False

    def test_rpm(self):
        """Test engine RPM."""
        assert ENGINE_RPM.handle_response(RawResponse("41 0C 1A F8")).formatted == "1726RPM"

    def test_fuel_type(self):
        """Test fuel type resolves through the table."""
        response = FUEL_TYPE.handle_response(RawResponse("41 51 01"))

        assert response.as_enum(FuelType) is FuelType.GASOLINE
        assert response.display == "Gasoline"

    def test_fuel_type_unknown(self):
        """Test unknown fuel codes use the default."""
        assert FUEL_TYPE.handle_response(RawResponse("41 51 FF")).as_enum() is FuelType.UNKNOWN

    def test_mil_and_dtc_count(self):
        """Test MIL flag and DTC count share byte A."""
        raw = RawResponse("41 01 83 07 65 04")

        assert MIL_ON.handle_response(raw).as_boolean() is True
        count = DTC_NUMBER.handle_response(raw)
        assert count.as_int() == 3
        assert count.unit == "codes"

    def test_vin_can(self):
        """Test VIN from a multi-frame CAN reply."""
        raw = RawResponse("014\r0: 49 02 01 31 48 47\r1: 43 4D 38 32 36 33 33\r2: 41 30 30 34 33 35 32")

        assert VIN.handle_response(raw).as_string() == "1HGCM82633A004352"

    def test_vin_iso(self):
        """Test VIN from a line-per-message ISO 9141-2 reply."""
        raw = RawResponse(
            "49 02 01 00 00 00 31\r49 02 02 48 47 43 4D\r49 02 03 38 32 36 33\r"
            "49 02 04 33 41 30 30\r49 02 05 34 33 35 32"
        )

        assert VIN.handle_response(raw).as_string() == "1HGCM82633A004352"

    def test_available_pids(self):
        """Test supported PID bitmap decoding."""
        response = available_pids(PidRange.PIDS_01_TO_20).handle_response(RawResponse("41 00 BE 1F A8 13"))

        assert response.as_list() == [1, 3, 4, 5, 6, 7, 12, 13, 14, 15, 16, 17, 19, 21, 28, 31, 32]
        assert response.display.startswith("01,03,04")
        assert response.display.endswith("1C,1F,20")

    def test_available_pids_offset(self):
        """Test the base PID offsets the result."""
        response = available_pids(PidRange.PIDS_21_TO_40).handle_response(RawResponse("41 20 80 00 00 01"))

        assert response.as_list() == [0x21, 0x40]

    def test_oxygen_sensor(self):
        """Test voltage and fuel trim from one reply."""
        response = oxygen_sensor(OxygenSensor.BANK_1_SENSOR_1).handle_response(RawResponse("41 14 50 80"))

        assert response.as_composite() == {"voltage": pytest.approx(0.4), "fuel_trim": pytest.approx(0.0)}
        assert response.display == "voltage=0.400, fuel_trim=0.0"

    def test_catalog_tags_unique(self):
        """Test no two catalog commands share a tag."""
        tags = [command.tag for command in CATALOG]

        assert len(tags) == len(set(tags))


class TestTroubleCodes:
    """Tests for trouble code list decoding."""

    def test_can_single_frame(self):
        """Test CAN single frame with header and count."""
        response = TROUBLE_CODES.handle_response(RawResponse("43 02 01 33 C1 23"))

        assert response.as_list() == ["P0133", "U0123"]
        assert response.display == "P0133,U0123"

    def test_can_multi_frame(self):
        """Test CAN multi frame reply."""
        raw = RawResponse("00A\r0: 43 04 01 33 04 20\r1: 01 71 41 31 00 00 00")

        assert TROUBLE_CODES.handle_response(raw).as_list() == ["P0133", "P0420", "P0171", "C0131"]

    def test_iso_padding_terminates(self):
        """Test ISO replies stop at the P0000 padding."""
        raw = RawResponse("47 01 33 00 00 00 00")

        assert PENDING_TROUBLE_CODES.handle_response(raw).as_list() == ["P0133"]

    def test_no_codes(self):
        """Test an empty list."""
        response = TROUBLE_CODES.handle_response(RawResponse("43 00"))

        assert response.as_list() == []
        assert response.display == ""


class TestFreezeFrame:
    """Tests for freeze_frame wrapper."""

    def test_descriptor(self):
        """Test tag, mode and PID of the wrapped command."""
        command = freeze_frame(SPEED, frame=1)

        assert command.tag == "FREEZE_FRAME_SPEED"
        assert command.name == "Freeze Frame Vehicle Speed"
        assert command.raw_command == "02 0D 01"
        assert command.category == CommandCategory.CONTROL
        assert command.unit == "km/h"

    def test_frame_byte_skipped(self):
        """Test the echoed frame number is not parsed as data."""
        response = freeze_frame(SPEED).handle_response(RawResponse("42 0D 00 3C"))

        assert response.as_int() == 60

    def test_multi_byte(self):
        """Test two-byte values after the frame number."""
        response = freeze_frame(ENGINE_RPM).handle_response(RawResponse("42 0C 00 1A F8"))

        assert response.as_int() == 1726


class TestAtCommands:
    """Tests for AT command builders."""

    def test_switches(self):
        """Test on/off switches."""
        assert set_echo(False).raw_command == "AT E0"
        assert set_headers(True).raw_command == "AT H1"
        assert set_echo(False).skip_validation is True
        assert set_echo(False).category == CommandCategory.AT_CONFIGURATION

    def test_select_protocol(self):
        """Test protocol selection codes."""
        assert select_protocol(ObdProtocol.ISO_15765_4_CAN).raw_command == "AT SP 6"
        assert select_protocol(ObdProtocol.UNKNOWN).raw_command == "AT SP 0"

    def test_set_timeout(self):
        """Test timeout in hex."""
        assert set_timeout(50).raw_command == "AT ST 32"

    def test_resets_are_mutating(self):
        """Test adapter resets are marked mutating, plain settings are not."""
        assert reset_adapter().mutating is True
        assert warm_start().mutating is True
        assert set_echo(False).mutating is False

    def test_at_reply_is_text(self):
        """Test AT replies parse as text."""
        assert set_echo(False).handle_response(RawResponse("OK")).as_string() == "OK"

    def test_describe_protocol_number(self):
        """Test protocol number replies resolve to names."""
        command = describe_protocol_number()

        assert command.handle_response(RawResponse("A6")).as_string() == ObdProtocol.ISO_15765_4_CAN.display_name
        assert command.handle_response(RawResponse("3")).as_string() == ObdProtocol.ISO_9141_2.display_name

    def test_initialization_sequence(self):
        """Test set-up order."""
        assert [c.raw_command for c in INITIALIZATION_SEQUENCE] == [
            "AT Z",
            "AT E0",
            "AT L0",
            "AT S0",
            "AT H0",
            "AT SP 0",
        ]
