"""Protocol constants for ELM327-style adapter communication."""

import re
from enum import Enum

# ============================================================================
# Wire Framing
# ============================================================================

PROMPT = ">"  # Adapter is ready for the next command
COMMAND_TERMINATOR = "\r"
DATA_START = 2  # Response mode byte + PID byte precede the data bytes

# ============================================================================
# Cleanup Patterns
# ============================================================================

WHITESPACE_PATTERN = re.compile(r"\s")
BUS_INIT_PATTERN = re.compile(r"(BUS INIT)|(BUSINIT)|(\.)")
COLON_PATTERN = re.compile(r":")
SEARCHING_PATTERN = re.compile(r"SEARCHING\.*")
CARRIAGE_PATTERN = re.compile(r"[\r\n]")
CARRIAGE_COLON_PATTERN = re.compile(r"[\r\n].:")
FRAME_INDEX_PATTERN = re.compile(r".:")
CONTROL_CHARS_PATTERN = re.compile(r"[\x00-\x1f]")
HEX_DIGITS_PATTERN = re.compile(r"[0-9A-F:]+")

# ============================================================================
# Error Signatures (tested in this order)
# ============================================================================

BUS_INIT_ERROR_MESSAGE = "BUS INIT... ERROR"
MISUNDERSTOOD_COMMAND_MESSAGE = "?"
NO_DATA_MESSAGE = "NO DATA"
STOPPED_MESSAGE = "STOPPED"
UNABLE_TO_CONNECT_MESSAGE = "UNABLE TO CONNECT"
ERROR_MESSAGE = "ERROR"
# Negative response: 7F <mode 00-0A> <NRC 11 service / 12 sub-function not supported>
UNSUPPORTED_COMMAND_PATTERN = re.compile(r"7F0[0-9A]1[12]")

# ============================================================================
# Command Categories
# ============================================================================


class CommandCategory(str, Enum):
    """Groups commands by what they measure or control."""

    ENGINE = "engine"
    FUEL = "fuel"
    TEMPERATURE = "temperature"
    PRESSURE = "pressure"
    EMISSION = "emission"
    CONTROL = "control"
    DIAGNOSTIC = "diagnostic"
    AT_CONFIGURATION = "at_configuration"
    CUSTOM = "custom"
    UNKNOWN = "unknown"


# ============================================================================
# Adapter Protocols
# ============================================================================


class ObdProtocol(Enum):
    """Vehicle bus protocols selectable with AT SP <n>."""

    AUTO = ("0", "Auto")
    SAE_J1850_PWM = ("1", "SAE J1850 PWM (41.6 kbaud)")
    SAE_J1850_VPW = ("2", "SAE J1850 VPW (10.4 kbaud)")
    ISO_9141_2 = ("3", "ISO 9141-2 (5 baud init)")
    ISO_14230_4_KWP = ("4", "ISO 14230-4 KWP (5 baud init)")
    ISO_14230_4_KWP_FAST = ("5", "ISO 14230-4 KWP (fast init)")
    ISO_15765_4_CAN = ("6", "ISO 15765-4 CAN (11 bit ID, 500 kbaud)")
    ISO_15765_4_CAN_B = ("7", "ISO 15765-4 CAN (29 bit ID, 500 kbaud)")
    ISO_15765_4_CAN_C = ("8", "ISO 15765-4 CAN (11 bit ID, 250 kbaud)")
    ISO_15765_4_CAN_D = ("9", "ISO 15765-4 CAN (29 bit ID, 250 kbaud)")
    SAE_J1939_CAN = ("A", "SAE J1939 CAN (29 bit ID, 250 kbaud)")
    UNKNOWN = ("", "Unknown")

    def __init__(self, code: str, display_name: str) -> None:
        self.code = code
        self.display_name = display_name


# ============================================================================
# Communication Settings
# ============================================================================

MAX_RETRIES = 5  # Consecutive empty reads before a read gives up
RETRY_DELAY = 0.5  # Back-off between empty reads (seconds)
CACHE_SIZE = 100  # Response cache capacity (entries)
