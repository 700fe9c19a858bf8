"""OBD-II adapter protocol implementation."""

from obd_adapter.protocol.codec import bit_at, bytes_to_int, format_fixed, percentage_of
from obd_adapter.protocol.constants import PROMPT, CommandCategory, ObdProtocol

# Everything else is imported lazily: core.models depends on protocol.codec,
# and commands/parsers depend on core.models.
_LAZY = {
    "ObdCommand": "obd_adapter.protocol.commands",
    "RawResponse": "obd_adapter.protocol.response",
    "Response": "obd_adapter.protocol.response",
    "AdapterResponseError": "obd_adapter.protocol.errors",
    "check_for_errors": "obd_adapter.protocol.errors",
    "CommandRegistry": "obd_adapter.protocol.registry",
    "default_registry": "obd_adapter.protocol.registry",
    "ProtocolHandler": "obd_adapter.protocol.handler",
}


def __getattr__(name: str):
    if name in _LAZY:
        from importlib import import_module

        return getattr(import_module(_LAZY[name]), name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    "PROMPT",
    "AdapterResponseError",
    "CommandCategory",
    "CommandRegistry",
    "ObdCommand",
    "ObdProtocol",
    "ProtocolHandler",
    "RawResponse",
    "Response",
    "bit_at",
    "bytes_to_int",
    "check_for_errors",
    "default_registry",
    "format_fixed",
    "percentage_of",
]
