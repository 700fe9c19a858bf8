"""Adapter error replies and their classification.

ELM327-style adapters report failures as plain text in place of data
("NO DATA", "UNABLE TO CONNECT", "?"). Several of those messages contain the
word ERROR, so specific signatures must be tested before the generic one.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .constants import (
    BUS_INIT_ERROR_MESSAGE,
    ERROR_MESSAGE,
    HEX_DIGITS_PATTERN,
    MISUNDERSTOOD_COMMAND_MESSAGE,
    NO_DATA_MESSAGE,
    STOPPED_MESSAGE,
    UNABLE_TO_CONNECT_MESSAGE,
    UNSUPPORTED_COMMAND_PATTERN,
    WHITESPACE_PATTERN,
)
from .response import RawResponse

if TYPE_CHECKING:
    from .commands import ObdCommand


class AdapterResponseError(Exception):
    """Base class for error replies; carries the command and the offending reply."""

    def __init__(self, command: ObdCommand, response: RawResponse):
        self.command = command
        self.response = response
        super().__init__(str(self))

    def __str__(self) -> str:
        return f"Error while executing command [{self.command.tag}], response [{self.response.text}]"


class BusInitError(AdapterResponseError):
    """Adapter could not initialise the vehicle bus."""


class MisunderstoodCommandError(AdapterResponseError):
    """Adapter did not understand the request ("?")."""


class NoDataError(AdapterResponseError):
    """Vehicle did not answer the request."""


class StoppedError(AdapterResponseError):
    """Request was interrupted before a reply arrived."""


class UnableToConnectError(AdapterResponseError):
    """Adapter found no supported protocol on the bus."""


class UnknownError(AdapterResponseError):
    """Adapter reported an error without a more specific signature."""


class UnsupportedCommandError(AdapterResponseError):
    """ECU sent a negative response for an unsupported service or PID."""


class NonNumericResponseError(AdapterResponseError):
    """Reply is not hex digits and colons."""


def sanitize(text: str) -> str:
    """Remove whitespace and uppercase, the form error signatures are matched in."""
    return WHITESPACE_PATTERN.sub("", text).upper()


_SIGNATURES: tuple[tuple[str, type[AdapterResponseError]], ...] = (
    (sanitize(BUS_INIT_ERROR_MESSAGE), BusInitError),
    (sanitize(MISUNDERSTOOD_COMMAND_MESSAGE), MisunderstoodCommandError),
    (sanitize(NO_DATA_MESSAGE), NoDataError),
    (sanitize(STOPPED_MESSAGE), StoppedError),
    (sanitize(UNABLE_TO_CONNECT_MESSAGE), UnableToConnectError),
    (sanitize(ERROR_MESSAGE), UnknownError),
)


def check_for_errors(command: ObdCommand, response: RawResponse) -> RawResponse:
    """
    Raise the typed error matching the reply, or return the reply unchanged.

    Args:
        command: Command the reply belongs to
        response: Reply to inspect

    Returns:
        The same response when it is well formed

    Raises:
        AdapterResponseError: Subclass for the first matching signature
    """
    text = sanitize(response.text)

    for signature, error_class in _SIGNATURES:
        if signature in text:
            raise error_class(command, response)

    if UNSUPPORTED_COMMAND_PATTERN.fullmatch(text):
        raise UnsupportedCommandError(command, response)

    if not command.skip_validation and not HEX_DIGITS_PATTERN.fullmatch(text):
        raise NonNumericResponseError(command, response)

    return response
