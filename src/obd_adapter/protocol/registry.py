"""Lookup table of known commands."""

import logging
from collections.abc import Callable, Iterable

from .commands import CATALOG, ObdCommand
from .constants import CommandCategory

logger = logging.getLogger(__name__)

CommandFactory = Callable[[], ObdCommand]


class RegistryEntry:
    """Registered command metadata and the factory that builds it."""

    def __init__(self, tag: str, category: CommandCategory, mode: str, pid: str, factory: CommandFactory):
        self.tag = tag
        self.category = category
        self.mode = mode
        self.pid = pid
        self.factory = factory

    def create(self) -> ObdCommand:
        return self.factory()


class CommandRegistry:
    """Commands indexed by tag, with category, mode and PID lookups.

    Registering a tag twice replaces the earlier entry.
    """

    def __init__(self) -> None:
        self._entries: dict[str, RegistryEntry] = {}

    def register(
        self,
        tag: str,
        category: CommandCategory,
        mode: str,
        pid: str,
        factory: CommandFactory,
    ) -> None:
        if tag in self._entries:
            logger.debug("Replacing registered command %s", tag)
        self._entries[tag] = RegistryEntry(tag, category, mode.upper(), pid.upper(), factory)

    def register_command(self, command: ObdCommand) -> None:
        """Register an existing command instance under its own tag."""
        self.register(command.tag, command.category, command.mode, command.pid, lambda: command)

    def register_all(self, commands: Iterable[ObdCommand]) -> None:
        for command in commands:
            self.register_command(command)

    def unregister(self, tag: str) -> bool:
        """Remove a command; returns False if the tag was not registered."""
        return self._entries.pop(tag, None) is not None

    def get(self, tag: str) -> ObdCommand | None:
        entry = self._entries.get(tag)
        return entry.create() if entry else None

    def by_category(self, category: CommandCategory) -> list[ObdCommand]:
        return [entry.create() for entry in self._entries.values() if entry.category == category]

    def find_by_pid(self, mode: str, pid: str) -> ObdCommand | None:
        """First command registered for a mode/PID pair (case-insensitive)."""
        mode, pid = mode.upper(), pid.upper()
        for entry in self._entries.values():
            if entry.mode == mode and entry.pid == pid:
                return entry.create()
        return None

    def find_by_mode(self, mode: str) -> list[ObdCommand]:
        mode = mode.upper()
        return [entry.create() for entry in self._entries.values() if entry.mode == mode]

    def commands(self) -> list[ObdCommand]:
        return [entry.create() for entry in self._entries.values()]

    @property
    def tags(self) -> list[str]:
        return list(self._entries)

    @property
    def categories(self) -> set[CommandCategory]:
        return {entry.category for entry in self._entries.values()}

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, tag: object) -> bool:
        return tag in self._entries

    def __len__(self) -> int:
        return len(self._entries)


def default_registry() -> CommandRegistry:
    """Registry populated with the built-in catalog."""
    registry = CommandRegistry()
    registry.register_all(CATALOG)
    return registry
