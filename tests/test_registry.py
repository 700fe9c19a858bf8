"""Unit tests for the command registry."""

from obd_adapter.protocol.commands import CATALOG, ENGINE_RPM, SPEED, VIN
from obd_adapter.protocol.constants import CommandCategory
from obd_adapter.protocol.registry import CommandRegistry, default_registry


class TestCommandRegistry:
    """Tests for CommandRegistry class."""

    def test_starts_empty(self):
        """Test a new registry has no commands."""
        registry = CommandRegistry()

        assert len(registry) == 0
        assert registry.get("SPEED") is None

    def test_register_command(self):
        """Test registering and retrieving by tag."""
        registry = CommandRegistry()
        registry.register_command(SPEED)

        assert "SPEED" in registry
        assert registry.get("SPEED") is SPEED

    def test_register_factory(self):
        """Test factories are called on every lookup."""
        registry = CommandRegistry()
        calls = []

        def factory():
            calls.append(1)
            return SPEED

        registry.register("SPEED", CommandCategory.ENGINE, "01", "0D", factory)
        registry.get("SPEED")
        registry.get("SPEED")

        assert len(calls) == 2

    def test_reregister_replaces(self):
        """Test registering a tag again replaces the entry."""
        registry = CommandRegistry()
        registry.register_command(SPEED)
        registry.register("SPEED", CommandCategory.ENGINE, "01", "0C", lambda: ENGINE_RPM)

        assert len(registry) == 1
        assert registry.get("SPEED") is ENGINE_RPM

    def test_unregister(self):
        """Test removing a command."""
        registry = CommandRegistry()
        registry.register_command(SPEED)

        assert registry.unregister("SPEED") is True
        assert registry.unregister("SPEED") is False
        assert "SPEED" not in registry

    def test_find_by_pid_case_insensitive(self):
        """Test mode/PID lookup ignores case."""
        registry = CommandRegistry()
        registry.register_command(SPEED)

        assert registry.find_by_pid("01", "0d") is SPEED
        assert registry.find_by_pid("01", "0C") is None

    def test_find_by_mode(self):
        """Test mode lookup."""
        registry = CommandRegistry()
        registry.register_all([SPEED, ENGINE_RPM, VIN])

        assert registry.find_by_mode("01") == [SPEED, ENGINE_RPM]
        assert registry.find_by_mode("09") == [VIN]

    def test_by_category(self):
        """Test category lookup and category set."""
        registry = CommandRegistry()
        registry.register_all([SPEED, VIN])

        assert registry.by_category(CommandCategory.DIAGNOSTIC) == [VIN]
        assert registry.categories == {CommandCategory.ENGINE, CommandCategory.DIAGNOSTIC}

    def test_tags_keep_registration_order(self):
        """Test tags are listed in registration order."""
        registry = CommandRegistry()
        registry.register_all([VIN, SPEED])

        assert registry.tags == ["VIN", "SPEED"]

    def test_clear(self):
        """Test clearing removes everything."""
        registry = CommandRegistry()
        registry.register_all([SPEED, VIN])
        registry.clear()

        assert len(registry) == 0


class TestDefaultRegistry:
    """Tests for default_registry function."""

    def test_contains_catalog(self):
        """Test every catalog command is registered."""
        registry = default_registry()

        assert len(registry) == len(CATALOG)
        assert registry.get("ENGINE_RPM") is ENGINE_RPM

    def test_independent_instances(self):
        """Test each call builds a separate registry."""
        first = default_registry()
        second = default_registry()
        first.clear()

        assert len(second) == len(CATALOG)
