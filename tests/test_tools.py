"""
Tests for tool requirements and wear.
"""
import pytest

from forge_tycoon.events import ToolRepaired
from forge_tycoon.gameplay.catalog import RECIPES
from forge_tycoon.gameplay.tools import ToolWear

from conftest import Recorder


@pytest.fixture
def tools(bus, ledger):
    return ToolWear(bus, ledger)


class TestRequirements:
    """Tests for category and complexity mapping."""

    def test_required_tools_by_category(self, tools):
        assert tools.required_tools(RECIPES["horseshoe"]) == ("hammer", "tongs", "anvil")
        assert tools.required_tools(RECIPES["rifle"]) == ("hammer", "tongs", "anvil", "file")

    def test_unmapped_category_needs_a_hammer(self, tools):
        """Replacement tool recipes fall back to the hammer."""
        assert tools.required_tools(RECIPES["new_tongs"]) == ("hammer",)

    def test_missing_tools(self, ledger, tools):
        assert tools.check_tools_for_item(RECIPES["horseshoe"])
        assert tools.missing_tools(RECIPES["rifle"]) == ["file"]

        ledger.use_tool("tongs", 40)
        assert not tools.check_tools_for_item(RECIPES["horseshoe"])

    def test_wear_by_complexity(self, tools):
        assert tools.wear_amount(RECIPES["nail"]) == 1
        assert tools.wear_amount(RECIPES["pickaxe"]) == 2
        assert tools.wear_amount(RECIPES["rifle"]) == 3


class TestWear:
    """Tests for wearing and repairing tools."""

    def test_use_tools_for_item(self, ledger, tools):
        tools.use_tools_for_item(RECIPES["pot"])
        owned = ledger.get_tools()
        assert owned["hammer"].uses == 23
        assert owned["tongs"].uses == 38
        assert owned["anvil"].uses == 48

    def test_absent_tools_are_skipped(self, ledger, tools):
        """Wear skips tools the shop doesn't own."""
        tools.use_tools_for_item(RECIPES["rifle"])
        assert not ledger.has_tool("file")
        assert ledger.get_tools()["hammer"].uses == 22

    def test_repair_is_clamped(self, bus, ledger, tools):
        recorder = Recorder(bus, ToolRepaired)
        ledger.use_tool("hammer", 10)

        assert tools.repair_tool("hammer", 50)
        assert ledger.get_tools()["hammer"].uses == 30
        assert recorder.events[0].uses == 30

    def test_repair_missing_tool(self, tools):
        assert not tools.repair_tool("saw", 5)

    def test_durability_details(self, tools):
        details = tools.durability_details()
        assert details["anvil"] == {"percentage": 100.0, "current": 50, "max": 50}
