"""
Tests for the resource ledger.
"""
import pytest

from forge_tycoon.events import InventoryUpdated, MoneyUpdated, ToolBroken
from forge_tycoon.gameplay.inventory import INSUFFICIENT_FUNDS, ResourceLedger

from conftest import Recorder


class TestMaterials:
    """Tests for material stock."""

    def test_starting_stock(self, ledger):
        """The shop opens with the default materials, goods and money."""
        assert ledger.get_material("iron") == 50
        assert ledger.get_material("coal") == 25
        assert ledger.get_item_count("horseshoe") == 2
        assert ledger.money == 100.00

    def test_overdraw_is_rejected(self, bus, ledger):
        """Removing more than is held fails and leaves stock untouched."""
        recorder = Recorder(bus, InventoryUpdated)

        assert not ledger.remove_material("iron", 60)
        assert ledger.get_material("iron") == 50
        assert recorder.events == []

    def test_add_and_remove(self, bus, ledger):
        """Successful changes publish inventory:updated."""
        recorder = Recorder(bus, InventoryUpdated)

        assert ledger.add_material("silver", 2.5)
        assert ledger.remove_material("silver", 7.5)
        assert ledger.get_material("silver") == 0
        assert len(recorder.events) == 2

    def test_non_positive_amounts(self, ledger):
        """Zero and negative amounts are rejected."""
        assert not ledger.add_material("iron", 0)
        assert not ledger.remove_material("iron", -1)
        assert ledger.get_material("iron") == 50

    def test_consume_is_all_or_nothing(self, ledger):
        """A multi-material debit fails as a whole if any part is short."""
        assert not ledger.consume_materials({"iron": 10, "gold": 5})
        assert ledger.get_material("iron") == 50
        assert ledger.get_material("gold") == 1

        assert ledger.consume_materials({"iron": 10, "gold": 1})
        assert ledger.get_material("iron") == 40
        assert ledger.get_material("gold") == 0

    def test_accessors_return_copies(self, ledger):
        """Mutating a returned map doesn't touch the ledger."""
        materials = ledger.get_materials()
        materials["iron"] = 0
        assert ledger.get_material("iron") == 50


class TestItems:
    """Tests for crafted goods."""

    def test_zero_entries_are_deleted(self, ledger):
        """An item count that reaches zero disappears."""
        assert ledger.remove_item("horseshoe", 2)
        assert "horseshoe" not in ledger.get_items()

    def test_remove_too_many(self, ledger):
        """Removing more items than held fails."""
        assert not ledger.remove_item("pickaxe", 2)
        assert ledger.get_item_count("pickaxe") == 1

    def test_has_items(self, ledger):
        assert ledger.has_items({"pickaxe": 1, "horseshoe": 2})
        assert not ledger.has_items({"horseshoe": 3})


class TestTools:
    """Tests for tool durability."""

    def test_use_tool_wears_it_down(self, ledger):
        """Uses decrease and the percentage follows."""
        assert ledger.use_tool("hammer", 5)
        assert ledger.get_tools()["hammer"].uses == 20
        assert ledger.tool_durability_percentage("hammer") == pytest.approx(20 / 30 * 100)

    def test_tool_breaks_at_zero(self, bus, ledger):
        """A tool is removed the moment it runs out and tool:broken fires once."""
        recorder = Recorder(bus, ToolBroken)

        assert ledger.use_tool("hammer", 25)
        assert not ledger.has_tool("hammer")
        assert [e.tool_id for e in recorder.events] == ["hammer"]

        assert not ledger.use_tool("hammer", 1)
        assert len(recorder.events) == 1

    def test_missing_tool_percentage(self, ledger):
        assert ledger.tool_durability_percentage("saw") == -1

    def test_replace_tool_uses_catalog_durability(self, ledger):
        """A fresh tool starts at its catalog durability."""
        ledger.add_or_replace_tool("saw")
        record = ledger.get_tools()["saw"]
        assert (record.uses, record.max_uses) == (35, 35)

    def test_restore_tool_is_clamped(self, ledger):
        record = ledger.restore_tool("hammer", 100)
        assert (record.uses, record.max_uses) == (30, 30)
        assert ledger.restore_tool("saw", 5) is None


class TestMoney:
    """Tests for the balance."""

    def test_add_and_remove_money(self, bus, ledger):
        """Balance changes publish money:updated with the new balance."""
        recorder = Recorder(bus, MoneyUpdated)

        assert ledger.add_money(12.5)
        assert ledger.remove_money(2.5)
        assert ledger.money == pytest.approx(110.0)
        assert len(recorder.events) == 2

    def test_insufficient_funds(self, ledger):
        assert not ledger.remove_money(100.01)
        assert ledger.money == 100.00

    def test_debit_result(self, ledger):
        """debit() reports why it failed."""
        result = ledger.debit(500, reason="test")
        assert not result
        assert result.reason == INSUFFICIENT_FUNDS

        result = ledger.debit(40)
        assert result
        assert result.cost == 40
        assert ledger.money == 60.00


class TestPurchasing:
    """Tests for the material and tool pricing surface."""

    def test_purchase_materials(self, ledger):
        """Materials are bought at base price in one payment."""
        result = ledger.purchase_materials({"iron": 4, "coal": 10})
        assert result
        assert result.cost == pytest.approx(20.00)
        assert ledger.money == pytest.approx(80.00)
        assert ledger.get_material("iron") == 54

    def test_purchase_unknown_material(self, ledger, notifications):
        result = ledger.purchase_materials({"mithril": 1})
        assert not result
        assert ledger.money == 100.00
        assert "Unknown material" in notifications[-1].message

    def test_purchase_too_expensive(self, ledger):
        """A purchase the balance can't cover changes nothing."""
        result = ledger.purchase_materials({"gold": 10})
        assert not result
        assert ledger.get_material("gold") == 1
        assert ledger.money == 100.00

    def test_material_price_modifier_and_expiry(self, ledger, now, notifications):
        """A timed multiplier applies until its expiry, then is swept."""
        now_value = now()
        ledger.set_material_price_multiplier("iron", 0.5, now_value.replace(hour=13))
        assert ledger.material_price("iron") == pytest.approx(1.25)

        now.advance(hours=2)
        assert ledger.material_price("iron") == pytest.approx(2.50)

        ledger.update()
        assert "Iron prices are back to normal." in [n.message for n in notifications]

    def test_tool_purchase_with_discount(self, ledger, now):
        """A tool bought under a price modifier costs less and arrives new."""
        ledger.set_tool_price_multiplier(0.6, now().replace(hour=23))
        result = ledger.purchase_tool("saw")
        assert result
        assert result.cost == pytest.approx(7.20)
        assert ledger.has_tool("saw")


class TestPersistence:
    """Tests for ledger snapshots."""

    def test_round_trip(self, bus, ledger, now):
        ledger.add_material("gold", 2)
        ledger.use_tool("anvil", 10)
        ledger.set_material_price_multiplier("coal", 1.5, now().replace(hour=20))

        restored = ResourceLedger(bus, now=now)
        restored.deserialize(ledger.serialize())

        assert restored.get_materials() == ledger.get_materials()
        assert restored.get_tools() == ledger.get_tools()
        assert restored.money == ledger.money
        assert restored.material_price("coal") == pytest.approx(1.5)

    def test_invalid_tool_records_are_skipped(self, ledger):
        ledger.deserialize({"tools": {"hammer": {"uses": 0, "max_uses": 30}, "saw": "broken"}})
        assert ledger.get_tools() == {}
