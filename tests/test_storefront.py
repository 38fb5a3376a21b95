"""
Tests for the storefront and simulated customers.
"""
import pytest

from forge_tycoon.events import ItemCrafted, ItemSold, StorefrontUpdated
from forge_tycoon.gameplay.storefront import Storefront

from conftest import Recorder


class ScriptedRng:
    """Returns queued values from random(); fails loudly when it runs out."""

    def __init__(self, *values):
        self.values = list(values)

    def random(self):
        return self.values.pop(0)

    def choice(self, seq):
        return seq[0]


@pytest.fixture
def storefront(bus, ledger, now):
    return Storefront(bus, ledger, rng=ScriptedRng(), now=now)


class TestStock:
    """Tests for moving goods on and off the shelf."""

    def test_add_moves_stock_from_ledger(self, bus, ledger, storefront):
        recorder = Recorder(bus, StorefrontUpdated)

        assert storefront.add_item_to_storefront("horseshoe", 2)
        assert storefront.listings["horseshoe"].quantity == 2
        assert ledger.get_item_count("horseshoe") == 0
        assert "horseshoe" in recorder.events[-1].listings

    def test_add_more_than_owned(self, ledger, storefront):
        assert not storefront.add_item_to_storefront("horseshoe", 3)
        assert ledger.get_item_count("horseshoe") == 2
        assert storefront.listings == {}

    def test_add_unknown_item(self, storefront):
        assert not storefront.add_item_to_storefront("catapult")

    def test_remove_returns_stock(self, ledger, storefront):
        storefront.add_item_to_storefront("horseshoe", 2)

        assert storefront.remove_item_from_storefront("horseshoe", 2)
        assert "horseshoe" not in storefront.listings
        assert ledger.get_item_count("horseshoe") == 2

    def test_auto_list_crafted_items(self, bus, storefront):
        """Freshly crafted goods flagged for listing go straight to the shelf."""
        bus.publish(ItemCrafted(item_id="pickaxe", quantity=1, list_in_storefront=True))
        assert storefront.listings["pickaxe"].quantity == 1

        bus.publish(ItemCrafted(item_id="hatchet", quantity=1))
        assert "hatchet" not in storefront.listings


class TestSales:
    """Tests for selling and pricing."""

    def test_sell_item(self, bus, ledger, storefront, now):
        recorder = Recorder(bus, ItemSold)
        storefront.add_item_to_storefront("pickaxe")

        assert storefront.sell_item("pickaxe")
        assert ledger.money == 115.00
        assert "pickaxe" not in storefront.listings
        assert recorder.events[0].price == 15.00

    def test_sell_more_than_listed(self, ledger, storefront):
        storefront.add_item_to_storefront("horseshoe", 1)
        assert not storefront.sell_item("horseshoe", 2)
        assert ledger.money == 100.00

    def test_price_modifier_chain(self, storefront):
        """Base price is scaled by global, category and item modifiers."""
        storefront.set_price_modifier("global", 2.0)
        storefront.set_price_modifier("category", 1.5, "metal")
        storefront.set_price_modifier("item", 0.5, "horseshoe")
        assert storefront.item_price("horseshoe") == pytest.approx(7.5)

    def test_override_price_wins(self, storefront):
        storefront.add_item_to_storefront("horseshoe")
        storefront.set_price_modifier("global", 2.0)

        assert storefront.set_item_price("horseshoe", 4.0)
        assert storefront.item_price("horseshoe") == 4.0

        storefront.set_item_price("horseshoe", None)
        assert storefront.item_price("horseshoe") == 10.0

    def test_invalid_modifiers(self, storefront):
        assert not storefront.set_price_modifier("global", -1)
        assert not storefront.set_price_modifier("category", 1.2)
        assert not storefront.set_item_price("horseshoe", 3.0)


class TestDemand:
    """Tests for timed demand multipliers."""

    def test_demand_expires(self, now, storefront):
        storefront.set_demand_multiplier("horseshoe", 2.0, now().replace(minute=10))
        assert storefront.demand_multiplier("horseshoe") == 2.0

        now.advance(minutes=11)
        storefront.update_demand_multipliers()
        assert storefront.demand_multiplier("horseshoe") == 1.0

    def test_expired_demand_stops_applying_before_the_sweep(self, now, storefront):
        storefront.set_demand_multiplier("horseshoe", 2.0, now().replace(minute=10))
        now.advance(minutes=10)
        assert storefront.demand_multiplier("horseshoe") == 1.0
        assert "horseshoe" in storefront.demand_multipliers


class TestCustomers:
    """Tests for walk-in customer visits."""

    def test_customer_buys(self, ledger, storefront):
        storefront.add_item_to_storefront("horseshoe", 2)
        storefront.rng = ScriptedRng(0.05, 0.5, 0.3, 0.5)

        assert storefront.check_for_customers()
        assert ledger.money == 110.00
        assert "horseshoe" not in storefront.listings

    def test_customer_walks_past(self, storefront):
        """A roll at or above the visit chance means no customer."""
        storefront.add_item_to_storefront("horseshoe", 2)
        storefront.rng = ScriptedRng(0.1)

        assert not storefront.check_for_customers()
        assert storefront.listings["horseshoe"].quantity == 2

    def test_customer_declines(self, storefront):
        storefront.add_item_to_storefront("horseshoe", 2)
        storefront.rng = ScriptedRng(0.05, 0.5, 0.6)

        assert not storefront.check_for_customers()

    def test_demand_scales_quantity(self, ledger, now, storefront):
        """Higher demand lets a customer take more, capped by stock."""
        ledger.add_item("nail", 20)
        storefront.add_item_to_storefront("nail", 20)
        storefront.set_demand_multiplier("nail", 2.0, now().replace(hour=18))
        storefront.rng = ScriptedRng(0.0, 0.5, 0.9, 0.99)

        assert storefront.check_for_customers()
        assert storefront.listings["nail"].quantity == 14

    def test_empty_shelf(self, storefront):
        assert not storefront.check_for_customers()

    def test_visits_follow_the_interval(self, storefront):
        """Customers are only rolled every thirty ticks."""
        storefront.add_item_to_storefront("horseshoe", 1)
        for _ in range(29):
            storefront.update()

        storefront.rng = ScriptedRng(0.5)
        storefront.update()
        assert storefront.customer_timer == 0
        assert storefront.rng.values == []


class TestPersistence:
    """Tests for storefront snapshots."""

    def test_round_trip(self, bus, ledger, now, storefront):
        storefront.add_item_to_storefront("horseshoe", 2)
        storefront.set_item_price("horseshoe", 6.0)
        storefront.set_price_modifier("category", 1.2, "metal")
        storefront.set_demand_multiplier("pickaxe", 3.0, now().replace(hour=20))

        restored = Storefront(bus, ledger, rng=ScriptedRng(), now=now)
        restored.deserialize(storefront.serialize())
        assert restored.listings["horseshoe"].quantity == 2
        assert restored.item_price("horseshoe") == 6.0
        assert restored.category_modifiers == {"metal": 1.2}
        assert restored.demand_multiplier("pickaxe") == 3.0

    def test_demand_without_deadline_is_skipped(self, bus, ledger, now, storefront):
        storefront.set_demand_multiplier("pickaxe", 3.0, now().replace(hour=20))
        snapshot = storefront.serialize()
        snapshot["demand_multipliers"]["horseshoe"] = {"multiplier": 2.0, "expiry": None}

        restored = Storefront(bus, ledger, rng=ScriptedRng(), now=now)
        restored.deserialize(snapshot)
        assert set(restored.demand_multipliers) == {"pickaxe"}
        assert restored.demand_multiplier("horseshoe") == 1.0

        restored.update_demand_multipliers()
        assert restored.demand_multiplier("pickaxe") == 3.0
