"""
Tests for the contract board.
"""
from datetime import timedelta

import pytest

from forge_tycoon.events import (
    ContractAvailable,
    ContractCompleted,
    ContractExpired,
    ContractRejected,
    SpecialContractAvailable,
)
from forge_tycoon.gameplay.blueprints import BlueprintRegistry
from forge_tycoon.gameplay.contract_data import CONTRACT_DEFINITIONS
from forge_tycoon.gameplay.contracts import Contract, ContractBoard, ContractKind

from conftest import Recorder


@pytest.fixture
def blueprints(bus, ledger):
    return BlueprintRegistry(bus, ledger)


@pytest.fixture
def board(bus, ledger, blueprints, rng, now):
    return ContractBoard(bus, ledger, blueprints, rng=rng, now=now)


def make_contract(now, **overrides) -> Contract:
    fields = dict(
        id="ranch_horseshoes_test",
        customer="Big Sky Ranch",
        item_id="horseshoe",
        item_name="Horseshoe",
        quantity=2,
        description="Test order",
        expiry_time=now() + timedelta(minutes=15),
        duration_minutes=15,
        payout=11.50,
    )
    fields.update(overrides)
    return Contract(**fields)


class TestGeneration:
    """Tests for standard contract generation."""

    def test_generated_contract(self, bus, board, now):
        recorder = Recorder(bus, ContractAvailable)
        contract = board.generate_contract()

        definition = next(d for d in CONTRACT_DEFINITIONS if d.id == contract.base_definition)
        assert contract.item_id in board.available_items()
        assert definition.min_quantity <= contract.quantity <= definition.max_quantity
        assert contract.expiry_time == now() + timedelta(minutes=contract.duration_minutes)
        assert contract.kind == ContractKind.STANDARD
        assert recorder.events[0].contract is contract

    def test_payout(self, board):
        contract = board.generate_contract()
        recipe = board.recipes[contract.item_id]
        expected = round(recipe.base_price * contract.quantity * contract.payout_multiplier, 2)
        assert contract.payout == expected

    def test_standard_contracts_are_capped(self, board):
        for _ in range(3):
            assert board.generate_contract() is not None
        assert board.generate_contract() is None
        assert len(board.active_contracts) == 3

    def test_generation_follows_the_interval(self, board):
        for _ in range(179):
            board.update()
        assert board.active_contracts == []

        board.update()
        assert len(board.active_contracts) == 1
        assert board.contract_timer == 0

    def test_tool_recipes_are_never_ordered(self, board):
        assert "new_hammer" not in board.available_items()


class TestExpiry:
    """Tests for wall-clock deadlines."""

    def test_expired_contract_is_removed_on_update(self, bus, board, now):
        """Expiry is checked on every update whatever the generation timer says."""
        recorder = Recorder(bus, ContractExpired)
        board.active_contracts.append(make_contract(now, expiry_time=now() - timedelta(hours=1)))
        board.contract_timer = 5

        board.update()
        assert board.active_contracts == []
        assert len(recorder.events) == 1
        assert board.contract_timer == 6

    def test_special_contracts_expire_too(self, board, now):
        board.offer_special_contract("horseshoe", "Wilson Ranch", 3, 1.3, 10)
        now.advance(minutes=10)

        expired = board.check_expired_contracts()
        assert len(expired) == 1
        assert board.special_contracts == []

    def test_time_remaining(self, board, now):
        contract = board.offer_special_contract("horseshoe", "Wilson Ranch", 3, 1.3, 10)
        now.advance(minutes=5)

        remaining = board.contract_time_remaining(contract.id)
        assert remaining == {"minutes": 5, "seconds": 0, "percentage": pytest.approx(50.0)}
        assert board.contract_time_remaining("missing") is None


class TestSettlement:
    """Tests for fulfilling and rejecting contracts."""

    def test_fulfill(self, bus, ledger, board, now):
        recorder = Recorder(bus, ContractCompleted)
        contract = make_contract(now)
        board.active_contracts.append(contract)

        assert board.fulfill_contract(contract.id)
        assert ledger.money == pytest.approx(111.50)
        assert ledger.get_item_count("horseshoe") == 0
        assert board.active_contracts == []
        assert recorder.events[0].contract is contract

    def test_fulfill_without_stock(self, ledger, board, now, notifications):
        contract = make_contract(now, quantity=5)
        board.active_contracts.append(contract)

        assert not board.fulfill_contract(contract.id)
        assert ledger.get_item_count("horseshoe") == 2
        assert notifications[-1].message == "Not enough Horseshoe to fulfill this contract."

    def test_fulfill_unknown(self, board, notifications):
        assert not board.fulfill_contract("nope")
        assert notifications[-1].message == "Contract not found."

    def test_reject(self, bus, board, now):
        recorder = Recorder(bus, ContractRejected)
        contract = make_contract(now)
        board.active_contracts.append(contract)

        assert board.reject_contract(contract.id)
        assert board.find_contract(contract.id) is None
        assert len(recorder.events) == 1


class TestSpecialContracts:
    """Tests for uncapped special contracts."""

    def test_special_contracts_bypass_the_cap(self, bus, board):
        recorder = Recorder(bus, SpecialContractAvailable)
        for _ in range(3):
            board.generate_contract()

        contract = board.offer_special_contract("pickaxe", "U.S. Army", 4, 2.0, 25)
        assert contract.is_special
        assert contract.payout == 120.00
        assert len(recorder.events) == 1
        assert contract in board.all_contracts()["special"]

    def test_unknown_item_is_skipped(self, board):
        assert board.offer_special_contract("shovel", "Miners", 2, 1.2, 10) is None
        assert board.special_contracts == []

    def test_intro_contract_on_unlock(self, blueprints, board):
        """Unlocking certain blueprints brings a first special order."""
        blueprints.unlock_blueprint("rifle")

        contract = board.special_contracts[0]
        assert contract.id.startswith("intro_rifle_")
        assert contract.customer == "County Sheriff's Office"
        assert contract.quantity == 2
        assert contract.payout == pytest.approx(135.00)

    def test_no_intro_for_other_blueprints(self, blueprints, board):
        blueprints.unlock_blueprint("bullets")
        assert board.special_contracts == []


class TestPersistence:
    """Tests for contract snapshots."""

    def test_round_trip(self, bus, ledger, blueprints, rng, now, board):
        board.generate_contract()
        board.offer_special_contract("horseshoe", "Wilson Ranch", 3, 1.3, 10)
        board.contract_timer = 42

        restored = ContractBoard(bus, ledger, blueprints, rng=rng, now=now)
        restored.deserialize(board.serialize())
        assert [c.to_dict() for c in restored.active_contracts] == [c.to_dict() for c in board.active_contracts]
        assert restored.special_contracts[0].kind == ContractKind.SPECIAL
        assert restored.contract_timer == 42

    def test_malformed_contracts_are_skipped(self, board):
        board.deserialize({"active_contracts": [{"id": "broken"}], "special_contracts": []})
        assert board.active_contracts == []

    @pytest.mark.parametrize("expiry", [None, "", "next tuesday"])
    def test_contracts_without_a_valid_deadline_are_skipped(self, board, now, expiry):
        raw = make_contract(now).to_dict()
        raw["expiry_time"] = expiry
        kept = make_contract(now, id="kept").to_dict()

        board.deserialize({"active_contracts": [raw, kept], "special_contracts": [raw]})
        assert [c.id for c in board.active_contracts] == ["kept"]
        assert board.special_contracts == []

        board.update()
        assert [c.id for c in board.active_contracts] == ["kept"]
