"""Tests for contract purchase, tracking and settlement."""

import asyncio

import pytest

from tickbot_app.config.defaults import ExecutionParams
from tickbot_app.errors import GatewayRejectionError, SlotOccupiedError, UnknownContractError
from tickbot_app.execution import (
    BulkMode,
    BulkOrder,
    BulkRowStatus,
    ContractLifecycleManager,
    ContractStatus,
    OutcomeKind,
)
from tickbot_app.risk import AggregateLedger
from tickbot_app.state import SubOrder

SYMBOL = "R_100"


@pytest.fixture
def manager(gateway):
    return ContractLifecycleManager(
        gateway,
        ledger=AggregateLedger(),
        params=ExecutionParams(completion_timeout_s=5.0),
        symbol=SYMBOL,
    )


class TestPurchase:
    """Test buying and the single open contract slot."""

    def test_execute_tracks_pending_contract(self, gateway, manager):
        contract = asyncio.run(manager.execute("DIGITUNDER", 8, 2.0))

        assert contract.status == ContractStatus.PENDING
        assert contract.subscription_id is not None
        assert manager.has_open_contract
        request = gateway.purchases[0]
        assert request.contract_type == "DIGITUNDER"
        assert request.to_payload()["barrier"] == "8"
        assert request.amount == 2.0

    def test_second_purchase_rejected_while_open(self, manager):
        async def scenario():
            await manager.execute("DIGITEVEN", None, 1.0)
            await manager.execute("DIGITODD", None, 1.0)

        with pytest.raises(SlotOccupiedError) as exc_info:
            asyncio.run(scenario())

        assert len(exc_info.value.open_contracts) == 1

    def test_rejection_frees_slot(self, gateway, manager):
        gateway.reject_reason = "Market is closed"

        with pytest.raises(GatewayRejectionError):
            asyncio.run(manager.execute("DIGITEVEN", None, 1.0))

        assert not manager.has_open_contract

    def test_missing_symbol(self, gateway):
        manager = ContractLifecycleManager(gateway)

        with pytest.raises(ValueError):
            asyncio.run(manager.execute("DIGITEVEN", None, 1.0))

    def test_sibling_orders_bought_together(self, gateway, manager):
        orders = (SubOrder("DIGITUNDER", 4), SubOrder("DIGITOVER", 5))

        contracts = asyncio.run(manager.execute_many(orders, 1.0))

        assert len(contracts) == 2
        assert [r.prediction for r in gateway.purchases] == [4, 5]
        assert len(manager.active_contracts) == 2

    def test_all_sibling_legs_failing_raises(self, gateway, manager):
        gateway.reject_reason = "Trading suspended"
        orders = (SubOrder("DIGITUNDER", 4), SubOrder("DIGITOVER", 5))

        with pytest.raises(GatewayRejectionError):
            asyncio.run(manager.execute_many(orders, 1.0))

        assert not manager.has_open_contract


class TestSettlement:
    """Test contract updates and completion waits."""

    def test_terminal_update_resolves_and_unsubscribes(self, gateway, manager, spin):
        events = []
        manager.add_listener(lambda contract, outcome: events.append(outcome))

        async def scenario():
            contract = await manager.execute("DIGITEVEN", None, 1.0)
            gateway.settle(contract.contract_id, 0.95)
            outcome = await manager.await_completion(contract.contract_id)
            await spin()
            return contract, outcome

        contract, outcome = asyncio.run(scenario())

        assert outcome.kind == OutcomeKind.WON
        assert outcome.profit == 0.95
        assert contract.status == ContractStatus.CLOSED
        assert not manager.has_open_contract
        assert contract.subscription_id in gateway.unsubscribed
        assert manager.ledger.realized_profit == 0.95
        assert manager.ledger.wins == 1
        assert events == [outcome]
        assert manager.get_outcome(contract.contract_id) == outcome

    def test_open_update_tracks_unrealized_profit(self, gateway, manager):
        events = []
        manager.add_listener(lambda contract, outcome: events.append((contract.status, outcome)))

        async def scenario():
            contract = await manager.execute("DIGITEVEN", None, 1.0)
            gateway.push_contract_update(contract.contract_id, 0.4)
            return contract

        contract = asyncio.run(scenario())

        assert contract.status == ContractStatus.OPEN
        assert manager.ledger.open_profit == {contract.contract_id: 0.4}
        assert manager.ledger.total == 0.4
        assert events == [(ContractStatus.OPEN, None)]

    def test_loss_outcome(self, gateway, manager):
        async def scenario():
            contract = await manager.execute("DIGITODD", None, 1.0)
            gateway.settle(contract.contract_id, -1.0)
            return await manager.await_completion(contract.contract_id)

        outcome = asyncio.run(scenario())

        assert outcome.kind == OutcomeKind.LOST
        assert not outcome.won
        assert manager.ledger.losses == 1

    def test_timeout_yields_unknown_and_frees_slot(self, gateway, manager):
        async def scenario():
            contract = await manager.execute("DIGITEVEN", None, 1.0)
            outcome = await manager.await_completion(contract.contract_id, timeout=0.01)
            # Late settlement after the wait was abandoned
            gateway.settle(contract.contract_id, 0.95)
            manager.handle_update({"contract_id": contract.contract_id, "profit": 0.95,
                                   "status": "won", "is_sold": True})
            return contract, outcome

        contract, outcome = asyncio.run(scenario())

        assert outcome.kind == OutcomeKind.UNKNOWN
        assert not outcome.is_known
        assert not manager.has_open_contract
        assert contract.subscription_id in gateway.unsubscribed
        assert manager.ledger.realized_profit == 0.0
        assert manager.ledger.trade_count == 0

    def test_failed_contract_subscription_times_out(self, gateway, manager):
        async def scenario():
            gateway.fail_subscriptions = True
            contract = await manager.execute("DIGITEVEN", None, 1.0)
            return await manager.await_completion(contract.contract_id, timeout=0.01)

        outcome = asyncio.run(scenario())

        assert outcome.kind == OutcomeKind.UNKNOWN
        assert not manager.has_open_contract

    def test_unknown_contract(self, manager):
        with pytest.raises(UnknownContractError):
            asyncio.run(manager.await_completion("does-not-exist"))

    def test_malformed_update_ignored(self, manager):
        manager.handle_update({"profit": 1.0})
        manager.handle_update({"contract_id": "1", "profit": "n/a"})

        assert manager.ledger.total == 0.0


class TestCloseAndCancel:
    """Test early sale and releasing every contract."""

    def test_close_sells_contract(self, gateway, manager):
        async def scenario():
            contract = await manager.execute("ACCU", None, 10.0)
            gateway.push_contract_update(contract.contract_id, 0.3)
            gateway.contracts[contract.contract_id].profit = 0.3
            sell_price = await manager.close(contract.contract_id)
            outcome = await manager.await_completion(contract.contract_id)
            return sell_price, outcome

        sell_price, outcome = asyncio.run(scenario())

        assert sell_price == 10.3
        assert outcome.won
        assert manager.ledger.realized_profit == 0.3
        assert manager.ledger.open_profit == {}

    def test_close_unknown_contract(self, manager):
        with pytest.raises(UnknownContractError):
            asyncio.run(manager.close("42"))

    def test_cancel_all_releases_everything(self, gateway, manager):
        async def scenario():
            contract = await manager.execute("DIGITEVEN", None, 1.0)
            gateway.push_contract_update(contract.contract_id, -0.5)
            await manager.cancel_all()
            return contract

        contract = asyncio.run(scenario())

        assert not manager.has_open_contract
        assert manager.ledger.total == 0.0
        assert contract.subscription_id in gateway.unsubscribed
        with pytest.raises(UnknownContractError):
            asyncio.run(manager.await_completion(contract.contract_id))

    def test_cancel_all_ends_pending_wait_unknown(self, gateway, manager, spin):
        async def scenario():
            contract = await manager.execute("DIGITEVEN", None, 1.0)
            waiter = asyncio.get_running_loop().create_task(
                manager.await_completion(contract.contract_id))
            await spin()
            await manager.cancel_all()
            return await waiter

        outcome = asyncio.run(scenario())

        assert outcome.kind == OutcomeKind.UNKNOWN
        assert not manager.has_open_contract


class TestBulkOrders:
    """Test bulk rows bought simultaneously or one after another."""

    def test_simultaneous_rows_all_bought_before_settlement(self, gateway, manager, spin):
        orders = [
            BulkOrder("DIGITOVER", 1.0, prediction=3, duration=5),
            BulkOrder("DIGITEVEN", 2.0),
        ]

        async def scenario():
            task = asyncio.get_running_loop().create_task(manager.execute_bulk(orders))
            await spin()
            bought = len(gateway.purchases)
            for contract in manager.active_contracts:
                gateway.settle(contract.contract_id, 0.9 if contract.stake == 1.0 else -2.0)
            return bought, await task

        bought, results = asyncio.run(scenario())

        assert bought == 2
        assert [r.status for r in results] == [BulkRowStatus.SETTLED, BulkRowStatus.SETTLED]
        assert [r.index for r in results] == [0, 1]
        assert results[0].outcome.won
        assert results[1].profit == -2.0
        assert gateway.purchases[0].duration == 5
        assert gateway.purchases[1].duration == 1
        assert manager.ledger.realized_profit == pytest.approx(-1.1)

    def test_sequential_waits_for_each_row(self, gateway, manager, spin):
        orders = [BulkOrder("DIGITEVEN", 1.0), BulkOrder("DIGITODD", 1.0)]

        async def scenario():
            task = asyncio.get_running_loop().create_task(
                manager.execute_bulk(orders, BulkMode.SEQUENTIAL))
            await spin()
            bought_first = len(gateway.purchases)
            gateway.settle(manager.active_contracts[0].contract_id, -1.0)
            await spin()
            bought_second = len(gateway.purchases)
            gateway.settle(manager.active_contracts[0].contract_id, 0.95)
            return bought_first, bought_second, await task

        bought_first, bought_second, results = asyncio.run(scenario())

        assert (bought_first, bought_second) == (1, 2)
        assert [r.outcome.kind for r in results] == [OutcomeKind.LOST, OutcomeKind.WON]
        assert [p.contract_type for p in gateway.purchases] == ["DIGITEVEN", "DIGITODD"]

    def test_failed_row_does_not_stop_others(self, gateway, manager, spin):
        orders = [BulkOrder("DIGITEVEN", 50000.0), BulkOrder("DIGITODD", 1.0)]

        async def scenario():
            task = asyncio.get_running_loop().create_task(
                manager.execute_bulk(orders, BulkMode.SEQUENTIAL))
            await spin()
            gateway.settle(manager.active_contracts[0].contract_id, 0.95)
            return await task

        results = asyncio.run(scenario())

        assert results[0].status == BulkRowStatus.ERROR
        assert "Insufficient balance" in results[0].error
        assert results[1].status == BulkRowStatus.SETTLED

    def test_stop_skips_remaining_rows(self, gateway, manager, spin):
        orders = [BulkOrder("DIGITEVEN", 1.0), BulkOrder("DIGITODD", 1.0)]
        stop = []

        async def scenario():
            task = asyncio.get_running_loop().create_task(
                manager.execute_bulk(orders, BulkMode.SEQUENTIAL, should_stop=lambda: bool(stop)))
            await spin()
            stop.append(True)
            await manager.cancel_all()
            return await task

        results = asyncio.run(scenario())

        assert [r.status for r in results] == [BulkRowStatus.UNKNOWN, BulkRowStatus.SKIPPED]
        assert len(gateway.purchases) == 1

    def test_bulk_refused_while_contract_open(self, manager):
        async def scenario():
            await manager.execute("DIGITEVEN", None, 1.0)
            await manager.execute_bulk([BulkOrder("DIGITODD", 1.0)])

        with pytest.raises(SlotOccupiedError):
            asyncio.run(scenario())
