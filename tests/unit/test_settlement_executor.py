"""SettlementExecutor against in-memory repositories."""
import pytest

from src.gx_clearing.domain.fee import TieredFeeStrategy
from src.gx_clearing.domain.settlement import SettlementExecutor
from src.gx_common.enums import LedgerAsset
from src.gx_common.errors import OrderNotFoundError
from src.gx_common.grams import calc_notional
from src.gx_matching.engine.matcher import OrderMatcher
from tests.fakes import (
    FakeSession,
    InMemoryLedger,
    InMemoryOrderRepository,
    InMemoryTradesWriter,
    make_order,
)

PRICE = 50_000_000


class Harness:
    def __init__(self, *orders, ledger: InMemoryLedger | None = None) -> None:  # type: ignore[no-untyped-def]
        self.repo = InMemoryOrderRepository(orders)
        self.trades = InMemoryTradesWriter()
        self.ledger = ledger or InMemoryLedger()
        matcher = OrderMatcher(TieredFeeStrategy(min_fee=500_000, max_fee=50_000_000), self.repo)
        self.executor = SettlementExecutor(matcher, self.repo, self.trades, self.ledger)
        self.db = FakeSession()

    async def settle(self, new_id: str, matched_id: str):  # type: ignore[no-untyped-def]
        return await self.executor.settle(new_id, matched_id, self.db)  # type: ignore[arg-type]


class TestSettle:
    @pytest.mark.asyncio
    async def test_partial_buy_against_smaller_sell(self) -> None:
        h = Harness(
            make_order("20", "BUY", 10_000, user_id="alice"),
            make_order("10", "SELL", 5000, user_id="bob"),
        )
        outcome = await h.settle("20", "10")

        assert outcome.settled
        trade = outcome.trade
        assert trade.amount_mg == 5000
        assert (trade.buy_order_id, trade.sell_order_id) == ("20", "10")
        assert h.repo.orders["20"].remaining_mg == 5000
        assert h.repo.orders["20"].status == "PARTIAL"
        assert h.repo.orders["10"].remaining_mg == 0
        assert h.repo.orders["10"].status == "FILLED"
        assert h.db.events == ["savepoint:begin", "savepoint:commit"]

    @pytest.mark.asyncio
    async def test_balances_conserved_except_fees(self) -> None:
        h = Harness(
            make_order("1", "BUY", 3000, user_id="alice"),
            make_order("2", "SELL", 3000, user_id="bob"),
        )
        outcome = await h.settle("1", "2")
        fee = outcome.trade.fee
        notional = calc_notional(3000, PRICE)

        assert h.ledger.balances["alice"] == [-(notional + fee), 3000]
        assert h.ledger.balances["bob"] == [notional - fee, -3000]
        assert h.ledger.total(LedgerAsset.COMMODITY) == 0
        assert h.ledger.total(LedgerAsset.CURRENCY) == -2 * fee

    @pytest.mark.asyncio
    async def test_self_trade_only_moves_fees(self) -> None:
        h = Harness(
            make_order("1", "BUY", 2000, user_id="carol"),
            make_order("2", "SELL", 2000, user_id="carol"),
        )
        outcome = await h.settle("1", "2")
        fee = outcome.trade.fee

        assert outcome.settled
        assert (outcome.trade.buyer_id, outcome.trade.seller_id) == ("carol", "carol")
        assert fee > 0
        assert h.ledger.balances == {"carol": [-2 * fee, 0]}
        assert [e[1] for e in h.ledger.entries] == [
            "BUY_PAYMENT", "BUY_RECEIPT", "SELL_RECEIPT", "SELL_DELIVERY",
        ]
        assert h.repo.orders["1"].status == "FILLED"
        assert h.repo.orders["2"].status == "FILLED"

    @pytest.mark.asyncio
    async def test_second_run_is_a_no_op(self) -> None:
        h = Harness(
            make_order("1", "BUY", 3000),
            make_order("2", "SELL", 3000),
        )
        await h.settle("1", "2")
        again = await h.settle("1", "2")

        assert not again.settled
        assert again.skip_reason == "orders_invalid"
        assert len(h.trades.trades) == 1
        assert len(h.ledger.entries) == 4

    @pytest.mark.asyncio
    async def test_cancelled_order_skipped(self) -> None:
        h = Harness(
            make_order("1", "BUY", 3000),
            make_order("2", "SELL", 3000, status="CANCELLED"),
        )
        outcome = await h.settle("1", "2")
        assert outcome.skip_reason == "orders_invalid"
        assert h.trades.trades == []
        assert h.repo.orders["1"].status == "OPEN"

    @pytest.mark.asyncio
    async def test_locks_taken_in_ascending_id_order(self) -> None:
        h = Harness(
            make_order("9", "SELL", 1000),
            make_order("10", "BUY", 1000),
        )
        await h.settle("10", "9")
        h2 = Harness(
            make_order("9", "SELL", 1000),
            make_order("10", "BUY", 1000),
        )
        await h2.settle("9", "10")
        assert h.repo.lock_calls == ["9", "10"]
        assert h2.repo.lock_calls == ["9", "10"]

    @pytest.mark.asyncio
    async def test_missing_order_raises(self) -> None:
        h = Harness(make_order("1", "BUY", 1000))
        with pytest.raises(OrderNotFoundError):
            await h.settle("1", "404")

    @pytest.mark.asyncio
    async def test_ledger_failure_propagates(self) -> None:
        h = Harness(
            make_order("1", "BUY", 1000, user_id="alice"),
            make_order("2", "SELL", 1000, user_id="bob"),
            ledger=InMemoryLedger(strict=True),
        )
        with pytest.raises(Exception, match="Account not found"):
            await h.settle("1", "2")
        assert h.db.events == ["savepoint:begin", "savepoint:rollback"]

    @pytest.mark.asyncio
    async def test_uses_locked_state_not_caller_copies(self) -> None:
        h = Harness(
            make_order("1", "BUY", 10_000),
            make_order("2", "SELL", 10_000, remaining_mg=4000, status="PARTIAL"),
        )
        outcome = await h.settle("1", "2")
        assert outcome.trade.amount_mg == 4000
