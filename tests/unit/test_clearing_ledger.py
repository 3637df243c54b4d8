"""Ledger: trade movements and the account UPDATE / journal INSERT sequence."""
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.gx_clearing.domain.models import Trade
from src.gx_clearing.infrastructure.ledger import Ledger, trade_movements
from src.gx_common.enums import LedgerAsset, LedgerEntryType
from src.gx_common.errors import AccountNotFoundError


def _trade(buyer: str = "u9", seller: str = "u10") -> Trade:
    return Trade(
        id="t1",
        buyer_id=buyer,
        seller_id=seller,
        buy_order_id="b1",
        sell_order_id="s1",
        amount_mg=2500,
        price_per_gram=40_000_000,
        fee=1_500_000,
        status="COMPLETED",
    )


def _db(row: object) -> AsyncMock:
    result = MagicMock()
    result.fetchone.return_value = row
    db = AsyncMock()
    db.execute.return_value = result
    return db


class TestTradeMovements:
    def test_four_movements(self) -> None:
        moves = {(m.user_id, m.entry_type): m for m in trade_movements(_trade())}
        notional = 100_000_000  # 2.5 g x 40,000,000
        assert moves[("u9", LedgerEntryType.BUY_PAYMENT)].amount == -(notional + 1_500_000)
        assert moves[("u9", LedgerEntryType.BUY_RECEIPT)].amount == 2500
        assert moves[("u10", LedgerEntryType.SELL_RECEIPT)].amount == notional - 1_500_000
        assert moves[("u10", LedgerEntryType.SELL_DELIVERY)].amount == -2500

    def test_assets(self) -> None:
        assets = [m.asset for m in trade_movements(_trade())]
        assert assets.count(LedgerAsset.CURRENCY) == 2
        assert assets.count(LedgerAsset.COMMODITY) == 2


class TestLedgerApplyTrade:
    @pytest.mark.asyncio
    async def test_accounts_updated_in_ascending_user_order(self) -> None:
        row = MagicMock(balance_currency=1, balance_commodity_mg=2)
        db = _db(row)
        await Ledger().apply_trade(_trade(buyer="u10", seller="u9"), db)

        updates = [
            c.args[1] for c in db.execute.await_args_list if "currency_delta" in c.args[1]
        ]
        assert [u["user_id"] for u in updates] == ["u9", "u10"]
        # u9 is the seller here
        assert updates[0]["commodity_delta"] == -2500

    @pytest.mark.asyncio
    async def test_one_journal_row_per_movement(self) -> None:
        row = MagicMock(balance_currency=7, balance_commodity_mg=8)
        db = _db(row)
        await Ledger().apply_trade(_trade(), db)

        inserts = [c.args[1] for c in db.execute.await_args_list if "entry_type" in c.args[1]]
        assert len(inserts) == 4
        assert all(i["reference_id"] == "t1" for i in inserts)
        by_asset = {i["asset"]: i["balance_after"] for i in inserts}
        assert by_asset == {"CURRENCY": 7, "COMMODITY": 8}

    @pytest.mark.asyncio
    async def test_missing_account_raises(self) -> None:
        db = _db(None)
        with pytest.raises(AccountNotFoundError):
            await Ledger().apply_trade(_trade(), db)

    @pytest.mark.asyncio
    async def test_self_trade_balance_after_follows_entry_order(self) -> None:
        trade = Trade(
            id="t2",
            buyer_id="u1",
            seller_id="u1",
            buy_order_id="b1",
            sell_order_id="s1",
            amount_mg=1000,
            price_per_gram=50_000_000,
            fee=1_000_000,
            status="COMPLETED",
        )
        # 100,000,000 rial and 5000 mg before; only the two fees leave the account
        row = MagicMock(balance_currency=98_000_000, balance_commodity_mg=5000)
        db = _db(row)
        await Ledger().apply_trade(trade, db)

        updates = [
            c.args[1] for c in db.execute.await_args_list if "currency_delta" in c.args[1]
        ]
        assert updates == [
            {"user_id": "u1", "currency_delta": -2_000_000, "commodity_delta": 0}
        ]
        inserts = [c.args[1] for c in db.execute.await_args_list if "entry_type" in c.args[1]]
        assert [(i["entry_type"], i["balance_after"]) for i in inserts] == [
            ("BUY_PAYMENT", 49_000_000),
            ("BUY_RECEIPT", 6000),
            ("SELL_RECEIPT", 98_000_000),
            ("SELL_DELIVERY", 5000),
        ]
