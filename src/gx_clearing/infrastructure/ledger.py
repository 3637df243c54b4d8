"""Balance updates for a settled trade plus the append-only ledger journal.

Called from SettlementExecutor inside the settlement transaction. Account rows
are updated in ascending user_id order so two settlements touching the same
pair of users always lock their accounts in the same order.
"""
from dataclasses import dataclass

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.gx_clearing.domain.models import Trade
from src.gx_common.enums import LedgerAsset, LedgerEntryType
from src.gx_common.errors import AccountNotFoundError
from src.gx_common.grams import calc_notional
from src.gx_common.id_generator import id_sort_key

_APPLY_DELTA_SQL = text("""
    UPDATE accounts
    SET balance_currency     = balance_currency     + :currency_delta,
        balance_commodity_mg = balance_commodity_mg + :commodity_delta,
        version = version + 1, updated_at = NOW()
    WHERE user_id = :user_id
    RETURNING balance_currency, balance_commodity_mg
""")

_INSERT_LEDGER_SQL = text("""
    INSERT INTO ledger_entries
        (user_id, entry_type, asset, amount, balance_after, reference_type, reference_id)
    VALUES (:user_id, :entry_type, :asset, :amount, :balance_after, 'TRADE', :reference_id)
""")


@dataclass(frozen=True)
class BalanceMovement:
    user_id: str
    entry_type: LedgerEntryType
    asset: LedgerAsset
    amount: int  # signed: rial for CURRENCY, mg for COMMODITY


def trade_movements(trade: Trade) -> list[BalanceMovement]:
    """The four balance movements of a trade.

    Buyer pays notional + fee and receives the gold; seller delivers the gold
    and receives notional - fee.
    """
    notional = calc_notional(trade.amount_mg, trade.price_per_gram)
    return [
        BalanceMovement(
            trade.buyer_id, LedgerEntryType.BUY_PAYMENT, LedgerAsset.CURRENCY,
            -(notional + trade.fee),
        ),
        BalanceMovement(
            trade.buyer_id, LedgerEntryType.BUY_RECEIPT, LedgerAsset.COMMODITY,
            trade.amount_mg,
        ),
        BalanceMovement(
            trade.seller_id, LedgerEntryType.SELL_RECEIPT, LedgerAsset.CURRENCY,
            notional - trade.fee,
        ),
        BalanceMovement(
            trade.seller_id, LedgerEntryType.SELL_DELIVERY, LedgerAsset.COMMODITY,
            -trade.amount_mg,
        ),
    ]


class Ledger:
    async def apply_trade(self, trade: Trade, db: AsyncSession) -> None:
        movements = trade_movements(trade)
        for user_id in sorted({m.user_id for m in movements}, key=id_sort_key):
            mine = [m for m in movements if m.user_id == user_id]
            currency_delta = sum(m.amount for m in mine if m.asset is LedgerAsset.CURRENCY)
            commodity_delta = sum(m.amount for m in mine if m.asset is LedgerAsset.COMMODITY)
            row = (
                await db.execute(
                    _APPLY_DELTA_SQL,
                    {
                        "user_id": user_id,
                        "currency_delta": currency_delta,
                        "commodity_delta": commodity_delta,
                    },
                )
            ).fetchone()
            if row is None:
                raise AccountNotFoundError(user_id)
            # Walk forward from the pre-trade balance so each entry's balance_after
            # reflects only the movements journaled before it.
            running = {
                LedgerAsset.CURRENCY: row.balance_currency - currency_delta,
                LedgerAsset.COMMODITY: row.balance_commodity_mg - commodity_delta,
            }
            for m in mine:
                running[m.asset] += m.amount
                balance_after = running[m.asset]
                await db.execute(
                    _INSERT_LEDGER_SQL,
                    {
                        "user_id": user_id,
                        "entry_type": m.entry_type.value,
                        "asset": m.asset.value,
                        "amount": m.amount,
                        "balance_after": balance_after,
                        "reference_id": trade.id,
                    },
                )
