# src/gx_clearing/application/service.py
from sqlalchemy.ext.asyncio import AsyncSession

from src.gx_clearing.application.schemas import TradeListResponse, TradeResponse
from src.gx_clearing.infrastructure.trades_repository import TradesRepository

_repo = TradesRepository()


async def list_trades(
    user_id: str, limit: int, cursor: str | None, db: AsyncSession
) -> TradeListResponse:
    rows = await _repo.list_by_user(user_id, limit + 1, cursor, db)
    has_more = len(rows) > limit
    if has_more:
        rows = rows[:limit]
    return TradeListResponse(
        items=[TradeResponse(**r) for r in rows],
        next_cursor=rows[-1]["id"] if has_more else None,
        has_more=has_more,
    )
