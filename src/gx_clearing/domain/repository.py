"""Persistence contracts used by the settlement executor.

Unit tests inject in-memory fakes that conform to these Protocols.
"""
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.gx_clearing.domain.models import Trade
from src.gx_matching.domain.models import MatchResult


class TradeWriterProtocol(Protocol):
    async def write_trade(self, match: MatchResult, db: AsyncSession) -> Trade: ...


class LedgerProtocol(Protocol):
    async def apply_trade(self, trade: Trade, db: AsyncSession) -> None: ...
