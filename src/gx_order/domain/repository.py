# src/gx_order/domain/repository.py
"""OrderRepository Protocol: interface contract for persistence layer."""
from datetime import datetime
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.gx_order.domain.models import Order


class OrderRepositoryProtocol(Protocol):
    async def save(self, order: Order, db: AsyncSession) -> None: ...

    async def get_by_id(self, order_id: str, db: AsyncSession) -> Order | None: ...

    async def get_for_update(self, order_id: str, db: AsyncSession) -> Order | None: ...

    async def get_by_client_order_id(
        self, client_order_id: str, user_id: str, db: AsyncSession
    ) -> Order | None: ...

    async def update_fill(self, order: Order, db: AsyncSession) -> None: ...

    async def update_status(self, order: Order, db: AsyncSession) -> None: ...

    async def list_candidates(
        self,
        side: str,
        price_per_gram: int,
        exclude_id: str,
        after: tuple[datetime, str] | None,
        limit: int,
        db: AsyncSession,
    ) -> list[Order]: ...

    async def list_by_user(
        self,
        user_id: str,
        statuses: list[str] | None,
        limit: int,
        cursor_id: str | None,
        db: AsyncSession,
    ) -> list[Order]: ...
