"""Сервис для работы со ставками"""
from datetime import datetime
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from database.models.bid import Bid, DeactivationReason


async def get_active_bid(
    session: AsyncSession,
    user_id: str,
    auction_id: str
) -> Optional[Bid]:
    """Получить активную ставку пользователя на аукционе"""
    result = await session.execute(
        select(Bid).where(
            Bid.user_id == user_id,
            Bid.auction_id == auction_id,
            Bid.active.is_(True)
        )
    )
    return result.scalar_one_or_none()


async def create_bid(
    session: AsyncSession,
    user_id: str,
    auction_id: str,
    amount: int,
    created_at: datetime
) -> Bid:
    """Создать активную ставку"""
    bid = Bid(
        user_id=user_id,
        auction_id=auction_id,
        amount=amount,
        active=True,
        created_at=created_at
    )
    session.add(bid)
    await session.flush()
    return bid


async def deactivate_bid(
    session: AsyncSession,
    bid: Bid,
    reason: DeactivationReason,
    deactivated_at: datetime
) -> Bid:
    """Снять ставку с указанием причины"""
    bid.active = False
    bid.deactivated_at = deactivated_at
    bid.deactivation_reason = reason.value
    # Сразу пишем в базу: новая активная ставка не должна конфликтовать со старой
    await session.flush()
    return bid


async def get_top_active_bid(
    session: AsyncSession,
    auction_id: str
) -> Optional[Bid]:
    """Получить максимальную активную ставку аукциона

    При равных суммах побеждает более ранняя ставка.
    """
    result = await session.execute(
        select(Bid)
        .where(Bid.auction_id == auction_id, Bid.active.is_(True))
        .order_by(Bid.amount.desc(), Bid.created_at.asc(), Bid.id.asc())
        .limit(1)
    )
    return result.scalar_one_or_none()


async def get_user_active_bids(
    session: AsyncSession,
    user_id: str
) -> list[Bid]:
    """Получить активные ставки пользователя"""
    result = await session.execute(
        select(Bid)
        .where(Bid.user_id == user_id, Bid.active.is_(True))
        .order_by(Bid.created_at.desc(), Bid.id.desc())
    )
    return list(result.scalars().all())
