"""Сервис для работы с аукционами"""
from datetime import datetime, timedelta, timezone
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, func
from database.models.auction import Auction


SAMPLE_AUCTIONS = [
    {
        "id": "auction1",
        "seller_label": "Digital Dreams Studio",
        "title": "Neon Cityscape",
        "description": "A vibrant digital painting of a futuristic city at night",
        "reserve_bid": 50,
    },
    {
        "id": "auction2",
        "seller_label": "Pixel Perfect Arts",
        "title": "Abstract Waves",
        "description": "Beautiful flowing abstract waves in digital medium",
        "reserve_bid": 75,
    },
    {
        "id": "auction3",
        "seller_label": "Virtual Canvas Co.",
        "title": "Mountain Sunrise",
        "description": "Serene digital landscape of mountains at sunrise",
        "reserve_bid": 30,
    },
    {
        "id": "auction4",
        "seller_label": "AI Art Collective",
        "title": "Geometric Dreams",
        "description": "Intricate geometric patterns created with AI assistance",
        "reserve_bid": 100,
    },
]


async def get_auction(
    session: AsyncSession,
    auction_id: str,
    active_only: bool = True,
    for_update: bool = False
) -> Optional[Auction]:
    """Получить аукцион"""
    query = select(Auction).where(Auction.id == auction_id)
    if active_only:
        query = query.where(Auction.active.is_(True))
    if for_update:
        query = query.with_for_update()
    result = await session.execute(query.execution_options(populate_existing=True))
    return result.scalar_one_or_none()


async def get_active_auctions(session: AsyncSession) -> list[Auction]:
    """Получить активные аукционы"""
    result = await session.execute(
        select(Auction)
        .where(Auction.active.is_(True))
        .order_by(Auction.ends_at.asc(), Auction.id.asc())
    )
    return list(result.scalars().all())


async def set_high_bid(
    session: AsyncSession,
    auction_id: str,
    amount: int,
    bidder_id: Optional[str],
    bid_at: Optional[datetime] = None
) -> None:
    """Записать текущую максимальную ставку аукциона

    amount=0 и bidder_id=None означают, что ставок нет.
    """
    values = {
        "current_high_bid": amount,
        "highest_bidder_id": bidder_id,
    }
    if bid_at is not None:
        values["last_bid_at"] = bid_at

    await session.execute(
        update(Auction)
        .where(Auction.id == auction_id)
        .values(**values)
        .execution_options(synchronize_session=False)
    )


async def seed_sample_auctions(
    session: AsyncSession,
    duration_hours: float
) -> int:
    """Добавить демонстрационные аукционы в пустую таблицу

    Возвращает количество добавленных аукционов.
    """
    result = await session.execute(select(func.count(Auction.id)))
    if result.scalar() or 0:
        return 0

    now = datetime.now(timezone.utc)
    ends_at = now + timedelta(hours=duration_hours)

    for data in SAMPLE_AUCTIONS:
        session.add(Auction(
            **data,
            image_url=None,
            current_high_bid=0,
            highest_bidder_id=None,
            active=True,
            ends_at=ends_at,
            created_at=now
        ))

    await session.commit()
    return len(SAMPLE_AUCTIONS)
