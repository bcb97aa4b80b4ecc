"""Общие фикстуры тестов: временная SQLite база и движок торгов"""
from collections import defaultdict
from datetime import datetime, timedelta, timezone
import pytest
from sqlalchemy import select
from config import Settings
from database.connection import create_engine, create_session_maker, init_db
from database.models import Auction, Bid, User
from services.bidding import BiddingEngine


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        STARTING_BALANCE=1000,
        MIN_BID_INCREMENT=1,
        MAX_BID_AMOUNT=999999,
        SEED_SAMPLE_AUCTIONS=False,
    )


@pytest.fixture
async def db_engine(tmp_path):
    engine = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'auctions.db'}")
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(db_engine):
    return create_session_maker(db_engine)


@pytest.fixture
def bidding(session_maker, settings):
    return BiddingEngine(session_maker, settings)


@pytest.fixture
def add_auction(session_maker):
    async def _add(auction_id="auction1", reserve_bid=50, active=True, title="Neon Cityscape"):
        async with session_maker() as session:
            auction = Auction(
                id=auction_id,
                seller_label="Digital Dreams Studio",
                title=title,
                description="A vibrant digital painting",
                reserve_bid=reserve_bid,
                current_high_bid=0,
                highest_bidder_id=None,
                active=active,
                ends_at=datetime.now(timezone.utc) + timedelta(days=7),
            )
            session.add(auction)
            await session.commit()
            return auction
    return _add


@pytest.fixture
async def auction(add_auction):
    return await add_auction()


@pytest.fixture
def snapshot(session_maker):
    """Состояние всех таблиц для проверки отсутствия изменений"""
    async def _snapshot():
        async with session_maker() as session:
            users = (await session.execute(select(User).order_by(User.id))).scalars().all()
            auctions = (await session.execute(select(Auction).order_by(Auction.id))).scalars().all()
            bids = (await session.execute(select(Bid).order_by(Bid.id))).scalars().all()
            return (
                [(u.id, u.balance, u.total_bids_placed) for u in users],
                [(a.id, a.current_high_bid, a.highest_bidder_id, a.last_bid_at) for a in auctions],
                [(b.id, b.user_id, b.auction_id, b.amount, b.active, b.deactivation_reason) for b in bids],
            )
    return _snapshot


@pytest.fixture
def check_invariants(session_maker, settings):
    """Проверить сохранение баланса, единственность и согласованность ставок"""
    async def _check():
        async with session_maker() as session:
            users = (await session.execute(select(User))).scalars().all()
            auctions = (await session.execute(select(Auction))).scalars().all()
            active_bids = (await session.execute(
                select(Bid).where(Bid.active.is_(True))
            )).scalars().all()

        escrow = defaultdict(int)
        pairs = defaultdict(int)
        by_auction = defaultdict(list)
        for bid in active_bids:
            escrow[bid.user_id] += bid.amount
            pairs[(bid.user_id, bid.auction_id)] += 1
            by_auction[bid.auction_id].append(bid)

        for user in users:
            assert user.balance >= 0
            assert user.balance + escrow[user.id] == settings.STARTING_BALANCE

        assert all(count == 1 for count in pairs.values())

        for auction in auctions:
            bids = by_auction[auction.id]
            if not bids:
                assert auction.current_high_bid == 0
                assert auction.highest_bidder_id is None
                continue
            top_amount = max(b.amount for b in bids)
            assert auction.current_high_bid == top_amount
            assert any(
                b.user_id == auction.highest_bidder_id and b.amount == top_amount
                for b in bids
            )
    return _check
