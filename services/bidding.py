"""Движок торгов: размещение и отзыв ставок

Каждая операция изменения выполняется одной транзакцией БД под блокировкой
аукциона. Сумма активной ставки удерживается с баланса пользователя и
возвращается, когда ставка заменяется, перебивается или отзывается.
"""
import asyncio
import logging
import weakref
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterator, Optional
from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker
from config import Settings
from database.connection import create_engine, create_session_maker, init_db
from database.models.auction import Auction
from database.models.bid import Bid, DeactivationReason
from database.models.user import User
from services.auction import get_auction, get_active_auctions, seed_sample_auctions, set_high_bid
from services.bid import (
    create_bid,
    deactivate_bid,
    get_active_bid,
    get_top_active_bid,
    get_user_active_bids,
)
from services.errors import (
    AuctionNotFoundError,
    BidNotFoundError,
    BidTooLowError,
    InsufficientFundsError,
    InvalidAmountError,
    StoreUnavailableError,
    ValidationError,
)
from services.user import credit_balance, debit_for_bid, get_or_create_user, get_user

logger = logging.getLogger(__name__)


@dataclass
class PlaceBidResult:
    """Результат размещения ставки"""
    bid: Bid
    new_balance: int
    replaced_refund: int = 0
    outbid_user_id: Optional[str] = None
    outbid_refund: int = 0


@dataclass
class RemoveBidResult:
    """Результат отзыва ставки"""
    bid: Bid
    refunded_amount: int
    current_high_bid: int
    highest_bidder_id: Optional[str]


def _is_blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


class BiddingEngine:
    """Транзакционный API торгов поверх хранилищ пользователей, аукционов и ставок"""

    def __init__(self, session_maker: async_sessionmaker[AsyncSession], settings: Settings):
        self._session_maker = session_maker
        self.settings = settings
        # Блокировка живет, пока ее держит или ждет хотя бы один запрос
        self._auction_locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()

    def _auction_lock(self, auction_id: str) -> asyncio.Lock:
        """Блокировка аукциона, общая для всех одновременных запросов"""
        lock = self._auction_locks.get(auction_id)
        if lock is None:
            lock = asyncio.Lock()
            self._auction_locks[auction_id] = lock
        return lock

    @contextmanager
    def _store_errors(self, operation: str) -> Iterator[None]:
        """Перевести ошибки подключения к БД в StoreUnavailableError"""
        try:
            yield
        except (OperationalError, InterfaceError, OSError) as e:
            logger.error(f"Хранилище недоступно ({operation}): {e!r}")
            raise StoreUnavailableError("Storage unavailable") from e

    def _validate_amount(self, amount) -> None:
        # bool является подклассом int, но суммой не является
        if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
            raise InvalidAmountError("Bid amount must be a positive whole number")
        if amount > self.settings.MAX_BID_AMOUNT:
            raise InvalidAmountError(
                f"Bid cannot exceed {self.settings.MAX_BID_AMOUNT} {self.settings.CURRENCY_SYMBOL}"
            )

    def minimum_bid(self, auction: Auction) -> int:
        """Минимальная допустимая ставка на аукционе"""
        return (auction.current_high_bid or auction.reserve_bid) + self.settings.MIN_BID_INCREMENT

    async def _resolve_user(self, user_id: str, display_name: str) -> User:
        async with self._session_maker() as session:
            try:
                async with session.begin():
                    user = await get_or_create_user(
                        session, user_id, display_name, self.settings.STARTING_BALANCE
                    )
            except IntegrityError:
                # Пользователь создан параллельным запросом
                async with session.begin():
                    user = await get_or_create_user(
                        session, user_id, display_name, self.settings.STARTING_BALANCE
                    )
        return user

    async def get_balance(self, user_id: str, display_name: str) -> User:
        """Получить (или создать) пользователя с балансом и статистикой"""
        if _is_blank(user_id) or _is_blank(display_name):
            raise ValidationError("User ID and display name required")

        with self._store_errors("get_balance"):
            return await self._resolve_user(user_id, display_name)

    # Запрос от клиента называется resolveUser
    resolve_user = get_balance

    async def list_active_auctions(self) -> list[Auction]:
        """Получить активные аукционы"""
        with self._store_errors("list_active_auctions"):
            async with self._session_maker() as session:
                return await get_active_auctions(session)

    async def list_user_bids(self, user_id: str) -> list[Bid]:
        """Получить активные ставки пользователя"""
        if _is_blank(user_id):
            raise ValidationError("User ID required")

        with self._store_errors("list_user_bids"):
            async with self._session_maker() as session:
                return await get_user_active_bids(session, user_id)

    async def place_bid(
        self,
        user_id: str,
        display_name: str,
        auction_id: str,
        amount: int
    ) -> PlaceBidResult:
        """Сделать ставку

        Предыдущая ставка пользователя на этом аукционе заменяется,
        ставка прежнего лидера (другого пользователя) возвращается ему.
        """
        if _is_blank(user_id) or _is_blank(display_name) or _is_blank(auction_id) or amount is None:
            raise ValidationError("All fields required")
        self._validate_amount(amount)

        with self._store_errors("place_bid"):
            await self._resolve_user(user_id, display_name)

            async with self._auction_lock(auction_id):
                async with self._session_maker() as session, session.begin():
                    result = await self._apply_bid(session, user_id, auction_id, amount)

        logger.info(
            f"Ставка принята: {display_name} ({user_id}) поставил {amount} "
            f"{self.settings.CURRENCY_SYMBOL} на {auction_id}"
        )
        if result.outbid_user_id:
            logger.info(
                f"Ставка пользователя {result.outbid_user_id} на {auction_id} перебита, "
                f"возвращено {result.outbid_refund} {self.settings.CURRENCY_SYMBOL}"
            )
        return result

    async def _apply_bid(
        self,
        session: AsyncSession,
        user_id: str,
        auction_id: str,
        amount: int
    ) -> PlaceBidResult:
        # Баланс проверяется повторно при списании, блокировка строки не нужна
        user = await get_user(session, user_id)
        old_balance = user.balance
        if old_balance < amount:
            raise InsufficientFundsError(old_balance, amount, self.settings.CURRENCY_NAME)

        auction = await get_auction(session, auction_id, for_update=True)
        if not auction:
            raise AuctionNotFoundError(auction_id)

        current_high_bid = auction.current_high_bid
        highest_bidder_id = auction.highest_bidder_id
        minimum_bid = self.minimum_bid(auction)
        if amount < minimum_bid:
            logger.debug(f"Ставка {amount} на {auction_id} ниже минимальной {minimum_bid}")
            raise BidTooLowError(minimum_bid, self.settings.CURRENCY_SYMBOL)

        now = datetime.now(timezone.utc)

        # Своя прежняя ставка заменяется новой
        replaced_refund = 0
        existing_bid = await get_active_bid(session, user_id, auction_id)
        if existing_bid:
            await credit_balance(session, user_id, existing_bid.amount)
            await deactivate_bid(session, existing_bid, DeactivationReason.REPLACED, now)
            replaced_refund = existing_bid.amount

        # Лидеру-другому пользователю возвращается его ставка
        outbid_user_id = None
        outbid_refund = 0
        if current_high_bid > 0 and highest_bidder_id and highest_bidder_id != user_id:
            previous_high_bid = await get_active_bid(session, highest_bidder_id, auction_id)
            if previous_high_bid:
                await credit_balance(session, highest_bidder_id, previous_high_bid.amount)
                await deactivate_bid(session, previous_high_bid, DeactivationReason.OUTBID, now)
                outbid_user_id = highest_bidder_id
                outbid_refund = previous_high_bid.amount

        if not await debit_for_bid(session, user_id, amount):
            raise InsufficientFundsError(old_balance + replaced_refund, amount, self.settings.CURRENCY_NAME)

        bid = await create_bid(session, user_id, auction_id, amount, now)
        await set_high_bid(session, auction_id, amount, user_id, bid_at=now)

        return PlaceBidResult(
            bid=bid,
            new_balance=old_balance - amount + replaced_refund,
            replaced_refund=replaced_refund,
            outbid_user_id=outbid_user_id,
            outbid_refund=outbid_refund,
        )

    async def remove_bid(self, user_id: str, auction_id: str) -> RemoveBidResult:
        """Отозвать ставку и пересчитать лидера аукциона"""
        if _is_blank(user_id) or _is_blank(auction_id):
            raise ValidationError("User ID and auction ID required")

        with self._store_errors("remove_bid"):
            async with self._auction_lock(auction_id):
                async with self._session_maker() as session, session.begin():
                    # Блокируем строку аукциона на время пересчета
                    await get_auction(session, auction_id, active_only=False, for_update=True)

                    bid = await get_active_bid(session, user_id, auction_id)
                    if not bid:
                        raise BidNotFoundError(user_id, auction_id)

                    now = datetime.now(timezone.utc)
                    await credit_balance(session, user_id, bid.amount)
                    await deactivate_bid(session, bid, DeactivationReason.REMOVED, now)

                    top_bid = await get_top_active_bid(session, auction_id)
                    if top_bid:
                        high_bid, high_bidder_id = top_bid.amount, top_bid.user_id
                    else:
                        high_bid, high_bidder_id = 0, None
                    await set_high_bid(session, auction_id, high_bid, high_bidder_id)

        logger.info(
            f"Ставка отозвана: {user_id} отозвал {bid.amount} "
            f"{self.settings.CURRENCY_SYMBOL} на {auction_id}"
        )
        return RemoveBidResult(
            bid=bid,
            refunded_amount=bid.amount,
            current_high_bid=high_bid,
            highest_bidder_id=high_bidder_id,
        )


async def create_bidding_engine(settings: Settings) -> tuple[AsyncEngine, BiddingEngine]:
    """Подключиться к БД, создать таблицы и демонстрационные аукционы"""
    engine = create_engine(settings.database_url, echo=settings.DEBUG_MODE)
    session_maker = create_session_maker(engine)
    await init_db(engine)

    if settings.SEED_SAMPLE_AUCTIONS:
        async with session_maker() as session:
            added = await seed_sample_auctions(session, settings.AUCTION_DURATION_HOURS)
        if added:
            logger.info(f"Добавлено демонстрационных аукционов: {added}")

    return engine, BiddingEngine(session_maker, settings)
