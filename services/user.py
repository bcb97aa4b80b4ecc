"""Сервис для работы с балансами пользователей"""
from datetime import datetime, timezone
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update
from database.models.user import User
import logging

logger = logging.getLogger(__name__)


async def get_user(
    session: AsyncSession,
    user_id: str
) -> Optional[User]:
    """Получить пользователя"""
    query = select(User).where(User.id == user_id)
    # populate_existing: баланс меняется UPDATE-запросами в обход ORM
    result = await session.execute(query.execution_options(populate_existing=True))
    return result.scalar_one_or_none()


async def get_or_create_user(
    session: AsyncSession,
    user_id: str,
    display_name: str,
    starting_balance: int
) -> User:
    """Получить или создать пользователя со стартовым балансом"""
    user = await get_user(session, user_id)
    now = datetime.now(timezone.utc)

    if not user:
        user = User(
            id=user_id,
            display_name=display_name,
            balance=starting_balance,
            total_bids_placed=0,
            total_wins=0,
            created_at=now,
            last_activity_at=now
        )
        session.add(user)
        await session.flush()
        logger.info(f"Новый пользователь: {display_name} ({user_id}), баланс {starting_balance}")
    else:
        user.last_activity_at = now
        # Обновляем имя, если изменилось
        if display_name and display_name != user.display_name:
            user.display_name = display_name
        await session.flush()

    return user


async def credit_balance(
    session: AsyncSession,
    user_id: str,
    amount: int
) -> None:
    """Вернуть сумму на баланс пользователя"""
    await session.execute(
        update(User)
        .where(User.id == user_id)
        .values(balance=User.balance + amount)
        .execution_options(synchronize_session=False)
    )


async def debit_for_bid(
    session: AsyncSession,
    user_id: str,
    amount: int
) -> bool:
    """Списать сумму ставки и увеличить счетчик ставок

    Списание происходит только при достаточном балансе.
    Возвращает False, если средств не хватило.
    """
    result = await session.execute(
        update(User)
        .where(User.id == user_id, User.balance >= amount)
        .values(
            balance=User.balance - amount,
            total_bids_placed=User.total_bids_placed + 1
        )
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1
