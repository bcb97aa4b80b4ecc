"""Подключение к базе данных"""
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base

# Базовый класс для моделей
Base = declarative_base()


def create_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    """Создать движок для асинхронной работы"""
    return create_async_engine(
        database_url,
        echo=echo,
        future=True
    )


def create_session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Создать фабрику сессий"""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False
    )


async def init_db(engine: AsyncEngine) -> None:
    """Создать недостающие таблицы"""
    # Импорт регистрирует модели в Base.metadata
    import database.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

