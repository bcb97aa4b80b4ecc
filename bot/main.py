"""Главный файл бота"""
import asyncio
import logging
from aiogram import Bot, Dispatcher
from aiogram.client.default import DefaultBotProperties
from aiogram.enums import ParseMode
from config import settings
from services.bidding import create_bidding_engine
from bot.handlers import start, auction
from bot.middlewares.bidding import BiddingMiddleware

# Настройка логирования
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


async def main():
    """Запуск бота"""
    if not settings.BOT_TOKEN:
        raise RuntimeError("BOT_TOKEN не задан")

    # Подключаемся к базе данных
    engine, bidding = await create_bidding_engine(settings)

    # Создаем бот и диспетчер
    bot = Bot(
        token=settings.BOT_TOKEN,
        default=DefaultBotProperties(parse_mode=ParseMode.HTML)
    )
    dp = Dispatcher()

    # Регистрируем middleware
    dp.message.outer_middleware(BiddingMiddleware(bidding))
    dp.callback_query.outer_middleware(BiddingMiddleware(bidding))

    # Регистрируем роутеры
    dp.include_router(start.router)
    dp.include_router(auction.router)

    logger.info(
        f"Бот запущен, стартовый баланс {settings.STARTING_BALANCE} {settings.CURRENCY_SYMBOL}"
    )

    # Запускаем polling
    try:
        await dp.start_polling(bot)
    finally:
        await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
