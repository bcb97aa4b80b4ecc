"""Обработчики команды /start и баланса"""
from aiogram import Router, F
from aiogram.filters import Command
from aiogram.types import Message
from services.bidding import BiddingEngine
from services.errors import BiddingError
from bot.handlers.auction import error_text, telegram_identity
from bot.keyboards.main import BUTTON_BALANCE, get_main_keyboard

router = Router()


def balance_text(user, bidding: BiddingEngine) -> str:
    """Текст с балансом и статистикой пользователя"""
    symbol = bidding.settings.CURRENCY_SYMBOL
    return (
        f"💰 Баланс: <b>{user.balance:,} {symbol}</b>\n"
        f"Ставок сделано: {user.total_bids_placed}\n"
        f"Побед: {user.total_wins}"
    )


@router.message(Command("start"))
async def cmd_start(message: Message, bidding: BiddingEngine):
    """Обработчик команды /start"""
    settings = bidding.settings
    user_id, display_name = telegram_identity(message.from_user)

    try:
        user = await bidding.get_balance(user_id, display_name)
    except BiddingError as e:
        await message.answer(error_text(e, bidding))
        return

    welcome_text = (
        f"👋 Добро пожаловать в {settings.APP_NAME}!\n"
        f"{settings.APP_DESCRIPTION}\n\n"
        f"{balance_text(user, bidding)}\n\n"
        "Команды:\n"
        "/auctions - активные аукционы\n"
        "/bid &lt;аукцион&gt; &lt;сумма&gt; - сделать ставку\n"
        "/unbid &lt;аукцион&gt; - отозвать ставку\n"
        "/mybids - мои ставки\n"
        "/balance - баланс"
    )
    await message.answer(welcome_text, reply_markup=get_main_keyboard())


@router.message(Command("balance"))
@router.message(F.text == BUTTON_BALANCE)
async def cmd_balance(message: Message, bidding: BiddingEngine):
    """Показать баланс"""
    user_id, display_name = telegram_identity(message.from_user)

    try:
        user = await bidding.get_balance(user_id, display_name)
    except BiddingError as e:
        await message.answer(error_text(e, bidding))
        return

    await message.answer(balance_text(user, bidding))
