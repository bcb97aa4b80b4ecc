"""Обработчики аукционов и ставок"""
import html
import logging
from typing import Optional
from aiogram import Router, F
from aiogram.filters import Command, CommandObject
from aiogram.fsm.context import FSMContext
from aiogram.fsm.state import State, StatesGroup
from aiogram.types import CallbackQuery, Message, User as TelegramUser
from database.models.auction import Auction
from services.bidding import BiddingEngine
from services.errors import (
    AuctionNotFoundError,
    BiddingError,
    BidNotFoundError,
    BidTooLowError,
    InsufficientFundsError,
    InvalidAmountError,
    StoreUnavailableError,
    ValidationError,
)
from bot.keyboards.auction import get_auction_keyboard, get_my_bid_keyboard
from bot.keyboards.main import BUTTON_AUCTIONS, BUTTON_MY_BIDS

router = Router()
logger = logging.getLogger(__name__)


class BidState(StatesGroup):
    """Состояния для ввода ставки"""
    waiting_amount = State()


def telegram_identity(user: TelegramUser) -> tuple[str, str]:
    """ID и отображаемое имя участника торгов для пользователя Telegram"""
    user_id = str(user.id)
    display_name = user.username or user.first_name or user_id
    return user_id, display_name


def parse_amount(text: Optional[str]) -> Optional[int]:
    """Разобрать сумму ставки: '1 500' и '1,500' допустимы"""
    if not text:
        return None
    cleaned = text.strip().replace(" ", "").replace(",", "")
    if not cleaned.isdigit():
        return None
    return int(cleaned)


def error_text(error: BiddingError, bidding: BiddingEngine) -> str:
    """Текст ответа пользователю для ошибки торгов"""
    settings = bidding.settings
    symbol = settings.CURRENCY_SYMBOL
    if isinstance(error, InsufficientFundsError):
        return f"❌ Недостаточно {settings.CURRENCY_NAME}. Ваш баланс: {error.balance:,} {symbol}"
    if isinstance(error, BidTooLowError):
        return f"❌ Ставка должна быть не меньше {error.minimum_bid:,} {symbol}"
    if isinstance(error, AuctionNotFoundError):
        return "❌ Аукцион не найден или уже не активен"
    if isinstance(error, BidNotFoundError):
        return "❌ У вас нет активной ставки на этом аукционе"
    if isinstance(error, StoreUnavailableError):
        return "⚠️ Сервис временно недоступен, попробуйте позже"
    if isinstance(error, InvalidAmountError):
        return f"❌ Сумма должна быть целым числом от 1 до {settings.MAX_BID_AMOUNT:,} {symbol}"
    if isinstance(error, ValidationError):
        return "❌ Не указан аукцион или пользователь"
    return f"❌ {error.message}"


def format_auction(auction: Auction, bidding: BiddingEngine) -> str:
    """Карточка аукциона"""
    symbol = bidding.settings.CURRENCY_SYMBOL
    text_parts = [
        f"🎨 <b>{html.escape(auction.title)}</b>",
        f"Автор: {html.escape(auction.seller_label)}",
    ]
    if auction.description:
        text_parts.append(html.escape(auction.description))
    text_parts.append(f"Резервная цена: {auction.reserve_bid:,} {symbol}")
    if auction.current_high_bid > 0:
        text_parts.append(f"⚡️ Текущая ставка: {auction.current_high_bid:,} {symbol}")
    else:
        text_parts.append("⚡️ Ставок пока нет")
    if auction.ends_at:
        text_parts.append(f"⏰ Завершится: {auction.ends_at:%d.%m.%Y %H:%M} UTC")
    return "\n".join(text_parts)


async def _place_bid(
    message: Message,
    from_user: TelegramUser,
    bidding: BiddingEngine,
    auction_id: str,
    amount: Optional[int]
) -> Optional[BiddingError]:
    """Сделать ставку и ответить пользователю

    Возвращает ошибку торгов, если ставка не принята.
    """
    user_id, display_name = telegram_identity(from_user)
    try:
        result = await bidding.place_bid(user_id, display_name, auction_id, amount)
    except BiddingError as e:
        await message.answer(error_text(e, bidding))
        return e

    symbol = bidding.settings.CURRENCY_SYMBOL
    await message.answer(
        f"✅ Ваша ставка {result.bid.amount:,} {symbol} принята.\n"
        f"Баланс: {result.new_balance:,} {symbol}",
        reply_markup=get_my_bid_keyboard(auction_id)
    )

    # Уведомляем перебитого участника
    if result.outbid_user_id and result.outbid_user_id.isdigit():
        try:
            await message.bot.send_message(
                chat_id=int(result.outbid_user_id),
                text=(
                    f"🔔 Вашу ставку на аукционе {auction_id} перебили.\n"
                    f"Возвращено {result.outbid_refund:,} {symbol}"
                )
            )
        except Exception as e:
            logger.warning(f"Не удалось уведомить пользователя {result.outbid_user_id}: {e!r}")
    return None


@router.message(Command("auctions"))
@router.message(F.text == BUTTON_AUCTIONS)
async def cmd_auctions(message: Message, bidding: BiddingEngine):
    """Список активных аукционов"""
    try:
        auctions = await bidding.list_active_auctions()
    except BiddingError as e:
        await message.answer(error_text(e, bidding))
        return

    if not auctions:
        await message.answer("Сейчас нет активных аукционов")
        return

    for auction in auctions:
        await message.answer(
            format_auction(auction, bidding),
            reply_markup=get_auction_keyboard(
                auction.id,
                bidding.minimum_bid(auction),
                bidding.settings.CURRENCY_SYMBOL
            )
        )


@router.message(Command("bid"))
async def cmd_bid(message: Message, command: CommandObject, bidding: BiddingEngine):
    """Ставка командой: /bid <аукцион> <сумма>"""
    args = (command.args or "").split(maxsplit=1)
    if len(args) != 2:
        await message.answer("Использование: /bid <ID аукциона> <сумма>")
        return

    auction_id, raw_amount = args
    amount = parse_amount(raw_amount)
    if amount is None:
        await message.answer("❌ Сумма должна быть целым положительным числом")
        return

    await _place_bid(message, message.from_user, bidding, auction_id, amount)


@router.message(Command("unbid"))
async def cmd_unbid(message: Message, command: CommandObject, bidding: BiddingEngine):
    """Отзыв ставки командой: /unbid <аукцион>"""
    auction_id = (command.args or "").strip()
    if not auction_id:
        await message.answer("Использование: /unbid <ID аукциона>")
        return

    user_id, _ = telegram_identity(message.from_user)
    try:
        result = await bidding.remove_bid(user_id, auction_id)
    except BiddingError as e:
        await message.answer(error_text(e, bidding))
        return

    await message.answer(
        f"🔄 Ставка отозвана, возвращено {result.refunded_amount:,} "
        f"{bidding.settings.CURRENCY_SYMBOL}"
    )


@router.message(Command("mybids"))
@router.message(F.text == BUTTON_MY_BIDS)
async def cmd_my_bids(message: Message, bidding: BiddingEngine):
    """Активные ставки пользователя"""
    user_id, _ = telegram_identity(message.from_user)
    try:
        bids = await bidding.list_user_bids(user_id)
    except BiddingError as e:
        await message.answer(error_text(e, bidding))
        return

    if not bids:
        await message.answer("У вас нет активных ставок")
        return

    symbol = bidding.settings.CURRENCY_SYMBOL
    for bid in bids:
        await message.answer(
            f"🎨 Аукцион {bid.auction_id}: {bid.amount:,} {symbol}",
            reply_markup=get_my_bid_keyboard(bid.auction_id)
        )


@router.callback_query(F.data.startswith("bid:min:"))
async def place_bid_minimum(callback: CallbackQuery, bidding: BiddingEngine):
    """Ставка минимально допустимой суммы"""
    auction_id = callback.data.split(":", 2)[2]

    try:
        auctions = await bidding.list_active_auctions()
    except BiddingError as e:
        await callback.answer(error_text(e, bidding), show_alert=True)
        return

    auction = next((a for a in auctions if a.id == auction_id), None)
    if not auction:
        await callback.answer("Аукцион не найден или уже не активен", show_alert=True)
        return

    await _place_bid(
        callback.message,
        callback.from_user,
        bidding,
        auction_id,
        bidding.minimum_bid(auction)
    )
    await callback.answer()


@router.callback_query(F.data.startswith("bid:custom:"))
async def start_custom_bid(callback: CallbackQuery, state: FSMContext, bidding: BiddingEngine):
    """Запросить сумму ставки"""
    auction_id = callback.data.split(":", 2)[2]
    await state.update_data(auction_id=auction_id)
    await state.set_state(BidState.waiting_amount)
    await callback.message.answer(
        f"Введите сумму ставки в {bidding.settings.CURRENCY_SYMBOL}:"
    )
    await callback.answer()


@router.message(BidState.waiting_amount)
async def process_custom_bid(message: Message, state: FSMContext, bidding: BiddingEngine):
    """Обработка введенной суммы ставки"""
    amount = parse_amount(message.text)
    if amount is None:
        await message.answer("❌ Введите целое положительное число")
        return

    data = await state.get_data()
    auction_id = data.get("auction_id")
    if not auction_id:
        await message.answer("❌ Не найден аукцион для ставки, выберите его заново")
        await state.clear()
        return

    error = await _place_bid(message, message.from_user, bidding, auction_id, amount)
    # Ввод суммы продолжается, только если не подошла сама сумма
    if not isinstance(error, (InvalidAmountError, BidTooLowError, InsufficientFundsError)):
        await state.clear()


@router.callback_query(F.data.startswith("bid:remove:"))
async def remove_bid(callback: CallbackQuery, bidding: BiddingEngine):
    """Отзыв ставки кнопкой"""
    auction_id = callback.data.split(":", 2)[2]
    user_id, _ = telegram_identity(callback.from_user)

    try:
        result = await bidding.remove_bid(user_id, auction_id)
    except BiddingError as e:
        await callback.answer(error_text(e, bidding), show_alert=True)
        return

    await callback.answer(
        f"Ставка отозвана, возвращено {result.refunded_amount:,} {bidding.settings.CURRENCY_SYMBOL}",
        show_alert=True
    )
    await callback.message.edit_reply_markup(reply_markup=None)
