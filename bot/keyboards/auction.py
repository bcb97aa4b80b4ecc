"""Клавиатуры для аукционов"""
from aiogram.types import InlineKeyboardMarkup, InlineKeyboardButton
from aiogram.utils.keyboard import InlineKeyboardBuilder


def get_auction_keyboard(auction_id: str, minimum_bid: int, symbol: str) -> InlineKeyboardMarkup:
    """Клавиатура для аукциона"""
    builder = InlineKeyboardBuilder()
    builder.add(InlineKeyboardButton(
        text=f"💰 Ставка {minimum_bid:,} {symbol}",
        callback_data=f"bid:min:{auction_id}"
    ))
    builder.add(InlineKeyboardButton(
        text="✏️ Указать свою сумму",
        callback_data=f"bid:custom:{auction_id}"
    ))
    builder.adjust(1)
    return builder.as_markup()


def get_my_bid_keyboard(auction_id: str) -> InlineKeyboardMarkup:
    """Клавиатура для своей активной ставки"""
    builder = InlineKeyboardBuilder()
    builder.add(InlineKeyboardButton(
        text="❌ Отозвать ставку",
        callback_data=f"bid:remove:{auction_id}"
    ))
    return builder.as_markup()
