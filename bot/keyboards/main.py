"""Основные клавиатуры"""
from aiogram.types import ReplyKeyboardMarkup, KeyboardButton


BUTTON_AUCTIONS = "🎨 Аукционы"
BUTTON_MY_BIDS = "📋 Мои ставки"
BUTTON_BALANCE = "💰 Баланс"


def get_main_keyboard() -> ReplyKeyboardMarkup:
    """Главная клавиатура"""
    keyboard = [
        [KeyboardButton(text=BUTTON_AUCTIONS)],
        [KeyboardButton(text=BUTTON_MY_BIDS), KeyboardButton(text=BUTTON_BALANCE)]
    ]
    return ReplyKeyboardMarkup(
        keyboard=keyboard,
        resize_keyboard=True
    )
