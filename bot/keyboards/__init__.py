"""Клавиатуры бота"""
from .main import get_main_keyboard
from .auction import get_auction_keyboard, get_my_bid_keyboard

__all__ = [
    "get_main_keyboard",
    "get_auction_keyboard",
    "get_my_bid_keyboard",
]
