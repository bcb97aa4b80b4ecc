"""Модели базы данных"""
from .user import User
from .auction import Auction
from .bid import Bid, DeactivationReason

__all__ = [
    "User",
    "Auction",
    "Bid",
    "DeactivationReason",
]
