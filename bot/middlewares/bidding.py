"""Middleware для доступа к движку торгов"""
from typing import Callable, Dict, Any, Awaitable
from aiogram import BaseMiddleware
from aiogram.types import TelegramObject
from services.bidding import BiddingEngine


class BiddingMiddleware(BaseMiddleware):
    """Middleware, передающее движок торгов в обработчики"""

    def __init__(self, bidding: BiddingEngine):
        self.bidding = bidding

    async def __call__(
        self,
        handler: Callable[[TelegramObject, Dict[str, Any]], Awaitable[Any]],
        event: TelegramObject,
        data: Dict[str, Any]
    ) -> Any:
        data["bidding"] = self.bidding
        return await handler(event, data)
