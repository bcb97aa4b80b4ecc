"""Схемы запросов и ответов HTTP API

Имена полей в JSON (camelCase) являются контрактом с клиентом.
"""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, StrictInt
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Базовая схема с camelCase-именами в JSON"""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# Запросы: поля необязательные, их наличие проверяет движок торгов

class BalanceRequest(CamelModel):
    user_id: Optional[str] = None
    display_name: Optional[str] = None


class UserBidsRequest(CamelModel):
    user_id: Optional[str] = None


class PlaceBidRequest(CamelModel):
    user_id: Optional[str] = None
    display_name: Optional[str] = None
    auction_id: Optional[str] = None
    amount: Optional[StrictInt] = None


class RemoveBidRequest(CamelModel):
    user_id: Optional[str] = None
    auction_id: Optional[str] = None


# Ответы

class UserStats(CamelModel):
    display_name: str
    total_bids: int = Field(validation_alias="total_bids_placed", serialization_alias="totalBids")
    total_wins: int


class AuctionOut(CamelModel):
    """Аукцион в ответе API"""
    id: str
    seller_label: str
    title: str
    description: Optional[str] = None
    image_url: Optional[str] = None
    reserve_bid: int
    current_high_bid: int
    highest_bidder_id: Optional[str] = None
    active: bool
    ends_at: datetime
    last_bid_at: Optional[datetime] = None
    created_at: Optional[datetime] = None


class BidOut(CamelModel):
    """Ставка в ответе API"""
    id: int
    user_id: str
    auction_id: str
    amount: int
    active: bool
    created_at: datetime
    deactivated_at: Optional[datetime] = None
    deactivation_reason: Optional[str] = None


def dump(model: BaseModel) -> dict:
    """Сериализовать схему в JSON-совместимый словарь"""
    return model.model_dump(mode="json", by_alias=True)
