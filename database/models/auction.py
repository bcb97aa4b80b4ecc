"""Модель аукциона"""
from sqlalchemy import Column, Integer, DateTime, ForeignKey, Boolean, String, Text
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from database.connection import Base


class Auction(Base):
    """Модель аукциона произведения искусства"""
    __tablename__ = "auctions"

    id = Column(String(64), primary_key=True, index=True)
    seller_label = Column(String(255), nullable=False)  # Имя автора/студии
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    image_url = Column(String(1024), nullable=True)
    reserve_bid = Column(Integer, nullable=False)  # Резервная цена
    current_high_bid = Column(Integer, default=0, nullable=False)  # 0 - ставок еще нет
    highest_bidder_id = Column(String(128), ForeignKey("users.id"), nullable=True, index=True)
    active = Column(Boolean, default=True, nullable=False, index=True)
    ends_at = Column(DateTime(timezone=True), nullable=False, index=True)
    last_bid_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    # Связи
    highest_bidder = relationship("User", foreign_keys=[highest_bidder_id])
    bids = relationship("Bid", back_populates="auction", order_by="Bid.created_at.desc()")
