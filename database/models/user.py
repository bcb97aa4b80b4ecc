"""Модель пользователя"""
from sqlalchemy import Column, String, DateTime, Integer
from sqlalchemy.sql import func
from database.connection import Base


class User(Base):
    """Модель участника торгов

    Идентификатор передается вызывающей стороной и не проверяется.
    """
    __tablename__ = "users"

    id = Column(String(128), primary_key=True, index=True)
    display_name = Column(String(255), nullable=False)
    balance = Column(Integer, nullable=False)  # Баланс в appraiCENTS
    total_bids_placed = Column(Integer, default=0, nullable=False)
    total_wins = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    last_activity_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
