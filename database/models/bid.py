"""Модель ставки"""
import enum
from datetime import datetime, timezone
from sqlalchemy import Column, BigInteger, Integer, DateTime, ForeignKey, Boolean, String, Index, text
from sqlalchemy.orm import relationship
from database.connection import Base


class DeactivationReason(str, enum.Enum):
    """Причина снятия ставки"""
    REPLACED = "replaced"  # Заменена новой ставкой того же пользователя
    OUTBID = "outbid"  # Перебита другим пользователем
    REMOVED = "removed"  # Отозвана пользователем


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Bid(Base):
    """Модель ставки на аукционе

    Сумма активной ставки удерживается с баланса пользователя.
    Ставки не удаляются, а только деактивируются.
    """
    __tablename__ = "bids"
    __table_args__ = (
        # Не более одной активной ставки пользователя на аукционе
        Index(
            "uq_bids_active_user_auction",
            "user_id",
            "auction_id",
            unique=True,
            postgresql_where=text("active"),
            sqlite_where=text("active"),
        ),
    )

    id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)
    user_id = Column(String(128), ForeignKey("users.id"), nullable=False, index=True)
    auction_id = Column(String(64), ForeignKey("auctions.id"), nullable=False, index=True)
    amount = Column(Integer, nullable=False)  # Сумма ставки
    active = Column(Boolean, default=True, nullable=False, index=True)
    # Время задается на стороне приложения: по нему разрешается равенство ставок
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False, index=True)
    deactivated_at = Column(DateTime(timezone=True), nullable=True)
    deactivation_reason = Column(String(20), nullable=True)

    # Связи
    auction = relationship("Auction", back_populates="bids")
    user = relationship("User", backref="bids")
