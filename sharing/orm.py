"""SQLAlchemy models for the top-up and ledger collections."""
from __future__ import annotations

from typing import Any, Dict, Optional

from sqlalchemy import Column, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.ext.associationproxy import association_proxy
from sqlalchemy.ext.orderinglist import ordering_list
from sqlalchemy.orm import relationship

from .database import Base
from .models import isoformat_utc, utcnow

TRANSACTION_KINDS = ("expense", "transfer")


class TopUp(Base):
    __tablename__ = "topups"

    id = Column(Integer, primary_key=True, index=True)
    user = Column(String(100), nullable=False)
    # Legacy text column; see validate_legacy_amount.
    amount = Column(String(32), nullable=False)
    date = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "user": self.user,
            "amount": self.amount,
            "date": isoformat_utc(self.date),
        }


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    bank_account = Column(String(64), nullable=True)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "bankAccount": self.bank_account,
        }


class Participation(Base):
    __tablename__ = "transaction_participants"

    transaction_id = Column(
        Integer, ForeignKey("transactions.id", ondelete="CASCADE"), primary_key=True
    )
    user_id = Column(Integer, ForeignKey("users.id"), primary_key=True)
    position = Column(Integer, nullable=False, default=0)

    user = relationship("User", lazy="joined")

    def __init__(self, user: Optional[User] = None, **kwargs: Any) -> None:
        super().__init__(user=user, **kwargs)


class Transaction(Base):
    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True, index=True)
    kind = Column(String(16), nullable=False, index=True)
    description = Column(Text, nullable=False, default="")
    amount = Column(Numeric(12, 2), nullable=False)
    date = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    payer_id = Column(Integer, ForeignKey("users.id"), nullable=False)

    payer = relationship("User", lazy="joined")
    participations = relationship(
        "Participation",
        order_by="Participation.position",
        collection_class=ordering_list("position"),
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    participants = association_proxy("participations", "user")

    def to_dict(self) -> Dict[str, Any]:
        """Serialise with embedded payer and participant summaries."""
        return {
            "id": self.id,
            "kind": self.kind,
            "description": self.description,
            "amount": float(self.amount),
            "date": isoformat_utc(self.date),
            "payer": _user_ref(self.payer),
            "participants": [_user_ref(user) for user in self.participants],
        }

    def to_expense_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "description": self.description,
            "amount": float(self.amount),
            "date": isoformat_utc(self.date),
            "payer": self.payer.to_dict(),
            "participants": [user.to_dict() for user in self.participants],
        }

    def to_transfer_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "amount": float(self.amount),
            "date": isoformat_utc(self.date),
            "source": self.payer.to_dict(),
            "target": self.participants[0].to_dict(),
        }


def _user_ref(user: User) -> Dict[str, Any]:
    return {"id": user.id, "name": user.name}
