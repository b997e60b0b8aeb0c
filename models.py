from datetime import date, datetime
from enum import Enum
from typing import Optional

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    Enum as SAEnum,
    Float,
    Index,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from database import Base


class Category(str, Enum):
    revenue = "Receita"
    fixed = "Fixo"
    variable = "Variável"
    lifestyle = "Diversos"
    investment = "Investimento"


class PaymentMethod(str, Enum):
    cash = "Dinheiro"
    pix = "Pix"
    credit_card = "Cartão de Crédito"
    debit_card = "Cartão de Débito"


class Theme(str, Enum):
    light = "light"
    dark = "dark"


class IconName(str, Enum):
    home = "home"
    cart = "cart"
    cash = "cash"
    leisure = "leisure"
    food = "food"
    health = "health"
    transport = "transport"
    tech = "tech"
    energy = "energy"
    coffee = "coffee"
    gift = "gift"
    bank = "bank"
    chart = "chart"
    fitness = "fitness"
    video = "video"
    maintenance = "maintenance"


DEFAULT_ICON = IconName.chart


class MonthDayPolicy(str, Enum):
    snap_to_end = "snap_to_end"
    roll_over = "roll_over"


class SyncStatus(str, Enum):
    idle = "idle"
    success = "success"
    error = "error"


def _values_enum(enum_cls: type[Enum], name: str) -> SAEnum:
    return SAEnum(
        enum_cls,
        name=name,
        values_callable=lambda members: [member.value for member in members],
    )


CATEGORY_ENUM = _values_enum(Category, "category")
PAYMENT_METHOD_ENUM = _values_enum(PaymentMethod, "paymentmethod")


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )


class EntryRecord(Base, TimestampMixin):
    __tablename__ = "entries"

    id: Mapped[str] = mapped_column(String(40), primary_key=True)
    description: Mapped[str] = mapped_column(String(200), nullable=False)
    amount: Mapped[float] = mapped_column(Float, nullable=False)
    category: Mapped[Category] = mapped_column(CATEGORY_ENUM, nullable=False)
    payment_method: Mapped[PaymentMethod] = mapped_column(
        PAYMENT_METHOD_ENUM, nullable=False
    )
    date: Mapped[date] = mapped_column(Date, nullable=False)

    __table_args__ = (
        Index("ix_entries_date", "date"),
        Index("ix_entries_category_date", "category", "date"),
        CheckConstraint("amount >= 0", name="ck_entries_amount_positive"),
    )


class Preference(Base, TimestampMixin):
    __tablename__ = "preferences"

    key: Mapped[str] = mapped_column(String(50), primary_key=True)
    value: Mapped[Optional[str]] = mapped_column(Text)


class RemoteEntryRecord(Base):
    """Row of the remote store; column names follow the storage schema."""

    __tablename__ = "gastos"

    id: Mapped[str] = mapped_column(String(40), primary_key=True)
    descricao: Mapped[str] = mapped_column(Text, nullable=False)
    data: Mapped[date] = mapped_column(Date, nullable=False)
    categoria: Mapped[str] = mapped_column(String(40), nullable=False)
    metodo_pagamento: Mapped[str] = mapped_column(String(40), nullable=False)
    valor: Mapped[float] = mapped_column(Float, nullable=False)
    sincronizado_em: Mapped[Optional[datetime]] = mapped_column(DateTime)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, nullable=False
    )

    __table_args__ = (Index("ix_gastos_data", "data"),)
