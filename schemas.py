import datetime as dt
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from models import Category, IconName, PaymentMethod, Theme


def _calendar_date(value: object) -> object:
    # Time of day carries no meaning; ISO datetimes keep their date prefix.
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, str) and "T" in value:
        return value.split("T", 1)[0]
    return value


class EntryFields(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    description: str = Field(..., min_length=1, max_length=200)
    amount: float = Field(..., ge=0, allow_inf_nan=False)
    category: Category
    payment_method: PaymentMethod = Field(..., alias="paymentMethod")
    date: dt.date

    @field_validator("date", mode="before")
    @classmethod
    def _strip_time(cls, value: object) -> object:
        return _calendar_date(value)


class EntryIn(EntryFields):
    description: str = Field(..., min_length=1, max_length=180)
    installments: int = Field(default=1, ge=1, le=120)
    recurring: bool = False
    recurring_months: int = Field(default=12, le=120)


class Entry(EntryFields):
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1, max_length=40)


class RemoteEntryIn(BaseModel):
    """Entry as the remote store names its columns."""

    model_config = ConfigDict(str_strip_whitespace=True)

    descricao: str = Field(..., min_length=1, max_length=200)
    data: dt.date
    categoria: Category
    metodo_pagamento: PaymentMethod
    valor: float = Field(..., ge=0, allow_inf_nan=False)

    @field_validator("data", mode="before")
    @classmethod
    def _strip_time(cls, value: object) -> object:
        return _calendar_date(value)


class StoredEntryRow(RemoteEntryIn):
    id: str = Field(..., min_length=1, max_length=40)
    sincronizado_em: Optional[dt.datetime] = None

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_text(cls, value: object) -> object:
        if isinstance(value, int):
            return str(value)
        return value

    def to_entry(self) -> Entry:
        return Entry(
            id=self.id,
            description=self.descricao,
            amount=self.valor,
            category=self.categoria,
            payment_method=self.metodo_pagamento,
            date=self.data,
        )


class RemoteSyncIn(BaseModel):
    data: list[Entry]


class UserProfile(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=100)
    photo_url: str = Field(..., alias="photoUrl", max_length=500)


class VoiceMapping(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    description: str = Field(..., min_length=1, max_length=100)
    icon: IconName


class ThemeIn(BaseModel):
    theme: Theme


class SyncTargetIn(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    url: str = Field(default="", max_length=500)
