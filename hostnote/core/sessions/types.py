"""
Request and response shapes for table sessions.

Wire keys are camelCase; Python attributes are snake_case. Unknown request
keys are ignored.
"""

from datetime import date, datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model that reads and writes camelCase keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class OrderItem(CamelModel):
    """One itemized line on a session's bill."""

    name: str = ""
    quantity: int = 0
    unit_price: float = 0
    amount: float = 0


class SalesInfo(CamelModel):
    """
    Sales sub-document attached to a session.

    Stored and returned as a single JSON value; the server does not
    recompute the totals.
    """

    table_charge: float = 0
    order_items: list[OrderItem] = Field(default_factory=list)
    visit_type: str = "normal"  # normal, first, shimei
    stay_hours: float = 0
    shimei_fee: float = 0
    subtotal: float = 0
    tax_rate: float = 0
    tax: float = 0
    total: float = 0

    def to_document(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")


class SessionWrite(CamelModel):
    """
    Body of a create or update request.

    Every field is an optional slot. ``is_set`` tells "sent as null" apart
    from "not sent", which drives the sparse update.
    """

    seated_at: Optional[str] = Field(default=None, alias="datetime")
    table_number: Optional[str] = None
    memo: Optional[str] = None
    sales_info: Optional[SalesInfo] = None
    hime_ids: Optional[list[Any]] = None
    main_cast_id: Optional[Any] = None
    help_cast_ids: Optional[list[Any]] = None

    def is_set(self, field_name: str) -> bool:
        return field_name in self.model_fields_set

    @property
    def touches_patrons(self) -> bool:
        return self.is_set("hime_ids")

    @property
    def touches_staff(self) -> bool:
        return self.is_set("main_cast_id") or self.is_set("help_cast_ids")


class PersonSummary(CamelModel):
    """Display summary of a patron or staff member."""

    id: int
    name: str
    photo_url: Optional[str] = None


class SessionView(CamelModel):
    """Hydrated session returned by the API."""

    id: int
    seated_at: datetime = Field(alias="datetime")
    table_number: Optional[str] = None
    memo: Optional[str] = None
    sales_info: Optional[SalesInfo] = None
    created_at: datetime
    updated_at: datetime
    hime_list: list[PersonSummary] = Field(default_factory=list)
    main_cast: Optional[PersonSummary] = None
    help_casts: list[PersonSummary] = Field(default_factory=list)


class AttendanceView(CamelModel):
    """Attendance record with the tenant-visible patron summary."""

    id: int
    patron_id: int
    visit_date: date
    note: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    patron: Optional[PersonSummary] = None
