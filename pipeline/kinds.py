"""Event kinds handled by the notification pipeline.

Sales and auto-renew toggles run through the same pipeline; an EventKind
names everything that differs between them.
"""
from dataclasses import dataclass
from typing import Callable, Dict, Type

from pydantic import BaseModel
from sqlalchemy.orm import InstrumentedAttribute

from db.models import AutoRenewUpdate, Base, ProcessedRenewal, ProcessedSale, Sale
from schemas.events import RenewalToggleEvent, SaleEvent
from tools.email_api import Params, renewal_fields, sale_fields


@dataclass(frozen=True)
class EventKind:
    name: str
    source: Type[Base]
    marker: Type[Base]
    dedup_field: str
    schema: Type[BaseModel]
    fields: Callable[[BaseModel], Params]
    metadata_field: str = "meta_id"
    group_field: str = "tx_id"

    def source_column(self, field: str) -> InstrumentedAttribute:
        return getattr(self.source, field)

    def marker_column(self) -> InstrumentedAttribute:
        return getattr(self.marker, self.dedup_field)

    def decode(self, doc: dict) -> BaseModel:
        """Validate a raw joined document; raises pydantic.ValidationError."""
        return self.schema.model_validate(doc)

    def dedup_key(self, event: BaseModel) -> str:
        return getattr(event, self.dedup_field)


SALES = EventKind(
    name="sales",
    source=Sale,
    marker=ProcessedSale,
    dedup_field="meta_id",
    schema=SaleEvent,
    fields=sale_fields,
)

RENEWALS = EventKind(
    name="renewals",
    source=AutoRenewUpdate,
    marker=ProcessedRenewal,
    dedup_field="tx_id",
    schema=RenewalToggleEvent,
    fields=renewal_fields,
)

KINDS: Dict[str, EventKind] = {kind.name: kind for kind in (SALES, RENEWALS)}
