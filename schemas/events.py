"""Decoded shapes of joined event records."""
from typing import List, Optional

from pydantic import BaseModel, Field


class MetadataRecord(BaseModel):
    meta_id: str
    email: str
    tax_state: str
    salt: str


class SaleEvent(BaseModel):
    tx_id: str
    meta_id: str
    domain: str
    price: float
    payer: str
    timestamp: int
    expiry: Optional[int] = None
    auto: bool
    sponsor: Optional[str] = None
    sponsor_commission: Optional[float] = None
    metadata: List[MetadataRecord] = Field(min_length=1)
    group_tags: List[str] = Field(default_factory=list)

    @property
    def contact_email(self) -> str:
        return self.metadata[0].email


class RenewalToggleEvent(BaseModel):
    tx_id: str
    meta_id: str
    domain: str
    renewer: str
    allowance: str
    metadata: List[MetadataRecord] = Field(min_length=1)
    group_tags: List[str] = Field(default_factory=list)

    @property
    def contact_email(self) -> str:
        return self.metadata[0].email
