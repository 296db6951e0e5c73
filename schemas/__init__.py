from .events import (
    MetadataRecord,
    SaleEvent,
    RenewalToggleEvent,
)

__all__ = ["MetadataRecord", "SaleEvent", "RenewalToggleEvent"]
