from .email_api import (
    InvalidContactError, NotificationRequest,
    validate_contact, format_expiry, sale_fields, renewal_fields,
    build_request, deliver,
)

__all__ = [
    "InvalidContactError", "NotificationRequest",
    "validate_contact", "format_expiry", "sale_fields", "renewal_fields",
    "build_request", "deliver",
]
