"""Marketing email API client.

Builds the subscription request for one event and posts it to the configured
endpoint. Calls the REST API directly with requests (no official SDK).

The endpoint takes everything as query parameters:
    email, fields[name], fields[expiry] | fields[renewer],
    groups[] (repeated)
and authenticates with `Authorization: Bearer <api_key>`.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

import requests
from email_validator import EmailNotValidError, validate_email

logger = logging.getLogger(__name__)

EXPIRY_FORMAT = "%Y-%m-%d %H:%M:%S"
NO_EXPIRY = "none"

Params = List[Tuple[str, str]]


class InvalidContactError(ValueError):
    """The event's contact address failed the syntax check."""

    def __init__(self, email: Any, reason: str):
        super().__init__(f"email {email} is not valid: {reason}")
        self.email = email
        self.reason = reason


@dataclass(frozen=True)
class NotificationRequest:
    url: str
    params: Params
    headers: Dict[str, str] = field(default_factory=dict)


def validate_contact(email: str) -> str:
    """Return the address unchanged if it is syntactically valid.

    Raises:
        InvalidContactError: if the address does not parse.
    """
    if not email or not isinstance(email, str):
        raise InvalidContactError(email, "empty address")
    try:
        # Syntax only: single-label domains such as a@b pass.
        validate_email(email, check_deliverability=False, globally_deliverable=False)
    except EmailNotValidError as exc:
        raise InvalidContactError(email, str(exc)) from exc
    return email


def format_expiry(expiry: Optional[int]) -> str:
    """Render a Unix timestamp as UTC 'YYYY-MM-DD HH:MM:SS', or 'none'."""
    if expiry is None:
        return NO_EXPIRY
    try:
        return datetime.fromtimestamp(expiry, tz=timezone.utc).strftime(EXPIRY_FORMAT)
    except (OverflowError, OSError, ValueError, TypeError):
        return NO_EXPIRY


def sale_fields(event) -> Params:
    return [("fields[expiry]", format_expiry(event.expiry))]


def renewal_fields(event) -> Params:
    return [("fields[renewer]", event.renewer)]


def build_request(
    event,
    kind_fields: Params,
    base_url: str,
    api_key: str,
) -> NotificationRequest:
    """Build the subscription request for one decoded event.

    Args:
        event: SaleEvent or RenewalToggleEvent.
        kind_fields: Named fields specific to the event kind.
        base_url: Endpoint the request is posted to.
        api_key: Bearer credential.

    Returns:
        NotificationRequest with ordered query parameters.

    Raises:
        InvalidContactError: if the first metadata record's email is invalid.
    """
    email = validate_contact(event.contact_email)
    params: Params = [("email", email), ("fields[name]", event.domain)]
    params.extend(kind_fields)
    params.extend(("groups[]", group) for group in event.group_tags)
    return NotificationRequest(
        url=base_url,
        params=params,
        headers={"Authorization": f"Bearer {api_key}"},
    )


def _response_body(resp: requests.Response) -> str:
    try:
        return resp.text
    except Exception:
        return "Failed to retrieve response body"


def deliver(request: NotificationRequest, timeout: float = 10) -> bool:
    """POST the request once. Returns True on a 2xx response.

    Failures are logged and reported through the return value; nothing is retried.
    """
    try:
        resp = requests.post(
            request.url,
            params=request.params,
            headers=request.headers,
            timeout=timeout,
        )
    except requests.RequestException as exc:
        logger.error("Failed to send POST request: %s", exc)
        return False

    if not 200 <= resp.status_code < 300:
        logger.error(
            "Received non-success status from POST request: %s. URL: %s, Response body: %s",
            resp.status_code,
            resp.url,
            _response_body(resp),
        )
        return False
    return True
