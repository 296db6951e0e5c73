"""Unit tests for email_api — request building and delivery."""
import logging
from unittest.mock import MagicMock, PropertyMock, patch

import pytest
import requests

from schemas.events import MetadataRecord, RenewalToggleEvent, SaleEvent
from tools.email_api import (
    InvalidContactError,
    build_request,
    deliver,
    format_expiry,
    renewal_fields,
    sale_fields,
    validate_contact,
)


EMAIL_MODULE = "tools.email_api"


def _metadata(email="a@b.com"):
    return MetadataRecord(meta_id="M1", email=email, tax_state="none", salt="s")


def _sale(**overrides) -> SaleEvent:
    data = dict(
        tx_id="T1",
        meta_id="M1",
        domain="example",
        price=5.0,
        payer="0xabc",
        timestamp=1699000000,
        expiry=1700000000,
        auto=False,
        metadata=[_metadata()],
        group_tags=["vip"],
    )
    data.update(overrides)
    return SaleEvent(**data)


def _renewal(**overrides) -> RenewalToggleEvent:
    data = dict(
        tx_id="T2",
        meta_id="M2",
        domain="renewed",
        renewer="0xdef",
        allowance="1000",
        metadata=[_metadata("c@d.org")],
        group_tags=[],
    )
    data.update(overrides)
    return RenewalToggleEvent(**data)


class TestFormatExpiry:
    def test_formats_utc(self):
        assert format_expiry(1700000000) == "2023-11-14 22:13:20"

    def test_epoch(self):
        assert format_expiry(0) == "1970-01-01 00:00:00"

    def test_absent_is_none_token(self):
        assert format_expiry(None) == "none"

    def test_out_of_range_is_none_token(self):
        assert format_expiry(10**20) == "none"


class TestValidateContact:
    def test_accepts_valid_address(self):
        assert validate_contact("a@b.com") == "a@b.com"

    def test_accepts_single_label_domain(self):
        assert validate_contact("a@b") == "a@b"

    @pytest.mark.parametrize("email", ["not-an-email", "a@", "@b.com", ""])
    def test_rejects_invalid_address(self, email):
        with pytest.raises(InvalidContactError):
            validate_contact(email)


class TestBuildRequest:
    def test_sale_params_in_order(self):
        sale = _sale()
        req = build_request(sale, sale_fields(sale), "https://mail.test/sub", "k")

        assert req.url == "https://mail.test/sub"
        assert req.params == [
            ("email", "a@b.com"),
            ("fields[name]", "example"),
            ("fields[expiry]", "2023-11-14 22:13:20"),
            ("groups[]", "vip"),
        ]

    def test_bearer_header_only(self):
        sale = _sale()
        req = build_request(sale, sale_fields(sale), "https://mail.test/sub", "secret")
        assert req.headers == {"Authorization": "Bearer secret"}

    def test_sale_without_expiry(self):
        sale = _sale(expiry=None)
        req = build_request(sale, sale_fields(sale), "u", "k")
        assert ("fields[expiry]", "none") in req.params

    def test_no_groups_means_no_group_params(self):
        sale = _sale(group_tags=[])
        req = build_request(sale, sale_fields(sale), "u", "k")
        assert [p for p in req.params if p[0] == "groups[]"] == []

    def test_two_groups_keep_order(self):
        sale = _sale(group_tags=["vip", "early"])
        req = build_request(sale, sale_fields(sale), "u", "k")
        assert [v for k, v in req.params if k == "groups[]"] == ["vip", "early"]

    def test_renewal_fields(self):
        renewal = _renewal()
        req = build_request(renewal, renewal_fields(renewal), "u", "k")
        assert req.params == [
            ("email", "c@d.org"),
            ("fields[name]", "renewed"),
            ("fields[renewer]", "0xdef"),
        ]

    def test_renewal_sends_renewer_only(self):
        assert renewal_fields(_renewal()) == [("fields[renewer]", "0xdef")]

    def test_uses_first_metadata_email(self):
        sale = _sale(metadata=[_metadata("first@b.com"), _metadata("second@b.com")])
        req = build_request(sale, sale_fields(sale), "u", "k")
        assert req.params[0] == ("email", "first@b.com")

    def test_invalid_email_raises(self):
        sale = _sale(metadata=[_metadata("nope")])
        with pytest.raises(InvalidContactError):
            build_request(sale, sale_fields(sale), "u", "k")


class TestDeliver:
    def _request(self):
        sale = _sale()
        return build_request(sale, sale_fields(sale), "https://mail.test/sub", "k")

    @patch(f"{EMAIL_MODULE}.requests.post")
    def test_posts_params_headers_and_timeout(self, mock_post):
        mock_post.return_value = MagicMock(status_code=200)
        req = self._request()

        assert deliver(req, timeout=3) is True

        mock_post.assert_called_once()
        call = mock_post.call_args
        assert call.args[0] == "https://mail.test/sub"
        assert call.kwargs["params"] == req.params
        assert call.kwargs["headers"] == {"Authorization": "Bearer k"}
        assert call.kwargs["timeout"] == 3

    @patch(f"{EMAIL_MODULE}.requests.post")
    def test_non_2xx_logs_status_url_and_body(self, mock_post, caplog):
        mock_post.return_value = MagicMock(
            status_code=422, url="https://mail.test/sub?email=a%40b.com", text="bad group"
        )

        with caplog.at_level(logging.ERROR, logger=EMAIL_MODULE):
            assert deliver(self._request()) is False

        assert "422" in caplog.text
        assert "https://mail.test/sub?email=a%40b.com" in caplog.text
        assert "bad group" in caplog.text

    @patch(f"{EMAIL_MODULE}.requests.post")
    def test_unreadable_body_does_not_raise(self, mock_post, caplog):
        resp = MagicMock(status_code=500, url="https://mail.test/sub")
        type(resp).text = PropertyMock(side_effect=RuntimeError("stream consumed"))
        mock_post.return_value = resp

        with caplog.at_level(logging.ERROR, logger=EMAIL_MODULE):
            assert deliver(self._request()) is False

        assert "Failed to retrieve response body" in caplog.text

    @patch(f"{EMAIL_MODULE}.requests.post")
    def test_transport_error_is_logged(self, mock_post, caplog):
        mock_post.side_effect = requests.ConnectionError("connection refused")

        with caplog.at_level(logging.ERROR, logger=EMAIL_MODULE):
            assert deliver(self._request()) is False

        assert "Failed to send POST request" in caplog.text
        assert mock_post.call_count == 1
