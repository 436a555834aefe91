"""
Unit tests for the shared/ utility modules.

Covers:
- shared.validators      (validate_url, validate_short_id)
- shared.generators      (generate_short_id)
- shared.datetime_utils  (parse_datetime, utcnow)
- shared.ip_utils        (get_client_ip, is_ip_address, is_private_ip)
- shared.geo_utils       (coerce_coordinate, has_valid_coordinates,
                          country_display_name)
- shared.logging         (hash_ip, should_sample, redact_sensitive_fields)
"""

from __future__ import annotations

import string
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest

import shared.logging as shared_logging
from config import LoggingSettings
from shared.datetime_utils import parse_datetime, utcnow
from shared.generators import generate_short_id
from shared.geo_utils import coerce_coordinate, country_display_name, has_valid_coordinates
from shared.ip_utils import get_client_ip, is_ip_address, is_private_ip
from shared.logging import hash_ip, redact_sensitive_fields, should_sample
from shared.validators import validate_short_id, validate_url


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _make_request(headers: dict, client_host: str = "10.0.0.1") -> MagicMock:
    """Minimal mock of a FastAPI Request."""
    req = MagicMock()
    req.headers = headers
    req.client = MagicMock()
    req.client.host = client_host
    return req


# ---------------------------------------------------------------------------
# shared.validators — validate_url
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "url",
    [
        "https://example.com",
        "http://example.com/path?q=1",
        "https://sub.example.co.uk/a/b#frag",
        "http://localhost:8000/health",
    ],
)
def test_validate_url_accepts(url):
    assert validate_url(url) is True


@pytest.mark.parametrize(
    "url",
    ["", "example.com", "ftp://example.com/file", "not a url", "https://", "javascript:alert(1)"],
)
def test_validate_url_rejects(url):
    assert validate_url(url) is False


def test_validate_url_rejects_non_string():
    assert validate_url(None) is False


# ---------------------------------------------------------------------------
# shared.validators — validate_short_id
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("short_id", ["abc", "my-link", "my_link_2", "A" * 32])
def test_validate_short_id_accepts(short_id):
    assert validate_short_id(short_id) is True


@pytest.mark.parametrize(
    "short_id",
    ["ab", "A" * 33, "has space", "slash/id", "dot.id", "emoji😀"],
    ids=["too_short", "too_long", "space", "slash", "dot", "emoji"],
)
def test_validate_short_id_rejects(short_id):
    assert validate_short_id(short_id) is False


# ---------------------------------------------------------------------------
# shared.generators
# ---------------------------------------------------------------------------


class TestGenerateShortId:
    def test_default_length(self):
        assert len(generate_short_id()) == 6

    @pytest.mark.parametrize("length", [1, 8, 12])
    def test_custom_length(self, length):
        assert len(generate_short_id(length)) == length

    def test_alphanumeric_only(self):
        allowed = set(string.ascii_letters + string.digits)
        for _ in range(50):
            assert set(generate_short_id()) <= allowed

    def test_generates_distinct_ids(self):
        assert len({generate_short_id(10) for _ in range(50)}) == 50


# ---------------------------------------------------------------------------
# shared.datetime_utils
# ---------------------------------------------------------------------------


class TestParseDatetime:
    def test_none(self):
        assert parse_datetime(None) is None

    def test_naive_datetime_assumed_utc(self):
        result = parse_datetime(datetime(2024, 5, 1, 12, 0))
        assert result == datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)

    def test_aware_datetime_converted_to_utc(self):
        plus_two = timezone(timedelta(hours=2))
        result = parse_datetime(datetime(2024, 5, 1, 14, 0, tzinfo=plus_two))
        assert result == datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
        assert result.utcoffset() == timedelta(0)

    def test_epoch_seconds(self):
        assert parse_datetime(0) == datetime(1970, 1, 1, tzinfo=timezone.utc)

    def test_iso_string_with_z(self):
        result = parse_datetime("2024-05-01T12:00:00Z")
        assert result == datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)

    def test_iso_string_with_millis(self):
        result = parse_datetime("2024-05-01T12:00:00.123Z")
        assert result.microsecond == 123000

    def test_unparseable_returns_none(self):
        assert parse_datetime("yesterday-ish") is None


def test_utcnow_is_aware():
    assert utcnow().tzinfo is not None
    assert utcnow().utcoffset() == timedelta(0)


# ---------------------------------------------------------------------------
# shared.ip_utils — get_client_ip
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "headers, client_host, expected_ip",
    [
        ({"X-Forwarded-For": "11.22.33.44, 99.99.99.99"}, "10.0.0.1", "11.22.33.44"),
        ({"X-Forwarded-For": "8.8.8.8", "X-Real-IP": "9.9.9.9"}, "10.0.0.1", "8.8.8.8"),
        ({"X-Real-IP": "55.66.77.88"}, "10.0.0.1", "55.66.77.88"),
        ({"X-Forwarded-For": " , 1.1.1.1"}, "192.168.1.50", "192.168.1.50"),
        ({}, "192.168.1.50", "192.168.1.50"),
    ],
    ids=[
        "x_forwarded_for_multi",
        "x_forwarded_for_wins",
        "x_real_ip",
        "blank_first_hop",
        "fallback",
    ],
)
def test_get_client_ip(headers, client_host, expected_ip):
    assert get_client_ip(_make_request(headers, client_host)) == expected_ip


def test_get_client_ip_no_client_returns_loopback():
    req = MagicMock()
    req.headers = {}
    req.client = None
    assert get_client_ip(req) == "127.0.0.1"


# ---------------------------------------------------------------------------
# shared.ip_utils — classification
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "ip",
    ["", "   ", None, "localhost", "127.0.0.1", "::1", "10.1.2.3", "172.16.0.1",
     "172.31.255.255", "192.168.0.10", "169.254.1.1", "fd00::1"],
)
def test_is_private_ip_true(ip):
    assert is_private_ip(ip) is True


@pytest.mark.parametrize("ip", ["8.8.8.8", "1.1.1.1", "172.32.0.1", "2001:4860:4860::8888", "Unknown"])
def test_is_private_ip_false(ip):
    assert is_private_ip(ip) is False


@pytest.mark.parametrize(
    "value, expected",
    [("8.8.8.8", True), ("::1", True), (" 1.1.1.1 ", True), ("Unknown", False), ("999.1.1.1", False)],
)
def test_is_ip_address(value, expected):
    assert is_ip_address(value) is expected


# ---------------------------------------------------------------------------
# shared.geo_utils
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "value, expected",
    [
        (37.4, 37.4),
        (-122, -122.0),
        ("37.4", 37.4),
        (" -27.47 ", -27.47),
        ("", None),
        ("abc", None),
        (None, None),
        (True, None),
        (float("nan"), None),
        (float("inf"), None),
    ],
)
def test_coerce_coordinate(value, expected):
    assert coerce_coordinate(value) == expected


@pytest.mark.parametrize(
    "lat, lng, expected",
    [
        (37.4, -122.1, True),
        (0.0, 10.0, True),
        (0, 0, False),
        (None, -122.1, False),
        (37.4, None, False),
        (float("nan"), 1.0, False),
        ("37.4", "-122.1", False),
        (True, 1.0, False),
    ],
)
def test_has_valid_coordinates(lat, lng, expected):
    assert has_valid_coordinates(lat, lng) is expected


class TestCountryDisplayName:
    def test_pinned_codes_override_provider_name(self):
        assert country_display_name("US", "United States of America") == "United States"
        assert country_display_name("gb", "UK") == "United Kingdom"

    def test_provider_name_used_otherwise(self):
        assert country_display_name("CH", "Switzerland") == "Switzerland"

    def test_known_code_without_name(self):
        assert country_display_name("DE") == "Germany"
        assert country_display_name("ch") == "Switzerland"

    def test_unknown_code_without_name_returns_code(self):
        assert country_display_name("ZZ") == "ZZ"

    def test_nothing(self):
        assert country_display_name(None) is None


# ---------------------------------------------------------------------------
# shared.logging
# ---------------------------------------------------------------------------


class TestHashIp:
    def test_development_returns_ip(self, monkeypatch):
        monkeypatch.setattr(shared_logging, "_is_production", False)
        assert hash_ip("8.8.8.8") == "8.8.8.8"

    def test_production_hashes(self, monkeypatch):
        monkeypatch.setattr(shared_logging, "_is_production", True)
        hashed = hash_ip("8.8.8.8")
        assert hashed != "8.8.8.8"
        assert len(hashed) == 16
        assert hash_ip("8.8.8.8") == hashed

    def test_none(self):
        assert hash_ip(None) is None


class TestShouldSample:
    def test_unknown_event_always_logged(self):
        assert should_sample("not_configured") is True

    def test_zero_rate_never_logged(self, monkeypatch):
        monkeypatch.setitem(shared_logging.SAMPLING_RATES, "url_redirect", 0.0)
        assert should_sample("url_redirect") is False

    def test_full_rate_always_logged(self, monkeypatch):
        monkeypatch.setitem(shared_logging.SAMPLING_RATES, "url_redirect", 1.0)
        assert should_sample("url_redirect") is True


def test_redact_sensitive_fields():
    event = {"event": "provider_call", "ipinfo_token": "abc", "api_secret": "x", "short_id": "abc123"}
    result = redact_sensitive_fields(None, "info", event)
    assert result["ipinfo_token"] == "***REDACTED***"
    assert result["api_secret"] == "***REDACTED***"
    assert result["short_id"] == "abc123"
    assert result["event"] == "provider_call"


class TestSetupLogging:
    @pytest.fixture
    def configure(self, monkeypatch, mocker):
        monkeypatch.setattr(shared_logging, "_is_production", False)
        monkeypatch.setattr(shared_logging, "SAMPLING_RATES", dict(shared_logging.SAMPLING_RATES))
        monkeypatch.delenv("LOG_FORMAT", raising=False)
        mocker.patch.object(shared_logging, "configure_stdlib_logging")
        return mocker.patch.object(shared_logging, "configure_structlog")

    def test_production_defaults_to_json(self, configure):
        shared_logging.setup_logging(LoggingSettings(), is_production=True)
        configure.assert_called_once_with("json")

    def test_development_defaults_to_console(self, configure):
        shared_logging.setup_logging(LoggingSettings(), is_production=False)
        configure.assert_called_once_with("console")

    def test_explicit_format_wins(self, configure):
        shared_logging.setup_logging(LoggingSettings(log_format="console"), is_production=True)
        configure.assert_called_once_with("console")
