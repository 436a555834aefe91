"""Unit tests for the document and value models."""

from datetime import datetime, timedelta, timezone

import pytest
from bson import ObjectId
from pydantic import ValidationError

from schemas.models.base import MongoBaseModel, PyObjectId
from schemas.models.click import ClickDoc
from schemas.models.geo import GeoLocation
from schemas.models.url import LifecycleClass, ShortUrlDoc


# ── Helpers ───────────────────────────────────────────────────────────────────

def now():
    return datetime.now(timezone.utc)


def make_url(**overrides) -> ShortUrlDoc:
    data = {
        "short_id": "abc123",
        "original_url": "https://example.com",
        "user_id": "user-1",
        "created_at": now(),
    }
    data.update(overrides)
    return ShortUrlDoc(**data)


# ── PyObjectId ────────────────────────────────────────────────────────────────

class TestPyObjectId:
    class _Doc(MongoBaseModel):
        pass

    def test_accepts_objectid_instance(self):
        o = ObjectId()
        assert self._Doc(_id=o).id == o

    def test_accepts_valid_string(self):
        o = ObjectId()
        assert self._Doc(_id=str(o)).id == o

    def test_rejects_invalid_string(self):
        with pytest.raises(ValidationError):
            self._Doc(_id="not-an-oid")

    def test_serializes_to_string(self):
        o = ObjectId()
        assert self._Doc(_id=o).model_dump()["id"] == str(o)

    def test_is_objectid_subclass(self):
        assert issubclass(PyObjectId, ObjectId)


# ── GeoLocation ───────────────────────────────────────────────────────────────

class TestGeoLocation:
    def test_unknown(self):
        geo = GeoLocation.unknown()
        assert geo.country == "Unknown"
        assert geo.country_code == "XX"
        assert (geo.region, geo.city) == ("", "")
        assert (geo.latitude, geo.longitude) == (0.0, 0.0)
        assert geo.has_coordinates is False
        assert geo.is_complete is False

    def test_development_fallback(self):
        geo = GeoLocation.development_fallback()
        assert geo.country_code == "US"
        assert geo.city == "San Francisco"
        assert (geo.latitude, geo.longitude) == (37.7749, -122.4194)
        assert geo.is_complete is True

    def test_coordinates_coerced_from_strings(self):
        geo = GeoLocation(country="Japan", country_code="JP", latitude="35.68", longitude="139.69")
        assert geo.latitude == 35.68
        assert geo.longitude == 139.69

    def test_nan_coordinate_becomes_none(self):
        geo = GeoLocation(country="Japan", country_code="JP", latitude=float("nan"), longitude=1.0)
        assert geo.latitude is None
        assert geo.is_complete is False

    def test_missing_country_is_incomplete(self):
        assert GeoLocation(country_code="JP", latitude=35.0, longitude=139.0).is_complete is False

    def test_accepts_camel_case_alias(self):
        assert GeoLocation(countryCode="FR").country_code == "FR"

    def test_frozen(self):
        geo = GeoLocation.unknown()
        with pytest.raises(ValidationError):
            geo.country = "France"


# ── ClickDoc ──────────────────────────────────────────────────────────────────

class TestClickDoc:
    def test_defaults(self):
        click = ClickDoc()
        assert click.ip == "Unknown"
        assert click.user_agent == "Unknown"
        assert click.country == "Unknown"
        assert click.timestamp.tzinfo is not None

    def test_blank_ip_and_user_agent_become_unknown(self):
        click = ClickDoc(ip=None, user_agent="")
        assert click.ip == "Unknown"
        assert click.user_agent == "Unknown"

    def test_naive_timestamp_assumed_utc(self):
        click = ClickDoc(timestamp=datetime(2024, 1, 2, 3, 4, 5))
        assert click.timestamp == datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)

    @pytest.mark.parametrize(
        "raw_lat, raw_lng, lat, lng",
        [
            ("37.4", "-122.1", 37.4, -122.1),
            ("", "", None, None),
            (None, None, None, None),
            ("north", 1, None, 1.0),
        ],
    )
    def test_coordinates_coerced(self, raw_lat, raw_lng, lat, lng):
        click = ClickDoc(latitude=raw_lat, longitude=raw_lng)
        assert (click.latitude, click.longitude) == (lat, lng)

    def test_zero_zero_has_no_coordinates(self):
        assert ClickDoc(latitude=0, longitude=0).has_coordinates is False

    def test_from_geo_copies_location_by_value(self):
        geo = GeoLocation.development_fallback()
        click = ClickDoc.from_geo(geo, ip="8.8.8.8", user_agent="curl/8")
        assert click.country == "United States"
        assert click.country_code == "US"
        assert click.city == "San Francisco"
        assert (click.latitude, click.longitude) == (37.7749, -122.4194)
        assert click.ip == "8.8.8.8"
        assert click.user_agent == "curl/8"

    def test_from_geo_without_country(self):
        click = ClickDoc.from_geo(GeoLocation(), ip=None, user_agent=None)
        assert click.country == "Unknown"
        assert click.ip == "Unknown"

    def test_to_mongo_uses_stored_key_names(self):
        data = ClickDoc(user_agent="ua", country_code="US").to_mongo()
        assert data["userAgent"] == "ua"
        assert data["countryCode"] == "US"
        assert "user_agent" not in data

    def test_reads_stored_document(self):
        click = ClickDoc.model_validate(
            {
                "timestamp": "2024-03-01T10:00:00Z",
                "ip": "1.1.1.1",
                "userAgent": "Mozilla/5.0",
                "country": "Australia",
                "countryCode": "AU",
                "latitude": "-27.47",
                "longitude": "153.02",
            }
        )
        assert click.user_agent == "Mozilla/5.0"
        assert click.has_coordinates is True


# ── ShortUrlDoc ───────────────────────────────────────────────────────────────

class TestShortUrlDoc:
    def test_to_mongo_drops_none_id_and_uses_aliases(self):
        data = make_url().to_mongo()
        assert "_id" not in data
        assert data["shortId"] == "abc123"
        assert data["originalUrl"] == "https://example.com"
        assert data["userId"] == "user-1"
        assert data["clickCount"] == 0
        assert data["clicks"] == []

    def test_from_mongo_none(self):
        assert ShortUrlDoc.from_mongo(None) is None

    def test_from_mongo_round_trip_fields(self):
        oid = ObjectId()
        doc = ShortUrlDoc.from_mongo(
            {
                "_id": oid,
                "shortId": "abc123",
                "originalUrl": "https://example.com",
                "userId": None,
                "isTemporary": True,
                "clicks": [{"ip": "8.8.8.8", "country": "United States"}],
                "clickCount": 1,
                "createdAt": datetime(2024, 1, 1),
            }
        )
        assert doc.id == oid
        assert doc.is_temporary is True
        assert doc.clicks[0].ip == "8.8.8.8"
        assert doc.created_at.tzinfo is not None

    @pytest.mark.parametrize(
        "user_id, is_temporary, expected",
        [
            (None, True, LifecycleClass.EPHEMERAL),
            (None, False, LifecycleClass.EPHEMERAL),
            ("user-1", False, LifecycleClass.DURABLE),
        ],
    )
    def test_lifecycle(self, user_id, is_temporary, expected):
        assert make_url(user_id=user_id, is_temporary=is_temporary).lifecycle is expected

    def test_is_expired(self):
        t = now()
        url = make_url(expires_at=t)
        assert url.is_expired(t - timedelta(seconds=1)) is False
        assert url.is_expired(t) is True

    def test_never_expires_without_expiry(self):
        assert make_url(expires_at=None).is_expired() is False

    @pytest.mark.parametrize(
        "requester, expected",
        [("user-1", True), ("user-2", False), (None, False)],
    )
    def test_is_owned_by(self, requester, expected):
        assert make_url().is_owned_by(requester) is expected

    def test_anonymous_url_owned_by_nobody(self):
        assert make_url(user_id=None).is_owned_by(None) is False

    def test_append_click_keeps_count_in_sync(self):
        url = make_url()
        for _ in range(3):
            url.append_click(ClickDoc(ip="8.8.8.8"))
        assert url.click_count == len(url.clicks) == 3
