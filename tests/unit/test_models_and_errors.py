from datetime import datetime, timedelta, timezone

import pytest

from shortlink_registry import errors
from shortlink_registry.models import ShortLink

NOW = datetime(2026, 1, 1, tzinfo=timezone.utc)


def make_link(**kwargs):
    base = dict(id="id-1", owner_id="u1", code="abc2345", destination_url="https://example.com", created_at=NOW)
    base.update(kwargs)
    return ShortLink(**base)


@pytest.mark.parametrize(
    "expires_at,expired",
    [
        (None, False),
        (NOW + timedelta(seconds=1), False),
        (NOW, True),
        (NOW - timedelta(seconds=1), True),
    ],
)
def test_is_expired_boundary(expires_at, expired):
    assert make_link(expires_at=expires_at).is_expired(NOW) is expired


def test_public_dict_hides_owner():
    data = make_link(label="x", expires_at=NOW).to_public_dict()
    assert "owner_id" not in data
    assert data == {
        "id": "id-1",
        "code": "abc2345",
        "destination_url": "https://example.com",
        "label": "x",
        "expires_at": NOW.isoformat(),
        "click_count": 0,
        "created_at": NOW.isoformat(),
    }


def test_with_clicks_returns_copy():
    link = make_link()
    bumped = link.with_clicks(5)
    assert bumped.click_count == 5 and link.click_count == 0


def test_error_kinds_and_statuses_are_distinct():
    samples = [
        errors.Unauthorized(),
        errors.InvalidInput("code"),
        errors.NotFound(),
        errors.Expired(),
        errors.CodeAlreadyExists("promo"),
        errors.CodeExhausted(3),
        errors.StorageFailure(),
    ]
    kinds = {e.kind for e in samples}
    statuses = {e.status_code for e in samples}
    assert len(kinds) == len(samples)
    assert len(statuses) == len(samples)
    assert all(isinstance(e, errors.ShortLinkError) for e in samples)


def test_invalid_input_carries_field():
    err = errors.InvalidInput("expiresAt")
    assert isinstance(err, ValueError)
    assert err.to_dict() == {"error": "invalid_input", "detail": "expiresAt is invalid", "field": "expiresAt"}
