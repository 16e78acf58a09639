import asyncio
from datetime import timedelta

import pytest

from trok.core.exceptions import ValidationError
from trok.services import signup_service, user_service
from trok.utils.time_utils import utcnow


def run(coro):
    return asyncio.run(coro)


def test_update_onboarding_creates_record_when_missing(db):
    record = run(signup_service.update_onboarding("new@fleetco.co.uk", 3, {"monthly_spend": 2000}))

    assert record["email"] == "new@fleetco.co.uk"
    assert record["onboarding_step"] == 3
    assert record["monthly_spend"] == 2000
    assert "created_at" in record


def test_update_onboarding_ignores_reserved_keys(db):
    run(signup_service.stage_signup({
        "firstname": "A", "lastname": "B", "email": "a@b.co", "password": "p", "phone": "07000000000"
    }))

    record = run(signup_service.update_onboarding("a@b.co", 2, {
        "email": "hijack@b.co",
        "expires_at": "never",
        "company": "Acme"
    }))

    assert record["email"] == "a@b.co"
    assert record["company"] == "Acme"
    assert record["expires_at"] > utcnow()


def test_update_onboarding_resets_expiry(db):
    db["signups"].documents.append({
        "email": "a@b.co",
        "onboarding_step": 1,
        "expires_at": utcnow() + timedelta(minutes=5),
    })

    record = run(signup_service.update_onboarding("a@b.co", 2, {}))

    assert record["expires_at"] > utcnow() + timedelta(days=1)


def test_expired_record_is_not_returned(db):
    db["signups"].documents.append({
        "email": "old@b.co",
        "firstname": "Old",
        "expires_at": utcnow() - timedelta(seconds=1),
    })

    assert run(signup_service.get_signup("old@b.co")) is None


def test_expired_record_starts_over_on_update(db):
    db["signups"].documents.append({
        "email": "old@b.co",
        "firstname": "Old",
        "expires_at": utcnow() - timedelta(seconds=1),
    })

    record = run(signup_service.update_onboarding("old@b.co", 2, {"company": "New"}))

    assert "firstname" not in record
    assert record["company"] == "New"


def test_set_signup_fields_needs_live_record(db):
    assert run(signup_service.set_signup_fields("missing@b.co", {"plaid_item_id": "x"})) is False

    run(signup_service.update_onboarding("live@b.co", 2, {}))
    assert run(signup_service.set_signup_fields("live@b.co", {"plaid_item_id": "x"})) is True
    assert run(signup_service.get_signup("live@b.co"))["plaid_item_id"] == "x"


def test_clear_signup(db):
    run(signup_service.update_onboarding("a@b.co", 2, {}))

    assert run(signup_service.clear_signup("A@B.co")) is True
    assert run(signup_service.clear_signup("a@b.co")) is False


def test_set_signup_fields_rejects_nested_paths(db):
    run(signup_service.update_onboarding("live@b.co", 2, {}))

    with pytest.raises(ValidationError) as exc_info:
        run(signup_service.set_signup_fields("live@b.co", {"plaid.item_id": "x", "$inc": 1}))

    assert exc_info.value.details == {"keys": ["$inc", "plaid.item_id"]}
    assert "plaid" not in run(signup_service.get_signup("live@b.co"))


def test_create_user_skips_unsafe_staged_keys(db):
    user = run(user_service.create_user("a@b.co", staged={
        "firstname": "A",
        "business_name": "Acme",
        "$where": "1",
        "address.line1": "x",
    }))

    assert user["business"] == {"business_name": "Acme"}
