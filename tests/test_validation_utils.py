import pytest

from trok.utils.time_utils import days_between, format_http_date
from trok.utils.validation_utils import (
    normalize_email,
    normalize_uk_phone,
    validate_email,
    validate_field_name,
    validate_path_segment,
    validate_payment_reference,
    validate_sort_code,
)


@pytest.mark.parametrize("raw, expected", [
    ("07523 958055", "+447523958055"),
    ("+44 7523 958055", "+447523958055"),
    ("447523958055", "+447523958055"),
    ("0044-7523-958055", "+447523958055"),
])
def test_normalize_uk_phone(raw, expected):
    assert normalize_uk_phone(raw) == expected


def test_normalize_uk_phone_rejects_foreign_numbers():
    assert normalize_uk_phone("+1 415 555 0100") is None


def test_email_helpers():
    assert normalize_email("  Ops@FleetCo.CO.UK ") == "ops@fleetco.co.uk"
    assert validate_email("ops@fleetco.co.uk")
    assert not validate_email("ops@fleetco")


def test_payment_reference():
    assert validate_payment_reference("TOPUP 42")
    assert not validate_payment_reference("TOPUP-42")
    assert not validate_payment_reference("X" * 19)


def test_sort_code():
    assert validate_sort_code("04-00-04")
    assert not validate_sort_code("04-00")


def test_path_segment():
    assert validate_path_segment("Bank statement (March).pdf")
    assert not validate_path_segment("..")
    assert not validate_path_segment("a/b")


def test_field_name():
    assert validate_field_name("business_name")
    assert not validate_field_name("$where")
    assert not validate_field_name("address.line1")
    assert not validate_field_name("")


def test_days_between():
    assert days_between(0, 3 * 24 * 60 * 60) == 3


def test_format_http_date():
    from datetime import datetime, timezone
    assert format_http_date(datetime(2026, 10, 19, 14, 0, tzinfo=timezone.utc)) == "Mon, 19 Oct 2026 14:00:00 GMT"
