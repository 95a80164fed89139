import uuid
from datetime import timedelta

import pytest

from conftest import QR_SECRET
from errors import InvalidInputError, NotFoundError
from service_modules.qr_codes import issue_qr_token, read_qr_token
from service_modules.validation_service import remaining_time


@pytest.fixture
def paid_pass(pass_service, catalog):
    purchase = pass_service.create_pending_purchase(catalog["week"], user_id="user-a", device_id="device-1")
    return pass_service.confirm_payment(purchase["pass_id"], "pay_123", caller_user_id="user-a")


def test_valid_pass_details(validation_service, user_service, paid_pass, clock):
    user_service.upsert_user("user-a", email="asha@example.com", name="Asha")

    result = validation_service.validate(paid_pass["id"])

    assert result["valid"] is True
    details = result["pass_details"]
    assert details["pass_type"] == "7 Day Pass"
    assert details["gym_name"] == "Veer's Gym"
    assert details["amount"] == "50.00"
    assert details["currency"] == "INR"
    assert details["status"] == "succeeded"
    assert details["remaining_minutes"] == 7 * 24 * 60
    assert details["remaining_hours"] == 7 * 24
    assert details["holder"] == {
        "user_id": "user-a",
        "name": "Asha",
        "email": "asha@example.com",
        "device_id": "device-1",
    }


def test_remaining_time_rounds_up(validation_service, paid_pass, clock):
    # 61.5 minutes left
    clock.advance(days=7)
    clock.advance(minutes=-61, seconds=-30)

    details = validation_service.validate(paid_pass["id"])["pass_details"]
    assert details["remaining_minutes"] == 62
    assert details["remaining_hours"] == 2


def test_remaining_time_helper(clock):
    assert remaining_time(clock.now + timedelta(seconds=1), clock.now) == (1, 1)
    assert remaining_time(clock.now + timedelta(minutes=60), clock.now) == (60, 1)
    assert remaining_time(clock.now + timedelta(minutes=60, seconds=1), clock.now) == (61, 2)


def test_expired_pass_is_invalid(validation_service, paid_pass, clock):
    clock.advance(days=8)

    result = validation_service.validate(paid_pass["id"])
    assert result == {"valid": False, "reason": "expired"}


def test_pass_invalid_at_exact_expiry(validation_service, paid_pass, clock):
    clock.advance(days=7)

    assert validation_service.validate(paid_pass["id"]) == {"valid": False, "reason": "expired"}


def test_pending_pass_is_invalid(validation_service, pass_service, catalog):
    purchase = pass_service.create_pending_purchase(catalog["week"], device_id="device-1")

    result = validation_service.validate(purchase["pass_id"])
    assert result == {"valid": False, "reason": "payment_pending"}


def test_failed_pass_is_invalid(validation_service, pass_service, catalog):
    purchase = pass_service.create_pending_purchase(catalog["week"], device_id="device-1")
    pass_service.mark_order_failed(purchase["order_id"])

    assert validation_service.validate(purchase["pass_id"]) == {"valid": False, "reason": "payment_failed"}


def test_malformed_pass_id(validation_service):
    with pytest.raises(InvalidInputError):
        validation_service.validate("not-a-uuid")
    with pytest.raises(InvalidInputError):
        validation_service.validate("")


def test_unknown_pass_id(validation_service, catalog):
    with pytest.raises(NotFoundError):
        validation_service.validate(str(uuid.uuid4()))


def test_validate_qr_token(validation_service, paid_pass):
    result = validation_service.validate_qr(paid_pass["qr_code_value"])

    assert result["valid"] is True
    assert result["pass_details"]["pass_id"] == paid_pass["id"]


def test_forged_qr_token_rejected(validation_service, paid_pass):
    forged = issue_qr_token(paid_pass["id"], secret="attacker-secret")

    with pytest.raises(InvalidInputError):
        validation_service.validate_qr(forged)


def test_garbage_qr_rejected(validation_service):
    with pytest.raises(InvalidInputError):
        validation_service.validate_qr("pending_0123456789abcdef")
    with pytest.raises(InvalidInputError):
        validation_service.validate_qr("definitely not a token")


def test_superseded_qr_token(validation_service, paid_pass):
    # Correctly signed for this pass, but not the code the pass was issued
    stale = issue_qr_token(paid_pass["id"], secret=QR_SECRET)

    assert validation_service.validate_qr(stale) == {"valid": False, "reason": "superseded"}


def test_qr_token_round_trip():
    token = issue_qr_token("pass-1", secret=QR_SECRET)
    assert read_qr_token(token, secret=QR_SECRET) == "pass-1"
    assert token != issue_qr_token("pass-1", secret=QR_SECRET)
