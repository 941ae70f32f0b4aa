from decimal import Decimal
from types import SimpleNamespace

import pytest

from app.fsm import states
from app.fsm.coupon_flow import CouponApplication, apply_coupon, enter_code, mark_redeemed, remove, resolve
from app.services.coupons import CouponValidation
from app.services.pricing_errors import CouponRejection, InvalidCouponTransition
from tests.fixtures_data import FIXED_NOW, SAVE10


class FakeQuery:
    def __init__(self, result):
        self._result = result

    def filter(self, *_args, **_kwargs):
        return self

    def first(self):
        return self._result


class FakeDb:
    def __init__(self, coupon):
        self._coupon = coupon

    def query(self, _model):
        return FakeQuery(self._coupon)


def _applied() -> CouponApplication:
    validating = enter_code(CouponApplication(), "save10")
    return resolve(validating, CouponValidation(valid=True, discount_amount=Decimal("3000.00"), coupon_code="SAVE10"))


def test_entering_a_code_starts_validation():
    application = enter_code(CouponApplication(), " save10 ")

    assert application.state == states.VALIDATING
    assert application.code == "SAVE10"


def test_empty_code_cannot_be_entered():
    with pytest.raises(InvalidCouponTransition):
        enter_code(CouponApplication(), "   ")


def test_valid_result_applies_coupon():
    application = _applied()

    assert application.state == states.APPLIED
    assert application.discount_amount == Decimal("3000.00")


def test_rejected_coupon_can_be_retried():
    validating = enter_code(CouponApplication(), "nope")
    rejected = resolve(validating, CouponValidation.rejected(CouponRejection.NOT_FOUND, "NOPE"))

    retried = enter_code(rejected, "save10")

    assert rejected.state == states.REJECTED
    assert rejected.reason == CouponRejection.NOT_FOUND
    assert retried.state == states.VALIDATING
    assert retried.reason is None


def test_removing_applied_coupon_clears_discount():
    application = remove(_applied())

    assert application.state == states.UNAPPLIED
    assert application.code is None
    assert application.discount_amount == Decimal("0.00")


def test_applied_coupon_becomes_redeemed():
    assert mark_redeemed(_applied()).state == states.REDEEMED


def test_redeemed_is_terminal():
    redeemed = mark_redeemed(_applied())

    with pytest.raises(InvalidCouponTransition):
        remove(redeemed)
    with pytest.raises(InvalidCouponTransition):
        enter_code(redeemed, "SAVE10")


def test_unapplied_coupon_cannot_be_redeemed():
    with pytest.raises(InvalidCouponTransition):
        mark_redeemed(CouponApplication())


def test_applied_coupon_must_be_removed_before_a_new_code():
    with pytest.raises(InvalidCouponTransition):
        enter_code(_applied(), "OTHER")


def test_apply_coupon_runs_validation_against_the_store():
    coupon = SimpleNamespace(start_date=None, end_date=None, **SAVE10)

    application, validation = apply_coupon(
        FakeDb(coupon),
        tenant_id=1,
        code="save10",
        subtotal=Decimal("30000"),
        now=FIXED_NOW,
    )

    assert validation.valid is True
    assert application.state == states.APPLIED
    assert application.discount_amount == Decimal("3000.00")


def test_apply_coupon_records_rejection():
    application, validation = apply_coupon(
        FakeDb(None),
        tenant_id=1,
        code="ghost",
        subtotal=Decimal("30000"),
        now=FIXED_NOW,
    )

    assert validation.valid is False
    assert application.state == states.REJECTED
    assert application.reason == CouponRejection.NOT_FOUND
