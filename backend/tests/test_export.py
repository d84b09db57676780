from datetime import datetime

from couponapp.models import Coupon, CouponStatus
from couponapp.services.export import CSV_FIELDS, coupons_to_csv


def _coupon(**kw):
    values = dict(
        coupon_id="c-1",
        holder_name="Ana",
        holder_phone="+15551112222",
        holder_address="1 Main St",
        fixed_code="D0nP3dro20",
        status=CouponStatus.UNUSED,
        created_at=datetime(2026, 1, 2, 3, 4, 5),
        used_at=None,
    )
    values.update(kw)
    return Coupon(**values)


def test_empty_ledger_exports_nothing():
    assert coupons_to_csv([]) == ""


def test_header_and_row():
    lines = coupons_to_csv([_coupon()]).splitlines()
    assert lines[0] == ";".join(CSV_FIELDS)
    assert lines[1] == "c-1;Ana;+15551112222;1 Main St;D0nP3dro20;UNUSED;2026-01-02T03:04:05;"


def test_values_with_delimiter_or_quotes_are_quoted():
    out = coupons_to_csv([_coupon(holder_address='Apt 2; "Rear"')])
    assert '"Apt 2; ""Rear"""' in out
