"""Semicolon-delimited CSV snapshot of the coupon ledger for the admin panel."""
import csv
import io
from datetime import datetime
from typing import Iterable

from couponapp.models.coupon import Coupon

CSV_FIELDS = [
    "coupon_id",
    "holder_name",
    "holder_phone",
    "holder_address",
    "fixed_code",
    "status",
    "created_at",
    "used_at",
]


def _cell(value) -> str:
    if value is None:
        return ""
    if isinstance(value, datetime):
        return value.isoformat()
    if hasattr(value, "value"):  # enums
        return str(value.value)
    return str(value)


def coupons_to_csv(coupons: Iterable[Coupon]) -> str:
    rows = list(coupons)
    if not rows:
        return ""
    buf = io.StringIO()
    writer = csv.writer(buf, delimiter=";", quotechar='"', quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
    writer.writerow(CSV_FIELDS)
    for coupon in rows:
        writer.writerow([_cell(getattr(coupon, field)) for field in CSV_FIELDS])
    return buf.getvalue()
