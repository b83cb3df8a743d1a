"""Shift log models"""
import datetime as dt
import logging
import math
from typing import Any, Iterable, Optional, Union

from pydantic import BaseModel, ValidationError, field_validator

from tipquest.utils.datetime_helpers import to_local_date

logger = logging.getLogger(__name__)


def _to_number(value: Any) -> float:
    """Coerce a loosely typed numeric field to float, 0 when unusable"""
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(number) or math.isinf(number):
        return 0.0
    return number


class ShiftRecord(BaseModel):
    """
    One logged work session.

    Owned by the host application's shift log; the engine only reads it.
    Missing or non-numeric money, hours and guest fields count as zero so a
    single bad record never breaks a recompute.
    """
    id: Optional[str] = None
    date: dt.date
    cash_tips: float = 0.0
    credit_tips: float = 0.0
    hours_worked: float = 0.0
    hourly_rate: float = 0.0
    guest_count: int = 0
    total_sales: float = 0.0
    section: str = ""
    shift_type: str = "PM"  # AM, PM

    @field_validator('cash_tips', 'credit_tips', 'hours_worked', 'hourly_rate', 'total_sales', mode='before')
    @classmethod
    def coerce_amount(cls, v: Any) -> float:
        return _to_number(v)

    @field_validator('guest_count', mode='before')
    @classmethod
    def coerce_guest_count(cls, v: Any) -> int:
        return int(_to_number(v))

    @field_validator('section', 'shift_type', mode='before')
    @classmethod
    def coerce_label(cls, v: Any) -> str:
        return "" if v is None else str(v)

    @field_validator('date', mode='before')
    @classmethod
    def normalize_date(cls, v: Any) -> dt.date:
        """Reduce timestamps to their calendar day in the configured timezone"""
        if isinstance(v, str):
            try:
                v = dt.datetime.fromisoformat(v.strip())
            except ValueError:
                raise ValueError(f"Invalid shift date: '{v}'. Expected YYYY-MM-DD")
        if isinstance(v, dt.datetime):
            return to_local_date(v)
        return v

    @property
    def total_tips(self) -> float:
        """Cash plus credit tips"""
        return self.cash_tips + self.credit_tips

    @property
    def wage_earnings(self) -> float:
        return self.hours_worked * self.hourly_rate

    @property
    def total_earnings(self) -> float:
        """Tips plus hourly wages"""
        return self.total_tips + self.wage_earnings

    @property
    def tip_percentage(self) -> float:
        """Tips as a percentage of sales, 0 when no sales were recorded"""
        if self.total_sales <= 0:
            return 0.0
        return self.total_tips / self.total_sales * 100


ShiftInput = Union[ShiftRecord, dict]


def coerce_shift_log(entries: Optional[Iterable[ShiftInput]]) -> list[ShiftRecord]:
    """
    Normalize a host-supplied shift log into ShiftRecord objects

    Records without a usable date cannot be placed on the calendar and are
    skipped with a warning; every other field is coerced.

    Args:
        entries: ShiftRecord instances or mappings with the same fields

    Returns:
        List of valid shift records, input order preserved
    """
    if not entries:
        return []

    records = []
    for entry in entries:
        if isinstance(entry, ShiftRecord):
            records.append(entry)
            continue
        try:
            records.append(ShiftRecord.model_validate(entry))
        except ValidationError as e:
            logger.warning(f"Skipping malformed shift record: {e.errors()[0].get('msg')}")

    return records
