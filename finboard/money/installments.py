"""
Installment Splitter

Spreads a total over an inclusive month range as projection cards.

CONSERVATION: every installment but the last gets floor(total / months);
the last one absorbs the remainder. The installments always sum to the
total, to the cent.

    split_installments(10000, 3) -> [3333, 3333, 3334]
"""

import calendar
from datetime import datetime, time, timezone
from typing import Callable, Optional

from pydantic import BaseModel, ConfigDict, Field

from finboard.config import get_settings
from finboard.errors import InvalidAmountError, InvalidMonthRangeError
from finboard.models.board import Card, new_identifier


def month_count(start_year: int, start_month: int, end_year: int, end_month: int) -> int:
    """Number of months from start to end, both included. May be zero or negative."""
    return (end_year - start_year) * 12 + (end_month - start_month) + 1


def split_installments(total_minor_units: int, count: int) -> list[int]:
    """
    Split a total into `count` installments that sum exactly to it.

    Raises:
        InvalidMonthRangeError: count is zero or negative
    """
    if count < 1:
        raise InvalidMonthRangeError(
            f"Installment range must cover at least one month, got {count}"
        )
    base = total_minor_units // count
    last = total_minor_units - base * (count - 1)
    return [base] * (count - 1) + [last]


def add_months(year: int, month: int, offset: int) -> tuple[int, int]:
    """(year, month) shifted by `offset` calendar months."""
    index = year * 12 + (month - 1) + offset
    return index // 12, index % 12 + 1


def clamp_day(year: int, month: int, day: int) -> int:
    """Day of month clamped to the last valid day (31 in April -> 30)."""
    return min(day, calendar.monthrange(year, month)[1])


def installment_dates(
    start_year: int,
    start_month: int,
    count: int,
    day_of_month: int,
    time_of_day: Optional[time] = None,
) -> list[datetime]:
    """
    One date per installment, a calendar month apart, starting at the start month.

    All dates are UTC at the same time of day.
    """
    time_of_day = time_of_day or get_settings().board.installment_time
    tz = time_of_day.tzinfo or timezone.utc

    dates = []
    for offset in range(count):
        year, month = add_months(start_year, start_month, offset)
        dates.append(datetime(
            year,
            month,
            clamp_day(year, month, day_of_month),
            time_of_day.hour,
            time_of_day.minute,
            tzinfo=tz,
        ).astimezone(timezone.utc))
    return dates


class InstallmentPlan(BaseModel):
    """
    A request to spread a total over a month range in one list.

    Months are inclusive: January to March is three installments.
    """
    model_config = ConfigDict(frozen=True)

    list_id: str = Field(..., min_length=1)
    total_minor_units: int = Field(..., gt=0, strict=True)
    start_year: int = Field(..., ge=1, le=9999)
    start_month: int = Field(..., ge=1, le=12)
    end_year: int = Field(..., ge=1, le=9999)
    end_month: int = Field(..., ge=1, le=12)
    day_of_month: Optional[int] = Field(
        default=None,
        ge=1,
        le=31,
        description="Defaults to the board's installment day"
    )

    @property
    def month_count(self) -> int:
        return month_count(self.start_year, self.start_month, self.end_year, self.end_month)


def plan_installments(
    plan: InstallmentPlan,
    id_factory: Callable[[str], str] = new_identifier,
    time_of_day: Optional[time] = None,
) -> list[Card]:
    """
    Build the projection cards for a plan.

    Raises:
        InvalidMonthRangeError: end month is before start month
        InvalidAmountError: total is smaller than one cent per month
    """
    count = plan.month_count
    amounts = split_installments(plan.total_minor_units, count)
    if amounts[0] <= 0:
        raise InvalidAmountError(
            f"Total of {plan.total_minor_units} minor units is too small "
            f"for {count} installments"
        )

    day = plan.day_of_month or get_settings().board.installment_day_of_month
    dates = installment_dates(plan.start_year, plan.start_month, count, day, time_of_day)

    return [
        Card(
            id=id_factory("card"),
            list_id=plan.list_id,
            amount_minor_units=amount,
            occurred_at=occurred_at,
            is_projection=True,
        )
        for amount, occurred_at in zip(amounts, dates)
    ]
