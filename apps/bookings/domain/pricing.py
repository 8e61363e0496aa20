"""
Rental Pricing

Pure cost derivation for a rental period. The booking model calls this
on every save, so the stored total is always consistent with the dates
and rates.
"""

import math
from datetime import date, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal

from shared.domain.value_objects import DateRange, RentalRates

ONE_DAY = timedelta(days=1)
DAYS_PER_WEEK = 7
DAYS_PER_MONTH = 30
CENTS = Decimal('0.01')


def rental_days(start: date | datetime, end: date | datetime) -> int:
    """Whole days billed for [start, end); partial days round up."""
    return math.ceil((end - start) / ONE_DAY)


def calculate_total_cost(period: DateRange, rates: RentalRates) -> Decimal:
    """
    Cost of renting for ``period`` at ``rates``.

    The monthly rate applies from 30 days, the weekly rate from 7 days;
    leftover days are billed at the daily rate. A tier is skipped when
    its rate is not set.

    Examples:
        - 4 days at 100/day -> 400
        - 36 days at 10/day, 250/month -> 250 + 6 * 10 = 310
    """
    days = rental_days(period.start_date, period.end_date)

    if days >= DAYS_PER_MONTH and rates.has_monthly:
        months, remainder = divmod(days, DAYS_PER_MONTH)
        cost = months * rates.monthly + remainder * rates.daily
    elif days >= DAYS_PER_WEEK and rates.has_weekly:
        weeks, remainder = divmod(days, DAYS_PER_WEEK)
        cost = weeks * rates.weekly + remainder * rates.daily
    else:
        cost = days * rates.daily

    return Decimal(cost).quantize(CENTS, rounding=ROUND_HALF_UP)
