"""
Common Value Objects

- DateRange: Half-open rental period [start_date, end_date)
- RentalRates: Daily / weekly / monthly rate card
"""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, InvalidOperation

from shared.domain.base import ValueObject
from shared.domain.exceptions import ValidationError


def _as_date(value, field: str) -> date:
    """Normalize ISO strings and datetimes to a plain date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip())
        except ValueError:
            raise ValidationError(f"Invalid date: {value!r}", field=field) from None
    raise ValidationError(f"Invalid date: {value!r}", field=field)


@dataclass(frozen=True)
class DateRange(ValueObject):
    """
    Date range value object

    Represents a range from start_date (inclusive) to end_date (exclusive).
    A rental ending on day X frees the equipment for a rental starting on X.
    """
    start_date: date
    end_date: date

    def __post_init__(self):
        if self.start_date is None or self.end_date is None:
            raise ValidationError("Start date and end date are required")
        object.__setattr__(self, "start_date", _as_date(self.start_date, "start_date"))
        object.__setattr__(self, "end_date", _as_date(self.end_date, "end_date"))
        if self.start_date >= self.end_date:
            raise ValidationError(
                f"End date ({self.end_date}) must be after start date ({self.start_date})"
            )

    def overlaps_with(self, other: 'DateRange') -> bool:
        """
        Check if this range overlaps with another

        Examples:
            - DateRange(1, 5) overlaps with DateRange(4, 8) -> True
            - DateRange(1, 5) overlaps with DateRange(5, 8) -> False (adjacent)
        """
        if not isinstance(other, DateRange):
            raise TypeError("Can only check overlap with another DateRange")

        return (self.start_date < other.end_date and
                self.end_date > other.start_date)

    @property
    def days(self) -> int:
        """Number of whole rental days in the range."""
        return (self.end_date - self.start_date).days

    def __str__(self):
        return f"{self.start_date.isoformat()} - {self.end_date.isoformat()}"

    def __repr__(self):
        return f"DateRange({self.start_date}, {self.end_date})"


def _to_decimal(value, field_name: str) -> Decimal | None:
    if value is None or value == '':
        return None
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field_name} must be a number", field=field_name)
    if amount < 0:
        raise ValidationError(f"{field_name} cannot be negative", field=field_name)
    return amount


@dataclass(frozen=True)
class RentalRates(ValueObject):
    """
    Rate card for a rental

    The daily rate is mandatory. Weekly and monthly rates are optional and
    a zero value counts as "not set", matching how equipment stores them.
    """
    daily: Decimal
    weekly: Decimal | None = None
    monthly: Decimal | None = None

    def __post_init__(self):
        daily = _to_decimal(self.daily, 'Daily rate')
        if daily is None:
            raise ValidationError("Daily rate is required", field='daily')
        object.__setattr__(self, 'daily', daily)
        object.__setattr__(self, 'weekly', _to_decimal(self.weekly, 'Weekly rate'))
        object.__setattr__(self, 'monthly', _to_decimal(self.monthly, 'Monthly rate'))

    @property
    def has_weekly(self) -> bool:
        return bool(self.weekly)

    @property
    def has_monthly(self) -> bool:
        return bool(self.monthly)

    @classmethod
    def from_mapping(cls, data: dict) -> 'RentalRates':
        """Build from a ``{"daily": .., "weekly": .., "monthly": ..}`` mapping."""
        if data is None:
            raise ValidationError("Rental rates are required", field='rates')
        return cls(
            daily=data.get('daily'),
            weekly=data.get('weekly'),
            monthly=data.get('monthly'),
        )
