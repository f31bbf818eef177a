"""Recurring bill scheduling"""

from datetime import date, timedelta
from typing import Dict, Iterable

from cayden_gateway.domain.models import Bill, BillCategory, BillFrequency
from cayden_gateway.utils.date_utils import add_months, clamp_day
from cayden_gateway.utils.money import divide_half_up

CATEGORY_ICONS: Dict[str, str] = {
    BillCategory.SUBSCRIPTION.value: "tv-outline",
    BillCategory.UTILITY.value: "flash-outline",
    BillCategory.RENT.value: "home-outline",
    BillCategory.INSURANCE.value: "shield-outline",
    BillCategory.LOAN.value: "cash-outline",
}
DEFAULT_ICON = "receipt-outline"

# Monthly multipliers in 300ths: weekly 4.33, biweekly 2.17, quarterly 1/3, yearly 1/12
MONTHLY_FACTOR_DENOMINATOR = 300
MONTHLY_FACTORS: Dict[str, int] = {
    BillFrequency.WEEKLY.value: 1299,
    BillFrequency.BIWEEKLY.value: 651,
    BillFrequency.MONTHLY.value: 300,
    BillFrequency.QUARTERLY.value: 100,
    BillFrequency.YEARLY.value: 25,
}


def icon_for_category(category: str) -> str:
    return CATEGORY_ICONS.get(category, DEFAULT_ICON)


DAY_PERIODS = {
    BillFrequency.WEEKLY.value: 7,
    BillFrequency.BIWEEKLY.value: 14,
}
MONTH_PERIODS = {
    BillFrequency.MONTHLY.value: 1,
    BillFrequency.QUARTERLY.value: 3,
    BillFrequency.YEARLY.value: 12,
}


def nth_due_date(first: date, due_day: int, frequency: str, periods: int) -> date:
    """Due date `periods` periods after `first`; month-based periods keep the original due day"""
    if frequency in DAY_PERIODS:
        return first + timedelta(days=DAY_PERIODS[frequency] * periods)
    month_start = add_months(first.replace(day=1), MONTH_PERIODS.get(frequency, 1) * periods)
    return clamp_day(month_start.year, month_start.month, due_day)


def calculate_next_due_date(due_day: int, frequency: str, today: date) -> date:
    """
    Next due date for a bill.

    Starts from due_day in the current month (clamped to the month's last
    day) and moves forward one period at a time until it lands after today.

    Example (today = 2026-10-17):
        due_day=25 monthly -> 2026-10-25
        due_day=5 monthly  -> 2026-11-05
        due_day=5 weekly   -> 2026-10-19 (10-05 -> 10-12 -> 10-19)
    """
    first = clamp_day(today.year, today.month, due_day)
    candidate = first
    periods = 0
    while candidate <= today:
        periods += 1
        candidate = nth_due_date(first, due_day, frequency, periods)
    return candidate


def monthly_estimate_cents(bills: Iterable[Bill]) -> int:
    """Sum of bills normalized to one month, rounded half-up to the cent"""
    total = sum(
        bill.amount_cents * MONTHLY_FACTORS.get(bill.frequency, MONTHLY_FACTOR_DENOMINATOR) for bill in bills
    )
    return divide_half_up(total, MONTHLY_FACTOR_DENOMINATOR)
