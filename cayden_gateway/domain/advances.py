"""ExtraCash advance pricing and status state machine"""

from datetime import date, timedelta
from typing import Dict, FrozenSet

from cayden_gateway.domain.exceptions import InvalidTransitionError
from cayden_gateway.domain.models import AdvanceStatus, DeliverySpeed
from cayden_gateway.utils.money import percent_of

EXPRESS_FEE_PERCENT = 5
MIN_ADVANCE_CENTS = 2_500  # $25
REPAYMENT_TERM_DAYS = 14

# Statuses that block a new advance request
OUTSTANDING_STATUSES: FrozenSet[str] = frozenset(
    {
        AdvanceStatus.PENDING.value,
        AdvanceStatus.APPROVED.value,
        AdvanceStatus.FUNDED.value,
        AdvanceStatus.REPAYMENT_SCHEDULED.value,
    }
)

REPAYABLE_STATUSES: FrozenSet[str] = frozenset(
    {
        AdvanceStatus.FUNDED.value,
        AdvanceStatus.REPAYMENT_SCHEDULED.value,
        AdvanceStatus.OVERDUE.value,
    }
)

OVERDUE_ELIGIBLE_STATUSES: FrozenSet[str] = frozenset(
    {
        AdvanceStatus.FUNDED.value,
        AdvanceStatus.REPAYMENT_SCHEDULED.value,
    }
)

TRANSITIONS: Dict[str, FrozenSet[str]] = {
    AdvanceStatus.PENDING.value: frozenset({AdvanceStatus.APPROVED.value, AdvanceStatus.FUNDED.value}),
    AdvanceStatus.APPROVED.value: frozenset({AdvanceStatus.FUNDED.value}),
    AdvanceStatus.FUNDED.value: frozenset(
        {
            AdvanceStatus.REPAYMENT_SCHEDULED.value,
            AdvanceStatus.REPAID.value,
            AdvanceStatus.OVERDUE.value,
        }
    ),
    AdvanceStatus.REPAYMENT_SCHEDULED.value: frozenset(
        {AdvanceStatus.REPAID.value, AdvanceStatus.OVERDUE.value}
    ),
    AdvanceStatus.OVERDUE.value: frozenset({AdvanceStatus.REPAID.value}),
    AdvanceStatus.REPAID.value: frozenset(),
}


def calculate_fee(amount_cents: int, delivery_speed: str) -> int:
    """
    Express delivery costs 5% of the amount, rounded half-up at the cent.
    Standard delivery is free.

    Example:
        $200.00 express -> $10.00
        $33.33 express  -> $1.67 (166.65 cents rounds up)
    """
    if delivery_speed == DeliverySpeed.EXPRESS.value:
        return percent_of(amount_cents, EXPRESS_FEE_PERCENT)
    return 0


def initial_status(delivery_speed: str) -> str:
    """Express advances are funded immediately, standard ones wait for the funding job"""
    if delivery_speed == DeliverySpeed.EXPRESS.value:
        return AdvanceStatus.FUNDED.value
    return AdvanceStatus.APPROVED.value


def repayment_date_for(requested_on: date) -> date:
    """Repayment is due 14 days after the request, whatever the delivery speed"""
    return requested_on + timedelta(days=REPAYMENT_TERM_DAYS)


def can_transition(current: str, target: str) -> bool:
    return target in TRANSITIONS.get(current, frozenset())


def ensure_transition(current: str, target: str) -> None:
    if not can_transition(current, target):
        raise InvalidTransitionError(f"Advance cannot move from {current} to {target}")
