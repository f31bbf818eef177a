"""Eligibility scoring engine - rule-based gate for ExtraCash advances"""

from datetime import timedelta
from statistics import mean, pstdev
from typing import List, Tuple

from cayden_gateway.domain.models import (
    Deposit,
    EligibilityFactors,
    EligibilityInputs,
    EligibilityResult,
)
from cayden_gateway.utils.date_utils import days_between
from cayden_gateway.utils.money import divide_half_up

# Factor weights in percent; they sum to 100
INCOME_WEIGHT = 30
BALANCE_WEIGHT = 25
SPENDING_WEIGHT = 20
AGE_WEIGHT = 10
REPAYMENT_WEIGHT = 15

ELIGIBLE_MIN_SCORE = 31
NO_DEPOSIT_BALANCE_FLOOR_CENTS = 50_000  # $500

# (minimum score, max advance in cents, message), highest band first
SCORE_BANDS: List[Tuple[int, int, str]] = [
    (86, 50_000, "Excellent! You qualify for the maximum advance."),
    (71, 40_000, "Great standing! You qualify for up to $400."),
    (51, 25_000, "Good standing. You qualify for up to $250."),
    (31, 10_000, "You qualify for a starter advance of up to $100."),
]
NOT_ELIGIBLE_MESSAGE = (
    "You are not yet eligible for an advance. "
    "Keep making regular deposits and maintaining a healthy balance."
)
NO_CHECKING_MESSAGE = "No checking account found"
OUTSTANDING_ADVANCE_MESSAGE = "You have an outstanding advance. Please repay it first."


def score_income_consistency(deposits: List[Deposit]) -> int:
    """
    Score deposit regularity over the trailing 90 days.

    Base points by deposit count: 0 -> 0, 1-2 -> 30, 3-5 -> 70, 6+ -> 100.
    With 2+ deposits the coefficient of variation of the amounts adjusts it:
    cv < 0.1 adds 10 (capped at 100), cv > 0.5 subtracts 20 (floored at 0).
    """
    count = len(deposits)
    if count >= 6:
        score = 100
    elif count >= 3:
        score = 70
    elif count >= 1:
        score = 30
    else:
        score = 0

    if count >= 2:
        amounts = [d.amount_cents for d in deposits]
        avg = mean(amounts)
        cv = pstdev(amounts) / avg if avg > 0 else 1.0

        if cv < 0.1:
            score = min(score + 10, 100)
        elif cv > 0.5:
            score = max(score - 20, 0)

    return score


def score_average_balance(current_balance_cents: int, monthly_deposits_cents: int) -> int:
    """
    Ratio of current balance to the last 30 days of deposits.

    >= 0.5 -> 100, >= 0.25 -> 70, >= 0.1 -> 40, else 15.
    Without recent deposits a balance above $500 still earns 50.
    """
    if monthly_deposits_cents > 0:
        # Integer cross-multiplication keeps the thresholds exact
        if 2 * current_balance_cents >= monthly_deposits_cents:
            return 100
        if 4 * current_balance_cents >= monthly_deposits_cents:
            return 70
        if 10 * current_balance_cents >= monthly_deposits_cents:
            return 40
        return 15

    if current_balance_cents > NO_DEPOSIT_BALANCE_FLOOR_CENTS:
        return 50
    return 0


def score_spending_patterns(income_cents: int, expenses_cents: int) -> int:
    """Savings rate (income - expenses) / income: >= 0.2 -> 100, >= 0.1 -> 75, >= 0 -> 50, else 20"""
    if income_cents <= 0:
        return 0

    saved = income_cents - expenses_cents
    if 5 * saved >= income_cents:
        return 100
    if 10 * saved >= income_cents:
        return 75
    if saved >= 0:
        return 50
    return 20


def score_account_age(age_days: int) -> int:
    """>= 180 days -> 100, >= 90 -> 75, >= 30 -> 50, else 20"""
    if age_days >= 180:
        return 100
    if age_days >= 90:
        return 75
    if age_days >= 30:
        return 50
    return 20


def score_repayment_history(repaid: int, overdue: int) -> int:
    """Share of past advances repaid rather than overdue; neutral 50 with no history"""
    total = repaid + overdue
    if total == 0:
        return 50
    return divide_half_up(repaid * 100, total)


def calculate_eligibility_score(factors: EligibilityFactors) -> int:
    """Weighted composite 0-100, rounded half-up to the nearest integer"""
    weighted = (
        factors.income_consistency * INCOME_WEIGHT
        + factors.average_balance * BALANCE_WEIGHT
        + factors.spending_patterns * SPENDING_WEIGHT
        + factors.account_age * AGE_WEIGHT
        + factors.repayment_history * REPAYMENT_WEIGHT
    )
    return divide_half_up(weighted, 100)


def determine_max_advance(score: int) -> Tuple[bool, int, str]:
    """
    Map score to the advance cap.

    Score bands:
    - 86+:   $500
    - 71-85: $400
    - 51-70: $250
    - 31-50: $100
    - <31:   not eligible

    Returns: (eligible, max_amount_cents, message)
    """
    for min_score, max_cents, message in SCORE_BANDS:
        if score >= min_score:
            return score >= ELIGIBLE_MIN_SCORE, max_cents, message
    return False, 0, NOT_ELIGIBLE_MESSAGE


def ineligible(message: str) -> EligibilityResult:
    """Hard block: score 0 and no advance regardless of history"""
    return EligibilityResult(
        eligible=False,
        score=0,
        max_amount_cents=0,
        factors=EligibilityFactors(),
        message=message,
    )


def evaluate_eligibility(inputs: EligibilityInputs) -> EligibilityResult:
    """
    Main entry point: score the five factors and map to an advance cap.

    Pure and read-only; hard blocks (no checking account, outstanding advance)
    are applied by the caller before gathering inputs.
    """
    thirty_days_ago = inputs.now - timedelta(days=30)
    income_cents = sum(d.amount_cents for d in inputs.deposits_90d)
    monthly_deposits_cents = sum(
        d.amount_cents for d in inputs.deposits_90d if d.created_at >= thirty_days_ago
    )

    factors = EligibilityFactors(
        income_consistency=score_income_consistency(inputs.deposits_90d),
        average_balance=score_average_balance(inputs.current_balance_cents, monthly_deposits_cents),
        spending_patterns=score_spending_patterns(income_cents, inputs.expenses_90d_cents),
        account_age=score_account_age(days_between(inputs.account_created_at, inputs.now)),
        repayment_history=score_repayment_history(inputs.repaid_advances, inputs.overdue_advances),
    )

    score = calculate_eligibility_score(factors)
    eligible, max_amount_cents, message = determine_max_advance(score)

    return EligibilityResult(
        eligible=eligible,
        score=score,
        max_amount_cents=max_amount_cents,
        factors=factors,
        message=message,
    )
