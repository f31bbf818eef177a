"""Unit tests for advance eligibility scoring"""

import pytest
from datetime import datetime, timedelta
from cayden_gateway.domain.models import Deposit, EligibilityFactors, EligibilityInputs
from cayden_gateway.domain.scoring import (
    NOT_ELIGIBLE_MESSAGE,
    calculate_eligibility_score,
    determine_max_advance,
    evaluate_eligibility,
    score_account_age,
    score_average_balance,
    score_income_consistency,
    score_repayment_history,
    score_spending_patterns,
)

NOW = datetime(2026, 10, 17, 12, 0, 0)


def deposits(*amounts_cents, days_ago=1):
    return [Deposit(amount_cents=a, created_at=NOW - timedelta(days=days_ago)) for a in amounts_cents]


def test_income_consistency_base_points_by_count():
    """0 / 1-2 / 3-5 / 6+ deposits map to 0 / 30 / 70 / 100 before the cv adjustment"""
    assert score_income_consistency([]) == 0
    assert score_income_consistency(deposits(50000)) == 30
    # Amounts vary enough to stay between the cv thresholds (no adjustment)
    assert score_income_consistency(deposits(40000, 60000, 50000)) == 70
    assert score_income_consistency(deposits(40000, 60000, 50000, 40000, 60000, 50000)) == 100


def test_income_consistency_cv_bonus_and_penalty():
    """Steady amounts earn +10 (capped), erratic amounts lose 20 (floored)"""
    assert score_income_consistency(deposits(50000, 50000)) == 40
    assert score_income_consistency(deposits(*[50000] * 6)) == 100  # capped
    assert score_income_consistency(deposits(1000, 100000)) == 10  # cv ~0.98 -> 30 - 20


def test_income_consistency_monotonic_in_deposit_count():
    """More equal deposits never lowers the income component"""
    scores = [score_income_consistency(deposits(*[50000] * n)) for n in range(0, 9)]
    assert scores == sorted(scores)


def test_average_balance_ratio_bands():
    """Thresholds are inclusive: exactly 0.5 of monthly deposits is 100"""
    assert score_average_balance(50000, 100000) == 100
    assert score_average_balance(49999, 100000) == 70
    assert score_average_balance(25000, 100000) == 70
    assert score_average_balance(10000, 100000) == 40
    assert score_average_balance(9999, 100000) == 15


def test_average_balance_without_recent_deposits():
    assert score_average_balance(50001, 0) == 50
    assert score_average_balance(50000, 0) == 0  # must be strictly above $500


def test_spending_patterns_savings_rate():
    assert score_spending_patterns(0, 0) == 0
    assert score_spending_patterns(100000, 80000) == 100  # 20% saved
    assert score_spending_patterns(100000, 90000) == 75
    assert score_spending_patterns(100000, 100000) == 50
    assert score_spending_patterns(100000, 100001) == 20


@pytest.mark.parametrize(
    "age_days,expected",
    [(0, 20), (29, 20), (30, 50), (89, 50), (90, 75), (179, 75), (180, 100), (1000, 100)],
)
def test_account_age_bands(age_days, expected):
    assert score_account_age(age_days) == expected


def test_repayment_history():
    assert score_repayment_history(0, 0) == 50  # neutral
    assert score_repayment_history(3, 0) == 100
    assert score_repayment_history(0, 2) == 0
    assert score_repayment_history(2, 1) == 67  # 66.67 rounds to 67


def test_weighted_score_rounds_half_up():
    """30/25/20/10/15 weights; 84.5 rounds to 85"""
    factors = EligibilityFactors(
        income_consistency=100,
        average_balance=100,
        spending_patterns=100,
        account_age=20,
        repayment_history=50,
    )
    assert calculate_eligibility_score(factors) == 85


def test_determine_max_advance_bands():
    assert determine_max_advance(100)[:2] == (True, 50000)
    assert determine_max_advance(86)[:2] == (True, 50000)
    assert determine_max_advance(85)[:2] == (True, 40000)
    assert determine_max_advance(71)[:2] == (True, 40000)
    assert determine_max_advance(70)[:2] == (True, 25000)
    assert determine_max_advance(51)[:2] == (True, 25000)
    assert determine_max_advance(50)[:2] == (True, 10000)
    assert determine_max_advance(31)[:2] == (True, 10000)
    assert determine_max_advance(30) == (False, 0, NOT_ELIGIBLE_MESSAGE)


def test_evaluate_eligibility_new_account_with_steady_income():
    """Six equal deposits in the last month on a brand-new account -> $400 cap"""
    inputs = EligibilityInputs(
        deposits_90d=deposits(*[50000] * 6),
        current_balance_cents=300000,
        expenses_90d_cents=0,
        account_created_at=NOW - timedelta(days=3),
        repaid_advances=0,
        overdue_advances=0,
        now=NOW,
    )

    result = evaluate_eligibility(inputs)

    assert result.factors.income_consistency == 100
    assert result.factors.average_balance == 100
    assert result.factors.spending_patterns == 100
    assert result.factors.account_age == 20
    assert result.factors.repayment_history == 50
    assert result.score == 85
    assert result.eligible is True
    assert result.max_amount_cents == 40000


def test_evaluate_eligibility_only_counts_last_30_days_for_balance_ratio():
    """Deposits older than 30 days feed income but not the balance ratio"""
    inputs = EligibilityInputs(
        deposits_90d=deposits(100000, days_ago=60),
        current_balance_cents=60000,
        expenses_90d_cents=0,
        account_created_at=NOW - timedelta(days=200),
        repaid_advances=0,
        overdue_advances=0,
        now=NOW,
    )

    result = evaluate_eligibility(inputs)

    # No deposit in the last 30 days, balance > $500
    assert result.factors.average_balance == 50
    assert result.factors.spending_patterns == 100


def test_evaluate_eligibility_empty_history_is_not_eligible():
    inputs = EligibilityInputs(
        deposits_90d=[],
        current_balance_cents=0,
        expenses_90d_cents=0,
        account_created_at=NOW,
        repaid_advances=0,
        overdue_advances=0,
        now=NOW,
    )

    result = evaluate_eligibility(inputs)

    # 20 * 10% + 50 * 15% = 9.5 -> 10
    assert result.score == 10
    assert result.eligible is False
    assert result.max_amount_cents == 0
    assert result.message == NOT_ELIGIBLE_MESSAGE
