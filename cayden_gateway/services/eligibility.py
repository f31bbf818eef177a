"""Gathers eligibility inputs from the ledger and runs the scorer"""

import logging
from datetime import timedelta
from typing import Optional

from sqlalchemy.orm import Session

from cayden_gateway.domain.advances import OUTSTANDING_STATUSES
from cayden_gateway.domain.models import (
    AccountType,
    AdvanceStatus,
    Deposit,
    EligibilityInputs,
    EligibilityResult,
)
from cayden_gateway.domain.scoring import (
    NO_CHECKING_MESSAGE,
    OUTSTANDING_ADVANCE_MESSAGE,
    evaluate_eligibility,
    ineligible,
)
from cayden_gateway.infrastructure.database import models as orm
from cayden_gateway.infrastructure.database.repositories import (
    AccountRepository,
    AdvanceRepository,
    TransactionRepository,
)
from cayden_gateway.infrastructure.observability.metrics import eligibility_score_histogram
from cayden_gateway.utils.date_utils import utcnow

LOOKBACK_DAYS = 90


def check_eligibility(db: Session, user_id: str, checking: Optional[orm.Account] = None) -> EligibilityResult:
    """
    Evaluate advance eligibility for a user.

    Hard blocks come first: no checking account, or any outstanding
    advance, yields score 0 regardless of history. Pass `checking` when the
    caller already holds the account row (locked) so its balance is used.
    """
    if checking is None:
        checking = AccountRepository(db).get_by_type(user_id, AccountType.CHECKING.value)
    if checking is None:
        return ineligible(NO_CHECKING_MESSAGE)

    advances = AdvanceRepository(db)
    if advances.find_in_statuses(user_id, OUTSTANDING_STATUSES):
        return ineligible(OUTSTANDING_ADVANCE_MESSAGE)

    now = utcnow()
    since = now - timedelta(days=LOOKBACK_DAYS)
    transactions = TransactionRepository(db)

    inputs = EligibilityInputs(
        deposits_90d=[
            Deposit(amount_cents=row.amount_cents, created_at=row.created_at)
            for row in transactions.deposits_since(checking.id, since)
        ],
        current_balance_cents=checking.balance_cents,
        expenses_90d_cents=transactions.debit_total_since(checking.id, since),
        account_created_at=checking.created_at,
        repaid_advances=advances.count_by_status(user_id, AdvanceStatus.REPAID.value),
        overdue_advances=advances.count_by_status(user_id, AdvanceStatus.OVERDUE.value),
        now=now,
    )

    result = evaluate_eligibility(inputs)
    eligibility_score_histogram.observe(result.score)
    logging.info(
        "Eligibility evaluated",
        extra={
            "user_id": user_id,
            "step": "eligibility",
            "score": result.score,
            "eligible": result.eligible,
            "max_amount_cents": result.max_amount_cents,
        },
    )
    return result
