"""Domain models - pure Python dataclasses representing business entities

Money is always integer cents. Rows are mapped into these records at the
persistence boundary (see infrastructure/database/repositories.py).
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from cayden_gateway.utils.money import progress_percent


class AccountType(str, Enum):
    CHECKING = "checking"
    SAVINGS = "savings"


class AccountStatus(str, Enum):
    ACTIVE = "active"
    FROZEN = "frozen"
    CLOSED = "closed"


class EntryType(str, Enum):
    CREDIT = "credit"
    DEBIT = "debit"


class EntryCategory(str, Enum):
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    TRANSFER = "transfer"
    ADVANCE = "advance"
    REPAYMENT = "repayment"
    ROUND_UP = "round_up"
    PURCHASE = "purchase"
    REFUND = "refund"


class SpendingCategory(str, Enum):
    FOOD = "food"
    TRANSPORT = "transport"
    ENTERTAINMENT = "entertainment"
    SHOPPING = "shopping"
    BILLS = "bills"
    HEALTH = "health"
    EDUCATION = "education"
    OTHER = "other"


class AdvanceStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    FUNDED = "funded"
    REPAYMENT_SCHEDULED = "repayment_scheduled"
    REPAID = "repaid"
    OVERDUE = "overdue"


class DeliverySpeed(str, Enum):
    STANDARD = "standard"
    EXPRESS = "express"


class GoalStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    PAUSED = "paused"


class BillFrequency(str, Enum):
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"


class BillCategory(str, Enum):
    SUBSCRIPTION = "subscription"
    UTILITY = "utility"
    RENT = "rent"
    INSURANCE = "insurance"
    LOAN = "loan"
    OTHER = "other"


class BillStatus(str, Enum):
    ACTIVE = "active"
    PAUSED = "paused"
    CANCELLED = "cancelled"


class VerificationStatus(str, Enum):
    PENDING = "pending"
    VERIFIED = "verified"
    FAILED = "failed"


@dataclass
class Account:
    """Checking or savings account owned by one user"""

    id: str
    user_id: str
    account_type: str
    account_number: str
    routing_number: str
    balance_cents: int
    status: str
    round_up_enabled: bool
    created_at: datetime


@dataclass
class LedgerEntry:
    """Immutable transaction-log row; balance_after_cents is the audit snapshot"""

    id: str
    account_id: str
    type: str  # "credit" or "debit"
    category: str
    amount_cents: int
    balance_after_cents: int
    description: Optional[str]
    merchant_name: Optional[str]
    spending_category: Optional[str]
    reference_id: Optional[str]
    created_at: datetime


@dataclass
class Advance:
    """ExtraCash advance"""

    id: str
    user_id: str
    account_id: str
    amount_cents: int
    fee_cents: int
    tip_cents: int
    status: str
    delivery_speed: str
    eligibility_score: int
    repayment_date: date
    funded_at: Optional[datetime]
    repaid_at: Optional[datetime]
    created_at: datetime

    @property
    def total_due_cents(self) -> int:
        return self.amount_cents + self.fee_cents + self.tip_cents


@dataclass
class Goal:
    """Savings goal funded into the user's savings account"""

    id: str
    user_id: str
    account_id: str
    name: str
    target_cents: int
    current_cents: int
    auto_fund_cents: int
    auto_fund_enabled: bool
    target_date: Optional[date]
    status: str
    icon: str
    created_at: datetime

    @property
    def progress(self) -> float:
        return progress_percent(self.current_cents, self.target_cents)


@dataclass
class Bill:
    """Recurring bill paid manually from one account"""

    id: str
    user_id: str
    account_id: str
    name: str
    category: str
    amount_cents: int
    frequency: str
    due_day: int
    auto_pay: bool
    status: str
    icon: str
    next_due_date: Optional[date]
    last_paid_date: Optional[date]
    created_at: datetime


@dataclass
class BillPayment:
    id: str
    bill_id: str
    user_id: str
    transaction_id: Optional[str]
    amount_cents: int
    status: str
    paid_at: datetime
    bill_name: Optional[str] = None
    bill_category: Optional[str] = None


@dataclass
class LinkedAccount:
    """External bank reference; holder name and routing number are decrypted here"""

    id: str
    user_id: str
    bank_name: str
    account_holder_name: str
    account_number_last4: str
    routing_number: str
    account_type: str
    verification_status: str
    is_primary: bool
    institution_id: Optional[str]
    created_at: datetime


@dataclass
class Notification:
    id: str
    user_id: str
    type: str
    title: str
    message: str
    action_target: Optional[str]
    metadata: Dict[str, Any]
    is_read: bool
    created_at: datetime


@dataclass
class Deposit:
    """Deposit as seen by the eligibility scorer"""

    amount_cents: int
    created_at: datetime


@dataclass
class EligibilityInputs:
    """Everything the scorer needs, gathered from the ledger beforehand"""

    deposits_90d: List[Deposit]
    current_balance_cents: int
    expenses_90d_cents: int
    account_created_at: datetime
    repaid_advances: int
    overdue_advances: int
    now: datetime


@dataclass
class EligibilityFactors:
    """Per-factor scores, each 0-100"""

    income_consistency: int = 0
    average_balance: int = 0
    spending_patterns: int = 0
    account_age: int = 0
    repayment_history: int = 0


@dataclass
class EligibilityResult:
    """Output of advance eligibility assessment"""

    eligible: bool
    score: int
    max_amount_cents: int
    factors: EligibilityFactors = field(default_factory=EligibilityFactors)
    message: str = ""
