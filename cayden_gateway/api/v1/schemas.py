"""Pydantic schemas for API request/response validation

Bodies use camelCase on the wire. Amounts arrive as decimal dollars and are
converted to cents at the route; responses carry dollars with two decimals.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from cayden_gateway.domain import models as domain
from cayden_gateway.domain.models import (
    AccountType,
    BillCategory,
    BillFrequency,
    BillStatus,
    DeliverySpeed,
    GoalStatus,
    SpendingCategory,
)
from cayden_gateway.utils.money import to_dollars


class CamelModel(BaseModel):
    """Base schema: snake_case in Python, camelCase in JSON"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, use_enum_values=True)


class DeletedResponse(CamelModel):
    deleted: bool = True


# Auth


class RegisterRequest(CamelModel):
    email: str = Field(..., min_length=3, max_length=255, pattern=r"^[^@\s]+@[^@\s]+$")
    password: str = Field(..., min_length=8)
    full_name: Optional[str] = Field(default=None, max_length=200)


class RegisterResponse(CamelModel):
    user_id: str
    access_token: str
    token_type: str = "bearer"


# Accounts and transactions


class AccountResponse(CamelModel):
    id: str
    account_type: str
    account_number: str
    routing_number: str
    balance: float
    status: str
    round_up_enabled: bool
    created_at: datetime

    @classmethod
    def from_domain(cls, account: domain.Account) -> "AccountResponse":
        return cls(
            id=account.id,
            account_type=account.account_type,
            account_number=account.account_number,
            routing_number=account.routing_number,
            balance=to_dollars(account.balance_cents),
            status=account.status,
            round_up_enabled=account.round_up_enabled,
            created_at=account.created_at,
        )


class TransactionResponse(CamelModel):
    id: str
    account_id: str
    type: str
    category: str
    amount: float
    description: Optional[str] = None
    merchant_name: Optional[str] = None
    spending_category: Optional[str] = None
    reference_id: Optional[str] = None
    balance_after: float
    created_at: datetime

    @classmethod
    def from_domain(cls, entry: domain.LedgerEntry) -> "TransactionResponse":
        return cls(
            id=entry.id,
            account_id=entry.account_id,
            type=entry.type,
            category=entry.category,
            amount=to_dollars(entry.amount_cents),
            description=entry.description,
            merchant_name=entry.merchant_name,
            spending_category=entry.spending_category,
            reference_id=entry.reference_id,
            balance_after=to_dollars(entry.balance_after_cents),
            created_at=entry.created_at,
        )


class DepositRequest(CamelModel):
    amount: Decimal = Field(..., gt=0, description="Dollars, rounded half-up to the cent")
    description: Optional[str] = Field(default=None, max_length=255)


class DepositResponse(CamelModel):
    transaction: TransactionResponse
    new_balance: float


class TransferRequest(CamelModel):
    from_account_id: str
    to_account_id: str
    amount: Decimal = Field(..., gt=0)
    description: Optional[str] = Field(default=None, max_length=255)


class TransferResponse(CamelModel):
    from_balance: float
    to_balance: float
    reference_id: str


class RoundUpToggleResponse(CamelModel):
    round_up_enabled: bool


class ReconciliationResponse(CamelModel):
    account_id: str
    balance: float
    replayed_balance: float
    entries: int
    consistent: bool


class PurchaseRequest(CamelModel):
    account_id: str
    amount: Decimal = Field(..., gt=0)
    merchant_name: str = Field(..., min_length=1, max_length=255)
    spending_category: SpendingCategory = SpendingCategory.OTHER
    description: Optional[str] = Field(default=None, max_length=255)


class RoundUpResponse(CamelModel):
    id: str
    amount: float
    description: Optional[str] = None


class PurchaseResponse(CamelModel):
    transaction: TransactionResponse
    round_up: Optional[RoundUpResponse] = None


class PaginationResponse(CamelModel):
    page: int
    limit: int
    total: int
    total_pages: int


class TransactionListResponse(CamelModel):
    transactions: List[TransactionResponse]
    pagination: PaginationResponse


class CategorySpendResponse(CamelModel):
    category: str
    total: float
    count: int
    percentage: float


class SpendingSummaryResponse(CamelModel):
    month: str
    total_spent: float
    categories: List[CategorySpendResponse]


# Advances


class EligibilityFactorsResponse(CamelModel):
    income_consistency: int
    average_balance: int
    spending_patterns: int
    account_age: int
    repayment_history: int


class EligibilityResponse(CamelModel):
    eligible: bool
    score: int
    max_amount: float
    factors: EligibilityFactorsResponse
    message: str
    has_linked_bank: bool


class AdvanceRequest(CamelModel):
    amount: Decimal = Field(..., ge=25, le=500)
    delivery_speed: DeliverySpeed = DeliverySpeed.STANDARD
    tip: Decimal = Field(default=Decimal("0"), ge=0)


class AdvanceResponse(CamelModel):
    id: str
    amount: float
    fee: float
    tip: float
    total_due: float
    status: str
    delivery_speed: str
    eligibility_score: int
    funded_at: Optional[datetime] = None
    repayment_date: Optional[date] = None
    repaid_at: Optional[datetime] = None
    created_at: datetime

    @classmethod
    def from_domain(cls, advance: domain.Advance) -> "AdvanceResponse":
        return cls(
            id=advance.id,
            amount=to_dollars(advance.amount_cents),
            fee=to_dollars(advance.fee_cents),
            tip=to_dollars(advance.tip_cents),
            total_due=to_dollars(advance.total_due_cents),
            status=advance.status,
            delivery_speed=advance.delivery_speed,
            eligibility_score=advance.eligibility_score,
            funded_at=advance.funded_at,
            repayment_date=advance.repayment_date,
            repaid_at=advance.repaid_at,
            created_at=advance.created_at,
        )


class RepayResponse(CamelModel):
    repaid: bool
    amount_repaid: float
    new_balance: float


# Goals


class GoalCreateRequest(CamelModel):
    name: str = Field(..., min_length=1, max_length=100)
    target_amount: Decimal = Field(..., gt=0)
    target_date: Optional[date] = None
    auto_fund_amount: Decimal = Field(default=Decimal("0"), ge=0)
    auto_fund_enabled: bool = False
    icon: Optional[str] = Field(default=None, max_length=50)


class GoalUpdateRequest(CamelModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    target_amount: Optional[Decimal] = Field(default=None, gt=0)
    target_date: Optional[date] = None
    auto_fund_amount: Optional[Decimal] = Field(default=None, ge=0)
    auto_fund_enabled: Optional[bool] = None
    icon: Optional[str] = Field(default=None, max_length=50)
    status: Optional[GoalStatus] = None


class GoalResponse(CamelModel):
    id: str
    name: str
    target_amount: float
    current_amount: float
    auto_fund_amount: float
    auto_fund_enabled: bool
    target_date: Optional[date] = None
    status: str
    icon: str
    progress: float
    created_at: datetime

    @classmethod
    def from_domain(cls, goal: domain.Goal) -> "GoalResponse":
        return cls(
            id=goal.id,
            name=goal.name,
            target_amount=to_dollars(goal.target_cents),
            current_amount=to_dollars(goal.current_cents),
            auto_fund_amount=to_dollars(goal.auto_fund_cents),
            auto_fund_enabled=goal.auto_fund_enabled,
            target_date=goal.target_date,
            status=goal.status,
            icon=goal.icon,
            progress=goal.progress,
            created_at=goal.created_at,
        )


class GoalFundRequest(CamelModel):
    amount: Decimal = Field(..., gt=0)


class GoalFundResponse(CamelModel):
    goal_id: str
    funded: float
    current_amount: float
    target_amount: float
    progress: float
    status: str


# Bills


class BillCreateRequest(CamelModel):
    account_id: str
    name: str = Field(..., min_length=1, max_length=100)
    category: BillCategory = BillCategory.OTHER
    amount: Decimal = Field(..., gt=0)
    frequency: BillFrequency = BillFrequency.MONTHLY
    due_day: int
    auto_pay: bool = False
    icon: Optional[str] = Field(default=None, max_length=50)


class BillUpdateRequest(CamelModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    category: Optional[BillCategory] = None
    amount: Optional[Decimal] = Field(default=None, gt=0)
    frequency: Optional[BillFrequency] = None
    due_day: Optional[int] = None
    auto_pay: Optional[bool] = None
    status: Optional[BillStatus] = None
    icon: Optional[str] = Field(default=None, max_length=50)


class BillResponse(CamelModel):
    id: str
    account_id: str
    name: str
    category: str
    amount: float
    frequency: str
    due_day: int
    auto_pay: bool
    status: str
    icon: str
    next_due_date: Optional[date] = None
    last_paid_date: Optional[date] = None
    created_at: datetime

    @classmethod
    def from_domain(cls, bill: domain.Bill) -> "BillResponse":
        return cls(
            id=bill.id,
            account_id=bill.account_id,
            name=bill.name,
            category=bill.category,
            amount=to_dollars(bill.amount_cents),
            frequency=bill.frequency,
            due_day=bill.due_day,
            auto_pay=bill.auto_pay,
            status=bill.status,
            icon=bill.icon,
            next_due_date=bill.next_due_date,
            last_paid_date=bill.last_paid_date,
            created_at=bill.created_at,
        )


class BillPaymentResponse(CamelModel):
    id: str
    bill_id: str
    bill_name: Optional[str] = None
    bill_category: Optional[str] = None
    transaction_id: Optional[str] = None
    amount: float
    status: str
    paid_at: datetime

    @classmethod
    def from_domain(cls, payment: domain.BillPayment) -> "BillPaymentResponse":
        return cls(
            id=payment.id,
            bill_id=payment.bill_id,
            bill_name=payment.bill_name,
            bill_category=payment.bill_category,
            transaction_id=payment.transaction_id,
            amount=to_dollars(payment.amount_cents),
            status=payment.status,
            paid_at=payment.paid_at,
        )


class PayBillResponse(CamelModel):
    payment: BillPaymentResponse
    new_balance: float
    transaction_id: str


class BillSummaryResponse(CamelModel):
    total_bills: int
    total_monthly_estimate: float
    upcoming_this_month: int
    upcoming_total: float
    auto_pay_count: int


# Linked accounts


class LinkAccountRequest(CamelModel):
    bank_name: str = Field(..., min_length=1, max_length=100)
    account_holder_name: str = Field(..., min_length=1, max_length=200)
    account_number_last4: str
    routing_number: str
    account_type: AccountType = AccountType.CHECKING


class LinkedAccountResponse(CamelModel):
    id: str
    bank_name: str
    account_holder_name: str
    account_number_last4: str
    routing_number: str
    account_type: str
    verification_status: str
    is_primary: bool
    institution_id: Optional[str] = None
    created_at: datetime

    @classmethod
    def from_domain(cls, linked: domain.LinkedAccount) -> "LinkedAccountResponse":
        return cls(
            id=linked.id,
            bank_name=linked.bank_name,
            account_holder_name=linked.account_holder_name,
            account_number_last4=linked.account_number_last4,
            routing_number=linked.routing_number,
            account_type=linked.account_type,
            verification_status=linked.verification_status,
            is_primary=linked.is_primary,
            institution_id=linked.institution_id,
            created_at=linked.created_at,
        )


# PIN


class PinStatusResponse(CamelModel):
    has_pin: bool


class PinSetRequest(CamelModel):
    pin: str
    password: str


class PinVerifyRequest(CamelModel):
    pin: str


class PinVerifyResponse(CamelModel):
    verified: bool
    pin_token: str


class PinRemoveRequest(CamelModel):
    password: str


class PinUpdatedResponse(CamelModel):
    success: bool = True


# Notifications


class NotificationResponse(CamelModel):
    id: str
    type: str
    title: str
    message: str
    action_target: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)
    is_read: bool
    created_at: datetime

    @classmethod
    def from_domain(cls, notification: domain.Notification) -> "NotificationResponse":
        return cls(
            id=notification.id,
            type=notification.type,
            title=notification.title,
            message=notification.message,
            action_target=notification.action_target,
            metadata=notification.metadata,
            is_read=notification.is_read,
            created_at=notification.created_at,
        )
