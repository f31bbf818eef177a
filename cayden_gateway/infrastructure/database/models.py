"""SQLAlchemy ORM models. Money columns hold integer cents."""

import uuid
from sqlalchemy import (
    Column,
    String,
    BigInteger,
    Boolean,
    DateTime,
    Date,
    Integer,
    ForeignKey,
    Text,
    JSON,
    UniqueConstraint,
)
from sqlalchemy.orm import declarative_base, relationship

from cayden_gateway.utils.date_utils import utcnow

Base = declarative_base()


def new_id() -> str:
    return str(uuid.uuid4())


class User(Base):
    """Bank customer; authentication itself lives outside this service"""

    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=new_id)
    email = Column(String(255), nullable=False, unique=True)
    full_name = Column(String(200), nullable=True)
    password_hash = Column(Text, nullable=False)
    pin_hash = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    accounts = relationship("Account", back_populates="user", cascade="all, delete-orphan")


class Account(Base):
    """Checking or savings account; balance is mutated only through the ledger"""

    __tablename__ = "accounts"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    account_type = Column(String(20), nullable=False)
    account_number = Column(String(12), nullable=False, unique=True)
    routing_number = Column(String(9), nullable=False, default="021000089")
    balance_cents = Column(BigInteger, nullable=False, default=0)
    status = Column(String(20), nullable=False, default="active")
    round_up_enabled = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    user = relationship("User", back_populates="accounts")


class LedgerTransaction(Base):
    """Append-only transaction log row"""

    __tablename__ = "transactions"
    __table_args__ = (UniqueConstraint("account_id", "idempotency_key", name="uq_transactions_idempotency"),)

    id = Column(String(36), primary_key=True, default=new_id)
    account_id = Column(String(36), ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(String(10), nullable=False)
    category = Column(String(30), nullable=False)
    amount_cents = Column(BigInteger, nullable=False)
    description = Column(String(255), nullable=True)
    merchant_name = Column(String(255), nullable=True)
    spending_category = Column(String(20), nullable=True)
    reference_id = Column(String(36), nullable=True, index=True)
    balance_after_cents = Column(BigInteger, nullable=False)
    idempotency_key = Column(String(128), nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow, index=True)


class Advance(Base):
    """ExtraCash advance record"""

    __tablename__ = "advances"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    account_id = Column(String(36), ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False)
    amount_cents = Column(BigInteger, nullable=False)
    fee_cents = Column(BigInteger, nullable=False, default=0)
    tip_cents = Column(BigInteger, nullable=False, default=0)
    status = Column(String(30), nullable=False, default="pending")
    delivery_speed = Column(String(20), nullable=False, default="standard")
    eligibility_score = Column(Integer, nullable=True)
    funded_at = Column(DateTime, nullable=True)
    repayment_date = Column(Date, nullable=True)
    repaid_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)


class Goal(Base):
    """Savings goal"""

    __tablename__ = "goals"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    account_id = Column(String(36), ForeignKey("accounts.id", ondelete="SET NULL"), nullable=True)
    name = Column(String(100), nullable=False)
    target_cents = Column(BigInteger, nullable=False)
    current_cents = Column(BigInteger, nullable=False, default=0)
    auto_fund_cents = Column(BigInteger, nullable=False, default=0)
    auto_fund_enabled = Column(Boolean, nullable=False, default=False)
    target_date = Column(Date, nullable=True)
    status = Column(String(20), nullable=False, default="active")
    icon = Column(String(50), nullable=False, default="piggy-bank")
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)


class Bill(Base):
    """Recurring bill"""

    __tablename__ = "bills"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    account_id = Column(String(36), ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False)
    name = Column(String(100), nullable=False)
    category = Column(String(20), nullable=False)
    amount_cents = Column(BigInteger, nullable=False)
    frequency = Column(String(20), nullable=False, default="monthly")
    due_day = Column(Integer, nullable=False)
    auto_pay = Column(Boolean, nullable=False, default=False)
    status = Column(String(20), nullable=False, default="active")
    icon = Column(String(50), nullable=False, default="receipt-outline")
    next_due_date = Column(Date, nullable=True)
    last_paid_date = Column(Date, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    payments = relationship("BillPayment", back_populates="bill", cascade="all, delete-orphan")


class BillPayment(Base):
    """Audit row for each bill payment"""

    __tablename__ = "bill_payments"

    id = Column(String(36), primary_key=True, default=new_id)
    bill_id = Column(String(36), ForeignKey("bills.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    transaction_id = Column(String(36), ForeignKey("transactions.id", ondelete="SET NULL"), nullable=True)
    amount_cents = Column(BigInteger, nullable=False)
    status = Column(String(20), nullable=False, default="completed")
    paid_at = Column(DateTime, nullable=False, default=utcnow)

    bill = relationship("Bill", back_populates="payments")


class LinkedAccount(Base):
    """External bank account; holder name and routing number are Fernet tokens"""

    __tablename__ = "linked_accounts"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    bank_name = Column(String(100), nullable=False)
    account_holder_name = Column(Text, nullable=False)
    account_number_last4 = Column(String(4), nullable=False)
    routing_number = Column(Text, nullable=False)
    account_type = Column(String(20), nullable=False, default="checking")
    verification_status = Column(String(20), nullable=False, default="pending")
    is_primary = Column(Boolean, nullable=False, default=False)
    institution_id = Column(String(100), nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)


class AuditLog(Base):
    """Security-relevant user actions"""

    __tablename__ = "audit_logs"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    action = Column(String(50), nullable=False, index=True)
    details = Column(JSON, nullable=True)
    ip_address = Column(String(45), nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)


class Notification(Base):
    """In-app notification"""

    __tablename__ = "notifications"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(String(30), nullable=False)
    title = Column(String(200), nullable=False)
    message = Column(Text, nullable=False)
    action_target = Column(String(100), nullable=True)
    payload = Column("metadata", JSON, nullable=True)
    is_read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)
