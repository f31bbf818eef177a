"""Pytest fixtures for testing"""

import os

# Point settings at the test database before the app modules read them
os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")
os.environ.setdefault("CREATE_TABLES_ON_STARTUP", "false")

import pytest
from typing import Callable, Dict, Generator
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from cayden_gateway.api.main import create_app
from cayden_gateway.infrastructure.database.models import Base, Account
from cayden_gateway.infrastructure.database.session import get_db
from cayden_gateway.infrastructure.security.tokens import create_access_token
from cayden_gateway.services.accounts import deposit, register_user
from cayden_gateway.services.linked_accounts import LinkAccountInput, link_account, verify_linked_account


# Test database
TEST_DATABASE_URL = os.environ["DATABASE_URL"]
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

PASSWORD = "correct-horse-battery"


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db: Session) -> TestClient:
    """Create FastAPI test client with test database"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    return TestClient(app)


@pytest.fixture
def make_user(db: Session) -> Callable[..., str]:
    """Factory: registered user (with checking account), returns the user id"""
    counter = {"n": 0}

    def _make(email: str | None = None) -> str:
        counter["n"] += 1
        return register_user(db, email or f"user{counter['n']}@example.com", PASSWORD, full_name="Test User")

    return _make


@pytest.fixture
def user_id(make_user) -> str:
    return make_user()


def auth_headers(user_id: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user_id)}"}


@pytest.fixture
def headers(user_id: str) -> Dict[str, str]:
    return auth_headers(user_id)


def checking_of(db: Session, user_id: str) -> Account:
    return db.query(Account).filter(Account.user_id == user_id, Account.account_type == "checking").one()


def savings_of(db: Session, user_id: str) -> Account:
    return db.query(Account).filter(Account.user_id == user_id, Account.account_type == "savings").one()


def link_verified_bank(db: Session, user_id: str, last4: str = "6789") -> str:
    linked = link_account(
        db,
        user_id,
        LinkAccountInput(
            bank_name="First Test Bank",
            account_holder_name="Test User",
            account_number_last4=last4,
            routing_number="021000021",
        ),
    )
    verify_linked_account(db, user_id, linked.id)
    return linked.id


@pytest.fixture
def eligible_user(db: Session, make_user) -> str:
    """
    New user with six equal $500 deposits and a verified bank.

    Factors: income 100, balance 100, spending 100, age 20, repayment 50
    -> score 85 -> max advance $400.
    """
    uid = make_user()
    account = checking_of(db, uid)
    for _ in range(6):
        deposit(db, uid, account.id, 50000, description="Payroll")
    link_verified_bank(db, uid)
    return uid
