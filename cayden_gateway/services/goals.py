"""Savings goals backed by the user's savings account"""

from dataclasses import dataclass
from datetime import date
from typing import List, Optional

from sqlalchemy.orm import Session

from cayden_gateway.domain.exceptions import BadRequestError, NotFoundError
from cayden_gateway.domain.models import AccountType, EntryCategory, Goal, GoalStatus
from cayden_gateway.infrastructure.database import models as orm
from cayden_gateway.infrastructure.database.ledger import ledger_transaction, require
from cayden_gateway.infrastructure.database.repositories import GoalRepository, to_goal
from cayden_gateway.services.accounts import ensure_savings_account
from cayden_gateway.utils.money import progress_percent

DEFAULT_GOAL_ICON = "piggy-bank"


@dataclass
class GoalFunding:
    goal_id: str
    funded_cents: int
    current_cents: int
    target_cents: int
    status: str

    @property
    def progress(self) -> float:
        return progress_percent(self.current_cents, self.target_cents)


def list_goals(db: Session, user_id: str) -> List[Goal]:
    return [to_goal(row) for row in GoalRepository(db).list_for_user(user_id)]


def create_goal(
    db: Session,
    user_id: str,
    name: str,
    target_cents: int,
    target_date: Optional[date] = None,
    auto_fund_cents: int = 0,
    auto_fund_enabled: bool = False,
    icon: Optional[str] = None,
) -> Goal:
    """Create a goal, opening a savings account first if the user has none"""
    if target_cents <= 0:
        raise BadRequestError("Target amount must be positive")

    savings = ensure_savings_account(db, user_id)
    goal = orm.Goal(
        user_id=user_id,
        account_id=savings.id,
        name=name,
        target_cents=target_cents,
        target_date=target_date,
        auto_fund_cents=auto_fund_cents,
        auto_fund_enabled=auto_fund_enabled,
        icon=icon or DEFAULT_GOAL_ICON,
    )
    db.add(goal)
    db.commit()
    return to_goal(goal)


def update_goal(
    db: Session,
    user_id: str,
    goal_id: str,
    name: Optional[str] = None,
    target_cents: Optional[int] = None,
    target_date: Optional[date] = None,
    auto_fund_cents: Optional[int] = None,
    auto_fund_enabled: Optional[bool] = None,
    icon: Optional[str] = None,
    status: Optional[str] = None,
) -> Goal:
    goal = GoalRepository(db).get_for_user(user_id, goal_id)
    if not goal:
        raise NotFoundError("Goal not found")
    if target_cents is not None and target_cents <= 0:
        raise BadRequestError("Target amount must be positive")

    if name:
        goal.name = name
    if target_cents is not None:
        goal.target_cents = target_cents
    if target_date is not None:
        goal.target_date = target_date
    if auto_fund_cents is not None:
        goal.auto_fund_cents = auto_fund_cents
    if auto_fund_enabled is not None:
        goal.auto_fund_enabled = auto_fund_enabled
    if icon:
        goal.icon = icon
    if status:
        goal.status = status

    db.commit()
    return to_goal(goal)


def delete_goal(db: Session, user_id: str, goal_id: str) -> None:
    """Removes the goal only; money already saved stays in the savings account"""
    goal = GoalRepository(db).get_for_user(user_id, goal_id)
    if not goal:
        raise NotFoundError("Goal not found")
    db.delete(goal)
    db.commit()


def fund_goal(db: Session, user_id: str, goal_id: str, amount_cents: int) -> GoalFunding:
    """
    Move money from checking into the goal's savings account.

    Two transfer rows share a reference id. The goal completes once
    current >= target; overshoot is kept, so progress can exceed 100.
    """
    if amount_cents <= 0:
        raise BadRequestError("Amount must be positive")

    with ledger_transaction(db, "goal_fund") as ledger:
        goal = GoalRepository(db).get_for_user(user_id, goal_id, for_update=True)
        if not goal:
            raise NotFoundError("Goal not found")
        if goal.status != GoalStatus.ACTIVE.value:
            raise BadRequestError("Goal is not active")

        checking = require(
            ledger.lock_account_by_type(user_id, AccountType.CHECKING.value),
            "Checking account not found",
        )
        if not goal.account_id:
            goal.account_id = ensure_savings_account(db, user_id).id
        savings = require(ledger.lock_account(goal.account_id, user_id=user_id), "Savings account not found")

        if checking.balance_cents < amount_cents:
            raise BadRequestError("Insufficient funds")

        description = f"Goal Funding: {goal.name}"
        ledger.transfer(checking, savings, amount_cents, EntryCategory.TRANSFER, description, description)

        goal.current_cents += amount_cents
        if goal.current_cents >= goal.target_cents:
            goal.status = GoalStatus.COMPLETED.value

        result = GoalFunding(
            goal_id=goal.id,
            funded_cents=amount_cents,
            current_cents=goal.current_cents,
            target_cents=goal.target_cents,
            status=goal.status,
        )

    return result
