# washdesk/services/loyalty_service.py
"""
Loyalty ledger. Two independent accrual mechanisms share one balance
(Customer.loyalty_points):

  - stamp card: staff press "add stamp" → points += 1. With a cycle of N
    stamps (Tenant.loyalty_goal), points % N stamps are shown and every
    multiple of N is a free wash.
  - spend-based: an order reaching DELIVERED credits floor(total / 10)
    points, regardless of the stamp card.

Every balance change is a single UPDATE on customers.loyalty_points, so two
requests never lose each other's update. Redemption re-checks the balance
inside the UPDATE (WHERE points >= N) instead of trusting an earlier read.
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_FLOOR
from typing import Optional

from sqlalchemy import update
from sqlalchemy.orm import Session

from washdesk.config import settings
from washdesk.models.customer import Customer
from washdesk.models.tenant import Tenant
from washdesk.services.errors import InsufficientPoints, LoyaltyDisabled, NotFound
from washdesk.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class LoyaltyResult:
    points: int
    stamps: int
    goal: int
    completed: bool = False
    message: Optional[str] = None

    @property
    def rewards_available(self) -> int:
        return self.points // self.goal


def goal_for(tenant: Tenant) -> int:
    return tenant.loyalty_goal or settings.DEFAULT_LOYALTY_GOAL


def points_for_total(total) -> int:
    """One point per POINTS_CURRENCY_DIVISOR currency units spent, rounded down."""
    points = (Decimal(total) / settings.POINTS_CURRENCY_DIVISOR).to_integral_value(rounding=ROUND_FLOOR)
    return max(0, int(points))


def _get_customer(db: Session, tenant_id: int, customer_id: int) -> Customer:
    customer = db.query(Customer).filter(
        Customer.id == customer_id, Customer.tenant_id == tenant_id
    ).first()
    if not customer:
        raise NotFound("Customer not found")
    return customer


def _check_program(tenant: Tenant, customer: Customer):
    if not tenant.loyalty_enabled:
        raise LoyaltyDisabled("Loyalty program is not active")
    if not customer.loyalty_member:
        raise LoyaltyDisabled("Customer is not enrolled in the loyalty program")


def _increment(db: Session, tenant_id: int, customer_id: int, delta: int) -> Optional[int]:
    return db.execute(
        update(Customer)
        .where(Customer.id == customer_id, Customer.tenant_id == tenant_id)
        .values(loyalty_points=Customer.loyalty_points + delta)
        .returning(Customer.loyalty_points)
        .execution_options(synchronize_session=False)
    ).scalar_one_or_none()


def status(db: Session, tenant: Tenant, customer_id: int) -> LoyaltyResult:
    customer = _get_customer(db, tenant.id, customer_id)
    goal = goal_for(tenant)
    return LoyaltyResult(points=customer.loyalty_points, stamps=customer.loyalty_points % goal, goal=goal)


def add_stamp(db: Session, tenant: Tenant, customer_id: int) -> LoyaltyResult:
    """Stamp the card once. Commits."""
    customer = _get_customer(db, tenant.id, customer_id)
    _check_program(tenant, customer)
    goal = goal_for(tenant)

    points = _increment(db, tenant.id, customer_id, 1)
    db.commit()
    db.expire(customer)

    stamps = points % goal
    completed = stamps == 0 and points > 0
    logger.info(f"[Loyalty] Customer {customer_id}: stamp added → {points} points ({stamps}/{goal})")
    if completed:
        message = f"🎉 Congratulations! {customer.name} completed the card and earned a free wash!"
    else:
        message = f"✅ Stamp added! {stamps}/{goal}"
    return LoyaltyResult(points=points, stamps=stamps, goal=goal, completed=completed, message=message)


def redeem(db: Session, tenant: Tenant, customer_id: int) -> LoyaltyResult:
    """Trade N points for one free wash. Commits."""
    customer = _get_customer(db, tenant.id, customer_id)
    _check_program(tenant, customer)
    goal = goal_for(tenant)

    points = db.execute(
        update(Customer)
        .where(
            Customer.id == customer_id,
            Customer.tenant_id == tenant.id,
            Customer.loyalty_points >= goal,
        )
        .values(loyalty_points=Customer.loyalty_points - goal)
        .returning(Customer.loyalty_points)
        .execution_options(synchronize_session=False)
    ).scalar_one_or_none()

    if points is None:
        db.rollback()
        db.refresh(customer)
        raise InsufficientPoints(
            f"Customer needs {goal} stamps to redeem. Current: {customer.loyalty_points}"
        )

    db.commit()
    db.expire(customer)
    logger.info(f"[Loyalty] Customer {customer_id}: reward redeemed → {points} points left")
    return LoyaltyResult(points=points, stamps=points % goal, goal=goal,
                         message="🎁 Free wash redeemed!")


def credit_on_delivery(db: Session, tenant_id: int, customer_id: int, total) -> int:
    """
    Spend-based accrual for a delivered order. Returns the points credited.
    Does not commit; runs inside the DELIVERED transition.
    """
    points = points_for_total(total)
    if points:
        balance = _increment(db, tenant_id, customer_id, points)
        logger.info(f"[Loyalty] Customer {customer_id}: +{points} points on delivery → {balance}")
    return points
