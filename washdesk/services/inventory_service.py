# washdesk/services/inventory_service.py
"""
Inventory ledger: deducts the products consumed by a service order.

The consumption recipe is read from the Service at apply-time. Only prices
are frozen on the order.

Stock may go negative: the ledger logs a warning and reports every product
at or below its reorder point so the caller can alert the operator.

Does not commit. Runs inside the caller's status-transition transaction.
"""

from collections import defaultdict
from decimal import Decimal

from sqlalchemy import update
from sqlalchemy.orm import Session

from washdesk.models.catalog import Product, ServiceConsumption
from washdesk.models.service_order import OrderItem, ServiceOrder
from washdesk.utils.logger import get_logger

logger = get_logger(__name__)


def consumption_for_order(db: Session, order: ServiceOrder) -> dict:
    """Aggregate {product_id: quantity} over every item of the order."""
    totals = defaultdict(Decimal)
    rows = (
        db.query(ServiceConsumption.product_id, ServiceConsumption.quantity)
        .join(OrderItem, OrderItem.service_id == ServiceConsumption.service_id)
        .filter(OrderItem.order_id == order.id)
        .all()
    )
    for product_id, quantity in rows:
        totals[product_id] += Decimal(quantity)
    return dict(totals)


def apply(db: Session, order: ServiceOrder) -> list:
    """
    Decrement every consumed product with an atomic UPDATE.
    Returns the products left at/below their reorder point.
    """
    totals = consumption_for_order(db, order)
    if not totals:
        logger.info(f"[Stock] Order #{order.sequential_code}: no recipe, nothing to deduct")
        return []

    for product_id, delta in sorted(totals.items()):
        db.execute(
            update(Product)
            .where(Product.id == product_id, Product.tenant_id == order.tenant_id)
            .values(quantity=Product.quantity - delta)
            .execution_options(synchronize_session=False)
        )

    products = (
        db.query(Product)
        .filter(Product.tenant_id == order.tenant_id, Product.id.in_(totals.keys()))
        .populate_existing()
        .all()
    )

    low = []
    for p in products:
        logger.info(f"[Stock] Order #{order.sequential_code}: -{totals[p.id]}{p.unit} {p.name} → {p.quantity}")
        if p.quantity < 0:
            logger.warning(f"[Stock] {p.name} is negative ({p.quantity}{p.unit}), stock count is off")
        if p.quantity <= p.reorder_point:
            low.append(p)
    return low


def low_stock(db: Session, tenant_id: int) -> list:
    """Active products at or below their reorder point."""
    return (
        db.query(Product)
        .filter(
            Product.tenant_id == tenant_id,
            Product.active.is_(True),
            Product.quantity <= Product.reorder_point,
        )
        .order_by(Product.name)
        .all()
    )


def order_cost(db: Session, order: ServiceOrder) -> Decimal:
    """Product cost of an order: recipe quantity × cost per unit."""
    totals = consumption_for_order(db, order)
    if not totals:
        return Decimal("0.00")
    costs = dict(
        db.query(Product.id, Product.cost_per_unit)
        .filter(Product.tenant_id == order.tenant_id, Product.id.in_(totals.keys()))
        .all()
    )
    cost = sum((qty * Decimal(costs.get(pid) or 0) for pid, qty in totals.items()), Decimal("0"))
    return cost.quantize(Decimal("0.01"))
