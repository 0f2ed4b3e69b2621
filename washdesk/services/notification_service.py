# washdesk/services/notification_service.py
"""
Outbound customer messaging (WhatsApp via an Evolution API gateway).

Best effort only: every failure is logged and swallowed, nothing is retried,
and callers dispatch after their transaction has committed so a dead gateway
never blocks or rolls back an order transition.
Set WHATSAPP_API_URL + WHATSAPP_API_KEY in .env to enable; otherwise the
message is only logged.
"""

import re
from typing import Optional

import requests

from washdesk.config import settings
from washdesk.utils.logger import get_logger

logger = get_logger(__name__)


# ── Templates ────────────────────────────────────────────────────────────────
TEMPLATES = {
    "order_received": "🚗 Hello {name}! We received your {vehicle}. Expected ready time: {ready_at}. We'll keep you posted!",
    "order_ready": "✅ {name}, your {vehicle} is READY! Come pick it up whenever you like. Thank you! 🙏",
    "order_delivered": "🎉 Thanks for your visit, {name}! You earned {points} loyalty points. See you soon!",
    "low_stock": "⚠️ STOCK ALERT: {product} is running low. Current quantity: {quantity}{unit}. Time to restock!",
}


def render(template: str, **fields) -> str:
    """Fill a named template. Unknown template names raise KeyError."""
    return TEMPLATES[template].format(**fields)


def send_message(phone: Optional[str], text: str) -> bool:
    """
    POST a text message to the gateway. Returns True when the gateway accepted it.
    Never raises.
    """
    if not phone:
        logger.warning(f"[Notify] No phone number — message dropped: {text!r}")
        return False

    if not settings.WHATSAPP_API_URL or not settings.WHATSAPP_API_KEY:
        logger.info(f"[Notify] Gateway not configured. Would send to {phone}: {text!r}")
        return False

    try:
        resp = requests.post(
            f"{settings.WHATSAPP_API_URL}/message/sendText/{settings.WHATSAPP_INSTANCE}",
            json={"number": re.sub(r"\D", "", phone), "text": text},
            headers={"apikey": settings.WHATSAPP_API_KEY},
            timeout=settings.WHATSAPP_TIMEOUT_SECONDS,
        )
        resp.raise_for_status()
    except requests.exceptions.RequestException as e:
        logger.error(f"[Notify] Failed to send to {phone}: {e}")
        return False

    logger.info(f"[Notify] Message sent to {phone}")
    return True


def notify(phone: Optional[str], template: str, **fields) -> bool:
    """Render + send. Template errors are logged like transport errors."""
    try:
        text = render(template, **fields)
    except (KeyError, IndexError) as e:
        logger.error(f"[Notify] Cannot render template {template}: {e}")
        return False
    return send_message(phone, text)


# ── Fulfillment messages ─────────────────────────────────────────────────────

def notify_order_received(order) -> bool:
    ready_at = order.estimated_ready_at.strftime("%H:%M") if order.estimated_ready_at else "soon"
    return notify(order.customer.phone, "order_received", name=order.customer.name,
                  vehicle=order.vehicle.description, ready_at=ready_at)


def notify_order_ready(order) -> bool:
    return notify(order.customer.phone, "order_ready", name=order.customer.name,
                  vehicle=order.vehicle.description)


def notify_order_delivered(order, points: int) -> bool:
    return notify(order.customer.phone, "order_delivered", name=order.customer.name, points=points)


def notify_low_stock(tenant_phone: Optional[str], products) -> int:
    """Send one alert per product at/below its reorder point. Returns messages sent."""
    sent = 0
    for p in products:
        if notify(tenant_phone, "low_stock", product=p.name, quantity=p.quantity, unit=p.unit):
            sent += 1
    return sent
