import logging
from typing import Callable

from app.config import settings

logger = logging.getLogger(__name__)


def send_booking_confirmation_email(
    to_email: str,
    name: str,
    booking_number: str,
    vehicle_name: str,
    pickup: str,
    dropoff: str,
    total_price: str,
) -> bool:
    """
    Delivery provider not wired — the message is logged.
    Replace with a real provider (SendGrid / Brevo / SMTP) when ready.
    """
    logger.info(
        f"[BOOKING EMAIL] To={to_email} | {name} | {booking_number} | {vehicle_name} | "
        f"{pickup} -> {dropoff} | Total={total_price}"
    )
    if settings.NOTIFY_ADMIN_EMAIL:
        logger.info(f"[ADMIN EMAIL] To={settings.NOTIFY_ADMIN_EMAIL} | New booking {booking_number}")
    return True


def send_booking_status_email(
    to_email: str,
    name: str,
    booking_number: str,
    status: str,
    notes: str | None = None,
    payment_link: str | None = None,
) -> bool:
    logger.info(
        f"[STATUS EMAIL] To={to_email} | {booking_number} | Status={status}"
        + (f" | PaymentLink={payment_link}" if payment_link else "")
    )
    return True


def dispatch_notification(send: Callable[..., bool], *args, **kwargs) -> bool:
    """
    Fire-and-forget wrapper. A failing notification is logged and reported
    as False; it never propagates into the caller's request.
    """
    try:
        return send(*args, **kwargs)
    except Exception:
        logger.exception(f"Notification {getattr(send, '__name__', send)} failed")
        return False
