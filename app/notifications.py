# app/notifications.py

import logging

import httpx

from app import config

logger = logging.getLogger(__name__)


async def notify_booking_created(booking_id: int) -> bool:
    """
    Ask the notification function to email the professor about a new booking.

    Best-effort: failures are logged and reported as False, never raised,
    so the already-committed booking is unaffected.
    """
    url = config.NOTIFY_FUNCTION_URL
    if not url:
        logger.info(f"Notification function not configured, skipping booking {booking_id}")
        return False

    headers = {"Content-Type": "application/json"}
    if config.NOTIFY_FUNCTION_TOKEN:
        headers["Authorization"] = f"Bearer {config.NOTIFY_FUNCTION_TOKEN}"

    try:
        async with httpx.AsyncClient(timeout=config.NOTIFY_TIMEOUT_SECONDS) as client:
            response = await client.post(url, json={"booking_id": booking_id}, headers=headers)
            response.raise_for_status()
    except httpx.HTTPError as e:
        logger.warning(f"Booking notification failed for booking {booking_id}: {e}")
        return False

    logger.info(f"Booking notification sent for booking {booking_id}")
    return True
