"""
Outbound SMS.

No SMS vendor is contracted yet, so messages are written to the application
log instead of being delivered. Callers get the same success/failure contract
a real provider would give them.
"""

import logging
import re
import uuid
from typing import Optional

from ParkPermitAPI import config

logger = logging.getLogger(__name__)

SEGMENT_LENGTH = 160


def normalize_phone(phone: Optional[str]) -> Optional[str]:
    """
    Strip formatting from a phone number.

    Returns:
        str: Digits with an optional leading "+", or None if the number is not
        plausible (fewer than 10 digits).
    """
    if not phone:
        return None
    cleaned = re.sub(r"[\s\-\(\)\.]", "", phone)
    digits = cleaned[1:] if cleaned.startswith("+") else cleaned
    if len(digits) < 10 or not digits.isdigit():
        return None
    return cleaned


def send_sms(to_phone: str, body: str) -> bool:
    """
    Send a text message.

    Returns True if the message was accepted, False if skipped or the number
    is invalid.
    """
    if not config.SMS_ENABLED:
        logger.info("SMS sending disabled by SMS_ENABLED feature flag")
        return False
    number = normalize_phone(to_phone)
    if number is None:
        logger.warning("Not sending SMS to invalid phone number %r", to_phone)
        return False

    message_id = f"sms-{uuid.uuid4().hex[:12]}"
    segments = (len(body) + SEGMENT_LENGTH - 1) // SEGMENT_LENGTH
    logger.info(
        "SMS %s from %s to %s (%d segment(s)): %s",
        message_id, config.SMS_FROM_NUMBER, number, segments, body,
    )
    return True
