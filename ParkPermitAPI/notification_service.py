"""
Applicant notifications for lifecycle events.

Delivery is best-effort: every function here logs failures and returns a
boolean instead of raising, so a bounced email never affects the status change
that triggered it.
"""

import logging
from typing import Optional

from ParkPermitAPI.constants import NOTIFY_BOTH, NOTIFY_EMAIL, NOTIFY_SMS
from ParkPermitAPI.email_service import build_approval_html, send_email, send_notification_email
from ParkPermitAPI.sms_service import send_sms

logger = logging.getLogger(__name__)


def send_notification(to_email: Optional[str], to_phone: Optional[str], subject: str, body: str, method: str) -> bool:
    """
    Deliver a message through the chosen channel(s).

    Args:
        to_email (str): Recipient email, used for "email" and "both".
        to_phone (str): Recipient phone, used for "sms" and "both".
        subject (str): Email subject; prefixed to the SMS text.
        body (str): Plain-text message.
        method (str): "email", "sms" or "both".

    Returns:
        bool: True if at least one channel accepted the message.
    """
    delivered = False
    try:
        if method in (NOTIFY_EMAIL, NOTIFY_BOTH):
            if to_email:
                delivered = send_notification_email(subject, body, to_email) or delivered
            else:
                logger.warning("No email address on file; skipping email for %r", subject)
        if method in (NOTIFY_SMS, NOTIFY_BOTH):
            if to_phone:
                delivered = send_sms(to_phone, f"{subject}: {body}") or delivered
            else:
                logger.warning("No phone number on file; skipping SMS for %r", subject)
    except Exception:
        logger.exception("Notification delivery failed for %r", subject)
        return False
    return delivered


def send_disapproval_notice(
    application_number: str,
    event_title: Optional[str],
    to_email: Optional[str],
    to_phone: Optional[str],
    reason: str,
    method: str,
) -> bool:
    subject = f"Application {application_number} Disapproved"
    body = (
        f"Your special use permit application for {event_title or 'your event'} "
        f"has been disapproved.\n\nReason: {reason}"
    )
    sent = send_notification(to_email, to_phone, subject, body, method)
    logger.info("Disapproval notice for %s via %s sent=%s", application_number, method, sent)
    return sent


def send_approval_notice(
    application_number: str,
    recipient_name: str,
    to_email: Optional[str],
    event_title: Optional[str],
    park_name: Optional[str],
    invoice_amount_cents: Optional[int],
) -> bool:
    if not to_email:
        logger.warning("No email address on file for %s; approval notice skipped", application_number)
        return False
    subject = f"Application Approved - {event_title or application_number}"
    html = build_approval_html(recipient_name, application_number, event_title, park_name, invoice_amount_cents)
    sent = send_email(to_email, subject, html)
    logger.info("Approval notice for %s sent=%s", application_number, sent)
    return sent
