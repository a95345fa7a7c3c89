import logging
from typing import Optional

from ParkPermitAPI import config

logger = logging.getLogger(__name__)

def _should_send() -> bool:
    # Respect feature flag and ensure API key is present
    enabled = config.EMAIL_ENABLED
    has_key = bool(config.SENDGRID_API_KEY)
    if not enabled:
        logger.info("Email sending disabled by EMAIL_ENABLED feature flag")
    if not has_key:
        logger.warning("No SENDGRID_API_KEY configured; emails will not be sent")
    return enabled and has_key

def _wrap_html(title: str, inner_html: str) -> str:
    return f"""
        <div style=\"font-family: Arial, sans-serif; color: #333; max-width: 600px; margin: 0 auto;\">
            <h2 style=\"margin:0 0 12px; color: #8B4513;\">{title}</h2>
            {inner_html}
            <hr style=\"margin:24px 0; border:none; border-top:1px solid #eee;\" />
            <p style=\"font-size:12px; color:#666;\">Parkspass - Making public lands easier to access.</p>
        </div>
    """

def build_notification_html(subject: Optional[str], body: Optional[str]) -> str:
    safe_body = (body or "").replace("\n", "<br />")
    return _wrap_html(subject or "Notification", f"<div style=\"margin:0 0 16px;\">{safe_body}</div>")

def build_approval_html(
    recipient_name: str,
    application_number: str,
    event_title: Optional[str],
    park_name: Optional[str],
    invoice_amount_cents: Optional[int],
) -> str:
    """
    HTML body for the "application approved" email.

    The pay link is only shown when an invoice was issued.
    """
    amount_html = ""
    pay_html = ""
    if invoice_amount_cents:
        amount_html = f"<br><strong>Invoice Amount:</strong> ${invoice_amount_cents / 100:.2f}"
        pay_html = f"""
            <p>You can now proceed to payment. Once completed, your official permit will be issued.</p>
            <p>Use your Application ID <strong>{application_number}</strong> to pay your invoice.</p>
            <p style=\"text-align:center;\">
                <a href=\"{config.PAYMENT_PORTAL_URL}\" style=\"background-color:#8B4513;color:#fff;padding:12px 24px;
                text-decoration:none;border-radius:5px;font-weight:bold;\">Pay Invoice</a>
            </p>
        """
    inner = f"""
        <p>Dear {recipient_name or 'Applicant'},</p>
        <p>We're excited to let you know that your application for a special use permit has been approved.</p>
        <p><strong>Event:</strong> {event_title or 'N/A'}<br>
        <strong>Park:</strong> {park_name or 'N/A'}{amount_html}</p>
        {pay_html}
        <p>If you have any questions, just reply to this email or reach out to our team.</p>
    """
    return _wrap_html("APPLICATION APPROVED!", inner)

def send_email(to_email: str, subject: str, html_content: str) -> bool:
    """
    Send an email via SendGrid.
    Returns True on success, False if skipped or failed.
    """
    try:
        if not _should_send():
            return False
        # Lazy import to avoid dependency issues if not installed
        from sendgrid import SendGridAPIClient
        from sendgrid.helpers.mail import Mail

        message = Mail(
            from_email=config.SENDGRID_FROM_EMAIL,
            to_emails=to_email,
            subject=subject or "Notification",
            html_content=html_content,
        )
        sg = SendGridAPIClient(config.SENDGRID_API_KEY)
        response = sg.send(message)
        return 200 <= getattr(response, "status_code", 500) < 300
    except Exception as exc:
        # Don't crash app due to email failure
        logger.exception("Failed to send email: %s", getattr(exc, 'message', str(exc)))
        return False

def send_notification_email(subject: str, body: str, to_email: str) -> bool:
    return send_email(to_email, subject, build_notification_html(subject, body))
