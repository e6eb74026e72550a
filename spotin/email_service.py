"""
Email Service using Resend
Provides email functionality using MJML templates for responsive design.
Emails are best effort: a missing API key or a send failure is logged and
never fails the request that triggered it.
"""

import logging
from io import StringIO
from typing import Optional, Union

import resend
from mjml import mjml_to_html

from .config import EMAIL_FROM_ADDRESS, RESEND_API_KEY
from .email_templates import (
    event_registration_template,
    event_reminder_template,
    receipt_template,
    welcome_client_template,
)

logger = logging.getLogger(__name__)

resend.api_key = RESEND_API_KEY


def compile_mjml_to_html(mjml_content: str) -> str:
    """Compile MJML template to production-ready HTML"""
    result = mjml_to_html(StringIO(mjml_content))
    # mjml_to_html returns a DotMap with "html" and "errors"
    if result.errors:
        logger.warning(f"MJML compilation warnings: {result.errors}")
    return result.html


async def send_email(
    to: Union[str, list[str]],
    subject: str,
    mjml_content: str,
    from_address: Optional[str] = None,
) -> Optional[dict]:
    """
    Send an email via Resend

    Returns:
        Resend response dict, or None when the email was skipped or failed
    """
    recipients = [to] if isinstance(to, str) else to

    if not RESEND_API_KEY:
        logger.warning(f"⚠️ RESEND_API_KEY missing - skipping email '{subject}' to {recipients}")
        return None

    try:
        html_content = compile_mjml_to_html(mjml_content)
        logger.info(f"📧 Sending email via Resend to: {recipients}")
        response = resend.Emails.send(
            {
                "from": from_address or EMAIL_FROM_ADDRESS,
                "to": recipients,
                "subject": subject,
                "html": html_content,
            }
        )
        logger.info(f"✅ Email sent successfully via Resend: {response}")
        return response
    except Exception as e:
        logger.error(f"❌ Email send error to {recipients}: {e}")
        return None


# ============================================
# Pre-built emails for common events
# ============================================


async def send_welcome_email(to: str, first_name: str, client_code: str, barcode: str):
    return await send_email(
        to=to,
        subject="Welcome to Spotin",
        mjml_content=welcome_client_template(first_name, client_code, barcode),
    )


async def send_event_registration_email(
    to: str,
    attendee_name: str,
    event_title: str,
    event_date: str,
    start_time: Optional[str],
    location: Optional[str],
    cancel_url: str,
):
    return await send_email(
        to=to,
        subject=f"Registration confirmed: {event_title}",
        mjml_content=event_registration_template(
            attendee_name, event_title, event_date, start_time, location, cancel_url
        ),
    )


async def send_event_reminder_email(
    to: str, attendee_name: str, event_title: str, event_date: str, start_time: Optional[str]
):
    return await send_email(
        to=to,
        subject=f"Reminder: {event_title} is tomorrow",
        mjml_content=event_reminder_template(attendee_name, event_title, event_date, start_time),
    )


async def send_receipt_email(to: str, client_name: str, receipt: dict):
    return await send_email(
        to=to,
        subject=f"Your Spotin receipt {receipt['receipt_number']}",
        mjml_content=receipt_template(
            client_name=client_name,
            receipt_number=receipt["receipt_number"],
            line_items=receipt["line_items"],
            subtotal=receipt["amount"],
            discount=receipt["discount_amount"],
            total=receipt["total_amount"],
            payment_method=receipt["payment_method"],
        ),
    )
