"""
MJML Email Templates
All email templates using MJML for responsive, cross-client compatibility
"""

from typing import Optional

from .config import CURRENCY, FRONTEND_URL

THEME = {
    "primary": "#f97316",
    "primary_dark": "#ea580c",
    "background": "#fafaf9",
    "text_primary": "#1c1917",
    "text_secondary": "#44403c",
    "text_muted": "#78716c",
    "border": "#e7e5e4",
}


def get_base_template(
    title: str,
    preview_text: str,
    content_sections: str,
    cta_url: Optional[str] = None,
    cta_label: Optional[str] = None,
) -> str:
    """Base MJML template wrapper for all emails"""

    cta_section = ""
    if cta_url and cta_label:
        cta_section = f"""
        <mj-section padding="20px 0">
          <mj-column>
            <mj-button
              href="{cta_url}"
              background-color="{THEME['primary']}"
              color="#ffffff"
              font-weight="600"
              border-radius="8px"
              padding="18px 40px"
              font-size="16px">
              {cta_label}
            </mj-button>
          </mj-column>
        </mj-section>
        """

    return f"""
    <mjml>
      <mj-head>
        <mj-title>{title}</mj-title>
        <mj-preview>{preview_text}</mj-preview>
        <mj-attributes>
          <mj-all font-family="-apple-system, BlinkMacSystemFont, 'Segoe UI', 'Helvetica Neue', Arial, sans-serif" />
          <mj-text font-size="16px" line-height="1.6" color="{THEME['text_secondary']}" />
        </mj-attributes>
      </mj-head>
      <mj-body background-color="{THEME['background']}">
        <mj-section background-color="#ffffff" padding="32px 20px 0 20px">
          <mj-column>
            <mj-text font-size="22px" font-weight="700" color="{THEME['primary_dark']}" padding="0">
              Spotin
            </mj-text>
            <mj-divider border-color="{THEME['border']}" border-width="1px" padding="24px 0 0 0" />
          </mj-column>
        </mj-section>

        <mj-section background-color="#ffffff" padding="24px 40px 40px 40px">
          <mj-column>
            <mj-text font-size="24px" font-weight="600" color="{THEME['text_primary']}" line-height="1.3" padding="0 0 16px 0">
              {title}
            </mj-text>
            {content_sections}
          </mj-column>
        </mj-section>

        {cta_section}

        <mj-section padding="32px 20px">
          <mj-column>
            <mj-text align="center" font-size="13px" color="{THEME['text_muted']}" padding="0">
              Spotin Coworking Space
            </mj-text>
          </mj-column>
        </mj-section>
      </mj-body>
    </mjml>
    """


def _detail_rows(rows: list[tuple[str, str]]) -> str:
    cells = "".join(
        f"""<tr><td style="padding:6px 0;color:{THEME['text_muted']}">{label}</td>
        <td style="padding:6px 0;text-align:right;font-weight:600">{value}</td></tr>"""
        for label, value in rows
    )
    return f"""
    <mj-table padding="8px 0">
      {cells}
    </mj-table>
    """


def welcome_client_template(first_name: str, client_code: str, barcode: str) -> str:
    content = f"""
    <mj-text>Hi {first_name}, welcome to Spotin!</mj-text>
    <mj-text>Show your member code at the front desk to check in.</mj-text>
    {_detail_rows([("Member code", client_code), ("Barcode", barcode)])}
    """
    return get_base_template(
        title="Welcome to Spotin",
        preview_text="Your member code is ready",
        content_sections=content,
        cta_url=f"{FRONTEND_URL}/client",
        cta_label="Open your dashboard",
    )


def event_registration_template(
    attendee_name: str,
    event_title: str,
    event_date: str,
    start_time: Optional[str],
    location: Optional[str],
    cancel_url: str,
) -> str:
    rows = [("Event", event_title), ("Date", event_date)]
    if start_time:
        rows.append(("Starts", start_time))
    if location:
        rows.append(("Location", location))

    content = f"""
    <mj-text>Hi {attendee_name}, your spot is confirmed.</mj-text>
    {_detail_rows(rows)}
    <mj-text font-size="14px" color="{THEME['text_muted']}">
      Can't make it? Cancel your registration so someone else can join.
    </mj-text>
    """
    return get_base_template(
        title="You're registered!",
        preview_text=f"See you at {event_title}",
        content_sections=content,
        cta_url=cancel_url,
        cta_label="Cancel registration",
    )


def event_reminder_template(attendee_name: str, event_title: str, event_date: str, start_time: Optional[str]) -> str:
    when = f"{event_date} at {start_time}" if start_time else event_date
    content = f"""
    <mj-text>Hi {attendee_name}, this is a reminder that <b>{event_title}</b> is tomorrow ({when}).</mj-text>
    """
    return get_base_template(
        title="See you tomorrow",
        preview_text=f"{event_title} is tomorrow",
        content_sections=content,
    )


def receipt_template(
    client_name: str,
    receipt_number: str,
    line_items: list[dict],
    subtotal: float,
    discount: float,
    total: float,
    payment_method: str,
) -> str:
    rows = [
        (f"{item['name']} × {item['quantity']}", f"{item['total']:.2f} {CURRENCY}") for item in line_items
    ]
    rows.append(("Subtotal", f"{subtotal:.2f} {CURRENCY}"))
    if discount:
        rows.append(("Membership discount", f"-{discount:.2f} {CURRENCY}"))
    rows.append(("Total", f"{total:.2f} {CURRENCY}"))
    rows.append(("Paid by", payment_method))

    content = f"""
    <mj-text>Hi {client_name}, thanks for visiting. Here is your receipt {receipt_number}.</mj-text>
    {_detail_rows(rows)}
    """
    return get_base_template(
        title="Your receipt",
        preview_text=f"Receipt {receipt_number}",
        content_sections=content,
    )
