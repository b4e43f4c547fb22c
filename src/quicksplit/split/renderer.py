"""Text and HTML summaries of a split bill, for sharing and export.

Output depends only on the inputs: no timestamps and no unordered iteration,
so the same bill always renders to the same bytes.
"""

from html import escape
from typing import Literal, get_args

from ..models import Bill, SplitResult
from ..money import format_currency
from .engine import calculate_split

SUMMARY_TITLE = "QuickSplit Summary"
NO_PAYMENTS = "No payments needed."
NO_PAYER = "Not specified"

Platform = Literal["general", "whatsapp", "facebook", "twitter", "email", "copy"]
PLATFORMS = get_args(Platform)

PLATFORM_LIMITS = {
    "whatsapp": 4000,
    "twitter": 280,
}

_HTML_HEAD = """<!DOCTYPE html>
<html>
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>QuickSplit Summary</title>
  <style>
    body { font-family: Arial, sans-serif; line-height: 1.6; color: #333; max-width: 600px; margin: 0 auto; padding: 20px; }
    h1 { color: #2563eb; text-align: center; }
    .section { margin-bottom: 20px; border: 1px solid #e5e7eb; border-radius: 8px; padding: 15px; }
    .section-title { font-weight: bold; margin-bottom: 10px; color: #1f2937; }
    .payment-item { padding: 10px; margin-bottom: 8px; background-color: #f3f4f6; border-radius: 4px; }
    .footer { text-align: center; margin-top: 30px; font-size: 0.8em; color: #6b7280; }
  </style>
</head>
<body>
  <h1>QuickSplit Summary</h1>
"""

_HTML_FOOT = """  <div class="footer">Generated by QuickSplit App</div>
</body>
</html>
"""


def _payer_name(bill: Bill, result: SplitResult) -> str:
    if result.payer_id is None:
        return NO_PAYER
    return bill.get_person_name(result.payer_id)


def render_text_summary(bill: Bill, result: SplitResult, currency: str = "EUR") -> str:
    """
    Render a plain-text summary suitable for messaging apps.

    Sections, in order: header, bill total, people count, payer, individual
    totals (people order), payments (settlement order) or a no-payments line,
    footer.
    """
    lines = [
        f"📝 {SUMMARY_TITLE}",
        "",
        f"💰 Total Bill: {format_currency(bill.bill_total, currency)}",
        f"👥 Number of People: {len(bill.people)}",
        f"💳 Paid By: {_payer_name(bill, result)}",
        "",
        "👤 Individual Totals:",
    ]
    for person in bill.people:
        amount = result.person_totals.get(person.id, 0.0)
        lines.append(f"{person.name}: {format_currency(amount, currency)}")

    lines.append("")
    if result.payments:
        lines.append("💸 Payment Summary:")
        for payment in result.payments:
            lines.append(
                f"{bill.get_person_name(payment.from_id)} owes "
                f"{bill.get_person_name(payment.to_id)} "
                f"{format_currency(payment.amount, currency)}"
            )
    else:
        lines.append(NO_PAYMENTS)

    lines.append("")
    lines.append("Shared via QuickSplit App")
    return "\n".join(lines)


def render_html_summary(bill: Bill, result: SplitResult, currency: str = "EUR") -> str:
    """Render a standalone HTML document with the same sections as the text summary."""
    parts = [_HTML_HEAD]

    parts.append('  <div class="section">\n')
    parts.append('    <div class="section-title">Bill Details</div>\n')
    parts.append(f"    <p>Total Bill: {escape(format_currency(bill.bill_total, currency))}</p>\n")
    parts.append(f"    <p>Number of People: {len(bill.people)}</p>\n")
    parts.append(f"    <p>Paid By: {escape(_payer_name(bill, result))}</p>\n")
    parts.append("  </div>\n")

    parts.append('  <div class="section">\n')
    parts.append('    <div class="section-title">Individual Totals</div>\n')
    for person in bill.people:
        amount = result.person_totals.get(person.id, 0.0)
        parts.append(
            f"    <p>{escape(person.name)}: {escape(format_currency(amount, currency))}</p>\n"
        )
    parts.append("  </div>\n")

    parts.append('  <div class="section">\n')
    parts.append('    <div class="section-title">Payment Summary</div>\n')
    if result.payments:
        for payment in result.payments:
            parts.append(
                f'    <div class="payment-item">'
                f"{escape(bill.get_person_name(payment.from_id))} owes "
                f"{escape(bill.get_person_name(payment.to_id))} "
                f"{escape(format_currency(payment.amount, currency))}</div>\n"
            )
    else:
        parts.append(f"    <p>{NO_PAYMENTS}</p>\n")
    parts.append("  </div>\n")

    parts.append(_HTML_FOOT)
    return "".join(parts)


def summarize_bill(bill: Bill, currency: str = "EUR") -> tuple[SplitResult, str]:
    """Split a bill and render its text summary in one step."""
    result = calculate_split(bill.items, bill.people)
    return result, render_text_summary(bill, result, currency)


def shareable_link(base_url: str, bill_id: str | None = None) -> str:
    """Link to a saved bill, or to the app itself for an unsaved one."""
    base = base_url.rstrip("/")
    if bill_id:
        return f"{base}/bills/{bill_id}"
    return base


def render_social_text(
    text: str,
    platform: Platform = "general",
    message: str | None = None,
    link: str | None = None,
) -> str:
    """
    Shape a summary for a specific platform.

    Args:
        text: Plain-text summary
        platform: Target platform
        message: Optional custom message placed above the summary
        link: Optional link appended below the summary

    Returns:
        Text ready to post on the platform
    """
    share_text = text
    if link:
        share_text += f"\n\nView details: {link}"
    if message:
        share_text = f"{message}\n\n{share_text}"

    if platform in PLATFORM_LIMITS:
        return share_text[: PLATFORM_LIMITS[platform]]
    if platform == "email":
        return share_text.replace("\n", "<br>")
    return share_text
