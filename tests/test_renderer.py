"""Tests for text and HTML summaries."""

import pytest

from quicksplit.models import Bill, BillItem, Person
from quicksplit.split.engine import calculate_split
from quicksplit.split.renderer import (
    NO_PAYMENTS,
    render_html_summary,
    render_social_text,
    render_text_summary,
    shareable_link,
    summarize_bill,
)


@pytest.fixture
def dinner():
    """Alice paid for a 20.00 item shared with Bob."""
    return Bill(
        items=[
            BillItem(id="i1", name="Pizza", price=10, quantity=2, total_price=20),
        ],
        people=[
            Person(id="alice", name="Alice", is_payer=True),
            Person(id="bob", name="Bob"),
        ],
        bill_total=20,
    )


class TestTextSummary:
    def test_exact_output(self, dinner):
        result = calculate_split(dinner.items, dinner.people)

        text = render_text_summary(dinner, result, "EUR")

        assert text == (
            "📝 QuickSplit Summary\n"
            "\n"
            "💰 Total Bill: €20.00\n"
            "👥 Number of People: 2\n"
            "💳 Paid By: Alice\n"
            "\n"
            "👤 Individual Totals:\n"
            "Alice: €10.00\n"
            "Bob: €10.00\n"
            "\n"
            "💸 Payment Summary:\n"
            "Bob owes Alice €10.00\n"
            "\n"
            "Shared via QuickSplit App"
        )

    def test_no_payer(self, dinner):
        bill = dinner.model_copy(deep=True)
        for person in bill.people:
            person.is_payer = False
        result = calculate_split(bill.items, bill.people)

        text = render_text_summary(bill, result)

        assert "💳 Paid By: Not specified" in text
        assert NO_PAYMENTS in text
        assert "Payment Summary" not in text

    def test_is_deterministic(self, dinner):
        first = summarize_bill(dinner)[1]
        second = summarize_bill(dinner.model_copy(deep=True))[1]

        assert first.encode() == second.encode()

    def test_uses_currency(self, dinner):
        _, text = summarize_bill(dinner, "USD")

        assert "💰 Total Bill: $20.00" in text

    def test_individual_totals_follow_people_order(self, dinner):
        bill = dinner.model_copy(deep=True)
        bill.people.reverse()
        result = calculate_split(bill.items, bill.people)

        text = render_text_summary(bill, result)

        assert text.index("Bob: ") < text.index("Alice: ")


class TestHtmlSummary:
    def test_sections_in_order(self, dinner):
        result = calculate_split(dinner.items, dinner.people)

        html = render_html_summary(dinner, result)

        assert html.startswith("<!DOCTYPE html>")
        positions = [
            html.index("Bill Details"),
            html.index("Individual Totals"),
            html.index("Payment Summary"),
            html.index("Generated by QuickSplit App"),
        ]
        assert positions == sorted(positions)
        assert '<div class="payment-item">Bob owes Alice €10.00</div>' in html

    def test_names_are_escaped(self, dinner):
        bill = dinner.model_copy(deep=True)
        bill.people[1].name = "<b>Bob & co</b>"
        result = calculate_split(bill.items, bill.people)

        html = render_html_summary(bill, result)

        assert "&lt;b&gt;Bob &amp; co&lt;/b&gt;" in html
        assert "<b>Bob" not in html

    def test_no_payments(self, dinner):
        bill = dinner.model_copy(deep=True)
        bill.people[0].is_payer = False
        result = calculate_split(bill.items, bill.people)

        html = render_html_summary(bill, result)

        assert f"<p>{NO_PAYMENTS}</p>" in html
        assert "payment-item\">" not in html

    def test_is_deterministic(self, dinner):
        result = calculate_split(dinner.items, dinner.people)

        assert render_html_summary(dinner, result) == render_html_summary(dinner, result)


class TestSocialText:
    def test_general_is_unchanged(self):
        assert render_social_text("hello") == "hello"

    def test_message_and_link(self):
        text = render_social_text("summary", message="Dinner!", link="https://x/bills/1")

        assert text == "Dinner!\n\nsummary\n\nView details: https://x/bills/1"

    def test_twitter_is_truncated(self):
        assert len(render_social_text("a" * 500, "twitter")) == 280

    def test_whatsapp_is_truncated(self):
        assert len(render_social_text("a" * 5000, "whatsapp")) == 4000

    def test_email_uses_line_breaks(self):
        assert render_social_text("a\nb", "email") == "a<br>b"


class TestShareableLink:
    def test_saved_bill(self):
        assert shareable_link("https://billsplitter.app/", "abc") == "https://billsplitter.app/bills/abc"

    def test_unsaved_bill(self):
        assert shareable_link("https://billsplitter.app") == "https://billsplitter.app"
