import unittest
from decimal import Decimal

from application.dashboard import Dashboard
from application.routing import DashboardView
from domain.models import AccountType, LogEntry
from interfaces.formatting import (
    changes_from_fields,
    draft_from_fields,
    format_accounts,
    format_dashboard,
    format_logs,
    format_money,
    help_text,
    parse_fields,
)

from fakes import FakeLedgerGateway, account, terminal_session


class FormattingTests(unittest.TestCase):
    def test_money(self) -> None:
        self.assertEqual(format_money(Decimal("1234.5")), "$1,234.50")

    def test_accounts_mark_selection(self) -> None:
        first = account(1001, "10.00")
        second = account(1002, "2.00", AccountType.LINE_OF_CREDIT)

        text = format_accounts([first, second], second)

        self.assertIn("▶ #1002 Line of Credit: $2.00", text)
        self.assertIn("  #1001 Checking: $10.00", text)

    def test_unknown_account_type_label_is_raw_text(self) -> None:
        text = format_accounts([account(1001, "1.00", type="moneyMarket")], None)
        self.assertIn("moneyMarket", text)

    def test_terminal_dashboard(self) -> None:
        acct = account(1001, "75.00")
        dashboard = Dashboard(terminal_session(acct), FakeLedgerGateway([acct]))
        self.assertIn("Balance: $75.00", format_dashboard(dashboard))

    def test_logs(self) -> None:
        text = format_logs([LogEntry(details="Deposit, 1001", timestamp="2024-05-01")])
        self.assertEqual(text, "2024-05-01 | Deposit, 1001")
        self.assertEqual(format_logs([]), "No activity yet.")

    def test_help_differs_per_view(self) -> None:
        self.assertIn("/atm", help_text(None, "/"))
        self.assertIn("!logs", help_text(DashboardView.EMPLOYEE, "!"))
        self.assertNotIn("/logs", help_text(DashboardView.CUSTOMER, "/"))


class FieldArgumentTests(unittest.TestCase):
    def test_parse_fields_keeps_inner_spaces(self) -> None:
        fields = parse_fields("name=Ann Lee; Username=ann ;address=1 Main St; junk")

        self.assertEqual(fields, {"name": "Ann Lee", "username": "ann", "address": "1 Main St"})

    def test_draft_defaults_missing_fields_to_blank(self) -> None:
        draft = draft_from_fields({"username": "ann"})
        self.assertEqual(draft.email, "")

    def test_changes_skip_blank_values(self) -> None:
        changes = changes_from_fields({"name": "", "email": "a@b.c", "credit": "700"})

        self.assertIsNone(changes.name)
        self.assertEqual(changes.email, "a@b.c")
        self.assertEqual(changes.credit_score, "700")


if __name__ == "__main__":
    unittest.main()
