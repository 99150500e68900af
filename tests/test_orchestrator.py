import unittest
from decimal import Decimal

from application.orchestrator import (
    NO_ACCOUNT_MESSAGE,
    AccountCreationOrchestrator,
    FlowState,
    LinkOrchestrator,
    PinUpdateOrchestrator,
    TransactionOrchestrator,
)
from application.results import CONNECTION_ERROR_MESSAGE
from application.selection import AccountSelection
from domain.gateway import Err, GatewayStatusError, GatewayTransportError
from domain.models import TransactionKind
from domain.validation import (
    ACCOUNT_NUMBER_MESSAGE,
    AMOUNT_MESSAGE,
    INITIAL_BALANCE_MESSAGE,
    PIN_MESSAGE,
    REQUIRED_FIELDS_MESSAGE,
    USERNAME_REQUIRED_MESSAGE,
)

from fakes import FakeLedgerGateway, account, customer_session, employee_session, terminal_session


class TransactionOrchestratorTests(unittest.TestCase):
    def setUp(self) -> None:
        self.gateway = FakeLedgerGateway([account(1001, "100.00"), account(1002, "20.00")])
        self.session = customer_session()
        self.selection = AccountSelection()
        self.selection.refresh(self.gateway, self.session)
        self.flow = TransactionOrchestrator(
            self.gateway,
            lambda session: self.selection.refresh(self.gateway, session),
        )
        self.gateway.calls.clear()

    def _submit(self, kind, amount):
        self.flow.set_kind(kind)
        self.flow.set_amount(amount)
        return self.flow.submit(self.session, self.selection.selected.number)

    def test_invalid_amounts_never_reach_the_gateway(self) -> None:
        for amount in ("", "abc", "0", "-5", "NaN", "Infinity", "1e400"):
            with self.subTest(amount=amount):
                result = self._submit(TransactionKind.DEPOSIT, amount)
                self.assertFalse(result.success)
                self.assertEqual(result.error_message, AMOUNT_MESSAGE)
                self.assertIs(self.flow.state, FlowState.SETTLED_FAILURE)
        self.assertEqual(self.gateway.calls, [])

    def test_missing_account_fails_locally(self) -> None:
        self.flow.set_amount("10")
        result = self.flow.submit(self.session, None)

        self.assertEqual(result.error_message, NO_ACCOUNT_MESSAGE)
        self.assertEqual(self.gateway.calls, [])

    def test_success_refreshes_before_reporting(self) -> None:
        result = self._submit(TransactionKind.DEPOSIT, "25")

        self.assertTrue(result.success)
        self.assertEqual(result.message, "Deposit successful")
        self.assertEqual([c[0] for c in self.gateway.calls], ["deposit", "get_accounts"])
        self.assertEqual(self.selection.selected.balance, Decimal("125.00"))
        self.assertIs(self.flow.state, FlowState.SETTLED_SUCCESS)
        self.assertEqual(self.flow.amount_text, "")

    def test_amount_is_sent_as_decimal(self) -> None:
        self._submit(TransactionKind.WITHDRAW, "12.50")
        self.assertEqual(self.gateway.calls_named("withdraw")[0][2], Decimal("12.50"))

    def test_business_rejection_is_shown_verbatim_without_refresh(self) -> None:
        result = self._submit(TransactionKind.WITHDRAW, "500")

        self.assertFalse(result.success)
        self.assertEqual(result.error_message, "Insufficient funds")
        self.assertEqual(self.gateway.calls_named("get_accounts"), [])
        self.assertEqual(self.selection.selected.balance, Decimal("100.00"))

    def test_rejection_without_text_uses_flow_fallback(self) -> None:
        self.gateway.queued["deposit"] = [Err()]
        result = self._submit(TransactionKind.DEPOSIT, "5")
        self.assertEqual(result.error_message, "Transaction failed")

    def test_status_error_text_wins(self) -> None:
        self.gateway.queued["withdraw"] = [GatewayStatusError(400, "Daily limit exceeded")]
        result = self._submit(TransactionKind.WITHDRAW, "5")
        self.assertEqual(result.error_message, "Daily limit exceeded")

    def test_status_error_without_text_uses_flow_fallback(self) -> None:
        self.gateway.queued["withdraw"] = [GatewayStatusError(500)]
        result = self._submit(TransactionKind.WITHDRAW, "5")
        self.assertEqual(result.error_message, "Transaction failed")

    def test_transport_failure_uses_connection_message_and_allows_retry(self) -> None:
        self.gateway.queued["deposit"] = [GatewayTransportError("timeout")]
        result = self._submit(TransactionKind.DEPOSIT, "5")

        self.assertEqual(result.error_message, CONNECTION_ERROR_MESSAGE)
        self.assertIs(self.flow.state, FlowState.SETTLED_FAILURE)

        retry = self.flow.submit(self.session, 1001)
        self.assertTrue(retry.success)

    def test_resubmission_while_in_flight_is_ignored(self) -> None:
        reentrant = []

        def before_call(name):
            if name == "deposit":
                reentrant.append(self.flow.submit(self.session, 1001))

        self.gateway.before_call = before_call
        result = self._submit(TransactionKind.DEPOSIT, "10")

        self.assertTrue(result.success)
        self.assertEqual(reentrant, [None])
        self.assertEqual(len(self.gateway.calls_named("deposit")), 1)

    def test_editing_input_clears_settled_result(self) -> None:
        self._submit(TransactionKind.DEPOSIT, "abc")
        self.assertIsNotNone(self.flow.result)

        self.flow.set_amount("1")
        self.assertIs(self.flow.state, FlowState.IDLE)
        self.assertIsNone(self.flow.result)

    def test_refresh_failure_does_not_turn_success_into_failure(self) -> None:
        self.gateway.queued["get_accounts"] = [GatewayTransportError("down")]
        with self.assertLogs("application.orchestrator", level="WARNING"):
            result = self._submit(TransactionKind.DEPOSIT, "1")
        self.assertTrue(result.success)


class TerminalWithdrawalScenarioTests(unittest.TestCase):
    def test_withdraw_25_from_100(self) -> None:
        acct = account(1001, "100.00")
        gateway = FakeLedgerGateway([acct])
        session = terminal_session(acct)
        selection = AccountSelection([session.account])
        flow = TransactionOrchestrator(gateway, lambda s: selection.refresh(gateway, s))

        flow.set_kind(TransactionKind.WITHDRAW)
        flow.set_amount("25")
        result = flow.submit(session, selection.selected.number)

        self.assertTrue(result.success)
        self.assertEqual(selection.selected.balance, Decimal("75.00"))
        self.assertEqual(gateway.calls_named("withdraw"), [("withdraw", 1001, Decimal("25"))])


class PinUpdateOrchestratorTests(unittest.TestCase):
    def setUp(self) -> None:
        self.gateway = FakeLedgerGateway([account(1001, "10.00")])
        self.flow = PinUpdateOrchestrator(self.gateway)

    def test_short_pin_fails_validation_without_a_request(self) -> None:
        self.flow.set_pin("12")
        result = self.flow.submit(customer_session(), 1001)

        self.assertFalse(result.success)
        self.assertEqual(result.error_message, PIN_MESSAGE)
        self.assertEqual(self.gateway.calls, [])

    def test_valid_pin_is_sent_and_cleared(self) -> None:
        self.flow.set_pin("4321")
        result = self.flow.submit(customer_session(), 1001)

        self.assertTrue(result.success)
        self.assertEqual(result.message, "PIN updated successfully!")
        self.assertEqual(self.gateway.calls, [("update_pin", 1001, "4321")])
        self.assertEqual(self.flow.new_pin, "")

    def test_failure_message(self) -> None:
        self.gateway.queued["update_pin"] = [Err()]
        self.flow.set_pin("4321")
        self.assertEqual(self.flow.submit(customer_session(), 1001).error_message, "Failed to update PIN")


class LinkOrchestratorTests(unittest.TestCase):
    def test_blank_username_is_rejected_locally(self) -> None:
        gateway = FakeLedgerGateway([account(1001)])
        flow = LinkOrchestrator(gateway)
        flow.set_username("   ")

        result = flow.submit(employee_session(), 1001)

        self.assertEqual(result.error_message, USERNAME_REQUIRED_MESSAGE)
        self.assertEqual(gateway.calls, [])

    def test_link_sends_trimmed_username(self) -> None:
        gateway = FakeLedgerGateway([account(1001)])
        gateway.profiles["bob"] = object()
        flow = LinkOrchestrator(gateway)
        flow.set_username(" bob ")

        result = flow.submit(employee_session(), 1001)

        self.assertTrue(result.success)
        self.assertEqual(result.message, "Account linked successfully!")
        self.assertEqual(gateway.links, {1001: "bob"})


class AccountCreationOrchestratorTests(unittest.TestCase):
    def setUp(self) -> None:
        self.gateway = FakeLedgerGateway()
        self.flow = AccountCreationOrchestrator(self.gateway)

    def _submit(self, number="5001", pin="1234", type="checking", initial_balance="50"):
        self.flow.set_fields(number=number, pin=pin, type=type, initial_balance=initial_balance)
        return self.flow.submit(employee_session())

    def test_validation_order(self) -> None:
        cases = [
            ({"number": ""}, REQUIRED_FIELDS_MESSAGE),
            ({"number": "50"}, ACCOUNT_NUMBER_MESSAGE),
            ({"pin": "12345"}, PIN_MESSAGE),
            ({"initial_balance": "-1"}, INITIAL_BALANCE_MESSAGE),
            ({"initial_balance": "lots"}, INITIAL_BALANCE_MESSAGE),
            ({"initial_balance": "1e400"}, INITIAL_BALANCE_MESSAGE),
        ]
        for overrides, message in cases:
            with self.subTest(overrides=overrides):
                self.assertEqual(self._submit(**overrides).error_message, message)
        self.assertEqual(self.gateway.calls, [])

    def test_unknown_type_is_rejected(self) -> None:
        result = self._submit(type="platinum")
        self.assertFalse(result.success)
        self.assertIn("lineOfCredit", result.error_message)

    def test_zero_initial_balance_is_allowed(self) -> None:
        result = self._submit(initial_balance="0")

        self.assertTrue(result.success)
        self.assertEqual(self.gateway.accounts[5001].balance, Decimal("0"))

    def test_duplicate_account_shows_server_text(self) -> None:
        self._submit()
        result = self._submit()
        self.assertEqual(result.error_message, "Account already exists")


if __name__ == "__main__":
    unittest.main()
