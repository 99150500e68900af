import unittest

from application.routing import (
    CAPABILITIES,
    Capability,
    CapabilityDenied,
    DashboardView,
    allows,
    require,
    route,
)
from domain.models import Role, UnrecognizedRoleError


class RoleRouterTests(unittest.TestCase):
    def test_each_role_has_exactly_one_view(self) -> None:
        self.assertIs(route(Role.EMPLOYEE), DashboardView.EMPLOYEE)
        self.assertIs(route(Role.CUSTOMER), DashboardView.CUSTOMER)
        self.assertIs(route(Role.TERMINAL), DashboardView.TERMINAL)

    def test_wire_values_are_accepted(self) -> None:
        self.assertIs(route("atm"), DashboardView.TERMINAL)
        self.assertIs(route("customer"), DashboardView.CUSTOMER)

    def test_unknown_role_raises_instead_of_defaulting(self) -> None:
        for role in ("auditor", "terminal", "", "ATM"):
            with self.subTest(role=role):
                with self.assertRaises(UnrecognizedRoleError):
                    route(role)

    def test_every_view_has_capabilities(self) -> None:
        self.assertEqual(set(CAPABILITIES), set(DashboardView))

    def test_customer_cannot_reach_employee_tools(self) -> None:
        self.assertFalse(allows(DashboardView.CUSTOMER, Capability.LINK_ACCOUNT))
        with self.assertRaises(CapabilityDenied) as ctx:
            require(DashboardView.CUSTOMER, Capability.VIEW_LOGS)
        self.assertIn("customer dashboard", str(ctx.exception))

    def test_terminal_has_quick_amounts_but_no_account_choice(self) -> None:
        self.assertTrue(allows(DashboardView.TERMINAL, Capability.QUICK_AMOUNTS))
        self.assertFalse(allows(DashboardView.TERMINAL, Capability.SELECT_ACCOUNT))

    def test_employee_does_not_transact(self) -> None:
        self.assertFalse(allows(DashboardView.EMPLOYEE, Capability.TRANSACT))


if __name__ == "__main__":
    unittest.main()
