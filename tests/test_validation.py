import unittest
from decimal import Decimal

from domain.validation import (
    AMOUNT_MESSAGE,
    PASSWORD_LENGTH_MESSAGE,
    PASSWORD_MISMATCH_MESSAGE,
    PIN_MESSAGE,
    is_valid_account_number,
    is_valid_amount,
    is_valid_initial_balance,
    is_valid_pin,
    parse_amount,
    validate_amount,
    validate_new_password,
    validate_pin,
)


class PinRuleTests(unittest.TestCase):
    def test_pin_grid(self) -> None:
        cases = {
            "1234": True,
            "0000": True,
            "123": False,
            "12345": False,
            "12a4": False,
            "": False,
            " 1234": False,
            "１２３４": False,  # full-width digits are not ASCII
        }
        for pin, expected in cases.items():
            with self.subTest(pin=pin):
                self.assertEqual(is_valid_pin(pin), expected)

    def test_non_string_pin_is_invalid(self) -> None:
        self.assertFalse(is_valid_pin(1234))
        self.assertFalse(is_valid_pin(None))

    def test_validate_pin_returns_message(self) -> None:
        self.assertEqual(validate_pin("12"), PIN_MESSAGE)
        self.assertIsNone(validate_pin("4321"))


class AmountRuleTests(unittest.TestCase):
    def test_positive_finite_numbers_are_valid(self) -> None:
        for value in (1, 0.01, Decimal("25.00"), 10 ** 30):
            with self.subTest(value=value):
                self.assertTrue(is_valid_amount(value))

    def test_rejected_amounts(self) -> None:
        for value in (0, -5, Decimal("0"), float("nan"), float("inf"), Decimal("NaN"), True, None, "10"):
            with self.subTest(value=value):
                self.assertFalse(is_valid_amount(value))

    def test_amounts_outside_float_range_are_rejected(self) -> None:
        for value in (Decimal("1e400"), Decimal("-1e400"), 10 ** 400, Decimal("1e-400")):
            with self.subTest(value=value):
                self.assertFalse(is_valid_amount(value))
        self.assertEqual(validate_amount(Decimal("1e400")), AMOUNT_MESSAGE)
        self.assertFalse(is_valid_initial_balance(Decimal("1e400")))
        self.assertFalse(is_valid_initial_balance(10 ** 400))

    def test_initial_balance_allows_zero(self) -> None:
        self.assertTrue(is_valid_initial_balance(Decimal("0")))
        self.assertFalse(is_valid_initial_balance(Decimal("-0.01")))

    def test_parse_amount(self) -> None:
        self.assertEqual(parse_amount(" 25.50 "), Decimal("25.50"))
        self.assertIsNone(parse_amount("abc"))
        self.assertIsNone(parse_amount(""))
        self.assertEqual(validate_amount(parse_amount("abc")), AMOUNT_MESSAGE)
        self.assertEqual(validate_amount(parse_amount("-3")), AMOUNT_MESSAGE)


class AccountNumberRuleTests(unittest.TestCase):
    def test_account_numbers(self) -> None:
        self.assertTrue(is_valid_account_number("1001"))
        self.assertTrue(is_valid_account_number("123456"))
        self.assertFalse(is_valid_account_number("123"))
        self.assertFalse(is_valid_account_number("12a4"))
        self.assertFalse(is_valid_account_number(""))


class PasswordRuleTests(unittest.TestCase):
    def test_mismatch_is_reported_first(self) -> None:
        self.assertEqual(validate_new_password("abc", "abd"), PASSWORD_MISMATCH_MESSAGE)

    def test_short_password(self) -> None:
        self.assertEqual(validate_new_password("abc", "abc"), PASSWORD_LENGTH_MESSAGE)
        self.assertIsNone(validate_new_password("abcd", "abcd"))


if __name__ == "__main__":
    unittest.main()
