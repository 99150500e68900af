from __future__ import annotations

import logging
from typing import Optional

import telebot
from telebot.apihelper import ApiTelegramException
from telebot.types import InlineKeyboardButton, InlineKeyboardMarkup

from domain.models import TransactionKind, UnrecognizedRoleError
from application.dashboard import Dashboard
from application.routing import Capability, CapabilityDenied, DashboardView, allows
from application.shell import NOT_SIGNED_IN_MESSAGE, SessionShell
from interfaces.formatting import (
    IN_FLIGHT_MESSAGE,
    UNSUPPORTED_ROLE_MESSAGE,
    changes_from_fields,
    draft_from_fields,
    format_accounts,
    format_dashboard,
    format_logs,
    format_profile,
    help_text,
    parse_fields,
    welcome_text,
)
from interfaces.telegram.callback_data import (
    encode_account_choice,
    encode_quick_amount,
    parse_account_choice,
    parse_quick_amount,
)


logger = logging.getLogger(__name__)

PREFIX = "/"


def _arguments(message) -> str:
    """Everything after the command word."""

    parts = (message.text or "").split(maxsplit=1)
    return parts[1] if len(parts) > 1 else ""


def _account_keyboard(dashboard: Dashboard) -> Optional[InlineKeyboardMarkup]:
    if not allows(dashboard.view, Capability.SELECT_ACCOUNT):
        return None
    accounts = dashboard.selection.accounts
    if len(accounts) < 2:
        return None

    markup = InlineKeyboardMarkup(row_width=2)
    for account in accounts:
        label = f"#{account.number}"
        if dashboard.selected is not None and account.number == dashboard.selected.number:
            label = f"▶ {label}"
        markup.add(
            InlineKeyboardButton(label, callback_data=encode_account_choice(account.number))
        )
    return markup


def _quick_amount_keyboard(dashboard: Dashboard, kind: TransactionKind) -> InlineKeyboardMarkup:
    markup = InlineKeyboardMarkup(row_width=4)
    markup.add(
        *[
            InlineKeyboardButton(f"${amount}", callback_data=encode_quick_amount(kind, amount))
            for amount in dashboard.quick_amounts()
        ]
    )
    return markup


def create_telegram_bot(bot_token: str, shell: SessionShell) -> telebot.TeleBot:
    """
    Configure and return a TeleBot instance wired to the session shell.

    This module contains only Telegram-specific concerns: parsing Telegram
    messages/callbacks and rendering application results as chat text.
    Updates are handled one at a time (`threaded=False`).
    """

    bot = telebot.TeleBot(bot_token, threaded=False)

    def forget(message) -> None:
        """Delete a message that carried a password or PIN."""

        try:
            bot.delete_message(message.chat.id, message.message_id)
        except ApiTelegramException as exc:
            logger.warning("Could not delete credential message in chat %s: %s",
                           message.chat.id, exc.description)

    def signed_in(handler):
        """Resolve the chat's dashboard and turn capability errors into replies."""

        def wrapper(message):
            chat_id = message.chat.id
            try:
                dashboard = shell.dashboard(chat_id)
                if dashboard is None:
                    bot.send_message(chat_id, NOT_SIGNED_IN_MESSAGE)
                    return
                handler(message, dashboard)
            except CapabilityDenied as exc:
                bot.send_message(chat_id, str(exc))
            except UnrecognizedRoleError:
                logger.critical("Unsupported role in chat %s", chat_id, extra={"chat_id": chat_id})
                bot.send_message(chat_id, UNSUPPORTED_ROLE_MESSAGE)
                raise

        return wrapper

    def send_outcome(chat_id, dashboard: Dashboard, result) -> None:
        if result is None:
            bot.send_message(chat_id, IN_FLIGHT_MESSAGE)
            return
        if result.success:
            bot.send_message(
                chat_id,
                f"{result.text}\n\n{format_dashboard(dashboard)}",
                reply_markup=_account_keyboard(dashboard),
            )
        else:
            bot.send_message(chat_id, result.text)

    @bot.message_handler(commands=["start", "hello"])
    def handle_start(message):
        bot.send_message(message.chat.id, welcome_text(PREFIX))

    @bot.message_handler(commands=["help"])
    def handle_help(message):
        dashboard = shell.dashboard(message.chat.id)
        view = dashboard.view if dashboard is not None else None
        bot.send_message(message.chat.id, help_text(view, PREFIX))

    @bot.message_handler(commands=["login"])
    def handle_login(message):
        parts = _arguments(message).split()
        forget(message)

        try:
            if len(parts) == 3 and parts[0].lower() == "employee":
                result = shell.login_employee(message.chat.id, parts[1], parts[2])
            elif len(parts) == 2:
                result = shell.login_customer(message.chat.id, parts[0], parts[1])
            else:
                bot.send_message(message.chat.id, f"Usage: {PREFIX}login [employee] <username> <password>")
                return
        except UnrecognizedRoleError:
            logger.critical("Ledger granted an unsupported role in chat %s", message.chat.id)
            bot.send_message(message.chat.id, UNSUPPORTED_ROLE_MESSAGE)
            raise

        if not result.success:
            bot.send_message(message.chat.id, result.text)
            return

        dashboard = shell.dashboard(message.chat.id)
        bot.send_message(
            message.chat.id,
            f"{result.text}\n\n{format_dashboard(dashboard)}",
            reply_markup=_account_keyboard(dashboard),
        )

    @bot.message_handler(commands=["atm"])
    def handle_atm(message):
        parts = _arguments(message).split()
        forget(message)
        if len(parts) != 2:
            bot.send_message(message.chat.id, f"Usage: {PREFIX}atm <account number> <pin>")
            return

        try:
            result = shell.login_terminal(message.chat.id, parts[0], parts[1])
        except UnrecognizedRoleError:
            logger.critical("Ledger granted an unsupported role in chat %s", message.chat.id)
            bot.send_message(message.chat.id, UNSUPPORTED_ROLE_MESSAGE)
            raise

        if not result.success:
            bot.send_message(message.chat.id, result.text)
            return

        dashboard = shell.dashboard(message.chat.id)
        bot.send_message(
            message.chat.id,
            f"{result.text}\n\n{format_dashboard(dashboard)}",
            reply_markup=_quick_amount_keyboard(dashboard, TransactionKind.WITHDRAW),
        )

    @bot.message_handler(commands=["register"])
    def handle_register(message):
        fields = parse_fields(_arguments(message))
        forget(message)
        result = shell.register(draft_from_fields(fields), fields.get("confirm", ""))
        bot.send_message(message.chat.id, result.text)

    @bot.message_handler(commands=["logout"])
    def handle_logout(message):
        result = shell.logout(message.chat.id)
        bot.send_message(message.chat.id, result.text)

    @bot.message_handler(commands=["accounts"])
    @signed_in
    def handle_accounts(message, dashboard: Dashboard):
        accounts = dashboard.accounts()
        if dashboard.view is DashboardView.TERMINAL:
            bot.send_message(message.chat.id, format_dashboard(dashboard))
            return
        bot.send_message(
            message.chat.id,
            format_accounts(accounts, dashboard.selected),
            reply_markup=_account_keyboard(dashboard),
        )

    @bot.message_handler(commands=["refresh"])
    @signed_in
    def handle_refresh(message, dashboard: Dashboard):
        result = dashboard.refresh()
        if not result.success:
            bot.send_message(message.chat.id, result.text)
            return
        bot.send_message(
            message.chat.id,
            format_dashboard(dashboard),
            reply_markup=_account_keyboard(dashboard),
        )

    @bot.message_handler(commands=["select"])
    @signed_in
    def handle_select(message, dashboard: Dashboard):
        result = dashboard.select(_arguments(message))
        send_outcome(message.chat.id, dashboard, result)

    @bot.message_handler(commands=["deposit", "withdraw"])
    @signed_in
    def handle_transaction(message, dashboard: Dashboard):
        op = message.text.split()[0][1:].split("@")[0]  # strip leading '/' and bot name
        kind = TransactionKind(op)
        amount = _arguments(message).strip()

        if not amount and allows(dashboard.view, Capability.QUICK_AMOUNTS):
            bot.send_message(
                message.chat.id,
                f"Choose an amount to {kind.value}:",
                reply_markup=_quick_amount_keyboard(dashboard, kind),
            )
            return

        result = dashboard.transact(kind, amount)
        send_outcome(message.chat.id, dashboard, result)

    @bot.message_handler(commands=["pin"])
    @signed_in
    def handle_pin(message, dashboard: Dashboard):
        new_pin = _arguments(message).strip()
        forget(message)
        result = dashboard.change_pin(new_pin)
        if result is None:
            bot.send_message(message.chat.id, IN_FLIGHT_MESSAGE)
        else:
            bot.send_message(message.chat.id, result.text)

    @bot.message_handler(commands=["profile"])
    @signed_in
    def handle_profile(message, dashboard: Dashboard):
        if dashboard.view is DashboardView.EMPLOYEE:
            lookup = dashboard.search_profile(_arguments(message))
            if not lookup.success:
                bot.send_message(message.chat.id, lookup.error_message)
                return
            bot.send_message(message.chat.id, format_profile(lookup.profile))
            return

        bot.send_message(message.chat.id, format_profile(dashboard.profile()))

    @bot.message_handler(commands=["search"])
    @signed_in
    def handle_search(message, dashboard: Dashboard):
        result = dashboard.search(_arguments(message))
        if not result.success:
            bot.send_message(message.chat.id, result.text)
            return
        bot.send_message(message.chat.id, format_dashboard(dashboard))

    @bot.message_handler(commands=["link"])
    @signed_in
    def handle_link(message, dashboard: Dashboard):
        result = dashboard.link(_arguments(message))
        send_outcome(message.chat.id, dashboard, result)

    @bot.message_handler(commands=["newaccount"])
    @signed_in
    def handle_new_account(message, dashboard: Dashboard):
        parts = _arguments(message).split()
        forget(message)
        if len(parts) != 4:
            bot.send_message(
                message.chat.id,
                f"Usage: {PREFIX}newaccount <number> <pin> <checking|saving|lineOfCredit> <initial balance>",
            )
            return

        result = dashboard.create_account(*parts)
        if result is None:
            bot.send_message(message.chat.id, IN_FLIGHT_MESSAGE)
        else:
            bot.send_message(message.chat.id, result.text)

    @bot.message_handler(commands=["newprofile"])
    @signed_in
    def handle_new_profile(message, dashboard: Dashboard):
        fields = parse_fields(_arguments(message))
        forget(message)
        result = dashboard.create_profile(draft_from_fields(fields))
        bot.send_message(message.chat.id, result.text)

    @bot.message_handler(commands=["editprofile"])
    @signed_in
    def handle_edit_profile(message, dashboard: Dashboard):
        fields = parse_fields(_arguments(message))
        if "password" in fields:
            forget(message)
        result = dashboard.update_profile(changes_from_fields(fields), fields.get("username"))
        bot.send_message(message.chat.id, result.text)

    @bot.message_handler(commands=["logs"])
    @signed_in
    def handle_logs(message, dashboard: Dashboard):
        result = dashboard.logs()
        if not result.success:
            bot.send_message(message.chat.id, result.error_message)
            return
        bot.send_message(message.chat.id, format_logs(result.entries))

    @bot.callback_query_handler(func=lambda call: call.data.startswith("acct:"))
    def handle_account_choice(call):
        """Handle a tap on one of the account selection buttons."""

        try:
            account_number = parse_account_choice(call.data)
        except ValueError:
            bot.answer_callback_query(call.id, "Invalid selection.")
            return

        dashboard = shell.dashboard(call.message.chat.id)
        if dashboard is None:
            bot.answer_callback_query(call.id, NOT_SIGNED_IN_MESSAGE)
            return

        try:
            result = dashboard.select(str(account_number))
        except CapabilityDenied as exc:
            bot.answer_callback_query(call.id, str(exc))
            return

        bot.answer_callback_query(call.id, result.text)
        if result.success:
            bot.edit_message_text(
                format_dashboard(dashboard),
                call.message.chat.id,
                call.message.id,
                reply_markup=_account_keyboard(dashboard),
            )

    @bot.callback_query_handler(func=lambda call: call.data.startswith("quick:"))
    def handle_quick_amount(call):
        """Handle a terminal quick-amount button: one tap, one transaction."""

        try:
            kind, amount = parse_quick_amount(call.data)
        except ValueError:
            bot.answer_callback_query(call.id, "Invalid amount.")
            return

        dashboard = shell.dashboard(call.message.chat.id)
        if dashboard is None:
            bot.answer_callback_query(call.id, NOT_SIGNED_IN_MESSAGE)
            return

        try:
            result = dashboard.transact(kind, str(amount))
        except CapabilityDenied as exc:
            bot.answer_callback_query(call.id, str(exc))
            return

        bot.answer_callback_query(call.id)
        send_outcome(call.message.chat.id, dashboard, result)

    return bot
