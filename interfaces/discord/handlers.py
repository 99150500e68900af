from __future__ import annotations

import logging
from typing import Optional

import discord
from discord.ext import commands

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


logger = logging.getLogger(__name__)

PREFIX = "!"


async def _forget(ctx: commands.Context) -> None:
    """Delete a message that carried a password or PIN."""

    try:
        await ctx.message.delete()
    except discord.HTTPException as exc:
        # DMs and channels without Manage Messages refuse deletion.
        logger.warning("Could not delete credential message in channel %s: %s",
                       ctx.channel.id, exc)


def create_discord_bot(shell: SessionShell) -> commands.Bot:
    """
    Configure and return a Discord bot with behaviour analogous to
    the Telegram interface. Sessions are keyed by channel, so a DM
    channel behaves like a private Telegram chat.

    The application layer is synchronous and is called inline from the
    event loop; ledger calls are short and bounded by the gateway timeout.
    """

    intents = discord.Intents.default()
    intents.message_content = True

    # Disable the default help command so we can provide our own `!help`.
    bot = commands.Bot(command_prefix=PREFIX, intents=intents, help_command=None)

    async def dashboard_for(ctx: commands.Context) -> Optional[Dashboard]:
        dashboard = shell.dashboard(ctx.channel.id)
        if dashboard is None:
            await ctx.send(NOT_SIGNED_IN_MESSAGE)
        return dashboard

    async def send_outcome(ctx: commands.Context, dashboard: Dashboard, result) -> None:
        if result is None:
            await ctx.send(IN_FLIGHT_MESSAGE)
        elif result.success:
            await ctx.send(f"{result.text}\n\n{format_dashboard(dashboard)}")
        else:
            await ctx.send(result.text)

    @bot.event
    async def on_ready():
        logger.info("Discord bot logged in as %s (id=%s)", bot.user, bot.user.id)

    @bot.event
    async def on_command_error(ctx: commands.Context, error: commands.CommandError):
        if isinstance(error, commands.CommandNotFound):
            return
        if isinstance(error, commands.MissingRequiredArgument):
            await ctx.send(f"Missing `{error.param.name}`. Type {PREFIX}help for usage.")
            return

        original = getattr(error, "original", error)
        if isinstance(original, CapabilityDenied):
            await ctx.send(str(original))
            return
        if isinstance(original, UnrecognizedRoleError):
            logger.critical("Unsupported role in channel %s: %s", ctx.channel.id, original)
            await ctx.send(UNSUPPORTED_ROLE_MESSAGE)
            raise original

        logger.error("Command %s failed", ctx.command, exc_info=original)

    @bot.command(name="start")
    async def start_cmd(ctx: commands.Context):
        await ctx.send(welcome_text(PREFIX))

    @bot.command(name="help")
    async def help_cmd(ctx: commands.Context):
        dashboard = shell.dashboard(ctx.channel.id)
        view = dashboard.view if dashboard is not None else None
        await ctx.send(help_text(view, PREFIX))

    @bot.command(name="login")
    async def login_cmd(ctx: commands.Context, *, args: str = ""):
        """
        !login <username> <password>            -> customer
        !login employee <username> <password>   -> employee
        """

        parts = args.split()
        await _forget(ctx)

        if len(parts) == 3 and parts[0].lower() == "employee":
            result = shell.login_employee(ctx.channel.id, parts[1], parts[2])
        elif len(parts) == 2:
            result = shell.login_customer(ctx.channel.id, parts[0], parts[1])
        else:
            await ctx.send(f"Usage: {PREFIX}login [employee] <username> <password>")
            return

        if not result.success:
            await ctx.send(result.text)
            return

        dashboard = shell.dashboard(ctx.channel.id)
        await ctx.send(f"{result.text}\n\n{format_dashboard(dashboard)}")

    @bot.command(name="atm")
    async def atm_cmd(ctx: commands.Context, account_number: str, pin: str):
        await _forget(ctx)
        result = shell.login_terminal(ctx.channel.id, account_number, pin)
        if not result.success:
            await ctx.send(result.text)
            return

        dashboard = shell.dashboard(ctx.channel.id)
        quick = ", ".join(f"${a}" for a in dashboard.quick_amounts())
        await ctx.send(
            f"{result.text}\n\n{format_dashboard(dashboard)}\n"
            f"Quick amounts: {quick} (e.g. {PREFIX}withdraw 20)"
        )

    @bot.command(name="register")
    async def register_cmd(ctx: commands.Context, *, args: str = ""):
        fields = parse_fields(args)
        await _forget(ctx)
        result = shell.register(draft_from_fields(fields), fields.get("confirm", ""))
        await ctx.send(result.text)

    @bot.command(name="logout")
    async def logout_cmd(ctx: commands.Context):
        result = shell.logout(ctx.channel.id)
        await ctx.send(result.text)

    @bot.command(name="accounts")
    async def accounts_cmd(ctx: commands.Context):
        dashboard = await dashboard_for(ctx)
        if dashboard is None:
            return

        accounts = dashboard.accounts()
        if dashboard.view is DashboardView.TERMINAL:
            await ctx.send(format_dashboard(dashboard))
        else:
            await ctx.send(format_accounts(accounts, dashboard.selected))

    @bot.command(name="refresh")
    async def refresh_cmd(ctx: commands.Context):
        dashboard = await dashboard_for(ctx)
        if dashboard is None:
            return

        result = dashboard.refresh()
        await ctx.send(format_dashboard(dashboard) if result.success else result.text)

    @bot.command(name="select")
    async def select_cmd(ctx: commands.Context, account_number: str):
        dashboard = await dashboard_for(ctx)
        if dashboard is None:
            return
        await send_outcome(ctx, dashboard, dashboard.select(account_number))

    @bot.command(name="deposit")
    async def deposit_cmd(ctx: commands.Context, amount: str = ""):
        await _transact(ctx, TransactionKind.DEPOSIT, amount)

    @bot.command(name="withdraw")
    async def withdraw_cmd(ctx: commands.Context, amount: str = ""):
        await _transact(ctx, TransactionKind.WITHDRAW, amount)

    async def _transact(ctx: commands.Context, kind: TransactionKind, amount: str) -> None:
        dashboard = await dashboard_for(ctx)
        if dashboard is None:
            return

        if not amount and allows(dashboard.view, Capability.QUICK_AMOUNTS):
            quick = ", ".join(f"${a}" for a in dashboard.quick_amounts())
            await ctx.send(f"Quick amounts: {quick}. Usage: {PREFIX}{kind.value} <amount>")
            return

        await send_outcome(ctx, dashboard, dashboard.transact(kind, amount))

    @bot.command(name="pin")
    async def pin_cmd(ctx: commands.Context, new_pin: str = ""):
        await _forget(ctx)
        dashboard = await dashboard_for(ctx)
        if dashboard is None:
            return

        result = dashboard.change_pin(new_pin)
        await ctx.send(IN_FLIGHT_MESSAGE if result is None else result.text)

    @bot.command(name="profile")
    async def profile_cmd(ctx: commands.Context, username: str = ""):
        dashboard = await dashboard_for(ctx)
        if dashboard is None:
            return

        if dashboard.view is DashboardView.EMPLOYEE:
            lookup = dashboard.search_profile(username)
            if not lookup.success:
                await ctx.send(lookup.error_message)
                return
            await ctx.send(format_profile(lookup.profile))
            return

        await ctx.send(format_profile(dashboard.profile()))

    @bot.command(name="search")
    async def search_cmd(ctx: commands.Context, account_number: str = ""):
        dashboard = await dashboard_for(ctx)
        if dashboard is None:
            return

        result = dashboard.search(account_number)
        await ctx.send(format_dashboard(dashboard) if result.success else result.text)

    @bot.command(name="link")
    async def link_cmd(ctx: commands.Context, username: str = ""):
        dashboard = await dashboard_for(ctx)
        if dashboard is None:
            return
        await send_outcome(ctx, dashboard, dashboard.link(username))

    @bot.command(name="newaccount")
    async def new_account_cmd(
        ctx: commands.Context,
        number: str,
        pin: str,
        account_type: str,
        initial_balance: str,
    ):
        await _forget(ctx)
        dashboard = await dashboard_for(ctx)
        if dashboard is None:
            return

        result = dashboard.create_account(number, pin, account_type, initial_balance)
        await ctx.send(IN_FLIGHT_MESSAGE if result is None else result.text)

    @bot.command(name="newprofile")
    async def new_profile_cmd(ctx: commands.Context, *, args: str = ""):
        fields = parse_fields(args)
        await _forget(ctx)
        dashboard = await dashboard_for(ctx)
        if dashboard is None:
            return

        result = dashboard.create_profile(draft_from_fields(fields))
        await ctx.send(result.text)

    @bot.command(name="editprofile")
    async def edit_profile_cmd(ctx: commands.Context, *, args: str = ""):
        fields = parse_fields(args)
        if "password" in fields:
            await _forget(ctx)
        dashboard = await dashboard_for(ctx)
        if dashboard is None:
            return

        result = dashboard.update_profile(changes_from_fields(fields), fields.get("username"))
        await ctx.send(result.text)

    @bot.command(name="logs")
    async def logs_cmd(ctx: commands.Context):
        dashboard = await dashboard_for(ctx)
        if dashboard is None:
            return

        result = dashboard.logs()
        await ctx.send(format_logs(result.entries) if result.success else result.error_message)

    return bot
