import logging

from config import create_session_storage, get_settings
from application.shell import SessionShell
from infrastructure.http.ledger_client import HttpLedgerGateway
from infrastructure.logging_config import setup_logging
from interfaces.discord.handlers import create_discord_bot


logger = logging.getLogger(__name__)


def main() -> None:
    settings = get_settings()
    setup_logging(settings.LOG_LEVEL, settings.LOG_FORMAT)

    if not settings.DISCORD_TOKEN:
        raise RuntimeError("DISCORD_TOKEN environment variable is not set.")

    storage = create_session_storage(settings)
    with HttpLedgerGateway(settings.LEDGER_API_BASE, timeout=settings.LEDGER_TIMEOUT) as gateway:
        shell = SessionShell(gateway, storage, channel="discord")
        bot = create_discord_bot(shell)
        logger.info("Starting Discord bot against %s", settings.LEDGER_API_BASE)
        # discord.py installs its own handler unless told otherwise.
        bot.run(settings.DISCORD_TOKEN, log_handler=None)


if __name__ == "__main__":
    main()
