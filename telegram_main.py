import logging

from config import create_session_storage, get_settings
from application.shell import SessionShell
from infrastructure.http.ledger_client import HttpLedgerGateway
from infrastructure.logging_config import setup_logging
from interfaces.telegram.handlers import create_telegram_bot


logger = logging.getLogger(__name__)


def main() -> None:
    settings = get_settings()
    setup_logging(settings.LOG_LEVEL, settings.LOG_FORMAT)

    if not settings.TELEGRAM_TOKEN:
        raise RuntimeError("TELEGRAM_TOKEN environment variable is not set.")

    storage = create_session_storage(settings)
    with HttpLedgerGateway(settings.LEDGER_API_BASE, timeout=settings.LEDGER_TIMEOUT) as gateway:
        shell = SessionShell(gateway, storage, channel="telegram")
        bot = create_telegram_bot(settings.TELEGRAM_TOKEN, shell)
        logger.info("Starting Telegram bot against %s", settings.LEDGER_API_BASE)
        bot.infinity_polling()


if __name__ == "__main__":
    main()
