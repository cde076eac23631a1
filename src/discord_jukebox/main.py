#!/usr/bin/env python3
"""Console entry point: configure logging, wire the container, run the bot."""

from __future__ import annotations

import json
import logging
import logging.config
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Any

from discord_jukebox.domain.shared.messages import ErrorMessages, LogTemplates

if TYPE_CHECKING:
    from discord_jukebox.config.settings import Settings
    from discord_jukebox.infrastructure.discord.bot import JukeboxBot

_LOGGING_CONFIG_PATH = Path(__file__).with_name("logging_config.json")
_FALLBACK_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"


def _read_logging_config(config_path: Path) -> dict[str, Any] | None:
    try:
        return json.loads(config_path.read_text())
    except (FileNotFoundError, json.JSONDecodeError):
        return None


def setup_logging(log_level: str = "INFO", config_path: Path = _LOGGING_CONFIG_PATH) -> None:
    """Apply ``logging_config.json``, or a plain console format if it is unusable."""
    level = logging.getLevelNamesMapping().get(log_level.upper(), logging.INFO)

    config = _read_logging_config(config_path)
    applied = False
    if config is not None:
        try:
            logging.config.dictConfig(config)
            applied = True
        except ValueError:
            pass
    if not applied:
        logging.basicConfig(level=level, format=_FALLBACK_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
        logging.getLogger(__name__).warning(LogTemplates.LOGGING_CONFIG_FALLBACK, config_path)

    logging.getLogger().setLevel(level)
    # Propagated records skip the root level check, so the app logger needs it too.
    logging.getLogger("discord_jukebox").setLevel(level)
    # Gateway heartbeats at DEBUG bury everything else.
    logging.getLogger("discord").setLevel(max(level, logging.INFO))


def _build_bot(settings: Settings) -> JukeboxBot:
    from discord_jukebox.config.container import create_container
    from discord_jukebox.infrastructure.discord.bot import create_bot

    return create_bot(create_container(settings), settings)


def main() -> int:
    from discord_jukebox.config.settings import get_settings

    settings = get_settings()
    setup_logging("DEBUG" if settings.debug else settings.log_level)
    logger = logging.getLogger(__name__)

    token = settings.discord.token.get_secret_value()
    if not token:
        logger.error(ErrorMessages.DISCORD_TOKEN_REQUIRED)
        return 1

    logger.info(LogTemplates.BOT_STARTING, settings.environment)
    bot = _build_bot(settings)

    exit_code = 0
    try:
        logger.info(LogTemplates.BOT_STARTING_RUN)
        bot.run_with_graceful_shutdown(token)
    except KeyboardInterrupt:
        logger.info(LogTemplates.BOT_KEYBOARD_INTERRUPT)
    except Exception as e:
        logger.exception(LogTemplates.BOT_FATAL_ERROR, e)
        exit_code = 1
    else:
        logger.info(LogTemplates.BOT_STOPPED)
    return exit_code


def cli() -> None:
    """``discord-jukebox`` console script."""
    sys.exit(main())


if __name__ == "__main__":
    cli()  # pragma: no cover
