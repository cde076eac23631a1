"""
Unit Tests for the Main Entry Point

Tests for src/discord_jukebox/main.py:
- setup_logging: JSON dictConfig and basicConfig fallback
- main(): token check, wiring, exit codes
- cli(): exit status propagation
"""

import json
import logging
from unittest.mock import MagicMock, patch

import pytest

from discord_jukebox import main as main_module


@pytest.fixture
def restore_logging():
    root = logging.getLogger()
    discord_logger = logging.getLogger("discord")
    app_logger = logging.getLogger("discord_jukebox")
    saved = (root.level, list(root.handlers), discord_logger.level, app_logger.level)
    yield
    root.setLevel(saved[0])
    root.handlers[:] = saved[1]
    discord_logger.setLevel(saved[2])
    app_logger.setLevel(saved[3])


@pytest.fixture
def mock_settings():
    settings = MagicMock()
    settings.debug = False
    settings.log_level = "INFO"
    settings.environment = "test"
    settings.discord.token.get_secret_value.return_value = "token-123"
    return settings


class TestSetupLogging:
    """Tests for setup_logging."""

    def test_loads_json_config(self, tmp_path, restore_logging):
        config_path = tmp_path / "logging.json"
        config_path.write_text(
            json.dumps(
                {
                    "version": 1,
                    "disable_existing_loggers": False,
                    "handlers": {"null": {"class": "logging.NullHandler"}},
                    "root": {"level": "INFO", "handlers": ["null"]},
                }
            )
        )

        main_module.setup_logging("WARNING", config_path=config_path)

        assert logging.getLogger().level == logging.WARNING
        assert any(isinstance(h, logging.NullHandler) for h in logging.getLogger().handlers)

    def test_missing_file_falls_back(self, tmp_path, restore_logging):
        with patch.object(main_module.logging, "basicConfig") as basic:
            main_module.setup_logging("DEBUG", config_path=tmp_path / "missing.json")

        basic.assert_called_once()
        assert logging.getLogger().level == logging.DEBUG

    def test_invalid_json_falls_back(self, tmp_path, restore_logging):
        config_path = tmp_path / "logging.json"
        config_path.write_text("{not json")

        with patch.object(main_module.logging, "basicConfig") as basic:
            main_module.setup_logging("INFO", config_path=config_path)

        basic.assert_called_once()

    def test_discord_logger_not_below_info(self, tmp_path, restore_logging):
        with patch.object(main_module.logging, "basicConfig"):
            main_module.setup_logging("DEBUG", config_path=tmp_path / "missing.json")

        assert logging.getLogger("discord").level == logging.INFO

    def test_unknown_level_defaults_to_info(self, tmp_path, restore_logging):
        with patch.object(main_module.logging, "basicConfig"):
            main_module.setup_logging("CHATTY", config_path=tmp_path / "missing.json")

        assert logging.getLogger().level == logging.INFO

    def test_shipped_config_is_loadable(self, restore_logging):
        main_module.setup_logging("INFO")

        assert logging.getLogger().level == logging.INFO

    def test_shipped_config_sits_inside_the_package(self):
        package_dir = main_module.Path(main_module.__file__).parent

        assert main_module._LOGGING_CONFIG_PATH.parent == package_dir
        assert main_module._LOGGING_CONFIG_PATH.is_file()

    def test_app_loggers_follow_requested_level(self, restore_logging):
        main_module.setup_logging("WARNING")
        engine_logger = logging.getLogger("discord_jukebox.application.services.playback_engine")

        assert not engine_logger.isEnabledFor(logging.DEBUG)
        assert not engine_logger.isEnabledFor(logging.INFO)
        assert engine_logger.isEnabledFor(logging.WARNING)

    def test_debug_level_reaches_app_loggers(self, restore_logging):
        main_module.setup_logging("DEBUG")

        assert logging.getLogger("discord_jukebox.main").isEnabledFor(logging.DEBUG)


class TestMain:
    """Tests for main()."""

    def test_missing_token_returns_1(self, mock_settings):
        mock_settings.discord.token.get_secret_value.return_value = ""

        with (
            patch("discord_jukebox.config.settings.get_settings", return_value=mock_settings),
            patch("discord_jukebox.main.setup_logging"),
            patch("discord_jukebox.config.container.create_container") as create_container,
        ):
            assert main_module.main() == 1

        create_container.assert_not_called()

    def test_runs_bot_with_token(self, mock_settings):
        mock_bot = MagicMock()

        with (
            patch("discord_jukebox.config.settings.get_settings", return_value=mock_settings),
            patch("discord_jukebox.main.setup_logging") as setup_logging,
            patch("discord_jukebox.config.container.create_container") as create_container,
            patch("discord_jukebox.infrastructure.discord.bot.create_bot", return_value=mock_bot) as create_bot,
        ):
            assert main_module.main() == 0

        setup_logging.assert_called_once_with("INFO")
        create_container.assert_called_once_with(mock_settings)
        create_bot.assert_called_once_with(create_container.return_value, mock_settings)
        mock_bot.run_with_graceful_shutdown.assert_called_once_with("token-123")

    def test_debug_forces_debug_logging(self, mock_settings):
        mock_settings.debug = True

        with (
            patch("discord_jukebox.config.settings.get_settings", return_value=mock_settings),
            patch("discord_jukebox.main.setup_logging") as setup_logging,
            patch("discord_jukebox.config.container.create_container"),
            patch("discord_jukebox.infrastructure.discord.bot.create_bot"),
        ):
            main_module.main()

        setup_logging.assert_called_once_with("DEBUG")

    def test_startup_line_uses_lazy_formatting(self, mock_settings, caplog):
        with (
            patch("discord_jukebox.config.settings.get_settings", return_value=mock_settings),
            patch("discord_jukebox.main.setup_logging"),
            patch("discord_jukebox.config.container.create_container"),
            patch("discord_jukebox.infrastructure.discord.bot.create_bot"),
            caplog.at_level(logging.INFO, logger="discord_jukebox.main"),
        ):
            main_module.main()

        starting = [r for r in caplog.records if r.msg == main_module.LogTemplates.BOT_STARTING]
        assert len(starting) == 1
        assert starting[0].args == ("test",)
        assert starting[0].getMessage() == "Starting Discord Jukebox in test mode"

    def test_keyboard_interrupt_returns_0(self, mock_settings):
        mock_bot = MagicMock()
        mock_bot.run_with_graceful_shutdown.side_effect = KeyboardInterrupt

        with (
            patch("discord_jukebox.config.settings.get_settings", return_value=mock_settings),
            patch("discord_jukebox.main.setup_logging"),
            patch("discord_jukebox.config.container.create_container"),
            patch("discord_jukebox.infrastructure.discord.bot.create_bot", return_value=mock_bot),
        ):
            assert main_module.main() == 0

    def test_fatal_error_returns_1(self, mock_settings):
        mock_bot = MagicMock()
        mock_bot.run_with_graceful_shutdown.side_effect = RuntimeError("login failed")

        with (
            patch("discord_jukebox.config.settings.get_settings", return_value=mock_settings),
            patch("discord_jukebox.main.setup_logging"),
            patch("discord_jukebox.config.container.create_container"),
            patch("discord_jukebox.infrastructure.discord.bot.create_bot", return_value=mock_bot),
        ):
            assert main_module.main() == 1


class TestCli:
    def test_exits_with_main_status(self):
        with patch.object(main_module, "main", return_value=1), pytest.raises(SystemExit) as exc:
            main_module.cli()

        assert exc.value.code == 1
