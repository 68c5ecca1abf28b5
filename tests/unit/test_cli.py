"""Unit tests for the command line entry point."""

from unittest.mock import Mock, patch

import pytest

from sqlgate import cli
from sqlgate.settings import ServerSettings


@pytest.fixture
def settings():
    return ServerSettings(connection_string=None, enabled_tools="all", log_level="INFO")


@pytest.fixture(autouse=True)
def no_logging_setup():
    with patch.object(cli, "setup_logging") as setup_logging:
        yield setup_logging


class TestMain:
    """Test startup paths of main()."""

    def test_missing_connection_string(self, settings):
        """Test that starting without a connection string exits with 2."""
        with patch.object(cli, "get_settings", return_value=settings):
            assert cli.main([]) == 2

    def test_invalid_connection_string(self, settings):
        """Test that an unsupported scheme exits with 1 before connecting."""
        with patch.object(cli, "get_settings", return_value=settings), \
                patch.object(cli, "SQLEngine") as engine_cls:
            assert cli.main(["postgres://u:p@h/db"]) == 1
        engine_cls.assert_not_called()

    def test_failed_connection_test(self, settings):
        """Test that a failed connection test exits with 1 and closes the pool."""
        with patch.object(cli, "get_settings", return_value=settings), \
                patch.object(cli, "SQLEngine") as engine_cls, \
                patch.object(cli, "serve") as serve:
            engine_cls.return_value.test_connection.return_value = False
            assert cli.main(["mysql://root@localhost/app"]) == 1

        serve.assert_not_called()
        engine_cls.return_value.dispose.assert_called_once()

    def test_serves_enabled_tools(self, settings, no_logging_setup):
        """Test the happy path from arguments to a running server."""
        with patch.object(cli, "get_settings", return_value=settings), \
                patch.object(cli, "SQLEngine") as engine_cls, \
                patch.object(cli, "serve") as serve:
            engine_cls.return_value.test_connection.return_value = True
            assert cli.main(["mysql://root:pw@localhost:3307/app", "read,list", "--verbose"]) == 0

        config = engine_cls.call_args[0][0]
        assert config.port == 3307
        assert config.database == "app"
        engine_cls.return_value.warmup_pool.assert_called_once()
        dispatcher, server_name = serve.call_args[0]
        assert dispatcher.enabled_tools == ["list", "read"]
        assert server_name == "sqlgate"
        no_logging_setup.assert_called_once_with("DEBUG")
        engine_cls.return_value.dispose.assert_called_once()

    def test_connection_string_from_settings(self):
        """Test that the settings connection string is used when none is given."""
        settings = ServerSettings(connection_string="mysql://root@db/app", enabled_tools="all")
        with patch.object(cli, "get_settings", return_value=settings), \
                patch.object(cli, "SQLEngine") as engine_cls, \
                patch.object(cli, "serve"):
            engine_cls.return_value.test_connection.return_value = True
            assert cli.main([]) == 0

        assert engine_cls.call_args[0][0].host == "db"

    def test_keyboard_interrupt(self, settings):
        """Test that an interrupt shuts down cleanly."""
        with patch.object(cli, "get_settings", return_value=settings), \
                patch.object(cli, "SQLEngine") as engine_cls, \
                patch.object(cli, "serve", new=Mock()), \
                patch.object(cli.asyncio, "run", side_effect=KeyboardInterrupt):
            engine_cls.return_value.test_connection.return_value = True
            assert cli.main(["mysql://root@localhost/app"]) == 0

        engine_cls.return_value.dispose.assert_called_once()
