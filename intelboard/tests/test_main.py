"""Tests for the command-line entry point with the server and database mocked."""

from unittest.mock import patch

from intelboard.__main__ import main
from intelboard.setting import IntelBoardSettings


# ── Tests: main ───────────────────────────────────────────────────────────


@patch("uvicorn.run")
@patch("intelboard.api.app.create_app")
@patch("intelboard.__main__.ensure_default_admin")
@patch("intelboard.__main__.DatabaseManager")
@patch("intelboard.__main__.setup_logging")
@patch("intelboard.__main__.get_settings", return_value=IntelBoardSettings())
class TestMain:

    def test_serves_the_app_object(self, _settings, setup_logging, db_cls, ensure_admin, create_app, run):
        with patch("sys.argv", ["intelboard", "--port", "9100"]):
            main()

        db_cls.return_value.init_db.assert_called_once()
        ensure_admin.assert_called_once_with(db_cls.return_value)
        run.assert_called_once()
        args, kwargs = run.call_args
        assert args == (create_app.return_value,)
        assert kwargs["port"] == 9100
        assert "reload" not in kwargs

    def test_debug_switches_to_debug_logging(self, _settings, setup_logging, db_cls, ensure_admin, create_app, run):
        with patch("sys.argv", ["intelboard", "--debug"]):
            main()

        setup_logging.assert_called_once_with("DEBUG")
        assert run.call_args.kwargs["log_level"] == "debug"
        assert "reload" not in run.call_args.kwargs

    def test_seed_failure_does_not_stop_startup(self, _settings, setup_logging, db_cls, ensure_admin, create_app, run):
        ensure_admin.side_effect = RuntimeError("locked")

        with patch("sys.argv", ["intelboard"]):
            main()

        run.assert_called_once()
