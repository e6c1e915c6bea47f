"""Tests for application assembly and the uvicorn entry point."""

import logging

from helmsman import main
from helmsman.config import Settings


class TestRun:
    """run() hands the app to uvicorn on the configured port."""

    def test_starts_uvicorn_and_logs_port(self, monkeypatch, caplog):
        calls = []
        monkeypatch.setattr(
            main.uvicorn, "run", lambda app, **kwargs: calls.append((app, kwargs))
        )
        monkeypatch.setattr(main.settings, "port", 4321)
        monkeypatch.setattr(main.settings, "host", "127.0.0.1")

        with caplog.at_level(logging.INFO, logger="helmsman.main"):
            main.run()

        assert calls == [
            (
                main.app,
                {
                    "host": "127.0.0.1",
                    "port": 4321,
                    "log_level": main.settings.log_level.lower(),
                },
            )
        ]
        record = next(
            r for r in caplog.records if r.getMessage().startswith("Your app is")
        )
        assert record.getMessage() == "Your app is listening on port 4321"
        assert record.extra_fields == {"port": 4321}


class TestCreateAppLogging:
    """create_app() reports the chain and content it resolved."""

    def test_logs_header_chain_and_static_dir(self, tmp_path, caplog):
        with caplog.at_level(logging.INFO, logger="helmsman.main"):
            main.create_app(Settings(_env_file=None, static_dir=tmp_path))

        by_message = {r.getMessage(): r for r in caplog.records}
        chain = by_message["Security header chain built"].extra_fields
        assert chain["header_rules"][0] == "HidePoweredBy()"
        assert chain["header_rules"][1] == "Frameguard('deny')"
        assert by_message["Serving static files"].extra_fields == {
            "static_dir": str(tmp_path)
        }

    def test_warns_on_missing_content(self, tmp_path, caplog):
        missing_dir = tmp_path / "public"
        missing_index = tmp_path / "index.html"

        with caplog.at_level(logging.WARNING, logger="helmsman.main"):
            main.create_app(
                Settings(
                    _env_file=None, static_dir=missing_dir, index_file=missing_index
                )
            )

        warnings = {
            r.getMessage(): getattr(r, "extra_fields", None) for r in caplog.records
        }
        assert warnings["Static directory not found"] == {
            "static_dir": str(missing_dir)
        }
        assert warnings["Index page not found"] == {"index_file": str(missing_index)}
