import logging

import pytest
from click.testing import CliRunner
from fastapi import FastAPI

from github_testgen.main import new_app, run_server
from github_testgen.utilities.logging import configure_logging


def test_new_app(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("GITHUB_CLIENT_ID", "client-id")
    monkeypatch.setenv("GITHUB_CLIENT_SECRET", "client-secret")

    app = new_app()

    assert isinstance(app, FastAPI)
    assert app.state.settings.github_client_id == "client-id"


def test_run_server_help():
    result = CliRunner().invoke(run_server, ["--help"])

    assert result.exit_code == 0
    assert "--port" in result.output
    assert "--host" in result.output


def test_configure_logging_adds_one_handler():
    logger = configure_logging(level="debug", logger_name="github_testgen.test_logging")
    logger = configure_logging(level="info", logger_name="github_testgen.test_logging")

    assert len(logger.handlers) == 1
    assert logger.level == logging.INFO
