# tests/unit/test_cli.py
"""测试 trans-orm 命令行工具。"""

import logging

import pytest
import structlog
from typer.testing import CliRunner

from trans_orm.cli import app

runner = CliRunner()


@pytest.fixture(autouse=True)
def restore_logging():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    structlog.reset_defaults()


def test_describe_lists_derived_pairs():
    result = runner.invoke(app, ["describe", "tests.helpers.cli_models:subscriber"])

    assert result.exit_code == 0, result.output
    assert "article_translation" in result.output
    assert "translatable_id" in result.output


def test_describe_rejects_wrong_target():
    result = runner.invoke(app, ["describe", "tests.helpers.cli_models:models"])
    assert result.exit_code != 0


def test_describe_requires_colon():
    result = runner.invoke(app, ["describe", "tests.helpers.cli_models"])
    assert result.exit_code != 0


def test_check_settings(monkeypatch):
    monkeypatch.setenv("TRANSORM_LOCALE__DEFAULT", "de")
    result = runner.invoke(app, ["check-settings"])

    assert result.exit_code == 0, result.output
    assert '"default": "de"' in result.output


def test_check_settings_invalid(monkeypatch):
    monkeypatch.setenv("TRANSORM_LOCALE__DEFAULT", "!!")
    result = runner.invoke(app, ["check-settings"])
    assert result.exit_code == 1
