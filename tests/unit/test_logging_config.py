# tests/unit/test_logging_config.py
"""
测试日志配置模块。

主要测试：
1. RichLineRenderer 的渲染逻辑
2. setup_logging 对标准 logging 与 structlog 的配置
"""

import logging
from collections.abc import Generator
from unittest.mock import Mock

import pytest
import structlog

from trans_orm.config import TransOrmSettings
from trans_orm.logging_config import (
    RichLineRenderer,
    setup_logging,
    setup_logging_from_settings,
)


@pytest.fixture
def restore_logging() -> Generator[None, None, None]:
    """测试结束后恢复根 logger 与 structlog 的全局状态。"""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    app_level = logging.getLogger("trans_orm").level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    logging.getLogger("trans_orm").setLevel(app_level)
    structlog.reset_defaults()


class TestRichLineRenderer:
    def test_empty_event_renders_nothing(self):
        renderer = RichLineRenderer()
        assert renderer(Mock(), "info", {"event": ""}) == ""
        assert renderer(Mock(), "info", {}) == ""

    def test_line_contains_level_logger_message_and_kv(self):
        renderer = RichLineRenderer(show_timestamp=False)
        output = renderer(
            Mock(),
            "info",
            {
                "event": "已派生翻译映射",
                "level": "info",
                "logger": "trans_orm.mapping",
                "translatable": "Article",
            },
        )

        assert "INFO" in output
        assert "[trans_orm.mapping]" in output
        assert "已派生翻译映射" in output
        assert "translatable=Article" in output
        assert "\n" not in output

    def test_timestamp_and_logger_name_can_be_hidden(self):
        renderer = RichLineRenderer(show_timestamp=False, show_logger_name=False)
        output = renderer(
            Mock(),
            "debug",
            {"event": "msg", "timestamp": "2024-01-01 00:00:00", "logger": "x.y"},
        )
        assert "2024-01-01" not in output
        assert "x.y" not in output

    def test_long_values_are_truncated(self):
        renderer = RichLineRenderer(show_timestamp=False, kv_truncate_at=10)
        output = renderer(Mock(), "info", {"event": "msg", "payload": "a" * 50})
        assert "a" * 10 + "…" in output
        assert "a" * 11 not in output

    def test_non_string_values_use_repr(self):
        renderer = RichLineRenderer(show_timestamp=False)
        output = renderer(Mock(), "info", {"event": "msg", "locales": ["de", "fr"]})
        assert "locales=['de', 'fr']" in output


@pytest.mark.usefixtures("restore_logging")
class TestSetupLogging:
    def test_console_format_installs_single_handler(self):
        setup_logging(log_level="DEBUG", log_format="console")

        root = logging.getLogger()
        assert len(root.handlers) == 1
        formatter = root.handlers[0].formatter
        assert isinstance(formatter, structlog.stdlib.ProcessorFormatter)
        assert root.level == logging.WARNING
        assert logging.getLogger("trans_orm").level == logging.DEBUG

    def test_json_format_and_root_level(self):
        setup_logging(log_level="INFO", log_format="json", root_level="error")

        assert logging.getLogger().level == logging.ERROR
        assert logging.getLogger("trans_orm").level == logging.INFO

    def test_noisy_libraries_are_silenced(self):
        logging.getLogger("sqlalchemy.engine.Engine").setLevel(logging.DEBUG)
        setup_logging()
        assert logging.getLogger("sqlalchemy.engine.Engine").level == logging.WARNING

    def test_from_settings(self):
        settings = TransOrmSettings(logging={"level": "ERROR", "format": "json"})
        setup_logging_from_settings(settings)
        assert logging.getLogger("trans_orm").level == logging.ERROR

    def test_from_settings_can_open_root_logger(self):
        """应用自己的 logger 不在 trans_orm 之下时，可以一并放开根 logger。"""
        settings = TransOrmSettings(logging={"level": "INFO", "format": "console"})
        setup_logging_from_settings(settings, root_level="INFO")

        assert logging.getLogger().level == logging.INFO
        assert logging.getLogger("examples.basic_usage").isEnabledFor(logging.INFO)

    def test_from_settings_keeps_root_quiet_by_default(self):
        setup_logging_from_settings(TransOrmSettings())

        assert not logging.getLogger("examples.basic_usage").isEnabledFor(logging.INFO)
        assert logging.getLogger("trans_orm.mapping").isEnabledFor(logging.INFO)
