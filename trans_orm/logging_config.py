# trans_orm/logging_config.py
"""
集中配置日志系统：structlog ⇄ 标准 logging。

库内部模块只调用 `structlog.get_logger(__name__)`，从不自行配置日志；
由应用在启动时调用一次 setup_logging()。

提供两种输出：
- console：开发环境的单行彩色输出（Rich 渲染，本地时间）。
- json   ：生产环境的结构化日志（ISO-8601 且 UTC）。
"""

from __future__ import annotations

import logging
from collections.abc import MutableMapping
from typing import TYPE_CHECKING, Any, Literal

import structlog
from rich.console import Console
from rich.text import Text
from structlog.typing import Processor

if TYPE_CHECKING:
    from trans_orm.config import TransOrmSettings


class RichLineRenderer:
    """
    structlog 处理器：把一条日志渲染为一行 Rich 文本。

    格式为 `时间 级别 [logger] 消息 key=value ...`，
    超长的值会被截断到 kv_truncate_at 个字符。
    """

    _LEVEL_STYLES: dict[str, str] = {
        "debug": "cyan",
        "info": "green",
        "warning": "yellow",
        "error": "bold red",
        "critical": "magenta",
    }

    def __init__(
        self,
        *,
        kv_truncate_at: int = 256,
        show_timestamp: bool = True,
        show_logger_name: bool = True,
    ) -> None:
        self._console = Console(soft_wrap=True)
        self._kv_truncate_at = kv_truncate_at
        self._show_timestamp = show_timestamp
        self._show_logger_name = show_logger_name

    def __call__(
        self, logger: Any, name: str, event_dict: MutableMapping[str, Any]
    ) -> str:
        event_msg = str(event_dict.pop("event", "")).strip()
        if not event_msg:
            return ""

        timestamp = event_dict.pop("timestamp", "")
        level = str(event_dict.pop("level", "info")).lower()
        logger_name = event_dict.pop("logger", None)
        event_dict.pop("_record", None)
        event_dict.pop("_from_structlog", None)

        line = Text()
        if self._show_timestamp and timestamp:
            line.append(f"{timestamp} ", style="dim")
        line.append(f"{level.upper():<8} ", style=self._LEVEL_STYLES.get(level, "dim"))
        if self._show_logger_name and logger_name:
            line.append(f"[{logger_name}] ", style="cyan dim")
        line.append(event_msg)
        for key, value in sorted(event_dict.items()):
            line.append(f" {key}=", style="dim")
            line.append(self._format_value(value), style="bright_white")

        with self._console.capture() as capture:
            self._console.print(line)
        return capture.get().rstrip()

    def _format_value(self, value: Any) -> str:
        text = value if isinstance(value, str) else repr(value)
        if len(text) > self._kv_truncate_at:
            text = text[: self._kv_truncate_at] + "…"
        return text


def setup_logging(
    *,
    log_level: str = "INFO",
    log_format: Literal["json", "console"] = "console",
    root_level: str | None = None,
    silence_noisy_libs: bool = True,
) -> None:
    """
    配置全局 structlog 日志系统。

    Args:
        log_level: trans_orm logger 的最低级别。
        log_format: 'console'（开发）或 'json'（生产）。
        root_level: 根 logger 级别；默认 WARNING 以降低第三方噪声。
        silence_noisy_libs: 是否下调 sqlalchemy.engine 等噪声 logger 的级别。
    """
    pre_chain: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
    ]

    if log_format == "json":
        timestamper = structlog.processors.TimeStamper(fmt="iso", utc=True)
    else:
        timestamper = structlog.processors.TimeStamper(
            fmt="%Y-%m-%d %H:%M:%S", utc=False
        )

    structlog.configure(
        processors=[
            *pre_chain,
            timestamper,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    final_renderer: Processor
    if log_format == "console":
        final_renderer = RichLineRenderer()
    else:
        final_renderer = structlog.processors.JSONRenderer()

    formatter = structlog.stdlib.ProcessorFormatter(
        processor=final_renderer,
        foreign_pre_chain=[*pre_chain, timestamper],
    )
    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    if root_logger.hasHandlers():
        root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel((root_level or "WARNING").upper())

    logging.getLogger("trans_orm").setLevel(log_level.upper())

    if silence_noisy_libs:
        for noisy in ("sqlalchemy.engine.Engine", "sqlalchemy.orm"):
            logging.getLogger(noisy).setLevel(logging.WARNING)

    structlog.get_logger("trans_orm.logging_config").info(
        "日志系统已配置完成。",
        log_format=log_format,
        app_log_level=log_level.upper(),
    )


def setup_logging_from_settings(
    settings: "TransOrmSettings", *, root_level: str | None = None
) -> None:
    """
    根据 TransOrmSettings 一键初始化日志系统。

    应用自己的 logger 不在 trans_orm 之下时，通过 root_level 放开根 logger。
    """
    setup_logging(
        log_level=settings.logging.level,
        log_format=settings.logging.format,
        root_level=root_level,
    )
