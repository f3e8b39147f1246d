# trans_orm/providers.py
"""
LocaleProvider 的几种现成实现。

语言发现本身不属于本库的职责，这里只提供最常见的来源：固定值、
请求作用域的 contextvars，以及从配置构建。
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from trans_orm.config import TransOrmSettings

_current_locale: ContextVar[str | None] = ContextVar(
    "trans_orm_current_locale", default=None
)


class StaticLocaleProvider:
    """始终返回构造时给定的语言。"""

    def __init__(
        self, current_locale: str | None = None, fallback_locale: str | None = None
    ) -> None:
        self._current_locale = current_locale
        self._fallback_locale = fallback_locale

    def provide_current_locale(self) -> str | None:
        return self._current_locale

    def provide_fallback_locale(self) -> str | None:
        return self._fallback_locale

    def __repr__(self) -> str:
        return (
            f"StaticLocaleProvider(current={self._current_locale!r}, "
            f"fallback={self._fallback_locale!r})"
        )


class ContextLocaleProvider:
    """
    从 contextvars 读取当前语言，适合按请求切换语言的 Web 应用。

    用法::

        provider = ContextLocaleProvider(fallback_locale="en")
        with provider.use_locale("de"):
            article = session.get(Article, 1)   # current_locale == "de"
    """

    def __init__(
        self, fallback_locale: str | None = None, default_current: str | None = None
    ) -> None:
        self._fallback_locale = fallback_locale
        self._default_current = default_current

    def provide_current_locale(self) -> str | None:
        return _current_locale.get() or self._default_current

    def provide_fallback_locale(self) -> str | None:
        return self._fallback_locale

    @staticmethod
    @contextmanager
    def use_locale(locale: str | None) -> Iterator[None]:
        """在 with 块内把当前语言设置为 locale，退出时恢复。"""
        token = _current_locale.set(locale)
        try:
            yield
        finally:
            _current_locale.reset(token)


def provider_from_settings(settings: "TransOrmSettings") -> ContextLocaleProvider:
    """
    根据配置构建提供者：回退语言取 locale.default，
    contextvars 中未设置语言时使用 locale.current。
    """
    return ContextLocaleProvider(
        fallback_locale=settings.locale.default,
        default_current=settings.locale.current,
    )
