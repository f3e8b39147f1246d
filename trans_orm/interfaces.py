# trans_orm/interfaces.py
"""
定义了 trans-orm 所依赖的外部协作者的抽象接口协议 (Protocols)。
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class LocaleProvider(Protocol):
    """定义了语言环境提供者的接口。每次生命周期通知各调用一次。"""

    def provide_current_locale(self) -> str | None:
        """返回当前语言，没有时返回 None。"""
        ...

    def provide_fallback_locale(self) -> str | None:
        """返回回退（默认）语言，没有时返回 None。"""
        ...
