# trans_orm/types.py
"""
本模块定义了 trans-orm 的核心数据类型与命名约定。

派生出的映射在整个进程中只生成一次，随后以不可变的描述符形式对外只读暴露。
"""

from __future__ import annotations

import enum

from pydantic import BaseModel, ConfigDict

# 约定的属性 / 列名
TRANSLATIONS = "translations"
TRANSLATABLE = "translatable"
TRANSLATABLE_ID = "translatable_id"
LOCALE = "locale"
LOCALE_LENGTH = 5


class FetchMode(str, enum.Enum):
    """关联的加载策略，沿用 Doctrine 风格的名称。"""

    LAZY = "LAZY"
    EAGER = "EAGER"
    EXTRA_LAZY = "EXTRA_LAZY"


class UnmergedPolicy(str, enum.Enum):
    """flush 时发现未合并的暂存翻译时的处理方式。"""

    IGNORE = "ignore"
    WARN = "warn"
    RAISE = "raise"


class TranslationPairDescriptor(BaseModel):
    """一对 translatable / translation 类型派生结果的只读快照。"""

    model_config = ConfigDict(frozen=True)

    translatable_class: str
    translatable_table: str
    translation_class: str
    translation_table: str
    foreign_key_column: str = TRANSLATABLE_ID
    referenced_column: str
    locale_column: str = LOCALE
    locale_length: int = LOCALE_LENGTH
    unique_constraint: str | None = None
    translatable_loader: str
    translation_loader: str

    def involves(self, class_name: str) -> bool:
        """判断给定的类名是否属于这一对类型中的任意一侧。"""
        return class_name in (self.translatable_class, self.translation_class)
