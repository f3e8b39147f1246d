# trans_orm/mixins.py
"""
translatable / translation 两种能力的声明式混入类。

具体实体同时继承项目的声明式基类和这里的混入类，并实现各自必需的类方法；
关联、外键、locale 列与唯一约束全部由 MappingDeriver 在映射构建时注入，
具体实体无需（但可以）自行声明。

    class Article(TranslatableMixin, Base):
        __tablename__ = "article"
        id: Mapped[int] = mapped_column(primary_key=True)

        @classmethod
        def get_translation_entity_class(cls):
            return "ArticleTranslation"

    class ArticleTranslation(TranslationMixin, Base):
        __tablename__ = "article_translation"
        id: Mapped[int] = mapped_column(primary_key=True)
        title: Mapped[str | None] = mapped_column(default=None)

        @classmethod
        def get_translatable_entity_class(cls):
            return Article
"""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

import structlog
from sqlalchemy import inspect
from sqlalchemy.orm.attributes import set_committed_value

from trans_orm.exceptions import TranslationMergeConflictError
from trans_orm.types import LOCALE, TRANSLATABLE, TRANSLATIONS

logger = structlog.get_logger(__name__)

_STAGING_KEY = "_new_translations"


class TranslatableMixin:
    """
    “父”实体：持有按 locale 索引的权威翻译集合，以及尚未合并的暂存集合。

    实例不做任何内部同步，一个实例同一时间只属于一个 Session。
    """

    # 不持久化的字段；load / 加入 Session 时由 TranslatableSubscriber 设置。
    # 这里刻意不写类型注解，避免被声明式映射当作列来解析。
    current_locale = None
    default_locale = "en"

    if TYPE_CHECKING:
        translations: dict[str, TranslationMixin]

    @classmethod
    def get_translation_entity_class(cls) -> type[TranslationMixin] | str:
        """返回对应的 translation 类型（类对象或已注册的类名）。"""
        raise NotImplementedError(
            f"{cls.__name__} 必须实现 get_translation_entity_class()"
        )

    @classmethod
    def get_translation_class(cls) -> type[TranslationMixin]:
        """从已配置的 translations 关联中取出实际的 translation 类。"""
        return inspect(cls).relationships[TRANSLATIONS].mapper.class_

    # --- 权威集合与暂存集合 ---

    def get_translations(self) -> dict[str, TranslationMixin]:
        """权威集合（已持久化或已合并的翻译），不含暂存的新翻译。"""
        return getattr(self, TRANSLATIONS)

    def _staging(self) -> dict[str, TranslationMixin]:
        # SQLAlchemy 从数据库加载实例时不会调用 __init__，因此按需创建
        return self.__dict__.setdefault(_STAGING_KEY, {})

    def get_new_translations(self) -> Mapping[str, TranslationMixin]:
        """暂存集合的只读视图。"""
        return MappingProxyType(self._staging())

    def has_unmerged_translations(self) -> bool:
        return bool(self.__dict__.get(_STAGING_KEY))

    def merge_new_translations(self) -> None:
        """
        把暂存的新翻译并入权威集合并清空暂存区。

        必须在实例交给 Session 持久化之前由应用调用一次；重复调用是无操作。
        若某个语言键在权威集合中已存在，抛出 TranslationMergeConflictError，
        此时不移动任何翻译。
        """
        staged = self._staging()
        if not staged:
            return

        translations = self.get_translations()
        for locale in staged:
            if locale in translations:
                raise TranslationMergeConflictError(locale, self)

        for locale, translation in staged.items():
            translations[locale] = translation
        logger.debug(
            "暂存翻译已合并",
            entity=type(self).__name__,
            locales=sorted(staged),
        )
        staged.clear()

    # --- 解析 ---

    def translate(
        self, locale: str | None = None, fallback: bool = True
    ) -> TranslationMixin:
        """
        解析指定语言的翻译。

        1. 权威集合中存在该语言 -> 返回；
        2. 允许回退且语言不是默认语言 -> 返回默认语言的已有翻译（仅回退一跳）；
        3. 暂存集合中已有该语言的占位翻译 -> 返回；
        4. 否则新建占位翻译放入暂存集合并返回。

        回退命中时返回的是默认语言的翻译，调用方需检查其 locale。
        locale 为 None 时依次使用 current_locale、default_locale。
        """
        if locale is None:
            locale = self.current_locale or self.default_locale

        translations = self.get_translations()
        if locale in translations:
            return translations[locale]

        default_locale = self.default_locale
        if fallback and default_locale and locale != default_locale:
            found = translations.get(default_locale)
            if found is not None:
                logger.debug(
                    "翻译回退到默认语言",
                    entity=type(self).__name__,
                    requested=locale,
                    resolved=default_locale,
                )
                return found

        staged = self._staging()
        if locale in staged:
            return staged[locale]

        translation = self.get_translation_class()()
        translation.set_locale(locale)
        # 不触发 back_populates，否则新翻译会立刻出现在权威集合里
        set_committed_value(translation, TRANSLATABLE, self)
        staged[locale] = translation
        logger.debug(
            "已创建暂存翻译", entity=type(self).__name__, locale=locale
        )
        return translation

    # --- 语言字段 ---

    def get_current_locale(self) -> str | None:
        return self.current_locale

    def set_current_locale(self, locale: str) -> None:
        self.current_locale = locale

    def get_default_locale(self) -> str:
        return self.default_locale

    def set_default_locale(self, locale: str) -> None:
        self.default_locale = locale

    def apply_locales(
        self, current_locale: str | None = None, default_locale: str | None = None
    ) -> None:
        """由生命周期监听器调用；提供者返回空值时对应字段保持不变。"""
        if current_locale:
            self.set_current_locale(current_locale)
        if default_locale:
            self.set_default_locale(default_locale)


class TranslationMixin:
    """“子”记录：某一语言下的翻译字段，反向引用唯一的 translatable。"""

    if TYPE_CHECKING:
        locale: str
        translatable: TranslatableMixin

    @classmethod
    def get_translatable_entity_class(cls) -> type[TranslatableMixin] | str:
        """返回所属的 translatable 类型（类对象或已注册的类名）。"""
        raise NotImplementedError(
            f"{cls.__name__} 必须实现 get_translatable_entity_class()"
        )

    def get_locale(self) -> str:
        return getattr(self, LOCALE)

    def set_locale(self, locale: str) -> None:
        setattr(self, LOCALE, locale)

    def get_translatable(self) -> TranslatableMixin:
        return getattr(self, TRANSLATABLE)

    def set_translatable(self, translatable: TranslatableMixin) -> None:
        setattr(self, TRANSLATABLE, translatable)

    def is_empty(self) -> bool:
        """
        所有翻译字段均未设置时返回 True。

        默认实现只检查翻译字段：跳过 locale、主键、外键以及多态鉴别列
        （鉴别列在构造实例时就已由 SQLAlchemy 填好）。
        字段语义更复杂的子类可以覆盖。
        """
        mapper = inspect(type(self))
        for prop in mapper.column_attrs:
            if prop.key == LOCALE:
                continue
            if any(_is_bookkeeping(col, mapper) for col in prop.columns):
                continue
            if _is_set(getattr(self, prop.key)):
                return False
        return True


def _is_bookkeeping(column: Any, mapper: Any) -> bool:
    discriminator = mapper.polymorphic_on
    return bool(
        column.primary_key
        or column.foreign_keys
        or (discriminator is not None and column is discriminator)
    )


def _is_set(value: Any) -> bool:
    return value is not None and value != ""
