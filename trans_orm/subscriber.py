# trans_orm/subscriber.py
"""
把 MappingDeriver 与语言设置挂接到 SQLAlchemy 的事件系统上。

- after_mapper_constructed（映射器事件） -> 派生映射；
- load / refresh（实例事件）             -> 实例从数据库加载或刷新后设置语言；
- transient_to_pending（会话事件）       -> 实例交给 Session 准备插入时设置语言；
- before_flush（会话事件）               -> 检查参与 flush 的实体上未合并且非空的暂存翻译。

必须在声明任何模型类之前调用 install()，否则已构建的映射器收不到派生事件。
"""

from __future__ import annotations

from collections.abc import Iterable
from itertools import chain
from typing import TYPE_CHECKING, Any

import structlog
from sqlalchemy import event, inspect
from sqlalchemy.orm import Session

from trans_orm.exceptions import UnmergedTranslationsError
from trans_orm.interfaces import LocaleProvider
from trans_orm.mapping import MappingDeriver
from trans_orm.mixins import TranslatableMixin
from trans_orm.providers import StaticLocaleProvider, provider_from_settings
from trans_orm.types import FetchMode, UnmergedPolicy

if TYPE_CHECKING:
    from sqlalchemy.orm import QueryContext, UOWTransaction

    from trans_orm.config import TransOrmSettings

logger = structlog.get_logger(__name__)


class TranslatableSubscriber:
    """
    translatable 扩展的事件订阅者。

    Args:
        locale_provider: 提供当前语言与回退语言的外部协作者。
        translatable_fetch: translations 集合的加载策略。
        translation_fetch: translatable 反向引用的加载策略。
        unmerged_policy: flush 时发现未合并暂存翻译的处理方式。
    """

    def __init__(
        self,
        locale_provider: LocaleProvider | None = None,
        *,
        translatable_fetch: FetchMode | str = FetchMode.LAZY,
        translation_fetch: FetchMode | str = FetchMode.LAZY,
        unmerged_policy: UnmergedPolicy | str = UnmergedPolicy.WARN,
    ) -> None:
        self._locale_provider = locale_provider or StaticLocaleProvider()
        self._deriver = MappingDeriver(translatable_fetch, translation_fetch)
        self._unmerged_policy = UnmergedPolicy(unmerged_policy)

    @classmethod
    def from_settings(
        cls,
        settings: "TransOrmSettings",
        locale_provider: LocaleProvider | None = None,
    ) -> "TranslatableSubscriber":
        return cls(
            locale_provider or provider_from_settings(settings),
            translatable_fetch=settings.translatable_fetch,
            translation_fetch=settings.translation_fetch,
            unmerged_policy=settings.unmerged_policy,
        )

    @property
    def deriver(self) -> MappingDeriver:
        return self._deriver

    @property
    def locale_provider(self) -> LocaleProvider:
        return self._locale_provider

    def install(self, base: type, session_target: Any = Session) -> None:
        """
        注册全部监听器。

        Args:
            base: 项目的声明式基类；事件会传播到它的所有映射子类。
            session_target: Session 类、sessionmaker 或 scoped_session，
                默认注册到全局 Session 类。
        """
        event.listen(
            base,
            "after_mapper_constructed",
            self._deriver.load_class_metadata,
            propagate=True,
        )
        event.listen(base, "load", self.post_load, propagate=True)
        event.listen(base, "refresh", self.post_refresh, propagate=True)
        event.listen(session_target, "transient_to_pending", self.pre_persist)
        event.listen(session_target, "before_flush", self.before_flush)
        logger.debug(
            "translatable 监听器已注册",
            base=base.__name__,
            session_target=getattr(session_target, "__name__", repr(session_target)),
        )

    # --- 生命周期通知 ---

    def post_load(self, target: Any, context: "QueryContext") -> None:
        self._set_locales(target)

    def post_refresh(
        self, target: Any, context: "QueryContext", attrs: Iterable[str] | None
    ) -> None:
        self._set_locales(target)

    def pre_persist(self, session: Session, instance: Any) -> None:
        self._set_locales(instance)

    def before_flush(
        self,
        session: Session,
        flush_context: "UOWTransaction",
        instances: Any,
    ) -> None:
        if self._unmerged_policy is UnmergedPolicy.IGNORE:
            return

        # 只看本次 flush 涉及的实体；读取时顺带产生的空占位翻译不算
        pending: dict[str, list[str]] = {}
        for obj in chain(session.new, session.dirty):
            if not isinstance(obj, TranslatableMixin):
                continue
            locales = _filled_staged_locales(obj)
            if locales:
                pending[_describe(obj)] = locales
        if not pending:
            return

        if self._unmerged_policy is UnmergedPolicy.RAISE:
            raise UnmergedTranslationsError(pending)
        logger.warning(
            "检测到未合并的暂存翻译，它们不会被持久化；"
            "请在 flush 前调用 merge_new_translations()",
            pending=pending,
        )

    def _set_locales(self, entity: Any) -> None:
        if not isinstance(entity, TranslatableMixin):
            return

        current_locale = self._locale_provider.provide_current_locale()
        fallback_locale = self._locale_provider.provide_fallback_locale()
        entity.apply_locales(current_locale, fallback_locale)


def _describe(obj: TranslatableMixin) -> str:
    identity = inspect(obj).identity
    if identity is None:
        return f"{type(obj).__name__}@{id(obj):x}"
    return f"{type(obj).__name__}{identity!r}"


def _filled_staged_locales(obj: TranslatableMixin) -> list[str]:
    if not obj.has_unmerged_translations():
        return []
    return sorted(
        locale
        for locale, translation in obj.get_new_translations().items()
        if not translation.is_empty()
    )
