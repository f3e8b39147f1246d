# trans_orm/mapping.py
"""
MappingDeriver：根据类型信息为 translatable / translation 对派生关系映射。

每个映射类在 SQLAlchemy 构建完其 Mapper 之后（configure_mappers 之前）
调用一次。所有注入都是增量且幂等的：子类已显式声明的元素、或此前已派生过
的元素会被逐项跳过，因此沿继承链重复调用是安全的。

对 translatable 注入：
    translations: 指向 translation 的一对多，按 locale 索引，
                    级联 save-update/merge/delete，并删除孤儿记录。
对 translation 注入：
    translatable_id: 引用所属类型主键的外键列，ON DELETE CASCADE；
    translatable   : 多对一反向引用，级联 save-update/merge；
    locale         : 不超过 5 个字符的字符串列；
    (translatable_id, locale) 唯一约束，只加在继承体系的根表上。
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog
from sqlalchemy import Column, ForeignKey, String, Table, UniqueConstraint, inspect
from sqlalchemy.orm import Mapper, attribute_keyed_dict, relationship

from trans_orm.exceptions import ConfigurationError
from trans_orm.mixins import TranslatableMixin, TranslationMixin
from trans_orm.types import (
    LOCALE,
    LOCALE_LENGTH,
    TRANSLATABLE,
    TRANSLATABLE_ID,
    TRANSLATIONS,
    FetchMode,
    TranslationPairDescriptor,
)

if TYPE_CHECKING:
    from sqlalchemy.orm import registry as Registry

logger = structlog.get_logger(__name__)

TRANSLATIONS_CASCADE = "save-update, merge, delete, delete-orphan"
TRANSLATABLE_CASCADE = "save-update, merge"

_COLLECTION_LOADERS = {
    FetchMode.LAZY: "select",
    FetchMode.EAGER: "selectin",
    # SQLAlchemy 没有“超级延迟”的按键集合，退化为普通延迟加载
    FetchMode.EXTRA_LAZY: "select",
}
_SCALAR_LOADERS = {
    FetchMode.LAZY: "select",
    FetchMode.EAGER: "joined",
    FetchMode.EXTRA_LAZY: "select",
}


def convert_fetch_mode(mode: FetchMode | str, *, collection: bool) -> str:
    """
    把 LAZY / EAGER / EXTRA_LAZY 转换为 SQLAlchemy 的 lazy 参数。

    其他字符串（如 "subquery"、"raise"）视为 SQLAlchemy 加载策略原样透传，
    由 SQLAlchemy 在配置映射时校验。
    """
    if not isinstance(mode, FetchMode):
        try:
            mode = FetchMode(mode.upper())
        except ValueError:
            return mode

    if mode is FetchMode.EXTRA_LAZY and collection:
        logger.debug("EXTRA_LAZY 对按键集合不可用，已按 LAZY 处理")

    loaders = _COLLECTION_LOADERS if collection else _SCALAR_LOADERS
    return loaders[mode]


def unique_constraint_name(table: Table) -> str:
    return f"{table.name}_unique_translation"


def _qualified_name(class_: type) -> str:
    return f"{class_.__module__}.{class_.__qualname__}"


def _has_unique_constraint(table: Table, name: str) -> bool:
    return any(
        isinstance(c, UniqueConstraint) and c.name == name for c in table.constraints
    )


class MappingDeriver:
    """
    为 translatable / translation 类型注入关联、列与约束。

    派生结果同时记录为不可变的 TranslationPairDescriptor，
    之后只读访问（descriptors() / descriptor_for()）。
    """

    def __init__(
        self,
        translatable_fetch: FetchMode | str = FetchMode.LAZY,
        translation_fetch: FetchMode | str = FetchMode.LAZY,
    ) -> None:
        self._translatable_loader = convert_fetch_mode(
            translatable_fetch, collection=True
        )
        self._translation_loader = convert_fetch_mode(
            translation_fetch, collection=False
        )
        self._descriptors: dict[str, TranslationPairDescriptor] = {}

    @property
    def translatable_loader(self) -> str:
        return self._translatable_loader

    @property
    def translation_loader(self) -> str:
        return self._translation_loader

    # --- 入口 ---

    def derive(self, class_: type) -> None:
        """对一个类派生映射；未映射的类（抽象基类、纯混入类）直接忽略。"""
        mapper = inspect(class_, raiseerr=False)
        if not isinstance(mapper, Mapper):
            logger.debug("跳过未映射的类", cls=class_.__name__)
            return
        self.load_class_metadata(mapper, class_)

    def load_class_metadata(self, mapper: Mapper[Any], class_: type) -> None:
        """`after_mapper_constructed` 事件处理函数。"""
        if issubclass(class_, TranslatableMixin):
            self._map_translatable(mapper, class_)
            return

        if issubclass(class_, TranslationMixin):
            self._map_translation(mapper, class_)

    # --- 只读结果 ---

    def descriptors(self) -> tuple[TranslationPairDescriptor, ...]:
        return tuple(self._descriptors.values())

    def descriptor_for(self, class_: type | str) -> TranslationPairDescriptor | None:
        name = class_ if isinstance(class_, str) else _qualified_name(class_)
        for descriptor in self._descriptors.values():
            if descriptor.involves(name):
                return descriptor
        return None

    # --- translatable ---

    def _map_translatable(self, mapper: Mapper[Any], class_: type) -> None:
        if mapper.has_property(TRANSLATIONS):
            logger.debug("translations 关联已存在，跳过", cls=class_.__name__)
            return

        try:
            target = class_.get_translation_entity_class()
        except NotImplementedError as e:
            raise ConfigurationError(str(e)) from e

        mapper.add_property(
            TRANSLATIONS,
            relationship(
                target,
                back_populates=TRANSLATABLE,
                collection_class=attribute_keyed_dict(LOCALE),
                cascade=TRANSLATIONS_CASCADE,
                lazy=self._translatable_loader,
            ),
        )
        logger.debug(
            "已派生 translations 关联",
            cls=class_.__name__,
            target=target if isinstance(target, str) else target.__name__,
            lazy=self._translatable_loader,
        )

    # --- translation ---

    def _map_translation(self, mapper: Mapper[Any], class_: type) -> None:
        table = mapper.local_table
        if not isinstance(table, Table):
            raise ConfigurationError(
                f"{class_.__name__} 必须映射到一张表才能派生翻译列"
            )

        owner_mapper: Mapper[Any] | None = None
        referenced: Column[Any] | None = None
        if not mapper.has_property(TRANSLATABLE):
            owner_mapper = self._resolve_translatable_mapper(mapper, class_)
            referenced = self._single_primary_key(owner_mapper)
            fk_column = self._ensure_column(
                mapper,
                table,
                Column(
                    TRANSLATABLE_ID,
                    referenced.type,
                    ForeignKey(referenced, ondelete="CASCADE"),
                    nullable=False,
                ),
            )
            mapper.add_property(
                TRANSLATABLE,
                relationship(
                    owner_mapper.class_,
                    back_populates=TRANSLATIONS,
                    cascade=TRANSLATABLE_CASCADE,
                    foreign_keys=[fk_column],
                    lazy=self._translation_loader,
                ),
            )
            logger.debug(
                "已派生 translatable 关联",
                cls=class_.__name__,
                owner=owner_mapper.class_.__name__,
                referenced=referenced.name,
            )

        if not mapper.has_property(LOCALE):
            self._ensure_column(
                mapper, table, Column(LOCALE, String(LOCALE_LENGTH), nullable=False)
            )

        constraint_name = unique_constraint_name(table)
        if mapper.inherits is None and not _has_unique_constraint(
            table, constraint_name
        ):
            table.append_constraint(
                UniqueConstraint(TRANSLATABLE_ID, LOCALE, name=constraint_name)
            )
            logger.debug("已添加唯一约束", table=table.name, name=constraint_name)

        if owner_mapper is not None and referenced is not None:
            self._record(mapper, owner_mapper, referenced, constraint_name)

    def _ensure_column(
        self, mapper: Mapper[Any], table: Table, column: Column[Any]
    ) -> Column[Any]:
        """表中尚无同名列时追加，然后映射为同名属性。"""
        existing = table.c.get(column.name)
        if existing is None:
            table.append_column(column)
            existing = column
        if not mapper.has_property(column.name):
            mapper.add_property(column.name, existing)
        return existing

    def _resolve_translatable_mapper(
        self, mapper: Mapper[Any], class_: type
    ) -> Mapper[Any]:
        try:
            declared = class_.get_translatable_entity_class()
        except NotImplementedError as e:
            raise ConfigurationError(str(e)) from e

        target = (
            self._lookup_class(mapper.registry, declared)
            if isinstance(declared, str)
            else declared
        )
        owner_mapper = inspect(target, raiseerr=False) if target is not None else None
        if not isinstance(owner_mapper, Mapper):
            raise ConfigurationError(
                f"{class_.__name__} 声明的所属类型 {declared!r} 不是已映射的实体；"
                "请确认它已先于翻译类型定义，且类名正确"
            )
        if not issubclass(owner_mapper.class_, TranslatableMixin):
            raise ConfigurationError(
                f"{class_.__name__} 声明的所属类型 {owner_mapper.class_.__name__} "
                "没有实现 TranslatableMixin"
            )
        return owner_mapper

    @staticmethod
    def _lookup_class(registry: Registry, name: str) -> type | None:
        matches = [
            m.class_
            for m in registry.mappers
            if name in (m.class_.__name__, _qualified_name(m.class_))
        ]
        if len(matches) > 1:
            raise ConfigurationError(
                f"类名 {name!r} 对应多个映射类，请使用完整的模块路径: "
                + ", ".join(sorted(_qualified_name(c) for c in matches))
            )
        return matches[0] if matches else None

    @staticmethod
    def _single_primary_key(owner_mapper: Mapper[Any]) -> Column[Any]:
        primary_key = owner_mapper.primary_key
        if len(primary_key) != 1:
            raise ConfigurationError(
                f"{owner_mapper.class_.__name__} 必须有且只有一个主键列，"
                f"实际为 {[c.name for c in primary_key]}"
            )
        return primary_key[0]

    def _record(
        self,
        mapper: Mapper[Any],
        owner_mapper: Mapper[Any],
        referenced: Column[Any],
        constraint_name: str,
    ) -> None:
        key = _qualified_name(mapper.class_)
        if key in self._descriptors:
            return
        owner_table = owner_mapper.local_table
        self._descriptors[key] = TranslationPairDescriptor(
            translatable_class=_qualified_name(owner_mapper.class_),
            translatable_table=getattr(owner_table, "name", str(owner_table)),
            translation_class=key,
            translation_table=mapper.local_table.name,
            referenced_column=referenced.name,
            unique_constraint=constraint_name if mapper.inherits is None else None,
            translatable_loader=self._translatable_loader,
            translation_loader=self._translation_loader,
        )
        logger.info(
            "已派生翻译映射",
            translatable=owner_mapper.class_.__name__,
            translation=mapper.class_.__name__,
        )
