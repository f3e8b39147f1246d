# tests/helpers/models.py
"""
测试用的模型工厂。

每次调用都会创建一个全新的声明式基类（独立的 registry），并先挂接
TranslatableSubscriber 再声明模型，保证各测试之间的映射互不干扰。
"""

from types import SimpleNamespace
from typing import Any, Optional

from sqlalchemy import String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from trans_orm import TranslatableMixin, TranslatableSubscriber, TranslationMixin


def new_base() -> type[DeclarativeBase]:
    class Base(DeclarativeBase):
        pass

    return Base


def build_models(subscriber: TranslatableSubscriber, session_target: Any) -> SimpleNamespace:
    """Article / ArticleTranslation：translatable 先于 translation 声明。"""
    Base = new_base()
    subscriber.install(Base, session_target)

    class Article(TranslatableMixin, Base):
        __tablename__ = "article"

        id: Mapped[int] = mapped_column(primary_key=True)
        slug: Mapped[str] = mapped_column(String(64), default="")

        @classmethod
        def get_translation_entity_class(cls):
            return "ArticleTranslation"

    class ArticleTranslation(TranslationMixin, Base):
        __tablename__ = "article_translation"

        id: Mapped[int] = mapped_column(primary_key=True)
        title: Mapped[Optional[str]] = mapped_column(String(200), default=None)
        body: Mapped[Optional[str]] = mapped_column(Text, default=None)

        @classmethod
        def get_translatable_entity_class(cls):
            return Article

    return SimpleNamespace(
        Base=Base, Article=Article, ArticleTranslation=ArticleTranslation
    )


def build_product_models(
    subscriber: TranslatableSubscriber, session_target: Any
) -> SimpleNamespace:
    """Product / ProductTranslation：translation 侧用 kind 列做单表继承。"""
    Base = new_base()
    subscriber.install(Base, session_target)

    class Product(TranslatableMixin, Base):
        __tablename__ = "product"

        id: Mapped[int] = mapped_column(primary_key=True)

        @classmethod
        def get_translation_entity_class(cls):
            return "ProductTranslation"

    class ProductTranslation(TranslationMixin, Base):
        __tablename__ = "product_translation"

        id: Mapped[int] = mapped_column(primary_key=True)
        kind: Mapped[str] = mapped_column(String(20), default="plain")
        name: Mapped[Optional[str]] = mapped_column(String(100), default=None)

        __mapper_args__ = {
            "polymorphic_on": "kind",
            "polymorphic_identity": "plain",
        }

        @classmethod
        def get_translatable_entity_class(cls):
            return Product

    class RichProductTranslation(ProductTranslation):
        __mapper_args__ = {"polymorphic_identity": "rich"}

    return SimpleNamespace(
        Base=Base,
        Product=Product,
        ProductTranslation=ProductTranslation,
        RichProductTranslation=RichProductTranslation,
    )
