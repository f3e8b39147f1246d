# examples/01_basic_usage.py
"""
trans-orm 基本用法演示：

1. 挂接订阅者并声明 translatable / translation 模型；
2. 创建实体、暂存翻译并在持久化前合并；
3. 按请求语言读取，演示一跳回退。

运行：python examples/01_basic_usage.py
"""

from typing import Optional

import structlog
from sqlalchemy import String, create_engine, select
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, sessionmaker

from trans_orm import (
    ContextLocaleProvider,
    TranslatableMixin,
    TranslatableSubscriber,
    TranslationMixin,
    load_settings,
)
from trans_orm.logging_config import setup_logging_from_settings

settings = load_settings()
# 示例自身的 logger 不在 trans_orm 之下，根 logger 也按配置级别放开
setup_logging_from_settings(settings, root_level=settings.logging.level)
log = structlog.get_logger("examples.basic_usage")

provider = ContextLocaleProvider(fallback_locale=settings.locale.default)
subscriber = TranslatableSubscriber.from_settings(settings, provider)
Session = sessionmaker(expire_on_commit=False)


class Base(DeclarativeBase):
    pass


# 必须在声明模型之前挂接
subscriber.install(Base, Session)


class Product(TranslatableMixin, Base):
    __tablename__ = "product"

    id: Mapped[int] = mapped_column(primary_key=True)
    sku: Mapped[str] = mapped_column(String(32))

    @classmethod
    def get_translation_entity_class(cls):
        return "ProductTranslation"


class ProductTranslation(TranslationMixin, Base):
    __tablename__ = "product_translation"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[Optional[str]] = mapped_column(String(200), default=None)

    @classmethod
    def get_translatable_entity_class(cls):
        return Product


def main() -> None:
    engine = create_engine("sqlite://")
    Base.metadata.create_all(engine)
    Session.configure(bind=engine)

    with Session() as session:
        product = Product(sku="TEA-001")
        product.translate("en").name = "Green tea"
        product.translate("de", fallback=False).name = "Grüner Tee"
        # 交给 Session 之前合并暂存翻译
        product.merge_new_translations()
        session.add(product)
        session.commit()

    with provider.use_locale("fr"), Session() as session:
        product = session.scalars(select(Product)).one()
        translation = product.translate()
        log.info(
            "读取翻译",
            requested=product.get_current_locale(),
            resolved=translation.get_locale(),
            name=translation.name,
        )

    with provider.use_locale("de"), Session() as session:
        product = session.scalars(select(Product)).one()
        log.info("读取翻译", resolved=product.translate().get_locale(), name=product.translate().name)


if __name__ == "__main__":
    main()
