# tests/conftest.py
"""项目全局共享的测试 Fixtures。"""

from collections.abc import Generator
from types import SimpleNamespace
from typing import Any

import pytest
from pytest_mock import MockerFixture
from rich.console import Console
from sqlalchemy import Engine, create_engine, event
from sqlalchemy.orm import Session, sessionmaker

from tests.helpers.models import build_models, build_product_models
from trans_orm import StaticLocaleProvider, TranslatableSubscriber


@pytest.fixture(scope="session", autouse=True)
def disable_rich_colors_for_tests(
    session_mocker: MockerFixture,
) -> Generator[None, None, None]:
    """全局禁用 rich 库的颜色输出，以确保测试结果的确定性。"""
    original_init = Console.__init__

    def new_init(self: Console, *args: Any, **kwargs: Any) -> None:
        kwargs["force_terminal"] = False
        kwargs["color_system"] = None
        original_init(self, *args, **kwargs)

    session_mocker.patch("rich.console.Console.__init__", new=new_init)
    yield


@pytest.fixture
def engine() -> Generator[Engine, None, None]:
    """内存 SQLite 引擎，开启外键约束以验证 ON DELETE CASCADE。"""
    engine = create_engine("sqlite://")

    @event.listens_for(engine, "connect")
    def _enable_foreign_keys(dbapi_connection: Any, _record: Any) -> None:
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=engine, expire_on_commit=False)


@pytest.fixture
def locale_provider() -> StaticLocaleProvider:
    return StaticLocaleProvider(current_locale="de", fallback_locale="en")


@pytest.fixture
def subscriber(locale_provider: StaticLocaleProvider) -> TranslatableSubscriber:
    return TranslatableSubscriber(locale_provider)


@pytest.fixture
def models(
    subscriber: TranslatableSubscriber, session_factory: sessionmaker[Session]
) -> Generator[SimpleNamespace, None, None]:
    """Article / ArticleTranslation 模型；测试结束后释放其 registry。"""
    ns = build_models(subscriber, session_factory)
    yield ns
    ns.Base.registry.dispose()


@pytest.fixture
def product_models(
    subscriber: TranslatableSubscriber, session_factory: sessionmaker[Session]
) -> Generator[SimpleNamespace, None, None]:
    """单表继承的 Product / ProductTranslation 模型。"""
    ns = build_product_models(subscriber, session_factory)
    yield ns
    ns.Base.registry.dispose()


@pytest.fixture
def db_models(models: SimpleNamespace, engine: Engine) -> SimpleNamespace:
    """在模型基础上建好表结构。"""
    models.Base.metadata.create_all(engine)
    return models
