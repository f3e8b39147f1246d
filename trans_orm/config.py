# trans_orm/config.py
"""
trans-orm 配置（Pydantic v2 + pydantic-settings）

所有配置项均可通过 `TRANSORM_` 前缀的环境变量覆盖，嵌套字段使用 `__` 分隔，
例如 `TRANSORM_LOCALE__DEFAULT=de`。
"""

from __future__ import annotations

from typing import Literal, Optional

import langcodes
from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from trans_orm.exceptions import ConfigurationError
from trans_orm.types import LOCALE_LENGTH, FetchMode, UnmergedPolicy


def validate_locale_code(value: str) -> str:
    """校验语言代码：必须是合法的 BCP 47 标签，且能放进 locale 列。"""
    # 允许 en_US 这类下划线写法
    if not langcodes.tag_is_valid(value.replace("_", "-")):
        raise ValueError(f"非法语言代码: {value}")
    if len(value) > LOCALE_LENGTH:
        raise ValueError(f"语言代码 {value!r} 超过 locale 列长度 {LOCALE_LENGTH}")
    return value


class LocaleSettings(BaseModel):
    default: str = Field(default="en", description="回退语言")
    current: Optional[str] = Field(default=None, description="固定的当前语言")

    @field_validator("default")
    @classmethod
    def _validate_default(cls, v: str) -> str:
        return validate_locale_code(v)

    @field_validator("current")
    @classmethod
    def _validate_current(cls, v: Optional[str]) -> Optional[str]:
        if v in (None, ""):
            return None
        return validate_locale_code(v)


class LoggingSettings(BaseModel):
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(default="INFO")
    format: Literal["console", "json"] = Field(default="console")


class TransOrmSettings(BaseSettings):
    """
    trans-orm 核心配置模型。
    """

    translatable_fetch: FetchMode = FetchMode.LAZY
    translation_fetch: FetchMode = FetchMode.LAZY
    unmerged_policy: UnmergedPolicy = UnmergedPolicy.WARN

    locale: LocaleSettings = Field(default_factory=LocaleSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @field_validator("translatable_fetch", "translation_fetch", mode="before")
    @classmethod
    def _upper_fetch(cls, v: object) -> object:
        return v.upper() if isinstance(v, str) else v

    model_config = SettingsConfigDict(
        env_nested_delimiter="__",
        env_prefix="TRANSORM_",
        case_sensitive=False,
        extra="ignore",
        env_file_encoding="utf-8",
    )


def load_settings(**overrides: object) -> TransOrmSettings:
    """加载配置；校验失败统一转换为 ConfigurationError。"""
    try:
        return TransOrmSettings(**overrides)
    except ValidationError as e:
        raise ConfigurationError(f"trans-orm 配置无效: {e}") from e
