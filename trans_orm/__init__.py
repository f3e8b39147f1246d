# trans_orm/__init__.py
"""trans-orm: 让一个逻辑实体以一组按语言划分的翻译记录持久化的 SQLAlchemy 扩展。

该模块导出映射派生、翻译解析与生命周期挂接的公共 API。
"""

__version__ = "0.1.0"

from .config import TransOrmSettings, load_settings
from .exceptions import (
    ConfigurationError,
    TranslationMergeConflictError,
    TransOrmError,
    UnmergedTranslationsError,
)
from .interfaces import LocaleProvider
from .mapping import MappingDeriver, convert_fetch_mode
from .mixins import TranslatableMixin, TranslationMixin
from .providers import ContextLocaleProvider, StaticLocaleProvider, provider_from_settings
from .subscriber import TranslatableSubscriber
from .types import FetchMode, TranslationPairDescriptor, UnmergedPolicy

__all__ = [
    "__version__",
    "TransOrmSettings",
    "load_settings",
    "TransOrmError",
    "ConfigurationError",
    "TranslationMergeConflictError",
    "UnmergedTranslationsError",
    "LocaleProvider",
    "MappingDeriver",
    "convert_fetch_mode",
    "TranslatableMixin",
    "TranslationMixin",
    "StaticLocaleProvider",
    "ContextLocaleProvider",
    "provider_from_settings",
    "TranslatableSubscriber",
    "FetchMode",
    "UnmergedPolicy",
    "TranslationPairDescriptor",
]
