# trans_orm/exceptions.py
"""
本模块定义了 trans-orm 中所有自定义的、语义化的异常类型。

映射派生阶段的错误意味着整个类型体系的命名约定被破坏，必须中止启动；
运行期的解析操作从不因为缺少某个语言而失败，只有暂存区与权威集合的
键冲突才会抛出异常。
"""


class TransOrmError(Exception):
    """
    所有 trans-orm 自定义异常的通用基类。
    捕获此异常可以处理所有源自本项目的预期错误。
    """

    pass


class ConfigurationError(TransOrmError):
    """
    表示映射派生或配置加载时发生的错误。
    例如，translation 类型声明的所属 translatable 类型无法解析为已知的映射。
    """

    pass


class TranslationMergeConflictError(TransOrmError, KeyError):
    """
    合并暂存翻译时，目标语言键已存在于权威集合中。
    继承自 KeyError 是为了保持与字典键冲突语义的一致性。
    """

    def __init__(self, locale: str, entity: object | None = None) -> None:
        self.locale = locale
        self.entity = entity
        super().__init__(locale)

    def __str__(self) -> str:
        owner = type(self.entity).__name__ if self.entity is not None else "?"
        return f"{owner} 的翻译集合中已存在语言 {self.locale!r}，拒绝覆盖暂存的新翻译"


class UnmergedTranslationsError(TransOrmError):
    """
    表示 flush 时仍有未调用 merge_new_translations() 合并的暂存翻译。
    仅在 unmerged_policy 配置为 "raise" 时抛出。
    """

    def __init__(self, pending: dict[str, list[str]]) -> None:
        self.pending = pending
        details = "; ".join(f"{name}: {', '.join(locs)}" for name, locs in pending.items())
        super().__init__(f"存在未合并的暂存翻译，它们不会被持久化: {details}")
