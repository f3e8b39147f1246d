# trans_orm/cli.py
"""
trans-orm 命令行工具。

    trans-orm describe myapp.models:subscriber
    trans-orm check-settings
"""

from __future__ import annotations

import importlib
from typing import Annotated, Any

import typer
from rich.console import Console
from rich.table import Table
from sqlalchemy.orm import configure_mappers

from trans_orm.config import load_settings
from trans_orm.exceptions import ConfigurationError
from trans_orm.logging_config import setup_logging_from_settings
from trans_orm.subscriber import TranslatableSubscriber

app = typer.Typer(
    name="trans-orm",
    help="查看 translatable 实体派生出的映射。",
    add_completion=False,
    no_args_is_help=True,
)
console = Console()


def _import_target(target: str) -> Any:
    module_name, sep, attr = target.partition(":")
    if not sep or not attr:
        raise typer.BadParameter("格式应为 'package.module:attribute'")
    module = importlib.import_module(module_name)
    try:
        return getattr(module, attr)
    except AttributeError as e:
        raise typer.BadParameter(f"{module_name} 中没有 {attr!r}") from e


@app.command("describe")
def describe(
    target: Annotated[
        str,
        typer.Argument(help="TranslatableSubscriber 实例的位置，如 'app.models:subscriber'。"),
    ],
) -> None:
    """导入模型模块、完成映射配置，并列出所有派生的 translatable / translation 对。"""
    try:
        subscriber = _import_target(target)
        if not isinstance(subscriber, TranslatableSubscriber):
            raise typer.BadParameter(f"{target} 不是 TranslatableSubscriber 实例")
        configure_mappers()
    except ConfigurationError as e:
        console.print(f"[bold red]❌ 映射派生失败: {e}[/bold red]")
        raise typer.Exit(code=1) from e

    descriptors = subscriber.deriver.descriptors()
    if not descriptors:
        console.print("[yellow]⚠️ 没有派生出任何翻译映射。[/yellow]")
        return

    for d in descriptors:
        table = Table(title=f"{d.translatable_table} -> {d.translation_table}", show_header=False)
        table.add_column(style="dim", justify="right")
        table.add_column(overflow="fold")
        table.add_row("Translatable", d.translatable_class)
        table.add_row("Translation", d.translation_class)
        table.add_row("外键", f"{d.foreign_key_column} -> {d.translatable_table}.{d.referenced_column}")
        table.add_row("locale", f"{d.locale_column}({d.locale_length})")
        table.add_row("唯一约束", d.unique_constraint or "-")
        table.add_row("加载策略", f"{d.translatable_loader} / {d.translation_loader}")
        console.print(table)


@app.command("check-settings")
def check_settings() -> None:
    """加载并打印当前生效的配置（含环境变量覆盖）。"""
    try:
        settings = load_settings()
    except ConfigurationError as e:
        console.print(f"[bold red]❌ {e}[/bold red]")
        raise typer.Exit(code=1) from e

    setup_logging_from_settings(settings)
    console.print_json(settings.model_dump_json())


def main() -> None:
    app()


if __name__ == "__main__":
    main()
