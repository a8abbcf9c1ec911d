"""
pyzbuilder CLI 主入口

提供命令行接口，支持 build/validate/inspect/example 等命令。
"""

from typing import Optional

import typer
from rich.console import Console

from .. import __version__
from ..utils import configure_logging
from .commands import build, validate, inspect


# 创建主应用
app = typer.Typer(
    name="pyzbuilder",
    help="pyzbuilder - 单文件可执行 Python 归档构建工具",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)

# 控制台输出
console = Console()


# 全局选项
def version_callback(value: bool) -> None:
    """显示版本信息"""
    if value:
        console.print(f"pyzbuilder v{__version__}")
        raise typer.Exit()


def verbose_callback(verbose: bool) -> None:
    """配置详细输出"""
    if verbose:
        configure_logging(level="DEBUG")
    else:
        configure_logging(level="INFO")


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        callback=version_callback,
        is_eager=True,
        help="显示版本信息"
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose", "-v",
        callback=verbose_callback,
        help="启用详细输出"
    )
) -> None:
    """pyzbuilder - 单文件可执行 Python 归档构建工具

    使用 --help 查看可用命令的详细信息。
    """
    pass


# 注册子命令
app.command("build", help="构建归档")(build.build_command)
app.command("validate", help="验证配置文件")(validate.validate_command)
app.command("inspect", help="查看归档内容")(inspect.inspect_command)


@app.command("example")
def example_command(
    output: str = typer.Option(
        "pyzbuilder.yaml",
        "--output", "-o",
        help="输出配置文件路径"
    )
) -> None:
    """生成示例配置文件"""
    from ..config import BuildConfig, CompressionMode, ConfigError, save_config

    config = BuildConfig(
        manifest="pyproject.toml",
        output_dir="dist",
        name="app.pyz",
        entry_point="src/app/cli.py",
        compression=CompressionMode.GZIP,
        keep_dev=False,
        exclude=["*.pyc", "__pycache__/"],
    )

    try:
        save_config(config, output)
    except ConfigError as e:
        console.print(f"[red]生成示例配置失败: {e}[/red]")
        raise typer.Exit(1)

    console.print(f"✓ 示例配置文件已生成: [green]{output}[/green]")
    console.print("请根据需要修改配置文件，然后运行:")
    console.print(f"  [cyan]pyzbuilder build -c {output}[/cyan]")


if __name__ == "__main__":
    app()
