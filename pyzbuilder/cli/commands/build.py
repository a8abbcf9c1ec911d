"""
Build 命令实现

构建归档的核心命令。可以从 YAML 配置文件读取构建参数，
也可以通过命令行选项给出，未给出的必要参数会交互式询问。
"""

import traceback
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.markup import escape

from ...build.builder import Builder
from ...build.reporter import ConsoleReporter
from ...config import BuildConfig, CompressionMode, load_config, ConfigError, ConfigValidationError
from ...config.loader import config_loader
from ...utils import ensure_directory, format_size
from ...utils.logging import set_log_level, set_log_file, OutputLevel


console = Console()


def build_command(
    config: Optional[str] = typer.Option(None, "--config", "-c", help="YAML 配置文件路径"),
    manifest: Optional[str] = typer.Option(None, "--manifest", "-m", help="pyproject.toml 路径或其所在目录"),
    entry_point: Optional[str] = typer.Option(None, "--entry-point", "-e", help="入口脚本（相对于清单目录）"),
    name: Optional[str] = typer.Option(None, "--name", "-n", help="归档文件名"),
    output_dir: Optional[str] = typer.Option(None, "--output-dir", "-o", help="输出目录"),
    compression: Optional[str] = typer.Option(None, "--compression", help="压缩模式: none / gzip / bzip2"),
    include: Optional[List[str]] = typer.Option(None, "--include", "-i", help="额外包含的目录（可重复）"),
    exclude: Optional[List[str]] = typer.Option(None, "--exclude", "-x", help="额外排除的 glob 模式（可重复）"),
    dev: Optional[bool] = typer.Option(None, "--dev/--no-dev", help="是否保留开发依赖"),
    interpreter: str = typer.Option("python3", "--interpreter", help="解释器指令行使用的解释器"),
    log_file: Optional[str] = typer.Option(None, "--log-file", help="日志输出文件"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="输出详细调试日志 (DEBUG 级别)"),
) -> None:
    """构建归档

    把项目源码和依赖目录打包成一个可以直接执行的归档文件。

    示例:
        pyzbuilder build -c pyzbuilder.yaml
        pyzbuilder build -m . -e src/app/cli.py -n app.pyz -o dist --compression gzip
    """
    # 初始化日志：在任何输出前设置
    if verbose:
        set_log_level(OutputLevel.DEBUG)
    else:
        set_log_level(OutputLevel.INFO)

    if log_file:
        try:
            set_log_file(log_file)
        except OSError:
            console.print(f"[yellow]无法写入日志文件: {log_file}[/yellow]")

    try:
        if config:
            console.print(f"[cyan]正在加载配置文件[/cyan]: {config}")
            config_obj = load_config(Path(config))
        else:
            config_obj = _config_from_options(
                manifest, entry_point, name, output_dir, compression,
                include or [], exclude or [], dev, interpreter,
            )
    except ConfigValidationError as e:
        console.print("[red]配置验证失败:[/red]")
        console.print(e.format_errors())
        raise typer.Exit(1)
    except ConfigError as e:
        console.print(f"[red]配置错误[/red]: {e}")
        raise typer.Exit(1)

    try:
        ensure_directory(config_obj.output_dir)
    except OSError as e:
        console.print(f"[red]无法创建输出目录[/red]: {config_obj.output_dir} ({e.strerror or e})")
        raise typer.Exit(1)

    builder = Builder()
    reporter = ConsoleReporter(console=console, verbose=verbose)

    try:
        result = builder.build(config_obj, reporter=reporter)
    except Exception as e:
        console.print(f"[red]✗ 构建过程中发生意外错误[/red]: {e}")
        if log_file:  # 只有指定了日志文件才显示详细信息
            console.print(f"[yellow]详细错误信息:[/yellow]\n{traceback.format_exc()}")
        raise typer.Exit(1)

    if not result.success:
        err = result.error
        console.print(f"[red]✗ 构建失败[/red] ({err.phase}): {escape(err.message)}")
        if err.path:
            console.print(f"[red]  路径[/red]: {escape(err.path)}")
        if log_file:
            console.print(f"[yellow]请检查日志文件 {log_file} 获取详细信息。[/yellow]")
        raise typer.Exit(1)

    console.print(f"[green]✓ 归档构建完成[/green]: {result.output_path}")
    console.print(f"[blue]条目数量[/blue]: {result.entry_count}")
    console.print(f"[blue]文件大小[/blue]: {format_size(result.output_size or 0)}")


def _config_from_options(
    manifest: Optional[str],
    entry_point: Optional[str],
    name: Optional[str],
    output_dir: Optional[str],
    compression: Optional[str],
    includes: List[str],
    excludes: List[str],
    dev: Optional[bool],
    interpreter: str,
) -> BuildConfig:
    """由命令行选项构造配置，缺少的参数交互式询问

    清单、输出目录和额外包含目录相对于当前目录；入口脚本相对于清单目录。
    """
    if manifest is None:
        manifest = typer.prompt("pyproject.toml 路径", default="pyproject.toml")
    if entry_point is None:
        entry_point = typer.prompt("入口脚本（相对于项目目录）")
    if name is None:
        name = typer.prompt("归档文件名", default=f"{Path(entry_point).stem}.pyz")
    if output_dir is None:
        output_dir = typer.prompt("输出目录", default="dist")
    if compression is None:
        compression = typer.prompt(
            "压缩模式 (none / gzip / bzip2)", default=CompressionMode.NONE.value
        )
    if dev is None:
        dev = typer.confirm("保留开发依赖?", default=False)

    data = {
        'manifest': manifest,
        'output_dir': output_dir,
        'name': name,
        'entry_point': entry_point,
        'compression': compression,
        'includes': [str(Path(item).resolve()) for item in includes],
        'keep_dev': dev,
        'exclude': excludes or None,
        'interpreter': interpreter,
    }
    data['manifest'] = str(Path(manifest).resolve())
    data['output_dir'] = str(Path(output_dir).resolve())
    return config_loader.load_from_dict(data)
