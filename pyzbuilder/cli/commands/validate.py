"""
Validate 命令实现

验证构建配置文件，并检查其引用的清单能否解析。
"""

import json
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from ...config import load_config, validate_config
from ...errors import PackError
from ...manifest import ManifestReader


console = Console()


def validate_command(
    config: str = typer.Option(..., "--config", "-c", help="配置文件路径"),
    json_output: bool = typer.Option(False, "--json", help="输出 JSON 格式的错误信息"),
) -> None:
    """验证配置文件

    检查配置文件的语法和语义正确性，并解析其引用的 pyproject.toml。

    示例:
        pyzbuilder validate -c pyzbuilder.yaml
        pyzbuilder validate -c pyzbuilder.yaml --json
    """
    config_path = Path(config)

    if not config_path.exists():
        console.print(f"[red]配置文件不存在: {config_path}[/red]")
        raise typer.Exit(1)

    if not json_output:
        console.print(f"正在验证配置文件: [cyan]{config_path}[/cyan]")

    errors = validate_config(config_path)

    if not errors:
        config_obj = load_config(config_path)
        try:
            resolution = ManifestReader(config_obj.manifest).resolve(keep_dev=config_obj.keep_dev)
        except PackError as e:
            errors = [{'loc': ['manifest'], 'msg': e.message, 'input': e.path or '', 'type': e.phase}]
        else:
            if json_output:
                typer.echo(json.dumps({"file": str(config_path), "errors": [], "error_count": 0},
                                      ensure_ascii=False, indent=2))
            else:
                console.print("[green]✓ 配置文件验证通过[/green]")
                console.print(f"  清单目录: {resolution.manifest_dir}")
                console.print(f"  源码目录: {', '.join(resolution.source_dirs) or '-'}")
                console.print(f"  依赖目录: {resolution.vendor_dir or '-'}")
            return

    if json_output:
        error_data = {
            "file": str(config_path),
            "errors": errors,
            "error_count": len(errors)
        }
        typer.echo(json.dumps(error_data, ensure_ascii=False, indent=2, default=str))
    else:
        console.print(f"[red]配置文件验证失败 ({len(errors)} 个错误):[/red]")
        console.print()

        table = Table(title="验证错误")
        table.add_column("位置", style="cyan", no_wrap=True)
        table.add_column("错误信息", style="red")
        table.add_column("输入值", style="yellow")

        for error in errors:
            location = " -> ".join(str(item) for item in error.get('loc', []))
            message = error.get('msg', '未知错误')
            input_value = str(error.get('input', ''))

            if len(input_value) > 47:
                input_value = input_value[:47] + "..."

            table.add_row(
                location or "根级别",
                message,
                input_value or "-"
            )

        console.print(table)

    raise typer.Exit(1)
