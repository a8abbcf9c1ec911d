"""
Inspect 命令实现

查看归档的解释器指令行、启动脚本和条目列表。
"""

import json
import zipfile
from pathlib import Path
from typing import Any, Dict

import typer
from rich.console import Console
from rich.syntax import Syntax
from rich.table import Table

from ...build.stub import BOOTSTRAP_NAME
from ...utils import format_size


console = Console()

_METHOD_NAMES = {
    zipfile.ZIP_STORED: "stored",
    zipfile.ZIP_DEFLATED: "deflate",
    zipfile.ZIP_BZIP2: "bzip2",
    zipfile.ZIP_LZMA: "lzma",
}


def inspect_command(
    artifact: str = typer.Argument(..., help="归档文件路径"),
    json_output: bool = typer.Option(False, "--json", help="输出 JSON 格式"),
    show_bootstrap: bool = typer.Option(False, "--bootstrap", help="显示启动脚本"),
) -> None:
    """查看归档内容

    示例:
        pyzbuilder inspect dist/app.pyz
        pyzbuilder inspect dist/app.pyz --json
        pyzbuilder inspect dist/app.pyz --bootstrap
    """
    artifact_path = Path(artifact)

    if not artifact_path.is_file():
        console.print(f"[red]归档文件不存在: {artifact_path}[/red]")
        raise typer.Exit(1)

    try:
        data = read_artifact(artifact_path)
    except (OSError, zipfile.BadZipFile) as e:
        console.print(f"[red]读取归档失败: {e}[/red]")
        raise typer.Exit(1)

    if json_output:
        typer.echo(json.dumps(data, ensure_ascii=False, indent=2))
        return

    _display_artifact(artifact_path, data, show_bootstrap)


def read_artifact(artifact_path: Path) -> Dict[str, Any]:
    """读取归档的指令行、启动脚本和条目信息"""
    with open(artifact_path, 'rb') as f:
        first_line = f.readline()
    directive = first_line.decode('utf-8', 'replace').rstrip('\n') if first_line.startswith(b'#!') else None

    with zipfile.ZipFile(artifact_path) as zf:
        entries = [
            {
                "path": info.filename,
                "size": info.file_size,
                "compressed_size": info.compress_size,
                "method": _METHOD_NAMES.get(info.compress_type, str(info.compress_type)),
            }
            for info in zf.infolist()
        ]
        bootstrap = None
        if BOOTSTRAP_NAME in zf.namelist():
            bootstrap = zf.read(BOOTSTRAP_NAME).decode('utf-8')

    return {
        "file": str(artifact_path),
        "size": artifact_path.stat().st_size,
        "directive": directive,
        "bootstrap": bootstrap,
        "entries": entries,
    }


def _display_artifact(artifact_path: Path, data: Dict[str, Any], show_bootstrap: bool) -> None:
    console.print(f"[bold]归档[/bold]: {artifact_path} ({format_size(data['size'])})")
    console.print(f"[blue]解释器指令行[/blue]: {data['directive'] or '-'}")

    if show_bootstrap:
        if data['bootstrap'] is None:
            console.print(f"[yellow]归档中没有 {BOOTSTRAP_NAME}[/yellow]")
        else:
            console.print(Syntax(data['bootstrap'], "python", line_numbers=True))

    table = Table(title=f"条目 ({len(data['entries'])})")
    table.add_column("路径", style="cyan")
    table.add_column("大小", justify="right")
    table.add_column("压缩后", justify="right")
    table.add_column("方法", style="green")

    for entry in data['entries']:
        table.add_row(
            entry['path'],
            format_size(entry['size']),
            format_size(entry['compressed_size']),
            entry['method'],
        )

    console.print(table)
