"""
构建进度报告

构建核心只通过这里的接口通知进度，不关心具体如何展示。
"""

from typing import List, Optional, Sequence

from rich.console import Console
from rich.markup import escape


class BuildReporter:
    """进度报告接口

    默认实现什么也不做，可直接作为空报告器使用。
    """

    def on_title(self, label: str) -> None:
        pass

    def on_section_start(self, label: str) -> None:
        pass

    def on_file_added(self, archive_path: str) -> None:
        pass

    def on_compressed(self, archive_path: str) -> None:
        pass

    def on_success(self, summary_lines: Sequence[str]) -> None:
        pass


class ConsoleReporter(BuildReporter):
    """使用 Rich Console 输出进度"""

    def __init__(self, console: Optional[Console] = None, verbose: bool = False):
        self.console = console or Console()
        self.verbose = verbose
        self.files_added = 0
        self.files_compressed = 0

    def on_title(self, label: str) -> None:
        self.console.rule(f"[bold]{escape(label)}[/bold]")

    def on_section_start(self, label: str) -> None:
        self.console.print(f"[cyan]{escape(label)}[/cyan]")

    def on_file_added(self, archive_path: str) -> None:
        self.files_added += 1
        if self.verbose:
            self.console.print(f"[dim] > {escape(archive_path)}[/dim]")

    def on_compressed(self, archive_path: str) -> None:
        self.files_compressed += 1
        if self.verbose:
            self.console.print(f"[dim]   ... {escape(archive_path)}[/dim] [green]compressed[/green]")

    def on_success(self, summary_lines: Sequence[str]) -> None:
        lines: List[str] = list(summary_lines)
        if not lines:
            return
        self.console.print(f"[green]✓ {escape(lines[0])}[/green]")
        for line in lines[1:]:
            self.console.print(f"  {escape(line)}")
