# src/stitch/cli/formatter.py
import difflib
from typing import Any, Dict, List

from rich.console import Console
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

# Initialize the Rich console for high-quality terminal output
console = Console()


class StitchFormatter:
    """
    StitchFormatter: the visual side of the CLI.
    Responsible for rendering diffs, operation logs and execution reports.
    """

    def __init__(self, output: Console = None):
        self.console = output or console

    def display_diff(self, original_text: str, edited_text: str, file_name: str):
        """Renders a colorized unified diff of the proposed edit."""
        if edited_text is None:
            return

        diff_list = list(difflib.unified_diff(
            original_text.splitlines(),
            edited_text.splitlines(),
            fromfile=f"a/{file_name}",
            tofile=f"b/{file_name}",
            lineterm=""
        ))

        if not diff_list:
            self.console.print(f"[dim]No changes for {file_name}.[/dim]")
            return

        syntax = Syntax("\n".join(diff_list), "diff", theme="monokai", line_numbers=True)
        self.console.print(Panel(
            syntax,
            title=f"Proposed Edit: {file_name}",
            border_style="green"
        ))

    def show_logs(self, logs: List[str]):
        """One line per operation the pipeline ran."""
        for log in logs:
            self.console.print(f"[bold cyan]•[/bold cyan] {log}")

    def show_renames(self, actual_refs: Dict[str, str]):
        # Only renames that had to be uniqued are worth pointing out
        for requested, actual in actual_refs.items():
            if requested != actual:
                self.console.print(
                    f"[bold yellow]Ref '{requested}' was taken; used '{actual}' instead.[/bold yellow]")

    def print_final_table(self, reports: List[Dict[str, Any]]):
        """Builds the summary table shown at the end of a run."""
        table = Table(title="Stitch Execution Report", show_lines=True, header_style="bold magenta")
        table.add_column("File Path", style="cyan")
        table.add_column("Status", style="bold")
        table.add_column("Details")
        table.add_column("Result", justify="center")

        for r in reports:
            success = r.get("success", False)
            color = "green" if success else "red"
            details = r.get("error") or r.get("write_error") or r.get("validation_message") or ""
            if r.get("backup_created"):
                details = f"{details}\nbackup: {r['backup_created']}".strip()
            table.add_row(
                str(r.get("file_path")),
                f"[{color}]{r.get('status', 'FAILED')}[/{color}]",
                details,
                "✅" if success else "❌"
            )

        self.console.print(table)

    def print_summary(self, summary: Dict[str, Any]):
        self.console.print(Panel(
            f"[bold white]Summary Report[/bold white]\n"
            f"════════════════════════════════════════\n"
            f"Total Files:     {summary['total_files']}\n"
            f"Success:         [green]{summary['successful']}[/green]\n"
            f"Written:         {summary['written_to_disk']}\n"
            f"System Errors:   [red]{summary['system_errors']}[/red]\n"
            f"Backups Created: {summary['backups_created']}",
            border_style="dim"
        ))
