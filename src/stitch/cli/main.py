#!/usr/bin/env python3
"""
STITCH CLI - Command Line Front End
-----------------------------------
Orchestrates:
1. Subcommand routing (apply / normalize / rename / check / regen-refs)
2. Safety gates (preview first, confirmation before writing)
3. Visual diffing (--diff)
4. Final report and summary

Author: Stitch Team
Date: 2026-10-18
"""

import sys
import logging
import argparse
from pathlib import Path
from typing import Any, Dict, List

from rich.console import Console
from rich.panel import Panel

from stitch.cli.formatter import StitchFormatter
from stitch.core.engine import EditEngine, load_script
from stitch.core.errors import ScriptError
from stitch.editing.rename import RENAME_PROFILES

VERSION = "0.1.0"

# Global console for consistent styling across the application
console = Console()


class StitchCLI:
    """
    CLI wrapper that translates user commands into engine actions.
    Every writing command previews first and asks before touching the file.
    """

    def __init__(self):
        self.parser = argparse.ArgumentParser(
            prog="stitch",
            description="Stitch - format-preserving editor for threat-model YAML",
            formatter_class=argparse.RawDescriptionHelpFormatter,
        )
        self.formatter = StitchFormatter(console)
        self._setup_args()

    @staticmethod
    def _add_write_flags(parser: argparse.ArgumentParser):
        parser.add_argument("--dry-run", action="store_true", help="Preview results without writing")
        parser.add_argument("--diff", action="store_true", help="Show a unified diff of the edit")
        parser.add_argument("-y", "--yes", action="store_true", help="Write without asking")
        parser.add_argument("--no-backup", action="store_true", help="Do not keep a .stitch.backup copy")
        parser.add_argument("--no-validate", action="store_true", help="Skip validation of the result")
        parser.add_argument("--strict", action="store_true", help="Treat dangling references as errors")

    def _setup_args(self):
        """Configures the command-line flags and subcommands."""
        self.parser.add_argument("--version", action="version", version=f"stitch v{VERSION}")
        self.parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
        subparsers = self.parser.add_subparsers(dest="command", metavar="Command")

        apply_parser = subparsers.add_parser("apply", help="Apply an edit script to a document")
        apply_parser.add_argument("path", help="Document to edit")
        apply_parser.add_argument("script", help="YAML or JSON list of operations")
        self._add_write_flags(apply_parser)

        normalize_parser = subparsers.add_parser("normalize", help="Fix blank-line layout only")
        normalize_parser.add_argument("path", help="Document to normalize")
        self._add_write_flags(normalize_parser)

        rename_parser = subparsers.add_parser("rename", help="Rename a ref and every reference to it")
        rename_parser.add_argument("path", help="Document to edit")
        rename_parser.add_argument("kind", choices=sorted(RENAME_PROFILES), help="Entity kind")
        rename_parser.add_argument("old", help="Current ref")
        rename_parser.add_argument("new", help="New ref")
        self._add_write_flags(rename_parser)

        regen_parser = subparsers.add_parser("regen-refs", help="Re-derive every ref from item names")
        regen_parser.add_argument("path", help="Document to edit")
        self._add_write_flags(regen_parser)

        check_parser = subparsers.add_parser("check", help="Validate a document (read-only)")
        check_parser.add_argument("path", help="Document to check")
        check_parser.add_argument("--strict", action="store_true", help="Treat dangling references as errors")

    def print_header(self, subtitle: str):
        console.print(Panel.fit(
            f"[bold cyan]Stitch v{VERSION}[/bold cyan]",
            title=f"[bold white]{subtitle}[/bold white]",
            border_style="cyan"
        ))

    def _operations_for(self, args: argparse.Namespace) -> List[Dict[str, Any]]:
        if args.command == "apply":
            return load_script(Path(args.script))
        if args.command == "normalize":
            return [{"op": "normalize"}]
        if args.command == "rename":
            return [{"op": "rename_ref", "kind": args.kind, "old": args.old, "new": args.new}]
        return [{"op": "regenerate_refs"}]

    def _confirm_action(self, args: argparse.Namespace) -> bool:
        """Safety gate: ensures the user wants the file rewritten."""
        if args.yes:
            return True
        choice = console.input("\n[bold yellow]Write changes to this file? (y/N): [/bold yellow]")
        return choice.strip().lower() == 'y'

    def _run_edit(self, args: argparse.Namespace) -> int:
        target = Path(args.path).resolve()
        if not target.is_file():
            console.print(f"[bold red]Error:[/bold red] Path '{args.path}' not found.")
            return 1

        try:
            operations = self._operations_for(args)
        except ScriptError as e:
            console.print(f"[bold red]Script error:[/bold red] {e}")
            return 1

        engine = EditEngine(str(target.parent), backup=not args.no_backup,
                            validate=not args.no_validate, strict=args.strict)
        report = engine.edit_file(target.name, operations, dry_run=True)

        if report.get("logs"):
            self.formatter.show_logs(report["logs"])
        self.formatter.show_renames(report.get("actual_refs", {}))
        if args.diff and report.get("edited_content") is not None:
            self.formatter.display_diff(report["original_content"], report["edited_content"], target.name)

        if (not args.dry_run and report.get("status") == "PREVIEW"
                and self._confirm_action(args)):
            report = engine.edit_file(target.name, operations, dry_run=False)
        elif not args.dry_run and report.get("status") == "PREVIEW":
            console.print("[bold red]Operation cancelled by user.[/bold red]")

        return self._render_final_report([report], engine)

    def _run_check(self, args: argparse.Namespace) -> int:
        target = Path(args.path).resolve()
        engine = EditEngine(str(target.parent), strict=args.strict)
        return self._render_final_report([engine.check_file(target.name)], engine)

    def _render_final_report(self, reports: List[Dict], engine: EditEngine) -> int:
        self.formatter.print_final_table(reports)
        self.formatter.print_summary(engine.generate_summary(reports))
        return 0 if all(r.get("success") for r in reports) else 1

    def run(self, argv: List[str] = None) -> int:
        """Primary routing entry point. Returns the process exit code."""
        args = self.parser.parse_args(argv)
        logging.basicConfig(
            level=logging.DEBUG if args.verbose else logging.WARNING,
            format="%(levelname)s %(name)s: %(message)s",
        )

        if args.command is None:
            self.print_header("Threat-Model Editor")
            self.parser.print_help()
            return 0
        if args.command == "check":
            self.print_header("Document Check")
            return self._run_check(args)

        self.print_header(f"stitch {args.command}")
        return self._run_edit(args)


def main():
    """Application entry point with interrupt handling."""
    try:
        sys.exit(StitchCLI().run())
    except KeyboardInterrupt:
        console.print("\n[bold red]Terminated by user.[/bold red]")
        sys.exit(1)


if __name__ == "__main__":
    main()
