"""
CLI entry point: thin dispatcher only.

Parse args -> goi service -> in ket qua.
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from configconv.core.errors import ConfigConvError, UsageError
from configconv.core.types import MERGE_STRATEGIES, AgentFormat
from configconv.utils import Colors


def main():
    try:
        _main()
    except KeyboardInterrupt:
        print(f"\n{Colors.YELLOW}Cancelled.{Colors.ENDC}")
        sys.exit(130)


def _format_arg(value: str) -> AgentFormat:
    try:
        return AgentFormat.parse(value)
    except UsageError as e:
        raise argparse.ArgumentTypeError(str(e))


def _bool_arg(value: str) -> bool:
    key = value.strip().lower()
    if key in ("1", "true", "yes", "on"):
        return True
    if key in ("0", "false", "no", "off"):
        return False
    raise argparse.ArgumentTypeError(f"Expected a boolean, got '{value}'")


def _add_scope_args(p: argparse.ArgumentParser, history: bool = True) -> None:
    p.add_argument("--project", "-p", default=None, help="Project directory")
    p.add_argument("--global", dest="global_scope", action="store_true", help="Also scan the global scope")
    if history:
        p.add_argument("--include-history", action="store_true", help="Include chat history")
        p.add_argument("--since", default=None, metavar="ISO", help="Only history after this timestamp")


def _add_pair_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--from", dest="source", type=_format_arg, required=True, help="Source format")
    p.add_argument("--to", dest="target", type=_format_arg, required=True, help="Target format")


def _add_write_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--force", "-f", action="store_true", help="Overwrite existing files / values")
    p.add_argument("--merge-strategy", choices=MERGE_STRATEGIES, default=None, help="How to treat existing files")


def _main():
    parser = argparse.ArgumentParser(
        prog="configconv",
        description="configconv - Agent configuration converter (Claude Code, OpenCode, Cursor)",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command", help="Command")

    # --- scan ---
    p_scan = sub.add_parser("scan", help="Scan one format and print its canonical model")
    p_scan.add_argument("--format", dest="fmt", type=_format_arg, required=True, help="Format to scan")
    _add_scope_args(p_scan)
    p_scan.add_argument("--json", action="store_true", help="Output as JSON")

    # --- plan ---
    p_plan = sub.add_parser("plan", help="Show what migrate would do, without writing")
    _add_pair_args(p_plan)
    _add_scope_args(p_plan)
    _add_write_args(p_plan)
    p_plan.add_argument("--json", action="store_true", help="Output as JSON")

    # --- migrate ---
    p_migrate = sub.add_parser("migrate", help="Convert and write configuration")
    _add_pair_args(p_migrate)
    _add_scope_args(p_migrate)
    _add_write_args(p_migrate)
    p_migrate.add_argument("--dry-run", action="store_true", help="Decide everything, write nothing")
    p_migrate.add_argument(
        "--backup", type=_bool_arg, nargs="?", const=True, default=None, metavar="BOOL",
        help="Back up files before overwriting (default: true)",
    )
    p_migrate.add_argument("--json", action="store_true", help="Output as JSON")
    p_migrate.add_argument("--yes", "-y", action="store_true", help="Skip confirmation")

    # --- diff ---
    p_diff = sub.add_parser("diff", help="Compare two formats by name")
    _add_pair_args(p_diff)
    _add_scope_args(p_diff, history=False)
    p_diff.add_argument("--json", action="store_true", help="Output as JSON")

    # --- validate ---
    p_validate = sub.add_parser("validate", help="Check a format parses into a valid model")
    p_validate.add_argument("--format", dest="fmt", type=_format_arg, required=True, help="Format to validate")
    _add_scope_args(p_validate, history=False)
    p_validate.add_argument("--json", action="store_true", help="Output as JSON")

    # --- restore ---
    p_restore = sub.add_parser("restore", help="Restore files from a backup")
    p_restore.add_argument("backup", nargs="?", default=None, help="Backup id, path or 'latest'")
    p_restore.add_argument("--list", action="store_true", help="List backups")
    p_restore.add_argument("--delete", metavar="ID", default=None, help="Delete a backup by id")
    p_restore.add_argument("--json", action="store_true", help="Output as JSON")

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        if args.command == "scan":
            _handle_scan(args)
        elif args.command == "plan":
            _handle_migrate(args, plan=True)
        elif args.command == "migrate":
            _handle_migrate(args, plan=False)
        elif args.command == "diff":
            _handle_diff(args)
        elif args.command == "validate":
            _handle_validate(args)
        elif args.command == "restore":
            _handle_restore(args)
        else:
            parser.print_help()
    except ConfigConvError as e:
        print(f"{Colors.RED}Error: {e}{Colors.ENDC}", file=sys.stderr)
        sys.exit(1)


# =============================================================================
# HELPERS
# =============================================================================


def _scan_options(args):
    from configconv.scanners import ScanOptions
    from configconv.utils import parse_since

    project = getattr(args, "project", None)
    return ScanOptions(
        global_scope=getattr(args, "global_scope", False),
        project=Path(project).expanduser().resolve() if project else None,
        include_history=getattr(args, "include_history", False),
        since=parse_since(getattr(args, "since", None)),
    )


def _print_json(data) -> None:
    print(json.dumps(data, indent=2, default=str, ensure_ascii=False))


def _print_report(report) -> None:
    if report.converted:
        print(f"{Colors.GREEN}Converted ({len(report.converted)}):{Colors.ENDC}")
        for item in report.converted:
            details = f" ({item.details})" if item.details else ""
            print(f"  [{item.category}] {item.source} -> {item.target}{details}")
    if report.skipped:
        print(f"\n{Colors.YELLOW}Skipped ({len(report.skipped)}):{Colors.ENDC}")
        for item in report.skipped:
            details = f": {item.details}" if item.details else ""
            print(f"  [{item.category}] {item.source}{details}")
    if report.warnings:
        print(f"\n{Colors.YELLOW}Warnings:{Colors.ENDC}")
        for w in report.warnings:
            print(f"  - {w}")
    if report.manual_actions:
        print(f"\n{Colors.CYAN}Manual actions:{Colors.ENDC}")
        for action in report.manual_actions:
            print(f"  - {action}")
    if report.errors:
        print(f"\n{Colors.RED}Errors:{Colors.ENDC}")
        for err in report.errors:
            print(f"  - {err}")


def _print_scope(label: str, scope) -> None:
    print(f"  {Colors.BOLD}{label}{Colors.ENDC}")
    if scope.model:
        print(f"    model: {scope.model}")
    if scope.small_model:
        print(f"    small_model: {scope.small_model}")
    counts = [
        ("mcp", len(scope.mcp_servers)),
        ("agents", len(scope.agents)),
        ("commands", len(scope.commands)),
        ("skills", len(scope.skills)),
        ("rules", len(scope.rules)),
    ]
    print("    " + ", ".join(f"{name}: {n}" for name, n in counts))
    if scope.permissions:
        print(f"    permissions: {len(scope.permissions)} entries")


def _history_summary(history):
    if history is None:
        return None
    return {"sessions": history.total_sessions, "messages": history.total_messages}


# =============================================================================
# HANDLERS
# =============================================================================


def _handle_scan(args):
    from configconv.config import load_settings
    from configconv.services.migrate_service import run_scan

    canonical = run_scan(args.fmt, _scan_options(args), load_settings())

    if args.json:
        data = canonical.to_dict()
        history = _history_summary(canonical.history)
        if history is not None:
            data["history"] = history
        _print_json(data)
        return

    print(f"{Colors.HEADER}{args.fmt.display_name} configuration:{Colors.ENDC}\n")
    _print_scope("Global", canonical.global_config)
    for project in canonical.projects:
        _print_scope(project.path, project)
    history = _history_summary(canonical.history)
    if history is not None:
        print(f"\n  History: {history['sessions']} sessions, {history['messages']} messages")
    if canonical.warnings:
        print(f"\n{Colors.YELLOW}Warnings:{Colors.ENDC}")
        for w in canonical.warnings:
            print(f"  - {w}")


def _handle_migrate(args, plan: bool):
    from configconv.config import load_settings
    from configconv.services.migrate_service import apply_migration, prepare_migration

    settings = load_settings()
    dry_run = plan or getattr(args, "dry_run", False)
    backup = getattr(args, "backup", None)
    if backup is None:
        backup = settings.backup
    if plan:
        backup = False
    merge_strategy = args.merge_strategy or settings.merge_strategy

    output = prepare_migration(args.source, args.target, _scan_options(args), settings)

    interactive = not dry_run and not args.json and not getattr(args, "yes", False) and sys.stdin.isatty()
    if interactive:
        from configconv.tui import confirm_migration

        if not confirm_migration(output, merge_strategy, force=args.force):
            return

    result = apply_migration(
        output,
        dry_run=dry_run,
        force=args.force,
        backup=backup,
        merge_strategy=merge_strategy,
    )

    if args.json:
        _print_json(result.to_dict())
        return

    title = "Plan" if dry_run else "Migration"
    print(f"{Colors.HEADER}{title}: {args.source.display_name} -> {args.target.display_name}{Colors.ENDC}\n")
    _print_report(output.report)
    if not result.validation.valid:
        print(f"\n{Colors.RED}Output check failed:{Colors.ENDC}")
        for issue in result.validation.errors:
            print(f"  - {issue.path}: {issue.message}")

    write = result.write
    verb = "Would write" if dry_run else "Wrote"
    print(f"\n{Colors.GREEN}{verb} {len(write.files_written)} files.{Colors.ENDC}")
    for path in write.files_written:
        print(f"  + {path}")
    if write.files_skipped:
        print(f"{Colors.YELLOW}Unchanged or existing ({len(write.files_skipped)}):{Colors.ENDC}")
        for path in write.files_skipped:
            print(f"  = {path}")
    if output.history is not None:
        print(
            f"{Colors.GREEN}{verb} {len(output.history.sessions)} sessions "
            f"({len(result.history_files)} files, {result.prompt_history_added} prompts).{Colors.ENDC}"
        )
    if write.errors:
        print(f"\n{Colors.RED}Write errors:{Colors.ENDC}")
        for err in write.errors:
            print(f"  - {err}")
    if write.backup_dir:
        print(f"\n{Colors.CYAN}Backup: {write.backup_dir}{Colors.ENDC}")
        print("Run 'configconv restore' to undo.")


def _handle_diff(args):
    from configconv.config import load_settings
    from configconv.services.migrate_service import run_diff

    summary = run_diff(args.source, args.target, _scan_options(args), load_settings())

    if args.json:
        data = {"from": args.source.value, "to": args.target.value}
        data.update(summary.to_dict())
        _print_json(data)
        return

    def _show(title, color, entries):
        print(f"{color}{title} ({len(entries)}):{Colors.ENDC}")
        for e in entries:
            where = f" [{e.project}]" if e.project else ""
            print(f"  {e.category}: {e.key}{where}")

    _show(f"Only in {args.source.display_name}", Colors.YELLOW, summary.only_in_source)
    _show(f"Only in {args.target.display_name}", Colors.CYAN, summary.only_in_target)
    _show("In both", Colors.GREEN, summary.in_both)


def _handle_validate(args):
    from configconv.config import load_settings
    from configconv.services.validate_service import validate_format

    settings = load_settings()
    result = validate_format(args.fmt, _scan_options(args), settings.model_overrides)

    if args.json:
        data = {"format": args.fmt.value}
        data.update(result.to_dict())
        _print_json(data)
    else:
        for w in result.warnings:
            print(f"{Colors.YELLOW}warning: {w}{Colors.ENDC}")
        for issue in result.errors:
            print(f"{Colors.RED}{issue.path}: {issue.message}{Colors.ENDC}")
        if result.valid:
            print(f"{Colors.GREEN}{args.fmt.display_name} configuration is valid.{Colors.ENDC}")
        else:
            print(f"{Colors.RED}{len(result.errors)} error(s) found.{Colors.ENDC}")

    if not result.valid:
        sys.exit(1)


def _handle_restore(args):
    from configconv.services.backup_service import delete_backup, list_backups, resolve_backup, restore

    if args.list:
        backups = list_backups()
        if args.json:
            _print_json([
                {
                    "id": b.id,
                    "path": str(b.path),
                    "created": b.created,
                    "description": b.description,
                    "files": len(b.files),
                    "newFiles": len(b.new_files),
                }
                for b in backups
            ])
        elif not backups:
            print(f"{Colors.YELLOW}No backups found.{Colors.ENDC}")
        else:
            print(f"{Colors.HEADER}Backups:{Colors.ENDC}\n")
            for b in backups:
                print(f"  {Colors.BOLD}{b.id}{Colors.ENDC} - {b.description or '(no description)'}")
                print(f"    Created: {b.created}, {len(b.files)} files")
        return

    if args.delete:
        deleted = delete_backup(args.delete)
        if args.json:
            _print_json({"deleted": args.delete, "path": str(deleted)})
        else:
            print(f"{Colors.GREEN}Deleted backup {args.delete}.{Colors.ENDC}")
        return

    if args.backup is None and not args.json and sys.stdin.isatty():
        from configconv.tui import select_backup

        backups = list_backups()
        if not backups:
            resolve_backup(None)  # raises BackupError
        selected = select_backup(backups)
        if selected is None:
            return
        backup_dir = selected.path
    else:
        backup_dir = resolve_backup(args.backup)

    result = restore(backup_dir)

    if args.json:
        data = {"backup": str(backup_dir)}
        data.update(result.to_dict())
        _print_json(data)
    else:
        print(f"{Colors.GREEN}Restored {len(result.restored)} files from {backup_dir}.{Colors.ENDC}")
        for path in result.restored:
            print(f"  < {path}")
        if result.removed:
            print(f"{Colors.GREEN}Removed {len(result.removed)} files created by that run.{Colors.ENDC}")
            for path in result.removed:
                print(f"  - {path}")
        for err in result.errors:
            print(f"{Colors.RED}  {err}{Colors.ENDC}")


if __name__ == "__main__":
    main()
