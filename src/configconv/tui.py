"""
TUI interactive cho configconv migrate / restore.

Chi chua cac prompt questionary; logic nam trong services.
"""

from typing import List, Optional

import questionary
from questionary import Separator, Style

from configconv.core.types import BackupInfo, ConversionOutput
from configconv.utils import Colors

# Cau hinh style cho Questionary
CUSTOM_STYLE = Style(
    [
        ("qmark", "fg:#00d4ff bold"),
        ("question", "bold"),
        ("answer", "fg:#00d4ff bold"),
        ("pointer", "fg:#00d4ff bold"),
        ("highlighted", "fg:#00d4ff bold bg:default"),
        ("selected", "fg:#00d4ff bold bg:default"),
    ]
)


def confirm_migration(output: ConversionOutput, merge_strategy: str, force: bool = False) -> bool:
    """
    Hien tom tat output va hoi xac nhan truoc khi ghi.

    Returns:
        True neu nguoi dung dong y, False neu huy
    """
    report = output.report
    print(f"\n  From:     {Colors.CYAN}{output.source_format.display_name}{Colors.ENDC}")
    print(f"  To:       {Colors.CYAN}{output.target_format.display_name}{Colors.ENDC}")
    print(f"  Files:    {Colors.CYAN}{len(output.files)}{Colors.ENDC}")
    print(f"  Strategy: {Colors.CYAN}{merge_strategy}{' (force)' if force else ''}{Colors.ENDC}")
    if report.skipped:
        print(f"  Skipped:  {Colors.YELLOW}{len(report.skipped)}{Colors.ENDC}")
    if report.manual_actions:
        print(f"  Manual:   {Colors.YELLOW}{len(report.manual_actions)}{Colors.ENDC}")
    if output.history is not None:
        print(f"  Sessions: {Colors.CYAN}{len(output.history.sessions)}{Colors.ENDC}")
    print()

    confirm = questionary.confirm("Proceed?", default=True, style=CUSTOM_STYLE).ask()
    if not confirm:
        print(f"{Colors.YELLOW}Cancelled.{Colors.ENDC}")
        return False
    return True


def select_backup(backups: List[BackupInfo]) -> Optional[BackupInfo]:
    """Chon mot backup de restore. Tra ve None neu huy."""
    if not backups:
        return None

    choices = []
    for b in backups:
        label = f"{b.id} ({len(b.files)} files)"
        if b.description:
            label += f" - {b.description}"
        choices.append(questionary.Choice(label, value=b))
    choices.append(Separator())
    choices.append(questionary.Choice("Cancel", value=None))

    selected = questionary.select("Select backup to restore:", choices=choices, style=CUSTOM_STYLE).ask()
    if selected is None:
        print(f"{Colors.YELLOW}Cancelled.{Colors.ENDC}")
        return None

    confirm = questionary.confirm(
        f"Overwrite {len(selected.files)} files and remove {len(selected.new_files)} new files "
        f"with backup {selected.id}?",
        default=False,
        style=CUSTOM_STYLE,
    ).ask()
    if not confirm:
        print(f"{Colors.YELLOW}Cancelled.{Colors.ENDC}")
        return None
    return selected
