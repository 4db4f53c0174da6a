"""
Services: business logic tach khoi CLI.

Moi service xu ly mot flow chinh: migrate, write, backup/restore, diff, validate.
"""

from configconv.services.backup_service import BackupSession, list_backups, resolve_backup, restore
from configconv.services.diff_service import compare_canonical
from configconv.services.migrate_service import (
    MigrationResult,
    apply_migration,
    prepare_migration,
    run_diff,
    run_migrate,
    run_plan,
    run_scan,
)
from configconv.services.validate_service import validate_canonical, validate_format, validate_output
from configconv.services.writer_service import deep_merge, universal_write

__all__ = [
    "BackupSession",
    "MigrationResult",
    "apply_migration",
    "compare_canonical",
    "deep_merge",
    "list_backups",
    "prepare_migration",
    "resolve_backup",
    "restore",
    "run_diff",
    "run_migrate",
    "run_plan",
    "run_scan",
    "universal_write",
    "validate_canonical",
    "validate_format",
    "validate_output",
]
