"""
Business logic cho cac lenh 'configconv scan / plan / migrate / diff'.

Xu ly: 1) Scan format nguon (va dich, voi diff)
       2) Chuyen sang canonical
       3) Convert sang format dich
       4) Ghi file (backup truoc khi ghi de) va import history
"""

import asyncio
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from configconv.canonical import to_canonical
from configconv.config import Settings
from configconv.converters import ConvertOptions, universal_convert
from configconv.core.errors import UsageError
from configconv.core.types import (
    AgentFormat,
    CanonicalScanResult,
    ConversionOutput,
    DiffSummary,
    ValidationResult,
    WriteResult,
)
from configconv.scanners import ScanOptions, scan, scan_format
from configconv.services.backup_service import BackupSession
from configconv.services.diff_service import compare_canonical
from configconv.services.validate_service import validate_output
from configconv.services.writer_service import universal_write
from configconv.utils import logger


@dataclass
class MigrationResult:
    source: AgentFormat
    target: AgentFormat
    dry_run: bool
    output: ConversionOutput
    write: WriteResult = field(default_factory=WriteResult)
    # Checks of the emitted files, run before anything is written
    validation: ValidationResult = field(default_factory=ValidationResult)
    history_files: List[str] = field(default_factory=list)
    prompt_history_added: int = 0

    @property
    def ok(self) -> bool:
        return self.output.report.ok and self.validation.valid and not self.write.errors

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "from": self.source.value,
            "to": self.target.value,
            "dryRun": self.dry_run,
            "ok": self.ok,
        }
        data.update(self.write.to_dict())
        data["report"] = self.output.report.to_dict()
        data["validation"] = self.validation.to_dict()
        if self.output.history is not None:
            data["history"] = {
                "sessions": len(self.output.history.sessions),
                "filesWritten": len(self.history_files),
                "promptHistoryAdded": self.prompt_history_added,
            }
        return data


def _convert_options(settings: Optional[Settings]) -> ConvertOptions:
    settings = settings or Settings()
    return ConvertOptions(
        model_overrides=dict(settings.model_overrides),
        default_model=settings.default_model,
        default_small_model=settings.default_small_model,
    )


def _overrides(settings: Optional[Settings]) -> Dict[str, str]:
    return dict(settings.model_overrides) if settings else {}


def run_scan(fmt: AgentFormat, options: ScanOptions, settings: Optional[Settings] = None) -> CanonicalScanResult:
    """Scan mot format va tra ve canonical model. Raises ScanError."""
    return to_canonical(scan(fmt, options), _overrides(settings))


def prepare_migration(
    source: AgentFormat,
    target: AgentFormat,
    options: ScanOptions,
    settings: Optional[Settings] = None,
) -> ConversionOutput:
    """
    Scan + canonical + convert. Chua ghi gi ca.

    Raises:
        UsageError: source == target
        ScanError: Loi I/O nghiem trong khi scan
    """
    if source is target:
        raise UsageError(f"Source and target formats are the same ({source.value})")
    canonical = run_scan(source, options, settings)
    output = universal_convert(canonical, target, _convert_options(settings))
    # Scan-level warnings (malformed files) belong in the same report
    output.report.warnings[:0] = canonical.warnings
    return output


def apply_migration(
    output: ConversionOutput,
    dry_run: bool = False,
    force: bool = False,
    backup: bool = True,
    merge_strategy: str = "preserve-existing",
) -> MigrationResult:
    """
    Kiem tra output, ghi ra dia (hoac chi quyet dinh neu dry_run), roi import history neu co.

    Loi kiem tra chi duoc bao cao (result.validation), khong chan viec ghi.
    """
    # Lazy import: history pulls in sqlite3
    from configconv.history import write_history_sessions, write_prompt_history

    validation = validate_output(output)
    for issue in validation.errors:
        logger.warning("Output check failed for %s: %s", issue.path, issue.message)

    session = None
    if backup and not dry_run:
        session = BackupSession(description=f"{output.source_format.value} -> {output.target_format.value}")

    write = universal_write(
        output,
        dry_run=dry_run,
        backup=backup,
        force=force,
        merge_strategy=merge_strategy,
        backup_session=session,
    )
    result = MigrationResult(
        source=output.source_format,
        target=output.target_format,
        dry_run=dry_run,
        output=output,
        write=write,
        validation=validation,
    )

    if output.history is not None:
        result.history_files = write_history_sessions(output.history.sessions, dry_run=dry_run)
        try:
            result.prompt_history_added = write_prompt_history(output.history.prompt_history, dry_run=dry_run)
        except OSError as e:
            logger.warning("Failed to write prompt history: %s", e)
            write.errors.append(f"prompt history: {e}")
    return result


def run_migrate(
    source: AgentFormat,
    target: AgentFormat,
    options: ScanOptions,
    dry_run: bool = False,
    force: bool = False,
    backup: bool = True,
    merge_strategy: str = "preserve-existing",
    settings: Optional[Settings] = None,
) -> MigrationResult:
    output = prepare_migration(source, target, options, settings)
    return apply_migration(output, dry_run=dry_run, force=force, backup=backup, merge_strategy=merge_strategy)


def run_plan(
    source: AgentFormat,
    target: AgentFormat,
    options: ScanOptions,
    force: bool = False,
    merge_strategy: str = "preserve-existing",
    settings: Optional[Settings] = None,
) -> MigrationResult:
    """migrate voi dry_run=True."""
    return run_migrate(
        source,
        target,
        options,
        dry_run=True,
        force=force,
        backup=False,
        merge_strategy=merge_strategy,
        settings=settings,
    )


async def _scan_pair(source: AgentFormat, target: AgentFormat, options: ScanOptions):
    return await asyncio.gather(scan_format(source, options), scan_format(target, options))


def run_diff(
    source: AgentFormat,
    target: AgentFormat,
    options: ScanOptions,
    settings: Optional[Settings] = None,
) -> DiffSummary:
    """Scan ca hai format song song va so sanh canonical cua chung."""
    if source is target:
        raise UsageError(f"Source and target formats are the same ({source.value})")
    source_scan, target_scan = asyncio.run(_scan_pair(source, target, options))
    overrides = _overrides(settings)
    return compare_canonical(to_canonical(source_scan, overrides), to_canonical(target_scan, overrides))
