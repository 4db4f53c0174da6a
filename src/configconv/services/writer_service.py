"""
Writer: ConversionOutput (in memory) -> filesystem.

Moi file duoc xu ly tuan tu: quyet dinh (skip / merge / ghi) -> backup (hoac ghi nhan file moi) -> ghi.
"""

import json
from pathlib import Path
from typing import Any, Optional, Set

from configconv import paths
from configconv.core.errors import UsageError
from configconv.core.types import MERGE_STRATEGIES, ConversionOutput, WriteResult
from configconv.services.backup_service import BackupSession
from configconv.utils import dump_json, load_jsonc, logger


def _shared_state_files() -> Set[str]:
    """Files the tools themselves also write; always merged, never replaced."""
    return {str(paths.cc_user_state_path()), str(paths.cursor_cli_config_path())}


def deep_merge(existing: Any, incoming: Any, force: bool = False) -> Any:
    """
    Merge incoming vao existing.

    dict -> de quy; list -> union (giu thu tu, bo trung); scalar xung dot -> existing thang,
    tru khi force.
    """
    if isinstance(existing, dict) and isinstance(incoming, dict):
        merged = dict(existing)
        for key, value in incoming.items():
            merged[key] = deep_merge(merged[key], value, force) if key in merged else value
        return merged
    if isinstance(existing, list) and isinstance(incoming, list):
        merged_list = list(existing)
        for item in incoming:
            if item not in merged_list:
                merged_list.append(item)
        return merged_list
    return incoming if force else existing


def _merge_json(path: Path, content: str, force: bool) -> str:
    try:
        existing = load_jsonc(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError:
        logger.warning("Existing %s is not valid JSON, overwriting", path)
        return content
    incoming = json.loads(content)
    if not isinstance(existing, dict) or not isinstance(incoming, dict):
        return content
    return dump_json(deep_merge(existing, incoming, force))


def universal_write(
    output: ConversionOutput,
    dry_run: bool = False,
    backup: bool = True,
    force: bool = False,
    merge_strategy: str = "preserve-existing",
    backup_session: Optional[BackupSession] = None,
) -> WriteResult:
    """
    Ghi cac file cua output len dia.

    Args:
        output: Ket qua cua converter
        dry_run: Chi quyet dinh, khong ghi gi ca
        backup: Backup file truoc khi ghi de
        force: preserve-existing -> ghi de; merge -> gia tri moi thang khi xung dot
        merge_strategy: "preserve-existing" | "overwrite" | "merge"
        backup_session: Session backup dung chung (mac dinh tao moi cho lan ghi nay)

    Returns:
        WriteResult; loi ghi tung file nam trong errors
    """
    if merge_strategy not in MERGE_STRATEGIES:
        raise UsageError(f"Unknown merge strategy '{merge_strategy}'. Supported: {', '.join(MERGE_STRATEGIES)}")

    result = WriteResult()
    session = backup_session
    if session is None and backup and not dry_run:
        session = BackupSession(
            description=f"{output.source_format.value} -> {output.target_format.value}"
        )
    shared = _shared_state_files()

    for path_str, content in output.files.items():
        path = Path(path_str)
        strategy = "merge" if path_str in shared else merge_strategy
        try:
            exists = path.exists()
            new_content = content
            if exists:
                if strategy == "preserve-existing" and not force:
                    logger.debug("Keeping existing %s", path)
                    result.files_skipped.append(path_str)
                    continue
                if strategy == "merge" and path.suffix == ".json":
                    new_content = _merge_json(path, content, force)
                if path.read_text(encoding="utf-8") == new_content:
                    logger.debug("Unchanged %s", path)
                    result.files_skipped.append(path_str)
                    continue

            if dry_run:
                result.files_written.append(path_str)
                continue

            if session is not None:
                if exists:
                    session.backup_file(path)
                else:
                    session.record_created(path)
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(new_content, encoding="utf-8")
            result.files_written.append(path_str)
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Failed to write %s: %s", path, e)
            result.errors.append(f"{path}: {e}")

    if session is not None and session.started:
        result.backup_dir = str(session.path)
    return result
