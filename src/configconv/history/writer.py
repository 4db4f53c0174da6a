"""
Write converted sessions into OpenCode's flat-file storage.

    storage/
      project/<projectId>.json
      session/<projectId>/<sessionId>.json
      message/<sessionId>/<messageId>.json
      part/<messageId>/<partId>.json
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Set

from configconv import paths
from configconv.history.types import ConvertedSession
from configconv.utils import dump_json, list_dir, logger


def existing_session_ids(storage_dir: Path) -> Set[str]:
    ids: Set[str] = set()
    for project_dir in list_dir(storage_dir / "session"):
        for session_file in list_dir(project_dir):
            if session_file.suffix == ".json":
                ids.add(session_file.stem)
    return ids


def _session_files(session: ConvertedSession, storage_dir: Path) -> Dict[Path, str]:
    """All files of one session, in write order."""
    files: Dict[Path, str] = {}
    files[storage_dir / "session" / session.project_id / f"{session.id}.json"] = dump_json(session.session)
    for message in session.messages:
        files[storage_dir / "message" / session.id / f"{message.id}.json"] = dump_json(message.to_dict())
        for part in message.parts:
            data = part.to_dict(session.id)
            data["synthetic"] = False
            data["time"] = {"start": 0, "end": 0}
            files[storage_dir / "part" / message.id / f"{part.id}.json"] = dump_json(data)
    return files


def _write(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


def write_history_sessions(
    sessions: List[ConvertedSession],
    storage_dir: Optional[Path] = None,
    dry_run: bool = False,
) -> List[str]:
    """
    Ghi cac session vao storage cua OpenCode.

    Session da ton tai (trung id) bi bo qua. Loi ghi cua mot session chi duoc log,
    cac session con lai van tiep tuc.

    Returns:
        List cac file da ghi (hoac se ghi neu dry_run)
    """
    storage = storage_dir or paths.oc_storage_dir()
    existing = existing_session_ids(storage)
    written: List[str] = []
    known_projects: Set[str] = set()

    for session in sessions:
        if session.id in existing:
            logger.info("Session %s already imported, skipping", session.id)
            continue
        existing.add(session.id)

        files: Dict[Path, str] = {}
        project_file = storage / "project" / f"{session.project_id}.json"
        if session.project_id not in known_projects and not project_file.exists():
            created = session.session.get("time", {}).get("created", 0)
            files[project_file] = dump_json(
                {
                    "id": session.project_id,
                    "worktree": session.directory,
                    "vcs": "git",
                    "sandboxes": [],
                    "time": {"created": created, "updated": created},
                }
            )
        files.update(_session_files(session, storage))

        try:
            for path, content in files.items():
                if not dry_run:
                    _write(path, content)
                written.append(str(path))
        except OSError as e:
            logger.warning("Failed to write session %s: %s", session.id, e)
            continue
        known_projects.add(session.project_id)

    return written


def write_prompt_history(entries: List[Dict[str, Any]], path: Optional[Path] = None, dry_run: bool = False) -> int:
    """
    Append prompt history entries to OpenCode's prompt-history.jsonl.

    Entries whose input is already in the file are skipped.

    Returns:
        So entry da them (hoac se them neu dry_run)
    """
    target = path or paths.oc_prompt_history_path()
    seen: Set[str] = set()
    if target.exists():
        for line in target.read_text(encoding="utf-8").splitlines():
            try:
                row = json.loads(line)
            except json.JSONDecodeError:
                continue
            if isinstance(row, dict) and isinstance(row.get("input"), str):
                seen.add(row["input"])

    new_lines: List[str] = []
    for entry in entries:
        text = entry.get("input")
        if not isinstance(text, str) or text in seen:
            continue
        seen.add(text)
        new_lines.append(json.dumps(entry, ensure_ascii=False))

    if new_lines and not dry_run:
        target.parent.mkdir(parents=True, exist_ok=True)
        with target.open("a", encoding="utf-8") as f:
            f.write("\n".join(new_lines) + "\n")
    return len(new_lines)
