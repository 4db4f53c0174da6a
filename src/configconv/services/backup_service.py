"""
Backup / restore service: backup cac file truoc khi ghi de, restore lai khi can.

Backup luu tai ~/.config/configconv/backups/<id>/
  - manifest.json: metadata + danh sach file (original -> backup) + new_files
  - <path tuong doi so voi filesystem anchor>: ban copy cua tung file
"""

import json
import shutil
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from configconv.config import CONFIG_DIR
from configconv.core.errors import BackupError
from configconv.core.types import BackupInfo, RestoreResult
from configconv.utils import logger, utc_now_iso

BACKUPS_DIR = CONFIG_DIR / "backups"

MANIFEST_NAME = "manifest.json"


def _new_backup_id() -> str:
    return datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%S%fZ")


def _load_manifest(backup_path: Path) -> Optional[Dict[str, Any]]:
    """Doc manifest.json. Tra ve None neu loi."""
    manifest_file = backup_path / MANIFEST_NAME
    if not manifest_file.exists():
        return None
    try:
        data = json.loads(manifest_file.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError):
        return None
    return data if isinstance(data, dict) else None


class BackupSession:
    """
    Backup cua mot lan chay migrate.

    Thu muc backup chi duoc tao khi file dau tien thuc su bi ghi de,
    nen mot lan chay khong ghi de gi se khong de lai backup rong.
    File moi do lan chay tao ra duoc ghi vao manifest (new_files) de restore xoa di.
    """

    def __init__(self, description: str = "", root: Optional[Path] = None):
        self.description = description
        self.root = root or BACKUPS_DIR
        self.id: Optional[str] = None
        self.path: Optional[Path] = None
        self.created: Optional[str] = None
        self.entries: List[Dict[str, str]] = []
        self.new_files: List[str] = []

    @property
    def started(self) -> bool:
        return self.path is not None

    def _ensure_dir(self) -> Path:
        if self.path is not None:
            return self.path
        backup_id = _new_backup_id()
        path = self.root / backup_id
        suffix = 1
        while path.exists():
            path = self.root / f"{backup_id}-{suffix}"
            suffix += 1
        path.mkdir(parents=True)
        self.id = path.name
        self.path = path
        self.created = utc_now_iso()
        logger.debug("Created backup directory %s", path)
        return path

    def _write_manifest(self) -> None:
        manifest = {
            "id": self.id,
            "created": self.created,
            "description": self.description,
            "files": self.entries,
            "new_files": self.new_files,
        }
        (self.path / MANIFEST_NAME).write_text(json.dumps(manifest, indent=2, ensure_ascii=False), encoding="utf-8")

    def backup_file(self, original: Path) -> Path:
        """
        Copy file sap bi ghi de vao thu muc backup.

        Manifest duoc ghi lai sau moi file, nen backup van dung duoc
        neu lan chay bi dung giua chung.
        """
        original = Path(original).absolute()
        backup_dir = self._ensure_dir()
        relative = original.relative_to(original.anchor)
        dest = backup_dir / relative
        dest.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(original, dest)
        self.entries.append({"original": str(original), "backup": relative.as_posix()})
        self._write_manifest()
        return dest

    def record_created(self, path: Path) -> None:
        """
        Ghi nhan mot file chua ton tai truoc lan chay (khong copy gi).

        Chua co thu muc backup thi chi giu trong bo nho; manifest nhan danh sach
        nay khi file dau tien bi ghi de.
        """
        self.new_files.append(str(Path(path).absolute()))
        if self.started:
            self._write_manifest()


def _manifest_pairs(backup_dir: Path, manifest: Dict[str, Any]) -> List[Tuple[Path, Path]]:
    pairs = []
    for entry in manifest.get("files", []):
        if isinstance(entry, dict) and entry.get("original") and entry.get("backup"):
            pairs.append((backup_dir / entry["backup"], Path(entry["original"])))
    return pairs


def _scan_pairs(backup_dir: Path) -> List[Tuple[Path, Path]]:
    """Backup khong co manifest: moi file nam o path tuong doi so voi anchor."""
    anchor = Path(backup_dir.absolute().anchor)
    pairs = []
    for item in sorted(backup_dir.rglob("*")):
        if item.is_file() and item.name != MANIFEST_NAME:
            pairs.append((item, anchor / item.relative_to(backup_dir)))
    return pairs


def restore(backup_dir: Union[str, Path]) -> RestoreResult:
    """
    Copy moi file trong backup ve vi tri goc (ghi de vo dieu kien),
    roi xoa cac file ma lan chay do moi tao ra (manifest new_files).

    Thu muc hoac file backup bi thieu duoc ghi vao errors, khong raise.
    """
    backup_dir = Path(backup_dir)
    result = RestoreResult()
    if not backup_dir.is_dir():
        result.errors.append(f"Backup directory not found: {backup_dir}")
        return result

    manifest = _load_manifest(backup_dir)
    pairs = _manifest_pairs(backup_dir, manifest) if manifest else _scan_pairs(backup_dir)

    for src, dest in pairs:
        if not src.is_file():
            result.errors.append(f"Backup file missing: {src}")
            continue
        try:
            dest.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(src, dest)
        except OSError as e:
            logger.warning("Failed to restore %s: %s", dest, e)
            result.errors.append(f"{dest}: {e}")
            continue
        result.restored.append(str(dest))

    for created in (manifest or {}).get("new_files", []):
        path = Path(created)
        if not path.is_file():
            continue
        try:
            path.unlink()
        except OSError as e:
            logger.warning("Failed to remove %s: %s", path, e)
            result.errors.append(f"{path}: {e}")
            continue
        result.removed.append(str(path))
    return result


def list_backups() -> List[BackupInfo]:
    """
    Liet ke tat ca backup, moi nhat truoc.

    Returns:
        List BackupInfo, newest first
    """
    if not BACKUPS_DIR.exists():
        return []
    backups: List[BackupInfo] = []
    for item in BACKUPS_DIR.iterdir():
        if not item.is_dir():
            continue
        manifest = _load_manifest(item) or {}
        backups.append(
            BackupInfo(
                id=item.name,
                path=item,
                created=str(manifest.get("created", item.name)),
                description=str(manifest.get("description", "")),
                files=list(manifest.get("files", [])),
                new_files=[str(p) for p in manifest.get("new_files", [])],
            )
        )
    backups.sort(key=lambda b: b.id, reverse=True)
    return backups


def resolve_backup(ref: Optional[str] = None) -> Path:
    """
    'latest' / None -> backup moi nhat; id -> BACKUPS_DIR/<id>; duong dan -> chinh no.

    Raises:
        BackupError: Khong co backup nao, hoac ref khong ton tai
    """
    if not ref or ref == "latest":
        backups = list_backups()
        if not backups:
            raise BackupError(f"No backups found in {BACKUPS_DIR}")
        return backups[0].path

    candidate = Path(ref).expanduser()
    if candidate.is_dir():
        return candidate
    by_id = BACKUPS_DIR / ref
    if by_id.is_dir():
        return by_id
    raise BackupError(f"Backup '{ref}' not found")


def delete_backup(backup_id: str) -> Path:
    """
    Xoa mot backup theo id. Chi xoa thu muc nam truc tiep trong BACKUPS_DIR.

    Raises:
        BackupError: id khong ton tai
    """
    target = BACKUPS_DIR / backup_id
    if not backup_id or target.parent != BACKUPS_DIR or not target.is_dir():
        raise BackupError(f"Backup '{backup_id}' not found")
    shutil.rmtree(target)
    logger.debug("Deleted backup %s", target)
    return target
