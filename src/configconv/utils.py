import asyncio
import json
import logging
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Awaitable, Dict, Iterable, List, Optional, Tuple

import yaml

from configconv.core.errors import ScanError, UsageError

# Configure module logger
logger = logging.getLogger("configconv")


# ANSI colors
class Colors:
    HEADER = "\033[95m"
    BLUE = "\033[94m"
    CYAN = "\033[96m"
    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    RED = "\033[91m"
    BOLD = "\033[1m"
    ENDC = "\033[0m"


# =============================================================================
# FRONTMATTER
# =============================================================================

_RE_FRONTMATTER = re.compile(r"^---\r?\n(.*?)\r?\n---\r?\n?(.*)$", re.DOTALL)


def _coerce_scalar(raw: str) -> Any:
    value = raw.strip()
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
        return value[1:-1]
    lowered = value.lower()
    if lowered in ("", "null", "~"):
        return None
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    try:
        return int(value)
    except ValueError:
        pass
    try:
        return float(value)
    except ValueError:
        return value


def _parse_frontmatter_lines(text: str) -> Dict[str, Any]:
    """Fallback khi YAML loi: doc tung dong `key: value`."""
    data: Dict[str, Any] = {}
    for line in text.splitlines():
        if not line.strip() or line.lstrip().startswith("#") or line.startswith((" ", "\t")):
            continue
        key, sep, value = line.partition(":")
        if not sep:
            continue
        data[key.strip()] = _coerce_scalar(value)
    return data


def parse_frontmatter(content: str) -> Tuple[Dict[str, Any], str]:
    """
    Tach YAML frontmatter va body cua mot file markdown.

    Returns:
        (frontmatter dict, stripped body). Neu khong co frontmatter: ({}, content.strip())
    """
    match = _RE_FRONTMATTER.match(content)
    if not match:
        return {}, content.strip()

    raw_fm, body = match.group(1), match.group(2)
    try:
        data = yaml.safe_load(raw_fm)
    except yaml.YAMLError:
        logger.debug("Invalid YAML frontmatter, using line parser")
        data = _parse_frontmatter_lines(raw_fm)
    if not isinstance(data, dict):
        data = {}
    return data, body.strip()


def serialize_frontmatter(frontmatter: Dict[str, Any], body: str = "") -> str:
    if not frontmatter:
        return f"{body}\n" if body else ""
    dumped = yaml.dump(
        frontmatter,
        default_flow_style=False,
        allow_unicode=True,
        sort_keys=False,
    )
    text = f"---\n{dumped}---\n"
    if body:
        text += f"\n{body}\n"
    return text


def extract_body(content: str) -> str:
    """Body cua file, bo qua frontmatter neu co."""
    match = _RE_FRONTMATTER.match(content)
    if match:
        return match.group(2).strip()
    return content.strip()


def sanitize_name(name: str) -> str:
    """'My Rule.mdc' -> 'my-rule'"""
    stem = re.sub(r"\.(md|mdc|txt)$", "", name)
    return re.sub(r"[^a-zA-Z0-9_-]", "-", stem).lower()


# =============================================================================
# JSON / JSONC
# =============================================================================


def strip_jsonc_comments(text: str) -> str:
    """Remove // and /* */ comments and trailing commas, leaving string literals intact."""
    out: List[str] = []
    i = 0
    n = len(text)
    in_string = False
    while i < n:
        ch = text[i]
        if in_string:
            out.append(ch)
            if ch == "\\" and i + 1 < n:
                out.append(text[i + 1])
                i += 2
                continue
            if ch == '"':
                in_string = False
            i += 1
            continue
        if ch == '"':
            in_string = True
            out.append(ch)
            i += 1
        elif text.startswith("//", i):
            end = text.find("\n", i)
            i = n if end == -1 else end
        elif text.startswith("/*", i):
            end = text.find("*/", i + 2)
            i = n if end == -1 else end + 2
        else:
            out.append(ch)
            i += 1
    return re.sub(r",(\s*[}\]])", r"\1", "".join(out))


def load_jsonc(text: str) -> Any:
    """json.loads cho JSONC. Raise json.JSONDecodeError neu van sai cu phap."""
    return json.loads(strip_jsonc_comments(text))


def dump_json(data: Any) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False) + "\n"


# =============================================================================
# FILESYSTEM
# =============================================================================


def read_text(path: Path) -> Optional[str]:
    """
    Doc file text. Tra ve None neu file khong ton tai.

    Loi I/O khac (permission denied, disk error) duoc raise thanh ScanError.
    """
    try:
        return path.read_text(encoding="utf-8")
    except (FileNotFoundError, NotADirectoryError, IsADirectoryError):
        return None
    except UnicodeDecodeError:
        logger.warning("Skipping non UTF-8 file: %s", path)
        return None
    except OSError as e:
        raise ScanError(path, e) from e


def read_json(path: Path, warnings: Optional[List[str]] = None) -> Optional[Dict[str, Any]]:
    """Doc JSON/JSONC. File thieu -> None; file hong -> None + warning."""
    content = read_text(path)
    if content is None:
        return None
    try:
        data = load_jsonc(content)
    except json.JSONDecodeError as e:
        msg = f"Malformed JSON skipped: {path} ({e.msg})"
        logger.warning(msg)
        if warnings is not None:
            warnings.append(msg)
        return None
    if not isinstance(data, dict):
        if warnings is not None:
            warnings.append(f"Unexpected JSON shape skipped: {path}")
        return None
    return data


def list_dir(path: Path) -> List[Path]:
    """Sorted children of a directory; missing directory -> []."""
    try:
        return sorted(path.iterdir())
    except (FileNotFoundError, NotADirectoryError):
        return []
    except OSError as e:
        raise ScanError(path, e) from e


def glob_markdown(path: Path, recursive: bool = False, suffixes: Iterable[str] = (".md",)) -> List[Path]:
    if not path.is_dir():
        return []
    pattern = "**/*" if recursive else "*"
    try:
        return sorted(p for p in path.glob(pattern) if p.is_file() and p.suffix in tuple(suffixes))
    except OSError as e:
        raise ScanError(path, e) from e


# =============================================================================
# ASYNC FAN-OUT
# =============================================================================


async def settle_all(calls: Iterable[Awaitable[Any]], warnings: Optional[List[str]] = None) -> List[Any]:
    """
    Launch every call, wait for all of them to settle, keep the successes.

    Parse failures of one sibling are logged and recorded as warnings.
    A fatal ScanError is re-raised only after every sibling has finished.
    """
    results = await asyncio.gather(*calls, return_exceptions=True)
    kept: List[Any] = []
    fatal: Optional[BaseException] = None
    for result in results:
        if isinstance(result, ScanError):
            fatal = fatal or result
            continue
        if isinstance(result, (ValueError, TypeError, KeyError, yaml.YAMLError)):
            msg = f"Skipped unreadable entry: {result}"
            logger.warning(msg)
            if warnings is not None:
                warnings.append(msg)
            continue
        if isinstance(result, BaseException):
            raise result
        if result is not None:
            kept.append(result)
    if fatal is not None:
        raise fatal
    return kept


# =============================================================================
# TIME
# =============================================================================


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def parse_since(value: Optional[str]) -> Optional[datetime]:
    """Parse --since (ISO 8601). Naive timestamps are treated as UTC."""
    if not value:
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError as e:
        raise UsageError(f"Invalid --since timestamp '{value}': expected ISO 8601") from e
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def to_datetime(value: Any) -> Optional[datetime]:
    """Epoch millis hoac ISO string -> aware datetime. Gia tri la -> None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    if isinstance(value, str):
        try:
            return parse_since(value)
        except UsageError:
            return None
    return None
