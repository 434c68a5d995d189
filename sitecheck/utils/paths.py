"""
Path helpers shared by the scanner CLI and the HTTP layer.
"""
import os
import re
from typing import List, Optional, Union

WINDOWS_ABSOLUTE = re.compile(r"^[A-Za-z]:[\\/]|^\\\\")

_DIGITS = re.compile(r"(\d+)")


def natural_key(name: str) -> List[Union[int, str]]:
    """Case-insensitive, numeric-aware sort key: Site2 sorts before Site10."""
    return [int(part) if part.isdigit() else part.casefold() for part in _DIGITS.split(name)]


def is_windows_path(path: str) -> bool:
    return bool(WINDOWS_ABSOLUTE.match(path or ""))


def normalize_root(path: str) -> str:
    return os.path.normpath(os.path.abspath(os.path.expanduser(path)))


def hosted_fallback_root(base_path: str, subpath: str) -> Optional[str]:
    """The folder a hosted deployment scans instead of an unreachable drive path."""
    candidate = normalize_root(os.path.join(base_path, subpath))
    return candidate if os.path.isdir(candidate) else None


def is_within(base_dir: str, path: str) -> bool:
    base = os.path.realpath(base_dir)
    target = os.path.realpath(path)
    return target == base or target.startswith(base.rstrip(os.sep) + os.sep)


def safe_join(base_dir: str, *parts: str) -> Optional[str]:
    """Join `parts` under `base_dir`, or None when the result escapes it."""
    joined = os.path.normpath(os.path.join(base_dir, *parts))
    return joined if is_within(base_dir, joined) else None
