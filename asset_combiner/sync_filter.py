"""Exclusion rules for file synchronisation scans."""

from __future__ import annotations

import os
import posixpath
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, Union

from asset_combiner.config_loader import get_files_config

DEFAULT_IGNORE = (".DS_Store", ".svn")


def _split_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        value = value.split(",")
    return [str(item).strip() for item in value if str(item).strip()]


class SyncFilter:
    """Reject version-control metadata, OS marker files and excluded folders.

    Paths are slash-separated and relative to the web root. Exclusions are
    configured relative to the upload directory.
    """

    def __init__(
        self,
        exclude: Iterable[str] = (),
        ignore: Iterable[str] = DEFAULT_IGNORE,
        upload_path: str = "files",
    ):
        self.ignore = frozenset(ignore)
        upload_path = upload_path.strip("/")
        self.exempt = frozenset(
            posixpath.join(upload_path, item.strip("/")) if upload_path else item.strip("/")
            for item in exclude
        )

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "SyncFilter":
        files_cfg = get_files_config(config)
        ignore = _split_list(files_cfg.get("ignore")) or DEFAULT_IGNORE
        return cls(
            exclude=_split_list(files_cfg.get("sync_exclude")),
            ignore=ignore,
            upload_path=str(files_cfg.get("upload_path", "files")),
        )

    def accept(self, path: str) -> bool:
        relpath = path.replace("\\", "/").strip("/")
        if posixpath.basename(relpath) in self.ignore:
            return False
        if relpath in self.exempt:
            return False
        return True


def walk(root: Union[str, Path], sync_filter: SyncFilter, start: str = "") -> Iterator[str]:
    """Yield accepted files below ``root/start`` as root-relative paths.

    Rejected directories are not descended into.
    """
    root = Path(root)
    base = root / start if start else root
    for dirpath, dirnames, filenames in os.walk(base):
        rel_dir = Path(dirpath).relative_to(root).as_posix()
        rel_dir = "" if rel_dir == "." else rel_dir
        dirnames[:] = sorted(d for d in dirnames if sync_filter.accept(posixpath.join(rel_dir, d)))
        for name in sorted(filenames):
            relpath = posixpath.join(rel_dir, name)
            if sync_filter.accept(relpath):
                yield relpath
