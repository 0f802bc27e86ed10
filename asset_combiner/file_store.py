"""File access relative to the web root."""

from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Iterable, List, Optional, Union

from loguru import logger


def _published_mode() -> int:
    """Mode a plain open() would give a new file under the current umask."""
    umask = os.umask(0)
    os.umask(umask)
    return 0o666 & ~umask


class FileStore:
    """Read sources and publish generated files below a fixed web root.

    Reads try the root first and then each fallback directory, so sources kept
    in the public directory resolve under the same logical path. Writes always
    land below the root.
    """

    def __init__(self, root: Union[str, Path], fallback_dirs: Iterable[Union[str, Path]] = ()):
        self.root = Path(root)
        self.fallback_dirs: List[Path] = [Path(d) for d in fallback_dirs]

    def _candidates(self, path: str) -> List[Path]:
        relative = path.lstrip("/")
        return [self.root / relative] + [d / relative for d in self.fallback_dirs]

    def resolve(self, path: str) -> Optional[Path]:
        for candidate in self._candidates(path):
            if candidate.is_file():
                return candidate
        return None

    def exists(self, path: str) -> bool:
        return self.resolve(path) is not None

    def read(self, path: str) -> bytes:
        resolved = self.resolve(path)
        if resolved is None:
            raise FileNotFoundError(f"Asset not found: {path}")
        return resolved.read_bytes()

    def read_text(self, path: str) -> str:
        return self.read(path).decode("utf-8")

    def write(self, path: str, data: bytes) -> Path:
        """Publish ``data`` at ``path`` in one step.

        The bytes go to a temporary file in the target directory first and are
        moved into place with ``os.replace``, so readers never see a partial file.
        """
        target = self.root / path.lstrip("/")
        target.parent.mkdir(parents=True, exist_ok=True)

        tmp = tempfile.NamedTemporaryFile(dir=target.parent, prefix=f".{target.name}.", delete=False)
        try:
            with tmp:
                tmp.write(data)
            os.chmod(tmp.name, _published_mode())
            os.replace(tmp.name, target)
        except BaseException:
            Path(tmp.name).unlink(missing_ok=True)
            raise

        logger.debug(f"Wrote {len(data)} bytes to {target}")
        return target
