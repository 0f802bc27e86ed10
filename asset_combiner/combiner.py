"""Combine registered style sheets or scripts into one cache-addressed file."""

from __future__ import annotations

import hashlib
import html
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

from loguru import logger

from asset_combiner.compiler import ScssCompiler, StyleCompiler
from asset_combiner.config_loader import get_combiner_config
from asset_combiner.file_store import FileStore
from asset_combiner.path_rewriter import DEFAULT_DEPTH, DEFAULT_PUBLIC_DIR, fix_paths

STYLE_FAMILY = "css"
SCRIPT_FAMILY = "js"
IDENTITY_LENGTH = 16


class CombinerError(Exception):
    """Base class for combiner contract violations."""
    pass


class InvalidKindError(CombinerError, ValueError):
    """Raised when a registered file has an unsupported extension."""
    pass


class MixedFamilyError(CombinerError):
    """Raised when style sheets and scripts are requested from one combiner."""
    pass


class AssetKind(str, Enum):
    STYLE = "css"
    SCSS = "scss"
    SCRIPT = "js"

    @property
    def family(self) -> str:
        return SCRIPT_FAMILY if self is AssetKind.SCRIPT else STYLE_FAMILY

    @classmethod
    def from_path(cls, path: str) -> "AssetKind":
        extension = Path(path).suffix.lower().lstrip(".")
        for kind in cls:
            if kind.value == extension:
                return kind
        raise InvalidKindError(f"Unsupported file type: {path}")


@dataclass(frozen=True)
class AssetRegistration:
    path: str
    kind: AssetKind
    media: Optional[str] = None
    version: Optional[str] = None

    @property
    def is_style(self) -> bool:
        return self.kind.family == STYLE_FAMILY

    @property
    def needs_media_block(self) -> bool:
        return bool(self.media) and self.media != "all"


@dataclass
class CombinerSettings:
    """Explicit configuration for a combiner instance."""

    root: Path
    debug_mode: bool = False
    web_root_depth: int = DEFAULT_DEPTH
    public_dir: str = DEFAULT_PUBLIC_DIR
    compiler: Optional[StyleCompiler] = None
    fallback_dirs: List[Path] = field(default_factory=list)

    def __post_init__(self):
        self.root = Path(self.root)
        if not self.fallback_dirs and self.public_dir:
            self.fallback_dirs = [self.root / self.public_dir]

    @classmethod
    def from_config(cls, config: Dict[str, Any], compiler: Optional[StyleCompiler] = None) -> "CombinerSettings":
        combiner_cfg = get_combiner_config(config)
        return cls(
            root=Path(str(combiner_cfg.get("web_root", "."))),
            debug_mode=bool(combiner_cfg.get("debug_mode", False)),
            web_root_depth=int(combiner_cfg.get("web_root_depth", DEFAULT_DEPTH)),
            public_dir=str(combiner_cfg.get("web_dir", DEFAULT_PUBLIC_DIR) or ""),
            compiler=compiler,
        )


class Combiner:
    """Ordered registry of assets for one bundle.

    Produces either one combined file below ``assets/css`` or ``assets/js``
    named by a fingerprint of the registrations, or debug markup referencing
    every source on its own.
    """

    def __init__(self, settings: CombinerSettings, store: Optional[FileStore] = None):
        self.settings = settings
        self.store = store or FileStore(settings.root, settings.fallback_dirs)
        self._entries: List[AssetRegistration] = []
        self._compiler = settings.compiler

    @property
    def entries(self) -> Tuple[AssetRegistration, ...]:
        return tuple(self._entries)

    @property
    def compiler(self) -> StyleCompiler:
        if self._compiler is None:
            self._compiler = ScssCompiler()
        return self._compiler

    def has_entries(self) -> bool:
        return bool(self._entries)

    def register(self, path: str, media: str = "all", version: Optional[str] = None) -> AssetRegistration:
        """Add a single file; style sheets default to the ``all`` media type."""
        kind = AssetKind.from_path(path)
        entry = AssetRegistration(
            path=path,
            kind=kind,
            media=media if kind.family == STYLE_FAMILY else None,
            version=version,
        )
        self._entries.append(entry)
        return entry

    def register_multiple(
        self,
        paths: Iterable[str],
        media: str = "screen",
        version: Optional[str] = None,
    ) -> List[AssetRegistration]:
        """Add several files in order; style sheets default to ``screen`` here."""
        return [self.register(path, media=media, version=version) for path in paths]

    def list_urls(self) -> List[str]:
        urls = []
        for entry in self._entries:
            url = self._individual_url(entry)
            if entry.is_style and entry.needs_media_block:
                url = f"{url}|{entry.media}"
            urls.append(url)
        return urls

    def get_combined_output(self, debug_mode: Optional[bool] = None) -> str:
        """Return the combined file path, or per-file markup in debug mode."""
        if debug_mode is None:
            debug_mode = self.settings.debug_mode

        if not self._entries:
            logger.warning("Combiner has no registered assets; nothing to combine")
            return ""

        family = self._family()

        if debug_mode:
            return self._debug_markup(family)

        compiled: Dict[str, str] = {}
        identity = self._identity(compiled)
        location = f"assets/{family}/{identity}.{family}"

        if self.store.exists(location):
            logger.debug(f"Reusing combined file {location}")
            return location

        chunks = [self._entry_text(entry, compiled) for entry in self._entries]
        self.store.write(location, "".join(chunks).encode("utf-8"))
        logger.info(f"Combined {len(self._entries)} {family} file(s) into {location}")
        return location

    def _family(self) -> str:
        families = {entry.kind.family for entry in self._entries}
        if len(families) > 1:
            raise MixedFamilyError("Cannot combine style sheets and scripts in one bundle")
        return families.pop()

    def _compile(self, entry: AssetRegistration) -> str:
        source_file = self.store.resolve(entry.path)
        if source_file is None:
            raise FileNotFoundError(f"Asset not found: {entry.path}")
        include_paths = [str(source_file.parent), str(self.settings.root)]
        return self.compiler.compile(source_file.read_text(encoding="utf-8"), include_paths=include_paths)

    def _individual_url(self, entry: AssetRegistration) -> str:
        if entry.kind is not AssetKind.SCSS:
            return entry.path

        target = f"assets/{STYLE_FAMILY}/{entry.path.lstrip('/').replace('/', '_')}.{STYLE_FAMILY}"
        css = self._rewrite(entry, self._compile(entry)).encode("utf-8")
        if not self.store.exists(target) or self.store.read(target) != css:
            self.store.write(target, css)
        return target

    def _identity(self, compiled: Dict[str, str]) -> str:
        hasher = hashlib.md5()
        for entry in self._entries:
            if entry.kind is AssetKind.SCSS:
                compiled[entry.path] = self._compile(entry)
                payload = compiled[entry.path].encode("utf-8")
            else:
                payload = self.store.read(entry.path)
            digest = hashlib.md5(payload).hexdigest()
            hasher.update(f"{entry.path}\0{entry.media or ''}\0{entry.version or ''}\0{digest}\n".encode("utf-8"))
        return hasher.hexdigest()[:IDENTITY_LENGTH]

    def _rewrite(self, entry: AssetRegistration, css: str) -> str:
        return fix_paths(
            css,
            entry.path,
            depth=self.settings.web_root_depth,
            public_dir=self.settings.public_dir,
        )

    def _entry_text(self, entry: AssetRegistration, compiled: Dict[str, str]) -> str:
        if entry.kind is AssetKind.SCSS:
            text = compiled[entry.path]
        else:
            text = self.store.read_text(entry.path)

        if not entry.is_style:
            return text + "\n"

        text = self._rewrite(entry, text)
        if entry.needs_media_block:
            return f"@media {entry.media}{{\n{text}\n}}\n"
        return text + "\n"

    def _debug_markup(self, family: str) -> str:
        tags = []
        for entry in self._entries:
            url = html.escape(self._individual_url(entry), quote=True)
            if family == STYLE_FAMILY:
                media = html.escape(entry.media or "all", quote=True)
                tags.append(f'<link rel="stylesheet" href="{url}" media="{media}">')
            else:
                tags.append(f'<script src="{url}"></script>')
        return "".join(tags)
