"""Translation lookup: forwarding to a localization service with a catalog fallback."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Set, Tuple, Union

import yaml
from loguru import logger

# Process-wide message catalog, keyed by domain and then by nested message keys.
LANGUAGE_CATALOG: Dict[str, Any] = {}

CatalogLoader = Callable[[str, str], Mapping[str, Any]]
Params = Optional[Union[Sequence[Any], Mapping[str, Any]]]


class Translator:
    """Common interface of the translation variants."""

    def __init__(self, locale: str = "en"):
        self._locale = locale

    def translate(self, key: str, params: Params = None, domain: Optional[str] = None, locale: Optional[str] = None) -> str:
        raise NotImplementedError

    def set_locale(self, locale: str) -> None:
        self._locale = locale

    def get_locale(self) -> str:
        return self._locale


def split_key(key: str) -> List[str]:
    """Split a message key on unescaped dots.

    ``\\.`` is a literal dot and ``\\\\`` a literal backslash; any other
    backslash is kept as is.
    """
    parts: List[str] = []
    current: List[str] = []
    i = 0
    while i < len(key):
        char = key[i]
        if char == "\\" and i + 1 < len(key) and key[i + 1] in ".\\":
            current.append(key[i + 1])
            i += 2
            continue
        if char == ".":
            parts.append("".join(current))
            current = []
        else:
            current.append(char)
        i += 1
    parts.append("".join(current))
    return parts


def format_message(message: str, params: Params) -> str:
    if not params or "%" not in message:
        return message
    values = tuple(params.values()) if isinstance(params, Mapping) else tuple(params)
    try:
        return message % values
    except (TypeError, ValueError):
        logger.warning(f"Could not apply {len(values)} parameter(s) to message {message!r}")
        return message


class CatalogTranslator(Translator):
    """Look messages up in the nested process-wide catalog.

    Each domain is loaded once, on its first lookup, through ``loader``.
    Unknown keys translate to themselves.
    """

    def __init__(self, loader: CatalogLoader, catalog: Optional[Dict[str, Any]] = None, locale: str = "en"):
        super().__init__(locale)
        self.loader = loader
        self.catalog = LANGUAGE_CATALOG if catalog is None else catalog
        self._loaded: Set[Tuple[str, str]] = set()

    def _ensure_loaded(self, domain: str, locale: str) -> Dict[str, Any]:
        bucket = self.catalog.setdefault(domain, {})
        if (domain, locale) not in self._loaded:
            self._loaded.add((domain, locale))
            messages = self.loader(domain, locale) or {}
            logger.debug(f"Loaded {len(messages)} top-level message group(s) for {domain}/{locale}")
            _merge(bucket, messages)
        return bucket

    def translate(self, key: str, params: Params = None, domain: Optional[str] = None, locale: Optional[str] = None) -> str:
        domain = domain or "default"
        node: Any = self._ensure_loaded(domain, locale or self.get_locale())

        for part in split_key(key):
            if not isinstance(node, Mapping) or part not in node:
                return key
            node = node[part]

        if not isinstance(node, str):
            return key
        return format_message(node, params)


class ForwardingTranslator(Translator):
    """Forward to an external localization service.

    Domains starting with ``catalog_prefix`` are answered by ``fallback``
    instead, with the prefix removed.
    """

    def __init__(self, backend: Any, fallback: Optional[Translator] = None, catalog_prefix: str = "combiner_"):
        super().__init__()
        self.backend = backend
        self.fallback = fallback
        self.catalog_prefix = catalog_prefix

    def translate(self, key: str, params: Params = None, domain: Optional[str] = None, locale: Optional[str] = None) -> str:
        if self.fallback is not None and domain and domain.startswith(self.catalog_prefix):
            return self.fallback.translate(key, params, domain[len(self.catalog_prefix):], locale)
        return self.backend.translate(key, params, domain, locale)

    def translate_choice(
        self,
        key: str,
        number: int,
        params: Params = None,
        domain: Optional[str] = None,
        locale: Optional[str] = None,
    ) -> str:
        """Pluralized lookup; always answered by the backend."""
        return self.backend.translate_choice(key, number, params, domain, locale)

    def set_locale(self, locale: str) -> None:
        self.backend.set_locale(locale)

    def get_locale(self) -> str:
        return self.backend.get_locale()


def _merge(target: Dict[str, Any], source: Mapping[str, Any]) -> None:
    for key, value in source.items():
        if isinstance(value, Mapping) and isinstance(target.get(key), dict):
            _merge(target[key], value)
        elif isinstance(value, Mapping):
            target[key] = {}
            _merge(target[key], value)
        else:
            target.setdefault(key, value)


def yaml_catalog_loader(directory: Union[str, Path]) -> CatalogLoader:
    """Build a loader reading ``<directory>/<locale>/<domain>.yaml``."""
    directory = Path(directory)

    def load(domain: str, locale: str) -> Mapping[str, Any]:
        path = directory / locale / f"{domain}.yaml"
        if not path.exists():
            logger.debug(f"No catalog file at {path}")
            return {}
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        return data if isinstance(data, dict) else {}

    return load
