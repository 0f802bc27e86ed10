"""Configuration loader for the asset combiner.

Settings come from a YAML file. String values may reference the environment
as ``${NAME}`` or ``${NAME:fallback}``; a ``.env`` file in the working
directory is loaded before expansion.
"""

import os
import re
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from dotenv import load_dotenv

CONFIG_ENV_VAR = "COMBINER_CONFIG"
SEARCH_PATHS = ("config.yaml", "config.yml")

_PLACEHOLDER = re.compile(r"\$\{(?P<name>[^}:]+)(?::(?P<fallback>[^}]*))?\}")


def _locate_config(explicit: Optional[str]) -> Path:
    if explicit is not None:
        candidates = [Path(explicit)]
    elif os.getenv(CONFIG_ENV_VAR):
        candidates = [Path(os.environ[CONFIG_ENV_VAR])]
    else:
        candidates = [base / name for base in (Path("."), Path("..")) for name in SEARCH_PATHS]

    found = next((c for c in candidates if c.is_file()), None)
    if found is None:
        tried = ", ".join(str(c) for c in candidates)
        raise FileNotFoundError(f"Combiner configuration not found (tried {tried})")
    return found


def _expand_placeholder(match: re.Match) -> str:
    value = os.getenv(match.group("name"))
    if value is not None:
        return value
    fallback = match.group("fallback")
    return match.group(0) if fallback is None else fallback


def expand_env(node: Any) -> Any:
    """Replace ``${NAME}`` placeholders in every string of a parsed document.

    Unset variables without a fallback keep their placeholder text.
    """
    if isinstance(node, str):
        return _PLACEHOLDER.sub(_expand_placeholder, node)
    if isinstance(node, dict):
        return {key: expand_env(value) for key, value in node.items()}
    if isinstance(node, list):
        return [expand_env(item) for item in node]
    return node


def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """Read the combiner configuration.

    Args:
        config_path: Explicit file. Without one, ``$COMBINER_CONFIG`` is used,
            then ``config.yaml``/``config.yml`` in the working directory or its parent.

    Returns:
        The parsed mapping with environment placeholders expanded.
    """
    load_dotenv()
    path = _locate_config(config_path)
    document = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    if not isinstance(document, dict):
        raise ValueError(f"{path}: top level must be a mapping")
    return expand_env(document)


def _section(config: Dict[str, Any], name: str) -> Dict[str, Any]:
    value = config.get(name)
    return value if isinstance(value, dict) else {}


def get_combiner_config(config: Dict[str, Any]) -> Dict[str, Any]:
    """Get combiner configuration."""
    return _section(config, "combiner")


def get_files_config(config: Dict[str, Any]) -> Dict[str, Any]:
    """Get file synchronisation configuration."""
    return _section(config, "files")


def get_translations_config(config: Dict[str, Any]) -> Dict[str, Any]:
    """Get translation catalog configuration."""
    return _section(config, "translations")


def get_bundle(config: Dict[str, Any], name: str) -> List[Dict[str, Any]]:
    """Get the entries of a named bundle.

    Each entry is either ``{"path": ..., "media": ..., "version": ...}`` for a
    single file or ``{"paths": [...], "media": ...}`` for a group.

    Raises:
        KeyError: If the bundle is not configured.
    """
    bundles = _section(config, "bundles")
    if name not in bundles:
        raise KeyError(f"Unknown bundle: {name}")

    entries = []
    for item in bundles[name] or []:
        if isinstance(item, str):
            entries.append({"path": item})
        elif isinstance(item, dict):
            entries.append(item.copy())
    return entries


def ensure_directories(config: Dict[str, Any]):
    """Ensure all required directories exist."""
    web_root = Path(str(get_combiner_config(config).get("web_root", ".")))
    (web_root / "assets" / "css").mkdir(parents=True, exist_ok=True)
    (web_root / "assets" / "js").mkdir(parents=True, exist_ok=True)

    # Log directory
    log_path = config.get("logging", {}).get("file", "data/logs/combiner.log")
    Path(log_path).parent.mkdir(parents=True, exist_ok=True)
