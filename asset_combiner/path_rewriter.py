"""Relative url() rewriting for style sheets moved into the combined output directory."""

from __future__ import annotations

import posixpath
import re

# Output always lives in assets/css or assets/js, two levels below the web root.
DEFAULT_DEPTH = 2
DEFAULT_PUBLIC_DIR = "web"

_URL_RE = re.compile(
    r"""(url)\((\s*)("(?:\\.|[^"\\\n])*"|'(?:\\.|[^'\\\n])*'|[^"'\s()]+)(\s*)\)""",
    re.IGNORECASE,
)
_ABSOLUTE_RE = re.compile(r"^(?:[a-z][a-z0-9+.\-]*:|/)", re.IGNORECASE)
_UNSAFE_RE = re.compile(r"""[\s()"']""")


def _split_quote(argument: str) -> tuple[str, str]:
    if len(argument) >= 2 and argument[0] in "\"'" and argument[-1] == argument[0]:
        return argument[0], argument[1:-1]
    return "", argument


def origin_directory(origin_path: str, public_dir: str = DEFAULT_PUBLIC_DIR) -> str:
    """Return the directory of a sheet as seen from the public document root."""
    origin_dir = posixpath.dirname(origin_path.replace("\\", "/"))
    if origin_dir == ".":
        return ""
    if public_dir:
        if origin_dir == public_dir:
            return ""
        if origin_dir.startswith(public_dir + "/"):
            return origin_dir[len(public_dir) + 1:]
    return origin_dir


def fix_paths(
    content: str,
    origin_path: str,
    depth: int = DEFAULT_DEPTH,
    public_dir: str = DEFAULT_PUBLIC_DIR,
) -> str:
    """Rewrite relative url() arguments so they resolve from the combined output.

    Args:
        content: Style sheet text.
        origin_path: Slash-separated path of the sheet relative to the web root.
        depth: Number of directory levels between the web root and the output.
        public_dir: Public directory whose files are served from the document root;
            its leading segment is dropped from the origin directory.

    Returns:
        The content with only the relative url() arguments changed.
    """
    origin_dir = origin_directory(origin_path, public_dir)
    glue = f"{origin_dir}/" if origin_dir else ""
    prefix = "../" * depth + glue

    def replace(match: re.Match) -> str:
        name, leading, argument, trailing = match.groups()
        quote, value = _split_quote(argument)

        # data: URIs, schemes, protocol-relative and root-relative paths stay put
        if not value or _ABSOLUTE_RE.match(value):
            return match.group(0)

        # a quoted argument is already escaped for its delimiter; only the prefix is new
        head = prefix
        if quote or _UNSAFE_RE.search(prefix + value):
            quote = quote or '"'
            head = prefix.replace(quote, "\\" + quote)

        return f"{name}({leading}{quote}{head}{value}{quote}{trailing})"

    return _URL_RE.sub(replace, content)
