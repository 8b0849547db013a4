# src/core/media_types.py — v1
"""Media-type detection from file extensions.

Wraps the stdlib ``mimetypes`` table and adds the web source formats it
does not know about.
"""

from __future__ import annotations

import mimetypes
from pathlib import Path

PASSTHROUGH_MEDIA_TYPE = "text/plain"
HTML_MEDIA_TYPE = "text/html"

# Media types that need no further transformation.
FINAL_FORMS: frozenset[str] = frozenset({
    "text/javascript",
    "application/javascript",
    "text/html",
    "text/css",
})

_EXTRA_TYPES: dict[str, str] = {
    ".js": "application/javascript",
    ".mjs": "application/javascript",
    ".cjs": "application/javascript",
    ".jsx": "text/jsx",
    ".ts": "text/typescript",
    ".tsx": "text/tsx",
    ".coffee": "text/coffeescript",
    ".litcoffee": "text/coffeescript",
    ".less": "text/less",
    ".scss": "text/scss",
    ".sass": "text/sass",
    ".styl": "text/stylus",
    ".vue": "text/vue",
    ".jade": "text/jade",
    ".pug": "text/jade",
    ".hbs": "text/x-handlebars-template",
    ".handlebars": "text/x-handlebars-template",
    ".md": "text/markdown",
    ".markdown": "text/markdown",
    ".map": "application/json",
    ".txt": "text/plain",
}

_types = mimetypes.MimeTypes()
for _ext, _type in _EXTRA_TYPES.items():
    _types.add_type(_type, _ext)


def detect_media_type(path: str | Path) -> str | None:
    """Guess a media type from the file extension, or None if unknown."""
    media_type, _ = _types.guess_type(Path(path).name, strict=False)
    return media_type


def is_final_form(media_type: str | None) -> bool:
    return media_type in FINAL_FORMS
