"""Slug helpers shared by the record store and the image pipeline."""

import re
from pathlib import PurePath

_NON_ALNUM = re.compile(r"[^a-z0-9]+")
SLUG_PATTERN = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")


def slugify(value: str) -> str:
    """Lowercase `value`, collapse non-alphanumeric runs to one hyphen and trim edge hyphens.

    Non-ASCII letters count as non-alphanumeric, so "Crème" becomes "cr-me".
    """
    return _NON_ALNUM.sub("-", value.lower()).strip("-")


def is_slug(value: str) -> bool:
    """Return True if `value` could have been produced by `slugify`."""
    return bool(SLUG_PATTERN.match(value or ""))


def safe_base_name(original_name: str, fallback: str = "image") -> str:
    """Derive a filesystem-safe base name from an uploaded file name.

    The extension is dropped before slugifying; an empty result falls back
    to `fallback`.
    """
    stem = PurePath(original_name or "").stem
    return slugify(stem) or fallback
