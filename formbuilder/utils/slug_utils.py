import re
from typing import Callable

from formbuilder.constants.form_constants import DEFAULT_SLUG, SLUG_MAX_LENGTH

_NON_SLUG_CHARS = re.compile(r"[^a-z0-9]+")


def slugify(title: str) -> str:
    """Lowercase, hyphenate runs of other characters, truncate."""
    slug = _NON_SLUG_CHARS.sub("-", title.lower()).strip("-")
    slug = slug[:SLUG_MAX_LENGTH]
    return slug or DEFAULT_SLUG


def unique_slug(title: str, exists: Callable[[str], bool]) -> str:
    """
    Return the slug for `title`, suffixed with -1, -2, ... until `exists` is false.

    `exists` is asked about each candidate in turn, so the first free one wins:
    "My Form" -> my-form, my-form-1, my-form-2 ...
    """
    base = slugify(title)
    candidate = base
    counter = 1
    while exists(candidate):
        candidate = f"{base}-{counter}"
        counter += 1
    return candidate
