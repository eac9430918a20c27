#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/richdoc/utils/text.py
"""Text processing utilities for anchors and heading outlines.

Functions
---------
slugify : Convert text to URL-safe slug
make_unique_slug : Disambiguate a slug against the ids already handed out

Examples
--------
Basic slugification:

    >>> from richdoc.utils.text import slugify
    >>> slugify("My Heading Title")
    'my-heading-title'

Unique slug generation with counter:

    >>> seen = {}
    >>> make_unique_slug("overview", seen)
    'overview'
    >>> make_unique_slug("overview", seen)
    'overview-1'
    >>> make_unique_slug("overview", seen)
    'overview-2'

"""

from __future__ import annotations

import re
import unicodedata

from richdoc.constants import DEFAULT_EMPTY_SLUG, DEFAULT_SLUG_MAX_LENGTH, DEFAULT_SLUG_SEPARATOR


def make_unique_slug(slug: str, seen_slugs: dict[str, int], separator: str = DEFAULT_SLUG_SEPARATOR) -> str:
    """Return ``slug`` disambiguated against every id handed out so far.

    The first occurrence keeps the bare slug. Repeats are numbered ``-1``,
    ``-2``, ... in the order they are requested; a numbered candidate that
    is already taken (for example by a heading whose own text was
    "Overview 1") is skipped.

    Parameters
    ----------
    slug : str
        Base slug to make unique
    seen_slugs : dict[str, int]
        Every id returned so far, mapped to the next suffix to try for it
        (mutated in-place)
    separator : str, default = "-"
        Separator to use before the numeric suffix

    Returns
    -------
    str
        An id not present in ``seen_slugs`` before the call

    Examples
    --------
        >>> seen = {}
        >>> [make_unique_slug(s, seen) for s in ("overview", "overview", "overview-1")]
        ['overview', 'overview-1', 'overview-1-1']

    """
    count = seen_slugs.get(slug, 0)
    candidate = slug
    if count > 0:
        candidate = f"{slug}{separator}{count}"
        while candidate in seen_slugs:
            count += 1
            candidate = f"{slug}{separator}{count}"
    seen_slugs[slug] = count + 1
    seen_slugs.setdefault(candidate, 1)
    return candidate


def slugify(text: str, *, max_length: int = DEFAULT_SLUG_MAX_LENGTH, separator: str = DEFAULT_SLUG_SEPARATOR) -> str:
    """Create a URL-safe slug from text.

    The slug is built by:
    - Normalizing Unicode characters (NFD decomposition, accents dropped)
    - Converting to lowercase
    - Replacing whitespace and underscores with the separator
    - Removing everything that is not alphanumeric or the separator
    - Collapsing repeated separators and stripping them from both ends
    - Limiting length to ``max_length`` characters

    Parameters
    ----------
    text : str
        Text to slugify (e.g., heading text)
    max_length : int, default = 100
        Maximum length of the slug
    separator : str, default = "-"
        The separator between words in the slug

    Returns
    -------
    str
        URL-safe slug; ``"heading"`` when nothing usable remains

    Examples
    --------
        >>> slugify("Hello World!")
        'hello-world'
        >>> slugify("Café résumé")
        'cafe-resume'

    """
    normalized = unicodedata.normalize("NFD", text)
    normalized = "".join(char for char in normalized if unicodedata.category(char) != "Mn")

    slug = normalized.lower()
    slug = re.sub(r"[\s_]+", separator, slug)

    escaped = re.escape(separator)
    slug = re.sub(rf"[^a-z0-9{escaped}]", "", slug)
    slug = re.sub(rf"(?:{escaped})+", separator, slug)
    slug = slug.strip(separator)

    if not slug:
        slug = DEFAULT_EMPTY_SLUG

    if len(slug) > max_length:
        slug = slug[:max_length].rstrip(separator)

    return slug
