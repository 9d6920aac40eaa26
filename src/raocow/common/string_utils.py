"""String utilities for deriving URL-safe identifiers from display names."""

import re
import unicodedata

DEFAULT_SLUG_LENGTH = 64

_SEPARATOR_RUN = re.compile(r"[^A-Za-z0-9]+")


def strip_accents(text: str) -> str:
    """
    Remove combining diacritical marks from a string.

    Args:
        text: String to clean

    Returns:
        String with accents removed (NFKD decomposition, 'Mn' characters dropped)

    Example:
        >>> strip_accents("Björk")
        'Bjork'
    """
    normalized = unicodedata.normalize("NFKD", text)
    return "".join(char for char in normalized if unicodedata.category(char) != "Mn")


def slugify(source: str, max_length: int = DEFAULT_SLUG_LENGTH) -> str:
    """
    Derive a URL-safe slug from a display string.

    Applies the following transformations in order:
    1. Strip accents (NFKD decomposition, combining marks removed)
    2. Replace every run of characters outside [A-Za-z0-9] with a single hyphen
    3. Convert to lowercase
    4. Strip leading/trailing hyphens
    5. Truncate to max_length, dropping a hyphen left dangling by the cut

    The result is not guaranteed to be unique; see IdentifierAllocator.

    Args:
        source: Display string (channel name, video title, ...)
        max_length: Maximum slug length

    Returns:
        Slug containing only [a-z0-9-]; empty for empty or all-punctuation input

    Raises:
        ValueError: If max_length is negative

    Example:
        >>> slugify("Super Marisa World")
        'super-marisa-world'
        >>> slugify("  Let's Play: Kaizo Mario #12!  ")
        'let-s-play-kaizo-mario-12'
        >>> slugify("???")
        ''
    """
    if max_length < 0:
        raise ValueError(f"max_length must be >= 0, got {max_length}")

    slug = _SEPARATOR_RUN.sub("-", strip_accents(source)).lower().strip("-")

    if len(slug) > max_length:
        # Partial trailing token is kept, dangling hyphen is not
        slug = slug[:max_length].rstrip("-")

    return slug


def with_suffix(slug: str, suffix: int, max_length: int = DEFAULT_SLUG_LENGTH) -> str:
    """
    Append a numeric suffix to a slug, keeping the result within max_length.

    Suffix 0 returns the slug unchanged. Otherwise the number is appended with
    no separator ("foo" -> "foo1"); the slug is shortened first if needed.

    Args:
        slug: Base slug (output of slugify)
        suffix: Non-negative collision counter
        max_length: Maximum length of the returned identifier

    Returns:
        Suffixed identifier

    Raises:
        ValueError: If the digits alone are longer than max_length

    Example:
        >>> with_suffix("super-marisa-world", 0)
        'super-marisa-world'
        >>> with_suffix("super-marisa-world", 2)
        'super-marisa-world2'
    """
    if suffix == 0:
        return slug

    digits = str(suffix)
    if len(digits) > max_length:
        raise ValueError(f"Suffix {suffix} does not fit in {max_length} characters")
    room = max_length - len(digits)
    return slug[:room].rstrip("-") + digits
