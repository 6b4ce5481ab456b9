"""
SQL LIKE escaping for user-supplied search text.
"""


def escape_like_pattern(pattern: str, escape_char: str = "\\") -> str:
    """
    Escape user input for safe use in SQL LIKE clauses.

    ``%`` and ``_`` are wildcards in LIKE; escaping them makes a search for
    ``"100%"`` match the literal text instead of every row.

    Examples:
        >>> escape_like_pattern("big_carp")
        'big\\\\_carp'

    Use the escape character in the clause: ``LIKE ? ESCAPE '\\'``.
    """
    if not isinstance(pattern, str):
        raise TypeError(f"Pattern must be a string, got {type(pattern).__name__}")

    if not pattern:
        return ""

    result = pattern.replace(escape_char, escape_char + escape_char)
    result = result.replace("%", escape_char + "%")
    result = result.replace("_", escape_char + "_")
    return result


def contains_pattern(text: str) -> str:
    """``%text%`` with wildcards in ``text`` escaped."""
    return f"%{escape_like_pattern(text)}%"
