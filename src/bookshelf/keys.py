"""Cache key construction."""

from collections.abc import Sequence

_DELIMITER = "-"
_ESCAPE_MAP = {"\\": "\\\\", _DELIMITER: "\\" + _DELIMITER}


def _escape(part: str) -> str:
    result = part
    for char, escaped in _ESCAPE_MAP.items():
        result = result.replace(char, escaped)
    return result


def build_key(operation: str, params: Sequence[tuple[str, str]]) -> str:
    """Build a cache key from an operation name and ordered params.

    Param names only document the call site; values are embedded verbatim
    (escaped) in the order given.

    Example:
        build_key("getAllBooks", [("page", "1"), ("limit", "3")])
        # "getAllBooks-1-3"
    """
    parts = [operation]
    parts.extend(_escape(str(value)) for _, value in params)
    return _DELIMITER.join(parts)
