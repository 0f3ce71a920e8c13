"""
Reserved header names and header map helpers shared by the request and response sides.
"""

from typing import Any, Iterable, Mapping, Tuple, Union

RESERVED_PREFIX = "x-open-runtimes-"

TIMEOUT_HEADER = "x-open-runtimes-timeout"
SECRET_HEADER = "x-open-runtimes-secret"
LOGS_HEADER = "x-open-runtimes-logs"
ERRORS_HEADER = "x-open-runtimes-errors"

HeaderSource = Union[Mapping[str, Any], Iterable[Tuple[str, Any]]]


def is_reserved(name: str) -> bool:
    return name.lower().startswith(RESERVED_PREFIX)


def public_headers(headers: HeaderSource) -> dict[str, str]:
    """
    Lower-case header names, drop reserved ones and stringify values.

    Later entries overwrite earlier ones with the same lower-cased name.
    """
    items = headers.items() if isinstance(headers, Mapping) else headers
    result: dict[str, str] = {}
    for name, value in items:
        if is_reserved(name):
            continue
        result[name.lower()] = str(value)
    return result
