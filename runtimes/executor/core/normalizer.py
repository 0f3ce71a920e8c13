"""
Request normalization.

Turns the raw method, request target, headers and body into a NormalizedRequest.
"""

import logging
from typing import Any, Dict, Iterable, Mapping, Tuple

from runtimes.executor.core.headers import is_reserved
from runtimes.executor.models.request import DEFAULT_PORTS, NormalizedRequest

logger = logging.getLogger("executor.normalizer")


def parse_query(query_string: str) -> Dict[str, str]:
    """
    Parse a raw query string.

    Values keep everything after the first "=" and are not percent-decoded.
    Keys without "=" map to "", empty keys are skipped, the last duplicate wins.
    """
    query: Dict[str, str] = {}
    for param in query_string.split("&"):
        key, _, value = param.partition("=")
        if key:
            query[key] = value
    return query


def split_target(target: str) -> Tuple[str, str]:
    """Split a request target into path and raw query string on the first "?"."""
    path, _, query_string = target.partition("?")
    return path, query_string


def split_host(host_header: str, scheme: str) -> Tuple[str, int]:
    default_port = DEFAULT_PORTS.get(scheme, 80)
    if ":" not in host_header:
        return host_header, default_port

    host, port = host_header.split(":")[:2]
    try:
        return host, int(port)
    except ValueError:
        logger.debug("Ignoring non-numeric port in Host header: %s", host_header)
        return host, default_port


def collect_headers(raw_headers: Iterable[Tuple[str, str]]) -> Dict[str, str]:
    """Lower-case header names and join repeated headers with ", "."""
    headers: Dict[str, str] = {}
    for name, value in raw_headers:
        key = name.lower()
        headers[key] = f"{headers[key]}, {value}" if key in headers else value
    return headers


def request_target(scope: Mapping[str, Any]) -> str:
    """Rebuild the raw request target ("/path?query") from an ASGI scope."""
    raw_path = scope.get("raw_path")
    path = raw_path.decode("latin-1") if raw_path else scope.get("path", "/")
    if "?" in path:
        return path

    query_string = scope.get("query_string", b"").decode("latin-1")
    return f"{path}?{query_string}" if query_string else path


def normalize_request(
    method: str,
    target: str,
    raw_headers: Iterable[Tuple[str, str]],
    body: bytes = b"",
) -> NormalizedRequest:
    """
    Build the canonical request.

    Args:
        method: HTTP method
        target: request target as sent by the client ("/path?query")
        raw_headers: header name/value pairs in wire order
        body: full request body

    Returns:
        NormalizedRequest with reserved headers removed
    """
    all_headers = collect_headers(raw_headers)

    scheme = all_headers.get("x-forwarded-proto", "http")
    host, port = split_host(all_headers.get("host", ""), scheme)
    path, query_string = split_target(target)

    return NormalizedRequest(
        method=method,
        scheme=scheme,
        host=host,
        port=port,
        path=path,
        query=parse_query(query_string),
        query_string=query_string,
        headers={k: v for k, v in all_headers.items() if not is_reserved(k)},
        body=body,
    )
