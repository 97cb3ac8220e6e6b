"""
Header, cookie and form helpers shared by the stages and the adapters.
"""

import re
from http.cookies import CookieError, SimpleCookie
from typing import Iterable, Mapping
from urllib.parse import parse_qsl

# Printable ASCII, 0x20-0x7E
NON_PRINTABLE_RE = re.compile(r"[^\x20-\x7E]")

# Characters outside the charset allowed in an Accept header
ACCEPT_DISALLOWED_RE = re.compile(r"[^a-z0-9;=.,/* \-+]")

# Separates a 405 reason from the machine-readable allowed-method list
METHOD_LIST_SEPARATOR = "\x00"

# Negotiated TLS version as reported by the ASGI "tls" extension
TLS_VERSIONS = {
    0x0300: "SSLv3",
    0x0301: "TLSv1",
    0x0302: "TLSv1.1",
    0x0303: "TLSv1.2",
    0x0304: "TLSv1.3",
}


def normalize_headers(headers: Iterable[tuple[str, str]]) -> dict[str, str]:
    """
    Lowercase header names. The last value wins for repeated headers.

    Examples:
        >>> normalize_headers([("User-Agent", "curl/8.0"), ("Accept", "*/*")])
        {'user-agent': 'curl/8.0', 'accept': '*/*'}
    """
    return {key.lower(): value for key, value in headers}


def parse_cookies(cookie_header: str) -> dict[str, str]:
    """
    Parse a Cookie header into a dict.

    A malformed header yields no cookies, which the origin check treats the
    same as a missing token.

    Examples:
        >>> parse_cookies("request_key=abc; theme=dark")
        {'request_key': 'abc', 'theme': 'dark'}
    """
    if not cookie_header:
        return {}
    jar: SimpleCookie = SimpleCookie()
    try:
        jar.load(cookie_header)
    except CookieError:
        return {}
    return {name: morsel.value for name, morsel in jar.items()}


def parse_form(body: bytes, content_type: str) -> dict[str, str]:
    """
    Parse an application/x-www-form-urlencoded body.

    Other content types yield an empty dict.
    """
    if not body or not content_type.lower().startswith("application/x-www-form-urlencoded"):
        return {}
    text = body.decode("utf-8", errors="replace")
    return dict(parse_qsl(text, keep_blank_values=True))


def method_not_allowed_body(allowed: Iterable[str]) -> str:
    """Plain text 405 body followed by the allowed-method list."""
    return "Request method is not allowed." + METHOD_LIST_SEPARATOR + ", ".join(allowed)


def split_method_list(body: str) -> tuple[str, str | None]:
    """
    Split a 405 body into the reason and the allowed-method list.

    Examples:
        >>> split_method_list("Request method is not allowed.\\x00GET, HEAD")
        ('Request method is not allowed.', 'GET, HEAD')
        >>> split_method_list("Bad request headers")
        ('Bad request headers', None)
    """
    if METHOD_LIST_SEPARATOR not in body:
        return body, None
    reason, allowed = body.split(METHOD_LIST_SEPARATOR, 1)
    return reason, allowed


def response_headers(
    headers: Mapping[str, str],
    body: str,
) -> tuple[str, list[tuple[str, str]]]:
    """
    Turn a stage response into a body and header list for an HTTP adapter.

    Moves the allowed-method list of a 405 body into an ``Allow`` header.
    """
    reason, allowed = split_method_list(body)
    header_list = list(headers.items())
    if allowed is not None:
        header_list.append(("Allow", allowed))
    return reason, header_list
