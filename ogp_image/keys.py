"""Request key encoding: a request key is the base64 form of the source URL."""
from __future__ import annotations

import base64
import binascii
from typing import Sequence
from urllib.parse import urlparse

from .errors import InvalidKey


def encode_request_key(url: str) -> str:
    return base64.b64encode(url.encode("utf-8")).decode("ascii")


def decode_request_key(key: str, allowed_prefixes: Sequence[str] = ()) -> str:
    """Decode ``key`` into a source URL.

    Both the standard and the URL-safe base64 alphabets are accepted, with or
    without padding. When ``allowed_prefixes`` is non-empty the URL must start
    with one of them.
    """

    value = (key or "").strip()
    if not value:
        raise InvalidKey(key, "key is empty")

    normalised = value.replace("-", "+").replace("_", "/")
    normalised += "=" * (-len(normalised) % 4)
    try:
        raw = base64.b64decode(normalised, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise InvalidKey(key, "failed to decode base64") from exc

    try:
        url = raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise InvalidKey(key, "failed to convert to utf-8") from exc

    parsed = urlparse(url)
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        raise InvalidKey(key, f"{url!r} is not an http(s) URL")

    if allowed_prefixes and not any(url.startswith(prefix) for prefix in allowed_prefixes):
        raise InvalidKey(key, f"{url!r} is not an allowed URL")
    return url
