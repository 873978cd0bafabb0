"""Source page fetching and OGP metadata extraction."""
from __future__ import annotations

import logging
from typing import Optional
from urllib.parse import urljoin

import requests
from bs4 import BeautifulSoup

from .config import USER_AGENT
from .errors import MetadataNotFound, NetworkError
from .schemas import PageMetadata

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 5
THUMBNAIL_META_NAMES = ("ogp_thumbnail", "og-thumbnail-image")
USER_DICTIONARY_META_NAME = "og-user-dictionary"


def fetch_bytes(
    url: str,
    timeout: float = REQUEST_TIMEOUT,
    session: Optional[requests.Session] = None,
) -> bytes:
    """GET ``url`` and return its body, raising ``NetworkError`` on any failure."""

    if session is not None:
        getter, headers = session.get, None
    else:
        getter, headers = requests.get, {"User-Agent": USER_AGENT}
    try:
        response = getter(
            url,
            headers=headers,
            timeout=timeout,
            allow_redirects=True,
        )
    except requests.RequestException as exc:
        logger.warning("Failed to fetch %s: %s", url, exc)
        raise NetworkError(url, reason=str(exc)) from exc

    if not 200 <= response.status_code < 300:
        logger.info("Fetching %s returned status %s", url, response.status_code)
        raise NetworkError(url, status=response.status_code)
    return response.content


def fetch_page(
    url: str,
    timeout: float = REQUEST_TIMEOUT,
    session: Optional[requests.Session] = None,
) -> str:
    body = fetch_bytes(url, timeout=timeout, session=session)
    return body.decode("utf-8", errors="replace")


def _meta_content(soup: BeautifulSoup, attrs: dict[str, str]) -> str | None:
    for tag in soup.find_all("meta", attrs=attrs):
        content = tag.get("content")
        if content and content.strip():
            return content.strip()
    return None


def extract_page_metadata(url: str, html: str) -> PageMetadata:
    """Parse HTML and extract the title, thumbnail and user dictionary references."""
    soup = BeautifulSoup(html, "html.parser")

    title = _meta_content(soup, {"property": "og:title"})
    if not title:
        raise MetadataNotFound(url, "og:title")

    thumbnail_url = None
    for name in THUMBNAIL_META_NAMES:
        thumbnail_url = _meta_content(soup, {"name": name})
        if thumbnail_url:
            thumbnail_url = urljoin(url, thumbnail_url)
            break

    dictionary_url = _meta_content(soup, {"name": USER_DICTIONARY_META_NAME})
    if dictionary_url:
        dictionary_url = urljoin(url, dictionary_url)

    return PageMetadata(
        title=title,
        thumbnail_url=thumbnail_url,
        user_dictionary_url=dictionary_url,
    )
