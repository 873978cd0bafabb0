"""Preview generation service wiring the pipeline together."""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from functools import partial
from typing import Optional

import requests

from .cache import CacheAccelerator
from .compositor import (
    DEFAULT_LAYOUT,
    Layout,
    PreviewAssets,
    compose,
    encode_png,
    fetch_thumbnail,
    load_assets,
)
from .config import Settings
from .keys import decode_request_key
from .linebreak import break_lines
from .schemas import PageMetadata
from .scrape import extract_page_metadata, fetch_bytes
from .segmenter import SegmenterResolver
from .store import BlobStore, build_blob_store
from .text import FontTextMeasurer, TextMeasurer

logger = logging.getLogger(__name__)


@dataclass
class PreviewService:
    """Process-wide context built once at startup and shared by all requests."""

    settings: Settings
    assets: PreviewAssets
    measurer: TextMeasurer
    resolver: SegmenterResolver
    accelerator: CacheAccelerator
    http: requests.Session = field(default_factory=requests.Session)
    layout: Layout = DEFAULT_LAYOUT

    def fetch(self, url: str) -> bytes:
        return fetch_bytes(url, timeout=self.settings.http_timeout, session=self.http)

    def fetch_metadata(self, url: str) -> PageMetadata:
        html = self.fetch(url).decode("utf-8", errors="replace")
        return extract_page_metadata(url, html)

    def generate(self, url: str) -> bytes:
        """Render the preview for ``url`` without consulting the cache."""

        start = time.perf_counter()
        metadata = self.fetch_metadata(url)
        logger.info("Rendering preview for %s: title=%r", url, metadata.title)

        segmenter = self.resolver.resolve(metadata.user_dictionary_url)
        max_width = self.layout.text_width(self.assets.base_size)
        lines = break_lines(metadata.title, segmenter, self.measurer, max_width)

        thumbnail = None
        if metadata.thumbnail_url:
            thumbnail = fetch_thumbnail(metadata.thumbnail_url, self.fetch)

        image = compose(self.assets, thumbnail, lines, self.measurer, self.layout)
        data = encode_png(image)
        logger.info(
            "Rendered %d line(s) for %s into %d bytes in %.2fs",
            len(lines),
            url,
            len(data),
            time.perf_counter() - start,
        )
        return data

    def render(self, key: str) -> bytes:
        """Return preview PNG bytes for a request key, using the cache when possible."""

        url = decode_request_key(key, self.settings.allowed_url_prefixes)
        logger.info("Preview requested for %s", url)
        return self.accelerator.get_or_generate(key, lambda: self.generate(url))


def build_service(settings: Settings, store: Optional[BlobStore] = None) -> PreviewService:
    assets = load_assets(settings)
    session = requests.Session()
    session.headers["User-Agent"] = settings.user_agent

    fetch = partial(fetch_bytes, timeout=settings.http_timeout, session=session)
    if store is None:
        store = build_blob_store(settings)
    return PreviewService(
        settings=settings,
        assets=assets,
        measurer=FontTextMeasurer(assets.font),
        resolver=SegmenterResolver(fetch),
        accelerator=CacheAccelerator(store),
        http=session,
    )
