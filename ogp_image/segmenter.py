"""Script-aware text segmentation and the user dictionary segmenter cache."""
from __future__ import annotations

import csv
import hashlib
import logging
import threading
from dataclasses import dataclass
from typing import Callable, Iterable, List, Protocol, Sequence

from pydantic import BaseModel, ValidationError, field_validator

from .errors import SegmenterBuildError

logger = logging.getLogger(__name__)


class Segmenter(Protocol):
    def segment(self, text: str) -> List[str]: ...


def _align_surfaces(text: str, surfaces: Iterable[str]) -> List[str]:
    """Map analyser surfaces back onto ``text`` so nothing is dropped.

    Characters the analyser skipped (whitespace, mostly) are glued onto the
    preceding token, or onto the first token when they lead the text.
    """

    tokens: List[str] = []
    pending = ""
    pos = 0
    for surface in surfaces:
        if not surface:
            continue
        idx = text.find(surface, pos)
        if idx == -1:
            continue
        gap = text[pos:idx]
        if gap:
            if tokens:
                tokens[-1] += gap
            else:
                pending += gap
        tokens.append(pending + surface)
        pending = ""
        pos = idx + len(surface)

    rest = pending + text[pos:]
    if rest:
        if tokens:
            tokens[-1] += rest
        else:
            tokens.append(rest)
    return tokens


def _attach_whitespace(tokens: Iterable[str]) -> List[str]:
    merged: List[str] = []
    leading = ""
    for token in tokens:
        if not token:
            continue
        if not token.strip():
            if merged:
                merged[-1] += token
            else:
                leading += token
            continue
        merged.append(leading + token)
        leading = ""
    if leading:
        if merged:
            merged[-1] += leading
        else:
            merged.append(leading)
    return merged


class MecabSegmenter:
    """Default segmenter backed by MeCab with the bundled UniDic-lite dictionary."""

    def __init__(self, tagger_args: str = "") -> None:
        try:
            import MeCab  # type: ignore
        except ImportError as exc:  # pragma: no cover - depends on the environment
            raise RuntimeError("mecab-python3 is required for the default segmenter") from exc
        self._mecab = MeCab
        self._tagger = MeCab.Tagger(tagger_args)
        self._tagger.parse("")
        # MeCab taggers are not safe to share between threads mid-parse.
        self._lock = threading.Lock()

    def _surfaces(self, text: str) -> List[str]:
        surfaces: List[str] = []
        with self._lock:
            node = self._tagger.parseToNode(text)
            while node:
                if node.stat not in (self._mecab.MECAB_BOS_NODE, self._mecab.MECAB_EOS_NODE):
                    surfaces.append(node.surface)
                node = node.next
        return surfaces

    def segment(self, text: str) -> List[str]:
        if not text:
            return []
        return _align_surfaces(text, self._surfaces(text))


class DictionaryEntry(BaseModel):
    surface: str
    part_of_speech: str
    reading: str

    @field_validator("surface", "part_of_speech", "reading")
    @classmethod
    def not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("value cannot be empty")
        return value


def parse_user_dictionary(source: str, content: str) -> List[DictionaryEntry]:
    """Parse a ``surface,part_of_speech,reading`` CSV user dictionary.

    Blank lines and ``#`` comments are skipped. Any malformed row fails the
    whole dictionary.
    """

    entries: List[DictionaryEntry] = []
    for line_no, line in enumerate(content.splitlines(), start=1):
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        row = next(csv.reader([line]))
        if len(row) != 3:
            raise SegmenterBuildError(source, line_no, f"expected 3 columns, got {len(row)}")
        try:
            entries.append(
                DictionaryEntry(surface=row[0], part_of_speech=row[1], reading=row[2])
            )
        except ValidationError as exc:
            raise SegmenterBuildError(source, line_no, str(exc.errors()[0]["msg"])) from exc
    return entries


class UserDictionarySegmenter:
    """Keeps user dictionary words atomic and defers everything else to ``base``."""

    def __init__(self, base: Segmenter, entries: Sequence[DictionaryEntry]) -> None:
        self.base = base
        self.entries = list(entries)
        index: dict[str, List[str]] = {}
        for entry in self.entries:
            index.setdefault(entry.surface[0], []).append(entry.surface)
        for surfaces in index.values():
            surfaces.sort(key=len, reverse=True)
        self._index = index

    def _match(self, text: str, pos: int) -> str | None:
        for surface in self._index.get(text[pos], ()):
            if text.startswith(surface, pos):
                return surface
        return None

    def segment(self, text: str) -> List[str]:
        tokens: List[str] = []
        gap_start = 0
        pos = 0
        while pos < len(text):
            surface = self._match(text, pos)
            if surface is None:
                pos += 1
                continue
            if gap_start < pos:
                tokens.extend(self.base.segment(text[gap_start:pos]))
            tokens.append(surface)
            pos += len(surface)
            gap_start = pos
        if gap_start < len(text):
            tokens.extend(self.base.segment(text[gap_start:]))
        return _attach_whitespace(tokens)


def build_user_dictionary_segmenter(source: str, content: str, base: Segmenter) -> Segmenter:
    entries = parse_user_dictionary(source, content)
    logger.info("Built user dictionary segmenter from %s with %d entries", source, len(entries))
    return UserDictionarySegmenter(base, entries)


def compute_content_hash(content: bytes) -> str:
    return hashlib.sha256(content).hexdigest()


@dataclass(frozen=True)
class SegmenterCacheEntry:
    source: str
    content_hash: str
    segmenter: Segmenter


class SegmenterResolver:
    """Hands out segmenters, rebuilding user dictionary ones only when their content changes.

    The cache lock is held just long enough to read or swap an entry; builds
    run outside it. Two callers racing on the same stale entry may both
    rebuild, and either result may end up cached.
    """

    def __init__(
        self,
        fetch: Callable[[str], bytes],
        default_factory: Callable[[], Segmenter] = MecabSegmenter,
        builder: Callable[[str, str, Segmenter], Segmenter] = build_user_dictionary_segmenter,
    ) -> None:
        self._fetch = fetch
        self._default_factory = default_factory
        self._builder = builder
        self._default: Segmenter | None = None
        self._default_lock = threading.Lock()
        self._entries: dict[str, SegmenterCacheEntry] = {}
        self._lock = threading.Lock()

    def default_segmenter(self) -> Segmenter:
        segmenter = self._default
        if segmenter is not None:
            return segmenter
        with self._default_lock:
            if self._default is None:
                logger.info("Building default segmenter")
                self._default = self._default_factory()
            return self._default

    def cached_entry(self, source: str) -> SegmenterCacheEntry | None:
        with self._lock:
            return self._entries.get(source)

    def resolve(self, dictionary_source: str | None = None) -> Segmenter:
        if dictionary_source is None:
            return self.default_segmenter()

        content = self._fetch(dictionary_source)
        content_hash = compute_content_hash(content)
        entry = self.cached_entry(dictionary_source)
        if entry is not None and entry.content_hash == content_hash:
            logger.debug("Reusing segmenter for %s (%s)", dictionary_source, content_hash[:12])
            return entry.segmenter

        try:
            text = content.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise SegmenterBuildError(dictionary_source, reason="dictionary is not utf-8") from exc

        logger.info(
            "Rebuilding segmenter for %s (hash %s)", dictionary_source, content_hash[:12]
        )
        segmenter = self._builder(dictionary_source, text, self.default_segmenter())
        with self._lock:
            self._entries[dictionary_source] = SegmenterCacheEntry(
                source=dictionary_source,
                content_hash=content_hash,
                segmenter=segmenter,
            )
        return segmenter
