"""Shared data structures used across modules."""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class PageMetadata:
    title: str
    thumbnail_url: str | None = None
    user_dictionary_url: str | None = None
