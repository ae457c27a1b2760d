# src/models/search_candidate.py

"""Unverified cross-platform listing proposed by candidate discovery."""

from dataclasses import dataclass, field
from typing import Any


@dataclass
class SearchCandidate:
    """A candidate URL for the same product on another platform."""

    platform: str
    url: str
    title: str = ""
    raw_snippet_signals: dict[str, Any] = field(
        default_factory=lambda: dict[str, Any]()
    )
    platform_name: str = ""
    is_search_page: bool = False
