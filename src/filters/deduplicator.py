# src/filters/deduplicator.py

"""Deduplication of scored listings that resolved to the same page."""

import logging
import re

from src.models.results import ScoredFact

logger = logging.getLogger("pricewatch.filters")


class ListingDeduplicator:
    """Remove listings whose resolved source URL is the same page."""

    # Query params and fragments don't affect the listing identity
    _STRIP_PARAMS_RE = re.compile(
        r"[?#].*$"
    )

    @staticmethod
    def _normalise_url(url: str) -> str:
        """Normalise a product URL for dedup comparison.

        Strips query parameters, fragments, trailing slashes,
        a leading ``www.``, and lowercases the result.
        """
        if not url:
            return ""
        cleaned = ListingDeduplicator._STRIP_PARAMS_RE.sub(
            "", url
        )
        cleaned = cleaned.rstrip("/").lower()
        return cleaned.replace("://www.", "://", 1)

    @staticmethod
    def _better(candidate: ScoredFact, kept: ScoredFact) -> bool:
        """Prefer the higher score, then the lower price."""
        if candidate.deal_score.score != kept.deal_score.score:
            return candidate.deal_score.score > kept.deal_score.score
        return candidate.fact.current_price < kept.fact.current_price

    @staticmethod
    def deduplicate(
        listings: list[ScoredFact],
    ) -> tuple[list[ScoredFact], int]:
        """Collapse listings that share a normalised source URL.

        Two search entry points can lead the extractor to the same
        canonical product page; only one copy is kept.

        Returns the deduplicated list and the count of removed dupes.
        """
        if not listings:
            return [], 0

        seen_urls: dict[str, int] = {}
        kept: list[ScoredFact] = []
        removed = 0

        for listing in listings:
            norm_url = ListingDeduplicator._normalise_url(
                listing.fact.source_url
            )
            if norm_url and norm_url in seen_urls:
                existing_idx = seen_urls[norm_url]
                if ListingDeduplicator._better(
                    listing, kept[existing_idx]
                ):
                    kept[existing_idx] = listing
                removed += 1
                continue

            if norm_url:
                seen_urls[norm_url] = len(kept)
            kept.append(listing)

        if removed:
            logger.info(
                "Deduplication removed %d duplicate listings",
                removed,
            )

        return kept, removed
