# src/filters/product_matcher.py

"""Same-product check between an original listing and a candidate."""

import logging
import re

logger = logging.getLogger("pricewatch.filters")

_NON_WORD_RE = re.compile(r"[^\w\s]")
_NUMBER_RE = re.compile(r"\d{2,}")


def normalise_name(name: str) -> str:
    """Lowercase, drop punctuation and collapse whitespace."""
    stripped = _NON_WORD_RE.sub("", name.lower())
    return " ".join(stripped.split())


def critical_numbers(normalised: str) -> list[str]:
    """Every run of two or more digits (generations, storage, years)."""
    return _NUMBER_RE.findall(normalised)


class ProductMatcher:
    """Decide whether two listing titles denote the same variant.

    Numbers are strict: every 2+ digit number in the original title
    must also appear in the candidate's, or the candidate is a
    different variant.  Words are lenient: a candidate only needs to
    share ``threshold`` of the original's longer words, so reordering
    and suffixes like "(Renewed)" still match.
    """

    def __init__(self, threshold: float = 0.35) -> None:
        self.threshold = threshold

    def is_same_product(
        self,
        original_name: str | None,
        candidate_name: str | None,
    ) -> bool:
        """Return True when *candidate_name* is the same product."""
        if not original_name or not candidate_name:
            return False
        original = normalise_name(original_name)
        candidate = normalise_name(candidate_name)
        if not original or not candidate:
            return False

        candidate_numbers = set(critical_numbers(candidate))
        for number in critical_numbers(original):
            if number not in candidate_numbers:
                logger.debug(
                    "Rejected %r: number %s missing", candidate_name, number,
                )
                return False

        original_words = [w for w in original.split() if len(w) > 2]
        if not original_words:
            return False
        candidate_words = {w for w in candidate.split() if len(w) > 2}
        matches = sum(1 for w in original_words if w in candidate_words)
        ratio = matches / len(original_words)
        if ratio < self.threshold:
            logger.debug(
                "Rejected %r: word overlap %.2f < %.2f",
                candidate_name,
                ratio,
                self.threshold,
            )
            return False
        return True
