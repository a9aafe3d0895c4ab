import re
from dataclasses import dataclass
from typing import Iterable, Optional

from ledger.domain import Category, TransactionType
from ledger.fingerprint import normalize_text

MIN_CONFIDENCE = 0.6
MIN_SUBCATEGORY_SCORE = 0.7
SUBCATEGORY_WEIGHT = 0.9


@dataclass(frozen=True)
class RuleMatch:
    confidence: float = 0.0
    category_id: Optional[str] = None
    subcategory: Optional[str] = None


NO_MATCH = RuleMatch()


def tokenize(value: str) -> list[str]:
    return [tok for tok in re.split(r"[^a-z0-9]+", normalize_text(value)) if tok]


def _overlap(tokens: list[str], desc_tokens: set[str]) -> float:
    if not tokens:
        return 0.0
    return sum(1 for tok in tokens if tok in desc_tokens) / len(tokens)


def infer_category(
    description: str, cats: Iterable[Category], tx_type: TransactionType
) -> RuleMatch:
    """Suggest a category for ``description`` from name/subcategory token overlap."""
    if not description or tx_type is TransactionType.TRANSFER:
        return NO_MATCH

    desc_tokens = set(tokenize(description))
    if not desc_tokens:
        return NO_MATCH

    best = NO_MATCH
    for c in cats:
        if c.type is not tx_type:
            continue
        category_score = _overlap(tokenize(c.name), desc_tokens)

        sub_score, best_sub = 0.0, None
        for sub in c.subcategories:
            score = _overlap(tokenize(sub), desc_tokens)
            if score > sub_score:
                sub_score, best_sub = score, sub

        combined = max(category_score, sub_score * SUBCATEGORY_WEIGHT)
        if combined > best.confidence:
            best = RuleMatch(
                confidence=combined,
                category_id=c.id,
                subcategory=best_sub if sub_score >= MIN_SUBCATEGORY_SCORE else None,
            )

    return best if best.confidence >= MIN_CONFIDENCE else NO_MATCH
