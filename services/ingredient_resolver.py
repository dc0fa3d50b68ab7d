"""
Ingredient name resolution against the master catalog.

Priority: exact slug match, then learned alias, then fuzzy match over the
catalog using Jaccard similarity of character bigrams.
"""

import logging
from abc import ABC, abstractmethod
from typing import List, Optional, Set, Tuple

from app.config import settings
from domain.enums import MatchType
from domain.models import MasterIngredient
from domain.schemas.ingredient_schemas import ResolveCandidate, ResolveResult
from repositories import UnitOfWork

logger = logging.getLogger("pantryledger.resolver")

EXACT_CONFIDENCE = 1.0
ALIAS_CONFIDENCE = 0.95


def bigram_set(text: str) -> Set[str]:
    """Size-2 sliding windows of ``text``"""
    return {text[i:i + 2] for i in range(len(text) - 1)}


def bigram_jaccard(a: str, b: str) -> float:
    """|A & B| / |A | B| over character bigrams; 0.0 when both sets are empty"""
    bigrams_a = bigram_set(a)
    bigrams_b = bigram_set(b)
    union = bigrams_a | bigrams_b
    if not union:
        return 0.0
    return len(bigrams_a & bigrams_b) / len(union)


class CatalogIndex(ABC):
    """Source of fuzzy candidates for the resolver"""

    @abstractmethod
    def candidates(self, normalized: str, floor: float) -> List[Tuple[MasterIngredient, float]]:
        """Catalog entries scoring strictly above ``floor``, unordered"""


class LinearScanCatalogIndex(CatalogIndex):
    """Scores every catalog entry on each call"""

    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    def candidates(self, normalized: str, floor: float) -> List[Tuple[MasterIngredient, float]]:
        scored = []
        for master in self.uow.ingredients.list_all():
            score = bigram_jaccard(normalized, master.canonical_name.lower())
            if score > floor:
                scored.append((master, score))
        return scored


class IngredientResolver:
    """Turns raw ingredient names into catalog entries"""

    def __init__(self, uow: UnitOfWork, index: Optional[CatalogIndex] = None):
        self.uow = uow
        self.index = index or LinearScanCatalogIndex(uow)

    def resolve(self, raw_name: str, category_hint: Optional[str] = None) -> ResolveResult:
        # Local import: IngredientService imports this module
        from services.ingredient_service import IngredientService

        normalized = IngredientService.normalize_name(raw_name)
        slug = IngredientService.slugify(normalized, strict=False)

        if slug:
            master = self.uow.ingredients.get_by_id(slug)
            if master is not None:
                return ResolveResult(
                    match_type=MatchType.EXACT,
                    master_id=master.id,
                    canonical_name=master.canonical_name,
                    confidence=EXACT_CONFIDENCE,
                )

        alias = self.uow.aliases.get_by_alias(normalized)
        if alias is not None:
            master = self.uow.ingredients.get_by_id(alias.master_id)
            return ResolveResult(
                match_type=MatchType.ALIAS,
                master_id=alias.master_id,
                canonical_name=master.canonical_name if master else None,
                confidence=ALIAS_CONFIDENCE,
            )

        ranked = self._rank(
            self.index.candidates(normalized, settings.fuzzy_candidate_floor),
            category_hint,
        )

        if ranked and ranked[0][1] > settings.fuzzy_match_floor:
            best, score = ranked[0]
            logger.debug("Fuzzy match '%s' -> %s (%.3f)", raw_name, best.id, score)
            return ResolveResult(
                match_type=MatchType.FUZZY,
                master_id=best.id,
                canonical_name=best.canonical_name,
                confidence=score,
                alternatives=[
                    self._candidate(m, s)
                    for m, s in ranked[1:1 + settings.fuzzy_max_alternatives]
                ],
            )

        if len(ranked) >= 2:
            logger.info("Ambiguous name '%s': %d candidates", raw_name, len(ranked))
            return ResolveResult(
                match_type=MatchType.AMBIGUOUS,
                confidence=ranked[0][1],
                alternatives=[
                    self._candidate(m, s)
                    for m, s in ranked[:settings.ambiguous_max_alternatives]
                ],
            )

        return ResolveResult(match_type=MatchType.UNKNOWN, confidence=0.0)

    @staticmethod
    def _rank(scored, category_hint: Optional[str]):
        hint = category_hint.value if hasattr(category_hint, "value") else category_hint
        # Highest score first; the hinted category wins ties
        return sorted(
            scored,
            key=lambda pair: (-pair[1], 0 if hint and pair[0].category == hint else 1, pair[0].id),
        )

    @staticmethod
    def _candidate(master: MasterIngredient, score: float) -> ResolveCandidate:
        return ResolveCandidate(
            master_id=master.id, canonical_name=master.canonical_name, score=score
        )
