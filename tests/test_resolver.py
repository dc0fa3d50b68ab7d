"""
Tests for ingredient resolution, the master catalog and alias learning.

Covers:
- bigram Jaccard scoring
- exact, alias, fuzzy, ambiguous and unknown matches, including the
  confident-match boundary
- category hints as tie-breakers
- get_or_create idempotency and alias last-write-wins
"""

import pytest

from test_fixtures import db_session, engine, uow, seed_catalog
from app.exceptions import NotFoundError, ServiceValidationError
from domain.enums import AliasSource, MatchType
from domain.models import MasterIngredient
from domain.schemas.ingredient_schemas import MasterIngredientCorrection
from services.ingredient_resolver import (
    CatalogIndex,
    IngredientResolver,
    bigram_jaccard,
    bigram_set,
)
from services.ingredient_service import IngredientService


# =============================================================================
# SCORING
# =============================================================================


def test_bigram_set_uses_sliding_windows():
    assert bigram_set("tomato") == {"to", "om", "ma", "at"}
    assert bigram_set("a") == set()


def test_bigram_jaccard_edge_cases():
    assert bigram_jaccard("", "") == 0.0
    assert bigram_jaccard("a", "b") == 0.0
    assert bigram_jaccard("ab", "ab") == 1.0
    assert bigram_jaccard("tomato", "tomatos") == pytest.approx(0.8)


# =============================================================================
# RESOLUTION ORDER
# =============================================================================


def test_resolve_exact_is_case_and_whitespace_insensitive(uow):
    seed_catalog(uow, "Apple")

    for raw in ("Apple", "apple", "  APPLE "):
        result = IngredientService.resolve(uow, raw)
        assert result.match_type == MatchType.EXACT
        assert result.master_id == "apple"
        assert result.canonical_name == "Apple"
        assert result.confidence == 1.0
        assert result.alternatives == []


def test_resolve_alias_after_registration(uow):
    seed_catalog(uow, "Scallion")
    IngredientService.register_alias(uow, "Green Onions", "scallion")

    result = IngredientService.resolve(uow, "green onions")

    assert result.match_type == MatchType.ALIAS
    assert result.master_id == "scallion"
    assert result.canonical_name == "Scallion"
    assert result.confidence == 0.95


def test_exact_match_takes_priority_over_alias(uow):
    seed_catalog(uow, "Apple", "Scallion")
    IngredientService.register_alias(uow, "apple", "scallion")

    result = IngredientService.resolve(uow, "Apple")

    assert result.match_type == MatchType.EXACT
    assert result.master_id == "apple"


def test_resolve_fuzzy_returns_best_with_alternatives(uow):
    seed_catalog(uow, "Parmigiano Reggiano", "Parmigiano", "Apple")

    result = IngredientService.resolve(uow, "parmigiano regiano")

    assert result.match_type == MatchType.FUZZY
    assert result.master_id == "parmigiano-reggiano"
    assert result.confidence == pytest.approx(13 / 14)
    assert [a.master_id for a in result.alternatives] == ["parmigiano"]
    assert result.alternatives[0].score == pytest.approx(9 / 13)


def test_score_of_exactly_point_85_is_not_a_confident_match(uow):
    # 17 shared bigrams out of 20 -> 0.85
    seed_catalog(uow, "abcdefghijklmnopqrstu")

    result = IngredientService.resolve(uow, "abcdefghijklmnopqr")

    assert bigram_jaccard("abcdefghijklmnopqr", "abcdefghijklmnopqrstu") == pytest.approx(0.85)
    assert result.match_type == MatchType.UNKNOWN
    assert result.master_id is None
    assert result.confidence == 0.0


def test_score_just_above_point_85_is_fuzzy(uow):
    # 18 shared bigrams out of 21
    seed_catalog(uow, "abcdefghijklmnopqrstuv")

    result = IngredientService.resolve(uow, "abcdefghijklmnopqrs")

    assert result.match_type == MatchType.FUZZY
    assert result.master_id == "abcdefghijklmnopqrstuv"
    assert result.confidence == pytest.approx(18 / 21)


def test_resolve_ambiguous_without_master(uow):
    seed_catalog(uow, "Tomatoes", "Tomatos")

    result = IngredientService.resolve(uow, "tomato")

    assert result.match_type == MatchType.AMBIGUOUS
    assert result.master_id is None
    assert result.confidence == pytest.approx(0.8)
    assert [a.master_id for a in result.alternatives] == ["tomatos", "tomatoes"]


def test_resolve_unknown(uow):
    seed_catalog(uow, "Apple", "Banana")

    result = IngredientService.resolve(uow, "xylophone")

    assert result.match_type == MatchType.UNKNOWN
    assert result.master_id is None
    assert result.confidence == 0.0
    assert result.alternatives == []


def test_single_weak_candidate_is_unknown(uow):
    seed_catalog(uow, "Tomatos")

    result = IngredientService.resolve(uow, "tomato")

    assert result.match_type == MatchType.UNKNOWN


def test_category_hint_breaks_equal_scores(uow):
    seed_catalog(uow, "abcdeg", category="produce")
    seed_catalog(uow, "abcdeh", category="dairy")

    plain = IngredientService.resolve(uow, "abcdef")
    hinted = IngredientService.resolve(uow, "abcdef", category_hint="dairy")

    assert plain.match_type == MatchType.AMBIGUOUS
    assert [a.master_id for a in plain.alternatives] == ["abcdeg", "abcdeh"]
    assert [a.master_id for a in hinted.alternatives] == ["abcdeh", "abcdeg"]
    assert hinted.confidence == plain.confidence


def test_resolver_uses_supplied_catalog_index(uow):
    seed_catalog(uow, "Apple")
    apple = uow.ingredients.get_by_id("apple")

    class FixedIndex(CatalogIndex):
        def candidates(self, normalized, floor):
            return [(apple, 0.99)]

    result = IngredientResolver(uow, index=FixedIndex()).resolve("anything")

    assert result.match_type == MatchType.FUZZY
    assert result.master_id == "apple"


def test_resolve_rejects_empty_name(uow):
    with pytest.raises(ServiceValidationError):
        IngredientService.resolve(uow, "   ")


# =============================================================================
# CATALOG
# =============================================================================


def test_slugify():
    assert IngredientService.slugify("Olive Oil") == "olive-oil"
    assert IngredientService.slugify("  Crème fraîche! ") == "cr-me-fra-che"
    assert IngredientService.slugify("--Extra  Virgin--") == "extra-virgin"
    with pytest.raises(ServiceValidationError):
        IngredientService.slugify("!!!")


def test_get_or_create_is_idempotent_on_slug(uow):
    first = seed_catalog(uow, "olive oil")
    second = seed_catalog(uow, "Olive  Oil!")

    assert first == second == ["olive-oil"]
    master = uow.ingredients.get_by_id("olive-oil")
    assert master.canonical_name == "Olive Oil"
    assert master.category == "unknown"
    assert uow.db.query(MasterIngredient).count() == 1


def test_get_or_create_keeps_existing_row(uow):
    seed_catalog(uow, "Butter", category="dairy")
    seed_catalog(uow, "butter", category="pantry")

    assert uow.ingredients.get_by_id("butter").category == "dairy"


def test_correct_ingredient_updates_catalog(uow):
    seed_catalog(uow, "Cilantro")

    corrected = IngredientService.correct_ingredient(
        uow,
        "cilantro",
        MasterIngredientCorrection(canonical_name="Coriander Leaves", category="produce"),
    )

    assert corrected.id == "cilantro"
    assert corrected.canonical_name == "Coriander Leaves"
    assert corrected.category == "produce"


def test_correct_unknown_ingredient(uow):
    with pytest.raises(NotFoundError):
        IngredientService.correct_ingredient(
            uow, "missing", MasterIngredientCorrection(category="produce")
        )


# =============================================================================
# ALIASES
# =============================================================================


def test_alias_last_write_wins(uow):
    seed_catalog(uow, "Scallion", "Spring Onion")

    IngredientService.register_alias(uow, "green onions", "scallion", AliasSource.AGENT)
    IngredientService.register_alias(
        uow, "Green Onions", "spring-onion", AliasSource.USER_CORRECTION
    )

    alias = uow.aliases.get_by_alias("green onions")
    assert alias.master_id == "spring-onion"
    assert alias.source == "user_correction"
    assert [a.alias for a in IngredientService.list_aliases(uow, "spring-onion")] == ["green onions"]
    assert IngredientService.list_aliases(uow, "scallion") == []


def test_alias_requires_existing_master(uow):
    with pytest.raises(NotFoundError):
        IngredientService.register_alias(uow, "green onions", "missing")


def test_alias_rejects_empty_name(uow):
    seed_catalog(uow, "Scallion")
    with pytest.raises(ServiceValidationError):
        IngredientService.register_alias(uow, "  ", "scallion")
