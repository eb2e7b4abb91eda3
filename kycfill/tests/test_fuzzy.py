import pytest

from kycfill.matching import DEFAULT_THRESHOLD, best_option_match, similarity


def test_similarity_ignores_case():
    assert similarity("United Kingdom", "united kingdom") == 1.0


def test_similarity_of_empty_strings_is_identity():
    assert similarity("", "") == 1.0
    assert similarity("", "France") == 0.0


def test_transposed_letters_score_by_edit_distance():
    # Two substitutions over seven characters.
    assert similarity("Germany", "Germnay") == pytest.approx(5 / 7)
    assert similarity("Germany", "Germnay") < DEFAULT_THRESHOLD


def test_unrelated_countries_fail_threshold():
    assert similarity("Germany", "France") < DEFAULT_THRESHOLD


def test_best_option_prefers_exact_then_case_insensitive():
    options = ["united kingdom", "United Kingdom", "United States"]

    exact = best_option_match("United Kingdom", options)
    assert exact is not None
    assert (exact.index, exact.method) == (1, "exact")

    folded = best_option_match("UNITED KINGDOM", options)
    assert folded is not None
    assert (folded.index, folded.method) == (0, "case_insensitive")


def test_best_option_fuzzy_picks_highest_score_above_threshold():
    options = ["Republic of Korea", "Repubilc of Korea.", "Republic of Koreaa"]

    match = best_option_match("Republic of Korea ", options[1:], threshold=0.9)

    assert match is not None
    assert match.method == "fuzzy"
    assert match.text == "Republic of Koreaa"
    assert match.score == pytest.approx(1 - 1 / 18)


def test_best_option_returns_none_below_threshold():
    assert best_option_match("Germany", ["France", "Spain"]) is None
    assert best_option_match("Germany", []) is None
