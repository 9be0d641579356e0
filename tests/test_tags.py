import pytest

from pyinfuse.compiler.tags import TagMatch, TagMatcher


@pytest.mark.parametrize("names", [None, 0, [], "i18n", ["ok", ""], ["ok", 3]])
def test_invalid_tag_names(names):
    with pytest.raises(ValueError):
        TagMatcher.from_names(names)


def test_lengths_and_order():
    matcher = TagMatcher.from_names(["i18n", "date", "currency"])

    assert matcher.longest == 8
    assert matcher.shortest == 4
    # Longest alternatives come first.
    assert matcher.pattern.pattern.endswith("(currency|i18n|date)$")


def test_match_suffix():
    matcher = TagMatcher.from_names(["i18n", "date", "currency"])

    assert matcher.match_suffix("Total: i18n") == TagMatch("i18n", False, 4)
    assert matcher.match_suffix("Total: await currency") == TagMatch("currency", True, 14)
    assert matcher.match_suffix("date") == TagMatch("date", False, 4)


def test_no_match():
    matcher = TagMatcher.from_names(["i18n", "currency"])

    assert matcher.match_suffix("") is None
    assert matcher.match_suffix("i18") is None
    assert matcher.match_suffix("i18n ") is None
    assert matcher.match_suffix("currency!") is None


def test_longer_tag_wins():
    matcher = TagMatcher.from_names(["cy", "currency"])
    assert matcher.match_suffix("x currency").tag == "currency"
