import pytest

from app.config import settings
from app.exceptions import ConfigurationError
from app.services.phrases import PhraseMatcher


@pytest.fixture
def matcher():
    return PhraseMatcher(
        settings.retest_phrase,
        settings.whitelist_phrase,
        settings.ok_to_test_phrase,
    )


@pytest.fixture
def strict_matcher():
    return PhraseMatcher("retest", "add to whitelist", "ok to test")


def test_exact_retest_phrase_matches(strict_matcher):
    assert strict_matcher.is_retest("retest") is True


def test_retest_phrase_with_extra_words_does_not_match(strict_matcher):
    assert strict_matcher.is_retest("please retest") is False
    assert strict_matcher.is_retest("retest now") is False
    assert strict_matcher.is_retest("> retest\n\nno") is False


def test_unrelated_comment_is_not_a_command(strict_matcher):
    result = strict_matcher.classify("LGTM, thanks!")

    assert result.is_retest is False
    assert result.is_whitelist_request is False
    assert result.is_ok_to_test is False
    assert result.is_command is False


def test_classify_each_command(strict_matcher):
    assert strict_matcher.classify("retest").is_retest is True
    assert strict_matcher.classify("add to whitelist").is_whitelist_request is True
    assert strict_matcher.classify("ok to test").is_ok_to_test is True
    assert strict_matcher.classify("ok to test").is_command is True


def test_predicates_are_independent():
    matcher = PhraseMatcher(".*build.*", ".*build.*", "never")

    result = matcher.classify("build it")

    assert result.is_retest is True
    assert result.is_whitelist_request is True
    assert result.is_ok_to_test is False


def test_default_phrases(matcher):
    assert matcher.is_retest("test this please") is True
    assert matcher.is_retest("Jenkins, test this please.") is True
    assert matcher.is_whitelist_phrase("add to whitelist") is True
    assert matcher.is_ok_to_test("ok to test") is True
    assert matcher.is_ok_to_test("looks fine") is False


def test_default_phrases_do_not_span_lines(matcher):
    assert matcher.is_retest("first line\ntest this please") is False


def test_request_testing_comment_is_not_a_command(matcher):
    assert matcher.classify(settings.request_testing_phrase).is_command is False


def test_invalid_pattern_raises_configuration_error():
    with pytest.raises(ConfigurationError) as excinfo:
        PhraseMatcher("retest(", "add to whitelist", "ok to test")

    assert "retest" in str(excinfo.value)
