import re
from dataclasses import dataclass

from app.exceptions import ConfigurationError


@dataclass(frozen=True)
class CommentClassification:
    is_retest: bool
    is_whitelist_request: bool
    is_ok_to_test: bool

    @property
    def is_command(self) -> bool:
        return self.is_retest or self.is_whitelist_request or self.is_ok_to_test


class PhraseMatcher:
    """Recognize the trigger commands in pull request comments.

    A comment only counts when the whole text matches the configured pattern,
    so quoting a command inside a longer reply does not fire it unless the
    pattern itself allows surrounding text.
    """

    def __init__(
        self, retest_phrase: str, whitelist_phrase: str, ok_to_test_phrase: str
    ):
        self._retest = self._compile("retest", retest_phrase)
        self._whitelist = self._compile("whitelist", whitelist_phrase)
        self._ok_to_test = self._compile("ok to test", ok_to_test_phrase)

    @staticmethod
    def _compile(name: str, phrase: str) -> re.Pattern[str]:
        if phrase is None:
            raise ConfigurationError(f"Missing {name} phrase")
        try:
            return re.compile(phrase)
        except re.error as err:
            raise ConfigurationError(
                f"Invalid {name} phrase pattern {phrase!r}: {err}"
            ) from err

    def is_retest(self, comment: str) -> bool:
        return self._retest.fullmatch(comment) is not None

    def is_whitelist_phrase(self, comment: str) -> bool:
        return self._whitelist.fullmatch(comment) is not None

    def is_ok_to_test(self, comment: str) -> bool:
        return self._ok_to_test.fullmatch(comment) is not None

    def classify(self, comment: str) -> CommentClassification:
        return CommentClassification(
            is_retest=self.is_retest(comment),
            is_whitelist_request=self.is_whitelist_phrase(comment),
            is_ok_to_test=self.is_ok_to_test(comment),
        )
