# tests/unit/test_text.py
# Sanitizing of user-submitted text

from datetime import datetime, timezone

import pytest

from dit.utils.text import as_utc, clean_author, clean_field, sanitize_text


class TestSanitizeText:

    def test_removes_script_block_and_trims(self):
        assert sanitize_text("  <script>x</script>Hello  ") == "Hello"

    def test_removes_stray_script_tags_case_insensitive(self):
        assert sanitize_text("a<SCRIPT src='e.js'>b</Script>") == "a"
        assert sanitize_text("before <script type='x'> after") == "before  after"

    def test_strips_control_characters(self):
        assert sanitize_text("he\x00llo\x1f wor\x7fld\n") == "hello world"

    @pytest.mark.parametrize("value", ["", "   ", "<script></script>", "\x01\x02"])
    def test_empty_after_cleaning(self, value):
        assert sanitize_text(value) == ""

    def test_other_markup_is_left_alone(self):
        assert sanitize_text("<b>bold</b>") == "<b>bold</b>"


class TestCleanField:

    def test_truncates_after_sanitizing(self):
        assert clean_field("<script>zz</script>" + "a" * 300, 280) == "a" * 280

    def test_none_is_empty(self):
        assert clean_field(None, 10) == ""

    def test_author_defaults_to_anonymous(self):
        assert clean_author(None) == "Anonymous"
        assert clean_author("  ") == "Anonymous"
        assert clean_author("  Mo  ") == "Mo"


def test_naive_timestamps_are_read_as_utc():
    naive = datetime(2025, 1, 1, 10, 0)
    assert as_utc(naive) == datetime(2025, 1, 1, 10, 0, tzinfo=timezone.utc)
