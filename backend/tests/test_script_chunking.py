"""
Tests for script chunking and speech cleanup.
"""

import pytest

from lib.podcasts.script import (
    chunk_script,
    clean_for_speech,
    estimate_reading_time,
    script_failure_placeholder,
)

LONG_SCRIPT = " ".join(
    f"Sentence number {i} explains one more detail about the announcement." for i in range(120)
)


class TestChunkScript:
    """Tests for chunk_script."""

    def test_short_script_single_chunk(self):
        assert chunk_script("  Hello world.  ", max_chars=100) == ["Hello world."]

    def test_breaks_after_late_sentence_end(self):
        script = "First sentence here. Second one follows."

        assert chunk_script(script, max_chars=25) == ["First sentence here.", "Second one follows."]

    def test_hard_cut_without_sentence_end(self):
        chunks = chunk_script("a" * 100, max_chars=40)

        assert [len(c) for c in chunks] == [40, 40, 20]

    def test_early_sentence_end_is_ignored(self):
        script = "Hi. " + "b" * 60

        chunks = chunk_script(script, max_chars=30)

        assert chunks[0] == "Hi. " + "b" * 26

    def test_every_chunk_fits(self):
        chunks = chunk_script(LONG_SCRIPT, max_chars=500)

        assert len(chunks) > 1
        assert all(0 < len(c) <= 500 for c in chunks)

    def test_no_text_lost(self):
        chunks = chunk_script(LONG_SCRIPT, max_chars=500)

        assert "".join(chunks).replace(" ", "") == LONG_SCRIPT.replace(" ", "")

    def test_chunks_end_on_sentences_when_possible(self):
        chunks = chunk_script(LONG_SCRIPT, max_chars=500)

        assert all(c.endswith(".") for c in chunks)

    def test_whitespace_only(self):
        assert chunk_script("   \n  ") == []

    def test_empty(self):
        assert chunk_script("") == []

    def test_invalid_max_chars(self):
        with pytest.raises(ValueError):
            chunk_script("text", max_chars=0)


class TestCleanForSpeech:
    """Tests for clean_for_speech."""

    def test_bold_and_italic(self):
        assert clean_for_speech("**OpenAI** ships *fast* models") == "OpenAI ships fast models"

    def test_links_keep_text(self):
        assert clean_for_speech("Read [the post](https://example.com) today") == "Read the post today"

    def test_citations_removed(self):
        assert clean_for_speech("Revenue doubled [1] this year [2].") == "Revenue doubled this year ."

    def test_headings_removed(self):
        assert clean_for_speech("## Top story\nGPT-5 is out") == "Top story\nGPT-5 is out"

    def test_underscores(self):
        assert clean_for_speech("_really_ big news for snake_case fans") == "really big news for snake_case fans"

    def test_collapses_blank_lines(self):
        assert clean_for_speech("One.\n\n\n\nTwo.") == "One.\n\nTwo."


class TestScriptHelpers:
    """Tests for the small script helpers."""

    def test_placeholder_mentions_headline(self):
        text = script_failure_placeholder("**Chip export rules tighten**")

        assert "**Chip export rules tighten**" in text
        assert "move on to the next story" in text

    def test_reading_time(self):
        assert estimate_reading_time("word " * 150) == 60
        assert estimate_reading_time("") == 0
