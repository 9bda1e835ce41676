"""Tests for phrase fingerprinting."""

from seoforge.uniqueness.fingerprint import (
    extract_phrases,
    fingerprint,
    strip_frontmatter,
    tokenize,
)


class TestTokenize:
    def test_drops_short_tokens(self):
        assert tokenize("The cat sat upon warm bricks") == ["upon", "warm", "bricks"]

    def test_strips_markdown_and_lowercases(self):
        assert tokenize("## **Brooklyn** [Brownstones](link)") == [
            "brooklyn",
            "brownstones",
            "link",
        ]

    def test_strips_leading_frontmatter(self):
        text = "---\ntitle: Ignored Words Here\n---\nvisible content body"
        assert tokenize(text) == ["visible", "content", "body"]


class TestStripFrontmatter:
    def test_no_frontmatter_unchanged(self):
        assert strip_frontmatter("plain text") == "plain text"

    def test_only_first_block_removed(self):
        text = "---\na: 1\n---\nbody\n---\nrule\n---"
        assert strip_frontmatter(text) == "\nbody\n---\nrule\n---"


class TestExtractPhrases:
    def test_four_token_windows_in_order(self):
        phrases = extract_phrases("alpha bravo charlie delta echo")
        assert phrases == ["alpha bravo charlie delta", "bravo charlie delta echo"]

    def test_exactly_four_tokens_gives_one_phrase(self):
        assert extract_phrases("alpha bravo charlie delta") == ["alpha bravo charlie delta"]

    def test_short_input_is_empty(self):
        assert extract_phrases("alpha bravo charlie") == []
        assert extract_phrases("") == []

    def test_short_words_do_not_count_toward_window(self):
        assert extract_phrases("the alpha and bravo for charlie") == []

    def test_duplicates_kept(self):
        phrases = extract_phrases("ring ring ring ring ring")
        assert phrases == ["ring ring ring ring", "ring ring ring ring"]

    def test_idempotent(self):
        text = "Quick brown foxes jumping over lazy sleeping dogs"
        assert extract_phrases(text) == extract_phrases(text)


class TestFingerprint:
    def test_collapses_duplicates(self):
        assert fingerprint("ring ring ring ring ring") == frozenset({"ring ring ring ring"})

    def test_empty_text(self):
        assert fingerprint("") == frozenset()
