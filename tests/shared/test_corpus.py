"""Tests for the document corpus reader and frontmatter parsing."""

from pathlib import Path

from seoforge.shared.corpus import (
    document_key,
    parse_frontmatter,
    read_corpus,
    read_directory,
    split_body,
)


class TestDocumentKey:
    def test_strips_date_and_extension(self):
        assert document_key("2025-01-14-astoria-guide.md") == "astoria-guide"

    def test_no_date(self):
        assert document_key("park-slope.md") == "park-slope"

    def test_partial_date_kept(self):
        assert document_key("2025-01-astoria.md") == "2025-01-astoria"


class TestReadDirectory:
    def test_sorted_and_filtered(self, tmp_path: Path):
        (tmp_path / "b.md").write_text("B", encoding="utf-8")
        (tmp_path / "a.md").write_text("A", encoding="utf-8")
        (tmp_path / "TEMPLATE-post.md").write_text("T", encoding="utf-8")
        (tmp_path / "README.md").write_text("R", encoding="utf-8")
        (tmp_path / "notes.txt").write_text("N", encoding="utf-8")

        docs = read_directory(tmp_path, source="site")
        assert [d.filename for d in docs] == ["a.md", "b.md"]
        assert docs[0].source == "site"
        assert docs[0].path == tmp_path / "a.md"

    def test_missing_directory(self, tmp_path: Path):
        assert read_directory(tmp_path / "missing") == []


class TestReadCorpus:
    def test_root_order_preserved(self, tmp_path: Path):
        first = tmp_path / "first"
        second = tmp_path / "second"
        first.mkdir()
        second.mkdir()
        (first / "z.md").write_text("Z", encoding="utf-8")
        (second / "a.md").write_text("A", encoding="utf-8")

        docs = read_corpus([("site", first), ("seo", second)])
        assert [(d.source, d.filename) for d in docs] == [("site", "z.md"), ("seo", "a.md")]


class TestParseFrontmatter:
    def test_scalars_and_lists(self):
        text = (
            "---\n"
            'title: "Astoria Guide"\n'
            "slug: astoria-guide\n"
            "tags:\n"
            "  - astoria\n"
            "  - queens\n"
            "draft: false\n"
            "---\n"
            "Body"
        )
        fm = parse_frontmatter(text)
        assert fm["title"] == "Astoria Guide"
        assert fm["slug"] == "astoria-guide"
        assert fm["tags"] == ["astoria", "queens"]
        assert fm["draft"] == "false"

    def test_nested_list_entries(self):
        text = (
            "---\n"
            "faqItems:\n"
            '  - question: "One?"\n'
            '    answer: "Yes"\n'
            '  - question: "Two?"\n'
            '    answer: "No"\n'
            "author: Team\n"
            "---\n"
        )
        fm = parse_frontmatter(text)
        assert len(fm["faqItems"]) == 2
        assert fm["author"] == "Team"

    def test_no_frontmatter(self):
        assert parse_frontmatter("# Just a heading") == {}


class TestSplitBody:
    def test_removes_frontmatter(self):
        assert split_body("---\na: 1\n---\n\nBody text") == "Body text"

    def test_plain(self):
        assert split_body("Body text") == "Body text"
