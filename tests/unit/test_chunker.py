"""Unit tests for Markdown section splitting."""

import pytest

from docchat.rag.chunker import MarkdownSectionSplitter
from docchat.rag.config import SearchConfig


@pytest.fixture
def splitter():
    return MarkdownSectionSplitter(SearchConfig(section_max_chars=200))


class TestHeadingSplit:
    """Tests for heading-based splitting."""

    def test_splits_before_each_heading(self, splitter):
        text = "# Intro\nWelcome.\n\n## Setup\nInstall it.\n\n## Usage\nRun it."

        sections = splitter.split(text)

        assert [s.content for s in sections] == [
            "# Intro\nWelcome.",
            "## Setup\nInstall it.",
            "## Usage\nRun it.",
        ]
        assert [s.section_index for s in sections] == [0, 1, 2]

    def test_text_before_first_heading_is_a_section(self, splitter):
        sections = splitter.split("Preamble text.\n\n# Title\nBody.")

        assert sections[0].content == "Preamble text."
        assert sections[1].content == "# Title\nBody."

    def test_headings_inside_code_fences_are_ignored(self, splitter):
        text = "# Config\nExample:\n```bash\n# not a heading\necho hi\n```\nDone."

        sections = splitter.split(text)

        assert len(sections) == 1
        assert "# not a heading" in sections[0].content

    def test_front_matter_is_removed(self, splitter):
        text = "---\ntitle: Hello\n---\n# Hello\nContent."

        sections = splitter.split(text)

        assert [s.content for s in sections] == ["# Hello\nContent."]

    def test_blank_document_has_no_sections(self, splitter):
        assert splitter.split("   \n\n  ") == []

    def test_windows_line_endings(self, splitter):
        sections = splitter.split("# A\r\nOne.\r\n# B\r\nTwo.")

        assert [s.content for s in sections] == ["# A\nOne.", "# B\nTwo."]


class TestLongSections:
    """Tests for splitting sections longer than the maximum."""

    def test_long_section_split_on_paragraphs(self, splitter):
        paragraphs = [f"Paragraph {i} " + "word " * 20 for i in range(4)]
        text = "# Long\n\n" + "\n\n".join(paragraphs)

        sections = splitter.split(text)

        assert len(sections) > 1
        assert all(len(s.content) <= 200 for s in sections)
        assert sections[0].content.startswith("# Long")

    def test_long_paragraph_split_on_sentences(self, splitter):
        sentence = "This sentence has a reasonable length for testing. "
        text = sentence * 10

        sections = splitter.split(text)

        assert len(sections) > 1
        assert all(len(s.content) <= 200 for s in sections)
        assert all(s.content.endswith(".") for s in sections)

    def test_unpunctuated_text_respects_maximum(self):
        splitter = MarkdownSectionSplitter(SearchConfig(section_max_chars=2000))

        sections = splitter.split("# Title\n\n" + "word " * 2000)

        assert len(sections) > 1
        assert all(len(s.content) <= 2000 for s in sections)
        assert sections[0].content.startswith("# Title\n\nword")
        assert all(s.content != "# Title" for s in sections)

    def test_text_without_whitespace_is_cut_at_maximum(self, splitter):
        sections = splitter.split("x" * 450)

        assert [len(s.content) for s in sections] == [200, 200, 50]

    def test_cut_happens_at_whitespace(self, splitter):
        sections = splitter.split("abcdefghi " * 50)

        assert all(len(s.content) <= 200 for s in sections)
        assert all(set(word) == set("abcdefghi") for s in sections for word in s.content.split())

    def test_heading_kept_with_long_paragraph(self, splitter):
        sentence = "Tokens authorize server side requests to the project. "
        sections = splitter.split("## Tokens\n\n" + sentence * 8)

        assert sections[0].content.startswith("## Tokens\n\nTokens authorize")
        assert all(len(s.content) <= 200 for s in sections)


class TestTokenCounts:
    """Tests for token counting."""

    def test_default_estimate(self, splitter):
        sections = splitter.split("# T\n" + "a" * 40)

        assert sections[0].token_count == len("# T\n" + "a" * 40) // 4

    def test_custom_token_counter(self):
        splitter = MarkdownSectionSplitter(
            SearchConfig(), token_counter=lambda text: len(text.split())
        )

        sections = splitter.split("# Title\nthree more words")

        assert sections[0].token_count == 5
