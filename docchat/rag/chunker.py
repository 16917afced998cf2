"""
Section Splitting for Indexing

Splits a Markdown document into sections that are embedded and retrieved
independently.

Strategy:
- Split on Markdown headings first, keeping each heading with its body
- If a section is longer than the configured maximum, split it on paragraph
  boundaries, then on sentences for single overlong paragraphs, and finally
  at whitespace (or mid-word) for text with no sentence punctuation
- Drop sections with no text
- Front matter (a leading ``---`` block) is not content and is removed
"""

import re
from dataclasses import dataclass
from typing import Callable, List, Optional

from .config import SearchConfig

_FRONT_MATTER = re.compile(r"\A---\s*\n.*?\n---\s*(\n|\Z)", re.DOTALL)
_HEADING = re.compile(r"^#{1,6}\s+\S", re.MULTILINE)
_FENCE = re.compile(r"^(```|~~~)")


@dataclass
class Section:
    """A section of a file with its token count."""
    content: str
    token_count: int
    section_index: int


class MarkdownSectionSplitter:
    """Splits Markdown text into sections."""

    def __init__(
        self,
        config: SearchConfig,
        token_counter: Optional[Callable[[str], int]] = None,
    ):
        """
        Initialize splitter.

        Args:
            config: Search configuration
            token_counter: Callable returning the token count of a string
                (defaults to a 4-characters-per-token estimate)
        """
        self.config = config
        self.max_chars = config.section_max_chars
        self.token_counter = token_counter or (lambda s: max(1, len(s) // 4))

    def split(self, text: str) -> List[Section]:
        """
        Split a document into sections.

        Args:
            text: Markdown document

        Returns:
            List of Section objects in document order
        """
        text = _FRONT_MATTER.sub("", text.replace("\r\n", "\n"), count=1)

        pieces: List[str] = []
        for block in self._split_headings(text):
            if len(block) > self.max_chars:
                pieces.extend(self._split_paragraphs(block))
            else:
                pieces.append(block)

        sections = []
        for piece in pieces:
            piece = piece.strip()
            if not piece:
                continue
            sections.append(
                Section(
                    content=piece,
                    token_count=self.token_counter(piece),
                    section_index=len(sections),
                )
            )
        return sections

    def _split_headings(self, text: str) -> List[str]:
        """Split before every heading line that is not inside a code fence."""
        blocks: List[str] = []
        current: List[str] = []
        in_fence = False

        for line in text.split("\n"):
            if _FENCE.match(line.strip()):
                in_fence = not in_fence
            elif not in_fence and _HEADING.match(line) and current:
                blocks.append("\n".join(current))
                current = []
            current.append(line)

        if current:
            blocks.append("\n".join(current))
        return blocks

    def _split_paragraphs(self, text: str) -> List[str]:
        """Greedily pack paragraphs into pieces of at most ``max_chars``."""
        paragraphs = [p.strip() for p in re.split(r"\n\s*\n", text) if p.strip()]

        pieces: List[str] = []
        current = ""
        for para in paragraphs:
            if current and len(current) + len(para) + 2 <= self.max_chars:
                current = f"{current}\n\n{para}"
                continue

            if _is_heading_line(current):
                # A heading is never a section on its own
                para = f"{current}\n\n{para}"
            elif current:
                pieces.append(current)
            current = ""

            if len(para) > self.max_chars:
                pieces.extend(self._split_sentences(para))
            else:
                current = para

        if current:
            pieces.append(current)
        return pieces

    def _split_sentences(self, text: str) -> List[str]:
        """Split a long paragraph by sentences."""
        sentences = re.split(r"(?<=[.!?])\s+", text)

        pieces: List[str] = []
        current = ""
        for sentence in sentences:
            if current and len(current) + len(sentence) + 1 > self.max_chars:
                pieces.append(current)
                current = sentence
            else:
                current = f"{current} {sentence}" if current else sentence

        if current:
            pieces.append(current)

        result: List[str] = []
        for piece in pieces:
            if len(piece) > self.max_chars:
                result.extend(self._split_hard(piece))
            else:
                result.append(piece)
        return result

    def _split_hard(self, text: str) -> List[str]:
        """Cut text with no usable boundaries at the last whitespace before the limit."""
        pieces: List[str] = []
        while len(text) > self.max_chars:
            window = text[:self.max_chars + 1]
            cut = max(window.rfind(" "), window.rfind("\n"), window.rfind("\t"))
            if cut <= 0:
                cut = self.max_chars
            pieces.append(text[:cut].rstrip())
            text = text[cut:].lstrip()

        if text:
            pieces.append(text)
        return pieces


def _is_heading_line(text: str) -> bool:
    return bool(text) and "\n" not in text and _HEADING.match(text) is not None
