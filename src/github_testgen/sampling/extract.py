"""Best-effort extraction of summaries and code from free-form model replies.

Each extraction is an ordered list of strategies; the first strategy that returns a
non-empty result wins.
"""

import re
from collections.abc import Callable, Sequence

SummaryStrategy = Callable[[str], list[str]]
CodeStrategy = Callable[[str], str | None]

TEST_CASE_BLOCK_PATTERN = re.compile(
    r"^[ \t]*[*-][ \t]+(?:\*\*)?Test Case \d+:.*?(?=\n[ \t]*[*-][ \t]+(?:\*\*)?Test Case \d+:|\Z)",
    re.DOTALL | re.MULTILINE | re.IGNORECASE,
)

PARAGRAPH_SEPARATOR_PATTERN = re.compile(r"\n[ \t]*\n")

CODE_LINE_PREFIXES: tuple[str, ...] = (
    "import",
    "from ",
    "def ",
    "class ",
    "test_",
    "describe(",
    "it(",
)


def extract_test_case_blocks(text: str) -> list[str]:
    """Extract bulleted `Test Case N:` blocks, each running up to the next block or the end of the text."""

    return [block for match in TEST_CASE_BLOCK_PATTERN.finditer(text) if (block := match.group(0).strip())]


def extract_paragraphs(text: str) -> list[str]:
    """Split the text on blank lines, dropping empty paragraphs."""

    return [paragraph for chunk in PARAGRAPH_SEPARATOR_PATTERN.split(text) if (paragraph := chunk.strip())]


SUMMARY_STRATEGIES: Sequence[SummaryStrategy] = (extract_test_case_blocks, extract_paragraphs)


def extract_summaries(text: str, strategies: Sequence[SummaryStrategy] = SUMMARY_STRATEGIES) -> list[str]:
    """Extract the ordered test case summaries from a model reply. Returns an empty list if nothing usable is found."""

    for strategy in strategies:
        if summaries := strategy(text):
            return summaries

    return []


def extract_fenced_blocks_from_text(text: str) -> list[str]:
    """Extract the inner text of all Markdown fenced code blocks in a text string."""

    lines = text.strip().split("\n")

    start_index: int | None = None

    matches: list[str] = []

    for i, line in enumerate(lines):
        if not line.lstrip().startswith("```"):
            continue

        if start_index is None:
            start_index = i + 1
            continue

        matches.append("\n".join(lines[start_index:i]))
        start_index = None

    return matches


def extract_fenced_code(text: str) -> str | None:
    """Return the trimmed inner text of the first fenced code block."""

    for block in extract_fenced_blocks_from_text(text):
        if code := block.strip():
            return code

    return None


def extract_code_lines(text: str) -> str | None:
    """Keep only the lines that look like imports, declarations or test functions."""

    lines: list[str] = [line for line in text.split("\n") if line.strip().startswith(CODE_LINE_PREFIXES)]

    return "\n".join(lines) if lines else None


CODE_STRATEGIES: Sequence[CodeStrategy] = (extract_fenced_code, extract_code_lines)


def extract_code(text: str, strategies: Sequence[CodeStrategy] = CODE_STRATEGIES) -> str:
    """Extract test code from a model reply, falling back to the full reply."""

    for strategy in strategies:
        if code := strategy(text):
            return code

    return text
