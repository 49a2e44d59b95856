"""Decision ledger and decision file parsing.

Decisions come from two places inside the squad folder:

- ``decisions.md``: a ledger holding many decisions, one per heading.
- ``decisions/``: one decision per Markdown file, scanned recursively.

Only certain heading shapes count as a decision in the ledger:

    level  shape                               example
    1-3    ``Decision: Title``                 ``## Decision: Use SQLite``
    2-3    ``YYYY-MM-DD[/DD][:] Title``        ``### 2026-02-14/15: Title``
    2      plain title with a ``**Date:**``    ``## Adopt trunk-based dev``
           line

Anything else (including the ledger's own ``# Decisions`` title) is structure,
and generic subsection names such as "Context" or "Rationale" never start a
decision. A decision's content runs until the next heading at its own level or
higher, or the next decision heading.
"""

import logging
import re
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from ..utils.datetime_utils import first_date
from ..utils.markdown_parser import MarkdownParser, normalize_eol, strip_inline_markup
from ..utils.squad_folder import DECISIONS_DIR, DECISIONS_FILE
from .models import DecisionEntry

logger = logging.getLogger(__name__)

UNTITLED = "Untitled Decision"

HEADING_DATE_PATTERN = re.compile(r"^(\d{4}-\d{2}-\d{2})(?:/\d{1,2})?:?\s*(.*)$")
DECISION_PREFIX_PATTERN = re.compile(r"^decision:\s*(.*)$", re.IGNORECASE)
EDITORIAL_PREFIXES = (
    re.compile(r"^(?:design|architecture|architectural)\s+decision:\s*", re.IGNORECASE),
    re.compile(r"^decision:\s*", re.IGNORECASE),
    re.compile(r"^ADR(?:[-\s]?\d+)?:\s*", re.IGNORECASE),
    re.compile(r"^proposal:\s*", re.IGNORECASE),
    re.compile(r"^user directive\s*[—–\-]\s*", re.IGNORECASE),
)
MALFORMED_HEADING_PREFIX = re.compile(r"^#+\s+")

# Generic subsection names that never start a decision on their own.
SUBSECTION_TITLES = {
    "context", "vision", "rationale", "decision", "decisions", "background",
    "consequences", "alternatives", "alternatives considered", "status",
    "impact", "implementation", "implementation details", "open questions",
    "related issues", "next steps", "outcome", "summary", "overview", "notes",
    "references", "goals", "non-goals", "risks", "problem statement",
}
SUBSECTION_PREFIXES = ("items deferred",)

# Ledger heading levels accepted per shape.
DECISION_PREFIX_LEVELS = (1, 2, 3)
DATED_HEADING_LEVELS = (2, 3)
PLAIN_HEADING_LEVELS = (2,)


@dataclass
class _Heading:
    line: int
    level: int
    text: str


def normalize_title(title: str) -> str:
    """Strip editorial prefixes and stray markup from a decision title."""
    cleaned = MALFORMED_HEADING_PREFIX.sub("", title.strip())
    for pattern in EDITORIAL_PREFIXES:
        cleaned = pattern.sub("", cleaned)
    return strip_inline_markup(cleaned).strip()


def is_subsection_title(title: str) -> bool:
    lowered = title.strip().lower().rstrip(":")
    return lowered in SUBSECTION_TITLES or lowered.startswith(SUBSECTION_PREFIXES)


def extract_date(content: str | None, heading_date: str | None = None) -> str | None:
    """``**Date:**`` metadata beats the heading date; ranges give their first day."""
    if content:
        value = MarkdownParser(content).get_label_value("Date")
        date = first_date(value)
        if date:
            return date
    return heading_date


def extract_author(content: str | None) -> str | None:
    """``**Author:**`` beats ``**By:**``."""
    if not content:
        return None
    parser = MarkdownParser(content)
    value = parser.get_label_value("Author") or parser.get_label_value("By")
    return strip_inline_markup(value) if value else None


def sort_decisions(decisions: list[DecisionEntry]) -> list[DecisionEntry]:
    """Newest first, undated last; ties ordered by title, file and line."""
    ordered = sorted(decisions, key=lambda d: (d.title, str(d.file_path), d.line_number))
    # sorted() is stable with reverse=True, so tie order survives.
    return sorted(ordered, key=lambda d: d.date or "", reverse=True)


class DecisionParser:
    """Parses decision ledgers and standalone decision files."""

    def parse_ledger(self, content: str, file_path: Path) -> list[DecisionEntry]:
        lines = normalize_eol(content or "").split("\n")
        headings = self._headings(lines)

        shapes = [self._classify(h, headings, i, lines) for i, h in enumerate(headings)]

        decisions = []
        for index, heading in enumerate(headings):
            if shapes[index] is None:
                continue
            title, heading_date = shapes[index]

            end = len(lines)
            for later_index in range(index + 1, len(headings)):
                later = headings[later_index]
                if later.level <= heading.level or shapes[later_index] is not None:
                    end = later.line
                    break

            body = "\n".join(lines[heading.line + 1:end]).strip() or None
            decisions.append(
                DecisionEntry(
                    title=title or UNTITLED,
                    file_path=file_path,
                    line_number=heading.line,
                    date=extract_date(body, heading_date),
                    author=extract_author(body),
                    content=body,
                )
            )
        return decisions

    def parse_file(self, path: Path) -> DecisionEntry | None:
        """Parse a standalone decision file; ``None`` when unreadable."""
        try:
            content = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("Error reading decision file %s: %s", path, exc)
            return None

        parser = MarkdownParser(content)
        line_number = 0
        title = UNTITLED
        heading_date = None
        body = parser.content

        h1 = next((h for h in self._headings(parser.lines) if h.level == 1), None)
        first = parser.get_first_heading()
        if h1 is not None:
            line_number, heading_text = h1.line, h1.text
        elif first is not None:
            line_number, heading_text = first[0], first[2]
        else:
            heading_text = None

        if heading_text is not None:
            match = HEADING_DATE_PATTERN.match(heading_text.strip())
            if match:
                heading_date = match.group(1)
                heading_text = match.group(2)
            title = normalize_title(heading_text) or UNTITLED
            body = "\n".join(parser.lines[line_number + 1:])

        body = body.strip() or None
        date = extract_date(body, heading_date) or self._file_created_date(path)
        return DecisionEntry(
            title=title,
            file_path=path,
            line_number=line_number,
            date=date,
            author=extract_author(body),
            content=body,
        )

    def scan_directory(self, directory: Path) -> list[DecisionEntry]:
        """Parse every ``.md`` file below ``directory``; unreadable files are skipped."""
        if not directory.is_dir():
            return []
        decisions = []
        for path in sorted(directory.rglob("*.md")):
            if not path.is_file():
                continue
            decision = self.parse_file(path)
            if decision is not None:
                decisions.append(decision)
        return decisions

    def load_decisions(self, squad_dir: Path) -> list[DecisionEntry]:
        """Ledger plus directory decisions, sorted newest first."""
        decisions: list[DecisionEntry] = []
        ledger = squad_dir / DECISIONS_FILE
        if ledger.is_file():
            try:
                decisions.extend(self.parse_ledger(ledger.read_text(encoding="utf-8"), ledger))
            except (OSError, UnicodeDecodeError) as exc:
                logger.warning("Error reading decision ledger %s: %s", ledger, exc)
        decisions.extend(self.scan_directory(squad_dir / DECISIONS_DIR))
        return sort_decisions(decisions)

    @staticmethod
    def _headings(lines: list[str]) -> list[_Heading]:
        headings = []
        for line_num, line in enumerate(lines):
            match = MarkdownParser.HEADING_PATTERN.match(line.strip())
            if match:
                headings.append(_Heading(line_num, len(match.group(1)), match.group(2).strip()))
        return headings

    @staticmethod
    def _classify(
        heading: _Heading,
        headings: list[_Heading],
        index: int,
        lines: list[str],
    ) -> tuple[str, str | None] | None:
        """Return ``(title, heading_date)`` when the heading starts a decision."""
        text = MALFORMED_HEADING_PREFIX.sub("", heading.text)

        prefix = DECISION_PREFIX_PATTERN.match(text)
        if prefix and heading.level in DECISION_PREFIX_LEVELS:
            rest = prefix.group(1)
            dated = HEADING_DATE_PATTERN.match(rest)
            if dated:
                return normalize_title(dated.group(2)), dated.group(1)
            return normalize_title(rest), None

        dated = HEADING_DATE_PATTERN.match(text)
        if dated and heading.level in DATED_HEADING_LEVELS:
            title = normalize_title(dated.group(2))
            if title and is_subsection_title(title):
                return None
            return title, dated.group(1)

        if heading.level not in PLAIN_HEADING_LEVELS:
            return None
        title = normalize_title(text)
        if not title or is_subsection_title(title):
            return None
        # Only the heading's own body counts, not nested subsections.
        end = headings[index + 1].line if index + 1 < len(headings) else len(lines)
        section = "\n".join(lines[heading.line + 1:end])
        if MarkdownParser(section).get_label_value("Date"):
            return title, None
        return None

    @staticmethod
    def _file_created_date(path: Path) -> str | None:
        try:
            stat = path.stat()
        except OSError:
            return None
        created = getattr(stat, "st_birthtime", None) or stat.st_ctime
        return datetime.fromtimestamp(created).strftime("%Y-%m-%d")
