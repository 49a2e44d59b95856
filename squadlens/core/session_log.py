"""Session log parsing.

Two log streams live in the squad folder:

- ``orchestration-log/``: active work. These entries drive member status and
  task derivation.
- ``log/``: narrative history. Parsed the same way but only ever displayed.

Filenames follow ``YYYY-MM-DD-topic.md`` or ``YYYY-MM-DDThhmm-topic.md``.
"""

import logging
import re
from datetime import datetime
from pathlib import Path

from ..utils.datetime_utils import DATE_PATTERN, first_date, parse_iso
from ..utils.markdown_parser import MarkdownParser, split_list, strip_inline_markup
from ..utils.squad_folder import ACTIVE_LOG_DIR, NARRATIVE_LOG_DIR
from .models import LogEntry, LogSource, WorkItem

logger = logging.getLogger(__name__)

NO_SUMMARY = "No summary available"

FILENAME_PATTERN = re.compile(r"^(\d{4}-\d{2}-\d{2})(?:T(\d{2}):?(\d{2}))?(?:-(.+))?\.md$")
ISSUE_REF_PATTERN = re.compile(r"(?<![\w&/])#(\d+)\b")
HEADING_DATE_PREFIX = re.compile(r"^\d{4}-\d{2}-\d{2}(?:[T ]\d{1,2}:?\d{2}(?::\d{2})?Z?)?(?:/\d{2})?\s*[:\-–—]?\s*")
METADATA_LINE = re.compile(r"^\*\*[^*]+?(?::\*\*|\*\*:)")
TIME_ONLY = re.compile(r"^(\d{1,2}):(\d{2})$")
PARENTHETICAL_SUFFIX = re.compile(r"\s*\(.*?\)\s*$")
BOLD_AGENT_ITEM = re.compile(r"^\s*[-*]\s+\*\*(.+?):?\*\*:?\s*(.*)$")
AGENT_ROUTED_ROW = re.compile(r"\|\s*\*\*Agent routed\*\*\s*\|\s*([^\n]+)", re.IGNORECASE)

COMPLETION_PATTERN = re.compile(
    r"(?<!\w)(?:closed|closes|fixed|fixes|resolved|resolves|completed|done|merged)(?!\w)|✅",
    re.IGNORECASE,
)

WHO_WORKED_HEADERS = {"agent", "name", "member", "who"}


def is_completion_signal(text: str | None) -> bool:
    """Return True when an outcome line says its work is finished.

    Matches closure verbs on word boundaries, so "working on #12" or
    "undone" are not signals.
    """
    if not text:
        return False
    return COMPLETION_PATTERN.search(text) is not None


def issue_refs(text: str) -> list[str]:
    """All ``#N`` references in order of first appearance."""
    seen: list[str] = []
    for match in ISSUE_REF_PATTERN.finditer(text):
        ref = f"#{match.group(1)}"
        if ref not in seen:
            seen.append(ref)
    return seen


def _clean_name(value: str) -> str:
    return PARENTHETICAL_SUFFIX.sub("", strip_inline_markup(value)).strip()


def _dedupe(names: list[str]) -> list[str]:
    result: list[str] = []
    for name in names:
        if name and name not in result:
            result.append(name)
    return result


class SessionLogParser:
    """Parses session log Markdown into ``LogEntry`` records."""

    def parse_content(
        self,
        content: str,
        filename: str,
        source: LogSource = LogSource.ACTIVE,
    ) -> LogEntry:
        parser = MarkdownParser(content or "")
        file_date, file_time, file_topic = self._parse_filename(filename)
        heading = parser.get_first_heading()
        heading_text = heading[2] if heading else None

        date = (
            first_date(parser.get_label_value("Date"))
            or self._heading_date(heading_text)
            or file_date
            or datetime.now().strftime("%Y-%m-%d")
        )
        topic = file_topic or self._slug(heading_text) or "unknown"

        return LogEntry(
            timestamp=self._timestamp(parser, date, file_time),
            date=date,
            topic=topic,
            participants=self._participants(parser),
            summary=self._summary(parser),
            related_issues=self._related_issues(parser),
            decisions=self._list_section(parser, "Decisions"),
            outcomes=self._list_section(parser, "Outcomes"),
            title=self._heading_title(heading_text),
            work_items=self._work_items(parser),
            source=source,
        )

    def parse_file(self, path: Path, source: LogSource = LogSource.ACTIVE) -> LogEntry | None:
        """Parse a single log file; ``None`` when it cannot be read."""
        try:
            content = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("Failed to read log file %s: %s", path, exc)
            return None
        entry = self.parse_content(content, path.name, source)
        entry.file_path = path
        return entry

    def parse_files(self, paths: list[Path], source: LogSource = LogSource.ACTIVE) -> list[LogEntry]:
        """Parse many files, skipping failures, newest first."""
        entries = []
        for path in paths:
            entry = self.parse_file(path, source)
            if entry is not None:
                entries.append(entry)
        return sort_newest_first(entries)

    # Discovery

    @staticmethod
    def _discover(directory: Path) -> list[Path]:
        if not directory.is_dir():
            return []
        return sorted(
            path
            for path in directory.glob("*.md")
            if path.is_file() and not path.name.lower().startswith("readme")
        )

    def discover_active_files(self, squad_dir: Path) -> list[Path]:
        return self._discover(squad_dir / ACTIVE_LOG_DIR)

    def discover_narrative_files(self, squad_dir: Path) -> list[Path]:
        return self._discover(squad_dir / NARRATIVE_LOG_DIR)

    def load_active(self, squad_dir: Path) -> list[LogEntry]:
        return self.parse_files(self.discover_active_files(squad_dir), LogSource.ACTIVE)

    def load_narrative(self, squad_dir: Path) -> list[LogEntry]:
        return self.parse_files(self.discover_narrative_files(squad_dir), LogSource.NARRATIVE)

    # Field extraction

    @staticmethod
    def _parse_filename(filename: str) -> tuple[str | None, str | None, str | None]:
        match = FILENAME_PATTERN.match(Path(filename).name)
        if not match:
            return None, None, None
        date, hour, minute, topic = match.groups()
        time = f"{hour}:{minute}" if hour else None
        return date, time, topic

    @staticmethod
    def _heading_date(heading_text: str | None) -> str | None:
        if not heading_text:
            return None
        match = DATE_PATTERN.match(heading_text.strip())
        return match.group(0) if match else None

    @staticmethod
    def _heading_title(heading_text: str | None) -> str | None:
        if not heading_text:
            return None
        if "—" in heading_text:
            title = heading_text.split("—", 1)[1].strip()
        else:
            title = HEADING_DATE_PREFIX.sub("", heading_text.strip()).strip()
        return title or None

    @staticmethod
    def _slug(heading_text: str | None) -> str | None:
        if not heading_text:
            return None
        slug = re.sub(r"[^a-z0-9\s-]", "", heading_text.lower())
        slug = re.sub(r"\s+", "-", slug.strip())[:50].strip("-")
        return slug or None

    @staticmethod
    def _timestamp(parser: MarkdownParser, date: str, file_time: str | None) -> str:
        value = parser.get_label_value("Timestamp", "Time")
        if value:
            time_match = TIME_ONLY.match(value)
            if time_match:
                return f"{date}T{int(time_match.group(1)):02d}:{time_match.group(2)}:00Z"
            return value
        if file_time:
            return f"{date}T{file_time}:00Z"
        return f"{date}T00:00:00Z"

    def _participants(self, parser: MarkdownParser) -> list[str]:
        value = parser.get_label_value("Participants", "Participant")
        if value:
            return _dedupe(split_list(value))

        value = parser.get_label_value("Who worked")
        if value:
            return _dedupe(split_list(value))

        match = AGENT_ROUTED_ROW.search(parser.content)
        if match:
            names = [_clean_name(part.replace("|", "")) for part in split_list(match.group(1))]
            names = _dedupe(names)
            if names:
                return names

        section = parser.extract_section("Who Worked")
        if section:
            rows = MarkdownParser.table_rows(section)
            if rows:
                names = []
                for row in rows:
                    first = _clean_name(next(iter(row.values()), ""))
                    if first and first.lower() not in WHO_WORKED_HEADERS:
                        names.append(first)
                if names:
                    return _dedupe(names)
            names = _dedupe([_clean_name(item) for item in MarkdownParser.list_items(section)])
            if names:
                return names

        for title in ("What Happened", "What Was Done"):
            section = parser.extract_section(title)
            if not section:
                continue
            names = []
            for line in section.split("\n"):
                item = BOLD_AGENT_ITEM.match(line)
                if item:
                    names.append(_clean_name(item.group(1)))
            names = _dedupe(names)
            if names:
                return names

        return []

    def _summary(self, parser: MarkdownParser) -> str:
        section = parser.extract_section("Summary")
        if section:
            return section

        outcome = parser.get_table_value("Outcome")
        if outcome:
            cleaned = strip_inline_markup(outcome)
            if cleaned:
                return cleaned

        return self._first_paragraph(parser) or NO_SUMMARY

    @staticmethod
    def _first_paragraph(parser: MarkdownParser) -> str | None:
        """First prose paragraph: tables, quotes, lists and metadata are skipped."""
        paragraph: list[str] = []
        for line in parser.lines:
            trimmed = line.strip()
            if not trimmed:
                if paragraph:
                    break
                continue
            if MarkdownParser.HEADING_PATTERN.match(trimmed):
                if paragraph:
                    break
                continue
            if (
                trimmed.startswith(("|", ">"))
                or METADATA_LINE.match(trimmed)
                or MarkdownParser.LIST_ITEM_PATTERN.match(trimmed)
            ):
                if paragraph:
                    break
                continue
            paragraph.append(trimmed)
        return " ".join(paragraph) or None

    @staticmethod
    def _related_issues(parser: MarkdownParser) -> list[str] | None:
        section = parser.extract_section("Related Issues")
        refs = issue_refs(section) if section else []
        if not refs:
            refs = issue_refs(parser.content)
        return refs or None

    @staticmethod
    def _list_section(parser: MarkdownParser, title: str) -> list[str] | None:
        section = parser.extract_section(title)
        if not section:
            return None
        return MarkdownParser.list_items(section) or None

    @staticmethod
    def _work_items(parser: MarkdownParser) -> list[WorkItem] | None:
        section = (
            parser.extract_section("What Was Done")
            or parser.extract_section("Summary")
            or parser.extract_section("What Happened")
        )
        if not section:
            return None
        items = []
        for line in section.split("\n"):
            match = BOLD_AGENT_ITEM.match(line)
            if match and match.group(2).strip():
                items.append(WorkItem(agent=_clean_name(match.group(1)), description=match.group(2).strip()))
        return items or None


def entry_moment(entry: LogEntry) -> datetime:
    """When an entry happened: its parsed timestamp, else its date."""
    return parse_iso(entry.timestamp) or parse_iso(entry.date) or datetime.min


def sort_newest_first(entries: list[LogEntry]) -> list[LogEntry]:
    """Order by parsed timestamp, then date, then filename, newest first.

    Timestamps are compared as datetimes, so ``2026-02-14 17:30`` is later
    than ``2026-02-14T09:00:00Z``.
    """
    return sorted(
        entries,
        key=lambda e: (entry_moment(e), e.date, e.file_path.name if e.file_path else ""),
        reverse=True,
    )
