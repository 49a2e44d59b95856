"""Markdown parser utilities."""

import re
from dataclasses import dataclass

LINK_PATTERN = re.compile(r"\[([^\]]+)\]\(([^)]+)\)")


def normalize_eol(text: str) -> str:
    """Normalize Windows and old-Mac line endings to ``\\n``."""
    return text.replace("\r\n", "\n").replace("\r", "\n")


def strip_markdown_links(text: str) -> str:
    """Replace ``[text](url)`` with ``text``; other text passes through."""
    return LINK_PATTERN.sub(r"\1", text)


def strip_inline_markup(text: str) -> str:
    """Drop bold markers and code-span backticks."""
    return text.replace("**", "").replace("`", "").strip()


def split_list(value: str) -> list[str]:
    """Split a comma/semicolon separated value into trimmed, non-empty items."""
    return [part.strip() for part in re.split(r"[,;]", value) if part.strip()]


@dataclass
class MarkdownSection:
    """A section in a markdown document."""

    level: int  # Heading level (1-6)
    title: str
    content: str
    line_number: int  # 0-based index of the heading line


class MarkdownParser:
    """Parser for markdown documents.

    Content is EOL-normalized on construction so every helper can split on
    ``\\n``. Line numbers are 0-based.
    """

    # Patterns
    HEADING_PATTERN = re.compile(r"^(#{1,6})\s+(.+)$")
    LIST_ITEM_PATTERN = re.compile(r"^\s*(?:[-*]|\d+\.)\s+(.+)$")
    TABLE_SEPARATOR_CELL = re.compile(r"^:?-+:?$")

    def __init__(self, content: str):
        self.content = normalize_eol(content)
        self.lines = self.content.split("\n")

    def get_first_heading(self) -> tuple[int, int, str] | None:
        """Return ``(line_number, level, text)`` of the first heading of any level."""
        for line_num, line in enumerate(self.lines):
            match = self.HEADING_PATTERN.match(line)
            if match:
                return line_num, len(match.group(1)), match.group(2).strip()
        return None

    def get_sections(self, max_level: int = 6) -> list[MarkdownSection]:
        """Parse all sections up to a certain heading level."""
        sections = []
        current_section: MarkdownSection | None = None
        content_lines = []

        for line_num, line in enumerate(self.lines):
            match = self.HEADING_PATTERN.match(line)

            if match:
                level = len(match.group(1))
                title = match.group(2).strip()

                if level <= max_level:
                    # Save previous section
                    if current_section:
                        current_section.content = "\n".join(content_lines).strip()
                        sections.append(current_section)
                        content_lines = []

                    current_section = MarkdownSection(
                        level=level,
                        title=title,
                        content="",
                        line_number=line_num,
                    )
                else:
                    content_lines.append(line)
            else:
                content_lines.append(line)

        # Save last section
        if current_section:
            current_section.content = "\n".join(content_lines).strip()
            sections.append(current_section)

        return sections

    def extract_section(self, section_title: str, level: int = 2) -> str | None:
        """Return the body under a heading with the given title.

        The body runs until the next heading of the same or a higher level,
        so deeper subsections are included. Title match is case-insensitive.
        Empty bodies are reported as ``None``.
        """
        wanted = section_title.strip().lower()
        body: list[str] | None = None

        for line in self.lines:
            match = self.HEADING_PATTERN.match(line)
            if match:
                heading_level = len(match.group(1))
                if body is not None and heading_level <= level:
                    break
                if body is None and heading_level == level and match.group(2).strip().lower() == wanted:
                    body = []
                    continue
            if body is not None:
                body.append(line)

        if body is None:
            return None
        text = "\n".join(body).strip()
        return text or None

    def get_label_value(self, *labels: str) -> str | None:
        """Return the value of the first ``**Label:** value`` line.

        Labels are tried in the order given; matching is case-insensitive and
        tolerates the colon sitting outside the bold markers.
        """
        for label in labels:
            pattern = re.compile(
                rf"\*\*{re.escape(label)}:\*\*[ \t]*(.+)|\*\*{re.escape(label)}\*\*:[ \t]*(.+)",
                re.IGNORECASE,
            )
            for line in self.lines:
                match = pattern.search(line)
                if match:
                    value = (match.group(1) or match.group(2)).strip()
                    if value:
                        return value
        return None

    def get_table_value(self, label: str) -> str | None:
        """Return the cell after a ``| **Label** | value |`` row."""
        pattern = re.compile(rf"\|\s*\*\*{re.escape(label)}\*\*\s*\|\s*([^|\n]*)", re.IGNORECASE)
        match = pattern.search(self.content)
        if not match:
            return None
        value = match.group(1).strip()
        return value or None

    @classmethod
    def table_rows(cls, content: str) -> list[dict[str, str]]:
        """Parse the first markdown table in ``content`` into row dicts.

        Keys are the lowercased header cells. Separator rows are skipped and
        rows keep only as many cells as there are headers.
        """
        rows: list[dict[str, str]] = []
        headers: list[str] = []

        for line in normalize_eol(content).split("\n"):
            trimmed = line.strip()
            if not trimmed.startswith("|"):
                if headers and rows:
                    break
                continue

            cells = [cell.strip() for cell in trimmed.strip("|").split("|")]

            if not headers:
                headers = [cell.lower() for cell in cells]
                continue

            if all(cls.TABLE_SEPARATOR_CELL.match(cell) for cell in cells if cell):
                continue

            row = {headers[i]: cells[i] for i in range(min(len(headers), len(cells)))}
            if row:
                rows.append(row)

        return rows

    @classmethod
    def list_items(cls, content: str) -> list[str]:
        """Extract bullet and numbered list items."""
        items = []
        for line in normalize_eol(content).split("\n"):
            match = cls.LIST_ITEM_PATTERN.match(line)
            if match:
                items.append(match.group(1).strip())
        return items
