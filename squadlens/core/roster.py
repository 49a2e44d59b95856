"""Roster parsing for ``team.md`` and the ``agents/`` folder."""

import logging
import re
from pathlib import Path

from ..utils.markdown_parser import (
    MarkdownParser,
    split_list,
    strip_inline_markup,
    strip_markdown_links,
)
from ..utils.squad_folder import AGENTS_DIR, CHARTER_FILE
from .models import (
    CopilotCapabilities,
    IssueSourceConfig,
    Member,
    MemberStatus,
    TeamRoster,
)

logger = logging.getLogger(__name__)

MEMBER_SECTION_TITLES = ("Members", "Roster")

# Role given to members not listed in a roster table.
DERIVED_ROLE = "Squad Member"

# Agent folders that are not squad members.
SKIPPED_AGENT_FOLDERS = {"_alumni", "scribe"}
CHARTER_ROLE_PATTERN = re.compile(r"-\s*\*\*Role:\*\*\s*(.+)", re.IGNORECASE)

# Status cells that mean "busy right now". Everything else is configuration
# (Active, Silent, Monitor, Coding Agent...) and maps to idle.
WORKING_STATUS_MARKERS = ("working", "in progress", "🔨")

EXCLUDED_ROLES = {"coordinator"}

AUTO_ASSIGN_PATTERN = re.compile(r"<!--\s*copilot-auto-assign:\s*(true|false)\s*-->", re.IGNORECASE)
OWNER_PATTERN = re.compile(r"\*\*Owner:\*\*[ \t]*([^(\n]+)", re.IGNORECASE)
REPOSITORY_LINE_PATTERN = re.compile(r"\*\*Repository:\*\*[ \t]*(.+)", re.IGNORECASE)

CAPABILITY_MARKERS = {
    "good_fit": ("🟢", "Good fit"),
    "needs_review": ("🟡", "Needs review"),
    "not_suitable": ("🔴", "Not suitable"),
}

# Values that mean "not configured" in the Issue Source table.
EMPTY_CELL_VALUES = {"", "-", "—", "–", "n/a", "none"}


def parse_status(text: str) -> MemberStatus:
    """Map a roster status cell onto the status vocabulary."""
    lowered = text.lower()
    if any(marker in lowered for marker in WORKING_STATUS_MARKERS):
        return MemberStatus.WORKING
    return MemberStatus.IDLE


def normalize_repository(value: str) -> str | None:
    """Reduce ``github.com/owner/repo`` style values to ``owner/repo``."""
    cleaned = strip_inline_markup(strip_markdown_links(value)).strip().strip("<>")
    cleaned = re.sub(r"^https?://", "", cleaned)
    cleaned = cleaned.rstrip("/")
    if cleaned.endswith(".git"):
        cleaned = cleaned[:-4]
    parts = [part for part in cleaned.split("/") if part]
    if len(parts) < 2:
        return None
    return f"{parts[-2]}/{parts[-1]}"


class RosterParser:
    """Parses the squad roster document.

    Missing sections never raise: a roster without a Members table simply has
    no members. Only ``parse_file`` and ``discover_agents`` touch the filesystem.
    """

    def parse_file(self, path: Path) -> TeamRoster | None:
        """Parse a roster file; ``None`` when it is missing or unreadable."""
        if not path.is_file():
            return None
        try:
            content = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("Could not read roster %s: %s", path, exc)
            return None
        return self.parse_content(content)

    def discover_agents(self, squad_dir: Path) -> list[Member]:
        """Members from ``agents/<name>/`` folders, for squads without a roster.

        The folder name, first letter capitalized, is the member name. The role
        comes from a ``- **Role:**`` line in the folder's ``charter.md``.
        """
        agents_dir = squad_dir / AGENTS_DIR
        if not agents_dir.is_dir():
            return []
        try:
            folders = sorted(p for p in agents_dir.iterdir() if p.is_dir())
        except OSError as exc:
            logger.warning("Could not list agents folder %s: %s", agents_dir, exc)
            return []

        members = []
        for folder in folders:
            if folder.name in SKIPPED_AGENT_FOLDERS:
                continue
            members.append(Member(
                name=folder.name[:1].upper() + folder.name[1:],
                role=self._charter_role(folder / CHARTER_FILE) or DERIVED_ROLE,
            ))
        return members

    @staticmethod
    def _charter_role(path: Path) -> str | None:
        try:
            content = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError):
            return None
        match = CHARTER_ROLE_PATTERN.search(content)
        if not match:
            return None
        return strip_inline_markup(match.group(1)) or None

    def parse_content(self, content: str) -> TeamRoster:
        parser = MarkdownParser(content or "")
        issue_source = self._parse_issue_source(parser)
        repository = issue_source.repository if issue_source else self._parse_repository(parser)
        return TeamRoster(
            members=self._parse_members(parser),
            owner=self._parse_owner(parser),
            repository=repository,
            copilot_capabilities=self._parse_copilot_capabilities(parser),
            issue_source=issue_source,
        )

    def _parse_members(self, parser: MarkdownParser) -> list[Member]:
        section = None
        for title in MEMBER_SECTION_TITLES:
            section = parser.extract_section(title, level=2)
            if section:
                break
        if not section:
            return []

        members = []
        for row in MarkdownParser.table_rows(section):
            name = row.get("name", "").strip()
            role = row.get("role", "").strip()
            if not name or not role:
                continue
            if role.lower() in EXCLUDED_ROLES:
                continue
            members.append(Member(name=name, role=role, status=parse_status(row.get("status", ""))))
        return members

    def _parse_owner(self, parser: MarkdownParser) -> str | None:
        match = OWNER_PATTERN.search(parser.content)
        if not match:
            return None
        return match.group(1).strip() or None

    def _parse_repository(self, parser: MarkdownParser) -> str | None:
        value = parser.get_table_value("Repository")
        if value:
            return value
        match = REPOSITORY_LINE_PATTERN.search(parser.content)
        if match:
            return match.group(1).strip() or None
        return None

    def _parse_issue_source(self, parser: MarkdownParser) -> IssueSourceConfig | None:
        raw_repository = self._parse_repository(parser)
        if not raw_repository:
            return None
        repository = normalize_repository(raw_repository)
        if not repository:
            logger.debug("Ignoring unrecognised repository value %r", raw_repository)
            return None
        owner, repo = repository.split("/", 1)

        upstream_raw = self._table_cell(parser, "Upstream")
        upstream = normalize_repository(upstream_raw) if upstream_raw else None
        matching_raw = self._table_cell(parser, "Matching")
        matching = [item.lower() for item in split_list(matching_raw)] if matching_raw else None

        return IssueSourceConfig(
            repository=repository,
            owner=owner,
            repo=repo,
            filters=self._table_cell(parser, "Filters"),
            matching=matching or None,
            member_aliases=self._parse_member_aliases(parser),
            upstream=upstream,
        )

    @staticmethod
    def _table_cell(parser: MarkdownParser, label: str) -> str | None:
        value = parser.get_table_value(label)
        if value is None or value.strip().lower() in EMPTY_CELL_VALUES:
            return None
        return strip_inline_markup(value)

    def _parse_member_aliases(self, parser: MarkdownParser) -> dict[str, str] | None:
        body = None
        for section in parser.get_sections():
            if section.title.strip().lower() == "member aliases":
                body = section.content
                break
        if not body:
            return None

        aliases = {}
        for row in MarkdownParser.table_rows(body):
            member = strip_inline_markup(row.get("member", ""))
            login = strip_inline_markup(row.get("github", "")).lstrip("@")
            if member and login:
                aliases[member] = login
        return aliases or None

    def _parse_copilot_capabilities(self, parser: MarkdownParser) -> CopilotCapabilities | None:
        auto_match = AUTO_ASSIGN_PATTERN.search(parser.content)

        block = None
        coding_agent = parser.extract_section("Coding Agent", level=2)
        if coding_agent:
            block = MarkdownParser(coding_agent).extract_section("Capabilities", level=3)
        if not block:
            block = parser.extract_section("@copilot Capabilities", level=2)

        inline = None if block else self._parse_inline_capabilities(parser.content)

        if not auto_match and not block and not inline:
            return None

        capabilities = CopilotCapabilities(
            auto_assign=bool(auto_match) and auto_match.group(1).lower() == "true",
        )
        if block:
            for attr, (emoji, _label) in CAPABILITY_MARKERS.items():
                setattr(capabilities, attr, self._capability_list(block, emoji))
        elif inline:
            for attr, items in inline.items():
                setattr(capabilities, attr, items)
        return capabilities

    @staticmethod
    def _capability_list(block: str, emoji: str) -> list[str]:
        """Collect items listed under (or inline after) an emoji marker."""
        items: list[str] = []
        in_group = False
        for line in block.split("\n"):
            trimmed = line.strip()
            if emoji in trimmed:
                in_group = True
                _, sep, rest = trimmed.partition(":")
                if sep and rest.strip():
                    items.extend(split_list(rest.replace(";", ",")))
                continue
            if in_group and any(marker in trimmed for marker, _ in CAPABILITY_MARKERS.values()):
                break
            if in_group:
                match = MarkdownParser.LIST_ITEM_PATTERN.match(line)
                if match:
                    items.append(match.group(1).strip())
        return items

    @staticmethod
    def _parse_inline_capabilities(content: str) -> dict[str, list[str]] | None:
        found = {}
        for attr, (emoji, label) in CAPABILITY_MARKERS.items():
            match = re.search(rf"{emoji}\s*{label}[^:\n]*:\s*([^\n]+)", content, re.IGNORECASE)
            if match:
                found[attr] = [item.strip() for item in match.group(1).split(",") if item.strip()]
        return found or None
