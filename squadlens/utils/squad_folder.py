"""Squad folder discovery.

Two folder conventions exist: the current ``.squad/`` and the legacy
``.ai-team/``. When both are present ``.squad/`` wins.
"""

from pathlib import Path

SQUAD_FOLDER = ".squad"
LEGACY_SQUAD_FOLDER = ".ai-team"
SQUAD_FOLDER_NAMES = (SQUAD_FOLDER, LEGACY_SQUAD_FOLDER)

TEAM_FILE = "team.md"
ACTIVE_LOG_DIR = "orchestration-log"
NARRATIVE_LOG_DIR = "log"
DECISIONS_FILE = "decisions.md"
DECISIONS_DIR = "decisions"
AGENTS_DIR = "agents"
CHARTER_FILE = "charter.md"


def detect_squad_folder(root: Path) -> str | None:
    """Return the squad folder name present under ``root``, or None."""
    for name in SQUAD_FOLDER_NAMES:
        if (root / name).is_dir():
            return name
    return None


def get_squad_folder_name(root: Path) -> str:
    """Return the folder name to use, defaulting to ``.squad``."""
    return detect_squad_folder(root) or SQUAD_FOLDER


def validate_folder_name(folder_name: str) -> str:
    """Reject empty names and names that would escape the root."""
    name = folder_name.strip()
    if not name or "/" in name or "\\" in name or name in (".", ".."):
        raise ValueError(f"Invalid squad folder name: {folder_name!r}")
    return name


def has_squad_team(root: Path) -> bool:
    """Check whether a roster file exists in the detected squad folder."""
    return (root / get_squad_folder_name(root) / TEAM_FILE).is_file()
