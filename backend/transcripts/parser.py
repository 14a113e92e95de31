"""
Transcript reader.

Stateless functions over the transcript store: one directory per project,
each holding ``<session-id>.jsonl`` conversation files and
``agent-<id>.jsonl`` sub-agent files.

Nothing in here raises on bad input. A corrupt line becomes a parse_error
sentinel, an unreadable file becomes an empty transcript, and an unreadable
directory becomes an empty listing. Every such degradation is logged.
"""

import json
import logging
import os
import re
from typing import Any, Optional

from models.transcript import Project, Session, SubAgent

logger = logging.getLogger(__name__)

TRANSCRIPT_EXT = ".jsonl"
PARSE_ERROR_TYPE = "parse_error"

_AGENT_FILE_RE = re.compile(r"^agent-(.+)\.jsonl$")


def _reject_constant(name: str):
    # NaN and Infinity are not JSON and cannot be sent back out as JSON.
    raise ValueError(f"non-standard JSON constant {name}")


# ---------- Line decoding ----------

def parse_lines(path: str) -> list[Any]:
    """
    Decode a JSONL file one line at a time.

    Blank lines are skipped. A line that is not valid JSON is kept as
    ``{"type": "parse_error", "raw": <line>}`` so the message count only
    depends on the number of non-blank lines.
    """
    try:
        with open(path, "r", encoding="utf-8", errors="replace") as f:
            content = f.read()
    except OSError as e:
        logger.error("Error reading %s: %s", path, e)
        return []

    messages = []
    for line in content.split("\n"):
        if not line.strip():
            continue
        try:
            record = json.loads(line, parse_constant=_reject_constant)
            # A lone surrogate escape decodes fine but can never be written back out as UTF-8.
            json.dumps(record, ensure_ascii=False).encode("utf-8")
        except (ValueError, RecursionError):
            messages.append({"type": PARSE_ERROR_TYPE, "raw": line})
        else:
            messages.append(record)
    return messages


# ---------- Filename classification ----------

def is_agent_file(filename: str) -> bool:
    return filename.startswith("agent-") and filename.endswith(TRANSCRIPT_EXT)


def is_session_file(filename: str) -> bool:
    return (
        filename.endswith(TRANSCRIPT_EXT)
        and not is_agent_file(filename)
        and "-agent-" not in filename
    )


def agent_id_from_filename(filename: str) -> Optional[str]:
    """``agent-abc123.jsonl`` -> ``abc123``."""
    match = _AGENT_FILE_RE.match(filename)
    return match.group(1) if match else None


def is_safe_identifier(value: str) -> bool:
    """True if ``value`` can be used as a single path segment under the store root."""
    if not value or value in (".", ".."):
        return False
    if "/" in value or "\\" in value or "\x00" in value:
        return False
    return ".." not in value


# ---------- Sessions & sub-agents ----------

def discover_sub_agents(project_path: str) -> list[SubAgent]:
    """Every agent transcript in the project directory (non-recursive)."""
    try:
        filenames = sorted(os.listdir(project_path))
    except OSError as e:
        logger.error("Error discovering sub-agents in %s: %s", project_path, e)
        return []

    sub_agents = []
    for filename in filenames:
        if not is_agent_file(filename):
            continue
        agent_id = agent_id_from_filename(filename)
        if agent_id is None:
            continue
        file_path = os.path.join(project_path, filename)
        sub_agents.append(SubAgent(id=agent_id, path=file_path, messages=parse_lines(file_path)))
    return sub_agents


def parse_session(project_path: str, session_file: str) -> Optional[Session]:
    """
    Build a Session from one transcript file.

    All agent transcripts of the directory are attached: the data carries no
    parent-session id, so the association is by directory only.
    Returns None if the file is missing or cannot be stat'ed.
    """
    file_path = os.path.join(project_path, session_file)
    try:
        stat = os.stat(file_path)
    except FileNotFoundError:
        return None
    except OSError as e:
        logger.error("Error parsing session %s: %s", file_path, e)
        return None

    return Session(
        project_path=project_path,
        project_name=os.path.basename(os.path.normpath(project_path)) or "unknown",
        session_file=session_file,
        session_id=session_file[: -len(TRANSCRIPT_EXT)],
        messages=parse_lines(file_path),
        sub_agents=discover_sub_agents(project_path),
        last_modified=stat.st_mtime * 1000,
    )


def list_sessions(project_path: str) -> list[Session]:
    """Sessions of one project directory, newest first."""
    try:
        filenames = os.listdir(project_path)
    except OSError as e:
        logger.error("Error getting sessions for %s: %s", project_path, e)
        return []

    sessions = []
    for filename in filenames:
        if not is_session_file(filename):
            continue
        session = parse_session(project_path, filename)
        if session is not None:
            sessions.append(session)

    sessions.sort(key=lambda s: s.last_modified, reverse=True)
    return sessions


def list_projects(root: str) -> list[Project]:
    """
    Every project directory under ``root`` that has at least one session.
    A project whose directory cannot be read is left out.
    """
    try:
        entries = sorted(os.scandir(root), key=lambda e: e.name)
    except OSError as e:
        logger.error("Error discovering projects in %s: %s", root, e)
        return []

    projects = []
    for entry in entries:
        try:
            if not entry.is_dir():
                continue
        except OSError:
            continue
        sessions = list_sessions(entry.path)
        if sessions:
            projects.append(Project(path=entry.path, name=entry.name, sessions=sessions))
    return projects


def get_session(root: str, project_name: str, session_id: str) -> Optional[Session]:
    """Look up ``<root>/<project_name>/<session_id>.jsonl``; None if it isn't there."""
    if not (is_safe_identifier(project_name) and is_safe_identifier(session_id)):
        logger.warning(
            "Rejected session lookup with unsafe identifiers: %r / %r",
            project_name, session_id,
        )
        return None

    project_path = os.path.join(root, project_name)
    return parse_session(project_path, f"{session_id}{TRANSCRIPT_EXT}")
