"""
Tests for the transcript reader.

Covers total line decoding, filename classification, session ordering,
directory-scoped sub-agent attachment and the not-found / unsafe-identifier
contract of get_session. Uses the checked-in fixture store plus throwaway
stores built under tmp_path.
"""

import json
import os

import pytest

from transcripts import parser

FIXTURES_DIR = os.path.join(os.path.dirname(__file__), "fixtures", "projects")
DEMO_PROJECT = "-home-dev-demo"
DEMO_SESSION = "3f2b9c1e-7a44-4d1b-9a0e-5c2f8e6d1a90"


def _write_jsonl(path, records) -> str:
    """Write records (dicts are JSON-encoded, strings written verbatim) one per line."""
    lines = [r if isinstance(r, str) else json.dumps(r) for r in records]
    with open(path, "w", encoding="utf-8") as f:
        f.write("\n".join(lines) + "\n")
    return str(path)


def _set_mtime(path, seconds: float) -> None:
    os.utime(path, (seconds, seconds))


# ── parse_lines ───────────────────────────────────────────────────────────


class TestParseLines:

    def test_one_record_per_non_blank_line(self, tmp_path):
        path = _write_jsonl(tmp_path / "s.jsonl", [{"type": "user"}, "", "   ", {"type": "assistant"}])
        messages = parser.parse_lines(path)
        assert [m["type"] for m in messages] == ["user", "assistant"]

    def test_malformed_line_becomes_sentinel(self, tmp_path):
        path = _write_jsonl(tmp_path / "s.jsonl", [{"type": "user"}, "{oops", {"type": "assistant"}])
        messages = parser.parse_lines(path)
        assert len(messages) == 3
        assert messages[1] == {"type": "parse_error", "raw": "{oops"}
        assert messages[2]["type"] == "assistant"

    def test_torn_trailing_line_keeps_earlier_records(self):
        path = os.path.join(FIXTURES_DIR, DEMO_PROJECT, f"{DEMO_SESSION}.jsonl")
        messages = parser.parse_lines(path)
        assert len(messages) == 4
        assert [m["type"] for m in messages[:3]] == ["user", "assistant", "user"]
        assert messages[3]["type"] == "parse_error"
        assert messages[3]["raw"].startswith('{"type":"assistant"')

    def test_reparse_is_deterministic(self, tmp_path):
        path = _write_jsonl(tmp_path / "s.jsonl", [{"type": "user", "n": 1}, "garbage", "[1, 2"])
        assert parser.parse_lines(path) == parser.parse_lines(path)

    def test_arbitrary_bytes_never_raise(self, tmp_path):
        path = tmp_path / "junk.jsonl"
        path.write_bytes(b"\xff\xfe\x00binary\n\n{\"type\": \"ok\"}\n\x80\x81\r\n" + b"[" * 50000 + b"\n")
        messages = parser.parse_lines(str(path))
        assert len(messages) == 4
        assert messages[1] == {"type": "ok"}
        assert all(m["type"] == "parse_error" for i, m in enumerate(messages) if i != 1)

    def test_non_object_json_is_kept_as_is(self, tmp_path):
        path = _write_jsonl(tmp_path / "s.jsonl", ["42", '"text"', "null"])
        assert parser.parse_lines(path) == [42, "text", None]

    def test_nan_and_infinity_are_parse_errors(self, tmp_path):
        path = _write_jsonl(tmp_path / "s.jsonl", ['{"type": "user", "score": NaN}', "Infinity"])
        messages = parser.parse_lines(path)
        assert [m["type"] for m in messages] == ["parse_error", "parse_error"]
        assert messages[1]["raw"] == "Infinity"

    def test_lone_surrogate_escape_is_parse_error(self, tmp_path):
        cut = '{"type": "user", "text": "cut \\ud83d"}'
        path = _write_jsonl(tmp_path / "s.jsonl", [cut, {"type": "assistant", "text": "ok \U0001F600"}])
        messages = parser.parse_lines(path)
        assert messages[0] == {"type": "parse_error", "raw": cut}
        assert messages[1] == {"type": "assistant", "text": "ok \U0001F600"}

    def test_missing_file_is_empty(self, tmp_path):
        assert parser.parse_lines(str(tmp_path / "nope.jsonl")) == []

    def test_empty_file_is_empty(self, tmp_path):
        path = tmp_path / "empty.jsonl"
        path.write_text("")
        assert parser.parse_lines(str(path)) == []


# ── Filename classification ───────────────────────────────────────────────


class TestClassification:

    @pytest.mark.parametrize("name,expected", [
        ("3f2b9c1e-7a44-4d1b-9a0e-5c2f8e6d1a90.jsonl", True),
        ("s1.jsonl", True),
        ("agent-x1.jsonl", False),
        ("s1-agent-x1.jsonl", False),
        ("s1.json", False),
        ("notes.txt", False),
    ])
    def test_is_session_file(self, name, expected):
        assert parser.is_session_file(name) is expected

    def test_is_agent_file(self):
        assert parser.is_agent_file("agent-x1.jsonl")
        assert not parser.is_agent_file("agent-x1.json")
        assert not parser.is_agent_file("x1-agent.jsonl")

    def test_agent_id_from_filename(self):
        assert parser.agent_id_from_filename("agent-abc123.jsonl") == "abc123"
        assert parser.agent_id_from_filename("agent-a-b-c.jsonl") == "a-b-c"
        assert parser.agent_id_from_filename("agent-.jsonl") is None
        assert parser.agent_id_from_filename("s1.jsonl") is None

    @pytest.mark.parametrize("value,expected", [
        ("demo", True),
        ("-home-dev-demo", True),
        ("3f2b9c1e-7a44-4d1b-9a0e-5c2f8e6d1a90", True),
        ("", False),
        (".", False),
        ("..", False),
        ("../etc", False),
        ("a/b", False),
        ("a\\b", False),
        ("a\x00b", False),
        ("x..y", False),
    ])
    def test_is_safe_identifier(self, value, expected):
        assert parser.is_safe_identifier(value) is expected


# ── Sessions ──────────────────────────────────────────────────────────────


class TestListSessions:

    def setup_method(self):
        self.base = 1_700_000_000

    def test_newest_first(self, tmp_path):
        project = tmp_path / "demo"
        project.mkdir()
        for name, offset in [("t2", 20), ("t1", 10), ("t3", 30)]:
            path = _write_jsonl(project / f"{name}.jsonl", [{"type": "user"}])
            _set_mtime(path, self.base + offset)

        sessions = parser.list_sessions(str(project))
        assert [s.session_id for s in sessions] == ["t3", "t2", "t1"]
        assert sessions[0].last_modified == pytest.approx((self.base + 30) * 1000)

    def test_agent_files_are_not_sessions(self, tmp_path):
        project = tmp_path / "demo"
        project.mkdir()
        _write_jsonl(project / "s1.jsonl", [{"type": "user"}])
        _write_jsonl(project / "agent-x1.jsonl", [{"type": "user"}])
        _write_jsonl(project / "s1-agent-x2.jsonl", [{"type": "user"}])
        (project / "README.md").write_text("hi")

        sessions = parser.list_sessions(str(project))
        assert [s.session_id for s in sessions] == ["s1"]

    def test_every_session_gets_every_agent_in_the_directory(self, tmp_path):
        project = tmp_path / "demo"
        project.mkdir()
        _write_jsonl(project / "s1.jsonl", [{"type": "user"}])
        _write_jsonl(project / "s2.jsonl", [{"type": "user"}])
        _write_jsonl(project / "agent-a.jsonl", [{"type": "user"}])
        _write_jsonl(project / "agent-b.jsonl", [{"type": "user"}, {"type": "assistant"}])

        for session in parser.list_sessions(str(project)):
            assert sorted(a.id for a in session.sub_agents) == ["a", "b"]
            assert all(a.parent_session is None for a in session.sub_agents)

    def test_session_with_no_valid_lines(self, tmp_path):
        project = tmp_path / "demo"
        project.mkdir()
        (project / "blank.jsonl").write_text("\n\n  \n")
        sessions = parser.list_sessions(str(project))
        assert len(sessions) == 1
        assert sessions[0].messages == []

    def test_missing_directory_is_empty(self, tmp_path):
        assert parser.list_sessions(str(tmp_path / "gone")) == []


class TestListProjects:

    def test_fixture_store(self):
        projects = parser.list_projects(FIXTURES_DIR)
        assert [p.name for p in projects] == [DEMO_PROJECT]

        project = projects[0]
        assert project.path == os.path.join(FIXTURES_DIR, DEMO_PROJECT)
        assert [s.session_id for s in project.sessions] == [DEMO_SESSION]

        session = project.sessions[0]
        assert session.project_name == DEMO_PROJECT
        assert session.session_file == f"{DEMO_SESSION}.jsonl"
        assert [a.id for a in session.sub_agents] == ["7c1d2e3f"]
        assert len(session.sub_agents[0].messages) == 2

    def test_projects_without_sessions_are_omitted(self, tmp_path):
        (tmp_path / "empty").mkdir()
        (tmp_path / "has-one").mkdir()
        _write_jsonl(tmp_path / "has-one" / "s1.jsonl", [{"type": "user"}])
        (tmp_path / "stray.jsonl").write_text('{"type": "user"}\n')

        assert [p.name for p in parser.list_projects(str(tmp_path))] == ["has-one"]

    @pytest.mark.skipif(hasattr(os, "geteuid") and os.geteuid() == 0, reason="root ignores permissions")
    def test_unreadable_project_is_skipped(self, tmp_path):
        for name in ("ok", "locked"):
            (tmp_path / name).mkdir()
            _write_jsonl(tmp_path / name / "s1.jsonl", [{"type": "user"}])
        os.chmod(tmp_path / "locked", 0)
        try:
            assert [p.name for p in parser.list_projects(str(tmp_path))] == ["ok"]
        finally:
            os.chmod(tmp_path / "locked", 0o755)

    def test_missing_root_is_empty(self, tmp_path):
        assert parser.list_projects(str(tmp_path / "nowhere")) == []


class TestGetSession:

    def test_found(self):
        session = parser.get_session(FIXTURES_DIR, DEMO_PROJECT, DEMO_SESSION)
        assert session is not None
        assert session.session_id == DEMO_SESSION
        assert len(session.messages) == 4

    def test_nonexistent_project_and_session(self, tmp_path):
        assert parser.get_session(str(tmp_path), "nonexistent-project", "nonexistent-id") is None

    def test_nonexistent_session_in_real_project(self):
        assert parser.get_session(FIXTURES_DIR, DEMO_PROJECT, "nonexistent-id") is None

    @pytest.mark.parametrize("project_name,session_id", [
        ("..", "passwd"),
        ("demo", "../s1"),
        ("demo/..", "s1"),
        ("", "s1"),
        ("demo", ""),
    ])
    def test_unsafe_identifiers_are_not_found(self, tmp_path, project_name, session_id):
        (tmp_path / "demo").mkdir()
        _write_jsonl(tmp_path / "demo" / "s1.jsonl", [{"type": "user"}])
        _write_jsonl(tmp_path / "passwd.jsonl", [{"type": "secret"}])

        assert parser.get_session(str(tmp_path / "demo"), project_name, session_id) is None
        assert parser.get_session(str(tmp_path), project_name, session_id) is None
