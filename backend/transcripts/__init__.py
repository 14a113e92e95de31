from transcripts.parser import (
    get_session,
    list_projects,
    list_sessions,
    parse_lines,
)

__all__ = ["get_session", "list_projects", "list_sessions", "parse_lines"]
