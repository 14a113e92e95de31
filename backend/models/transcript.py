from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _WireModel(BaseModel):
    # snake_case in Python, camelCase on the wire (what the viewer page reads)
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SubAgent(_WireModel):
    id: str
    path: str
    messages: list[Any] = Field(default_factory=list)
    parent_session: Optional[str] = None    # never present in the data; see DESIGN.md


class Session(_WireModel):
    project_path: str
    project_name: str
    session_file: str
    session_id: str
    messages: list[Any] = Field(default_factory=list)
    sub_agents: list[SubAgent] = Field(default_factory=list)
    last_modified: float    # file mtime, epoch milliseconds


class Project(_WireModel):
    path: str
    name: str
    sessions: list[Session] = Field(default_factory=list)
