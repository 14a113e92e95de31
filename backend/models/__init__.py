from models.event import Event
from models.transcript import Project, Session, SubAgent

__all__ = ["Event", "Project", "Session", "SubAgent"]
