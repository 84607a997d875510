"""
Session layer: the single two-player session hosted by the server.
"""

from server.session.coordinator import ActionOutcome, Session, SessionCoordinator
from server.session.sinks import EventSink


__all__ = [
    "ActionOutcome",
    "EventSink",
    "Session",
    "SessionCoordinator",
]
