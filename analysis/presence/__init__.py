"""Public exports for the presence tracking package."""

from __future__ import annotations

from .machine import PresenceStateMachine
from .model import PresenceContext, PresenceState, PresenceUpdate

__all__ = [
    "PresenceStateMachine",
    "PresenceState",
    "PresenceContext",
    "PresenceUpdate",
]
