from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class PresenceState(str, Enum):
    IDLE = "idle"  # capture not started
    ABSENT = "absent"  # running, no presence yet (start, reset, after blackout)
    PRESENT = "present"
    BLACKOUT = "blackout"  # cooldown after presence was lost


@dataclass
class PresenceContext:
    """Mutable presence fields; owned by one PresenceStateMachine."""

    state: PresenceState = PresenceState.IDLE
    accumulated_ms: float = 0.0
    last_motion_ms: Optional[float] = None
    blackout_start_ms: Optional[float] = None
    last_tick_ms: Optional[float] = None


@dataclass(frozen=True)
class PresenceUpdate:
    """What one tick decided."""

    state: PresenceState
    render: bool  # False -> blank surface and reset HUD
    accumulated_ms: float = 0.0
    color_unlocked: bool = False
    clear_baseline: bool = False  # caller must drop the motion baseline
    entered_blackout: bool = False
    exited_blackout: bool = False
