"""Installation session: owned tick context and commands."""

from __future__ import annotations

from .installation import InstallationSession, SessionContext, TickOutcome

__all__ = ["InstallationSession", "SessionContext", "TickOutcome"]
