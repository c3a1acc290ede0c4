"""Refresh mode as a tagged state value.

``Force`` carries the mode to resume after the forced refresh fired, so no
separate "previous mode" field is needed.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass


class RefreshMode(enum.StrEnum):
    OFF = "off"
    PERIODIC = "periodic"
    FORCE = "force"


@dataclass(frozen=True, slots=True)
class Off:
    @property
    def mode(self) -> RefreshMode:
        return RefreshMode.OFF


@dataclass(frozen=True, slots=True)
class Periodic:
    force_pending: bool = False
    """A forced refresh was requested but superseded before it fired."""

    @property
    def mode(self) -> RefreshMode:
        return RefreshMode.PERIODIC


@dataclass(frozen=True, slots=True)
class Force:
    resume_to: Off | Periodic

    @property
    def mode(self) -> RefreshMode:
        return RefreshMode.FORCE


RefreshState = Off | Periodic | Force


def transition(current: RefreshState, mode: RefreshMode) -> RefreshState:
    """State reached when an operator selects *mode* while in *current*."""
    if mode is RefreshMode.FORCE:
        if isinstance(current, Force):
            return current
        if isinstance(current, Periodic):
            return Force(resume_to=Periodic())
        return Force(resume_to=current)
    if mode is RefreshMode.PERIODIC:
        return Periodic(force_pending=isinstance(current, Force))
    return Off()
