"""Zoom state machine for the timeline toggle.

A single control cycles detail -> month -> year -> month -> detail. The
direction flag remembers whether ``month`` was reached while zooming out
(from detail) or zooming in (from year), which decides the next step.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict

from footprint.core.timeline import Granularity


class ZoomDirection(str, Enum):
    ZOOM_OUT = "zoomOut"
    ZOOM_IN = "zoomIn"


class ZoomState(BaseModel):
    """Current granularity plus the direction of travel."""

    model_config = ConfigDict(frozen=True)

    granularity: Granularity = Granularity.DETAIL
    direction: ZoomDirection = ZoomDirection.ZOOM_OUT


INITIAL_ZOOM = ZoomState()


def advance(
    granularity: Granularity, direction: ZoomDirection
) -> tuple[Granularity, ZoomDirection]:
    """Compute the state after one press of the zoom toggle."""
    granularity = Granularity(granularity)
    direction = ZoomDirection(direction)

    if granularity == Granularity.DETAIL:
        return Granularity.MONTH, ZoomDirection.ZOOM_OUT
    if granularity == Granularity.YEAR:
        return Granularity.MONTH, ZoomDirection.ZOOM_IN
    if direction == ZoomDirection.ZOOM_OUT:
        return Granularity.YEAR, ZoomDirection.ZOOM_OUT
    return Granularity.DETAIL, ZoomDirection.ZOOM_OUT


class TimelineZoom:
    """Mutable holder around ZoomState for a presentation layer.

    Example:
        >>> zoom = TimelineZoom()
        >>> zoom.toggle().granularity
        <Granularity.MONTH: 'month'>
    """

    def __init__(self, state: ZoomState | None = None) -> None:
        self._state = state or INITIAL_ZOOM

    @property
    def state(self) -> ZoomState:
        return self._state

    @property
    def granularity(self) -> Granularity:
        return self._state.granularity

    @property
    def hint(self) -> str:
        """Tooltip for the toggle: what the next press will roughly do."""
        if self._state.direction == ZoomDirection.ZOOM_OUT:
            return "Collapse Items"
        return "Expand Items"

    def toggle(self) -> ZoomState:
        granularity, direction = advance(self._state.granularity, self._state.direction)
        self._state = ZoomState(granularity=granularity, direction=direction)
        return self._state

    def reset(self) -> ZoomState:
        self._state = INITIAL_ZOOM
        return self._state

    def to_record(self) -> dict[str, Any]:
        return self._state.model_dump(mode="json")

    @classmethod
    def from_record(cls, record: Any) -> "TimelineZoom":
        """Restore a saved state; anything unusable gives the initial state."""
        if not isinstance(record, dict):
            return cls()
        try:
            return cls(ZoomState.model_validate(record))
        except ValueError:
            return cls()
