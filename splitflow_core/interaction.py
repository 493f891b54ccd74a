"""
Hover state for one visualization instance.

`HoverState` is an explicit object handed to the render step rather than a
module global, so several diagrams can live side by side. The controller is
the only writer.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional

logger = logging.getLogger(__name__)


@dataclass
class HoverState:
    hovered_index: Optional[int] = None

    def is_hovered(self, index: int) -> bool:
        return self.hovered_index == index


class InteractionController:
    """
    Translates pointer enter/leave on a flow into hover state changes.

    `on_change` is called with the state after every effective change; the
    owner uses it to push an opacity-only update to the render surface.
    """

    def __init__(self, state: HoverState | None = None, on_change: Callable[[HoverState], None] | None = None):
        self.state = state or HoverState()
        self.on_change = on_change

    @property
    def hovered_index(self) -> Optional[int]:
        return self.state.hovered_index

    def pointer_enter(self, index: int) -> None:
        previous = self.state.hovered_index
        self.state.hovered_index = index
        if previous != index:
            self._notify()

    def pointer_leave(self, index: int) -> None:
        # A late leave from a previously hovered flow must not clear the new one
        if self.state.hovered_index != index:
            logger.debug("Ignoring stale pointer leave for flow %d", index)
            return
        self.state.hovered_index = None
        self._notify()

    def reset(self) -> None:
        if self.state.hovered_index is not None:
            self.state.hovered_index = None
            self._notify()

    def _notify(self) -> None:
        if self.on_change is not None:
            self.on_change(self.state)
