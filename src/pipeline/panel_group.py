"""A set of lazy panels rendered on one page.

PanelGroup owns the LazySectionControllers of a page and is the one place
open/close events travel through.  Anything that cares about panels being
opened or closed (analytics, a sibling panel, a layout manager) registers
a listener here explicitly; there is no global event bus.

With ``exclusive=True`` the group behaves like an accordion: opening a
panel collapses the others.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Any

import structlog

from src.models.panel import PanelFetchState
from src.pipeline.lazy_section import FetchFn, LazySectionController
from src.utils.logging import get_logger

# callback(panel_id, opened)
PanelEventListener = Callable[[str, bool], Any]


class PanelGroup:
    """Registry of the lazy panels on one page."""

    def __init__(self, exclusive: bool = False) -> None:
        self._exclusive = exclusive
        self._controllers: dict[str, LazySectionController] = {}
        self._listeners: list[PanelEventListener] = []
        self._logger: structlog.BoundLogger = get_logger(__name__)

    # ------------------------------------------------------------------
    # Panel registry
    # ------------------------------------------------------------------

    def add(
        self,
        panel_id: str,
        fetch: FetchFn,
        key: str = "",
        error_message: str | None = None,
    ) -> LazySectionController:
        """Create and register a controller for *panel_id*."""
        if panel_id in self._controllers:
            raise ValueError(f"Panel already registered: {panel_id}")
        controller = LazySectionController(panel_id, fetch, key=key, error_message=error_message)
        self._controllers[panel_id] = controller
        self._logger.debug("panel_added", panel_id=panel_id, total=len(self._controllers))
        return controller

    def remove(self, panel_id: str) -> None:
        """Close and forget *panel_id*.  Unknown ids are ignored."""
        controller = self._controllers.pop(panel_id, None)
        if controller is not None:
            controller.close()

    def get(self, panel_id: str) -> LazySectionController:
        try:
            return self._controllers[panel_id]
        except KeyError:
            raise KeyError(f"Unknown panel: {panel_id}") from None

    def __contains__(self, panel_id: object) -> bool:
        return panel_id in self._controllers

    def __len__(self) -> int:
        return len(self._controllers)

    @property
    def panel_ids(self) -> list[str]:
        return list(self._controllers)

    def states(self) -> dict[str, PanelFetchState]:
        return {pid: c.state for pid, c in self._controllers.items()}

    # ------------------------------------------------------------------
    # Open / close
    # ------------------------------------------------------------------

    def open(self, panel_id: str) -> asyncio.Task | None:
        """Expand *panel_id* and notify listeners.  Returns the fetch task, if any."""
        controller = self.get(panel_id)
        if self._exclusive:
            for other_id, other in self._controllers.items():
                if other_id != panel_id and other.expanded:
                    other.collapse()
                    self._notify(other_id, False)
        task = controller.expand()
        self._notify(panel_id, True)
        return task

    def close(self, panel_id: str) -> None:
        """Collapse *panel_id* and notify listeners."""
        self.get(panel_id).collapse()
        self._notify(panel_id, False)

    def register_listener(self, callback: PanelEventListener) -> None:
        """Call ``callback(panel_id, opened)`` on every open and close."""
        if callback not in self._listeners:
            self._listeners.append(callback)
            self._logger.debug("listener_registered", total_listeners=len(self._listeners))

    def unregister_listener(self, callback: PanelEventListener) -> None:
        if callback in self._listeners:
            self._listeners.remove(callback)
            self._logger.debug("listener_unregistered", remaining_listeners=len(self._listeners))

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def wait_all(self) -> dict[str, PanelFetchState]:
        """Wait for every in-flight fetch and return the resulting states."""
        for controller in list(self._controllers.values()):
            await controller.wait()
        return self.states()

    def teardown(self) -> None:
        """Close every controller and drop all listeners."""
        for controller in self._controllers.values():
            controller.close()
        self._controllers.clear()
        self._listeners.clear()
        self._logger.debug("panel_group_torn_down")

    def _notify(self, panel_id: str, opened: bool) -> None:
        for callback in list(self._listeners):
            try:
                callback(panel_id, opened)
            except Exception as exc:
                self._logger.warning(
                    "listener_callback_error",
                    panel_id=panel_id,
                    error=str(exc),
                    callback=getattr(callback, "__name__", repr(callback)),
                )
