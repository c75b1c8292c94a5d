"""Lazy, cancellable fetch lifecycle for one collapsible panel.

A panel costs nothing until the user opens it.  The first ``expand()``
starts the fetch; collapsing and re-opening afterwards shows the same data
without refetching.  A failed fetch leaves the panel in ERROR with a retry
affordance.

Every fetch is stamped with a token (a generation counter).  Starting a
new fetch, changing the input key, or closing the controller bumps the
counter and cancels the previous task; any result that still arrives for
an older token is discarded, whether it succeeded or failed.  This keeps a
slow response for old inputs from overwriting the state for new ones.

All methods except :meth:`LazySectionController.wait` are synchronous and
must be called from code running on the event loop, since they schedule
the fetch with :func:`asyncio.create_task`.

# ─── STATE TRANSITIONS ────────────────────────────────────────────────
#
#   expand()   IDLE/ERROR        -> LOADING    (fetch starts)
#   retry()    ERROR             -> RETRYING   (attempt += 1, fetch starts)
#   success    LOADING/RETRYING  -> READY      (empty data => suppressed)
#   failure    LOADING/RETRYING  -> ERROR
#   set_key()  any, expanded     -> LOADING    (new key, fetch starts)
#   set_key()  any, collapsed    -> IDLE
#
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any

import structlog

from src.models.panel import PanelFetchState, PanelStatus
from src.utils.logging import get_logger

FetchFn = Callable[[], Awaitable[list[Any]]]
StateListener = Callable[[str, PanelFetchState], Any]


class LazySectionController:
    """Owns the fetch state of one panel instance.

    Parameters
    ----------
    panel_id:
        Identifier used in logs and passed to listeners.
    fetch:
        Zero-argument coroutine function returning the panel items.
    key:
        Stable string derived from the panel's inputs.
    error_message:
        Short user-facing message stored on failure.  The underlying
        exception is logged, never shown.
    """

    def __init__(
        self,
        panel_id: str,
        fetch: FetchFn,
        key: str = "",
        error_message: str | None = None,
    ) -> None:
        self._panel_id = panel_id
        self._fetch = fetch
        self._error_message = error_message or f"Failed to load {panel_id}"
        self._state = PanelFetchState(key=key)
        self._expanded = False
        self._closed = False
        self._token = 0
        self._task: asyncio.Task | None = None
        self._listeners: list[StateListener] = []
        self._logger: structlog.BoundLogger = get_logger(__name__)

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    @property
    def panel_id(self) -> str:
        return self._panel_id

    @property
    def state(self) -> PanelFetchState:
        return self._state

    @property
    def expanded(self) -> bool:
        return self._expanded

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def task(self) -> asyncio.Task | None:
        """The in-flight fetch task, if any."""
        if self._task is not None and self._task.done():
            return None
        return self._task

    # ------------------------------------------------------------------
    # User actions
    # ------------------------------------------------------------------

    def expand(self) -> asyncio.Task | None:
        """Open the panel.  Returns the fetch task when one was started."""
        if self._closed:
            self._logger.debug("panel_expand_after_close", panel_id=self._panel_id)
            return None
        self._expanded = True
        if self._state.status in (PanelStatus.IDLE, PanelStatus.ERROR):
            return self._start_fetch(PanelStatus.LOADING, self._state.attempt)
        return None

    def collapse(self) -> None:
        """Close the panel.  Data and any in-flight fetch are kept."""
        self._expanded = False
        self._logger.debug(
            "panel_collapsed",
            panel_id=self._panel_id,
            status=self._state.status.value,
        )

    def retry(self) -> asyncio.Task | None:
        """Refetch after a failure.  Ignored in every state but ERROR."""
        if self._closed or self._state.status != PanelStatus.ERROR:
            self._logger.debug(
                "panel_retry_ignored",
                panel_id=self._panel_id,
                status=self._state.status.value,
                closed=self._closed,
            )
            return None
        return self._start_fetch(PanelStatus.RETRYING, self._state.attempt + 1)

    def set_key(self, key: str, fetch: FetchFn | None = None) -> asyncio.Task | None:
        """Switch the panel to new inputs.

        An unchanged *key* only swaps in *fetch* (when given).  A changed
        key abandons the current fetch; an expanded panel refetches at
        once, a collapsed one goes back to IDLE and fetches on the next
        expand.
        """
        if fetch is not None:
            self._fetch = fetch
        if self._closed or key == self._state.key:
            return None

        self._invalidate()
        self._logger.debug(
            "panel_key_changed",
            panel_id=self._panel_id,
            old_key=self._state.key,
            new_key=key,
        )
        if self._expanded:
            return self._start_fetch(PanelStatus.LOADING, 0, key=key)
        self._transition(status=PanelStatus.IDLE, data=None, error=None, attempt=0, key=key)
        return None

    def close(self) -> None:
        """Tear the controller down.  Late results are ignored from here on."""
        if self._closed:
            return
        self._invalidate()
        self._closed = True
        self._expanded = False
        self._listeners.clear()
        self._logger.debug("panel_closed", panel_id=self._panel_id)

    async def wait(self) -> PanelFetchState:
        """Wait for the current fetch (following any replacement) and return the state."""
        while self._task is not None and not self._task.done():
            await asyncio.wait({self._task})
        return self._state

    # ------------------------------------------------------------------
    # Observers
    # ------------------------------------------------------------------

    def register_listener(self, callback: StateListener) -> None:
        """Call ``callback(panel_id, state)`` after every transition."""
        if callback not in self._listeners:
            self._listeners.append(callback)

    def unregister_listener(self, callback: StateListener) -> None:
        if callback in self._listeners:
            self._listeners.remove(callback)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _invalidate(self) -> None:
        self._token += 1
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    def _start_fetch(self, status: PanelStatus, attempt: int, key: str | None = None) -> asyncio.Task:
        self._invalidate()
        token = self._token
        update: dict[str, Any] = {"status": status, "data": None, "error": None, "attempt": attempt}
        if key is not None:
            update["key"] = key
        self._transition(**update)
        self._task = asyncio.create_task(
            self._run(token, self._fetch),
            name=f"panel-fetch:{self._panel_id}:{token}",
        )
        return self._task

    async def _run(self, token: int, fetch: FetchFn) -> None:
        try:
            data = await fetch()
        except asyncio.CancelledError:
            self._logger.debug("panel_fetch_cancelled", panel_id=self._panel_id, token=token)
            raise
        except Exception as exc:
            if token != self._token:
                self._logger.debug("panel_stale_result_discarded", panel_id=self._panel_id, token=token)
                return
            self._logger.warning(
                "panel_fetch_failed",
                panel_id=self._panel_id,
                attempt=self._state.attempt,
                error_type=type(exc).__name__,
                error=str(exc),
            )
            self._transition(status=PanelStatus.ERROR, data=None, error=self._error_message)
            return

        if token != self._token:
            self._logger.debug("panel_stale_result_discarded", panel_id=self._panel_id, token=token)
            return
        self._transition(status=PanelStatus.READY, data=list(data or []), error=None)

    def _transition(self, **changes: Any) -> None:
        previous = self._state.status
        self._state = self._state.model_copy(update=changes)
        self._logger.debug(
            "panel_state_changed",
            panel_id=self._panel_id,
            from_status=previous.value,
            to_status=self._state.status.value,
            attempt=self._state.attempt,
            items=len(self._state.data) if self._state.data is not None else None,
        )
        for callback in list(self._listeners):
            try:
                callback(self._panel_id, self._state)
            except Exception as exc:
                self._logger.warning(
                    "listener_callback_error",
                    panel_id=self._panel_id,
                    error=str(exc),
                    callback=getattr(callback, "__name__", repr(callback)),
                )
