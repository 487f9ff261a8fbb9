"""View states and request staleness.

Every view (dashboard, a breakdown, a drill-down) loads independently.
Each load gets a token from a RequestTracker; when a newer request for the
same view is issued before the older one completes, the older result is
discarded instead of overwriting the newer one. A failing or empty view
degrades to its own ERROR or NO_DATA state and never affects other views.
"""

from __future__ import annotations

import itertools
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, Optional, TypeVar

from abc_core.exceptions import DataUnavailableError, StorageError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ViewStatus(str, Enum):
    LOADING = "loading"
    OK = "ok"
    NO_DATA = "no_data"
    ERROR = "error"


@dataclass
class ViewResult(Generic[T]):
    """State of one view.

    Attributes:
        status: Loading, ok, no data or error.
        data: Loaded value when status is OK.
        message: Human-readable reason for NO_DATA or ERROR.
    """

    status: ViewStatus
    data: Optional[T] = None
    message: str = ""

    @classmethod
    def loading(cls) -> ViewResult[T]:
        return cls(ViewStatus.LOADING)

    @classmethod
    def ok(cls, data: T) -> ViewResult[T]:
        return cls(ViewStatus.OK, data=data)

    @classmethod
    def no_data(cls, message: str = "No data") -> ViewResult[T]:
        return cls(ViewStatus.NO_DATA, message=message)

    @classmethod
    def error(cls, message: str) -> ViewResult[T]:
        return cls(ViewStatus.ERROR, message=message)


class RequestTracker:
    """Issues request tokens and tells whether a token is still the latest.

    Tokens are drawn from one counter shared by all views, so they are
    strictly increasing in issue order.
    """

    def __init__(self) -> None:
        self._counter = itertools.count(1)
        self._latest: dict[str, int] = {}

    def issue(self, view: str) -> int:
        token = next(self._counter)
        self._latest[view] = token
        return token

    def is_current(self, view: str, token: int) -> bool:
        return self._latest.get(view) == token

    def invalidate(self, view: str) -> None:
        """Mark every outstanding request of ``view`` as stale."""
        self._latest.pop(view, None)


def _is_empty(data: Any) -> bool:
    if data is None:
        return True
    try:
        return len(data) == 0
    except TypeError:
        return False


async def run_view(
    tracker: RequestTracker,
    view: str,
    loader: Callable[[], Awaitable[T]],
) -> Optional[ViewResult[T]]:
    """Load one view and map the outcome to a ViewResult.

    Args:
        tracker: Request tracker shared by the views of one session.
        view: View name, e.g. ``"dashboard"`` or ``"breakdown:customer"``.
        loader: Zero-argument coroutine function producing the view data.

    Returns:
        OK with the data, NO_DATA when the data is empty or the loader raised
        DataUnavailableError, ERROR when a storage read failed, or None when
        a newer request for the same view was issued meanwhile.
    """
    token = tracker.issue(view)
    result: ViewResult[T]
    try:
        data = await loader()
    except DataUnavailableError as e:
        result = ViewResult.no_data(str(e))
    except StorageError as e:
        logger.warning("View %s failed: %s", view, e)
        result = ViewResult.error(str(e))
    else:
        result = ViewResult.no_data() if _is_empty(data) else ViewResult.ok(data)

    if not tracker.is_current(view, token):
        logger.debug("Discarding stale result for %s (token %s)", view, token)
        return None
    return result


class ViewBoard:
    """Current state of every view of one session.

    A view shows LOADING from the moment a refresh starts until its latest
    request completes. Stale completions leave the state untouched.
    """

    def __init__(self, tracker: Optional[RequestTracker] = None) -> None:
        self.tracker = tracker or RequestTracker()
        self.states: dict[str, ViewResult[Any]] = {}

    def state(self, view: str) -> ViewResult[Any]:
        return self.states.get(view, ViewResult.loading())

    async def refresh(self, view: str, loader: Callable[[], Awaitable[T]]) -> ViewResult[Any]:
        self.states[view] = ViewResult.loading()
        result = await run_view(self.tracker, view, loader)
        if result is not None:
            self.states[view] = result
        return self.state(view)
