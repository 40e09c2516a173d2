"""In-memory ring buffer for the most recent breadcrumbs."""

import threading

from alertiqo.models import Breadcrumb

MAX_BREADCRUMBS = 100


class BreadcrumbBuffer:
    def __init__(self, max_size: int = MAX_BREADCRUMBS):
        self._max_size = max_size
        self._crumbs: list[Breadcrumb] = []
        self._lock = threading.Lock()

    def add(self, crumb: Breadcrumb):
        """Append a breadcrumb, evicting the oldest while over capacity."""
        with self._lock:
            self._crumbs.append(crumb)
            while len(self._crumbs) > self._max_size:
                self._crumbs.pop(0)

    def snapshot(self) -> tuple[Breadcrumb, ...]:
        """Return an immutable copy of the trail, oldest first."""
        with self._lock:
            return tuple(self._crumbs)

    @property
    def max_size(self) -> int:
        return self._max_size

    def __len__(self) -> int:
        with self._lock:
            return len(self._crumbs)
