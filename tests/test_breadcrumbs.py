"""Tests for the breadcrumb ring buffer."""

from alertiqo.breadcrumbs import BreadcrumbBuffer, MAX_BREADCRUMBS
from alertiqo.models import Breadcrumb


def _crumb(i: int) -> Breadcrumb:
    return Breadcrumb(message=f"step {i}", category="test")


class TestBreadcrumbBuffer:
    def test_add_and_snapshot(self):
        buffer = BreadcrumbBuffer()
        buffer.add(_crumb(1))
        buffer.add(_crumb(2))

        crumbs = buffer.snapshot()
        assert len(crumbs) == 2
        assert crumbs[0].message == "step 1"
        assert crumbs[1].message == "step 2"

    def test_default_capacity_is_100(self):
        assert BreadcrumbBuffer().max_size == MAX_BREADCRUMBS == 100

    def test_evicts_oldest_at_capacity(self):
        buffer = BreadcrumbBuffer(max_size=3)
        for i in range(5):
            buffer.add(_crumb(i))

        crumbs = buffer.snapshot()
        assert [c.message for c in crumbs] == ["step 2", "step 3", "step 4"]

    def test_never_exceeds_100_and_keeps_newest(self):
        buffer = BreadcrumbBuffer()
        for i in range(250):
            buffer.add(_crumb(i))
            assert len(buffer) <= 100

        crumbs = buffer.snapshot()
        assert len(crumbs) == 100
        assert crumbs[0].message == "step 150"
        assert crumbs[-1].message == "step 249"

    def test_snapshot_is_detached(self):
        buffer = BreadcrumbBuffer()
        buffer.add(_crumb(1))
        snapshot = buffer.snapshot()
        buffer.add(_crumb(2))

        assert len(snapshot) == 1
        assert len(buffer) == 2

    def test_empty_buffer(self):
        buffer = BreadcrumbBuffer()
        assert buffer.snapshot() == ()
        assert len(buffer) == 0
