from __future__ import annotations

from domain.models import Frame, Point, to_global


def test_origin_accumulates_parent_offsets() -> None:
    root = Frame(name="root")
    extent = root.child("main", Point(100.0, 50.0))
    behavior = extent.child("b", Point(20.0, 30.0))

    assert root.origin == Point(0.0, 0.0)
    assert extent.origin == Point(100.0, 50.0)
    assert behavior.origin == Point(120.0, 80.0)


def test_to_global_translates_local_points() -> None:
    behavior = Frame(name="root").child("e", Point(10.0, 5.0)).child("b", Point(1.0, 2.0))

    assert to_global(behavior, Point(3.0, 4.0)) == Point(14.0, 11.0)


def test_frames_are_values() -> None:
    root = Frame(name="root")

    assert root.child("e", Point(1.0, 1.0)) == root.child("e", Point(1.0, 1.0))
