from screenwarp.core.bounds import Range, RectBounds, Unbounded, XYBounds, bounds_from_pair


def test_unbounded_contains_everything():
    b = Unbounded()
    assert not b
    assert b.contains(1e300)
    assert not b.outside(-1e300)
    assert str(b) == "[unbounded]"


def test_range_is_inclusive_and_swaps_reversed_limits():
    r = Range(5.0, -5.0)
    assert (r.min_value, r.max_value) == (-5.0, 5.0)
    assert r.contains(-5.0) and r.contains(5.0)
    assert r.outside(5.0001)
    assert not r.outside(0.0)
    assert str(r) == "[-5, 5]"


def test_unbounded_is_distinct_from_any_range():
    assert Unbounded() != Range(0.0, 0.0)
    assert isinstance(bounds_from_pair(None), Unbounded)
    assert bounds_from_pair([1.0, 2.0]) == Range(1.0, 2.0)


def test_xy_bounds():
    assert not XYBounds()
    assert str(XYBounds()) == "unbounded"
    b = XYBounds(x=Range(0.0, 1.0))
    assert b
    assert b.outside((2.0, 100.0))
    assert b.contains((0.5, 100.0))
    assert str(b) == "x: [0, 1]"
    assert str(XYBounds(x=Range(0, 1), y=Range(2, 3))) == "x: [0, 1], y: [2, 3]"


def test_rect_bounds_reflection():
    r = RectBounds(left=-1.0, right=3.0, top=2.0, bottom=-2.0)
    assert r.width == 4.0 and r.height == 4.0
    assert r.reflected_horizontally() == RectBounds(left=-3.0, right=1.0, top=2.0, bottom=-2.0)
