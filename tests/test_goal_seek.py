from __future__ import annotations

from business_case.goal_seek import bisect


def test_bisect_converges_on_monotonic_function():
    result = bisect(lambda x: 2 * x + 3, lower_bound=0, upper_bound=20, target=23, tol=1e-9)
    assert result.solved
    assert abs(result.value - 10.0) < 1e-6


def test_bisect_fails_when_target_not_bracketed():
    result = bisect(lambda x: x * x + 1, lower_bound=0, upper_bound=5)
    assert result.status == "failed"
    assert "not bracketed" in result.message.lower()


def test_bisect_rejects_inverted_bounds():
    assert bisect(lambda x: x, 1, 0).status == "failed"


def test_bisect_returns_midpoint_after_budget():
    result = bisect(lambda x: x - 0.3, 0, 1, tol=0.0, max_iter=5)
    assert result.status == "max_iter"
    assert abs(result.value - 0.3) < 1 / 2**5
