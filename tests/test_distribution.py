import math

import numpy as np
import pytest

from menace.distribution import CountDistribution, ProbabilityDistribution, _RankedWeights
from menace.errors import InvariantViolation
from menace.game_basics import Board
from menace.moves import Move


class FixedRng:
    """Stands in for numpy's Generator and always draws the same value."""

    def __init__(self, value):
        self.value = value
        self.calls = []

    def integers(self, low, high):
        self.calls.append((low, high))
        return self.value

    def random(self):
        self.calls.append(None)
        return self.value


def _indices(moves):
    return [m.index for m in moves]


def test_fresh_count_distribution_on_empty_board():
    d = CountDistribution(Board.empty(), initial_score=4, verify=True)
    assert d.total == 36
    assert d.weights() == (4,) * 9
    assert _indices(d.moves_by_rank()) == list(range(9))
    for m in Move.all():
        assert d.rank_of(m) == m.index
        assert d.move_at(m.index) == m


def test_initial_ranks_put_illegal_moves_last():
    board = Board.from_string("100020000")
    d = CountDistribution(board, initial_score=4, verify=True)
    assert d.total == 28
    order = _indices(d.moves_by_rank())
    assert order[:7] == [1, 2, 3, 5, 6, 7, 8]
    assert set(order[7:]) == {0, 4}
    assert d.weight(Move(0)) == 0
    assert d.weight(Move(4)) == 0


def test_increase_swaps_once_per_step_until_blocked():
    d = CountDistribution(Board.empty(), initial_score=4, verify=True)
    d.increase(Move(0), 2)
    assert _indices(d.moves_by_rank())[:3] == [0, 1, 2]

    # 5 beats a2 (4) but not a1 (6)
    d.increase(Move(2), 1)
    assert d.rank_of(Move(2)) == 1
    assert _indices(d.moves_by_rank())[:3] == [0, 2, 1]

    # 6 ties a1: no swap
    d.increase(Move(2), 1)
    assert d.rank_of(Move(2)) == 1

    # 7 exceeds a1: one more swap
    d.increase(Move(2), 1)
    assert _indices(d.moves_by_rank())[:3] == [2, 0, 1]
    assert d.total == 36 + 5


def test_decrease_clamps_at_zero_and_sinks_past_ties():
    d = CountDistribution(Board.empty(), initial_score=4, verify=True)
    d.decrease(Move(0), 10)
    assert d.weight(Move(0)) == 0
    assert d.total == 32
    assert _indices(d.moves_by_rank()) == [1, 2, 3, 4, 5, 6, 7, 8, 0]


def test_decrease_ties_keep_previous_order():
    d = CountDistribution(Board.empty(), initial_score=4, verify=True)
    d.decrease(Move(3), 1)
    assert _indices(d.moves_by_rank()) == [0, 1, 2, 4, 5, 6, 7, 8, 3]
    d.decrease(Move(5), 1)
    # b3 stops right above b1 which now has the same score
    assert _indices(d.moves_by_rank()) == [0, 1, 2, 4, 6, 7, 8, 5, 3]


def test_updates_on_zero_weight_moves_are_invariant_violations():
    d = CountDistribution(Board.from_string("100020000"), verify=True)
    with pytest.raises(InvariantViolation):
        d.increase(Move(0), 1)
    with pytest.raises(InvariantViolation):
        d.decrease(Move(4), 1)
    d.decrease(Move(1), 4)
    with pytest.raises(InvariantViolation):
        d.decrease(Move(1), 1)
    with pytest.raises(InvariantViolation):
        d.increase(Move(2), -1)


def test_count_sampling_walks_ranks_in_order():
    d = CountDistribution(Board.empty(), initial_score=4)
    assert d.sample(FixedRng(0)) == Move(0)
    assert d.sample(FixedRng(4)) == Move(1)
    assert d.sample(FixedRng(35)) == Move(8)

    d.increase(Move(4), 4)
    rng = FixedRng(7)
    assert d.sample(rng) == Move(4)
    assert rng.calls == [(0, 40)]
    assert d.sample(FixedRng(8)) == Move(0)


def test_count_sampling_with_zero_total_is_resignation():
    d = CountDistribution(Board.from_string("112221110"), initial_score=4, verify=True)
    d.decrease(Move(8), 4)
    rng = FixedRng(0)
    assert d.sample(rng) is None
    assert rng.calls == []


def test_fresh_probability_distribution_is_uniform():
    d = ProbabilityDistribution(Board.from_string("100020000"), verify=True)
    legal = [1, 2, 3, 5, 6, 7, 8]
    for i in legal:
        assert d.weight(Move(i)) == pytest.approx(1 / 7)
    assert d.total == pytest.approx(1.0, abs=1e-12)
    assert _indices(d.moves_by_rank())[:7] == legal


def test_multiply_up_renormalizes_and_returns_divisor():
    d = ProbabilityDistribution(Board.empty(), verify=True)
    divisor = d.multiply(Move(4), 2.0)
    assert divisor == pytest.approx(10 / 9)
    assert d.weight(Move(4)) == pytest.approx(0.2)
    assert d.weight(Move(0)) == pytest.approx(0.1)
    assert _indices(d.moves_by_rank()) == [4, 0, 1, 2, 3, 5, 6, 7, 8]
    assert math.isclose(d.total, 1.0, abs_tol=1e-9)


def test_multiply_down_sinks_move():
    d = ProbabilityDistribution(Board.empty(), verify=True)
    divisor = d.multiply(Move(0), 0.5)
    assert divisor == pytest.approx(17 / 18)
    assert d.weight(Move(0)) == pytest.approx((1 / 18) / (17 / 18))
    assert d.rank_of(Move(0)) == 8


def test_multiply_by_one_keeps_order():
    d = ProbabilityDistribution(Board.empty(), verify=True)
    assert d.multiply(Move(5), 1.0) == pytest.approx(1.0)
    assert _indices(d.moves_by_rank()) == list(range(9))


@pytest.mark.parametrize("factor", [float("nan"), float("inf"), 0.0, -1.0])
def test_multiply_rejects_bad_factors(factor: float):
    d = ProbabilityDistribution(Board.empty(), verify=True)
    with pytest.raises(InvariantViolation):
        d.multiply(Move(0), factor)


def test_multiply_on_illegal_move_is_invariant_violation():
    d = ProbabilityDistribution(Board.from_string("100020000"))
    with pytest.raises(InvariantViolation):
        d.multiply(Move(4), 2.0)


def test_probability_sampling_starts_from_least_weighted():
    d = ProbabilityDistribution(Board.empty())
    # ties keep index order, so c3 holds the last rank
    assert d.sample(FixedRng(0.05)) == Move(8)
    assert d.sample(FixedRng(0.15)) == Move(7)
    assert d.sample(FixedRng(0.999)) == Move(0)


def test_probability_sampling_skips_zero_weights():
    d = ProbabilityDistribution(Board.from_string("100020000"))
    assert d.sample(FixedRng(0.0)) == Move(8)
    d.multiply(Move(8), 4.0)
    # c3 is now the heaviest; the walk begins at c2
    assert d.rank_of(Move(8)) == 0
    assert d.sample(FixedRng(0.0)) == Move(7)


def test_probability_sampling_without_legal_moves():
    d = ProbabilityDistribution(Board.from_string("121122211"), verify=True)
    assert d.sample(FixedRng(0.5)) is None


def test_probability_walk_exhaustion_is_invariant_violation():
    d = ProbabilityDistribution(Board.empty())
    d._weights[:] = 0.0
    d._weights[0] = 0.1
    with pytest.raises(InvariantViolation):
        d.sample(FixedRng(0.5))


def test_validate_detects_corruption():
    d = CountDistribution(Board.empty())
    d.validate()
    d._total += 1
    with pytest.raises(InvariantViolation):
        d.validate()

    d = CountDistribution(Board.empty())
    d._rank_of[0] = 1
    with pytest.raises(InvariantViolation):
        d.validate()

    d = CountDistribution(Board.empty())
    d._weights[8] = 10
    d._total += 6
    with pytest.raises(InvariantViolation):
        d.validate()

    d = ProbabilityDistribution(Board.empty())
    d._weights *= 1.5
    with pytest.raises(InvariantViolation):
        d.validate()


def test_verify_flag_checks_after_each_update():
    d = CountDistribution(Board.empty(), verify=True)
    d._total += 1
    with pytest.raises(InvariantViolation):
        d.increase(Move(0), 1)

    quiet = CountDistribution(Board.empty(), verify=False)
    quiet._total += 1
    quiet.increase(Move(0), 1)


def test_text_rendering_stops_at_zero_weight():
    d = CountDistribution(Board.empty(), initial_score=4)
    assert str(d).startswith("total: 36, a1: 4, a2: 4, a3: 4")
    d.decrease(Move(0), 4)
    d.increase(Move(4), 3)
    text = str(d)
    assert text.startswith("total: 35, b2: 7, a2: 4")
    assert "a1" not in text

    p = ProbabilityDistribution(Board.from_string("112221110"))
    assert str(p) == "total: 1.0000, c3: 1.0000"


def test_weights_are_numpy_backed_but_accessors_return_python_numbers():
    d = CountDistribution(Board.empty())
    assert isinstance(d.weight(Move(0)), int)
    assert isinstance(d.total, int)
    assert d._weights.dtype == np.int64
    p = ProbabilityDistribution(Board.empty())
    assert isinstance(p.weight(Move(0)), float)


def test_ranked_weights_base_is_abstract():
    with pytest.raises(TypeError):
        _RankedWeights(Board.empty(), 1)
