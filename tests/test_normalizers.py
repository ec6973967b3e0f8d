import random
import sys

import pytest

from netweight.scoring.normalizers import MaxNorm, ReverseMinNorm, SigmoidNorm, new_normalizer


@pytest.mark.parametrize("scale", [1.0, 10.0, 0.25])
def test_sigmoid_is_one_half_at_scale(scale):
    assert SigmoidNorm(scale).normalize(scale) == pytest.approx(0.5, rel=1e-3)


def test_sigmoid_stays_below_one():
    norm = SigmoidNorm(2)
    assert norm.normalize(100) < 1
    assert norm.normalize(sys.float_info.max) <= 1
    assert norm.normalize(float("inf")) == 1.0


def test_sigmoid_is_monotonic():
    norm = SigmoidNorm(5)
    rng = random.Random(42)
    for _ in range(50):
        a, b = sorted((rng.uniform(0, 20), rng.uniform(0, 20)))
        assert norm.normalize(a) <= norm.normalize(b)


def test_sigmoid_zero_scale_does_not_raise():
    norm = SigmoidNorm(0)
    assert norm.normalize(0) == 0.0
    assert norm.normalize(3) == 0.0


def test_reverse_min_equals_one_at_min():
    assert ReverseMinNorm(10).normalize(10) == pytest.approx(1.0, rel=1e-3)


def test_reverse_min_rewards_smaller_values():
    norm = ReverseMinNorm(1)
    assert norm.normalize(1) > norm.normalize(2) > norm.normalize(3)


def test_reverse_min_zero_input_does_not_raise():
    assert ReverseMinNorm(0).normalize(0) == 0.0
    assert ReverseMinNorm(1).normalize(0) == 0.0


def test_max_equals_one_at_max():
    assert MaxNorm(10).normalize(10) == pytest.approx(1.0, rel=1e-3)
    assert MaxNorm(10).normalize(5) == pytest.approx(0.5)


def test_max_zero_reference_does_not_raise():
    assert MaxNorm(0).normalize(1) == 0.0
    assert MaxNorm(1).normalize(0) == 0.0


def test_new_normalizer_by_name():
    assert isinstance(new_normalizer("sigmoid", 3), SigmoidNorm)
    assert isinstance(new_normalizer("reverse_min", 1), ReverseMinNorm)
    assert isinstance(new_normalizer("max", 6), MaxNorm)
    with pytest.raises(ValueError, match="Unknown normalizer"):
        new_normalizer("log", 1)
