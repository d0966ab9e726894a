"""Unit tests for activation decay."""

import math
from datetime import timedelta

import pytest

from melete.core.decay import (
    access_protection,
    apply_decay,
    decayed_activation,
    elapsed_minutes,
)


class TestAccessProtection:
    """Tests for the access protection factor."""

    def test_single_access(self):
        """One access gives ln(2) * 0.1 protection."""
        assert access_protection(1) == pytest.approx(math.log(2) * 0.1)

    def test_grows_with_access_count(self):
        """More accesses, more protection."""
        assert access_protection(10) > access_protection(3) > access_protection(1)

    def test_clamped_for_huge_access_counts(self):
        """Protection never exceeds the clamp, even past ln(n+1) > 10."""
        assert access_protection(10**6) == pytest.approx(0.9)
        assert access_protection(10**6, max_protection=0.5) == pytest.approx(0.5)


class TestDecayedActivation:
    """Tests for the per-item decay arithmetic."""

    def test_five_minutes_single_access(self):
        """1.0 activation, 1 access, 5 minutes -> ~0.5346."""
        result = decayed_activation(1.0, access_count=1, minutes=5)
        expected = 1.0 - 0.1 * 5 * (1 - math.log(2) * 0.1)
        assert result == pytest.approx(expected)
        assert result == pytest.approx(0.5346, abs=1e-3)

    def test_zero_elapsed_leaves_activation_unchanged(self):
        """No time passed, no decay."""
        assert decayed_activation(0.9, access_count=1, minutes=0) == pytest.approx(0.9)

    def test_floored_at_zero(self):
        """Long gaps drive activation to exactly 0, never below."""
        assert decayed_activation(0.4, access_count=1, minutes=600) == 0.0

    def test_monotonic_in_time(self):
        """Later projections never exceed earlier ones."""
        values = [decayed_activation(1.0, 2, minutes) for minutes in (0, 1, 2, 5, 8, 30)]
        assert values == sorted(values, reverse=True)

    def test_higher_access_count_decays_less(self):
        """Access protection: frequently used items fade more slowly."""
        rarely = decayed_activation(1.0, access_count=1, minutes=3)
        often = decayed_activation(1.0, access_count=20, minutes=3)
        assert 1.0 - often <= 1.0 - rarely

    def test_huge_access_count_never_increases_activation(self):
        """The clamp keeps decay from flipping sign."""
        assert decayed_activation(0.5, access_count=10**6, minutes=60) <= 0.5


class TestApplyDecay:
    """Tests for projecting a whole item list."""

    def test_uses_store_anchor_not_item_timestamp(self, make_item, t0):
        """Elapsed time is measured from last_update."""
        item = make_item(last_accessed=t0 - timedelta(hours=5))
        [projected] = apply_decay([item], t0, t0)
        assert projected.activation == pytest.approx(1.0)

    def test_does_not_mutate_inputs(self, make_item, t0):
        """Projection returns copies."""
        item = make_item(activation=0.8)
        [projected] = apply_decay([item], t0, t0 + timedelta(minutes=2))
        assert item.activation == 0.8
        assert projected.activation < 0.8
        assert projected is not item
        assert projected.id == item.id

    def test_clock_skew_treated_as_no_elapsed_time(self, make_item, t0):
        """A last_update in the future does not raise activation."""
        item = make_item(activation=0.6)
        [projected] = apply_decay([item], t0 + timedelta(minutes=10), t0)
        assert projected.activation == pytest.approx(0.6)
        assert elapsed_minutes(t0 + timedelta(minutes=10), t0) == 0.0

    def test_custom_base_rate(self, make_item, t0):
        """Base rate is configurable."""
        item = make_item(activation=1.0)
        [slow] = apply_decay([item], t0, t0 + timedelta(minutes=5), base_rate=0.01)
        [fast] = apply_decay([item], t0, t0 + timedelta(minutes=5), base_rate=0.1)
        assert slow.activation > fast.activation
