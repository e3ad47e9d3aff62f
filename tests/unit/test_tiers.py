"""
Unit tests for rating tiers.
"""

import pytest

from smashrank.elo.tiers import TIERS, get_tier, get_tier_change


class TestGetTier:

    @pytest.mark.parametrize(
        "elo,tier_id",
        [(100, "bronze"), (899, "bronze"), (900, "silver"), (1100, "gold"),
         (1299, "gold"), (1300, "platinum"), (1500, "diamond"), (2400, "diamond")],
    )
    def test_thresholds(self, elo, tier_id):
        assert get_tier(elo).id == tier_id

    def test_tiers_ordered_highest_first(self):
        thresholds = [t.min_elo for t in TIERS]
        assert thresholds == sorted(thresholds, reverse=True)


class TestGetTierChange:

    def test_same_tier(self):
        assert get_tier_change(1200, 1220) is None

    def test_promotion(self):
        change = get_tier_change(1290, 1310)

        assert change.promoted
        assert not change.demoted
        assert change.tier.id == "platinum"

    def test_demotion(self):
        change = get_tier_change(1105, 1090)

        assert change.demoted
        assert change.tier.id == "silver"
