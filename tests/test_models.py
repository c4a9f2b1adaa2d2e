"""
Tests for the domain models: filter adjustments and photo snapshots.
"""

from datetime import datetime

import pytest

from core.models import AccessMode, FilterAdjustment, Photo, filter_descriptor


class TestFilterAdjustment:
    def test_defaults_are_identity(self):
        adj = FilterAdjustment()
        assert adj.is_identity
        assert (adj.brightness, adj.contrast, adj.saturation, adj.sepia, adj.grayscale) == (
            100,
            100,
            100,
            0,
            0,
        )

    def test_descriptor(self):
        adj = FilterAdjustment(brightness=120, contrast=90, saturation=150, sepia=20, grayscale=0)
        assert filter_descriptor(adj) == (
            "brightness(120%) contrast(90%) saturate(150%) sepia(20%) grayscale(0%)"
        )

    def test_absent_adjustment_renders_none(self):
        assert filter_descriptor(None) == "none"

    def test_fractional_values_kept(self):
        assert "brightness(101.5%)" in FilterAdjustment(brightness=101.5).to_css()

    @pytest.mark.parametrize("channel", ["sepia", "grayscale"])
    def test_percentage_channels_validated(self, channel):
        with pytest.raises(ValueError):
            FilterAdjustment(**{channel: 101})
        with pytest.raises(ValueError):
            FilterAdjustment(**{channel: -1})

    def test_enhance_channels_unbounded(self):
        assert FilterAdjustment(brightness=500).brightness == 500

    def test_channel_names(self):
        assert FilterAdjustment.channels() == [
            "brightness",
            "contrast",
            "saturation",
            "sepia",
            "grayscale",
        ]


class TestPhoto:
    def test_person_ids_deduplicated(self):
        photo = Photo(id="1", url="u", date=datetime.now(), person_ids=("p1", "p2", "p1"))
        assert photo.person_ids == ("p1", "p2")

    def test_effective_filters_default(self):
        photo = Photo(id="1", url="u", date=datetime.now())
        assert photo.effective_filters == FilterAdjustment()

    def test_visible_in_exactly_one_mode(self):
        for is_private in (True, False):
            photo = Photo(id="1", url="u", date=datetime.now(), is_private=is_private)
            assert [photo.visible_in(m) for m in AccessMode].count(True) == 1
        assert Photo(id="1", url="u", date=datetime.now(), is_private=True).visible_in(
            AccessMode.VAULT
        )
