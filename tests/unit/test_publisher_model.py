"""Tests for the Publisher model."""

from __future__ import annotations

import unittest

from paper_maps.models.publisher import Publisher


class TestPublisher(unittest.TestCase):
    def test_to_dict_shape(self) -> None:
        publisher = Publisher("Harvey Maps", "https://example.test/harvey.png", ("XT40", "XT25"))
        assert publisher.to_dict() == {
            "publisher": "Harvey Maps",
            "icon": "https://example.test/harvey.png",
            "series": ["XT40", "XT25"],
        }

    def test_round_trip(self) -> None:
        publisher = Publisher("Ordnance Survey", "https://example.test/os.png", ("Explorer",))
        assert Publisher.from_dict(publisher.to_dict()) == publisher

    def test_series_must_be_list(self) -> None:
        with self.assertRaises(TypeError):
            Publisher.from_dict({"publisher": "x", "icon": "y", "series": "Explorer"})

    def test_frozen(self) -> None:
        publisher = Publisher("x", "y")
        with self.assertRaises(AttributeError):
            publisher.name = "z"  # type: ignore[misc]
