# tests/test_product_matcher.py

"""Tests for the same-product heuristic."""

import unittest

from src.filters.product_matcher import (
    ProductMatcher,
    critical_numbers,
    normalise_name,
)


class TestNormalisation(unittest.TestCase):
    """Name normalisation and number extraction."""

    def test_normalise_name(self) -> None:
        self.assertEqual(
            normalise_name("  Apple iPhone-15 (128GB)  Black!"),
            "apple iphone15 128gb black",
        )

    def test_critical_numbers_inside_tokens(self) -> None:
        self.assertEqual(critical_numbers("iphone 15 128gb 5g"), ["15", "128"])


class TestProductMatcher(unittest.TestCase):
    """is_same_product decisions."""

    def setUp(self) -> None:
        self.matcher = ProductMatcher()

    def test_different_generation_rejected(self) -> None:
        self.assertFalse(self.matcher.is_same_product(
            "iPhone 15 128GB", "Apple iPhone 17 128GB Black",
        ))

    def test_same_product_with_suffix_accepted(self) -> None:
        self.assertTrue(self.matcher.is_same_product(
            "iPhone 15 128GB", "Apple iPhone 15 128GB Black (Renewed)",
        ))

    def test_different_storage_rejected(self) -> None:
        self.assertFalse(self.matcher.is_same_product(
            "Samsung Galaxy S24 256GB", "Samsung Galaxy S24 128GB",
        ))

    def test_low_word_overlap_rejected(self) -> None:
        self.assertFalse(self.matcher.is_same_product(
            "Sony WH-1000XM5 Wireless Noise Cancelling Headphones Black",
            "Generic 1000 Case Cover",
        ))

    def test_reordered_words_accepted(self) -> None:
        self.assertTrue(self.matcher.is_same_product(
            "Boat Rockerz 450 Headphones",
            "Headphones Rockerz 450 by boAt - Luscious Black",
        ))

    def test_empty_inputs(self) -> None:
        self.assertFalse(self.matcher.is_same_product("", "iPhone 15"))
        self.assertFalse(self.matcher.is_same_product("iPhone 15", None))

    def test_original_without_long_words(self) -> None:
        self.assertFalse(self.matcher.is_same_product("TV", "TV stand"))

    def test_custom_threshold(self) -> None:
        strict = ProductMatcher(threshold=0.9)
        self.assertFalse(strict.is_same_product(
            "Apple iPhone 15 Pink", "iPhone 15 Case",
        ))


if __name__ == "__main__":
    unittest.main()
