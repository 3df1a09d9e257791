"""
Unit tests for word and sequence similarity.
No audio required; uses plain transcripts.
Run: python -m pytest tests/test_scoring.py -v   or   python -m unittest tests.test_scoring
"""

import unittest
from core.scoring import (
    MATCH_THRESHOLD,
    round_half_up,
    sequence_similarity,
    to_percent,
    word_similarity,
)

WORDS = ["بسم", "الله", "الرحمن", "الرحيم", "الحمد", "لله", "كله", "اسم", "كتاب", "ملك"]


class TestWordSimilarity(unittest.TestCase):
    """Character-set Jaccard with exact-match shortcut."""

    def test_identity(self):
        for w in WORDS:
            self.assertEqual(word_similarity(w, w), 1.0)

    def test_diacritics_ignored(self):
        self.assertEqual(word_similarity("بِسْمِ", "بسم"), 1.0)
        self.assertEqual(word_similarity("الرَّحْمَٰنِ", "الرحمن"), 1.0)

    def test_symmetric(self):
        for a in WORDS:
            for b in WORDS:
                self.assertEqual(word_similarity(a, b), word_similarity(b, a))

    def test_range(self):
        for a in WORDS:
            for b in WORDS:
                self.assertGreaterEqual(word_similarity(a, b), 0.0)
                self.assertLessEqual(word_similarity(a, b), 1.0)

    def test_jaccard_value(self):
        # {ب,س,م} vs {ا,س,م}: 2 shared of 4
        self.assertAlmostEqual(word_similarity("بسم", "اسم"), 0.5)
        # {ك,ل,ه} vs {ل,ه}
        self.assertAlmostEqual(word_similarity("كله", "لله"), 2 / 3)

    def test_letters_counted_once(self):
        # Same letter set, different words: set overlap is total
        self.assertEqual(word_similarity("الله", "اله"), 1.0)
        self.assertEqual(word_similarity("الرحمان", "الرحمن"), 1.0)

    def test_disjoint(self):
        self.assertEqual(word_similarity("بسم", "لله"), 0.0)

    def test_empty_against_word(self):
        self.assertEqual(word_similarity("", "بسم"), 0.0)
        self.assertEqual(word_similarity("", ""), 1.0)

    def test_near_miss_below_threshold(self):
        self.assertLess(word_similarity("كتاب", "الله"), MATCH_THRESHOLD)


class TestSequenceSimilarity(unittest.TestCase):
    """Greedy exact-match counting over max length."""

    def test_both_empty(self):
        self.assertEqual(sequence_similarity([], []), 1.0)
        self.assertEqual(sequence_similarity("", ""), 1.0)

    def test_perfect(self):
        words = ["بسم", "الله", "الرحمن", "الرحيم"]
        self.assertEqual(sequence_similarity(words, words), 1.0)

    def test_partial(self):
        self.assertEqual(sequence_similarity(["بسم", "الله"], ["بسم", "الله", "الرحمن", "الرحيم"]), 0.5)

    def test_order_insensitive(self):
        self.assertEqual(sequence_similarity(["الله", "بسم"], ["بسم", "الله"]), 1.0)

    def test_each_reference_word_consumed_once(self):
        # Three spoken "الله" can only match the two in the reference
        self.assertAlmostEqual(sequence_similarity(["الله", "الله", "الله"], ["الله", "بسم", "الله"]), 2 / 3)

    def test_exact_match_only(self):
        self.assertEqual(sequence_similarity(["الرحمان"], ["الرحمن"]), 0.0)

    def test_items_are_normalized_and_split(self):
        self.assertEqual(sequence_similarity(["بِسْمِ اللَّهِ"], ["بسم", "الله"]), 1.0)

    def test_one_side_empty(self):
        self.assertEqual(sequence_similarity([], ["بسم"]), 0.0)
        self.assertEqual(sequence_similarity(["بسم"], []), 0.0)


class TestRounding(unittest.TestCase):
    def test_half_up(self):
        self.assertEqual(round_half_up(2.5), 3)
        self.assertEqual(round_half_up(66.66666, 1), 66.7)
        self.assertEqual(round_half_up(33.33333, 1), 33.3)

    def test_to_percent(self):
        self.assertEqual(to_percent(2 / 3), 67)
        self.assertEqual(to_percent(0.125), 13)
        self.assertEqual(to_percent(1.0), 100)
        self.assertIsInstance(to_percent(0.5), int)


if __name__ == "__main__":
    unittest.main()
