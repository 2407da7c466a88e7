"""
Tests for reference scanning and title parsing.

Covers:
- Single verses, verse ranges, verse lists and cross-chapter ranges
- Chapter and chapter-range references
- Malformed candidates that claim their text but yield nothing
- Standalone whole-book phrases and their numeric-suffix rule
- Ordering and non-overlap of scan results
- Title parsing from note file names
- ParsedReference shape checks, parse_verse_part and parse_verse_intervals
- Huge verse numbers kept as bounds, never materialized
"""

import unittest

from versetags.app.config import Granularity
from versetags.app.utils.book_aliases import BookAliasResolver
from versetags.app.utils.canon_loader import default_registry
from versetags.app.utils.reference_parser import (
    MAX_VERSE_NUMBER,
    ParsedReference,
    ReferenceScanner,
    parse_verse_intervals,
    parse_verse_part,
)


def make_scanner(locale="de"):
    language = default_registry().get(locale)
    return ReferenceScanner(BookAliasResolver(language), language.separators)


# ============================================================================
# VERSE REFERENCES
# ============================================================================

class TestVerseReferences(unittest.TestCase):
    """Chapter-and-verse references in German notation."""

    def setUp(self):
        self.scanner = make_scanner()

    def test_single_verse(self):
        refs = self.scanner.scan("Joh 3,16")
        self.assertEqual(len(refs), 1)
        ref = refs[0]
        self.assertEqual(ref.book_id, "Joh")
        self.assertIs(ref.granularity, Granularity.VERSE)
        self.assertEqual((ref.start_chapter, ref.start_verse), (3, 16))
        self.assertIsNone(ref.end_verse)
        self.assertIsNone(ref.verses)
        self.assertEqual(ref.span, (0, 8))

    def test_range_with_list(self):
        ref = self.scanner.scan("Joh 3,16-18.20")[0]
        self.assertEqual(ref.verses, (16, 17, 18, 20))
        self.assertEqual((ref.start_verse, ref.end_verse), (16, 20))

    def test_contiguous_list_becomes_range(self):
        ref = self.scanner.scan("Joh 3,16.17")[0]
        self.assertIsNone(ref.verses)
        self.assertEqual((ref.start_verse, ref.end_verse), (16, 17))

    def test_cross_chapter_range(self):
        ref = self.scanner.scan("Joh 3,35-4,3")[0]
        self.assertTrue(ref.is_cross_chapter)
        self.assertEqual((ref.start_chapter, ref.start_verse), (3, 35))
        self.assertEqual((ref.end_chapter, ref.end_verse), (4, 3))

    def test_cross_range_within_one_chapter(self):
        ref = self.scanner.scan("Joh 3,5-3,9")[0]
        self.assertFalse(ref.is_cross_chapter)
        self.assertEqual((ref.start_chapter, ref.start_verse, ref.end_verse), (3, 5, 9))

    def test_abbreviation_with_period(self):
        ref = self.scanner.scan("vgl. Joh. 3,16")[0]
        self.assertEqual(ref.raw, "Joh. 3,16")

    def test_full_name_wins_over_prefix(self):
        ref = self.scanner.scan("Johannes 3,16")[0]
        self.assertEqual(ref.raw, "Johannes 3,16")
        self.assertEqual(ref.book_id, "Joh")

    def test_numbered_book(self):
        ref = self.scanner.scan("1. Johannes 4,8")[0]
        self.assertEqual(ref.book_id, "1Jo")

    def test_sentence_period_is_not_a_list(self):
        ref = self.scanner.scan("Lies Joh 3,16. Dann weiter.")[0]
        self.assertEqual(ref.raw, "Joh 3,16")

    def test_huge_range_stays_a_range(self):
        ref = self.scanner.scan("Joh 3,1-1000000000")[0]
        self.assertEqual((ref.start_verse, ref.end_verse), (1, 1000000000))
        self.assertIsNone(ref.verses)

    def test_huge_list_is_capped(self):
        ref = self.scanner.scan("Joh 3,1-1000000000.5000000000")[0]
        self.assertEqual(len(ref.verses), 176)

    def test_english_separators(self):
        scanner = make_scanner("en")
        ref = scanner.scan("John 3:16,18")[0]
        self.assertEqual(ref.verses, (16, 18))
        cross = scanner.scan("Jn 3:35-4:3")[0]
        self.assertTrue(cross.is_cross_chapter)


# ============================================================================
# CHAPTER REFERENCES
# ============================================================================

class TestChapterReferences(unittest.TestCase):
    """References naming whole chapters."""

    def setUp(self):
        self.scanner = make_scanner()

    def test_single_chapter(self):
        ref = self.scanner.scan("Joh 3")[0]
        self.assertIs(ref.granularity, Granularity.CHAPTER)
        self.assertEqual(ref.start_chapter, 3)
        self.assertIsNone(ref.end_chapter)

    def test_chapter_range(self):
        ref = self.scanner.scan("Joh 3-4")[0]
        self.assertEqual((ref.start_chapter, ref.end_chapter), (3, 4))

    def test_degenerate_chapter_range(self):
        ref = self.scanner.scan("Joh 3-3")[0]
        self.assertIsNone(ref.end_chapter)


# ============================================================================
# MALFORMED INPUT
# ============================================================================

class TestMalformed(unittest.TestCase):
    """Broken candidates produce nothing and are not reread as chapters."""

    def setUp(self):
        self.scanner = make_scanner()

    def test_verse_zero(self):
        self.assertEqual(self.scanner.scan("Joh 3,0"), [])

    def test_reversed_cross_chapter_range(self):
        self.assertEqual(self.scanner.scan("Joh 4,3-3,1"), [])

    def test_reversed_verse_range(self):
        self.assertEqual(self.scanner.scan("Joh 3,18-16"), [])

    def test_reversed_chapter_range(self):
        self.assertEqual(self.scanner.scan("Joh 4-3"), [])

    def test_unknown_book(self):
        self.assertEqual(self.scanner.scan("Xyz 3,16"), [])

    def test_alias_inside_longer_word(self):
        self.assertEqual(self.scanner.scan("Johannesburg 3"), [])

    def test_empty_text(self):
        self.assertEqual(self.scanner.scan(""), [])

    def test_verses_past_longest_chapter(self):
        self.assertEqual(self.scanner.scan("Joh 3,200.5000000000"), [])


# ============================================================================
# STANDALONE PHRASES
# ============================================================================

class TestStandalone(unittest.TestCase):
    """Whole-book phrases without chapter numbers."""

    def setUp(self):
        self.scanner = make_scanner()

    def test_phrase_is_book_reference(self):
        ref = self.scanner.scan("Der Kolosserbrief ist kurz")[0]
        self.assertIs(ref.granularity, Granularity.BOOK)
        self.assertEqual(ref.book_id, "Col")

    def test_longest_phrase_is_used(self):
        refs = self.scanner.scan("Der Brief an die Kolosser")
        self.assertEqual(len(refs), 1)
        self.assertEqual(refs[0].raw, "Der Brief an die Kolosser")

    def test_phrase_followed_by_number_is_skipped(self):
        self.assertEqual(self.scanner.scan("Kolosserbrief 3"), [])

    def test_numeric_reference_claims_phrase(self):
        refs = self.scanner.scan("Römerbrief 8,28")
        self.assertEqual(len(refs), 1)
        self.assertIs(refs[0].granularity, Granularity.VERSE)
        self.assertEqual(refs[0].book_id, "Rom")


# ============================================================================
# ORDERING
# ============================================================================

class TestOrdering(unittest.TestCase):
    """Results come back in text order and never overlap."""

    def setUp(self):
        self.scanner = make_scanner()

    def test_sorted_by_position(self):
        refs = self.scanner.scan("Kolosserbrief und Joh 3,35-4,3, Röm 8 und Joh 3,16")
        self.assertEqual([r.book_id for r in refs], ["Col", "Joh", "Rom", "Joh"])
        self.assertEqual([r.start for r in refs], sorted(r.start for r in refs))

    def test_no_overlaps(self):
        refs = self.scanner.scan("Joh 3,16-18.20 Joh 3 Joh 3,35-4,3 Kolosserbrief Joh 3-4")
        spans = sorted(r.span for r in refs)
        for (_, first_end), (second_start, _) in zip(spans, spans[1:]):
            self.assertLessEqual(first_end, second_start)

    def test_disabled_scanner_still_finds_nothing(self):
        language = default_registry().get("de").model_copy(update={"books": ()})
        scanner = ReferenceScanner(BookAliasResolver(language), language.separators)
        self.assertEqual(scanner.scan("Joh 3,16 Kolosserbrief"), [])


# ============================================================================
# TITLES
# ============================================================================

class TestParseTitle(unittest.TestCase):
    """Best-effort parsing of note file names."""

    def setUp(self):
        self.scanner = make_scanner()

    def test_title_matches_body_scan(self):
        self.assertEqual(self.scanner.parse_title("Joh 3,16.md"), self.scanner.scan("Joh 3,16")[0])

    def test_extension_is_case_insensitive(self):
        ref = self.scanner.parse_title("Joh 3,35-4,3.MD")
        self.assertTrue(ref.is_cross_chapter)

    def test_chapter_title(self):
        ref = self.scanner.parse_title("Joh 3.md")
        self.assertIs(ref.granularity, Granularity.CHAPTER)

    def test_book_title(self):
        ref = self.scanner.parse_title("Kolosserbrief.md")
        self.assertEqual((ref.book_id, ref.granularity), ("Col", Granularity.BOOK))

    def test_broken_verse_is_not_a_chapter(self):
        self.assertIsNone(self.scanner.parse_title("Joh 3,x.md"))

    def test_no_reference(self):
        self.assertIsNone(self.scanner.parse_title("Meeting notes.md"))
        self.assertIsNone(self.scanner.parse_title(""))


# ============================================================================
# VALUE TYPES
# ============================================================================

class TestParsedReference(unittest.TestCase):
    """Construction rejects references that break their own shape."""

    def test_zero_chapter(self):
        with self.assertRaises(ValueError):
            ParsedReference("Joh 0", "Joh", Granularity.CHAPTER, start_chapter=0)

    def test_book_with_numbers(self):
        with self.assertRaises(ValueError):
            ParsedReference("Kol", "Col", Granularity.BOOK, start_chapter=1)

    def test_verse_without_verse(self):
        with self.assertRaises(ValueError):
            ParsedReference("Joh 3", "Joh", Granularity.VERSE, start_chapter=3)

    def test_unsorted_verse_list(self):
        with self.assertRaises(ValueError):
            ParsedReference("Joh 3,18.16", "Joh", Granularity.VERSE, start_chapter=3, start_verse=16, verses=(18, 16))

    def test_end_chapter_must_follow_start(self):
        with self.assertRaises(ValueError):
            ParsedReference("Joh 3,1-3,2", "Joh", Granularity.VERSE, start_chapter=3, end_chapter=3, start_verse=1, end_verse=2)

    def test_valid_reference(self):
        ref = ParsedReference("Joh 3,16", "Joh", Granularity.VERSE, start_chapter=3, start_verse=16, start=0, end=8)
        self.assertFalse(ref.is_cross_chapter)


class TestParseVersePart(unittest.TestCase):
    """Verse parts are read into sorted, distinct, positive verses."""

    def test_ranges_and_lists(self):
        self.assertEqual(parse_verse_part("16-18.20", ".", "-"), [16, 17, 18, 20])

    def test_duplicates_collapse(self):
        self.assertEqual(parse_verse_part("5.3.5", ".", "-"), [3, 5])

    def test_invalid_segments_are_dropped(self):
        self.assertEqual(parse_verse_part("0", ".", "-"), [])
        self.assertEqual(parse_verse_part("9-7", ".", "-"), [])
        self.assertEqual(parse_verse_part("", ".", "-"), [])
        self.assertEqual(parse_verse_part("2.9-7.4", ".", "-"), [2, 4])

    def test_huge_range_is_capped(self):
        verses = parse_verse_part("1-1000000000", ".", "-")
        self.assertEqual(len(verses), MAX_VERSE_NUMBER)
        self.assertEqual(verses[-1], 176)

    def test_custom_limit(self):
        self.assertEqual(parse_verse_part("3-1000000000.1", ".", "-", limit=4), [1, 3, 4])


class TestParseVerseIntervals(unittest.TestCase):
    """Verse parts are read into merged intervals without expanding them."""

    def test_adjacent_and_overlapping_merge(self):
        self.assertEqual(parse_verse_intervals("16-18.20.19", ".", "-"), [(16, 20)])
        self.assertEqual(parse_verse_intervals("1-5.3-9", ".", "-"), [(1, 9)])

    def test_gaps_stay_apart(self):
        self.assertEqual(parse_verse_intervals("20.16-18", ".", "-"), [(16, 18), (20, 20)])

    def test_huge_bounds_are_kept(self):
        self.assertEqual(
            parse_verse_intervals("1-1000000000.5000000000-9000000000", ".", "-"),
            [(1, 1000000000), (5000000000, 9000000000)],
        )


if __name__ == "__main__":
    unittest.main()
