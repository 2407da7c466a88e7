"""
Tests for loading the canon and language tables.

Covers:
- The bundled language registry
- Lookups by display id and tag prefix
- The cross-language spelling map
- Asset errors for missing or corrupt files
"""

import json
import shutil
import tempfile
import unittest
from pathlib import Path

from versetags.app.config import DEFAULT_ASSETS_PATH, Locale
from versetags.app.errors import AssetError, UnknownLocaleError
from versetags.app.utils.canon_loader import CanonLoader, default_registry, load_canon_table, load_registry


class TestRegistry(unittest.TestCase):

    def setUp(self):
        self.registry = default_registry()

    def test_all_locales(self):
        self.assertEqual(self.registry.locales(), [Locale.DE, Locale.EN, Locale.ES, Locale.FR, Locale.IT, Locale.PT])

    def test_every_language_has_every_book(self):
        for locale in self.registry.locales():
            self.assertEqual(len(self.registry.get(locale).books), 66, locale)

    def test_unknown_locale(self):
        with self.assertRaises(UnknownLocaleError):
            self.registry.get("xx")

    def test_book_by_display_id(self):
        self.assertEqual(self.registry.book_by_display_id("de", "kol").canonical_id, "Col")
        self.assertIsNone(self.registry.book_by_display_id("de", "Nope"))

    def test_tag_prefixes(self):
        prefixes = self.registry.all_tag_prefixes()
        self.assertEqual(prefixes.count("Bible"), 1)
        self.assertEqual(self.registry.locale_for_tag_prefix("bibel"), Locale.DE)
        self.assertIsNone(self.registry.locale_for_tag_prefix("notes"))

    def test_universal_display_map(self):
        mapping = self.registry.universal_display_map(Locale.EN)
        self.assertEqual(mapping["joh"], "John")
        self.assertEqual(mapping["kol"], "Col")


class TestAssetErrors(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.assets = Path(self.tmp.name)

    def tearDown(self):
        self.tmp.cleanup()

    def test_missing_canon(self):
        with self.assertRaises(AssetError):
            load_canon_table(self.assets)

    def test_corrupt_canon(self):
        (self.assets / "canon.json").write_text("{", encoding="utf-8")
        with self.assertRaises(AssetError):
            CanonLoader(self.assets).load_canon()

    def test_gap_in_numbering(self):
        books = [{"number": 2, "canonical_id": "Exo", "name": "Exodus", "verses": [22]}]
        (self.assets / "canon.json").write_text(json.dumps({"books": books}), encoding="utf-8")
        with self.assertRaises(AssetError):
            CanonLoader(self.assets).load_canon()

    def test_no_languages(self):
        (self.assets / "languages").mkdir()
        with self.assertRaises(AssetError):
            load_registry(self.assets)

    def test_unsupported_language_file_is_skipped(self):
        languages = self.assets / "languages"
        languages.mkdir()
        shutil.copy(DEFAULT_ASSETS_PATH / "languages" / "en.json", languages / "en.json")
        (languages / "xx.json").write_text("{}", encoding="utf-8")
        with self.assertLogs("versetags.app.utils.canon_loader", level="WARNING"):
            registry = load_registry(self.assets)
        self.assertEqual(registry.locales(), [Locale.EN])


if __name__ == "__main__":
    unittest.main()
