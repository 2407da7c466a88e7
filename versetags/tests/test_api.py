"""
Tests for the HTTP API.

Covers:
- Scanning documents and titles
- Parsing tags back into parts
- Rendering Markdown
- Listing languages and books
- Migrating tags between languages
- Configuration errors reported as 400
"""

import unittest

from fastapi.testclient import TestClient

from versetags.app.config import Settings, get_settings
from versetags.app.main import app


def settings_override(**values):
    return lambda: Settings(**values)


class ApiTestCase(unittest.TestCase):

    settings = {}

    def setUp(self):
        app.dependency_overrides[get_settings] = settings_override(**self.settings)
        self.client = TestClient(app)

    def tearDown(self):
        app.dependency_overrides.clear()


# ============================================================================
# REFERENCES
# ============================================================================

class TestReferenceEndpoints(ApiTestCase):

    def test_scan(self):
        response = self.client.post("/references/scan", json={"text": "Siehe Röm 8,28", "filename": "Joh 3,16.md"})
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["language"], "de")
        self.assertEqual(body["tags"], ["bible/Joh/3/16", "bible/Röm/8/28"])
        self.assertEqual([r["book_id"] for r in body["references"]], ["Joh", "Rom"])
        self.assertEqual(body["references"][1]["granularity"], "verse")

    def test_scan_without_references(self):
        body = self.client.post("/references/scan", json={"text": "Nichts"}).json()
        self.assertEqual((body["references"], body["tags"]), ([], []))

    def test_title(self):
        body = self.client.post("/references/title", json={"filename": "Kolosserbrief.md"}).json()
        self.assertEqual(body["reference"]["granularity"], "book")
        self.assertEqual(body["tags"], ["bible/Kol"])

    def test_title_without_reference(self):
        body = self.client.post("/references/title", json={"filename": "notes.md"}).json()
        self.assertIsNone(body["reference"])
        self.assertEqual(body["tags"], [])

    def test_parse_tag(self):
        response = self.client.post("/references/parse-tag", json={"tag": "bible/Kol/1/2"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"book_id": "Col", "granularity": "verse", "chapter": 1, "verse": 2})

    def test_parse_invalid_tag(self):
        response = self.client.post("/references/parse-tag", json={"tag": "todo"})
        self.assertEqual(response.status_code, 422)

    def test_render(self):
        body = self.client.post("/references/render", json={"text": "Siehe Joh 3,16"}).json()
        self.assertIn('rel="ref"', body["html"])


class TestEnglishSettings(ApiTestCase):

    settings = {"language": "en", "tag_prefix": "Bible/"}

    def test_scan_uses_settings(self):
        body = self.client.post("/references/scan", json={"text": "John 3:16"}).json()
        self.assertEqual(body["language"], "en")
        self.assertEqual(body["tags"], ["Bible/John/3/16"])


class TestBadSettings(ApiTestCase):

    settings = {"chapter_verse_separator": ",", "list_separator": ",", "range_separator": "-"}

    def test_colliding_separators(self):
        response = self.client.post("/references/scan", json={"text": "Joh 3,16"})
        self.assertEqual(response.status_code, 400)
        self.assertIn("separators", response.json()["detail"])


# ============================================================================
# LANGUAGES
# ============================================================================

class TestLanguageEndpoints(ApiTestCase):

    def test_list_languages(self):
        body = self.client.get("/languages").json()
        self.assertEqual([language["code"] for language in body], ["de", "en", "es", "fr", "it", "pt"])
        german = body[0]
        self.assertEqual(german["separators"], {"chapter_verse": ",", "list": ".", "range": "-"})

    def test_list_books(self):
        response = self.client.get("/languages/de/books")
        self.assertEqual(response.status_code, 200)
        books = response.json()
        self.assertEqual(len(books), 66)
        colossians = next(book for book in books if book["canonical_id"] == "Col")
        self.assertEqual((colossians["display_id"], colossians["chapters"]), ("Kol", 4))

    def test_unknown_language(self):
        self.assertEqual(self.client.get("/languages/xx/books").status_code, 404)

    def test_migrate_tags(self):
        response = self.client.post(
            "/languages/migrate-tags",
            json={"tags": ["Bibel/Joh/3/16", "todo"], "to_locale": "en"},
        )
        body = response.json()
        self.assertEqual(body["tags"], ["Bible/John/3/16", "todo"])
        self.assertEqual(body["converted"], 1)
        self.assertEqual(body["detected_locale"], "de")


if __name__ == "__main__":
    unittest.main()
