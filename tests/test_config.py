import unittest
from pathlib import Path

import fakes  # noqa: F401

from config import ConfigError, content_location, extract_page_id, load_settings

PAGE_ID = "0123456789abcdef0123456789abcdef"


class TestConfig(unittest.TestCase):

    def test_extract_page_id(self):
        self.assertEqual(extract_page_id(f"https://www.notion.so/My-Portfolio-{PAGE_ID}"), PAGE_ID)
        self.assertEqual(extract_page_id(f"https://www.notion.so/{PAGE_ID}?v=abc#top"), PAGE_ID)
        self.assertEqual(extract_page_id("01234567-89ab-cdef-0123-456789ABCDEF"), PAGE_ID)
        with self.assertRaises(ConfigError):
            extract_page_id("https://www.notion.so/not-a-page")

    def test_requires_credentials(self):
        with self.assertRaises(ConfigError):
            load_settings({"NOTION_PAGE_URL": PAGE_ID})
        with self.assertRaises(ConfigError):
            load_settings({"NOTION_INTEGRATION_SECRET": "secret"})

    def test_load_settings(self):
        settings = load_settings({
            "NOTION_INTEGRATION_SECRET": "secret",
            "NOTION_PAGE_URL": f"https://www.notion.so/Portfolio-{PAGE_ID}",
            "LOG_LEVEL": "debug",
        })
        self.assertEqual(settings.notion_token, "secret")
        self.assertEqual(settings.notion_page_id, PAGE_ID)
        self.assertEqual(settings.log_level, "DEBUG")

    def test_content_location(self):
        self.assertEqual(content_location({}), (Path("public/content"), None))
        self.assertEqual(
            content_location({"CONTENT_DIR": "/srv/content", "FALLBACK_FILE": "/srv/fallback.json"}),
            (Path("/srv/content"), Path("/srv/fallback.json")),
        )


if __name__ == '__main__':
    unittest.main()
