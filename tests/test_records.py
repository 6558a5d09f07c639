import unittest

from fakes import files, number, page, text, title, url

import records


class TestRecords(unittest.TestCase):

    def test_section_defaults_for_empty_record(self):
        item = records.parse_item(page("p1"), "writing")
        self.assertEqual(item.heading, "Untitled")
        self.assertEqual(item.year, "2024")
        self.assertEqual(item.description, "")
        self.assertIsNone(item.url)
        self.assertIsNone(item.location)
        self.assertEqual(item.attachments, [])
        self.assertEqual(item.type, "writing")

    def test_project_fields(self):
        item = records.parse_item(page(
            "p1",
            Title=title("Foo"),
            Year=number(2021),
            URL=url("https://foo.dev"),
            Description=text("A thing"),
            Company=text("Acme"),
            Attachments=files("https://cdn.example/a.png"),
        ), "project")
        self.assertEqual(item.heading, "Foo")
        self.assertEqual(item.title, "Foo")
        self.assertEqual(item.year, "2021")
        self.assertEqual(item.url, "https://foo.dev")
        self.assertEqual(item.company, "Acme")
        self.assertEqual(len(item.attachments), 1)
        self.assertEqual(item.attachments[0].width, 1920)
        self.assertEqual(item.attachments[0].height, 1080)

    def test_project_without_title(self):
        item = records.parse_item(page("p1"), "project")
        self.assertEqual(item.heading, "Untitled Project")

    def test_work_experience_heading(self):
        item = records.parse_item(page(
            "w1", Title=title("Designer"), Company=text("Acme"), Year=text("2019 - 2022"), Location=text("Berlin"),
        ), "workExperience")
        self.assertEqual(item.heading, "Designer at Acme")
        self.assertEqual(item.year, "2019 - 2022")
        self.assertEqual(item.location, "Berlin")
        self.assertEqual(item.attachments, [])

        blank = records.parse_item(page("w2"), "workExperience")
        self.assertEqual(blank.heading, "Position at Company")

    def test_contact(self):
        item = records.parse_item(page(
            "c1", Platform=title("LinkedIn"), Handle=text("@me"), URL=url("https://linkedin.com/in/me"),
        ), "contact")
        self.assertEqual(item.heading, "LinkedIn")
        self.assertEqual(item.platform, "LinkedIn")
        self.assertEqual(item.handle, "@me")
        self.assertEqual(item.type, "contact")

    def test_rich_text_joins_segments(self):
        props = {"Description": {"rich_text": [{"plain_text": "Hello, "}, {"plain_text": "world"}]}}
        self.assertEqual(records.rich_text(props, "Description"), "Hello, world")

    def test_year_number_formatting(self):
        self.assertEqual(records.year_text({"Year": number(2020.0)}), "2020")
        self.assertEqual(records.year_text({"Year": number(None)}), "2024")

    def test_attachments_skip_empty_and_tag_video(self):
        props = {"Attachments": {"files": [
            {"type": "file", "file": {"url": "https://s3.example/clip.MP4?sig=1"}},
            {"type": "external", "external": {"url": ""}},
            {"type": "external", "external": {"url": "https://cdn.example/b.jpg"}},
        ]}}
        result = records.attachments(props)
        self.assertEqual([a.type for a in result], ["video", "image"])

    def test_malformed_properties_do_not_raise(self):
        item = records.parse_item(page("p1", Title={"title": None}, Year="nope", Attachments={"files": [None]}), "speaking")
        self.assertEqual(item.heading, "Untitled")
        self.assertEqual(item.year, "2024")

    def test_unparseable_attachment_url_is_an_image(self):
        parsed = records.attachments({"Attachments": files("http://[cdn/x.png")})
        self.assertEqual([(a.url, a.type) for a in parsed], [("http://[cdn/x.png", "image")])

    def test_general(self):
        general = records.parse_general(page(
            "g1", DisplayName=title("Ada"), Byline=text("Engineer"), ProfilePhoto=files("https://cdn.example/me.jpg"),
        ))
        self.assertEqual(general.display_name, "Ada")
        self.assertEqual(general.profile_photo, "https://cdn.example/me.jpg")
        self.assertEqual(general.section_order[0], "Work Experience")

        empty = records.parse_general(page("g2"))
        self.assertEqual(empty.display_name, "Portfolio")
        self.assertEqual(empty.profile_photo, "/content/media/profilePhoto.jpg")


if __name__ == '__main__':
    unittest.main()
