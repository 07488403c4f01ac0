from unittest import TestCase

from caldavsync.lib.url import URL


class TestURL(TestCase):
    def test_join(self):
        base = URL("https://cal.example.com/dav")
        # fmt: off
        self.assertEqual(str(base.join("/calendars/alice/")), "https://cal.example.com/dav/calendars/alice/")
        self.assertEqual(str(base.join("calendars/alice/")), "https://cal.example.com/dav/calendars/alice/")
        self.assertEqual(str(URL("https://cal.example.com/dav/").join("/x.ics")), "https://cal.example.com/dav/x.ics")
        self.assertEqual(str(URL("https://cal.example.com").join("/x.ics")), "https://cal.example.com/x.ics")
        # fmt: on

    def test_join_absolute(self):
        base = URL("https://cal.example.com/dav")
        self.assertEqual(
            str(base.join("https://other.example.com/a.ics")),
            "https://other.example.com/a.ics",
        )

    def test_join_empty(self):
        base = URL("https://cal.example.com/dav")
        self.assertIs(base.join(""), base)
        self.assertIs(base.join(None), base)

    def test_resolve(self):
        base = URL("https://cal.example.com/dav/")
        self.assertEqual(
            str(base.resolve("/dav/cal/a.ics")), "https://cal.example.com/dav/cal/a.ics"
        )
        self.assertEqual(
            str(base.resolve("cal/a.ics")), "https://cal.example.com/dav/cal/a.ics"
        )

    def test_parts(self):
        url = URL("https://cal.example.com:8443/dav/")
        self.assertEqual(url.scheme, "https")
        self.assertEqual(url.hostname, "cal.example.com")
        self.assertEqual(url.port, 8443)
        self.assertEqual(url.path, "/dav/")
        self.assertTrue(url.is_absolute())
        self.assertFalse(URL("/dav/").is_absolute())

    def test_strip_trailing_slash(self):
        self.assertEqual(
            str(URL("https://cal.example.com/dav/").strip_trailing_slash()),
            "https://cal.example.com/dav",
        )
        self.assertEqual(URL("/a/b/"), "/a/b/")

    def test_objectify(self):
        url = URL("/a/")
        self.assertIs(URL.objectify(url), url)
        self.assertIsNone(URL.objectify(None))
        self.assertEqual(str(URL.objectify("/b/")), "/b/")
