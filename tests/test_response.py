import unittest

from bcurl import Response


class TestResponse(unittest.TestCase):

    def test_status_must_be_in_range(self):
        for status in (99, 600, 0):
            with self.assertRaises(ValueError):
                Response(status, (), b"", "http://example.test/")

    def test_is_success(self):
        self.assertTrue(Response(204, (), b"", "http://example.test/").is_success())
        self.assertFalse(Response(304, (), b"", "http://example.test/").is_success())
        self.assertFalse(Response(500, (), b"", "http://example.test/").is_success())

    def test_header_lookup_is_case_insensitive(self):
        response = Response(
            200, [("Set-Cookie", "a=1"), ("Content-Type", "text/plain"), ("set-cookie", "b=2")],
            b"", "http://example.test/")

        self.assertEqual(response.get_header("content-type"), "text/plain")
        self.assertEqual(response.get_all("SET-COOKIE"), ["a=1", "b=2"])
        self.assertIsNone(response.get_header("X-Missing"))
        self.assertIsInstance(response.headers, tuple)

    def test_text_uses_declared_charset(self):
        response = Response(
            200, [("Content-Type", "text/plain; charset=iso-8859-1")], "café".encode("latin-1"),
            "http://example.test/")

        self.assertEqual(response.text(), "café")

    def test_text_defaults_to_utf8(self):
        response = Response(200, [("Content-Type", "text/html")], "café".encode("utf-8"), "http://example.test/")

        self.assertEqual(response.text(), "café")
        self.assertEqual(Response(200, (), b"plain", "http://example.test/").text(), "plain")

    def test_text_with_unknown_charset_falls_back(self):
        response = Response(200, [("Content-Type", "text/plain; charset=nope")], b"ok", "http://example.test/")

        self.assertEqual(response.text(), "ok")

    def test_status_line(self):
        self.assertEqual(Response(404, (), b"", "u", reason="Not Found").status_line(), "HTTP/1.1 404 Not Found")
        self.assertEqual(Response(200, (), b"", "u", http_version="HTTP/1.0").status_line(), "HTTP/1.0 200")


if __name__ == "__main__":
    unittest.main()
