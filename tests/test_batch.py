import io
import os
import tempfile
import unittest
from unittest.mock import patch

from bcurl import HttpMethod, RequestDescriptor, descriptors_from_urls, load_batch_file, parse_batch


class TestBatch(unittest.TestCase):

    def test_parse_batch_skips_blanks_and_comments(self):
        text = "http://a.test/\n\n   \n# comment\n  http://b.test/x  \r\nhttp://c.test/"

        self.assertEqual(parse_batch(text), ["http://a.test/", "http://b.test/x", "http://c.test/"])

    def test_load_batch_file(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "urls.txt")
            with open(path, "w", encoding="utf-8") as f:
                f.write("http://a.test/\n#skip\nhttp://b.test/\n")

            self.assertEqual(load_batch_file(path), ["http://a.test/", "http://b.test/"])

    def test_load_batch_from_stdin(self):
        with patch("sys.stdin", io.StringIO("http://a.test/\n")):
            self.assertEqual(load_batch_file("-"), ["http://a.test/"])

    def test_missing_batch_file(self):
        with self.assertRaises(OSError):
            load_batch_file("/nonexistent/urls.txt")

    def test_descriptors_copy_the_template(self):
        template = RequestDescriptor("", method=HttpMethod.PUT, headers=[("X-A", "1")], body=b"x", timeout=3)

        descriptors = descriptors_from_urls(["http://a.test/", "http://b.test/"], template)

        self.assertEqual([d.url for d in descriptors], ["http://a.test/", "http://b.test/"])
        for descriptor in descriptors:
            self.assertEqual(descriptor.method, HttpMethod.PUT)
            self.assertEqual(descriptor.headers, (("X-A", "1"),))
            self.assertEqual(descriptor.body, b"x")
            self.assertEqual(descriptor.timeout, 3)

    def test_descriptors_without_template(self):
        self.assertEqual(descriptors_from_urls(["http://a.test/"]), [RequestDescriptor("http://a.test/")])


if __name__ == "__main__":
    unittest.main()
