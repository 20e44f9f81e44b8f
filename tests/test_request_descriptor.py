import unittest

from bcurl import HttpMethod, InvalidInputError, RequestDescriptor, parse_header
from bcurl.request_descriptor import parse_headers


class TestRequestDescriptor(unittest.TestCase):

    def test_defaults(self):
        descriptor = RequestDescriptor("http://example.test/")

        self.assertEqual(descriptor.method, HttpMethod.GET)
        self.assertEqual(descriptor.headers, ())
        self.assertIsNone(descriptor.body)
        self.assertTrue(descriptor.follow_redirects)
        self.assertIsNone(descriptor.timeout)
        self.assertTrue(descriptor.compression_enabled)

    def test_normalizes_method_headers_and_body(self):
        descriptor = RequestDescriptor(
            "http://example.test/", method="post", headers={"X-One": 1}, body="héllo")

        self.assertEqual(descriptor.method, HttpMethod.POST)
        self.assertEqual(descriptor.headers, (("X-One", "1"),))
        self.assertEqual(descriptor.body, "héllo".encode("utf-8"))

    def test_unknown_method(self):
        with self.assertRaises(InvalidInputError):
            RequestDescriptor("http://example.test/", method="BREW")

    def test_headers_keep_order_and_duplicates(self):
        descriptor = RequestDescriptor(
            "http://example.test/", headers=[("Accept", "a"), ("X-Tag", "1"), ("x-tag", "2")])

        self.assertEqual(descriptor.header_values("X-TAG"), ["1", "2"])
        self.assertEqual([name for name, _ in descriptor.headers], ["Accept", "X-Tag", "x-tag"])

    def test_builders_return_copies(self):
        original = RequestDescriptor("http://example.test/")

        changed = (original.with_url("http://other.test/")
                   .with_method("PUT")
                   .with_header("X-Trace", "abc")
                   .with_body(b"data")
                   .with_timeout(2.5)
                   .with_follow_redirects(False)
                   .with_compression(False))

        self.assertEqual(original, RequestDescriptor("http://example.test/"))
        self.assertEqual(changed.url, "http://other.test/")
        self.assertEqual(changed.method, HttpMethod.PUT)
        self.assertEqual(changed.headers, (("X-Trace", "abc"),))
        self.assertEqual(changed.body, b"data")
        self.assertEqual(changed.timeout, 2.5)
        self.assertFalse(changed.follow_redirects)
        self.assertFalse(changed.compression_enabled)

    def test_descriptors_are_hashable_values(self):
        self.assertEqual(
            hash(RequestDescriptor("http://example.test/", headers={"A": "b"})),
            hash(RequestDescriptor("http://example.test/", headers=[("A", "b")])))

    def test_validate_accepts_good_requests(self):
        RequestDescriptor("https://user:pw@example.test:8443/path?q=1", timeout=1).validate()
        RequestDescriptor("HTTP://EXAMPLE.TEST").validate()

    def test_validate_rejects_bad_urls(self):
        for url in ["", "   ", "example.test/path", "ftp://example.test/", "http://", "http://example.test:99999/"]:
            with self.subTest(url=url):
                with self.assertRaises(InvalidInputError):
                    RequestDescriptor(url).validate()

    def test_validate_rejects_bad_headers(self):
        with self.assertRaises(InvalidInputError):
            RequestDescriptor("http://example.test/", headers=[("Bad Name", "x")]).validate()
        with self.assertRaises(InvalidInputError):
            RequestDescriptor("http://example.test/", headers=[("X-Inject", "a\r\nEvil: 1")]).validate()

    def test_validate_rejects_non_positive_timeout(self):
        for timeout in (0, -1):
            with self.assertRaises(InvalidInputError):
                RequestDescriptor("http://example.test/", timeout=timeout).validate()

    def test_header_pairs_must_be_pairs(self):
        with self.assertRaises(InvalidInputError):
            RequestDescriptor("http://example.test/", headers=["X-Only-Name"])


class TestParseHeader(unittest.TestCase):

    def test_parse_header(self):
        self.assertEqual(parse_header("Content-Type: application/json"), ("Content-Type", "application/json"))
        self.assertEqual(parse_header("X-Time:12:30:00"), ("X-Time", "12:30:00"))
        self.assertEqual(parse_header("X-Empty:"), ("X-Empty", ""))

    def test_parse_header_requires_a_colon(self):
        with self.assertRaises(InvalidInputError):
            parse_header("NoColonHere")
        with self.assertRaises(InvalidInputError):
            parse_header(": value")

    def test_parse_headers(self):
        self.assertEqual(parse_headers(["A: 1", "A: 2"]), (("A", "1"), ("A", "2")))


if __name__ == "__main__":
    unittest.main()
