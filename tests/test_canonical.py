"""Tests for URL canonicalization, hashing and HTML cleaning."""

import pytest

from mediawatch.ingestion import canonicalize_url, clean_text, hash_url
from mediawatch.ingestion.canonical import compress_gzip, decompress_gzip, hash_bytes


class TestCanonicalizeUrl:
    """Tests for canonicalize_url."""

    def test_lowercases_host_and_strips_tracking(self):
        raw = "https://EXAMPLE.com/Story/?utm_source=x&id=7&utm_medium=y#frag"
        assert canonicalize_url(raw) == "https://example.com/Story?id=7"

    @pytest.mark.parametrize(
        "param",
        ["utm_campaign", "utm_anything", "fbclid", "gclid", "msclkid", "mc_eid", "_ga"],
    )
    def test_drops_tracking_parameter(self, param):
        result = canonicalize_url(f"https://news.site/a?{param}=1&page=2")
        assert param not in result
        assert result == "https://news.site/a?page=2"

    def test_sorts_query_by_key(self):
        assert canonicalize_url("https://a.com/x?b=2&a=1") == "https://a.com/x?a=1&b=2"

    def test_keeps_root_slash(self):
        assert canonicalize_url("https://a.com/") == "https://a.com/"

    def test_keeps_port_and_path_case(self):
        assert canonicalize_url("HTTP://A.com:8080/Path/") == "http://a.com:8080/Path"

    def test_unparseable_input_is_returned(self):
        raw = "http://[not-an-ip/path"
        assert canonicalize_url(raw) == raw

    def test_idempotent(self):
        once = canonicalize_url("https://EXAMPLE.com/a/b/?z=1&fbclid=2&a=3#top")
        assert canonicalize_url(once) == once


class TestHashUrl:
    """Tests for URL hashing."""

    def test_equal_for_cosmetic_differences(self):
        base = hash_url("https://news.site/story?id=1")
        assert hash_url("https://news.site/story/?id=1") == base
        assert hash_url("https://news.site/story?id=1#comments") == base
        assert hash_url("https://NEWS.site/story?utm_source=fb&id=1") == base

    def test_differs_for_different_articles(self):
        assert hash_url("https://news.site/story?id=1") != hash_url("https://news.site/story?id=2")

    def test_is_sha256_hex(self):
        digest = hash_url("https://news.site/a")
        assert len(digest) == 64
        int(digest, 16)


class TestCleanText:
    """Tests for HTML stripping."""

    def test_decodes_entities(self):
        assert clean_text("<p>Hello &amp; welcome</p>") == "Hello & welcome"

    def test_block_elements_become_lines(self):
        html = "<div><p>First  paragraph</p><p>Second<br/>line</p></div>"
        assert clean_text(html) == "First paragraph\nSecond\nline"

    def test_collapses_whitespace(self):
        assert clean_text("  lots\t of \n\n\n  space  ") == "lots of\nspace"

    def test_empty_input(self):
        assert clean_text("") == ""
        assert clean_text("<p> </p>") == ""

    def test_stable_on_clean_text(self):
        html = "<h1>Title</h1><p>Body &amp; text</p><ul><li>one</li><li>two</li></ul>"
        once = clean_text(html)
        assert clean_text(once) == once


class TestGzip:
    """Tests for the gzip helpers used by evidence bundles."""

    def test_decompress_restores_bytes(self):
        data = "<html>ñandú</html>".encode("utf-8")
        assert decompress_gzip(compress_gzip(data)) == data

    def test_hash_bytes(self):
        assert hash_bytes(b"") == "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"
