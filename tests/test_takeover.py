"""Takeover provider table and evaluation order."""
import pytest

from webrecon.takeover import PROVIDERS, ProviderRule, evaluate, identify, normalize_cname


def _provider(name):
    return next(p for p in PROVIDERS if p.name == name)


class TestNormalize:
    def test_lowercases_and_qualifies(self):
        assert normalize_cname("Bucket.S3.AmazonAWS.com") == "bucket.s3.amazonaws.com."
        assert normalize_cname("x.example.") == "x.example."
        assert normalize_cname("") == ""


class TestEvaluate:
    def test_s3_vulnerable(self):
        result = evaluate("bucket.s3.amazonaws.com.", [], "<Code>NoSuchBucket</Code>")
        assert result.provider.name == "Amazon S3"
        assert result.vulnerable

    def test_s3_not_vulnerable(self):
        result = evaluate("bucket.s3.amazonaws.com.", [], "<html>welcome</html>")
        assert result.provider.name == "Amazon S3"
        assert not result.vulnerable

    def test_github_by_address(self):
        result = evaluate("example.com.", ["185.199.110.153"], "There isn't a GitHub Pages site here.")
        assert result.provider.name == "GitHub Pages"
        assert result.vulnerable

    def test_exact_cname(self):
        assert identify("domains.tumblr.com", []).name == "Tumblr"
        assert identify("other.tumblr.com", []) is None

    def test_smugmug_empty_body(self):
        assert evaluate("domains.smugmug.com.", [], "").vulnerable
        assert not evaluate("domains.smugmug.com.", [], "<html></html>").vulnerable

    def test_unknown_provider(self):
        assert evaluate("www.example.com.", ["93.184.216.34"], "NoSuchBucket") is None

    def test_first_identified_provider_wins(self):
        # a GitHub address with an S3 cname: GitHub comes first in the table
        result = evaluate("bucket.s3.amazonaws.com.", ["185.199.108.153"], "NoSuchBucket")
        assert result.provider.name == "GitHub Pages"
        assert not result.vulnerable

    def test_custom_table(self):
        table = (ProviderRule("Acme", "https://acme.example", "https://acme.example/fix",
                              cname_suffixes=(".acme.example.",), fingerprints=("gone",)),)
        assert evaluate("site.acme.example", [], "it is gone", table).vulnerable


@pytest.mark.parametrize("provider", PROVIDERS, ids=lambda p: p.name)
def test_every_provider_has_links_and_evidence(provider):
    assert provider.link.startswith("https://")
    assert provider.remediation.startswith("https://")
    assert provider.cname_suffixes or provider.cnames or provider.addrs
    assert provider.fingerprints or provider.empty_body
