"""
Tests for host-to-word generation.
"""

import re
import unittest
from dataclasses import replace

from file_searcher.config import ScanConfig
from file_searcher.core.words import WordGenerator, remove_tld


def words(host, **overrides):
    cfg = replace(ScanConfig(), **overrides)
    return list(WordGenerator().generate(host, cfg))


class TestRemoveTld(unittest.TestCase):
    def test_multi_label_tld(self):
        self.assertEqual(remove_tld("foo.co.uk"), "foo")

    def test_single_label_tld(self):
        self.assertEqual(remove_tld("example.com"), "example")

    def test_keeps_subdomains(self):
        self.assertEqual(remove_tld("api.shop.example.com.au"), "api.shop.example")

    def test_unknown_tld_unchanged(self):
        self.assertEqual(remove_tld("intranet.corp"), "intranet.corp")

    def test_lowercases(self):
        self.assertEqual(remove_tld("Portal.Example.COM"), "portal.example")


class TestIpHosts(unittest.TestCase):
    def test_ip_literals_yield_nothing(self):
        for host in (
            "192.168.1.1",
            "http://10.0.0.1:8080/admin",
            "10.0.0.1:8443",
            "::1",
            "2001:db8::1",
            "[::1]:443",
            "https://[2001:db8::1]/x",
        ):
            with self.subTest(host=host):
                self.assertEqual(words(host), [])

    def test_embedded_ip_removed(self):
        result = words("ip-10-0-0-1.web.example.com", no_env_appending=True)
        self.assertIn("web", result)
        self.assertFalse(any("10" in w for w in result))

    def test_hash_token_removed(self):
        result = words("0123456789abcdef0123456789abcdef.cdn.example.com",
                       no_env_appending=True)
        self.assertIn("cdn", result)
        self.assertFalse(any(re.search(r"[0-9a-f]{32}", w) for w in result))


class TestDecomposition(unittest.TestCase):
    def test_exact_label_order(self):
        self.assertEqual(
            words("shop-dev01.example.com", no_env_appending=True),
            ["shop-dev01", "shop", "dev01", "shop-dev", "sho", "example", "exa", "exam"],
        )

    def test_scheme_port_and_path_ignored(self):
        self.assertEqual(
            words("https://shop.example.com:8443/admin/login", no_env_appending=True),
            words("shop.example.com", no_env_appending=True),
        )

    def test_www_dropped(self):
        result = words("www.shop.example.com", no_env_appending=True)
        self.assertNotIn("www", result)
        self.assertEqual(result[0], "shop")

    def test_host_depth(self):
        self.assertEqual(
            words("alpha.beta.gamma.example.com", no_env_appending=True, host_depth=1),
            ["alpha", "alp", "alph"],
        )

    def test_region_removed(self):
        result = words("api.us-east-1.example.com", no_env_appending=True)
        self.assertEqual(result, ["api", "example", "exa", "exam"])

    def test_env_suffix_stripped_from_label(self):
        result = words("apidev.example.com", env_list=("dev", "prod"), env_removing=True)
        self.assertIn("apidev", result)
        self.assertIn("api", result)

    def test_trailing_digits_stripped(self):
        self.assertIn("web", words("web42.example.com", no_env_appending=True))

    def test_numeric_and_single_char_labels_skipped(self):
        result = words("123.a.web-01.example.com", no_env_appending=True)
        self.assertNotIn("123", result)
        self.assertNotIn("a", result)
        self.assertNotIn("01", result)
        self.assertIn("web", result)


class TestVariants(unittest.TestCase):
    def test_env_appending_order(self):
        result = words("portal.example.com", env_list=("dev", "prod"))
        self.assertEqual(result[:10], [
            "portal", "por", "port", "example", "exa", "exam",
            "portaldev", "portal-dev", "portal_dev", "portal/dev",
        ])
        self.assertEqual(len(result), 6 + 6 * 8)

    def test_env_not_appended_to_words_containing_it(self):
        result = words("devportal.example.com", env_list=("dev", "qa"))
        self.assertNotIn("devportaldev", result)
        self.assertIn("devportal-qa", result)

    def test_env_not_appended_to_words_ending_with_env(self):
        result = words("shopqa.example.com", env_list=("dev", "qa"))
        self.assertNotIn("shopqa-dev", result)

    def test_no_env_appending(self):
        result = words("portal.example.com", env_list=("dev",), no_env_appending=True)
        self.assertFalse(any("dev" in w for w in result))

    def test_env_removing_with_configured_list(self):
        result = words("portalsit.example.com", env_list=("sit",),
                       no_env_appending=True, env_removing=True)
        self.assertEqual(result[-1], "portal")

    def test_bypass_suffixes(self):
        result = words("portal.example.com", no_env_appending=True, append_bypasses=True)
        self.assertEqual(len(result), 6 + 6 * 2)
        self.assertIn("portal;", result)
        self.assertIn("portal..;", result)

    def test_end_to_end_variants(self):
        result = words("vendorgo.abc.targetdomain.com")
        self.assertIn("vendorgo", result)
        self.assertIn("vendorgo-qa", result)


class TestInvariants(unittest.TestCase):
    HOSTS = [
        "vendorgo.abc.targetdomain.com",
        "admin-api-portal.stage.internal.example.com",
        "a.b.c.d",
        "x-1.y_2.example.co.uk",
        "-.--.__.example.com",
        "..",
        "",
        "1.2.example.com",
        "https://web01-prod.eu-west-1.example.io:443/x",
    ]

    def test_no_empty_single_or_numeric_words(self):
        for host in self.HOSTS:
            for cfg in ({}, {"env_removing": True, "append_bypasses": True}):
                with self.subTest(host=host, cfg=cfg):
                    for w in words(host, **cfg):
                        self.assertGreater(len(w), 1)
                        self.assertFalse(w.isdigit())

    def test_no_repeats(self):
        for host in self.HOSTS:
            result = words(host, env_removing=True, append_bypasses=True)
            self.assertEqual(len(result), len(set(result)))

    def test_deterministic(self):
        host = "admin-api-portal.stage.internal.example.com"
        self.assertEqual(words(host, env_removing=True), words(host, env_removing=True))

    def test_restartable(self):
        gen = WordGenerator()
        cfg = ScanConfig()
        first = gen.generate("portal.example.com", cfg)
        next(first)
        self.assertEqual(list(gen.generate("portal.example.com", cfg))[0], "portal")


class TestWordCap(unittest.TestCase):
    HOST = "admin-api-portal.stage.internal.example.com"

    def test_cap_is_prefix_of_unlimited_run(self):
        unlimited = words(self.HOST, env_removing=True, append_bypasses=True)
        self.assertGreater(len(unlimited), 20)
        for k in (1, 3, 10, len(unlimited), len(unlimited) + 5):
            with self.subTest(k=k):
                limited = words(self.HOST, env_removing=True, append_bypasses=True,
                                max_words_per_host=k)
                self.assertEqual(limited, unlimited[:k])

    def test_cap_applies_to_env_variants(self):
        cfg = {"env_list": ("dev", "prod"), "env_removing": True}
        unlimited = words("portal.dev.example.com", **cfg)
        limited = words("portal.dev.example.com", max_words_per_host=2, **cfg)
        self.assertGreater(len(unlimited), 4)
        self.assertEqual(len(limited), 2)


if __name__ == "__main__":
    unittest.main()
