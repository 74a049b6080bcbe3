"""Tests for IP prefix masking and User-Agent family parsing."""

import pytest

from riskgate.identity.request_signals import (
    FamilyRule,
    UserAgentTable,
    client_ip,
    extract_request_signals,
    ip_prefix,
    load_ua_table,
    parse_user_agent,
)

CHROME_WINDOWS = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
SAFARI_IPHONE = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 17_2 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.2 Mobile/15E148 Safari/604.1"
)
EDGE_MAC = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36 Edg/120.0.2210.91"
)
FIREFOX_LINUX = "Mozilla/5.0 (X11; Linux x86_64; rv:121.0) Gecko/20100101 Firefox/121.0"
SAMSUNG_ANDROID = (
    "Mozilla/5.0 (Linux; Android 13; SM-S911B) AppleWebKit/537.36 (KHTML, like Gecko) "
    "SamsungBrowser/23.0 Chrome/115.0.0.0 Mobile Safari/537.36"
)
SAFARI_IPAD = (
    "Mozilla/5.0 (iPad; CPU OS 17_2 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.2 Mobile/15E148 Safari/604.1"
)


class TestIpPrefix:
    """Tests for ip_prefix masking."""

    @pytest.mark.parametrize("raw, expected", [
        ("203.0.113.77", "203.0.113.0/24"),
        ("203.0.113.0", "203.0.113.0/24"),
        ("10.1.2.255", "10.1.2.0/24"),
        ("2001:db8:1:2:3:4:5:6", "2001:db8:1:2::/64"),
        ("2001:db8::1", "2001:db8::/64"),
        ("::ffff:198.51.100.9", "198.51.100.0/24"),
        (" 203.0.113.77 ", "203.0.113.0/24"),
        ("[2001:db8:1:2::9]", "2001:db8:1:2::/64"),
        ("fe80::1%eth0", "fe80::/64"),
    ])
    def test_masks_host_bits(self, raw, expected):
        assert ip_prefix(raw) == expected

    @pytest.mark.parametrize("raw", [None, "", "not-an-ip", "999.1.1.1", "203.0.113"])
    def test_unparseable_is_none(self, raw):
        assert ip_prefix(raw) is None

    def test_same_network_same_prefix(self):
        assert ip_prefix("198.51.100.1") == ip_prefix("198.51.100.254")


class TestParseUserAgent:
    """Tests for User-Agent family mapping."""

    def test_chrome_on_windows(self):
        families = parse_user_agent(CHROME_WINDOWS)

        assert families.ua_family == "desktop"
        assert families.os_family == "windows"
        assert families.browser_family == "chrome"

    def test_safari_on_iphone(self):
        families = parse_user_agent(SAFARI_IPHONE)

        assert families.ua_family == "mobile"
        assert families.os_family == "ios"
        assert families.browser_family == "safari"

    def test_edge_wins_over_chrome(self):
        families = parse_user_agent(EDGE_MAC)

        assert families.browser_family == "edge"
        assert families.os_family == "macos"

    def test_firefox_on_linux(self):
        families = parse_user_agent(FIREFOX_LINUX)

        assert families.ua_family == "desktop"
        assert families.os_family == "linux"
        assert families.browser_family == "firefox"

    def test_samsung_browser_on_android(self):
        families = parse_user_agent(SAMSUNG_ANDROID)

        assert families.ua_family == "mobile"
        assert families.os_family == "android"
        assert families.browser_family == "samsung"

    def test_ipad_is_tablet(self):
        assert parse_user_agent(SAFARI_IPAD).ua_family == "tablet"

    def test_bots(self):
        assert parse_user_agent("curl/8.4.0").ua_family == "bot"
        assert parse_user_agent("Googlebot/2.1 (+http://www.google.com/bot.html)").ua_family == "bot"

    @pytest.mark.parametrize("ua", [None, "", "   "])
    def test_empty_is_unknown(self, ua):
        families = parse_user_agent(ua)

        assert families.ua_family == "unknown"
        assert families.os_family == "unknown"
        assert families.browser_family == "unknown"

    def test_unmatched_is_unknown(self):
        families = parse_user_agent("SomethingElse/1.0")

        assert families.browser_family == "unknown"
        assert families.os_family == "unknown"

    def test_custom_table(self):
        rule = FamilyRule(family="kiosk", patterns=["kiosk"])
        table = UserAgentTable(
            version=1,
            client_classes=[rule],
            operating_systems=[rule],
            browsers=[rule],
        )

        families = parse_user_agent("ACME Kiosk/2.0", table=table)

        assert families.ua_family == "kiosk"


class TestUserAgentTable:
    """Tests for the packaged family table."""

    def test_packaged_table_loads(self):
        table = load_ua_table()

        assert table.version >= 1
        assert [r.family for r in table.client_classes] == ["bot", "tablet", "mobile", "desktop"]

    def test_rule_requires_patterns(self):
        with pytest.raises(ValueError):
            FamilyRule(family="empty", patterns=[])


class TestClientIp:
    """Tests for client address selection."""

    def test_first_forwarded_hop_wins(self):
        headers = {"x-forwarded-for": "198.51.100.7, 10.0.0.1", "x-real-ip": "192.0.2.1"}

        assert client_ip(headers, "10.0.0.2") == "198.51.100.7"

    def test_real_ip_fallback(self):
        assert client_ip({"x-real-ip": "192.0.2.1"}, "10.0.0.2") == "192.0.2.1"

    def test_peer_fallback(self):
        assert client_ip({}, "10.0.0.2") == "10.0.0.2"

    def test_proxy_headers_ignored_when_untrusted(self):
        headers = {"x-forwarded-for": "198.51.100.7"}

        assert client_ip(headers, "10.0.0.2", trust_proxy_headers=False) == "10.0.0.2"


class TestExtractRequestSignals:
    """Tests for the combined extractor."""

    def test_extracts_prefix_and_families(self):
        headers = {"x-forwarded-for": "203.0.113.77", "user-agent": CHROME_WINDOWS}

        signals = extract_request_signals(headers, peer_host="10.0.0.2")

        assert signals.ip_prefix == "203.0.113.0/24"
        assert signals.ua_family == "desktop"
        assert signals.os_family == "windows"
        assert signals.browser_family == "chrome"

    def test_missing_everything(self):
        signals = extract_request_signals({}, peer_host=None)

        assert signals.ip_prefix is None
        assert signals.ua_family == "unknown"
