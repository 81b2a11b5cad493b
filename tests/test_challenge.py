from manga_aggregator.scrapers.challenge import (
    detect_challenge,
    is_challenge_response,
    message_indicates_challenge,
)

INTERSTITIAL = "<html><head><title>Just a moment...</title></head><body>Checking your browser</body></html>"
ORDINARY_PAGE = (
    "<html><head><title>Solo Leveling</title>"
    '<script src="/cdn-cgi/challenge-platform/scripts/jsd/main.js"></script></head>'
    "<body>chapters</body></html>"
)


def test_detect_challenge_body_markers():
    assert detect_challenge(INTERSTITIAL)
    assert detect_challenge("DDoS protection by Cloudflare")
    assert not detect_challenge("<html>ok</html>")
    assert not detect_challenge(None)


def test_vendor_headers_alone_never_flag():
    headers = {"server": "cloudflare", "cf-ray": "8abc-AMS"}
    assert not detect_challenge("<html>ok</html>", headers)
    assert detect_challenge(INTERSTITIAL, headers)


def test_blocking_status_uses_markers():
    assert is_challenge_response(403, INTERSTITIAL, {})
    assert is_challenge_response(503, "<p>cf-browser-verification</p>", {})
    assert not is_challenge_response(403, "Forbidden", {})


def test_success_status_needs_interstitial_title():
    assert not is_challenge_response(200, ORDINARY_PAGE, {"server": "cloudflare"})
    assert is_challenge_response(200, INTERSTITIAL, {})


def test_message_hints():
    assert message_indicates_challenge("Cloudflare challenge detected")
    assert message_indicates_challenge("blocked, cf-ray 123")
    assert not message_indicates_challenge("HTTP 500: Internal Server Error")
