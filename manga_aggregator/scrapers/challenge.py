from collections.abc import Mapping

# Body markers of known bot-challenge interstitials, lower-cased.
CHALLENGE_MARKERS = (
    "just a moment...",
    "checking your browser",
    "challenge-platform",
    "cf-browser-verification",
    "_cf_chl",
    "cf-chl-bypass",
    "enable javascript and cookies to continue",
    "ddos protection by cloudflare",
    "attention required! | cloudflare",
)

# Substrings of error messages that point at bot protection.
CHALLENGE_ERROR_HINTS = ("cloudflare", "cf-ray", "challenge")


def has_challenge_marker(body: str | None) -> bool:
    if not body:
        return False
    text = body.lower()
    return any(marker in text for marker in CHALLENGE_MARKERS)


def detect_challenge(body: str | None, headers: Mapping[str, str] | None = None) -> bool:
    """
    Detect a bot-challenge page.

    CDN headers (``server: cloudflare``, ``cf-ray``) are served on ordinary
    pages too, so they only count together with a body marker.
    """
    if has_challenge_marker(body):
        return True

    if headers:
        server = (headers.get("server") or "").lower()
        if "cloudflare" in server or headers.get("cf-ray"):
            return has_challenge_marker(body)

    return False


def message_indicates_challenge(message: str) -> bool:
    text = message.lower()
    return any(hint in text for hint in CHALLENGE_ERROR_HINTS)


# Interstitial titles: conclusive even on a 200 response.
INTERSTITIAL_TITLES = ("<title>just a moment", "<title>attention required")
BLOCKING_STATUSES = (403, 429, 503)


def is_challenge_response(status_code: int, body: str | None, headers: Mapping[str, str] | None = None) -> bool:
    """
    Challenge check for a fetched response.

    Ordinary pages behind the CDN can embed challenge-platform scripts, so
    on success statuses only an interstitial title counts.
    """
    if status_code in BLOCKING_STATUSES:
        return detect_challenge(body, headers)
    if not body:
        return False
    head = body[:4096].lower()
    return any(title in head for title in INTERSTITIAL_TITLES)
