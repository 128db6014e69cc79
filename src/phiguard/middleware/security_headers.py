"""Response hardening headers.

Every response that may carry PHI must not be cached, framed, sniffed or
leak its URL through the referrer, and must only travel over HTTPS.
"""

from typing import Dict, MutableMapping

HIPAA_SECURITY_HEADERS: Dict[str, str] = {
    # Never cache PHI in browsers or shared proxies
    "Cache-Control": "no-store, no-cache, must-revalidate, private",
    "Pragma": "no-cache",
    "Expires": "0",
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "X-XSS-Protection": "1; mode=block",
    "Strict-Transport-Security": "max-age=31536000; includeSubDomains",
    "Referrer-Policy": "no-referrer",
    "Permissions-Policy": "geolocation=(), microphone=(), camera=()",
}


def get_hipaa_security_headers() -> Dict[str, str]:
    """Return a copy of the hardening headers."""
    return dict(HIPAA_SECURITY_HEADERS)


def apply_security_headers(headers: MutableMapping[str, str]) -> None:
    """Set the hardening headers on a response, overriding existing values."""
    for name, value in HIPAA_SECURITY_HEADERS.items():
        headers[name] = value
