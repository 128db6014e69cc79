"""PHI Guard Test Suite.

This test suite enforces:
- Authenticated encryption round-trips for PHI fields
- Default-deny access decisions
- Complete audit trails for all PHI access, including fallbacks
- No PHI in URLs, logs or error responses
"""
