"""PHI Guard.

Regulated-data protection layer for systems handling Protected Health
Information: field-level encryption, access decisions, PHI access audit
logging and scrubbing of PHI from URLs, logs and error responses.
"""

__version__ = "1.0.0"
