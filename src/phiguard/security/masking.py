"""Display masking for PHI values.

Maskers decrypt sentinel-prefixed values first, so they can be handed
stored ciphertext directly.
"""

import re
from datetime import date, datetime
from typing import Optional, Union

from phiguard.security.encryption import FieldEncryptor, is_encrypted

MASK_CHAR = "*"
FULL_MASK = "****"
DOB_MASK = "**/**/****"

_NON_DIGITS = re.compile(r"\D")
_YEAR = re.compile(r"(?<!\d)(\d{4})(?!\d)")


class PHIMasker:
    """Masks PHI for display (only a short suffix stays visible)."""

    def __init__(self, encryptor: FieldEncryptor):
        self.encryptor = encryptor

    def _plain(self, value: str) -> str:
        if is_encrypted(value):
            return self.encryptor.decrypt_field(value) or ""
        return value

    def mask(self, value: Optional[str], visible_suffix_len: int = 4) -> str:
        """Replace all but the last ``visible_suffix_len`` characters."""
        if not value:
            return FULL_MASK
        plaintext = self._plain(value)
        if len(plaintext) <= visible_suffix_len:
            return FULL_MASK
        hidden = len(plaintext) - visible_suffix_len
        visible = plaintext[-visible_suffix_len:] if visible_suffix_len > 0 else ""
        return MASK_CHAR * hidden + visible

    def mask_ssn(self, ssn: str) -> str:
        """Mask an SSN as ***-**-1234."""
        digits = _NON_DIGITS.sub("", self._plain(ssn))
        return f"***-**-{digits[-4:]}"

    def mask_phone(self, phone: str) -> str:
        """Mask a phone number as (***) ***-1234."""
        digits = _NON_DIGITS.sub("", self._plain(phone))
        return f"(***) ***-{digits[-4:]}"

    def mask_email(self, email: str) -> str:
        """Keep the first and last character of the local part and the domain."""
        local, sep, domain = self._plain(email).partition("@")
        if not sep or not domain:
            return "****@****"
        if len(local) > 2:
            local = local[0] + MASK_CHAR * (len(local) - 2) + local[-1]
        else:
            local = "**"
        return f"{local}@{domain}"

    def mask_dob(self, dob: Union[str, date, datetime, None]) -> str:
        """Show only the year of a date of birth: **/**/1990.

        Any string format carrying a four-digit year works; without one the
        whole value is masked.
        """
        if isinstance(dob, date):
            return f"**/**/{dob.year:04d}"
        if not dob:
            return DOB_MASK
        match = _YEAR.search(self._plain(dob))
        return f"**/**/{match.group(1)}" if match else DOB_MASK
