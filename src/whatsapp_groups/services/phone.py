"""Phone number normalization into backend identities."""

import re
from dataclasses import dataclass

_NON_DIALABLE = re.compile(r"[^\d+]")


@dataclass(frozen=True)
class PhoneNumberFormatter:
    """Turn raw phone input into a bare WhatsApp identity."""

    default_country_code: str = "20"

    def to_identity(self, raw: str) -> str:
        """Normalize a phone number, assuming the default country when local.

        Raises ``ValueError`` when the input holds no digits.
        """
        cleaned = _NON_DIALABLE.sub("", raw.split("@", maxsplit=1)[0])
        if cleaned.startswith("+"):
            digits = cleaned[1:].replace("+", "")
        elif cleaned.startswith("00"):
            digits = cleaned[2:].replace("+", "")
        else:
            digits = cleaned.replace("+", "")
            if digits.startswith("0"):
                digits = digits[1:]
            if not digits.startswith(self.default_country_code):
                digits = f"{self.default_country_code}{digits}"
        if not digits or digits == self.default_country_code:
            raise ValueError(f"Phone number has no digits: {raw!r}")
        return digits
