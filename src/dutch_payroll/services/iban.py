"""IBAN checks for SEPA payees and the debtor account."""

from __future__ import annotations

import re

from schwifty import IBAN
from schwifty.exceptions import SchwiftyException


def normalize_iban(iban: str) -> str:
    """Strip spaces and upper-case an IBAN as typed by a user."""
    return re.sub(r"\s+", "", iban or "").upper()


def validate_iban(iban: str) -> bool:
    """True if ``iban`` has a valid checksum and its country's BBAN layout.

    The country registry (length and per-position format of the account part)
    comes from schwifty, so ``NL`` accounts must carry a four-letter bank code.
    """
    try:
        IBAN(normalize_iban(iban))
    except SchwiftyException:
        return False
    return True
