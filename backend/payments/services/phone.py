"""Mobile network lookup for Ugandan phone numbers."""

from __future__ import annotations

import re

COUNTRY_CODE = "256"

MTN = "mtn"
AIRTEL = "airtel"
UNKNOWN = "unknown"

MTN_PREFIXES = frozenset({"77", "78", "76", "39"})
AIRTEL_PREFIXES = frozenset({"75", "70", "20"})

_COUNTRY_CODE_RE = re.compile(rf"^\+?{COUNTRY_CODE}")
_LOCAL_NUMBER_RE = re.compile(r"^[0-9]{9}$")


def _strip_country_code(phone_number: str) -> str:
    cleaned = re.sub(r"\s", "", phone_number or "")
    return _COUNTRY_CODE_RE.sub("", cleaned)


def normalize(phone_number: str) -> str:
    """Return the 9-digit local number for any of the accepted input forms.

    ``+256 771 234 567``, ``256771234567``, ``0771234567`` and ``771234567``
    all normalize to ``771234567``.
    """

    local = _strip_country_code(phone_number)
    if local.startswith("0"):
        local = local[1:]
    return local


def classify(phone_number: str) -> str:
    prefix = normalize(phone_number)[:2]
    if prefix in MTN_PREFIXES:
        return MTN
    if prefix in AIRTEL_PREFIXES:
        return AIRTEL
    return UNKNOWN


def format_msisdn(phone_number: str, provider: str) -> str:
    """Format a number the way the provider's collection API expects it.

    MTN swaps the local trunk ``0`` for the country code; Airtel prepends the
    country code to the bare subscriber number.
    """

    local = "0" + normalize(phone_number)
    if provider == MTN:
        return re.sub(r"^0", COUNTRY_CODE, local)
    if provider == AIRTEL:
        return COUNTRY_CODE + re.sub(r"^0", "", local)
    raise ValueError(f"Unsupported mobile money provider: {provider}")


def is_valid_local_number(phone_number: str) -> bool:
    return bool(_LOCAL_NUMBER_RE.match(normalize(phone_number)))
