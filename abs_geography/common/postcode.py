"""Australian postcode validation and key normalisation."""

from __future__ import annotations

import re

AU_POSTCODE_RE = re.compile(r"[0-9]{4}")
_SHORT_NUMERIC_RE = re.compile(r"[0-9]{1,3}")


def is_valid_au_postcode(value: object) -> bool:
    return isinstance(value, str) and AU_POSTCODE_RE.fullmatch(value) is not None


def normalise_postcode_key(raw: str | None) -> str | None:
    """Normalise a postcode cell read from a dataset file.

    Spreadsheet exports drop leading zeros (``800`` for Darwin's ``0800``),
    so short numeric keys are left-padded. Query input is never normalised.
    """
    if raw is None:
        return None

    cleaned = raw.strip()
    if not cleaned:
        return None

    if _SHORT_NUMERIC_RE.fullmatch(cleaned):
        cleaned = cleaned.zfill(4)

    if not is_valid_au_postcode(cleaned):
        return None

    return cleaned
