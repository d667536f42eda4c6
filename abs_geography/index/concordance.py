"""Postcode to SA2 concordance index."""

from __future__ import annotations

import csv
import io
import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

from abs_geography.common.errors import DatasetParseError
from abs_geography.common.logging import default_logger, log_event
from abs_geography.common.models import SA2Region
from abs_geography.common.postcode import normalise_postcode_key


def _cell(row: list[str], idx: int) -> str | None:
    if idx >= len(row):
        return None
    value = row[idx].strip()
    return value or None


def _decode(content: bytes) -> str:
    try:
        # utf-8-sig strips the BOM Excel writes.
        return content.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise DatasetParseError(f"Concordance is not valid UTF-8: {exc}") from exc


def _skip(logger: logging.Logger, line_no: int, reason: str) -> None:
    log_event(
        logger,
        f"skipped concordance row {line_no}: {reason}",
        level=logging.WARNING,
        component="concordance",
        dataset="concordance",
        event="ROW_SKIPPED",
        status="warning",
    )


@dataclass(frozen=True)
class ConcordanceIndex:
    """Read-only multi-map of postcode to SA2 codes in file order."""

    entries: Mapping[str, tuple[str, ...]]
    regions: Mapping[str, SA2Region] = field(default_factory=dict)
    row_count: int = 0

    @property
    def postcode_count(self) -> int:
        return len(self.entries)

    def lookup(self, postcode: str) -> tuple[str, ...]:
        return self.entries.get(postcode, ())

    def __contains__(self, postcode: object) -> bool:
        return postcode in self.entries

    def region(self, sa2_code: str) -> SA2Region | None:
        return self.regions.get(sa2_code)

    @classmethod
    def build(cls, content: bytes, *, logger: logging.Logger | None = None) -> "ConcordanceIndex":
        logger = logger or default_logger()
        reader = csv.reader(io.StringIO(_decode(content), newline=""))

        try:
            header = next(reader, None)
            if header is None:
                raise DatasetParseError("Concordance is empty; expected a header line")

            entries: dict[str, list[str]] = {}
            regions: dict[str, SA2Region] = {}
            rows_in = 0
            rows_out = 0
            for row in reader:
                rows_in += 1
                line_no = reader.line_num
                raw_postcode = _cell(row, 0)
                sa2_code = _cell(row, 1)
                if raw_postcode is None or sa2_code is None:
                    if any(cell.strip() for cell in row):
                        _skip(logger, line_no, "fewer than two usable fields")
                    continue

                postcode = normalise_postcode_key(raw_postcode)
                if postcode is None:
                    _skip(logger, line_no, f"invalid postcode {raw_postcode!r}")
                    continue

                entries.setdefault(postcode, []).append(sa2_code)
                rows_out += 1
                if sa2_code not in regions:
                    regions[sa2_code] = SA2Region(
                        code=sa2_code,
                        name=_cell(row, 2),
                        state_code=_cell(row, 3),
                        state_name=_cell(row, 4),
                    )
        except csv.Error as exc:
            raise DatasetParseError(f"Concordance CSV framing error: {exc}") from exc

        log_event(
            logger,
            "concordance index built",
            component="concordance",
            dataset="concordance",
            event="INDEX_BUILT",
            status="ok",
            rows_in=rows_in,
            rows_out=rows_out,
        )
        return cls(
            entries=MappingProxyType({key: tuple(codes) for key, codes in entries.items()}),
            regions=MappingProxyType(regions),
            row_count=rows_out,
        )
