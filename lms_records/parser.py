from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Union

from .ingest import DEFAULT_INPUT, read_input
from .models import ParsedBatch
from .reconcile import dedupe_records
from .rules import ClassifierConfig, filter_linked, to_record
from .sections import split_lines

log = logging.getLogger(__name__)


def parse_text(text: str, config: Optional[ClassifierConfig] = None) -> ParsedBatch:
    """raw text -> lines -> linked lines -> records -> deduplicated records"""
    config = config or ClassifierConfig()

    lines = split_lines(text)
    linked = filter_linked(lines)
    records = [to_record(raw, config) for raw in linked]
    unique = dedupe_records(records)

    batch = ParsedBatch(
        records=unique,
        lines_total=len(lines),
        lines_without_links=len(lines) - len(linked),
        merged=len(records) - len(unique),
    )
    log.info(
        "parsed %d lines: %d records, %d without links, %d merged as duplicates",
        batch.lines_total,
        len(batch.records),
        batch.lines_without_links,
        batch.merged,
    )
    return batch


def parse_file(path: Union[str, Path] = DEFAULT_INPUT, config: Optional[ClassifierConfig] = None) -> ParsedBatch:
    return parse_text(read_input(path), config)
