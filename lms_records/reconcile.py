from __future__ import annotations
import logging
from typing import Dict, Iterable, List

from .models import Record, RecordType

log = logging.getLogger(__name__)


def dedupe_keep_order(items: Iterable[str]) -> List[str]:
    seen = set()
    out = []
    for s in items:
        if s not in seen:
            seen.add(s)
            out.append(s)
    return out


def merge_records(first: Record, other: Record) -> Record:
    if first.type != other.type:
        log.warning(
            "Lesson %r appears with different types (%s vs %s), uploading it as %s",
            first.name,
            first.type.value,
            other.type.value,
            RecordType.OTHER.value,
        )
    both_video = first.type == RecordType.VIDEO and other.type == RecordType.VIDEO
    return Record(
        name=first.name,
        links=tuple(dedupe_keep_order([*first.links, *other.links])),
        type=RecordType.VIDEO if both_video else RecordType.OTHER,
        section=first.section,
    )


def dedupe_records(records: Iterable[Record]) -> List[Record]:
    """
    Collapse records with the same (already normalized) name into one.
    Links are unioned in order of first appearance; the type stays VIDEO only
    if every merged record was VIDEO. Output keeps first-appearance order.
    """
    by_name: Dict[str, Record] = {}
    for rec in records:
        prev = by_name.get(rec.name)
        by_name[rec.name] = rec if prev is None else merge_records(prev, rec)
    return list(by_name.values())
