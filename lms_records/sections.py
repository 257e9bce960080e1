# lms_records/sections.py
from __future__ import annotations

from typing import Dict, List, Optional, Tuple

from .ingest import normalize_newlines
from .models import RawLine, Section

# Input order is fixed: tech skills first, soft skills after the first blank line
SECTION_ORDER: Tuple[Section, ...] = (Section.TECH_SKILLS, Section.SOFT_SKILLS)


def _split_line(line: str) -> Tuple[str, List[str]]:
    """
    'Lesson 1\thttps://a https://b' -> ('Lesson 1', ['https://a', 'https://b'])
    'Lesson 1'                      -> ('Lesson 1', [])
    """
    if "\t" not in line:
        return line, []
    name, rest = line.split("\t", 1)
    return name, rest.split()


def _is_separator(line: str) -> bool:
    return not line.strip()


def split_lines(text: str) -> List[RawLine]:
    """
    Turn pasted spreadsheet text into RawLines tagged with their section.

    Rules:
      - every line is split on its first tab into (name, link tokens)
      - the first whitespace-only line switches TECH_SKILLS -> SOFT_SKILLS;
        any later blank line is just skipped
      - a line that starts with a tab right after a line with links is a
        continuation (a multi-line spreadsheet cell): its tokens are
        appended to the previous line
    Never raises for str input.
    """
    out: List[RawLine] = []
    lines = normalize_newlines(text).split("\n")
    if lines and lines[-1] == "":
        lines.pop()

    section_idx = 0
    prev: Optional[RawLine] = None

    for no, line in enumerate(lines, start=1):
        if _is_separator(line):
            if section_idx + 1 < len(SECTION_ORDER):
                section_idx += 1
            prev = None
            continue

        name, tokens = _split_line(line)

        if prev is not None and prev.link_tokens and name == "" and tokens:
            prev.link_tokens.extend(tokens)
            continue

        prev = RawLine(
            name=name,
            link_tokens=tokens,
            section=SECTION_ORDER[section_idx],
            line_no=no,
        )
        out.append(prev)

    return out


def split_sections(text: str) -> Dict[Section, List[RawLine]]:
    """Same as split_lines, bucketed per section (both keys always present)."""
    buckets: Dict[Section, List[RawLine]] = {s: [] for s in SECTION_ORDER}
    for raw in split_lines(text):
        buckets[raw.section].append(raw)
    return buckets
