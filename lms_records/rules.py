from __future__ import annotations
import logging
import re
from typing import Dict, Iterable, List, Set, Tuple
from urllib.parse import urlsplit

from pydantic import BaseModel, ConfigDict, field_validator

from .models import MAX_NAME_LEN, RawLine, Record, RecordType, Section

log = logging.getLogger(__name__)

DEFAULT_VIDEO_HOSTS: Tuple[str, ...] = ("youtube.com", "youtu.be", "youtube-nocookie.com")

LABEL_SEPARATOR = ": "
# words of a label may be joined by spaces, underscores or hyphens: "Tech_Skills", "soft-skills"
_LABEL_JOIN = r"[\s_\-]+"


class ClassifierConfig(BaseModel):
    """Host suffixes that count as video hosting. Immutable; pass it in, don't patch globals."""

    model_config = ConfigDict(frozen=True)

    video_hosts: Tuple[str, ...] = DEFAULT_VIDEO_HOSTS

    @field_validator("video_hosts", mode="before")
    @classmethod
    def _clean_hosts(cls, v):
        if isinstance(v, str):
            v = v.split(",")
        hosts = []
        for h in v or ():
            h = str(h).strip().lower().lstrip(".")
            if h and h not in hosts:
                hosts.append(h)
        return tuple(hosts)


# ----- link filter -----

def filter_linked(lines: Iterable[RawLine]) -> List[RawLine]:
    """Drop lines without any link token. Lessons without links are skipped, not reported."""
    out: List[RawLine] = []
    for raw in lines:
        if raw.link_tokens:
            out.append(raw)
        else:
            log.debug("line %d %r has no link, skipped", raw.line_no, raw.name.strip())
    return out


# ----- type classifier -----

def link_host(token: str) -> str:
    t = (token or "").strip()
    if not t:
        return ""
    if "://" not in t and not t.startswith("//"):
        t = "//" + t
    try:
        host = urlsplit(t).hostname or ""
    except ValueError:
        return ""
    return host.lower().rstrip(".")


def is_video_link(token: str, config: ClassifierConfig) -> bool:
    host = link_host(token)
    if not host:
        return False
    return any(host == h or host.endswith("." + h) for h in config.video_hosts)


def classify_type(links: Iterable[str], config: ClassifierConfig) -> RecordType:
    """VIDEO only when every link is a video link; anything mixed or empty is OTHER."""
    links = list(links)
    if links and all(is_video_link(l, config) for l in links):
        return RecordType.VIDEO
    return RecordType.OTHER


# ----- name normalizer -----

def _label_pattern(section: Section) -> re.Pattern:
    words = section.label.split()
    return re.compile(r"(?i)^" + _LABEL_JOIN.join(map(re.escape, words)) + r"(?![^\W_])")


LABEL_PATTERNS = {s: _label_pattern(s) for s in Section}


def has_section_label(name: str, section: Section) -> bool:
    """
    True if the name already starts with the section label, case-insensitive:
      'Tech skills: Git'  -> True
      'TECH_SKILLS - Git' -> True
      'tech-skills'       -> True
      'Tech skillset'     -> False
    """
    return bool(LABEL_PATTERNS[section].match((name or "").strip()))


def truncate(s: str, limit: int = MAX_NAME_LEN) -> str:
    # str indexes code points, so this never cuts a multi-byte character
    return s if len(s) <= limit else s[:limit]


def normalize_name(name: str, section: Section) -> str:
    """Trim, prefix with '<Label>: ' unless already labelled, cut to MAX_NAME_LEN."""
    s = (name or "").strip()
    if not s:
        s = section.label
    elif not has_section_label(s, section):
        s = f"{section.label}{LABEL_SEPARATOR}{s}"
    # never ends in whitespace, even when the cut lands after a space
    return truncate(s).rstrip()


def to_record(raw: RawLine, config: ClassifierConfig) -> Record:
    return Record(
        name=normalize_name(raw.name, raw.section),
        links=tuple(raw.link_tokens),
        type=classify_type(raw.link_tokens, config),
        section=raw.section,
    )


def material_names(name: str, count: int) -> List[str]:
    """
    Names for the LMS materials of one record. One link keeps the name; several
    links get ' (1)', ' (2)'... with the name cut so each stays within MAX_NAME_LEN.
    """
    if count <= 1:
        return [name]
    out = []
    for i in range(1, count + 1):
        marker = f" ({i})"
        out.append(truncate(name, MAX_NAME_LEN - len(marker)) + marker)
    return out


def unique_material_names(records: Iterable[Record]) -> Dict[str, Tuple[str, ...]]:
    """
    Material names for a whole batch, keyed by record name. Record names are unique,
    but their expansions are not ('A' with two links vs a lesson called 'A (1)', or
    long names cut to the same prefix), so later collisions get ' (2)', ' (3)'...
    """
    used: Set[str] = set()
    out: Dict[str, Tuple[str, ...]] = {}
    for rec in records:
        names = []
        for base in material_names(rec.name, len(rec.links)):
            name, n = base, 2
            while name in used:
                marker = f" ({n})"
                name = truncate(base, MAX_NAME_LEN - len(marker)) + marker
                n += 1
            if name != base:
                log.warning("material name %r is taken in this batch, uploading it as %r", base, name)
            used.add(name)
            names.append(name)
        out[rec.name] = tuple(names)
    return out
