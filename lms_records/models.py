from __future__ import annotations
from enum import Enum
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

MAX_NAME_LEN = 70


class Section(str, Enum):
    TECH_SKILLS = "tech_skills"
    SOFT_SKILLS = "soft_skills"

    @property
    def label(self) -> str:
        return "Tech skills" if self is Section.TECH_SKILLS else "Soft skills"


class RecordType(str, Enum):
    VIDEO = "video"
    OTHER = "other"


class RawLine(BaseModel):
    name: str = ""
    link_tokens: List[str] = Field(default_factory=list)
    section: Section = Section.TECH_SKILLS
    line_no: int = 0


class Record(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1, max_length=MAX_NAME_LEN)
    links: Tuple[str, ...] = Field(min_length=1)
    type: RecordType = RecordType.OTHER
    section: Section = Section.TECH_SKILLS

    @field_validator("links")
    @classmethod
    def _unique_links(cls, v: Tuple[str, ...]) -> Tuple[str, ...]:
        return tuple(dict.fromkeys(v))


class RemoteRecord(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    id: int
    name: str = ""


class RemovalSelection(BaseModel):
    """What `remove` deletes: explicit ids, one section, or (neither) the whole group."""

    model_config = ConfigDict(frozen=True)

    group_id: int
    ids: Tuple[int, ...] = ()
    section: Optional[Section] = None


class SyncPlan(BaseModel):
    model_config = ConfigDict(frozen=True)

    group_id: int
    to_create: Tuple[Record, ...] = ()
    to_remove: Tuple[RemoteRecord, ...] = ()
    # record name -> names of the materials it is uploaded as, unique across the plan
    material_names: Dict[str, Tuple[str, ...]] = Field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.to_create) + len(self.to_remove)


class ItemResult(BaseModel):
    action: str  # "create" | "remove"
    name: str
    ok: bool
    error: Optional[str] = None


class SyncReport(BaseModel):
    results: List[ItemResult] = Field(default_factory=list)

    @property
    def created(self) -> int:
        return sum(1 for r in self.results if r.ok and r.action == "create")

    @property
    def removed(self) -> int:
        return sum(1 for r in self.results if r.ok and r.action == "remove")

    @property
    def failed(self) -> List[ItemResult]:
        return [r for r in self.results if not r.ok]

    @property
    def ok(self) -> bool:
        return not self.failed


# ----- LMS wire envelopes -----

class ApiResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    success: bool = False
    error: str = ""


class TokenResponse(ApiResponse):
    refresh_token: Optional[str] = None
    access_token: Optional[str] = None


class MaterialListResponse(ApiResponse):
    group: Optional[List[RemoteRecord]] = None


class ParsedBatch(BaseModel):
    records: List[Record] = Field(default_factory=list)
    lines_total: int = 0
    lines_without_links: int = 0
    merged: int = 0
