from .models import Record, RecordType, RemoteRecord, RemovalSelection, Section, SyncPlan, SyncReport
from .parser import parse_file, parse_text
from .planner import execute_plan, plan_removal, plan_upload
from .rules import ClassifierConfig

__all__ = [
    "ClassifierConfig",
    "Record",
    "RecordType",
    "RemoteRecord",
    "RemovalSelection",
    "Section",
    "SyncPlan",
    "SyncReport",
    "execute_plan",
    "parse_file",
    "parse_text",
    "plan_removal",
    "plan_upload",
]
