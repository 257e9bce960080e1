from __future__ import annotations
import logging
from enum import Enum
from typing import Callable, Iterable, List, Optional, Protocol, Sequence

from .errors import AuthError, RemoteError
from .models import ItemResult, Record, RemoteRecord, RemovalSelection, SyncPlan, SyncReport
from .rules import has_section_label, unique_material_names

log = logging.getLogger(__name__)

ResultCallback = Callable[[ItemResult], None]


class RecordsClient(Protocol):
    def create_record(self, group_id: int, record: Record, names: Optional[Sequence[str]] = None) -> List[str]: ...

    def delete_record(self, record_id: int) -> None: ...


class PlannerState(str, Enum):
    IDLE = "idle"
    PLANNING = "planning"
    EXECUTING = "executing"
    DONE = "done"


def plan_upload(records: Iterable[Record], group_id: int) -> SyncPlan:
    """Everything in the (already deduplicated) batch gets created; the remote side is not consulted."""
    records = tuple(records)
    return SyncPlan(group_id=group_id, to_create=records, material_names=unique_material_names(records))


def matches_selection(remote: RemoteRecord, selection: RemovalSelection) -> bool:
    if selection.ids and remote.id not in selection.ids:
        return False
    if selection.section is not None and not has_section_label(remote.name, selection.section):
        return False
    return True


def plan_removal(selection: RemovalSelection, listing: Iterable[RemoteRecord]) -> SyncPlan:
    listing = list(listing)
    to_remove = tuple(r for r in listing if matches_selection(r, selection))

    if selection.ids:
        known = {r.id for r in listing}
        for missing in (i for i in selection.ids if i not in known):
            log.warning("material %s is not in group %s, nothing to remove", missing, selection.group_id)

    return SyncPlan(group_id=selection.group_id, to_remove=to_remove)


def execute_plan(plan: SyncPlan, client: RecordsClient, on_result: Optional[ResultCallback] = None) -> SyncReport:
    """
    Send the plan item by item. A RemoteError only fails its own item; the
    rest of the plan still runs. AuthError (and anything unexpected) propagates;
    an AuthError carries the results gathered so far as `partial_report`.
    Already sent items stay applied.
    """
    report = SyncReport()

    def _record(result: ItemResult) -> None:
        report.results.append(result)
        if not result.ok:
            log.warning("%s %r failed: %s", result.action, result.name, result.error)
        if on_result is not None:
            on_result(result)

    try:
        for rec in plan.to_create:
            try:
                client.create_record(plan.group_id, rec, plan.material_names.get(rec.name))
            except RemoteError as e:
                _record(ItemResult(action="create", name=rec.name, ok=False, error=e.message))
            else:
                _record(ItemResult(action="create", name=rec.name, ok=True))

        for remote in plan.to_remove:
            try:
                client.delete_record(remote.id)
            except RemoteError as e:
                _record(ItemResult(action="remove", name=remote.name, ok=False, error=e.message))
            else:
                _record(ItemResult(action="remove", name=remote.name, ok=True))
    except AuthError as e:
        e.partial_report = report
        raise

    return report


class SyncRun:
    """One invocation: IDLE -> PLANNING -> EXECUTING -> DONE. Not reusable."""

    def __init__(self):
        self.state = PlannerState.IDLE
        self.plan: Optional[SyncPlan] = None
        self.report: Optional[SyncReport] = None

    def _expect(self, *states: PlannerState) -> None:
        if self.state not in states:
            raise RuntimeError(f"sync run is {self.state.value}, expected {' or '.join(s.value for s in states)}")

    def plan_upload(self, records: Iterable[Record], group_id: int) -> SyncPlan:
        self._expect(PlannerState.IDLE)
        self.state = PlannerState.PLANNING
        self.plan = plan_upload(records, group_id)
        return self.plan

    def plan_removal(self, selection: RemovalSelection, listing: Iterable[RemoteRecord]) -> SyncPlan:
        self._expect(PlannerState.IDLE)
        self.state = PlannerState.PLANNING
        self.plan = plan_removal(selection, listing)
        return self.plan

    def execute(self, client: RecordsClient, on_result: Optional[ResultCallback] = None) -> SyncReport:
        self._expect(PlannerState.PLANNING)
        self.state = PlannerState.EXECUTING
        try:
            self.report = execute_plan(self.plan, client, on_result)
        finally:
            self.state = PlannerState.DONE
        return self.report
