"""
pipeline.py - Group CSV rows by entity and push each entity through a
remote workflow exactly once.

Many rows can point at the same learner profile or quiz. Rows are first
grouped by their entity code, with the dependency codes (course codes,
question codes) of all rows unioned together. Each group then goes
through its phase's Workflow:

    exists?  -> every row Skipped, no further calls
    resolve  -> each dependency code to a remote identifier
    execute  -> create / update / review / publish
    success  -> every row Success, mappings recorded

Any exception for a group turns into a Failure for every row of that
group; the run carries on with the next group. Remote side effects of
steps that already succeeded are left in place.

The report is flushed after every group, and the runner sleeps for the
configured interval between groups to keep the request rate down.

Rows rejected during grouping are written before any group runs, so
they lead the report instead of sitting at their input position.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional

from sunbird_bulk.csv_io import InputRecord, parse_codes
from sunbird_bulk.errors import DependencyError, failure_reason
from sunbird_bulk.log_utils import status_icon
from sunbird_bulk.reporting import Outcome, Status, StatusReporter


logger = logging.getLogger(__name__)

# Returns a failure reason for a bad row, or None if the row is usable
RecordCheck = Callable[[InputRecord], Optional[str]]


@dataclass
class EntityGroup:
    """All rows sharing one entity code"""
    key: str
    records: List[InputRecord] = field(default_factory=list)
    dependencies: List[str] = field(default_factory=list)

    @property
    def first(self) -> InputRecord:
        return self.records[0]

    def add_dependency(self, code: str) -> bool:
        if code in self.dependencies:
            return False
        self.dependencies.append(code)
        return True

    def outcomes(self, status: Status, reason: str, stage: Optional[str] = None) -> List[Outcome]:
        return [Outcome(row=r.values, status=status, reason=reason, stage=stage) for r in self.records]


@dataclass
class Grouping:
    groups: Dict[str, EntityGroup] = field(default_factory=dict)
    rejected: List[Outcome] = field(default_factory=list)

    @property
    def record_count(self) -> int:
        return len(self.rejected) + sum(len(g.records) for g in self.groups.values())


def group_by_entity(
    records: Iterable[InputRecord],
    key_column: str,
    deps_column: Optional[str] = None,
    *,
    require_deps: bool = True,
    missing_key_reason: str = "Required identifier is missing",
    missing_deps_reason: str = "Dependency codes are missing",
    check: Optional[RecordCheck] = None,
) -> Grouping:
    """
    Group records by key_column, unioning the codes in deps_column.

    Rows with a blank key, a failing check, or (when require_deps) no
    dependency codes get an immediate Failure outcome and are left out of
    the groups. Groups keep first-encounter order.
    """
    grouping = Grouping()

    for record in records:
        key = record.get(key_column)
        if not key:
            logger.warning(f"[rows] Row {record.row_number}: {missing_key_reason}")
            grouping.rejected.append(Outcome(record.values, Status.FAILURE, missing_key_reason))
            continue

        if check is not None:
            problem = check(record)
            if problem:
                logger.warning(f"[rows] Row {record.row_number} ({key}): {problem}")
                grouping.rejected.append(Outcome(record.values, Status.FAILURE, problem))
                continue

        codes = parse_codes(record.get(deps_column)) if deps_column else []
        if deps_column and require_deps and not codes:
            logger.warning(f"[rows] Row {record.row_number} ({key}): {missing_deps_reason}")
            grouping.rejected.append(Outcome(record.values, Status.FAILURE, missing_deps_reason))
            continue

        group = grouping.groups.get(key)
        if group is None:
            group = grouping.groups[key] = EntityGroup(key=key)
        group.records.append(record)

        for code in codes:
            if group.add_dependency(code):
                logger.debug(f"[rows]   Added {code} to {key}")
            else:
                logger.debug(f"[rows]   Skipped duplicate {code} for {key}")

    return grouping


class Workflow:
    """
    One phase's remote steps for a single entity.

    Subclasses override the hooks they need. `stage` can be updated by
    execute() to show how far the remote workflow got; it ends up in the
    report when the reporter has a stage column.
    """

    label = "entity"
    dependency_kind = "dependency"
    requires_dependencies = True

    def __init__(self) -> None:
        self.stage: Optional[str] = None

    def exists(self, group: EntityGroup) -> Optional[str]:
        """Return a skip reason if the entity already exists remotely."""
        return None

    def resolve_dependency(self, code: str) -> Any:
        return code

    def execute(self, group: EntityGroup, resolved: Dict[str, Any]) -> Any:
        raise NotImplementedError

    def on_success(self, group: EntityGroup, resolved: Dict[str, Any], result: Any) -> None:
        pass


class EntityRunner:
    """Drives groups through a Workflow one at a time, reporting as it goes"""

    def __init__(
        self,
        reporter: StatusReporter,
        wait_interval: float = 1.0,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.reporter = reporter
        self.wait_interval = wait_interval
        self.sleep = sleep

    def run(self, grouping: Grouping, workflow: Workflow) -> List[Outcome]:
        produced: List[Outcome] = list(grouping.rejected)
        if grouping.rejected:
            self.reporter.record_all(grouping.rejected)
            self.reporter.flush()

        total = len(grouping.groups)
        for index, group in enumerate(grouping.groups.values(), start=1):
            logger.info(f"[{workflow.label}] ({index}/{total}) {group.key}")
            if group.dependencies:
                logger.info(f"[{workflow.label}]   Unique {workflow.dependency_kind} codes: {', '.join(group.dependencies)}")

            outcomes = self.process_entity(group, workflow)
            produced.extend(outcomes)
            self.reporter.record_all(outcomes)
            self.reporter.flush()

            if self.wait_interval > 0:
                self.sleep(self.wait_interval)

        self.reporter.flush()
        return produced

    def process_entity(self, group: EntityGroup, workflow: Workflow) -> List[Outcome]:
        workflow.stage = None
        label = workflow.label
        try:
            skip_reason = workflow.exists(group)
            if skip_reason:
                self._log(Status.SKIPPED, f"[{label}]   {skip_reason}, skipping")
                return group.outcomes(Status.SKIPPED, skip_reason, workflow.stage)

            resolved = self.resolve(group, workflow)
            if workflow.requires_dependencies and not resolved:
                raise DependencyError(
                    group.key,
                    workflow.dependency_kind,
                    ValueError(f"No {workflow.dependency_kind} codes resolved"),
                )

            result = workflow.execute(group, resolved)
            workflow.on_success(group, resolved, result)
        except Exception as exc:
            reason = failure_reason(exc)
            self._log(Status.FAILURE, f"[{label}]   Error processing {group.key}: {reason}", logging.ERROR)
            logger.debug(f"[{label}]   {type(exc).__name__} detail", exc_info=exc)
            return group.outcomes(Status.FAILURE, reason, workflow.stage)

        self._log(Status.SUCCESS, f"[{label}]   Finished {group.key}")
        return group.outcomes(Status.SUCCESS, "none", workflow.stage)

    def resolve(self, group: EntityGroup, workflow: Workflow) -> Dict[str, Any]:
        """Resolve every dependency; the first failure aborts the entity."""
        resolved: Dict[str, Any] = {}
        for code in group.dependencies:
            try:
                resolved[code] = workflow.resolve_dependency(code)
            except Exception as exc:
                raise DependencyError(code, workflow.dependency_kind, exc) from exc
        return resolved

    @staticmethod
    def _log(status: Status, message: str, level: int = logging.INFO) -> None:
        logger.log(level, message, extra={"icon": status_icon(str(status))})
