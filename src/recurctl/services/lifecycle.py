"""LifecycleService: roll completed recurring tasks forward and archive them.

Pipeline per file: LOCK → READ → RECUR → ARCHIVE → RELEASE

- LOCK: one operation per vault path. A held lock means "busy", which is
  an expected outcome, not an error.
- RECUR: resolve the recurrence rule, compute the next due date, and
  create the next instance next to the original. An unresolved rule skips
  this step with a warning; a date that cannot be computed aborts the
  whole operation before anything is written.
- ARCHIVE: make sure the (optionally dated) archive folder exists, flag
  the original ``archived: true``, and move it there.

Storage failures abort at the point they happen. Earlier effects are not
rolled back. A failure before the flag is written leaves the original
eligible (completed, not archived), so the next run retries.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime
from pathlib import PurePosixPath
from typing import Any

import structlog

from recurctl.config.settings import RecurSettings
from recurctl.domain.dates import InvalidDateError, next_due_date
from recurctl.domain.frontmatter import parse_frontmatter, render_frontmatter
from recurctl.domain.lifecycle import (
    Outcome,
    TaskPhase,
    advance,
    build_next_frontmatter,
    is_eligible,
)
from recurctl.domain.naming import next_instance_name, sanitize_file_name, uncheck_subtasks
from recurctl.domain.rules import RuleMatch, RuleMatcher
from recurctl.infrastructure.locks import LockRegistry
from recurctl.infrastructure.storage import (
    PathCollisionError,
    Storage,
    join_path,
    normalize_path,
    unique_path,
)
from recurctl.services.notifications import (
    LoggingSink,
    Notification,
    NotificationSink,
    Severity,
)
from recurctl.services.result import ServiceResult
from recurctl.services.telemetry import trace_span, traced

log = structlog.get_logger(__name__)


class LifecycleService:
    """Decides whether a task file recurs and performs the file transaction.

    Parameters:
        storage: File primitives, addressed by vault-relative path.
        settings: Field names, formats, archive layout, and rules.
        sink: Receives user-facing notifications (logged when omitted).
        locks: Shared lock registry; pass one in when several services
            or a sweeper must see the same locks.
        clock: Source of "now" for created stamps, empty due dates, and
            dated archive folders.
    """

    def __init__(
        self,
        storage: Storage,
        settings: RecurSettings,
        *,
        sink: NotificationSink | None = None,
        locks: LockRegistry | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._storage = storage
        self._sink: NotificationSink = sink if sink is not None else LoggingSink()
        self._locks = locks if locks is not None else LockRegistry()
        self._clock = clock
        self._settings = settings
        self._matcher = RuleMatcher(settings.rules)

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    @property
    def settings(self) -> RecurSettings:
        return self._settings

    @property
    def locks(self) -> LockRegistry:
        return self._locks

    @property
    def matcher(self) -> RuleMatcher:
        return self._matcher

    def update_settings(self, settings: RecurSettings) -> None:
        """Swap settings and rebuild the rule index before the next operation."""
        matcher = RuleMatcher(settings.rules)
        self._settings = settings
        self._matcher = matcher
        log.debug("settings.updated", rules=len(settings.rules))

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def is_eligible(self, frontmatter: dict[str, Any]) -> bool:
        fields = self._settings.frontmatter
        return is_eligible(
            frontmatter,
            completed_field=fields.completed,
            archived_field=fields.archived,
            recurrence_field=fields.recurrence,
        )

    def handle_change(self, path: str) -> ServiceResult:
        """Entry point for change notifications.

        Ineligible and already-locked files are skipped without any
        notification; eligible files are processed with recurrence on.
        """
        op = "handle_change"
        path = normalize_path(path)
        try:
            fm, _body = parse_frontmatter(self._storage.read(path))
        except OSError:
            log.debug("change.unreadable", path=path)
            return _skipped(op, path, Outcome.INELIGIBLE)
        except ValueError as exc:
            return self._fail(op, path, "STORAGE_ERROR", _describe(exc))

        if not self.is_eligible(fm):
            return _skipped(op, path, Outcome.INELIGIBLE)
        if self._locks.is_locked(path):
            log.debug("change.locked", path=path)
            return _skipped(op, path, Outcome.BUSY)

        return self.process(path, should_recur=True)

    @traced
    def process(
        self,
        path: str,
        *,
        should_recur: bool = True,
        copy_subtasks: bool | None = None,
    ) -> ServiceResult:
        """Create the next instance (when *should_recur*) and archive *path*."""
        op = "process"
        path = normalize_path(path)
        if copy_subtasks is None:
            copy_subtasks = self._settings.recur.copy_subtasks
        warnings: list[str] = []

        with self._locks.hold(path) as granted:
            if not granted:
                return self._busy(op, path)

            phase = _PhaseTracker(path)
            phase.to(TaskPhase.EVALUATING)
            try:
                if not self._storage.exists(path):
                    return self._fail(op, path, "NOT_FOUND", f"No task file at {path}")

                fm, body = parse_frontmatter(self._storage.read(path))

                created: dict[str, Any] = {}
                if should_recur:
                    with trace_span("recur"):
                        created = self._create_next_instance(
                            path, fm, body, copy_subtasks, warnings, phase
                        )

                with trace_span("archive"):
                    archived_to = self._archive_locked(path, phase)
            except InvalidDateError as exc:
                return self._fail(op, path, "INVALID_DATE", str(exc))
            except PathCollisionError as exc:
                return self._fail(op, path, "PATH_COLLISION", str(exc))
            except OSError as exc:
                return self._fail(op, path, "STORAGE_ERROR", _describe(exc))
            except Exception as exc:
                log.exception("task.unexpected_error", path=path)
                return self._fail(op, path, "UNEXPECTED_ERROR", _describe(exc))
            finally:
                phase.to(TaskPhase.IDLE)

        outcome = Outcome.PROCESSED if created.get("created") else Outcome.ARCHIVED
        self._notify(Severity.INFO, f"Task processed: {path}", "PROCESSED", path)
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "path": path,
                "outcome": str(outcome),
                "created": created.get("created"),
                "due": created.get("due"),
                "rule": created.get("rule"),
                "fuzzy": created.get("fuzzy", False),
                "archived_to": archived_to,
            },
            warnings=warnings,
        )

    @traced
    def archive(self, path: str) -> ServiceResult:
        """Archive *path* without creating a next instance."""
        op = "archive"
        path = normalize_path(path)

        with self._locks.hold(path) as granted:
            if not granted:
                return self._busy(op, path)
            phase = _PhaseTracker(path)
            phase.to(TaskPhase.EVALUATING)
            try:
                if not self._storage.exists(path):
                    return self._fail(op, path, "NOT_FOUND", f"No task file at {path}")
                archived_to = self._archive_locked(path, phase)
            except PathCollisionError as exc:
                return self._fail(op, path, "PATH_COLLISION", str(exc))
            except OSError as exc:
                return self._fail(op, path, "STORAGE_ERROR", _describe(exc))
            except Exception as exc:
                log.exception("task.unexpected_error", path=path)
                return self._fail(op, path, "UNEXPECTED_ERROR", _describe(exc))
            finally:
                phase.to(TaskPhase.IDLE)

        self._notify(Severity.INFO, f"Task archived: {path}", "ARCHIVED", path)
        return ServiceResult(
            ok=True,
            op=op,
            data={"path": path, "outcome": str(Outcome.ARCHIVED), "archived_to": archived_to},
        )

    def check(self, path: str) -> ServiceResult:
        """Report what :meth:`process` would do with *path*, without writing."""
        op = "check"
        path = normalize_path(path)
        try:
            fm, _body = parse_frontmatter(self._storage.read(path))
        except OSError as exc:
            return ServiceResult.failure(op, "NOT_FOUND", _describe(exc), path=path)
        except ValueError as exc:
            return ServiceResult.failure(op, "STORAGE_ERROR", _describe(exc), path=path)

        fields = self._settings.frontmatter
        warnings: list[str] = []
        raw = fm.get(fields.recurrence)
        match = self._matcher.resolve(raw)
        next_due: str | None = None
        if match is None and raw:
            warnings.append(f"Invalid recurrence rule: {raw!r}")
        elif match is not None and not match.rule.is_none:
            try:
                next_due = self._next_due(fm.get(fields.due), match)
            except InvalidDateError as exc:
                warnings.append(str(exc))

        return ServiceResult(
            ok=True,
            op=op,
            data={
                "path": path,
                "eligible": self.is_eligible(fm),
                "locked": self._locks.is_locked(path),
                "rule": match.rule.key if match else None,
                "exact": match.exact if match else None,
                "next_due": next_due,
            },
            warnings=warnings,
        )

    # ------------------------------------------------------------------
    # Pipeline steps (caller holds the lock)
    # ------------------------------------------------------------------

    def _create_next_instance(
        self,
        path: str,
        fm: dict[str, Any],
        body: str,
        copy_subtasks: bool,
        warnings: list[str],
        phase: _PhaseTracker,
    ) -> dict[str, Any]:
        fields = self._settings.frontmatter
        raw = fm.get(fields.recurrence)
        match = self._matcher.resolve(raw)

        if match is None:
            msg = f"Invalid recurrence rule: {raw!r}"
            warnings.append(msg)
            self._notify(Severity.WARN, msg, "INVALID_RULE", path)
            return {}
        if not match.exact:
            self._notify(
                Severity.INFO,
                f"Recurrence {raw!r} interpreted as {match.rule.label_en or match.rule.key!r}",
                "FUZZY_RULE",
                path,
            )
        if match.rule.is_none:
            log.debug("task.no_recurrence", path=path)
            return {"rule": match.rule.key, "fuzzy": not match.exact}

        phase.to(TaskPhase.RECURRING, rule=match.rule.key)
        new_due = self._next_due(fm.get(fields.due), match)
        date_format = self._settings.recur.date_format

        new_fm = build_next_frontmatter(
            fm,
            due=new_due,
            created=self._clock().strftime(date_format),
            completed_field=fields.completed,
            archived_field=fields.archived,
            due_field=fields.due,
            created_field=fields.created,
        )
        new_body = uncheck_subtasks(body) if copy_subtasks else body

        original = PurePosixPath(path)
        name = sanitize_file_name(next_instance_name(original.stem, new_due))
        candidate = join_path(str(original.parent), f"{name}{original.suffix or '.md'}")
        target = unique_path(self._storage, candidate)
        if target != candidate:
            self._notify(
                Severity.INFO, f"Name taken, created as {target}", "COLLISION_RESOLVED", path
            )

        self._storage.create(target, render_frontmatter(new_fm, new_body))
        log.info("task.instance_created", path=path, created=target, due=new_due)
        self._notify(Severity.INFO, f"Next instance created: {target}", "INSTANCE_CREATED", path)
        return {
            "created": target,
            "due": new_due,
            "rule": match.rule.key,
            "fuzzy": not match.exact,
        }

    def _archive_locked(self, path: str, phase: _PhaseTracker) -> str:
        phase.to(TaskPhase.ARCHIVING)
        folder = self._archive_folder()
        self._storage.ensure_folder(folder)

        fields = self._settings.frontmatter
        fm, body = parse_frontmatter(self._storage.read(path))
        fm[fields.archived] = True
        self._storage.write(path, render_frontmatter(fm, body))

        candidate = join_path(folder, PurePosixPath(path).name)
        destination = unique_path(self._storage, candidate)
        if destination != candidate:
            self._notify(
                Severity.INFO,
                f"Name taken in archive, stored as {destination}",
                "COLLISION_RESOLVED",
                path,
            )
        self._storage.move(path, destination)
        log.info("task.archived", path=path, archived_to=destination)
        return destination

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _next_due(self, current_due: Any, match: RuleMatch) -> str:
        date_format = self._settings.recur.date_format
        return next_due_date(current_due, match.rule, date_format, now=self._clock)

    def _archive_folder(self) -> str:
        archive = self._settings.archive
        if archive.dated:
            return join_path(archive.folder, self._clock().strftime(archive.dated_format))
        return normalize_path(archive.folder)

    def _notify(self, severity: Severity, message: str, code: str, path: str) -> None:
        self._sink.emit(Notification(severity=severity, message=message, code=code, path=path))

    def _busy(self, op: str, path: str) -> ServiceResult:
        self._notify(Severity.INFO, f"File is already being processed: {path}", "BUSY", path)
        return _skipped(op, path, Outcome.BUSY)

    def _fail(self, op: str, path: str, code: str, message: str) -> ServiceResult:
        log.warning("task.failed", path=path, code=code, error=message)
        self._notify(Severity.ERROR, message, code, path)
        return ServiceResult.failure(
            op, code, message, data={"path": path, "outcome": str(Outcome.FAILED)}, path=path
        )


class _PhaseTracker:
    """Phase of one locked operation; every move is checked against the table."""

    def __init__(self, path: str) -> None:
        self.path = path
        self.current = TaskPhase.IDLE

    def to(self, target: TaskPhase, **fields: Any) -> None:
        self.current = advance(self.current, target)
        log.debug("task.phase", path=self.path, phase=target, **fields)


def _skipped(op: str, path: str, outcome: Outcome) -> ServiceResult:
    return ServiceResult(ok=True, op=op, data={"path": path, "outcome": str(outcome)})


def _describe(exc: BaseException) -> str:
    return f"{type(exc).__name__}: {exc}"
