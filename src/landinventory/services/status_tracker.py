"""
Plot status transition tracking.

Every change of ``land_plots.status`` is appended to
``land_plot_status_history``. There are two ways a change reaches the
tracker:

- explicitly, from the status update operations, with actor and reason;
- implicitly, from a ``before_flush`` hook that notices status changes made
  through any other ORM write (for example a generic plot update). The hook
  only collects; the entries are written after the flush, at commit at the
  latest, each in its own SAVEPOINT.

Auditing is a capability the tracker either has or does not: if the history
table or its columns are missing, or a history write fails, the failure is
logged as ``AuditDegraded`` and the status update itself goes through.
"""
import weakref
from typing import Optional

from sqlalchemy import event, inspect
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from src.landinventory.db.models import Plot, PlotStatusHistory
from src.landinventory.db.utils import table_has_columns
from src.landinventory.exceptions import AuditDegraded
from src.landinventory.utils.logger import get_logger

logger = get_logger(__name__)

HISTORY_TABLE = PlotStatusHistory.__tablename__
REQUIRED_COLUMNS = (
    "plot_id",
    "previous_status",
    "new_status",
    "changed_by",
    "change_reason",
    "changed_at",
)

# session.info key: plots whose pending status change is audited explicitly
AUDITED_PLOTS_KEY = "land_inventory.audited_plots"
# session.info key: status changes seen by the flush hook, not yet written
PENDING_CHANGES_KEY = "land_inventory.pending_status_changes"


class StatusTransitionTracker:
    """Appends plot status changes to the history table when it can."""

    def __init__(self):
        self._capability = weakref.WeakKeyDictionary()

    def has_capability(self, session: Session) -> bool:
        """
        Whether the history table is usable on this session's database.

        The schema is inspected once per engine.
        """
        bind = session.get_bind()
        if bind not in self._capability:
            self._capability[bind] = table_has_columns(session, HISTORY_TABLE, REQUIRED_COLUMNS)
            logger.info(
                "status_history_capability_checked",
                available=self._capability[bind]
            )
        return self._capability[bind]

    def reset_capability(self):
        """Forget cached schema checks (after migrations or in tests)."""
        self._capability.clear()

    def mark_audited(self, session: Session, plot_id: str):
        """Tell the flush hook that the next status change of a plot is recorded explicitly."""
        session.info.setdefault(AUDITED_PLOTS_KEY, set()).add(plot_id)

    def record(
        self,
        session: Session,
        plot: Plot,
        previous_status: Optional[str],
        new_status: str,
        changed_by: Optional[str] = None,
        reason: Optional[str] = None
    ) -> bool:
        """
        Append a history entry for a status change that has been flushed.

        The write runs in a SAVEPOINT so a failure only discards the audit
        row, never the surrounding transaction.

        Args:
            session: Database session
            plot: Plot whose status changed
            previous_status: Status before the change
            new_status: Status after the change
            changed_by: Acting user
            reason: Free-text reason

        Returns:
            True if an entry was written
        """
        if previous_status == new_status:
            return False
        if not self.has_capability(session):
            self._degraded(AuditDegraded("status history table unavailable"), plot.id)
            return False

        try:
            with session.begin_nested():
                session.add(self._entry(plot, previous_status, new_status, changed_by, reason))
        except SQLAlchemyError as e:
            self._degraded(AuditDegraded("status history write failed", detail=str(e)), plot.id)
            return False

        logger.info(
            "plot_status_change_recorded",
            plot_id=plot.id,
            previous_status=previous_status,
            new_status=new_status,
            changed_by=changed_by
        )
        return True

    def collect(
        self,
        session: Session,
        plot: Plot,
        previous_status: Optional[str],
        new_status: Optional[str]
    ) -> bool:
        """
        Remember a status change seen by the flush hook.

        Nothing is written here: adding the entry to the flush in progress
        would let a failing history insert abort the plot update. The change
        is written later by ``record_pending``.

        Returns:
            True if a change was collected
        """
        if new_status is None or previous_status == new_status:
            return False
        session.info.setdefault(PENDING_CHANGES_KEY, []).append((plot, previous_status, new_status))
        return True

    def record_pending(self, session: Session) -> int:
        """
        Write the changes collected by the flush hook, each in its own SAVEPOINT.

        Must not be called while the session is flushing.

        Returns:
            Number of entries written
        """
        pending = session.info.pop(PENDING_CHANGES_KEY, None)
        if not pending:
            return 0
        return sum(
            1 for plot, previous_status, new_status in pending
            if self.record(session, plot, previous_status, new_status)
        )

    @staticmethod
    def _entry(plot, previous_status, new_status, changed_by, reason) -> PlotStatusHistory:
        return PlotStatusHistory(
            plot_id=plot.id,
            plot_number=plot.plot_number,
            previous_status=previous_status,
            new_status=new_status,
            changed_by=changed_by,
            change_reason=reason,
        )

    @staticmethod
    def _degraded(error: AuditDegraded, plot_id: Optional[str]):
        logger.warning(
            "status_history_degraded",
            kind=error.kind,
            reason=error.message,
            detail=error.detail,
            plot_id=plot_id
        )


status_tracker = StatusTransitionTracker()


@event.listens_for(Session, "before_flush")
def track_plot_status_changes(session, flush_context, instances):
    """Audit status changes on dirty plots not already audited explicitly."""
    audited = session.info.get(AUDITED_PLOTS_KEY)
    for instance in list(session.dirty):
        if not isinstance(instance, Plot):
            continue

        history = inspect(instance).attrs.status.history
        if not history.has_changes():
            continue

        if audited and instance.id in audited:
            audited.discard(instance.id)
            continue

        previous_status = history.deleted[0] if history.deleted else None
        new_status = history.added[0] if history.added else None
        status_tracker.collect(session, instance, previous_status, new_status)


@event.listens_for(Session, "before_commit")
def record_collected_status_changes(session):
    """Flush outstanding changes, then write what the hook collected."""
    if session.in_nested_transaction():
        return
    session.flush()
    status_tracker.record_pending(session)


@event.listens_for(Session, "after_transaction_end")
def discard_collected_status_changes(session, transaction):
    if transaction.parent is None:
        session.info.pop(PENDING_CHANGES_KEY, None)
        session.info.pop(AUDITED_PLOTS_KEY, None)
