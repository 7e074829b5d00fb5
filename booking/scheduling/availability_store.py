"""Published employee availability windows."""

import logging
from dataclasses import dataclass
from datetime import date

from sqlalchemy.orm import Session

from booking.core.errors import RejectReason, SchedulingError
from booking.models.availability import Availability
from booking.scheduling.intervals import DateRange, TimeInterval, window_interval
from booking.scheduling.predicates import Operator, Predicate, apply_predicates

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WindowDraft:
    employee_id: int
    interval: TimeInterval


def describe_window(window: Availability) -> dict:
    return {'id': window.id, 'employee_id': window.employee_id, **window_interval(window).to_dict()}


def find_batch_overlaps(drafts: list[WindowDraft]) -> list[tuple[WindowDraft, WindowDraft]]:
    """Return every pair of drafts in the batch that overlap each other."""
    overlapping = []
    for index, first in enumerate(drafts):
        for second in drafts[index + 1:]:
            if first.employee_id == second.employee_id and first.interval.overlaps(second.interval):
                overlapping.append((first, second))
    return overlapping


class AvailabilityStore:
    def __init__(self, db: Session):
        self.db = db

    def get(self, window_id: int) -> Availability | None:
        return self.db.query(Availability).filter(Availability.id == window_id).first()

    def query(
        self,
        employee_id: int | None = None,
        day: date | None = None,
        date_range: DateRange | None = None,
    ) -> list[Availability]:
        predicates: list[Predicate] = []
        if employee_id is not None:
            predicates.append(Predicate('employee_id', Operator.EQ, employee_id))
        if day is not None:
            predicates.append(Predicate('date', Operator.EQ, day))
        elif date_range is not None:
            predicates.append(Predicate('date', Operator.BETWEEN, (date_range.start, date_range.end)))

        query = apply_predicates(self.db.query(Availability), Availability, predicates)
        return query.order_by(Availability.date.asc(), Availability.start_time.asc()).all()

    def find_covering(self, employee_id: int, interval: TimeInterval) -> list[Availability]:
        return self.db.query(Availability).filter(
            Availability.employee_id == employee_id,
            Availability.date == interval.date,
            Availability.start_time <= interval.start,
            Availability.end_time >= interval.end,
        ).order_by(Availability.start_time.asc()).all()

    def find_overlapping(
        self,
        employee_id: int,
        interval: TimeInterval,
        exclude_id: int | None = None,
    ) -> list[Availability]:
        windows = self.query(employee_id=employee_id, day=interval.date)
        return [
            window
            for window in windows
            if window.id != exclude_id and window_interval(window).overlaps(interval)
        ]

    def _ensure_free(self, draft: WindowDraft, exclude_id: int | None = None) -> None:
        overlapping = self.find_overlapping(draft.employee_id, draft.interval, exclude_id=exclude_id)
        if overlapping:
            raise SchedulingError(
                RejectReason.OVERLAP,
                'Availability slot overlaps with existing slot.',
                interval=draft.interval,
                conflicts=[describe_window(window) for window in overlapping],
            )

    def create(self, draft: WindowDraft) -> Availability:
        return self.create_many([draft])[0]

    def create_many(self, drafts: list[WindowDraft]) -> list[Availability]:
        """Insert a batch of windows, or nothing at all if any of them conflicts."""
        batch_overlaps = find_batch_overlaps(drafts)
        if batch_overlaps:
            first, second = batch_overlaps[0]
            raise SchedulingError(
                RejectReason.OVERLAP,
                'Availability slots in the request overlap each other.',
                interval=second.interval,
                conflicts=[{'employee_id': first.employee_id, **first.interval.to_dict()}],
            )

        for draft in drafts:
            self._ensure_free(draft)

        windows = [
            Availability(
                employee_id=draft.employee_id,
                date=draft.interval.date,
                start_time=draft.interval.start,
                end_time=draft.interval.end,
            )
            for draft in drafts
        ]
        self.db.add_all(windows)
        self.db.flush()

        logger.debug('Staged %d availability window(s)', len(windows))
        return windows

    def update(self, window_id: int, draft: WindowDraft) -> Availability:
        window = self.get(window_id)
        if window is None:
            raise SchedulingError(RejectReason.NOT_FOUND, 'Availability slot not found.')

        self._ensure_free(draft, exclude_id=window_id)

        window.employee_id = draft.employee_id
        window.date = draft.interval.date
        window.start_time = draft.interval.start
        window.end_time = draft.interval.end
        self.db.flush()
        return window

    def delete(self, window_id: int) -> None:
        window = self.get(window_id)
        if window is None:
            raise SchedulingError(RejectReason.NOT_FOUND, 'Availability slot not found.')

        self.db.delete(window)
        self.db.flush()
