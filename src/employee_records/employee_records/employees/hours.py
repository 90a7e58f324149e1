from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import replace
from typing import Optional

from .model import Attendance


class HoursCalculator(ABC):
    """Calculator interface for hours worked (Strategy Pattern)."""

    @abstractmethod
    def hours_worked(self, entry: Attendance) -> Optional[float]:
        raise NotImplementedError

    def fill(self, entry: Attendance) -> Attendance:
        """Return ``entry`` with hours_worked computed unless the caller set it."""
        if entry.hours_worked is not None:
            return entry
        return replace(entry, hours_worked=self.hours_worked(entry))


class StandardHoursCalculator(HoursCalculator):
    """Standard rule: (check_out - check_in) in hours, 2 decimals, not below 0."""

    def hours_worked(self, entry: Attendance) -> Optional[float]:
        if not entry.check_in or not entry.check_out:
            return None
        seconds = (entry.check_out - entry.check_in).total_seconds()
        return max(round(seconds / 3600, 2), 0.0)
