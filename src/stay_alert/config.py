"""Configuration models and helpers for the dashboard."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta


@dataclass(slots=True)
class AppSettings:
    """Runtime configuration for the alert dashboard."""

    default_threshold: timedelta = timedelta(hours=24)
    min_threshold_hours: int = 1
    max_threshold_hours: int = 168

    @classmethod
    def from_hours(
        cls,
        default_hours: int,
        max_hours: int | None = None,
    ) -> "AppSettings":
        max_threshold = max_hours if max_hours is not None else max(default_hours, 168)
        if default_hours < 1 or default_hours > max_threshold:
            raise ValueError(
                f"default threshold must be between 1 and {max_threshold} hours"
            )
        return cls(
            default_threshold=timedelta(hours=default_hours),
            max_threshold_hours=max_threshold,
        )

    @property
    def default_threshold_hours(self) -> int:
        return int(self.default_threshold.total_seconds() // 3600)
