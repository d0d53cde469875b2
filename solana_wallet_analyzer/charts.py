"""
Chart data helpers: trailing timeframe windows for the P&L chart and
month grids for the daily P&L heatmap. Pure functions over a finished
daily series.
"""

import calendar
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .analytics import DAY_FORMAT, HUNDRED, ZERO, DailyPoint, safe_divide

DEFAULT_PROFIT_SCALE_MAX = Decimal("800")
DEFAULT_LOSS_SCALE_MAX = Decimal("-500")

WEEKDAY_LABELS = ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")
MONTH_NAMES = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)

PROFIT_HUE = "142 76% 36%"
LOSS_HUE = "0 84% 60%"


class TimePeriod(Enum):
    """Trailing chart windows"""
    WEEK = "7d"
    MONTH = "30d"
    QUARTER = "90d"
    ALL_TIME = "all"

    @property
    def days(self) -> Optional[int]:
        mapping = {
            TimePeriod.WEEK: 7,
            TimePeriod.MONTH: 30,
            TimePeriod.QUARTER: 90,
            TimePeriod.ALL_TIME: None,
        }
        return mapping[self]

    @classmethod
    def from_tag(cls, tag: str) -> "TimePeriod":
        """Parse a tag such as ``"7D"`` or ``"all"``."""
        try:
            return cls(tag.strip().lower())
        except ValueError:
            raise ValueError(f"Unknown timeframe {tag!r}; expected one of "
                             f"{', '.join(p.value for p in cls)}") from None


# =============================================================================
# Timeframe Window Selector
# =============================================================================

@dataclass
class ChartWindow:
    """Trailing slice of the daily series with its padded value domain"""
    period: TimePeriod
    points: List[DailyPoint]
    domain_min: Decimal
    domain_max: Decimal

    def to_dict(self) -> Dict[str, Any]:
        return {
            "period": self.period.value,
            "points": [p.to_dict() for p in self.points],
            "domain": [str(self.domain_min), str(self.domain_max)],
        }


def select_window(series: Sequence[DailyPoint], window: Optional[int]) -> List[DailyPoint]:
    """Last ``window`` points, or the whole series if ``window`` is None or too long."""
    if window is None or window >= len(series):
        return list(series)
    if window <= 0:
        return []
    return list(series[-window:])


def value_domain(points: Sequence[DailyPoint]) -> Tuple[Decimal, Decimal]:
    """
    Axis domain ``[min - pad, max + pad]`` with ``pad = max(0.1 * range, 1)``.

    The one-unit floor keeps a flat series from collapsing to a zero-height
    axis. An empty series yields ``[-1, 1]``.
    """
    if not points:
        return Decimal("-1"), Decimal("1")

    values = [p.net_fiat for p in points]
    lo, hi = min(values), max(values)
    pad = max((hi - lo) * Decimal("0.1"), Decimal("1"))
    return lo - pad, hi + pad


def select_timeframe(series: Sequence[DailyPoint], period: TimePeriod) -> ChartWindow:
    points = select_window(series, period.days)
    lo, hi = value_domain(points)
    return ChartWindow(period=period, points=points, domain_min=lo, domain_max=hi)


# =============================================================================
# Calendar Heatmap Binner
# =============================================================================

@dataclass(frozen=True)
class ColorStyle:
    """Heatmap cell styling derived from a day's value"""
    tone: str  # profit | loss | neutral
    intensity: Decimal
    background: str
    foreground: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tone": self.tone,
            "intensity": str(self.intensity),
            "background": self.background,
            "foreground": self.foreground,
        }


NEUTRAL_STYLE = ColorStyle(
    tone="neutral",
    intensity=ZERO,
    background="hsl(var(--muted) / 0.3)",
    foreground="hsl(var(--muted-foreground))",
)


def color_style(
    value: Decimal,
    profit_scale_max: Decimal = DEFAULT_PROFIT_SCALE_MAX,
    loss_scale_max: Decimal = DEFAULT_LOSS_SCALE_MAX,
) -> ColorStyle:
    """
    Map a daily value to a color intensity in ``[0, 1]``.

    The scale bounds are fixed configuration, not derived from the data.
    """
    if value > 0:
        intensity = min(value / profit_scale_max, Decimal("1"))
        hue, strong = PROFIT_HUE, "hsl(var(--profit-foreground))"
        tone = "profit"
    elif value < 0:
        intensity = min(abs(value) / abs(loss_scale_max), Decimal("1"))
        hue, strong = LOSS_HUE, "hsl(var(--loss-foreground))"
        tone = "loss"
    else:
        return NEUTRAL_STYLE

    opacity = Decimal("0.1") + intensity * Decimal("0.7")
    return ColorStyle(
        tone=tone,
        intensity=intensity,
        background=f"hsl({hue} / {opacity:.3f})",
        foreground=strong if intensity > Decimal("0.5") else "hsl(var(--foreground))",
    )


@dataclass(frozen=True)
class CalendarCell:
    date: str
    day: int
    value: Decimal
    style: ColorStyle

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date,
            "day": self.day,
            "value": str(self.value),
            "style": self.style.to_dict(),
        }


@dataclass
class MonthGrid:
    """Sunday-first month grid; ``None`` cells are leading blanks"""
    year: int
    month: int
    cells: List[Optional[CalendarCell]] = field(default_factory=list)

    @property
    def title(self) -> str:
        return f"{MONTH_NAMES[self.month - 1]} {self.year}"

    @property
    def leading_blanks(self) -> int:
        return sum(1 for c in self.cells if c is None)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "year": self.year,
            "month": self.month,
            "title": self.title,
            "weekdays": list(WEEKDAY_LABELS),
            "cells": [c.to_dict() if c else None for c in self.cells],
        }


def first_weekday(year: int, month: int) -> int:
    """Weekday of the 1st, with Sunday as 0."""
    monday_based = calendar.monthrange(year, month)[0]
    return (monday_based + 1) % 7


def build_month_grid(
    series: Sequence[DailyPoint],
    year: int,
    month: int,
    profit_scale_max: Decimal = DEFAULT_PROFIT_SCALE_MAX,
    loss_scale_max: Decimal = DEFAULT_LOSS_SCALE_MAX,
) -> MonthGrid:
    values = {p.date: p.net_fiat for p in series}
    days_in_month = calendar.monthrange(year, month)[1]

    cells: List[Optional[CalendarCell]] = [None] * first_weekday(year, month)
    for day in range(1, days_in_month + 1):
        key = date(year, month, day).strftime(DAY_FORMAT)
        value = values.get(key, ZERO)
        cells.append(CalendarCell(
            date=key,
            day=day,
            value=value,
            style=color_style(value, profit_scale_max, loss_scale_max),
        ))

    return MonthGrid(year=year, month=month, cells=cells)


def trailing_months(today: date, count: int = 3) -> List[Tuple[int, int]]:
    """``(year, month)`` of the current month and the ``count - 1`` before it, oldest first."""
    months = []
    for back in range(count - 1, -1, -1):
        index = today.year * 12 + (today.month - 1) - back
        months.append((index // 12, index % 12 + 1))
    return months


def build_heatmap(
    series: Sequence[DailyPoint],
    today: date,
    months: int = 3,
    profit_scale_max: Decimal = DEFAULT_PROFIT_SCALE_MAX,
    loss_scale_max: Decimal = DEFAULT_LOSS_SCALE_MAX,
) -> List[MonthGrid]:
    return [
        build_month_grid(series, year, month, profit_scale_max, loss_scale_max)
        for year, month in trailing_months(today, months)
    ]


def heatmap_summary(series: Sequence[DailyPoint]) -> Dict[str, Any]:
    """Total P&L and profitable-day share over a daily series."""
    total = sum((p.net_fiat for p in series), ZERO)
    profitable = sum(1 for p in series if p.net_fiat > 0)
    return {
        "total_pnl": total,
        "profitable_days": profitable,
        "total_days": len(series),
        "profitable_pct": safe_divide(Decimal(profitable), Decimal(len(series))) * HUNDRED,
    }


__all__ = [
    "TimePeriod",
    "ChartWindow",
    "select_window",
    "value_domain",
    "select_timeframe",
    "ColorStyle",
    "NEUTRAL_STYLE",
    "color_style",
    "CalendarCell",
    "MonthGrid",
    "first_weekday",
    "build_month_grid",
    "trailing_months",
    "build_heatmap",
    "heatmap_summary",
    "WEEKDAY_LABELS",
]
