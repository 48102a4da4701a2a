"""Budget aggregation over nested stop costs."""

from pydantic import BaseModel

from tripbook.models.common import SpendSeverity
from tripbook.models.trip import Trip

WARNING_THRESHOLD_PCT = 80.0
CRITICAL_THRESHOLD_PCT = 100.0


class DaySpend(BaseModel):
    """Spend of a single day."""

    dia: int
    total: float


class BudgetSummary(BaseModel):
    """Spend figures for display and alerts."""

    total_cost: float
    budget: float
    remaining: float | None
    spending_percentage: float
    progress_percentage: float
    over_budget: bool
    severity: SpendSeverity
    per_day: list[DaySpend]


def total_cost(trip: Trip) -> float:
    """Sum of `costo` over every stop of every day."""
    return sum(stop.costo or 0 for day in trip.itinerario for stop in day.puntos)


def day_cost(trip: Trip, dia: int) -> float:
    """Sum of `costo` for the day numbered dia (0 if there is no such day)."""
    day = trip.find_day(dia)
    if day is None:
        return 0
    return sum(stop.costo or 0 for stop in day.puntos)


def is_over_budget(trip: Trip) -> bool:
    """True when a budget is set and spend exceeds it.

    A budget of 0 (or less) means no limit.
    """
    budget = trip.presupuesto_total
    return budget > 0 and total_cost(trip) > budget


def spending_percentage(trip: Trip) -> float:
    """Spend as a percentage of budget, uncapped; 0 when there is no budget."""
    budget = trip.presupuesto_total
    if budget <= 0:
        return 0.0
    return total_cost(trip) / budget * 100


def spend_severity(percentage: float) -> SpendSeverity:
    """Map a spend percentage to its severity band."""
    if percentage >= CRITICAL_THRESHOLD_PCT:
        return SpendSeverity.critical
    if percentage >= WARNING_THRESHOLD_PCT:
        return SpendSeverity.warning
    return SpendSeverity.normal


def summarize_budget(trip: Trip) -> BudgetSummary:
    """Compute every budget indicator for trip."""
    total = total_cost(trip)
    budget = trip.presupuesto_total
    percentage = spending_percentage(trip)
    return BudgetSummary(
        total_cost=total,
        budget=budget,
        remaining=budget - total if budget > 0 else None,
        spending_percentage=percentage,
        progress_percentage=min(percentage, 100.0),
        over_budget=is_over_budget(trip),
        severity=spend_severity(percentage),
        per_day=[DaySpend(dia=d.dia, total=day_cost(trip, d.dia)) for d in trip.itinerario],
    )
