"""Trip planner core - itineraries, budgets, ERP import and sync."""

__version__ = "0.1.0"
