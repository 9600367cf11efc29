"""Planner exceptions"""


class PlannerError(Exception):
    """Base exception for the planner"""

    pass


class PersistenceError(PlannerError):
    """Stored planner state could not be read or written"""

    pass
