"""Goal engine errors.

Validation and lookup failures subclass ``ValueError`` so callers that only
care about "bad input" can keep catching that. Business-rule and authorization
failures have their own base so they are never mistaken for bad input.
"""


class GoalValidationError(ValueError):
    """Input has the wrong shape (empty name, bad week id, missing target...)."""


class InvalidWeekId(GoalValidationError):
    """Week id does not match ``YYYY-Www`` or names a week the year lacks."""

    def __init__(self, week_id: str):
        super().__init__(f"Invalid week id: {week_id!r}")
        self.week_id = week_id


class GoalNotFound(ValueError):
    """No goal with the given id."""

    def __init__(self, goal_id: str):
        super().__init__("Goal not found")
        self.goal_id = goal_id


class TaskNotFound(ValueError):
    """No task with the given id."""

    def __init__(self, task_id: str):
        super().__init__("Task not found")
        self.task_id = task_id


class GoalError(Exception):
    """Base for business-rule and authorization failures."""


class LimitExceeded(GoalError):
    def __init__(self, limit: int):
        super().__init__(f"Maximum of {limit} active goals reached")
        self.limit = limit


class GoalInactive(GoalError):
    """Progress cannot be recorded against a completed or expired goal."""

    def __init__(self, goal_id: str, status: str):
        super().__init__(f"Goal is {status}, not active")
        self.goal_id = goal_id
        self.status = status


class ForbiddenPartnerMutation(GoalError):
    def __init__(self, goal_id: str):
        super().__init__("Cannot modify goals you don't own")
        self.goal_id = goal_id


class ForbiddenCrossOwnerLink(GoalError):
    def __init__(self, goal_id: str):
        super().__init__("Tasks can only be linked to your own goals")
        self.goal_id = goal_id
