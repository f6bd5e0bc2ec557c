"""SQL expressions for the denormalized counters on posts and comments."""
from sqlalchemy import case


def incremented(column):
    return column + 1


def decremented(column):
    """column - 1, floored at zero."""
    return case((column > 0, column - 1), else_=0)
