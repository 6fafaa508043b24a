"""Source directory scaffolding."""
from frontboost.layout.planner import ensure, plan

__all__ = ["ensure", "plan"]
