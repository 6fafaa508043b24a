from frontboost.orchestrator.orchestrator import Orchestrator

__all__ = ["Orchestrator"]
