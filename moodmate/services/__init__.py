"""Service layer modules for MoodMate."""

from .turns import APOLOGY_REPLY, TurnOrchestrator, TurnResult, failed_turn

__all__ = ["APOLOGY_REPLY", "TurnOrchestrator", "TurnResult", "failed_turn"]
