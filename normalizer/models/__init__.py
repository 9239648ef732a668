from normalizer.models.turn import AssistantTurn, as_turn

__all__ = ["AssistantTurn", "as_turn"]
