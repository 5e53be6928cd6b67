"""The Discipleship by Design teaching method every blueprint must follow."""

from __future__ import annotations

from dataclasses import dataclass

from blueprint_engine.schema.options import BloomLevel, Movement

METHOD_NAME = "Discipleship by Design"

CORE_CONVICTIONS: tuple[str, ...] = (
  "Discipleship is formation, not information.",
  "Teaching must move from understanding to transformation.",
  "Learning must engage head, heart, and hands.",
)


@dataclass(frozen=True)
class MovementStage:
  """One stage of the Inform / Inspire / Involve progression."""

  movement: Movement
  bloom_levels: tuple[BloomLevel, BloomLevel]
  summary: str


MOVEMENTS: tuple[MovementStage, ...] = (
  MovementStage(Movement.INFORM, (BloomLevel.REMEMBER, BloomLevel.UNDERSTAND), "Clarify truth through recall and understanding."),
  MovementStage(Movement.INSPIRE, (BloomLevel.APPLY, BloomLevel.ANALYZE), "Connect truth to life through application and discussion."),
  MovementStage(Movement.INVOLVE, (BloomLevel.EVALUATE, BloomLevel.CREATE), "Confirm transformation and invite creative response."),
)

# Objective keys in the order they appear in every objective set.
OBJECTIVE_DIMENSIONS: tuple[tuple[str, str], ...] = (
  ("head", "What must they understand?"),
  ("heart", "What must they value?"),
  ("hands", "What must they practice?"),
)


def movement_for_bloom_level(level: BloomLevel) -> Movement:
  """Return the movement a cognitive level belongs to."""
  for stage in MOVEMENTS:
    if level in stage.bloom_levels:
      return stage.movement
  raise ValueError(f"Unmapped bloom level: {level}")
