"""Deal stage pipeline -- canonical order and single-step transitions.

The pipeline is a fixed sequence:

    build_proposal -> pitch_proposal -> negotiation -> awaiting_signoff
        -> signed -> cancelled -> lost

Advance and revert controls move a deal exactly one position along this
sequence. The adjacency is spelled out in NEXT_STAGE so the rule can be read
and tested on its own; PREVIOUS_STAGE is its inverse. Adjacency is the only
rule enforced: signed -> cancelled is a legal forward step.
"""

from __future__ import annotations

import structlog

from src.dealboard.deals.exceptions import InvalidStageTransition
from src.dealboard.deals.schemas import DealStage

logger = structlog.get_logger(__name__)

# ── Stage Pipeline Order ────────────────────────────────────────────────────

STAGES: list[DealStage] = [
    DealStage.BUILD_PROPOSAL,
    DealStage.PITCH_PROPOSAL,
    DealStage.NEGOTIATION,
    DealStage.AWAITING_SIGNOFF,
    DealStage.SIGNED,
    DealStage.CANCELLED,
    DealStage.LOST,
]

# ── Transition Table ────────────────────────────────────────────────────────

# Maps each stage to the stage one step forward (None at the end).
NEXT_STAGE: dict[DealStage, DealStage | None] = {
    DealStage.BUILD_PROPOSAL: DealStage.PITCH_PROPOSAL,
    DealStage.PITCH_PROPOSAL: DealStage.NEGOTIATION,
    DealStage.NEGOTIATION: DealStage.AWAITING_SIGNOFF,
    DealStage.AWAITING_SIGNOFF: DealStage.SIGNED,
    DealStage.SIGNED: DealStage.CANCELLED,
    DealStage.CANCELLED: DealStage.LOST,
    DealStage.LOST: None,
}

PREVIOUS_STAGE: dict[DealStage, DealStage | None] = {
    stage: None for stage in NEXT_STAGE
}
for _stage, _next in NEXT_STAGE.items():
    if _next is not None:
        PREVIOUS_STAGE[_next] = _stage

# ── Summary Bands ───────────────────────────────────────────────────────────

POTENTIAL_STAGES: frozenset[DealStage] = frozenset({
    DealStage.BUILD_PROPOSAL,
    DealStage.PITCH_PROPOSAL,
    DealStage.NEGOTIATION,
    DealStage.AWAITING_SIGNOFF,
})
ACTUAL_STAGES: frozenset[DealStage] = frozenset({DealStage.SIGNED})
UNAVAILABLE_STAGES: frozenset[DealStage] = frozenset({
    DealStage.CANCELLED,
    DealStage.LOST,
})


def previous_stage(stage: DealStage) -> DealStage | None:
    """Return the stage one step back, or None for the first stage."""
    return PREVIOUS_STAGE[DealStage(stage)]


def next_stage(stage: DealStage) -> DealStage | None:
    """Return the stage one step forward, or None for the last stage."""
    return NEXT_STAGE[DealStage(stage)]


def step_stage(stage: DealStage, direction: str) -> DealStage:
    """Resolve a single advance/revert step.

    Args:
        stage: Current deal stage.
        direction: "advance" or "revert".

    Returns:
        The adjacent stage in the requested direction.

    Raises:
        InvalidStageTransition: If the deal is already at that end of the pipeline.
        ValueError: If direction is not "advance" or "revert".
    """
    if direction == "advance":
        target = next_stage(stage)
        if target is None:
            raise InvalidStageTransition("Deal is already at the last stage")
    elif direction == "revert":
        target = previous_stage(stage)
        if target is None:
            raise InvalidStageTransition("Deal is already at the first stage")
    else:
        raise ValueError(f"Unknown stage step direction: {direction}")

    logger.debug(
        "stages.step_resolved",
        from_stage=DealStage(stage).value,
        to_stage=target.value,
        direction=direction,
    )
    return target


def stage_label(stage: DealStage) -> str:
    """Human-readable stage name, e.g. "awaiting_signoff" -> "Awaiting Signoff"."""
    return " ".join(word.capitalize() for word in DealStage(stage).value.split("_"))


def allowed_statuses_message() -> str:
    """Comma separated stage values used in validation messages."""
    return ", ".join(stage.value for stage in STAGES)
