"""Stage transition rules for profile sessions."""

from dataclasses import dataclass, field

from matchmaker.domain.actions import ActionType
from matchmaker.domain.sessions import Session
from matchmaker.domain.stages import TERMINAL_STAGES, Stage, UnknownStageError, parse_stage


class StageTransitionError(Exception):
    """Raised when a stage transition is not permitted."""


# Edges open to any caller, including update_stage.
_OPEN_EDGES: dict[Stage, frozenset[Stage]] = {
    Stage.GREETING: frozenset({Stage.GREETING, Stage.COLLECTING}),
    Stage.COLLECTING: frozenset({Stage.COLLECTING}),
    Stage.CONFIRMING: frozenset({Stage.CONFIRMING}),
    Stage.REVIEWING: frozenset({Stage.REVIEWING}),
    Stage.FINALIZED: frozenset({Stage.FINALIZED, Stage.FETCHING_PROFILES}),
    Stage.FETCHING_PROFILES: frozenset(),
}

# Edges reserved for the atomic action that owns them.
_GATED_EDGES: dict[tuple[Stage, Stage], ActionType] = {
    (Stage.COLLECTING, Stage.CONFIRMING): ActionType.SHOW_CONFIRMATION,
    (Stage.CONFIRMING, Stage.REVIEWING): ActionType.GENERATE_PROFILE,
    (Stage.CONFIRMING, Stage.FETCHING_PROFILES): ActionType.REQUEST_MATCHES,
    (Stage.REVIEWING, Stage.FINALIZED): ActionType.FINALIZE_PROFILE,
}


@dataclass
class StageMachine:
    """Validates and applies stage transitions."""

    open_edges: dict[Stage, frozenset[Stage]] = field(
        default_factory=lambda: dict(_OPEN_EDGES)
    )
    gated_edges: dict[tuple[Stage, Stage], ActionType] = field(
        default_factory=lambda: dict(_GATED_EDGES)
    )

    def allowed_targets(
        self, current: Stage, via: ActionType = ActionType.UPDATE_STAGE
    ) -> frozenset[Stage]:
        """Return the stages reachable from `current` by the given action."""
        targets = set(self.open_edges.get(current, frozenset()))
        for (source, target), owner in self.gated_edges.items():
            if source == current and owner == via:
                targets.add(target)
        return frozenset(targets)

    def check(
        self,
        current: Stage,
        target: Stage | str,
        via: ActionType = ActionType.UPDATE_STAGE,
        has_primary_user: bool = True,
    ) -> Stage:
        """Return the resolved target stage or raise StageTransitionError."""
        try:
            resolved = parse_stage(target)
        except UnknownStageError as exc:
            raise StageTransitionError(str(exc)) from exc

        if current in TERMINAL_STAGES:
            raise StageTransitionError(
                f"Stage {current.value} is terminal; cannot move to {resolved.value}"
            )
        if resolved not in self.allowed_targets(current, via):
            owner = self.gated_edges.get((current, resolved))
            if owner is not None:
                raise StageTransitionError(
                    f"{current.value} -> {resolved.value} is only reachable "
                    f"through {owner.value}"
                )
            raise StageTransitionError(
                f"Illegal transition {current.value} -> {resolved.value}"
            )
        if (
            current == Stage.GREETING
            and resolved == Stage.COLLECTING
            and not has_primary_user
        ):
            raise StageTransitionError(
                "Cannot start collecting before the primary user is identified"
            )
        return resolved

    def transition(
        self,
        session: Session,
        target: Stage | str,
        via: ActionType = ActionType.UPDATE_STAGE,
    ) -> Stage:
        """Move the session to `target`, leaving it untouched on failure."""
        resolved = self.check(
            session.stage,
            target,
            via=via,
            has_primary_user=session.primary_user is not None,
        )
        session.stage = resolved
        return resolved
