"""Action catalog: structural contracts, usage hints and stage applicability.

Actions are authored by the language model, so every payload is checked here
twice before a handler sees it: once against its pydantic contract and once
against the stages the action is declared for.
"""

from dataclasses import dataclass
from enum import StrEnum
from typing import Annotated, Literal

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    ValidationError,
    field_validator,
)

from matchmaker.domain.stages import Stage, parse_stage


class ActionType(StrEnum):
    """Action types the language model may request."""

    SEND_MESSAGE = "send_message"
    UPDATE_STAGE = "update_stage"
    SET_PRIMARY_USER = "set_primary_user"
    UPDATE_PROFILE_FIELD = "update_profile_field"
    SHOW_CONFIRMATION = "show_confirmation"
    GENERATE_PROFILE = "generate_profile"
    FINALIZE_PROFILE = "finalize_profile"
    REQUEST_MATCHES = "request_matches"
    RECORD_MATCH_CHOICE = "record_match_choice"


LEGACY_ACTION_ALIASES: dict[str, ActionType] = {
    "update_profile_schema": ActionType.UPDATE_PROFILE_FIELD,
    "commit_profile": ActionType.FINALIZE_PROFILE,
    "fetch_profiles": ActionType.REQUEST_MATCHES,
}


class _ActionModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class SendMessageAction(_ActionModel):
    type: Literal["send_message"]
    target: str = Field(min_length=1)
    text: str = Field(min_length=1, validation_alias=AliasChoices("message", "text"))
    media_url: str | None = Field(
        default=None, validation_alias=AliasChoices("media_url", "mediaUrl")
    )


class UpdateStageAction(_ActionModel):
    type: Literal["update_stage"]
    stage: Stage

    @field_validator("stage", mode="before")
    @classmethod
    def _resolve_stage(cls, value: object) -> Stage:
        return parse_stage(value)


class SetPrimaryUserAction(_ActionModel):
    type: Literal["set_primary_user"]
    display_name: str = Field(
        min_length=1, validation_alias=AliasChoices("display_name", "name")
    )
    contact_id: str | None = None


class UpdateProfileFieldAction(_ActionModel):
    type: Literal["update_profile_field"]
    field: str = Field(min_length=1)
    value: object


class ShowConfirmationAction(_ActionModel):
    type: Literal["show_confirmation"]


class GenerateProfileAction(_ActionModel):
    type: Literal["generate_profile"]


class FinalizeProfileAction(_ActionModel):
    type: Literal["finalize_profile"]


class RequestMatchesAction(_ActionModel):
    type: Literal["request_matches"]


class RecordMatchChoiceAction(_ActionModel):
    type: Literal["record_match_choice"]
    choice: str = Field(min_length=1)


Action = Annotated[
    SendMessageAction
    | UpdateStageAction
    | SetPrimaryUserAction
    | UpdateProfileFieldAction
    | ShowConfirmationAction
    | GenerateProfileAction
    | FinalizeProfileAction
    | RequestMatchesAction
    | RecordMatchChoiceAction,
    Field(discriminator="type"),
]

_ACTION_ADAPTER: TypeAdapter[Action] = TypeAdapter(Action)


@dataclass(frozen=True)
class ActionSpec:
    """Registry entry describing one action type."""

    type: ActionType
    model: type[_ActionModel]
    hint: str
    stages: frozenset[Stage] | None = None

    def allows(self, stage: Stage) -> bool:
        return self.stages is None or stage in self.stages


ACTION_REGISTRY: dict[ActionType, ActionSpec] = {
    spec.type: spec
    for spec in (
        ActionSpec(
            ActionType.SEND_MESSAGE,
            SendMessageAction,
            "Send an extra message; target is 'all' or one participant. "
            "Attach media_url to share an image.",
        ),
        ActionSpec(
            ActionType.UPDATE_STAGE,
            UpdateStageAction,
            "Move to another stage. Only greeting -> collecting and "
            "finalized -> fetching_profiles are open to this action.",
        ),
        ActionSpec(
            ActionType.SET_PRIMARY_USER,
            SetPrimaryUserAction,
            "Record who the profile is for once the group has said so.",
            frozenset({Stage.GREETING, Stage.COLLECTING}),
        ),
        ActionSpec(
            ActionType.UPDATE_PROFILE_FIELD,
            UpdateProfileFieldAction,
            "Store or change one profile field from what someone said.",
            frozenset({Stage.COLLECTING, Stage.CONFIRMING, Stage.REVIEWING}),
        ),
        ActionSpec(
            ActionType.SHOW_CONFIRMATION,
            ShowConfirmationAction,
            "Send the profile recap and ask the group to confirm. "
            "Needs name, age and photo.",
            frozenset({Stage.COLLECTING, Stage.CONFIRMING}),
        ),
        ActionSpec(
            ActionType.GENERATE_PROFILE,
            GenerateProfileAction,
            "Build the shareable profile after the user confirms the recap, "
            "or rebuild it after an edit.",
            frozenset({Stage.CONFIRMING, Stage.REVIEWING}),
        ),
        ActionSpec(
            ActionType.FINALIZE_PROFILE,
            FinalizeProfileAction,
            "Lock the generated profile once the user approves it.",
            frozenset({Stage.REVIEWING, Stage.FINALIZED}),
        ),
        ActionSpec(
            ActionType.REQUEST_MATCHES,
            RequestMatchesAction,
            "Fetch today's drop of compatible profiles.",
            frozenset({Stage.CONFIRMING, Stage.FINALIZED, Stage.FETCHING_PROFILES}),
        ),
        ActionSpec(
            ActionType.RECORD_MATCH_CHOICE,
            RecordMatchChoiceAction,
            "Record which candidate from the latest drop the user picked.",
            frozenset({Stage.FETCHING_PROFILES}),
        ),
    )
}


class OutboundMessage(BaseModel):
    """A message the transport must deliver."""

    recipient: str
    text: str
    media_url: str | None = None


class ActionResult(BaseModel):
    """Outcome of validating and executing one action."""

    success: bool
    action_type: str | None = None
    error: str | None = None
    data: dict[str, object] = Field(default_factory=dict)
    deliveries: list[OutboundMessage] = Field(default_factory=list)

    @classmethod
    def failure(cls, error: str, action_type: str | None = None) -> "ActionResult":
        return cls(success=False, action_type=action_type, error=error)


@dataclass(frozen=True)
class ActionValidation:
    """Result of the two validation passes over a raw action payload."""

    action: Action | None
    action_type: str | None
    error: str | None = None


def resolve_action_type(raw_type: object) -> ActionType | None:
    """Map a raw type tag, including legacy names, to an action type."""
    if not isinstance(raw_type, str):
        return None
    name = raw_type.strip().lower()
    if name in LEGACY_ACTION_ALIASES:
        return LEGACY_ACTION_ALIASES[name]
    try:
        return ActionType(name)
    except ValueError:
        return None


def _format_validation_error(error: ValidationError) -> str:
    tags = {action_type.value for action_type in ActionType}
    parts = []
    for detail in error.errors():
        location = ".".join(str(item) for item in detail["loc"] if item not in tags)
        parts.append(f"{location or 'action'}: {detail['msg']}")
    return "; ".join(parts)


def validate_action(raw: object, stage: Stage) -> ActionValidation:
    """Validate an untrusted action payload for the given stage."""
    if not isinstance(raw, dict):
        return ActionValidation(None, None, "Action must be a JSON object")
    action_type = resolve_action_type(raw.get("type"))
    if action_type is None:
        return ActionValidation(
            None,
            str(raw.get("type")) if raw.get("type") is not None else None,
            f"Unknown action type: {raw.get('type')!r}",
        )

    payload = {**raw, "type": action_type.value}
    try:
        action = _ACTION_ADAPTER.validate_python(payload)
    except ValidationError as exc:
        return ActionValidation(
            None, action_type.value, f"Invalid payload: {_format_validation_error(exc)}"
        )

    spec = ACTION_REGISTRY[action_type]
    if not spec.allows(stage):
        return ActionValidation(
            None,
            action_type.value,
            f"Action {action_type.value} is not allowed in stage {stage.value}",
        )
    return ActionValidation(action, action_type.value)


def action_catalog(stage: Stage) -> list[dict[str, object]]:
    """Describe the actions open in a stage, for prompting the language model."""
    catalog = []
    for spec in ACTION_REGISTRY.values():
        if not spec.allows(stage):
            continue
        catalog.append(
            {
                "type": spec.type.value,
                "when_to_use": spec.hint,
                "input_schema": spec.model.model_json_schema(),
            }
        )
    return catalog
