# folio_bot/database/models.py
from enum import Enum
from typing import Annotated, List, Optional, Dict, Any, Union, Type
from datetime import datetime, timezone
from pydantic import AfterValidator, BaseModel, ConfigDict, Field, model_validator

from folio_bot import config


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# --- Enumerations ---

class ConfigKey(str, Enum):
    PROFILE_NAME = "profile_name"
    PROFILE_TITLE = "profile_title"
    PROFILE_DESC = "profile_desc"
    PROFILE_PHOTO = "profile_photo_file_id"
    CONTACT_PHONE = "contact_phone_1"
    CONTACT_EMAIL = "contact_email"
    CONTACT_CALL = "contact_call"
    SITE_STATUS = "site_status"


class SiteStatus(str, Enum):
    LIVE = "live"
    PAUSED = "paused"


class Provider(str, Enum):
    YOUTUBE = "youtube"
    VIMEO = "vimeo"


class MediaKind(str, Enum):
    PHOTO = "photo"
    VIDEO = "video"
    YOUTUBE = "youtube"
    VIMEO = "vimeo"


class EditableField(str, Enum):
    PROJECT_NAME = "project_name"
    NOTE = "note"


class Step(str, Enum):
    IDLE = "idle"
    # Simple profile values
    AWAITING_NAME = "awaiting_name"
    AWAITING_TITLE = "awaiting_title"
    AWAITING_DESC = "awaiting_desc"
    AWAITING_PHONE = "awaiting_phone"
    AWAITING_CALL = "awaiting_call"
    AWAITING_EMAIL = "awaiting_email"
    AWAITING_PROFILE_PHOTO = "awaiting_profile_photo"
    # Single external link
    AWAITING_SINGLE_LINK = "awaiting_single_link"
    AWAITING_SINGLE_CATEGORY = "awaiting_single_category"
    AWAITING_SINGLE_PROJECT = "awaiting_single_project"
    # Batch of external links
    AWAITING_BATCH_LINKS = "awaiting_batch_links"
    AWAITING_BATCH_CATEGORY = "awaiting_batch_category"
    AWAITING_BATCH_PROJECT = "awaiting_batch_project"
    # Catalog maintenance
    AWAITING_DELETE_ID = "awaiting_delete_id"
    AWAITING_EDIT_ID = "awaiting_edit_id"
    AWAITING_EDIT_VALUE = "awaiting_edit_value"
    # Access control
    AWAITING_BLOCK_IP = "awaiting_block_ip"
    AWAITING_UNBLOCK_IP = "awaiting_unblock_ip"


def _check_category(value: str) -> str:
    category = (value or "").strip().lower()
    if category not in config.MEDIA_CATEGORIES:
        raise ValueError(f"Unknown category '{value}'")
    return category


# Lower-cased and restricted to config.MEDIA_CATEGORIES
Category = Annotated[str, AfterValidator(_check_category)]


# --- Link references ---

class LinkRef(BaseModel):
    """A resolved external video: which provider, and the provider's own id."""
    model_config = ConfigDict(frozen=True)

    provider: Provider
    external_id: str

    @property
    def unique_id(self) -> str:
        # Same video -> same catalog key, so re-adding a link upserts
        return f"{self.provider.value}_{self.external_id}"

    @property
    def kind(self) -> MediaKind:
        return MediaKind(self.provider.value)


# --- Media catalog ---

class MediaRecord(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    unique_id: str = Field(alias="_id")
    source_ref: str  # Telegram file_id, or the provider video id for links
    kind: MediaKind
    category: Category = config.DEFAULT_CATEGORY
    project_name: str = ""
    note: str = ""
    created_at: datetime = Field(default_factory=utcnow)

    @classmethod
    def from_link(cls, link: LinkRef, category: str, project_name: str, note: str = "") -> "MediaRecord":
        return cls(
            unique_id=link.unique_id,
            source_ref=link.external_id,
            kind=link.kind,
            category=category,
            project_name=project_name,
            note=note,
        )

    def is_external(self) -> bool:
        return self.kind in (MediaKind.YOUTUBE, MediaKind.VIMEO)

    def to_mongo(self) -> Dict[str, Any]:
        doc = self.model_dump(by_alias=True)
        doc["kind"] = self.kind.value
        return doc


# --- Conversation state ---
# One payload model per step that carries context. A step maps to exactly one
# payload type (or none) through STEP_CONTEXT.

class SingleLinkContext(BaseModel):
    link: LinkRef


class SingleLinkCategoryContext(BaseModel):
    link: LinkRef
    category: Category


class BatchLinksContext(BaseModel):
    links: List[LinkRef] = Field(min_length=1)


class BatchLinksCategoryContext(BaseModel):
    links: List[LinkRef] = Field(min_length=1)
    category: Category


class EditFieldContext(BaseModel):
    field: EditableField


class EditTargetContext(BaseModel):
    field: EditableField
    media_id: str


StepContext = Union[
    SingleLinkContext, SingleLinkCategoryContext,
    BatchLinksContext, BatchLinksCategoryContext,
    EditFieldContext, EditTargetContext,
]

STEP_CONTEXT: Dict[Step, Optional[Type[BaseModel]]] = {step: None for step in Step}
STEP_CONTEXT.update({
    Step.AWAITING_SINGLE_CATEGORY: SingleLinkContext,
    Step.AWAITING_SINGLE_PROJECT: SingleLinkCategoryContext,
    Step.AWAITING_BATCH_CATEGORY: BatchLinksContext,
    Step.AWAITING_BATCH_PROJECT: BatchLinksCategoryContext,
    Step.AWAITING_EDIT_ID: EditFieldContext,
    Step.AWAITING_EDIT_VALUE: EditTargetContext,
})


class ConversationState(BaseModel):
    actor_id: str
    step: Step = Step.IDLE
    context: Optional[StepContext] = None
    updated_at: datetime = Field(default_factory=utcnow)

    @model_validator(mode="before")
    @classmethod
    def _bind_context_to_step(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        step = Step(data.get("step") or Step.IDLE)
        expected = STEP_CONTEXT[step]
        raw = data.get("context")
        if expected is None:
            if raw is not None:
                raise ValueError(f"Step '{step.value}' does not carry context")
            return data
        if raw is None:
            raise ValueError(f"Step '{step.value}' requires {expected.__name__}")
        if isinstance(raw, BaseModel) and type(raw) is not expected:
            raise ValueError(f"Step '{step.value}' cannot carry {type(raw).__name__}")
        return {**data, "context": raw if isinstance(raw, expected) else expected.model_validate(raw)}

    @classmethod
    def idle(cls, actor_id: str) -> "ConversationState":
        return cls(actor_id=actor_id)

    @property
    def is_idle(self) -> bool:
        return self.step == Step.IDLE

    def advance(self, step: Step, context: Optional[BaseModel] = None) -> "ConversationState":
        """Returns the next state for the same actor."""
        return ConversationState(actor_id=self.actor_id, step=step, context=context)

    def to_mongo(self) -> Dict[str, Any]:
        return {
            "_id": self.actor_id,
            "step": self.step.value,
            "context": self.context.model_dump(mode="json") if self.context is not None else None,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_mongo(cls, doc: Dict[str, Any]) -> "ConversationState":
        return cls(
            actor_id=str(doc["_id"]),
            step=doc.get("step", Step.IDLE.value),
            context=doc.get("context"),
            updated_at=doc.get("updated_at") or utcnow(),
        )
