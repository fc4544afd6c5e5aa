"""Moderation request and response types."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from chatstream.models.common import HTTPHeaders

MODERATION_OMNI_LATEST = "omni-moderation-latest"
MODERATION_OMNI_20240926 = "omni-moderation-2024-09-26"
MODERATION_TEXT_STABLE = "text-moderation-stable"
MODERATION_TEXT_LATEST = "text-moderation-latest"

# text-moderation-001 is deprecated and rejected.
VALID_MODERATION_MODELS = frozenset(
    {
        MODERATION_OMNI_LATEST,
        MODERATION_OMNI_20240926,
        MODERATION_TEXT_STABLE,
        MODERATION_TEXT_LATEST,
    }
)


class ModerationItemType(str, Enum):
    TEXT = "text"
    IMAGE_URL = "image_url"


class ModerationImageURL(BaseModel):
    url: str


class ModerationRequestItem(BaseModel):
    type: ModerationItemType
    text: str | None = None
    image_url: ModerationImageURL | None = None


class ModerationRequest(BaseModel):
    """Input may be one string, several strings, or typed text/image items."""

    input: str | list[str] | list[ModerationRequestItem]
    model: str | None = None

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)


class _CategoryFields(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class ModerationCategories(_CategoryFields):
    hate: bool = False
    hate_threatening: bool = Field(False, alias="hate/threatening")
    harassment: bool = False
    harassment_threatening: bool = Field(False, alias="harassment/threatening")
    self_harm: bool = Field(False, alias="self-harm")
    self_harm_intent: bool = Field(False, alias="self-harm/intent")
    self_harm_instructions: bool = Field(False, alias="self-harm/instructions")
    sexual: bool = False
    sexual_minors: bool = Field(False, alias="sexual/minors")
    violence: bool = False
    violence_graphic: bool = Field(False, alias="violence/graphic")
    illicit: bool = False
    illicit_violent: bool = Field(False, alias="illicit/violent")


class ModerationCategoryScores(_CategoryFields):
    hate: float = 0.0
    hate_threatening: float = Field(0.0, alias="hate/threatening")
    harassment: float = 0.0
    harassment_threatening: float = Field(0.0, alias="harassment/threatening")
    self_harm: float = Field(0.0, alias="self-harm")
    self_harm_intent: float = Field(0.0, alias="self-harm/intent")
    self_harm_instructions: float = Field(0.0, alias="self-harm/instructions")
    sexual: float = 0.0
    sexual_minors: float = Field(0.0, alias="sexual/minors")
    violence: float = 0.0
    violence_graphic: float = Field(0.0, alias="violence/graphic")
    illicit: float = 0.0
    illicit_violent: float = Field(0.0, alias="illicit/violent")


class ModerationAppliedInputTypes(_CategoryFields):
    hate: list[ModerationItemType] = Field(default_factory=list)
    hate_threatening: list[ModerationItemType] = Field(
        default_factory=list, alias="hate/threatening"
    )
    harassment: list[ModerationItemType] = Field(default_factory=list)
    harassment_threatening: list[ModerationItemType] = Field(
        default_factory=list, alias="harassment/threatening"
    )
    self_harm: list[ModerationItemType] = Field(default_factory=list, alias="self-harm")
    self_harm_intent: list[ModerationItemType] = Field(
        default_factory=list, alias="self-harm/intent"
    )
    self_harm_instructions: list[ModerationItemType] = Field(
        default_factory=list, alias="self-harm/instructions"
    )
    sexual: list[ModerationItemType] = Field(default_factory=list)
    sexual_minors: list[ModerationItemType] = Field(
        default_factory=list, alias="sexual/minors"
    )
    violence: list[ModerationItemType] = Field(default_factory=list)
    violence_graphic: list[ModerationItemType] = Field(
        default_factory=list, alias="violence/graphic"
    )
    illicit: list[ModerationItemType] = Field(default_factory=list)
    illicit_violent: list[ModerationItemType] = Field(
        default_factory=list, alias="illicit/violent"
    )


class ModerationResult(BaseModel):
    categories: ModerationCategories = Field(default_factory=ModerationCategories)
    category_scores: ModerationCategoryScores = Field(
        default_factory=ModerationCategoryScores
    )
    flagged: bool = False
    category_applied_input_types: ModerationAppliedInputTypes | None = None

    def flagged_categories(self) -> list[str]:
        """Wire names of the categories marked true."""
        dumped = self.categories.model_dump(by_alias=True)
        return [name for name, hit in dumped.items() if hit]


class ModerationResponse(HTTPHeaders):
    id: str = ""
    model: str = ""
    results: list[ModerationResult] = Field(default_factory=list)
