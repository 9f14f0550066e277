"""Pydantic schemas validating the JSON returned by generative extraction."""

from typing import Any, Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

KNOWN_INTENTS = frozenset({
    "find_business",
    "find_peers",
    "find_specific_person",
    "find_alumni_business",
})


def _as_list(value: Any) -> list[Any]:
    if value is None or value == "":
        return []
    if isinstance(value, (list, tuple, set)):
        return [v for v in value if v not in (None, "")]
    return [value]


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


class ExtractedEntitiesPayload(BaseModel):
    """Entity object inside a generative extraction reply.

    Accepts snake_case and camelCase keys; scalars are promoted to lists
    where the field is list-valued.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    graduation_year: list[int] = Field(
        default_factory=list,
        validation_alias=AliasChoices("graduation_year", "graduationYear", "year"),
    )
    location: str | None = Field(default=None, validation_alias=AliasChoices("location", "city"))
    degree: list[str] = Field(default_factory=list)
    branch: str | list[str] | None = None
    skills: list[str] = Field(default_factory=list)
    services: list[str] = Field(default_factory=list)
    turnover_requirement: Literal["low", "medium", "high"] | None = Field(
        default=None,
        validation_alias=AliasChoices("turnover_requirement", "turnoverRequirement", "turnover"),
    )
    name: str | None = None
    organization_name: str | None = Field(
        default=None,
        validation_alias=AliasChoices("organization_name", "organizationName", "organization"),
    )

    @field_validator("graduation_year", mode="before")
    @classmethod
    def _coerce_years(cls, value: Any) -> list[Any]:
        return _as_list(value)

    @field_validator("degree", "skills", "services", mode="before")
    @classmethod
    def _coerce_lists(cls, value: Any) -> list[Any]:
        return [str(v).strip() for v in _as_list(value) if str(v).strip()]

    @field_validator("branch", mode="before")
    @classmethod
    def _coerce_branch(cls, value: Any) -> Any:
        if isinstance(value, (list, tuple)):
            items = [str(v).strip() for v in value if str(v).strip()]
            if not items:
                return None
            return items[0] if len(items) == 1 else items
        return _blank_to_none(value)

    @field_validator("turnover_requirement", mode="before")
    @classmethod
    def _lower_tier(cls, value: Any) -> Any:
        value = _blank_to_none(value)
        return value.lower().strip() if isinstance(value, str) else value

    @field_validator("location", "name", "organization_name", mode="before")
    @classmethod
    def _strip_blank(cls, value: Any) -> Any:
        return _blank_to_none(value)


class GenerativeExtractionPayload(BaseModel):
    """Top-level JSON object a provider must return."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    intent: Literal[
        "find_business",
        "find_peers",
        "find_specific_person",
        "find_alumni_business",
    ] | None = None
    entities: ExtractedEntitiesPayload = Field(default_factory=ExtractedEntitiesPayload)
    search_query: str | None = Field(
        default=None,
        validation_alias=AliasChoices("search_query", "searchQuery"),
    )
    confidence: float = 0.7

    @field_validator("intent", mode="before")
    @classmethod
    def _normalize_intent(cls, value: Any) -> Any:
        # Unknown labels are dropped so the entities still count.
        if not isinstance(value, str):
            return None
        value = value.strip().lower()
        return value if value in KNOWN_INTENTS else None

    @field_validator("search_query", mode="before")
    @classmethod
    def _strip_query(cls, value: Any) -> Any:
        return _blank_to_none(value)

    @field_validator("confidence", mode="before")
    @classmethod
    def _clamp_confidence(cls, value: Any) -> float:
        if value is None:
            return 0.7
        return min(1.0, max(0.0, float(value)))
