# app/schemas.py
import enum
import uuid
from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, HttpUrl, TypeAdapter, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from app.models import MediaKind

COLOR_HEX_PATTERN = r"^#?[0-9a-fA-F]{6}$"

_HTTP_URL = TypeAdapter(HttpUrl)


class CamelModel(BaseModel):
    """Public JSON uses camelCase; snake_case is accepted on input too."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _reject_null(value):
    if value is None:
        raise ValueError("may not be null")
    return value


def _none_as_empty(value):
    return [] if value is None else value


# ---- Generations ----
class GenerationCreate(CamelModel):
    name: str = Field(min_length=2)
    number: int = Field(ge=1)
    description: Optional[str] = None
    released_at: Optional[date] = None


class GenerationUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=2)
    number: Optional[int] = Field(None, ge=1)
    description: Optional[str] = None
    released_at: Optional[date] = None

    @field_validator("name", "number")
    @classmethod
    def not_null(cls, value):
        return _reject_null(value)


# ---- Types ----
class TypeRelationsInput(CamelModel):
    """Outgoing edges of a type, as lists of target type ids."""
    strong_against: List[uuid.UUID] = Field(default_factory=list)
    weak_against: List[uuid.UUID] = Field(default_factory=list)
    immune_to: List[uuid.UUID] = Field(default_factory=list)

    @field_validator("strong_against", "weak_against", "immune_to", mode="before")
    @classmethod
    def null_is_empty(cls, value):
        return _none_as_empty(value)


class TypeCreate(CamelModel):
    name: str = Field(min_length=2)
    slug: Optional[str] = None
    description: Optional[str] = None
    color_hex: Optional[str] = Field(None, pattern=COLOR_HEX_PATTERN)
    relations: TypeRelationsInput = Field(default_factory=TypeRelationsInput)

    @field_validator("relations", mode="before")
    @classmethod
    def null_is_empty(cls, value):
        return {} if value is None else value


class TypeUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=2)
    slug: Optional[str] = None
    description: Optional[str] = None
    color_hex: Optional[str] = Field(None, pattern=COLOR_HEX_PATTERN)
    # Present (even null) replaces every outgoing edge; absent keeps them
    relations: Optional[TypeRelationsInput] = None

    @field_validator("name")
    @classmethod
    def not_null(cls, value):
        return _reject_null(value)


# ---- Pokémon ----
class BaseStatsInput(CamelModel):
    hp: Optional[int] = Field(None, ge=1, le=300)
    attack: Optional[int] = Field(None, ge=1, le=300)
    defense: Optional[int] = Field(None, ge=1, le=300)
    sp_attack: Optional[int] = Field(None, ge=1, le=300)
    sp_defense: Optional[int] = Field(None, ge=1, le=300)
    speed: Optional[int] = Field(None, ge=1, le=300)


class MediaInput(CamelModel):
    # Stored exactly as sent; HttpUrl is only used to check it
    url: str
    kind: MediaKind
    title: Optional[str] = Field(None, max_length=120)
    is_primary: bool = False

    @field_validator("url")
    @classmethod
    def must_be_http_url(cls, value):
        try:
            _HTTP_URL.validate_python(value)
        except ValidationError:
            raise ValueError("must be a valid http(s) URL")
        return value


class PokemonCreate(CamelModel):
    name: str = Field(min_length=2)
    slug: Optional[str] = None
    index_number: int = Field(ge=1)
    generation_id: uuid.UUID
    classification: Optional[str] = None
    description: Optional[str] = None
    height_meters: Optional[float] = Field(None, ge=0, le=100)
    weight_kilograms: Optional[float] = Field(None, ge=0, le=1000)
    is_legendary: bool = False
    is_mythical: bool = False
    type_ids: List[uuid.UUID] = Field(min_length=1, max_length=2)
    base_stats: Optional[BaseStatsInput] = None
    media: Optional[List[MediaInput]] = None
    pre_evolution_id: Optional[uuid.UUID] = None
    next_evolution_ids: Optional[List[uuid.UUID]] = None


class PokemonUpdate(CamelModel):
    """
    Partial update. Fields absent from the body are left untouched; use
    `model_fields_set` to tell "absent" from "explicitly null".
    """
    name: Optional[str] = Field(None, min_length=2)
    slug: Optional[str] = None
    index_number: Optional[int] = Field(None, ge=1)
    generation_id: Optional[uuid.UUID] = None
    classification: Optional[str] = None
    description: Optional[str] = None
    height_meters: Optional[float] = Field(None, ge=0, le=100)
    weight_kilograms: Optional[float] = Field(None, ge=0, le=1000)
    is_legendary: Optional[bool] = None
    is_mythical: Optional[bool] = None
    type_ids: Optional[List[uuid.UUID]] = Field(None, min_length=1, max_length=2)
    base_stats: Optional[BaseStatsInput] = None
    media: Optional[List[MediaInput]] = None
    pre_evolution_id: Optional[uuid.UUID] = None
    next_evolution_ids: Optional[List[uuid.UUID]] = None

    @field_validator("name", "index_number", "generation_id", "type_ids", "is_legendary", "is_mythical")
    @classmethod
    def not_null(cls, value):
        return _reject_null(value)


class PokemonQuery(BaseModel):
    """Already-validated listing filters handed from the router to the service."""
    search: Optional[str] = None
    generation_id: Optional[uuid.UUID] = None
    type_id: Optional[uuid.UUID] = None
    weak_to_type_id: Optional[uuid.UUID] = None
    strong_against_type_id: Optional[uuid.UUID] = None
    page: int = 1
    page_size: int = 20


# ---- Uploads ----
class UploadPurpose(str, enum.Enum):
    POKEMON_IMAGE = "POKEMON_IMAGE"
    POKEMON_AUDIO = "POKEMON_AUDIO"


# ---- Views ----
class GenerationView(CamelModel):
    id: uuid.UUID
    name: str
    number: int
    description: Optional[str] = None
    released_at: Optional[date] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class TypeSummary(CamelModel):
    id: uuid.UUID
    name: str
    slug: str
    color_hex: Optional[str] = None


class TypeView(TypeSummary):
    description: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    strengths: List[TypeSummary] = Field(default_factory=list)
    weaknesses: List[TypeSummary] = Field(default_factory=list)
    resistances: List[TypeSummary] = Field(default_factory=list)
    immunities: List[TypeSummary] = Field(default_factory=list)


class PokemonTypeView(TypeSummary):
    slot: int


class MediaView(CamelModel):
    id: uuid.UUID
    kind: MediaKind
    url: str
    title: Optional[str] = None
    is_primary: bool


class BaseStatsView(CamelModel):
    hp: Optional[int] = None
    attack: Optional[int] = None
    defense: Optional[int] = None
    sp_attack: Optional[int] = None
    sp_defense: Optional[int] = None
    speed: Optional[int] = None


class PokemonSummary(CamelModel):
    id: uuid.UUID
    name: str
    slug: str


class PokemonView(CamelModel):
    id: uuid.UUID
    name: str
    slug: str
    index_number: int
    generation: Optional[GenerationView] = None
    classification: Optional[str] = None
    description: Optional[str] = None
    height_meters: Optional[float] = None
    weight_kilograms: Optional[float] = None
    is_legendary: bool
    is_mythical: bool
    types: List[PokemonTypeView]
    media: List[MediaView]
    primary_image_media: Optional[MediaView] = None
    primary_audio_media: Optional[MediaView] = None
    base_stats: BaseStatsView
    pre_evolution: Optional[PokemonSummary] = None
    evolutions: List[PokemonSummary]
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class PokemonPage(CamelModel):
    total: int
    page: int
    page_size: int
    results: List[PokemonView]


class UploadResult(CamelModel):
    url: str
    original_name: str
    mime_type: str
    size: int


class DashboardSummary(CamelModel):
    generations: int
    types: int
    pokemons: int
