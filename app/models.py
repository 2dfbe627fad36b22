import enum
import uuid
from datetime import date, datetime
from typing import Optional

from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
    func,
)


class Base(DeclarativeBase):
    """
    Base class for all ORM models.

    SQLAlchemy uses this to keep track of tables and mappings.
    """
    pass


class TypeRelation(str, enum.Enum):
    STRONG_AGAINST = "STRONG_AGAINST"
    WEAK_AGAINST = "WEAK_AGAINST"
    IMMUNE_TO = "IMMUNE_TO"


class MediaKind(str, enum.Enum):
    IMAGE = "IMAGE"
    AUDIO = "AUDIO"


class TimestampMixin:
    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


class Generation(TimestampMixin, Base):
    """
    A game generation. `number` is the unique ordering key used when
    listing generations and Pokémon.
    """
    __tablename__ = "generations"

    name: Mapped[str] = mapped_column(String, nullable=False)
    number: Mapped[int] = mapped_column(Integer, nullable=False, unique=True)
    description: Mapped[str | None] = mapped_column(Text)
    released_at: Mapped[date | None] = mapped_column(Date)

    pokemons: Mapped[list["Pokemon"]] = relationship(back_populates="generation")


class Type(TimestampMixin, Base):
    """
    ORM model for the 'types' table.

    Effectiveness is not stored on the type itself: it is derived from the
    direction and kind of the TypeRelationship edges it takes part in.
    """
    __tablename__ = "types"

    name: Mapped[str] = mapped_column(String, nullable=False)
    slug: Mapped[str] = mapped_column(String, nullable=False, unique=True)
    description: Mapped[str | None] = mapped_column(Text)
    color_hex: Mapped[str | None] = mapped_column(String(7))

    relationships_from: Mapped[list["TypeRelationship"]] = relationship(
        foreign_keys="TypeRelationship.source_type_id",
        back_populates="source_type",
    )
    relationships_to: Mapped[list["TypeRelationship"]] = relationship(
        foreign_keys="TypeRelationship.target_type_id",
        back_populates="target_type",
    )


class TypeRelationship(TimestampMixin, Base):
    """Directed effectiveness edge: source --relation--> target."""
    __tablename__ = "type_relationships"
    __table_args__ = (
        UniqueConstraint("source_type_id", "target_type_id", "relation"),
    )

    source_type_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("types.id", ondelete="CASCADE"), nullable=False
    )
    target_type_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("types.id", ondelete="CASCADE"), nullable=False
    )
    relation: Mapped[TypeRelation] = mapped_column(Enum(TypeRelation), nullable=False)

    source_type: Mapped[Type] = relationship(
        foreign_keys=[source_type_id], back_populates="relationships_from"
    )
    target_type: Mapped[Type] = relationship(
        foreign_keys=[target_type_id], back_populates="relationships_to"
    )


class Pokemon(TimestampMixin, Base):
    """
    ORM model for the 'pokemon' table.

    The six base stats are nullable on purpose: "not specified" must stay
    distinguishable from any stored value. The primary media pointers
    reference rows of pokemon_media owned by this same Pokémon.
    """
    __tablename__ = "pokemon"

    name: Mapped[str] = mapped_column(String, nullable=False)
    slug: Mapped[str] = mapped_column(String, nullable=False, unique=True)
    index_number: Mapped[int] = mapped_column(Integer, nullable=False, unique=True)
    generation_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("generations.id"), nullable=False
    )
    classification: Mapped[str | None] = mapped_column(String)
    description: Mapped[str | None] = mapped_column(Text)
    height_meters: Mapped[float | None] = mapped_column(Float)
    weight_kilograms: Mapped[float | None] = mapped_column(Float)
    is_legendary: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_mythical: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    base_hp: Mapped[int | None] = mapped_column(Integer)
    base_attack: Mapped[int | None] = mapped_column(Integer)
    base_defense: Mapped[int | None] = mapped_column(Integer)
    base_sp_attack: Mapped[int | None] = mapped_column(Integer)
    base_sp_defense: Mapped[int | None] = mapped_column(Integer)
    base_speed: Mapped[int | None] = mapped_column(Integer)

    # pokemon <-> pokemon_media is a cycle, so these FKs are added after both tables exist
    primary_image_media_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey(
            "pokemon_media.id",
            use_alter=True,
            name="fk_pokemon_primary_image_media",
            ondelete="SET NULL",
        )
    )
    primary_audio_media_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey(
            "pokemon_media.id",
            use_alter=True,
            name="fk_pokemon_primary_audio_media",
            ondelete="SET NULL",
        )
    )

    created_by_id: Mapped[str | None] = mapped_column(String)
    updated_by_id: Mapped[str | None] = mapped_column(String)

    generation: Mapped[Generation] = relationship(back_populates="pokemons")
    type_slots: Mapped[list["PokemonType"]] = relationship(back_populates="pokemon")
    media: Mapped[list["PokemonMedia"]] = relationship(
        foreign_keys="PokemonMedia.pokemon_id",
        back_populates="pokemon",
        order_by="PokemonMedia.position",
    )
    primary_image_media: Mapped[Optional["PokemonMedia"]] = relationship(
        foreign_keys=[primary_image_media_id], viewonly=True
    )
    primary_audio_media: Mapped[Optional["PokemonMedia"]] = relationship(
        foreign_keys=[primary_audio_media_id], viewonly=True
    )
    # Edges where this Pokémon is the source (its next evolutions)
    evolutions_from: Mapped[list["PokemonEvolution"]] = relationship(
        foreign_keys="PokemonEvolution.from_pokemon_id",
        back_populates="from_pokemon",
    )
    # Edges where this Pokémon is the target (its pre-evolution)
    evolutions_to: Mapped[list["PokemonEvolution"]] = relationship(
        foreign_keys="PokemonEvolution.to_pokemon_id",
        back_populates="to_pokemon",
    )


class PokemonType(Base):
    """
    ORM model for the 'pokemon_types' table.

    Each row places one type in one 1-based slot of one Pokemon.
    """
    __tablename__ = "pokemon_types"
    __table_args__ = (
        UniqueConstraint("pokemon_id", "slot"),
        UniqueConstraint("pokemon_id", "type_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    pokemon_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("pokemon.id", ondelete="CASCADE"), nullable=False
    )
    type_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("types.id"), nullable=False)
    slot: Mapped[int] = mapped_column(Integer, nullable=False)

    pokemon: Mapped[Pokemon] = relationship(back_populates="type_slots")
    type: Mapped[Type] = relationship()


class PokemonMedia(TimestampMixin, Base):
    __tablename__ = "pokemon_media"

    pokemon_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("pokemon.id", ondelete="CASCADE"), nullable=False
    )
    kind: Mapped[MediaKind] = mapped_column(Enum(MediaKind), nullable=False)
    url: Mapped[str] = mapped_column(Text, nullable=False)
    title: Mapped[str | None] = mapped_column(String(120))
    is_primary: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    pokemon: Mapped[Pokemon] = relationship(
        foreign_keys=[pokemon_id], back_populates="media"
    )


class PokemonEvolution(Base):
    """
    One evolution step. `to_pokemon_id` is unique: a Pokémon has at most
    one pre-evolution, while a Pokémon may branch into many evolutions.
    """
    __tablename__ = "pokemon_evolutions"
    __table_args__ = (UniqueConstraint("to_pokemon_id"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    from_pokemon_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("pokemon.id", ondelete="CASCADE"), nullable=False
    )
    to_pokemon_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("pokemon.id", ondelete="CASCADE"), nullable=False
    )

    from_pokemon: Mapped[Pokemon] = relationship(
        foreign_keys=[from_pokemon_id], back_populates="evolutions_from"
    )
    to_pokemon: Mapped[Pokemon] = relationship(
        foreign_keys=[to_pokemon_id], back_populates="evolutions_to"
    )
