"""
Shape ORM rows (with their joined associations already loaded) into the
flat view models returned by the API.

Everything here is pure: no session access, no lazy loading. Callers must
eager-load the relationships listed in each function's docstring.
"""
from app.models import Generation, Pokemon, PokemonMedia, Type, TypeRelation
from app.schemas import (
    BaseStatsView,
    GenerationView,
    MediaView,
    PokemonSummary,
    PokemonTypeView,
    PokemonView,
    TypeSummary,
    TypeView,
)


def map_generation(generation: Generation) -> GenerationView:
    return GenerationView(
        id=generation.id,
        name=generation.name,
        number=generation.number,
        description=generation.description,
        released_at=generation.released_at,
        created_at=generation.created_at,
        updated_at=generation.updated_at,
    )


def map_type_summary(type_: Type) -> TypeSummary:
    return TypeSummary(
        id=type_.id,
        name=type_.name,
        slug=type_.slug,
        color_hex=type_.color_hex,
    )


def map_type(type_: Type) -> TypeView:
    """
    Needs `relationships_from.target_type` and `relationships_to.source_type`.

    strengths   = outgoing STRONG_AGAINST (targets)
    weaknesses  = incoming STRONG_AGAINST (sources)
    resistances = incoming WEAK_AGAINST (sources)
    immunities  = incoming IMMUNE_TO (sources)
    """
    outgoing = type_.relationships_from
    incoming = type_.relationships_to

    def sources(relation):
        return [
            map_type_summary(rel.source_type)
            for rel in incoming
            if rel.relation == relation and rel.source_type is not None
        ]

    return TypeView(
        id=type_.id,
        name=type_.name,
        slug=type_.slug,
        color_hex=type_.color_hex,
        description=type_.description,
        created_at=type_.created_at,
        updated_at=type_.updated_at,
        strengths=[
            map_type_summary(rel.target_type)
            for rel in outgoing
            if rel.relation == TypeRelation.STRONG_AGAINST and rel.target_type is not None
        ],
        weaknesses=sources(TypeRelation.STRONG_AGAINST),
        resistances=sources(TypeRelation.WEAK_AGAINST),
        immunities=sources(TypeRelation.IMMUNE_TO),
    )


def map_media(media: PokemonMedia | None) -> MediaView | None:
    if media is None:
        return None
    return MediaView(
        id=media.id,
        kind=media.kind,
        url=media.url,
        title=media.title,
        is_primary=media.is_primary,
    )


def map_pokemon_summary(pokemon: Pokemon) -> PokemonSummary:
    return PokemonSummary(id=pokemon.id, name=pokemon.name, slug=pokemon.slug)


def _evolution_order(pokemon: Pokemon):
    return (pokemon.index_number, str(pokemon.id))


def map_pokemon(pokemon: Pokemon) -> PokemonView:
    """
    Needs `generation`, `type_slots.type`, `media`, both primary media,
    `evolutions_from.to_pokemon` and `evolutions_to.from_pokemon`.
    """
    slots = sorted(pokemon.type_slots, key=lambda pt: pt.slot)
    types = [
        PokemonTypeView(
            id=pt.type.id,
            name=pt.type.name,
            slug=pt.type.slug,
            color_hex=pt.type.color_hex,
            slot=pt.slot,
        )
        for pt in slots
    ]

    # Each stat defaults to null on its own: a stored value and "not specified" differ
    base_stats = BaseStatsView(
        hp=pokemon.base_hp,
        attack=pokemon.base_attack,
        defense=pokemon.base_defense,
        sp_attack=pokemon.base_sp_attack,
        sp_defense=pokemon.base_sp_defense,
        speed=pokemon.base_speed,
    )

    # to_pokemon_id is unique, but pick deterministically if the data says otherwise
    pre_sources = sorted(
        (evo.from_pokemon for evo in pokemon.evolutions_to if evo.from_pokemon is not None),
        key=_evolution_order,
    )
    evolutions = sorted(
        (evo.to_pokemon for evo in pokemon.evolutions_from if evo.to_pokemon is not None),
        key=_evolution_order,
    )

    return PokemonView(
        id=pokemon.id,
        name=pokemon.name,
        slug=pokemon.slug,
        index_number=pokemon.index_number,
        generation=map_generation(pokemon.generation) if pokemon.generation else None,
        classification=pokemon.classification,
        description=pokemon.description,
        height_meters=pokemon.height_meters,
        weight_kilograms=pokemon.weight_kilograms,
        is_legendary=pokemon.is_legendary,
        is_mythical=pokemon.is_mythical,
        types=types,
        media=[map_media(m) for m in pokemon.media],
        primary_image_media=map_media(pokemon.primary_image_media),
        primary_audio_media=map_media(pokemon.primary_audio_media),
        base_stats=base_stats,
        pre_evolution=map_pokemon_summary(pre_sources[0]) if pre_sources else None,
        evolutions=[map_pokemon_summary(p) for p in evolutions],
        created_at=pokemon.created_at,
        updated_at=pokemon.updated_at,
    )
