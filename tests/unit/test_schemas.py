import uuid

import pytest
from pydantic import ValidationError

from app.schemas import GenerationUpdate, MediaInput, PokemonCreate, PokemonUpdate, TypeCreate, TypeUpdate


def pokemon_payload(**overrides):
    payload = {
        "name": "Bulbasaur",
        "indexNumber": 1,
        "generationId": str(uuid.uuid4()),
        "typeIds": [str(uuid.uuid4())],
    }
    payload.update(overrides)
    return payload


def test_pokemon_create_accepts_camel_case_and_defaults_flags():
    data = PokemonCreate.model_validate(pokemon_payload())

    assert data.index_number == 1
    assert data.is_legendary is False
    assert data.media is None


@pytest.mark.parametrize(
    "overrides",
    [
        {"name": "B"},
        {"indexNumber": 0},
        {"typeIds": []},
        {"typeIds": [str(uuid.uuid4()) for _ in range(3)]},
        {"heightMeters": -1},
        {"weightKilograms": 1000.5},
        {"baseStats": {"hp": 0}},
        {"baseStats": {"speed": 301}},
        {"media": [{"url": "not-a-url", "kind": "IMAGE"}]},
        {"media": [{"url": "https://cdn.example.com/a.png", "kind": "VIDEO"}]},
        {"media": [{"url": "https://cdn.example.com/a.png", "kind": "IMAGE", "title": "x" * 121}]},
    ],
)
def test_pokemon_create_rejects_out_of_range_values(overrides):
    with pytest.raises(ValidationError):
        PokemonCreate.model_validate(pokemon_payload(**overrides))


def test_pokemon_update_tracks_absent_versus_null():
    data = PokemonUpdate.model_validate({"media": None, "classification": "Seed"})

    assert data.model_fields_set == {"media", "classification"}
    assert data.media is None


@pytest.mark.parametrize("field", ["name", "indexNumber", "generationId", "typeIds", "isLegendary"])
def test_pokemon_update_rejects_null_for_required_columns(field):
    with pytest.raises(ValidationError):
        PokemonUpdate.model_validate({field: None})


def test_generation_update_rejects_null_number():
    with pytest.raises(ValidationError):
        GenerationUpdate.model_validate({"number": None})


def test_type_create_treats_null_relations_as_empty():
    data = TypeCreate.model_validate({"name": "Fire", "relations": None})

    assert data.relations.strong_against == []
    assert data.relations.immune_to == []


def test_type_create_validates_color():
    assert TypeCreate.model_validate({"name": "Fire", "colorHex": "#ee8130"}).color_hex == "#ee8130"
    with pytest.raises(ValidationError):
        TypeCreate.model_validate({"name": "Fire", "colorHex": "red"})


def test_type_update_keeps_relations_absent_when_omitted():
    assert "relations" not in TypeUpdate.model_validate({"name": "Fire"}).model_fields_set


def test_media_url_is_validated_but_kept_verbatim():
    media = MediaInput.model_validate({"url": "https://cdn.example.com", "kind": "IMAGE"})

    assert media.url == "https://cdn.example.com"
    with pytest.raises(ValidationError):
        MediaInput.model_validate({"url": "ftp://cdn.example.com/a.png", "kind": "IMAGE"})
