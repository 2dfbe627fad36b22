import os

import pytest

from app.session_client import SessionUser

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


def stored_files(storage):
    if not os.path.isdir(storage.directory):
        return []
    return os.listdir(storage.directory)


@pytest.mark.asyncio
async def test_upload_image_is_stored_and_served_url_returned(client, storage):
    """A valid PNG is written under a random name and its public URL returned."""
    # ACT
    resp = await client.post(
        "/uploads",
        data={"purpose": "POKEMON_IMAGE"},
        files={"file": ("pikachu.png", PNG_BYTES, "image/png")},
    )

    # ASSERT
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["url"].startswith("http://testserver/uploads/")
    assert data["url"].endswith(".png")
    assert data["originalName"] == "pikachu.png"
    assert data["mimeType"] == "image/png"
    assert data["size"] == len(PNG_BYTES)

    files = stored_files(storage)
    assert len(files) == 1
    assert data["url"].endswith(files[0])
    with open(os.path.join(storage.directory, files[0]), "rb") as f:
        assert f.read() == PNG_BYTES


@pytest.mark.asyncio
async def test_upload_audio(client):
    resp = await client.post(
        "/uploads",
        data={"purpose": "POKEMON_AUDIO"},
        files={"file": ("cry", b"ID3" + b"\x00" * 16, "audio/mpeg")},
    )

    assert resp.status_code == 200
    # No extension on the original name: derived from the MIME type
    assert resp.json()["data"]["url"].endswith(".mp3")


@pytest.mark.asyncio
async def test_wrong_mime_type_is_rejected_without_writing(client, storage):
    resp = await client.post(
        "/uploads",
        data={"purpose": "POKEMON_IMAGE"},
        files={"file": ("notes.txt", b"hello", "text/plain")},
    )

    assert resp.status_code == 415
    assert stored_files(storage) == []


@pytest.mark.asyncio
async def test_audio_is_not_accepted_as_image(client, storage):
    resp = await client.post(
        "/uploads",
        data={"purpose": "POKEMON_IMAGE"},
        files={"file": ("cry.mp3", b"ID3", "audio/mpeg")},
    )

    assert resp.status_code == 415
    assert stored_files(storage) == []


@pytest.mark.asyncio
async def test_oversized_file_is_rejected(client, storage):
    resp = await client.post(
        "/uploads",
        data={"purpose": "POKEMON_IMAGE"},
        files={"file": ("big.png", b"\x00" * (storage.max_bytes + 1), "image/png")},
    )

    assert resp.status_code == 413
    assert stored_files(storage) == []


@pytest.mark.asyncio
async def test_missing_file_is_bad_request(client):
    resp = await client.post("/uploads", data={"purpose": "POKEMON_IMAGE"})

    assert resp.status_code == 400
    assert resp.json()["error"]["message"] == "No file was sent"


@pytest.mark.asyncio
async def test_text_field_named_file_is_bad_request(client, storage):
    """A plain form value under "file" is treated as no file at all."""
    resp = await client.post("/uploads", data={"purpose": "POKEMON_IMAGE", "file": "notafile"})

    assert resp.status_code == 400
    assert resp.json()["error"]["message"] == "No file was sent"
    assert stored_files(storage) == []


@pytest.mark.asyncio
@pytest.mark.parametrize("purpose", [None, "AVATAR"])
async def test_invalid_purpose_is_bad_request(client, purpose):
    data = {"purpose": purpose} if purpose else {}

    resp = await client.post(
        "/uploads",
        data=data,
        files={"file": ("pikachu.png", PNG_BYTES, "image/png")},
    )

    assert resp.status_code == 400
    assert resp.json()["error"]["message"] == "Invalid upload purpose"


@pytest.mark.asyncio
async def test_uploads_are_admin_only(client, session_state, storage):
    session_state["user"] = SessionUser(id="e", role="EDITOR")

    resp = await client.post(
        "/uploads",
        data={"purpose": "POKEMON_IMAGE"},
        files={"file": ("pikachu.png", PNG_BYTES, "image/png")},
    )

    assert resp.status_code == 403
    assert stored_files(storage) == []
