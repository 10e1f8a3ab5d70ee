from __future__ import annotations

import json
from pathlib import Path

import pytest

from nowplaying.core.errors import PersistenceError
from nowplaying.models.credential import CredentialRecord
from nowplaying.services import credential_store
from nowplaying.services.credential_store import CredentialStore
from nowplaying.services.token_cipher import TokenCipherService


def _record(suffix: str = "1") -> CredentialRecord:
    return CredentialRecord(access_token=f"access-{suffix}", refresh_token=f"refresh-{suffix}")


@pytest.mark.asyncio
async def test_set_then_get_returns_same_record(tmp_path: Path) -> None:
    store = CredentialStore(tmp_path / "tokens.json")
    record = _record()

    await store.set("42", record)

    assert store.get("42") == record
    assert store.has("42")
    assert store.get("missing") is None


@pytest.mark.asyncio
async def test_delete_removes_record_and_rewrites_file(tmp_path: Path) -> None:
    path = tmp_path / "tokens.json"
    store = CredentialStore(path)
    await store.set("42", _record())
    await store.set("7", _record("7"))

    assert await store.delete("42") is True

    assert not store.has("42")
    assert json.loads(path.read_text()) == {
        "7": {"accessToken": "access-7", "refreshToken": "refresh-7"}
    }


@pytest.mark.asyncio
async def test_records_survive_a_reload(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "tokens.json"
    first = CredentialStore(path)
    await first.set("42", _record())

    restarted = CredentialStore(path)
    await restarted.load()

    assert restarted.get("42") == _record()
    assert len(restarted) == 1


@pytest.mark.asyncio
async def test_load_reads_camel_case_layout(tmp_path: Path) -> None:
    path = tmp_path / "tokens.json"
    path.write_text(json.dumps({"42": {"accessToken": "a", "refreshToken": "r"}}))

    store = CredentialStore(path)
    await store.load()

    assert store.get("42") == CredentialRecord(access_token="a", refresh_token="r")


@pytest.mark.asyncio
async def test_missing_file_is_an_empty_store(tmp_path: Path) -> None:
    store = CredentialStore(tmp_path / "absent.json")

    await store.load()

    assert len(store) == 0


@pytest.mark.asyncio
async def test_corrupt_file_leaves_store_empty(tmp_path: Path) -> None:
    path = tmp_path / "tokens.json"
    path.write_text("{not json")

    store = CredentialStore(path)
    await store.load()

    assert len(store) == 0


@pytest.mark.asyncio
async def test_unreadable_entries_are_skipped(tmp_path: Path) -> None:
    path = tmp_path / "tokens.json"
    path.write_text(
        json.dumps(
            {
                "1": {"accessToken": "a", "refreshToken": "r"},
                "2": {"accessToken": "only-access"},
                "3": "garbage",
            }
        )
    )

    store = CredentialStore(path)
    await store.load()

    assert store.has("1")
    assert not store.has("2")
    assert not store.has("3")


@pytest.mark.asyncio
async def test_expected_record_guards_against_stale_writes(tmp_path: Path) -> None:
    store = CredentialStore(tmp_path / "tokens.json")
    stale = _record("old")
    fresh = _record("fresh")
    await store.set("42", stale)
    await store.set("42", fresh)

    written = await store.set("42", _record("refreshed"), expected=stale)
    deleted = await store.delete("42", expected=stale)

    assert written is False
    assert deleted is False
    assert store.get("42") == fresh


@pytest.mark.asyncio
async def test_write_failure_raises_persistence_error(tmp_path: Path) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("a file, not a directory")
    store = CredentialStore(blocker / "tokens.json")

    with pytest.raises(PersistenceError):
        await store.set("42", _record())

    assert not store.has("42")
    assert len(store) == 0


@pytest.mark.asyncio
async def test_failed_writes_leave_memory_matching_the_file(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    path = tmp_path / "tokens.json"
    store = CredentialStore(path)
    await store.set("42", _record("old"))

    def broken_write(target: Path, contents: str) -> None:
        raise OSError("disk full")

    monkeypatch.setattr(credential_store, "_write_atomic", broken_write)

    with pytest.raises(PersistenceError):
        await store.set("42", _record("new"))
    assert store.get("42") == _record("old")

    with pytest.raises(PersistenceError):
        await store.delete("42")
    assert store.get("42") == _record("old")
    assert json.loads(path.read_text(encoding="utf-8"))["42"]["accessToken"] == "access-old"


@pytest.mark.asyncio
async def test_encrypted_store_hides_tokens_on_disk(tmp_path: Path) -> None:
    path = tmp_path / "tokens.json"
    cipher = TokenCipherService(secret="disk-secret")
    store = CredentialStore(path, cipher=cipher)
    await store.set("42", _record())

    on_disk = json.loads(path.read_text())
    assert set(on_disk["42"]) == {"accessToken", "refreshToken"}
    assert on_disk["42"]["accessToken"] != "access-1"

    reloaded = CredentialStore(path, cipher=cipher)
    await reloaded.load()
    assert reloaded.get("42") == _record()
