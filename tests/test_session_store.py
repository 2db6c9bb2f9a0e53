"""Unit tests for the file-backed session store."""

import pytest

from scripts import session_store
from zerostack.core.identity import Session


@pytest.fixture
def temp_session_dir(monkeypatch, tmp_path):
    """Provide isolated session directory for each test."""
    session_dir = tmp_path / "session"
    monkeypatch.setattr(session_store, "SESSION_DIR", session_dir)
    monkeypatch.setattr(session_store, "SESSION_FILE", session_dir / "session.json")
    monkeypatch.setattr(session_store, "GUEST_FILE", session_dir / "guest_id")
    return session_dir


def test_load_without_file_returns_none(temp_session_dir):
    assert session_store.load_session() is None


def test_save_and_load(temp_session_dir):
    session = Session(token="tok", refresh_token="ref", user={"id": "u1", "email": "a@b.com"})

    session_store.save_session(session)

    assert session_store.load_session() == session


def test_session_file_permissions(temp_session_dir):
    session_store.save_session(Session(token="tok"))

    assert session_store.SESSION_FILE.stat().st_mode & 0o777 == 0o600
    assert temp_session_dir.stat().st_mode & 0o777 == 0o700


def test_corrupt_session_file_is_discarded(temp_session_dir):
    temp_session_dir.mkdir(parents=True)
    session_store.SESSION_FILE.write_text("{not json")

    assert session_store.load_session() is None
    assert not session_store.SESSION_FILE.exists()


def test_non_object_session_file_is_discarded(temp_session_dir):
    temp_session_dir.mkdir(parents=True)
    session_store.SESSION_FILE.write_text("[1, 2]")

    assert session_store.load_session() is None


def test_clear_session_keeps_guest_id(temp_session_dir):
    guest_id = session_store.get_guest_id()
    session_store.save_session(Session(token="tok"))

    session_store.clear_session()
    session_store.clear_session()

    assert session_store.load_session() is None
    assert session_store.get_guest_id() == guest_id


def test_guest_id_is_generated_once(temp_session_dir):
    first = session_store.get_guest_id()
    second = session_store.get_guest_id()

    assert first == second
    assert first.startswith("guest_")
    assert len(first) == len("guest_") + 8
    assert session_store.GUEST_FILE.stat().st_mode & 0o777 == 0o600


def test_generated_guest_ids_differ():
    assert session_store.generate_guest_id() != session_store.generate_guest_id()
