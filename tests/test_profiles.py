"""
Tests for profile persistence.
"""

import json

import pytest

from eq_editor.core.entities import Band, BandKind
from eq_editor.core.profiles import (
    InMemoryProfileRepository,
    JsonProfileRepository,
    ProfileCommitter,
    ProfileData,
    load_profile_safe,
)
from eq_editor.core.timing import ManualClock


class TestProfileData:
    """Tests for parsing persisted profiles."""

    def test_malformed_records_skipped(self):
        """Broken entity records are dropped, the rest is kept."""
        data = ProfileData.from_dict({
            "volume": -3,
            "entities": [
                {"id": "a", "frequency": 100, "gain": 2, "q": 1, "type": "lowshelf"},
                {"id": "b", "gain": 2},
                "garbage",
                {"id": "c", "frequency": "abc"},
                {"id": "a", "frequency": 500},
                {"id": "d", "frequency": 8000, "gain": 99},
            ],
        })

        assert [e.id for e in data.entities] == ["a", "d"]
        assert data.entities[0].kind == BandKind.LOW_SHELF
        assert data.entities[1].gain == 24.0
        assert data.volume == -3.0

    def test_bad_volume(self):
        data = ProfileData.from_dict({"volume": "loud", "entities": []})

        assert data.volume == 0.0

    def test_not_a_document(self):
        with pytest.raises(ValueError):
            ProfileData.from_dict(["not", "a", "dict"])


class TestJsonProfileRepository:
    """Tests for the JSON file repository."""

    def test_save_and_load(self, tmp_path):
        repo = JsonProfileRepository(tmp_path / "profiles")
        repo.save("Living Room", ProfileData([Band("a", 120.0, -4.0, 2.0)], volume=-2.0))

        loaded = repo.load("Living Room")

        assert loaded.entities == [Band("a", 120.0, -4.0, 2.0)]
        assert loaded.volume == -2.0
        assert not list((tmp_path / "profiles").glob("*.tmp"))

    def test_file_format(self, tmp_path):
        repo = JsonProfileRepository(tmp_path)
        repo.save("p", ProfileData([Band("a", 1000.0, 3.0)]))

        document = json.loads(repo.path_for("p").read_text())

        assert document["version"] == 1
        assert document["entities"][0] == {
            "id": "a", "frequency": 1000.0, "gain": 3.0, "q": 1.0, "type": "peaking",
        }

    def test_missing_profile(self, tmp_path):
        assert JsonProfileRepository(tmp_path).load("nothing") is None

    def test_unsafe_names(self, tmp_path):
        """Profile ids cannot escape the directory."""
        path = JsonProfileRepository(tmp_path).path_for("../../etc/passwd")

        assert path.parent == tmp_path


class TestLoadProfileSafe:
    """Tests for fault tolerant loading."""

    def test_missing_is_empty(self):
        data = load_profile_safe(InMemoryProfileRepository(), "none")

        assert data.entities == []
        assert data.volume == 0.0

    def test_corrupt_file_is_empty(self, tmp_path):
        repo = JsonProfileRepository(tmp_path)
        repo.path_for("broken").write_text("{not json")

        assert load_profile_safe(repo, "broken").entities == []


class TestProfileCommitter:
    """Tests for the debounced profile writer."""

    def make(self, repo, clock, entities):
        return ProfileCommitter(repo, "p", lambda: ProfileData(list(entities)), clock, delay=0.05)

    def test_debounced_write(self):
        repo = InMemoryProfileRepository()
        clock = ManualClock()
        entities = [Band("a", 100.0)]
        committer = self.make(repo, clock, entities)

        committer.schedule()
        committer.schedule()
        clock.advance(0.01)
        committer.poll()
        assert repo.save_count == 0

        clock.advance(0.1)
        committer.poll()
        assert repo.save_count == 1
        assert repo.load("p").entities == entities

    def test_flush_and_cancel(self):
        repo = InMemoryProfileRepository()
        clock = ManualClock()
        committer = self.make(repo, clock, [])

        committer.schedule()
        committer.flush()
        assert repo.save_count == 1

        committer.schedule()
        committer.cancel()
        clock.advance(1.0)
        committer.poll()
        assert repo.save_count == 1

    def test_write_errors_are_logged(self, tmp_path):
        """A failing save does not raise out of the committer."""
        blocker = tmp_path / "file"
        blocker.write_text("")
        committer = self.make(JsonProfileRepository(blocker / "sub"), ManualClock(), [])

        committer.schedule()
        committer.flush()

        assert not committer.pending
