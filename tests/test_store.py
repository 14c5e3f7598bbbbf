"""
Tests for storage: key-value backends, legacy key migration, load-time
repair, serialization and settings.
"""

import json
import math

import pytest

from gym_planner.core.analytics import total_minutes
from gym_planner.core.config import (
    LEGACY_PROGRAMS_KEY,
    LEGACY_RUNS_KEY,
    PROGRAMS_KEY,
    RUNS_KEY,
)
from gym_planner.core.sessions import finish_run, start_run, toggle_set
from gym_planner.io.config_loader import HOME_ENV_VAR, load_settings
from gym_planner.io.gym_store import GymStore, get_store, migrate_legacy_keys
from gym_planner.io.kv_store import FileKeyValueStore, MemoryKeyValueStore
from gym_planner.io.serializers import (
    ValidationError,
    dict_to_program,
    dict_to_run_instance,
    run_instance_to_dict,
)

PROGRAM_DATA = {
    "id": "p1",
    "title": "Push day",
    "notes": "3x per week",
    "sections": [
        {"id": "s1", "title": "Chest", "items": [
            {"id": "i1", "title": "Bench press", "reps": 3, "weight": 50},
        ]},
    ],
}


class BrokenStore:
    """Backend whose reads always fail."""

    def load(self, key):
        raise OSError("disk unavailable")

    def save(self, key, text):
        raise OSError("disk unavailable")


# ---------------------------------------------------------------------------
# Legacy keys
# ---------------------------------------------------------------------------


class TestLegacyKeys:
    """Copying first-schema keys forward."""

    def test_old_text_copied_verbatim(self):
        old_text = '[ {"id": "r1",   "title": "Legs", "sections": [] } ]'
        backend = MemoryKeyValueStore({LEGACY_RUNS_KEY: old_text})

        GymStore(backend).load_runs()

        assert backend.data[RUNS_KEY] == old_text
        assert backend.data[LEGACY_RUNS_KEY] == old_text

    def test_current_key_not_overwritten(self):
        backend = MemoryKeyValueStore({LEGACY_PROGRAMS_KEY: "[1]", PROGRAMS_KEY: "[]"})
        assert migrate_legacy_keys(backend) == []
        assert backend.data[PROGRAMS_KEY] == "[]"

    def test_returns_copied_keys(self):
        backend = MemoryKeyValueStore({LEGACY_PROGRAMS_KEY: "[]", LEGACY_RUNS_KEY: "[]"})
        assert migrate_legacy_keys(backend) == [PROGRAMS_KEY, RUNS_KEY]

    def test_nothing_to_copy(self):
        backend = MemoryKeyValueStore()
        assert migrate_legacy_keys(backend) == []
        assert backend.data == {}

    def test_legacy_runs_repaired_on_load(self):
        legacy = [{
            "id": "r1", "programId": "p1", "startedAt": 1000, "finishedAt": 61000,
            "title": "Legs",
            "sections": [{"id": "s1", "title": "Quads", "items": [
                {"id": "e1", "title": "Squat", "reps": 3, "currentWeight": 42,
                 "done": [True, False, False]},
            ]}],
        }]
        backend = MemoryKeyValueStore({LEGACY_RUNS_KEY: json.dumps(legacy)})

        runs = GymStore(backend).load_runs()

        record = runs[0].sections[0].items[0]
        assert record.weights == [42, 42, 42]
        assert record.done == [True, False, False]
        assert record.current_weight == 42
        assert runs[0].finished_at == 61000


# ---------------------------------------------------------------------------
# Degraded reads
# ---------------------------------------------------------------------------


class TestDefensiveLoad:
    """Reads never fail on missing or corrupt data."""

    def test_missing_data_is_empty(self):
        store = GymStore(MemoryKeyValueStore())
        assert store.load_programs() == []
        assert store.load_runs() == []

    def test_corrupt_text_is_empty(self):
        store = GymStore(MemoryKeyValueStore({RUNS_KEY: "{not json", PROGRAMS_KEY: "nope"}))
        assert store.load_runs() == []
        assert store.load_programs() == []

    def test_non_list_json_is_empty(self):
        store = GymStore(MemoryKeyValueStore({RUNS_KEY: '{"a": 1}', PROGRAMS_KEY: '"x"'}))
        assert store.load_runs() == []
        assert store.load_programs() == []

    def test_unavailable_store_is_empty(self):
        store = GymStore(BrokenStore())
        assert store.load_runs() == []
        assert store.load_programs() == []

    def test_unavailable_store_write_raises(self):
        with pytest.raises(OSError):
            GymStore(BrokenStore()).save_runs([])

    def test_invalid_program_skipped(self):
        text = json.dumps([PROGRAM_DATA, {"title": ""}])
        store = GymStore(MemoryKeyValueStore({PROGRAMS_KEY: text}))
        assert [p.id for p in store.load_programs()] == ["p1"]

    def test_unreadable_runs_written_back(self):
        text = json.dumps([{"id": "old", "title": "no sections"}])
        backend = MemoryKeyValueStore({RUNS_KEY: text})
        store = GymStore(backend)

        program = dict_to_program(PROGRAM_DATA)
        store.save_run(start_run(program))

        stored = json.loads(backend.data[RUNS_KEY])
        assert len(stored) == 2
        assert {"id": "old", "title": "no sections"} in stored

    def test_unreadable_runs_keep_their_position(self):
        good = {"id": "r2", "title": "Legs", "sections": []}
        text = json.dumps([{"id": "r1", "sections": []}, "garbage", good])
        backend = MemoryKeyValueStore({RUNS_KEY: text})
        store = GymStore(backend)

        run = store.get_run("r2")
        store.save_run(finish_run(run))

        stored = json.loads(backend.data[RUNS_KEY])
        assert [e if isinstance(e, str) else e["id"] for e in stored] == ["r1", "garbage", "r2"]

    def test_unreadable_weights_saved_as_strict_json(self):
        text = json.dumps([{"id": "r1", "startedAt": 1000, "sections": [{"id": "s1", "items": [
            {"id": "e1", "title": "Row", "reps": 2, "weights": [10, None], "done": [False, False]},
        ]}]}])
        backend = MemoryKeyValueStore({RUNS_KEY: text})
        store = GymStore(backend)

        store.save_run(toggle_set(store.get_run("r1"), "e1", 0))

        def reject(token):
            raise ValueError(f"non-standard JSON token {token}")

        stored = json.loads(backend.data[RUNS_KEY], parse_constant=reject)
        assert stored[0]["sections"][0]["items"][0]["weights"] == [10, None]
        record = store.get_run("r1").sections[0].items[0]
        assert record.done == [True, False]
        assert math.isnan(record.weights[1])

    def test_nan_tokens_in_stored_text_are_repaired(self):
        text = ('[{"id": "r1", "startedAt": 1000, "sections": [{"id": "s1", "items": '
                '[{"id": "e1", "title": "Row", "reps": 2, "weights": [NaN, 5], "done": [true, true]}]}]}]')
        backend = MemoryKeyValueStore({RUNS_KEY: text})
        store = GymStore(backend)

        record = store.get_run("r1").sections[0].items[0]
        assert math.isnan(record.weights[0])
        store.save_runs(store.load_runs())
        assert "NaN" not in backend.data[RUNS_KEY]

    def test_missing_ids_are_stable(self):
        text = json.dumps([{"sections": [{"items": [{"title": "Row", "reps": 1}]}]}])
        store = GymStore(MemoryKeyValueStore({RUNS_KEY: text}))
        first = store.load_runs()[0]
        second = store.load_runs()[0]
        assert first.id == second.id
        assert first.sections[0].items[0].id == second.sections[0].items[0].id


# ---------------------------------------------------------------------------
# CRUD
# ---------------------------------------------------------------------------


class TestGymStore:
    """Program and run persistence."""

    def test_program_roundtrip_and_replace(self):
        store = GymStore(MemoryKeyValueStore())
        program = dict_to_program(PROGRAM_DATA)
        store.save_program(program)
        program.title = "Push day v2"
        store.save_program(program)

        programs = store.load_programs()
        assert len(programs) == 1
        assert programs[0].title == "Push day v2"
        assert programs[0].sections[0].items[0].reps == 3

    def test_delete_program(self):
        store = GymStore(MemoryKeyValueStore())
        store.save_program(dict_to_program(PROGRAM_DATA))
        store.delete_program("p1")
        assert store.load_programs() == []
        with pytest.raises(KeyError):
            store.delete_program("p1")

    def test_run_lifecycle(self):
        store = GymStore(MemoryKeyValueStore())
        run = start_run(dict_to_program(PROGRAM_DATA))
        store.save_run(run)

        record_id = run.sections[0].items[0].id
        store.save_run(toggle_set(store.get_run(run.id), record_id, 0))
        store.save_run(finish_run(store.get_run(run.id[:6])))

        loaded = store.get_run(run.id)
        assert loaded.is_finished
        assert loaded.sections[0].items[0].done == [True, False, False]
        assert len(store.load_runs()) == 1

        store.delete_run(run.id)
        assert store.load_runs() == []

    def test_get_run_unknown(self):
        with pytest.raises(KeyError):
            GymStore(MemoryKeyValueStore()).get_run("nope")

    def test_ambiguous_prefix(self):
        store = GymStore(MemoryKeyValueStore())
        store.save_program(dict_to_program({**PROGRAM_DATA, "id": "abc1"}))
        store.save_program(dict_to_program({**PROGRAM_DATA, "id": "abc2"}))
        with pytest.raises(KeyError):
            store.get_program("abc")
        assert store.get_program("abc2").id == "abc2"

    def test_file_backend(self, tmp_path):
        store = get_store(tmp_path / "data")
        store.save_program(dict_to_program(PROGRAM_DATA))

        assert (tmp_path / "data" / f"{PROGRAMS_KEY}.json").exists()
        assert get_store(tmp_path / "data").load_programs()[0].title == "Push day"


class TestFileKeyValueStore:
    """One file per key."""

    def test_missing_key(self, tmp_path):
        assert FileKeyValueStore(tmp_path).load("absent") is None

    def test_save_and_load(self, tmp_path):
        kv = FileKeyValueStore(tmp_path / "nested")
        kv.save("k", "text ✓")
        assert kv.load("k") == "text ✓"
        assert not list((tmp_path / "nested").glob("*.tmp"))


# ---------------------------------------------------------------------------
# Serialization
# ---------------------------------------------------------------------------


class TestSerializers:
    """Dict <-> model conversion."""

    def test_program_ids_generated(self):
        program = dict_to_program({
            "title": "Pull day",
            "sections": [{"title": "Back", "items": [{"title": "Row", "reps": 4, "weight": 40}]}],
        })
        assert program.id
        assert program.sections[0].id
        assert program.sections[0].items[0].id

    @pytest.mark.parametrize("data", [
        None,
        {"title": ""},
        {"title": "X", "sections": "none"},
        {"title": "X", "sections": [{"title": "S", "items": [{"title": "Row", "reps": 0}]}]},
        {"title": "X", "sections": [{"title": "S", "items": [{"title": "Row", "reps": 2.5}]}]},
        {"title": "X", "sections": [{"title": "S", "items": [{"title": "Row", "reps": 3, "weight": "heavy"}]}]},
        {"title": "X", "sections": [{"title": "", "items": []}]},
    ])
    def test_invalid_program(self, data):
        with pytest.raises(ValidationError):
            dict_to_program(data)

    def test_run_wire_format(self):
        run = start_run(dict_to_program(PROGRAM_DATA))
        d = run_instance_to_dict(run)
        assert d["programId"] == "p1"
        assert "finishedAt" not in d
        assert d["sections"][0]["items"][0]["weights"] == [50, 50, 50]
        assert d["sections"][0]["items"][0]["currentWeight"] == 50

    def test_non_numeric_weights_become_nan(self):
        run = dict_to_run_instance(
            {"id": "r", "sections": [{"items": [{"reps": 2, "weights": [10, "x"], "done": [1, 0]}]}]},
            fallback_id="run-0",
        )
        record = run.sections[0].items[0]
        assert record.weights[0] == 10
        assert math.isnan(record.weights[1])
        assert record.done == [True, False]

    def test_only_true_and_non_zero_flags_count_as_done(self):
        run = dict_to_run_instance(
            {"id": "r", "sections": [{"items": [
                {"reps": 5, "weights": [1, 1, 1, 1, 1], "done": ["false", "true", True, 1, 0]},
            ]}]},
            fallback_id="run-0",
        )
        assert run.sections[0].items[0].done == [False, False, True, True, False]

    def test_missing_start_falls_back_to_finish(self):
        run = dict_to_run_instance({"finishedAt": 1760000000000, "sections": []}, fallback_id="run-0")
        assert run.started_at == 1760000000000
        assert total_minutes([run]) == 0

        run = dict_to_run_instance({"startedAt": "soon", "sections": []}, fallback_id="run-1")
        assert run.started_at == 0
        assert run.finished_at is None

    def test_non_finite_weight_written_as_null(self):
        run = dict_to_run_instance(
            {"id": "r", "sections": [{"items": [{"reps": 2, "weights": [10, "x"]}]}]},
            fallback_id="run-0",
        )
        d = run_instance_to_dict(run)
        assert d["sections"][0]["items"][0]["weights"] == [10, None]

    def test_run_requires_sections(self):
        with pytest.raises(ValidationError):
            dict_to_run_instance({"id": "r"}, fallback_id="run-0")


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


class TestSettings:
    """YAML settings file."""

    def test_defaults(self, tmp_path, monkeypatch):
        monkeypatch.setenv(HOME_ENV_VAR, str(tmp_path))
        settings = load_settings()
        assert settings.data_dir == tmp_path
        assert settings.weight_unit == "kg"

    def test_user_file(self, tmp_path, monkeypatch):
        monkeypatch.setenv(HOME_ENV_VAR, str(tmp_path))
        (tmp_path / "config.yaml").write_text("data_dir: store\nweight_unit: lb\nlog_level: info\n")
        settings = load_settings()
        assert settings.data_dir == tmp_path / "store"
        assert settings.weight_unit == "lb"
        assert settings.log_level == "INFO"

    def test_broken_file_ignored(self, tmp_path, monkeypatch):
        monkeypatch.setenv(HOME_ENV_VAR, str(tmp_path))
        (tmp_path / "config.yaml").write_text("data_dir: [unclosed\n")
        assert load_settings().data_dir == tmp_path
