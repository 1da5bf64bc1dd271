"""
Tests for FormState mutations and the per-session store.
"""

import threading

import pytest

from conftest import make_attachment
from intake.form_state import FormSessionStore, FormState
from intake.schema import MAX_IMAGES


def _files(count, prefix="img"):
    return [make_attachment(f"{prefix}{i}.jpg") for i in range(count)]


class TestFields:

    def test_set_field_updates_value(self):
        state = FormState()
        state.set_field("projectName", "Torre Sul")
        assert state.data.project_name == "Torre Sul"

    def test_set_field_clears_its_error_only(self):
        state = FormState()
        state.errors = {"city": "Cidade é obrigatória.", "state": "Estado é obrigatório."}
        state.set_field("city", "Recife")
        assert "city" not in state.errors
        assert "state" in state.errors

    def test_unchanged_value_keeps_its_error(self):
        state = FormState()
        state.set_field("city", "Recife")
        state.errors = {"city": "Cidade inválida.", "fullName": "Nome completo é obrigatório."}
        state.update_fields({"city": "Recife", "fullName": ""})
        assert state.errors == {"city": "Cidade inválida.", "fullName": "Nome completo é obrigatório."}

    def test_unknown_field_raises(self):
        with pytest.raises(KeyError):
            FormState().set_field("notAField", "x")

    def test_update_fields_ignores_unknown_keys(self):
        state = FormState()
        state.update_fields({"city": "Natal", "csrf": "abc"})
        assert state.data.city == "Natal"


class TestAttachments:

    def test_append_beyond_cap_truncates_to_first_five(self):
        state = FormState()
        state.add_attachments("currentSituationImage", _files(3, "a"))
        state.add_attachments("currentSituationImage", _files(4, "b"))

        names = [f.filename for f in state.attachments("currentSituationImage")]
        assert len(names) == MAX_IMAGES
        assert names == ["a0.jpg", "a1.jpg", "a2.jpg", "b0.jpg", "b1.jpg"]

    def test_cap_applies_to_final_project_images(self):
        state = FormState()
        state.add_attachments("finalProjectImage", _files(8))
        assert [f.filename for f in state.attachments("finalProjectImage")] == [f"img{i}.jpg" for i in range(5)]

    def test_adding_nothing_is_a_noop(self):
        state = FormState()
        state.errors["currentSituationImage"] = "obrigatória"
        state.add_attachments("currentSituationImage", [])
        assert state.attachments("currentSituationImage") == []
        assert "currentSituationImage" in state.errors

    def test_adding_clears_sequence_error(self):
        state = FormState()
        state.errors["currentSituationImage"] = "obrigatória"
        state.add_attachments("currentSituationImage", _files(1))
        assert "currentSituationImage" not in state.errors

    @pytest.mark.parametrize("index", [0, 2, 4])
    def test_remove_keeps_relative_order(self, index):
        state = FormState()
        state.add_attachments("currentSituationImage", _files(5))
        state.remove_attachment("currentSituationImage", index)

        names = [f.filename for f in state.attachments("currentSituationImage")]
        expected = [f"img{i}.jpg" for i in range(5) if i != index]
        assert names == expected

    def test_remove_out_of_range_is_noop(self):
        state = FormState()
        state.add_attachments("finalProjectImage", _files(2))
        state.remove_attachment("finalProjectImage", 7)
        state.remove_attachment("finalProjectImage", -1)
        assert len(state.attachments("finalProjectImage")) == 2

    def test_can_add_false_at_cap(self):
        state = FormState()
        state.add_attachments("currentSituationImage", _files(5))
        assert state.can_add("currentSituationImage") is False
        assert state.can_add("finalProjectImage") is True

    def test_unknown_sequence_raises(self):
        with pytest.raises(KeyError):
            FormState().attachments("fullName")


class TestSnapshotAndSubmitFlag:

    def test_snapshot_is_independent(self):
        state = FormState()
        state.set_field("city", "Belém")
        state.add_attachments("currentSituationImage", _files(1))
        snap = state.snapshot()

        state.set_field("city", "Manaus")
        state.add_attachments("currentSituationImage", _files(1, "new"))

        assert snap.city == "Belém"
        assert len(snap.current_situation_image) == 1

    def test_begin_submit_only_once(self):
        state = FormState()
        assert state.begin_submit() is True
        assert state.begin_submit() is False
        state.end_submit()
        assert state.begin_submit() is True


class TestFormSessionStore:

    def test_get_or_create_returns_same_state(self):
        store = FormSessionStore()
        assert store.get_or_create("a") is store.get_or_create("a")
        assert store.get_or_create("a") is not store.get_or_create("b")

    def test_get_does_not_create(self):
        store = FormSessionStore()
        assert store.get("a") is None
        assert len(store) == 0

    def test_discard(self):
        store = FormSessionStore()
        store.get_or_create("a")
        store.discard("a")
        assert len(store) == 0

    def test_concurrent_get_or_create_yields_single_state(self):
        store = FormSessionStore()
        seen = []

        def worker():
            seen.append(store.get_or_create("shared"))

        threads = [threading.Thread(target=worker) for _ in range(10)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len({id(s) for s in seen}) == 1


class TestEviction:

    def _store(self, **kwargs):
        now = [0.0]
        evicted = []
        store = FormSessionStore(clock=lambda: now[0], on_evict=evicted.append, **kwargs)
        return store, now, evicted

    def test_idle_forms_are_evicted(self):
        store, now, evicted = self._store(idle_seconds=60)
        store.get_or_create("old")
        now[0] = 30
        store.get_or_create("recent")
        now[0] = 61

        assert store.evict_idle() == ["old"]
        assert evicted == ["old"]
        assert store.get("old") is None
        assert store.get("recent") is not None

    def test_access_keeps_a_form_alive(self):
        store, now, _ = self._store(idle_seconds=60)
        store.get_or_create("a")
        now[0] = 50
        store.get("a")
        now[0] = 100

        assert store.evict_idle() == []
        assert len(store) == 1

    def test_least_recently_used_goes_first_over_the_limit(self):
        store, now, evicted = self._store(max_forms=2)
        store.get_or_create("a")
        store.get_or_create("b")
        store.get("a")
        store.get_or_create("c")

        assert evicted == ["b"]
        assert store.get("a") is not None
        assert store.get("c") is not None
        assert len(store) == 2

    def test_submitting_form_is_not_evicted(self):
        store, now, evicted = self._store(idle_seconds=60)
        busy = store.get_or_create("busy")
        busy.begin_submit()
        now[0] = 120

        assert store.evict_idle() == []
        busy.end_submit()
        assert store.evict_idle() == ["busy"]
        assert evicted == ["busy"]

    def test_many_sessions_stay_bounded(self):
        store, _, evicted = self._store(max_forms=10)
        for i in range(200):
            store.get_or_create(f"form{i}")

        assert len(store) == 10
        assert len(evicted) == 190
