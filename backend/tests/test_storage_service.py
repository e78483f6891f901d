import pytest

from conftest import ORIGIN
from tenant_console.services.storage_service import SharedStorage, StorageClosedError, TabStorage


class TestTabStorage:
    def test_apply_writes_and_removes_together(self, tab_a):
        tab_a.apply({"a": "1", "b": "2"})
        tab_a.apply({"c": "3"}, removals=["a"])
        assert tab_a.snapshot() == {"b": "2", "c": "3"}

    def test_tabs_are_isolated(self, tab_a, tab_b):
        tab_a.set("accessToken", "tok")
        assert tab_b.get("accessToken") is None

    def test_close_discards_data_and_refuses_writes(self, tab_a):
        tab_a.set("k", "v")
        tab_a.close()

        assert tab_a.items() == {}
        with pytest.raises(StorageClosedError):
            tab_a.set("k", "v")

    def test_generated_tab_ids_are_unique(self):
        assert TabStorage().tab_id != TabStorage().tab_id


class TestSharedStorage:
    def test_visible_to_every_handle_of_the_same_origin(self, session_factory, shared_storage):
        other_tab_view = SharedStorage(session_factory, ORIGIN)

        shared_storage.apply({"accessToken": "tok", "tenantId": "tenant-acme"})

        assert other_tab_view.snapshot() == {"accessToken": "tok", "tenantId": "tenant-acme"}

    def test_origins_do_not_share_keys(self, session_factory, shared_storage):
        foreign = SharedStorage(session_factory, "http://elsewhere.test")
        foreign.set("accessToken", "theirs")

        assert shared_storage.get("accessToken") is None

    def test_overwrite_and_remove(self, shared_storage):
        shared_storage.set("user", "a")
        shared_storage.set("user", "b")
        shared_storage.apply({"accessToken": "tok"}, removals=["user", "missing"])

        assert shared_storage.snapshot() == {"accessToken": "tok"}

    def test_update_wins_over_removal_of_same_key(self, shared_storage):
        shared_storage.apply({"k": "new"}, removals=["k"])
        assert shared_storage.get("k") == "new"

    def test_from_url(self):
        storage = SharedStorage.from_url("sqlite://", ORIGIN)
        storage.set("k", "v")
        assert storage.get("k") == "v"
