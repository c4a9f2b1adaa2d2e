"""
Tests for the gallery view-model: vault access flow, browsing state and
photo actions as seen from the presentation layer.
"""

import pytest

from conftest import enter
from core.errors import PhotoNotFoundError
from core.models import AccessMode, AuthState, FilterAdjustment, Person
from app.viewmodels.gallery_vm import GalleryVM
from app.viewmodels.photo_vm import PhotoVM

PEOPLE = [Person("p1", "Me"), Person("p2", "Sarah")]


@pytest.fixture
def vm(engine, locked_auth):
    return GalleryVM(engine, locked_auth, people=PEOPLE)


def unlock_vault(vm):
    vm.toggle_vault()
    enter(vm.auth, "4242")


class TestVaultAccess:
    def test_toggle_while_locked_shows_lock_screen(self, vm):
        vm.toggle_vault()
        assert vm.lock_screen_visible
        assert vm.mode is AccessMode.PUBLIC

    def test_unlock_enters_vault(self, vm):
        unlock_vault(vm)
        assert not vm.lock_screen_visible
        assert vm.mode is AccessMode.VAULT

    def test_biometric_unlock_enters_vault(self, vm, biometric):
        vm.toggle_vault()
        vm.auth.start_biometric()
        biometric.resolve(True)
        assert vm.in_vault

    def test_leaving_vault_locks(self, vm):
        unlock_vault(vm)
        vm.toggle_vault()
        assert vm.mode is AccessMode.PUBLIC
        assert vm.auth.state is AuthState.LOCKED

    def test_close_lock_screen_ignores_pending_scan(self, vm, biometric):
        vm.toggle_vault()
        vm.auth.start_biometric()
        vm.close_lock_screen()
        biometric.resolve(True)
        assert vm.mode is AccessMode.PUBLIC
        assert vm.auth.state is AuthState.LOCKED

    def test_first_run_setup_enters_vault(self, engine, setup_auth):
        vm = GalleryVM(engine, setup_auth)
        vm.toggle_vault()
        enter(setup_auth, "1234")
        enter(setup_auth, "1234")
        assert vm.in_vault

    def test_listeners_notified(self, vm):
        calls = []
        vm.add_listener(lambda: calls.append(1))
        vm.set_search_text("x")
        assert calls


class TestBrowsing:
    def test_projection_respects_mode(self, vm):
        public = vm.add_photo("u1", "Sunset")
        private = vm.add_photo("u2", "Sunrise")
        vm.toggle_privacy(private.id)
        assert [p.id for p in vm.projection().photos] == [public.id]
        unlock_vault(vm)
        assert [p.id for p in vm.projection().photos] == [private.id]

    def test_search_and_person_filter(self, engine, vm):
        engine.add_photo("u1", "Sunset", ["p1"])
        engine.add_photo("u2", "Sunrise", ["p2"])
        engine.add_photo("u3", "Beach", ["p1"])
        vm.set_search_text("sun")
        assert len(vm.projection().photos) == 2
        vm.set_person_filter("p1")
        assert [p.title for p in vm.projection().photos] == ["Sunset"]

    def test_search_text_is_matched_verbatim(self, engine, vm):
        engine.add_photo("u1", "Sunset hike", ["p1"])
        engine.add_photo("u2", "Hike", ["p1"])
        vm.set_search_text("hike ")
        assert vm.search_text == "hike "
        assert vm.projection().is_empty
        vm.set_search_text(" hike")
        assert [p.title for p in vm.projection().photos] == ["Sunset hike"]

    def test_projection_refreshes_after_mutation(self, vm):
        photo = vm.add_photo("u1", "Sunset")
        assert len(vm.projection().photos) == 1
        vm.delete_photo(photo.id)
        assert vm.projection().is_empty

    def test_people_counts(self, engine, vm):
        engine.add_photo("u1", "a", ["p1"])
        assert [(c.person.name, c.count) for c in vm.people()] == [("Me", 1)]

    def test_mode_switch_clears_person_filter(self, vm):
        vm.set_person_filter("p1")
        unlock_vault(vm)
        assert vm.person_filter is None


class TestPhotoActions:
    def test_viewer_closes_when_photo_leaves_vault(self, vm):
        photo = vm.add_photo("u", "t")
        vm.toggle_privacy(photo.id)
        unlock_vault(vm)
        vm.open_photo(photo.id)
        vm.toggle_privacy(photo.id)
        assert vm.selected_photo is None

    def test_viewer_closes_when_public_photo_moves_to_vault(self, vm):
        photo = vm.add_photo("u", "t")
        vm.open_photo(photo.id)
        vm.toggle_privacy(photo.id)
        assert vm.selected_photo is None

    def test_cannot_open_photo_from_other_partition(self, vm):
        photo = vm.add_photo("u", "t")
        vm.toggle_privacy(photo.id)
        with pytest.raises(PhotoNotFoundError):
            vm.open_photo(photo.id)

    def test_delete_open_photo_closes_viewer(self, vm):
        photo = vm.add_photo("u", "t")
        vm.open_photo(photo.id)
        vm.delete_photo(photo.id)
        assert vm.selected_photo_id is None
        with pytest.raises(PhotoNotFoundError):
            vm.delete_photo(photo.id)

    def test_edit_save(self, engine, vm):
        photo = vm.add_photo("u", "t")
        vm.open_photo(photo.id)
        session = vm.begin_edit()
        session.set("sepia", 60)
        vm.save_edit()
        assert engine.get(photo.id).filters == FilterAdjustment(sepia=60)
        assert vm.edit_session is None
        assert GalleryVM.filter_string(engine.get(photo.id)).endswith("sepia(60%) grayscale(0%)")

    def test_edit_cancel(self, engine, vm):
        photo = vm.add_photo("u", "t")
        vm.open_photo(photo.id)
        vm.begin_edit().set("sepia", 60)
        vm.cancel_edit()
        assert engine.get(photo.id).filters is None

    def test_closing_viewer_discards_edit(self, engine, vm):
        photo = vm.add_photo("u", "t")
        vm.open_photo(photo.id)
        session = vm.begin_edit()
        session.set("sepia", 60)
        vm.close_photo()
        assert not session.is_open
        assert engine.get(photo.id).filters is None

    def test_unsaved_edit_tracks_buffer(self, vm):
        photo = vm.add_photo("u", "t")
        vm.open_photo(photo.id)
        assert not vm.has_unsaved_edit
        session = vm.begin_edit()
        assert not vm.has_unsaved_edit
        session.set("contrast", 150)
        assert vm.has_unsaved_edit
        session.reset()
        assert not vm.has_unsaved_edit
        session.set("contrast", 150)
        vm.save_edit()
        assert not vm.has_unsaved_edit

    def test_begin_edit_requires_open_photo(self, vm):
        with pytest.raises(PhotoNotFoundError):
            vm.begin_edit()


class TestPhotoVM:
    def test_display_properties(self, engine):
        photo = engine.add_photo("u", None, ["p2", "p9"])
        pvm = PhotoVM(photo)
        assert pvm.title == "Photo"
        assert pvm.filter_string == "none"
        assert pvm.storage_label.endswith("Camera")
        assert pvm.people_names(PEOPLE) == ["Sarah"]
