"""
Tests for the vault authentication state machine.

Covers first-run PIN setup, PIN entry against a stored PIN, buffer and
transient error rules, locking, and the biometric unlock path including
stale verdicts.
"""

import pytest

from conftest import enter
from core.models import AuthError, AuthState, PinStep
from core.services.auth_service import VaultAuthenticator


class TestInitialState:
    def test_no_stored_pin_starts_in_setup(self, setup_auth):
        assert setup_auth.state is AuthState.SETUP
        assert setup_auth.step is PinStep.CREATE

    def test_stored_pin_starts_locked(self, locked_auth):
        assert locked_auth.state is AuthState.LOCKED
        assert locked_auth.step is PinStep.ENTER


class TestSetupFlow:
    def test_matching_confirmation_unlocks_and_persists(self, setup_auth, kv_store):
        snap = enter(setup_auth, "1234")
        assert snap.step is PinStep.CONFIRM
        assert snap.entered == 0
        assert setup_auth.state is AuthState.SETUP

        snap = enter(setup_auth, "1234")
        assert snap.state is AuthState.UNLOCKED
        assert kv_store.get("vault_pin") == "1234"

    def test_mismatch_restarts_creation_without_persisting(self, setup_auth, kv_store):
        enter(setup_auth, "1234")
        snap = enter(setup_auth, "5678")
        assert snap.state is AuthState.SETUP
        assert snap.step is PinStep.CREATE
        assert snap.error is AuthError.PIN_MISMATCH
        assert snap.entered == 0
        assert kv_store.get("vault_pin") is None

    def test_after_mismatch_candidate_is_discarded(self, setup_auth, kv_store):
        enter(setup_auth, "1234")
        enter(setup_auth, "5678")
        # The next four digits are a new candidate, not a confirmation.
        snap = enter(setup_auth, "1234")
        assert snap.step is PinStep.CONFIRM
        assert kv_store.get("vault_pin") is None

    def test_lock_during_setup_stays_in_setup(self, setup_auth):
        enter(setup_auth, "12")
        snap = setup_auth.lock()
        assert snap.state is AuthState.SETUP
        assert snap.entered == 0


class TestEnterFlow:
    def test_correct_pin_unlocks(self, locked_auth):
        snap = enter(locked_auth, "4242")
        assert snap.state is AuthState.UNLOCKED
        assert snap.error is None

    def test_wrong_pin_signals_error_and_clears_buffer(self, locked_auth):
        snap = enter(locked_auth, "0000")
        assert snap.state is AuthState.LOCKED
        assert snap.step is PinStep.ENTER
        assert snap.error is AuthError.WRONG_PIN
        assert snap.entered == 0

    def test_unlimited_retries(self, locked_auth):
        for _ in range(10):
            enter(locked_auth, "0000")
        assert enter(locked_auth, "4242").state is AuthState.UNLOCKED

    def test_error_cleared_by_next_digit(self, locked_auth):
        enter(locked_auth, "0000")
        snap = locked_auth.press_digit("4")
        assert snap.error is None
        assert snap.entered == 1

    def test_error_cleared_by_backspace(self, locked_auth):
        enter(locked_auth, "0000")
        assert locked_auth.backspace().error is None


class TestBuffer:
    def test_backspace_removes_last_digit(self, locked_auth):
        enter(locked_auth, "42")
        assert locked_auth.backspace().entered == 1
        assert locked_auth.backspace().entered == 0
        assert locked_auth.backspace().entered == 0

    def test_backspace_then_correct_pin(self, locked_auth):
        enter(locked_auth, "429")
        locked_auth.backspace()
        assert enter(locked_auth, "2").state is AuthState.UNLOCKED

    def test_rejects_non_digit(self, locked_auth):
        with pytest.raises(ValueError):
            locked_auth.press_digit("a")
        with pytest.raises(ValueError):
            locked_auth.press_digit("12")

    def test_digits_ignored_while_unlocked(self, locked_auth):
        enter(locked_auth, "4242")
        snap = locked_auth.press_digit("1")
        assert snap.state is AuthState.UNLOCKED
        assert snap.entered == 0

    def test_snapshot_never_exposes_digits(self, locked_auth):
        enter(locked_auth, "42")
        assert "42" not in repr(locked_auth.snapshot())


class TestLock:
    def test_lock_returns_to_enter_pin(self, locked_auth):
        enter(locked_auth, "4242")
        snap = locked_auth.lock()
        assert snap.state is AuthState.LOCKED
        assert snap.step is PinStep.ENTER

    def test_lock_after_setup_requires_new_pin(self, setup_auth):
        enter(setup_auth, "1234")
        enter(setup_auth, "1234")
        setup_auth.lock()
        assert enter(setup_auth, "1234").state is AuthState.UNLOCKED

    def test_listeners_receive_snapshots(self, locked_auth):
        seen = []
        locked_auth.add_listener(seen.append)
        enter(locked_auth, "4242")
        assert seen[-1].state is AuthState.UNLOCKED
        locked_auth.remove_listener(seen.append)
        locked_auth.lock()
        assert seen[-1].state is AuthState.UNLOCKED


class TestBiometric:
    def test_success_unlocks(self, locked_auth, biometric):
        snap = locked_auth.start_biometric()
        assert snap.scanning
        biometric.resolve(True)
        assert locked_auth.state is AuthState.UNLOCKED
        assert not locked_auth.is_scanning

    def test_failure_signals_error(self, locked_auth, biometric):
        locked_auth.start_biometric()
        biometric.resolve(False)
        assert locked_auth.state is AuthState.LOCKED
        assert locked_auth.error is AuthError.BIOMETRIC_FAILURE

    def test_unavailable_during_setup(self, setup_auth, biometric):
        snap = setup_auth.start_biometric()
        assert not snap.scanning
        assert biometric.pending == []

    def test_unavailable_without_service(self, pin_store, kv_store):
        kv_store.set("vault_pin", "4242")
        auth = VaultAuthenticator(pin_store)
        assert not auth.biometric_available
        assert not auth.start_biometric().scanning

    def test_digits_ignored_while_scanning(self, locked_auth, biometric):
        locked_auth.start_biometric()
        assert locked_auth.press_digit("4").entered == 0
        biometric.resolve(False)

    def test_verdict_after_cancel_is_ignored(self, locked_auth, biometric):
        locked_auth.start_biometric()
        locked_auth.cancel()
        biometric.resolve(True)
        assert locked_auth.state is AuthState.LOCKED
        assert locked_auth.error is None

    def test_verdict_after_pin_unlock_and_lock_is_ignored(self, locked_auth, biometric):
        locked_auth.start_biometric()
        locked_auth.cancel()
        enter(locked_auth, "4242")
        locked_auth.lock()
        biometric.resolve(True)
        assert locked_auth.state is AuthState.LOCKED

    def test_with_simulated_service(self, pin_store, kv_store):
        from conftest import immediate_scheduler
        from infrastructure.biometric import SimulatedBiometricService

        kv_store.set("vault_pin", "4242")
        auth = VaultAuthenticator(
            pin_store,
            biometric=SimulatedBiometricService(success_rate=1.0, scheduler=immediate_scheduler),
        )
        auth.start_biometric()
        assert auth.state is AuthState.UNLOCKED
