"""Tests for finalizer coordination."""

from __future__ import annotations

import threading
import time
from unittest.mock import MagicMock, Mock

import kopf
import pytest
from kubernetes import client

from mariadb_operator.api.grant import GrantDescriptor
from mariadb_operator.api.kinds import GRANT
from mariadb_operator.constants import GRANT_FINALIZER
from mariadb_operator.exceptions import (
    DatabaseConnectionError,
    ExternalEffectNotFoundError,
    FinalizationCancelledError,
    PatchConflictError,
    PermissionDeniedError,
    PrerequisiteCheckError,
)
from mariadb_operator.finalizers import (
    FinalizationCoordinator,
    FinalizationOutcome,
    FinalizerState,
    KubernetesFinalizerRemover,
    PollOutcome,
    create_grant_coordinator,
    finalizer_state,
    poll_until_absent,
    revoke_effect,
    user_exists,
    user_exists_check,
)

DESCRIPTOR = GrantDescriptor(
    privileges=("SELECT", "INSERT"),
    database="app",
    table="*",
    username="alice",
)


def grant_meta(**overrides) -> dict:
    meta = {
        "name": "alice-grant",
        "namespace": "db",
        "resourceVersion": "100",
        "finalizers": [GRANT_FINALIZER],
        "deletionTimestamp": "2024-01-01T00:00:00Z",
    }
    meta.update(overrides)
    return meta


def coordinator(remover=None, interval=0.01, timeout=0.05) -> FinalizationCoordinator:
    return FinalizationCoordinator(
        kind="Grant",
        finalizer=GRANT_FINALIZER,
        remover=remover or Mock(),
        poll_interval=interval,
        poll_timeout=timeout,
    )


class TestPollUntilAbsent:
    """Test cases for poll_until_absent."""

    def test_absent_on_first_check(self):
        """Test that an absent prerequisite ends the poll immediately."""
        exists = Mock(return_value=False)
        result = poll_until_absent(exists, interval=1.0, timeout=5.0)
        assert result.outcome is PollOutcome.ABSENT
        assert result.attempts == 1

    def test_becomes_absent(self):
        """Test that the poll ends when the prerequisite disappears."""
        exists = Mock(side_effect=[True, True, False])
        result = poll_until_absent(exists, interval=0.001, timeout=5.0)
        assert result.outcome is PollOutcome.ABSENT
        assert result.attempts == 3

    def test_still_present_after_timeout(self):
        """Test that an exhausted window reports still present."""
        exists = Mock(return_value=True)
        result = poll_until_absent(exists, interval=0.01, timeout=0.05)
        assert result.outcome is PollOutcome.STILL_PRESENT
        assert result.attempts >= 2

    def test_check_error(self):
        """Test that a failing check ends the poll with an error."""
        error = PrerequisiteCheckError("boom")
        result = poll_until_absent(Mock(side_effect=error), interval=0.01, timeout=1.0)
        assert result.outcome is PollOutcome.ERROR
        assert result.error is error

    def test_other_exceptions_propagate(self):
        """Test that unexpected exceptions are not swallowed."""
        with pytest.raises(RuntimeError):
            poll_until_absent(Mock(side_effect=RuntimeError("bug")), interval=0.01, timeout=1.0)

    def test_cancelled_before_start(self):
        """Test that a set cancel event stops the poll before any check."""
        cancelled = threading.Event()
        cancelled.set()
        exists = Mock(return_value=True)
        with pytest.raises(FinalizationCancelledError):
            poll_until_absent(exists, interval=1.0, timeout=5.0, cancelled=cancelled)
        exists.assert_not_called()

    def test_cancel_during_wait_returns_quickly(self):
        """Test that cancelling mid-poll returns within a small multiple of the interval."""
        cancelled = threading.Event()
        timer = threading.Timer(0.05, cancelled.set)
        timer.start()
        start = time.monotonic()
        try:
            with pytest.raises(FinalizationCancelledError):
                poll_until_absent(Mock(return_value=True), interval=0.2, timeout=30.0, cancelled=cancelled)
        finally:
            timer.cancel()
        assert time.monotonic() - start < 0.6


class TestFinalizerState:
    """Test cases for finalizer_state."""

    def test_states(self):
        """Test the four states derived from metadata."""
        assert finalizer_state({}, GRANT_FINALIZER) is FinalizerState.NO_FINALIZER
        assert finalizer_state({"finalizers": [GRANT_FINALIZER]}, GRANT_FINALIZER) is FinalizerState.FINALIZER_ATTACHED
        assert finalizer_state(grant_meta(), GRANT_FINALIZER) is FinalizerState.FINALIZING
        assert finalizer_state(grant_meta(finalizers=[]), GRANT_FINALIZER) is FinalizerState.REMOVED


class TestAttach:
    """Test cases for FinalizationCoordinator.attach."""

    def test_attach_adds_finalizer(self):
        """Test that the finalizer is added alongside existing ones."""
        patch = kopf.Patch()
        assert coordinator().attach({"finalizers": ["other"]}, patch) is True
        assert patch.metadata["finalizers"] == ["other", GRANT_FINALIZER]

    def test_attach_twice_is_noop(self):
        """Test that attaching to an object that already has the finalizer mutates nothing."""
        patch = kopf.Patch()
        assert coordinator().attach({"finalizers": [GRANT_FINALIZER]}, patch) is False
        assert "finalizers" not in patch.metadata

    def test_attach_skips_deleting_object(self):
        """Test that no finalizer is added to an object being deleted."""
        patch = kopf.Patch()
        assert coordinator().attach(grant_meta(finalizers=[]), patch) is False
        assert "finalizers" not in patch.metadata


class TestFinalize:
    """Test cases for FinalizationCoordinator.finalize."""

    def test_not_present(self):
        """Test that finalize is a no-op without the finalizer."""
        remover = Mock()
        exists = Mock()
        outcome = coordinator(remover).finalize(grant_meta(finalizers=[]), exists, Mock())
        assert outcome is FinalizationOutcome.NOT_PRESENT
        exists.assert_not_called()
        remover.remove.assert_not_called()

    def test_prerequisite_absent_skips_effect(self):
        """Test that a missing User releases the finalizer without revoking."""
        remover = Mock()
        revoke = Mock()
        meta = grant_meta()

        outcome = coordinator(remover).finalize(meta, Mock(return_value=False), revoke)

        assert outcome is FinalizationOutcome.REMOVED_WITHOUT_EFFECT
        revoke.assert_not_called()
        remover.remove.assert_called_once_with(meta, GRANT_FINALIZER)

    def test_prerequisite_present_runs_effect_once(self):
        """Test that a User present for the whole window is revoked once before removal."""
        remover = Mock()
        mariadb_client = Mock()
        mariadb_client.connect.return_value = "handle"
        order = Mock()
        order.attach_mock(mariadb_client.revoke, "revoke")
        order.attach_mock(remover.remove, "remove")
        meta = grant_meta()

        outcome = coordinator(remover).finalize(
            meta, Mock(return_value=True), revoke_effect(lambda: mariadb_client, DESCRIPTOR)
        )

        assert outcome is FinalizationOutcome.REMOVED_AFTER_EFFECT
        mariadb_client.revoke.assert_called_once_with("handle", DESCRIPTOR)
        mariadb_client.close.assert_called_once_with("handle")
        assert [c[0] for c in order.mock_calls] == ["revoke", "remove"]

    def test_effect_not_found_is_success(self):
        """Test that an already revoked grant still releases the finalizer."""
        remover = Mock()
        outcome = coordinator(remover).finalize(
            grant_meta(), Mock(return_value=True), Mock(side_effect=ExternalEffectNotFoundError("no grant"))
        )
        assert outcome is FinalizationOutcome.REMOVED_AFTER_EFFECT
        remover.remove.assert_called_once()

    @pytest.mark.parametrize("error", [DatabaseConnectionError("down"), PermissionDeniedError("denied")])
    def test_effect_failure_keeps_finalizer(self, error):
        """Test that a failed revoke propagates and leaves the finalizer in place."""
        remover = Mock()
        with pytest.raises(type(error)):
            coordinator(remover).finalize(grant_meta(), Mock(return_value=True), Mock(side_effect=error))
        remover.remove.assert_not_called()

    def test_check_error_mutates_nothing(self):
        """Test that an undeterminable User aborts before any mutation."""
        remover = Mock()
        revoke = Mock()
        with pytest.raises(PrerequisiteCheckError):
            coordinator(remover).finalize(grant_meta(), Mock(side_effect=PrerequisiteCheckError("503")), revoke)
        revoke.assert_not_called()
        remover.remove.assert_not_called()

    def test_cancel_mutates_nothing(self):
        """Test that cancellation during the poll neither revokes nor removes."""
        remover = Mock()
        revoke = Mock()
        cancelled = threading.Event()
        threading.Timer(0.02, cancelled.set).start()

        with pytest.raises(FinalizationCancelledError):
            coordinator(remover, interval=0.05, timeout=10.0).finalize(
                grant_meta(), Mock(return_value=True), revoke, cancelled=cancelled
            )
        revoke.assert_not_called()
        remover.remove.assert_not_called()

    def test_conflict_propagates(self):
        """Test that a version conflict on removal is surfaced for a retry."""
        remover = Mock()
        remover.remove.side_effect = PatchConflictError("changed")
        with pytest.raises(PatchConflictError):
            coordinator(remover).finalize(grant_meta(), Mock(return_value=False), Mock())

    def test_retry_after_conflict_starts_over(self):
        """Test that a second attempt re-checks the prerequisite."""
        remover = Mock()
        remover.remove.side_effect = [PatchConflictError("changed"), None]
        exists = Mock(return_value=False)
        coord = coordinator(remover)

        with pytest.raises(PatchConflictError):
            coord.finalize(grant_meta(), exists, Mock())
        coord.finalize(grant_meta(resourceVersion="101"), exists, Mock())

        assert exists.call_count == 2
        assert remover.remove.call_args.args[0]["resourceVersion"] == "101"


class TestKubernetesFinalizerRemover:
    """Test cases for KubernetesFinalizerRemover."""

    def test_remove_patches_with_resource_version(self):
        """Test that the patch keeps other finalizers and carries the resource version."""
        api = MagicMock()
        remover = KubernetesFinalizerRemover(GRANT, lambda: api)

        remover.remove(grant_meta(finalizers=["other", GRANT_FINALIZER]), GRANT_FINALIZER)

        kwargs = api.patch_namespaced_custom_object.call_args.kwargs
        assert kwargs["plural"] == "grants"
        assert kwargs["namespace"] == "db"
        assert kwargs["name"] == "alice-grant"
        assert kwargs["body"] == {"metadata": {"finalizers": ["other"], "resourceVersion": "100"}}

    def test_conflict(self):
        """Test that 409 becomes PatchConflictError."""
        api = MagicMock()
        api.patch_namespaced_custom_object.side_effect = client.exceptions.ApiException(status=409)
        with pytest.raises(PatchConflictError):
            KubernetesFinalizerRemover(GRANT, lambda: api).remove(grant_meta(), GRANT_FINALIZER)

    def test_already_deleted(self):
        """Test that a vanished object is not an error."""
        api = MagicMock()
        api.patch_namespaced_custom_object.side_effect = client.exceptions.ApiException(status=404)
        KubernetesFinalizerRemover(GRANT, lambda: api).remove(grant_meta(), GRANT_FINALIZER)

    def test_requires_resource_version(self):
        """Test that an unconditioned removal is refused."""
        meta = grant_meta()
        del meta["resourceVersion"]
        with pytest.raises(ValueError):
            KubernetesFinalizerRemover(GRANT, MagicMock).remove(meta, GRANT_FINALIZER)


class TestGrantFinalizer:
    """Test cases for the Grant finalizer wiring."""

    def test_user_exists(self):
        """Test that a readable User exists."""
        api = MagicMock()
        assert user_exists(api, "db", "alice") is True
        kwargs = api.get_namespaced_custom_object.call_args.kwargs
        assert kwargs["plural"] == "users"
        assert kwargs["name"] == "alice"

    def test_user_missing(self):
        """Test that 404 means the User is gone."""
        api = MagicMock()
        api.get_namespaced_custom_object.side_effect = client.exceptions.ApiException(status=404)
        assert user_exists(api, "db", "alice") is False

    def test_user_check_error(self):
        """Test that other API errors make existence undeterminable."""
        api = MagicMock()
        api.get_namespaced_custom_object.side_effect = client.exceptions.ApiException(status=503)
        with pytest.raises(PrerequisiteCheckError):
            user_exists(api, "db", "alice")

    def test_user_exists_check_reads_every_time(self):
        """Test that the check hits the API on each call."""
        api = MagicMock()
        check = user_exists_check(lambda: api, "db", "alice")
        check()
        check()
        assert api.get_namespaced_custom_object.call_count == 2

    def test_revoke_closes_on_failure(self):
        """Test that the connection is closed when the revoke fails."""
        mariadb_client = Mock()
        mariadb_client.revoke.side_effect = DatabaseConnectionError("lost")
        with pytest.raises(DatabaseConnectionError):
            revoke_effect(lambda: mariadb_client, DESCRIPTOR)()
        mariadb_client.close.assert_called_once()

    def test_revoke_creates_client_lazily(self):
        """Test that building the effect does not create a client."""
        factory = Mock()
        revoke_effect(factory, DESCRIPTOR)
        factory.assert_not_called()

    def test_coordinator_defaults(self, monkeypatch):
        """Test the default poll window."""
        monkeypatch.delenv("GRANT_USER_POLL_INTERVAL_SECONDS", raising=False)
        monkeypatch.delenv("GRANT_USER_POLL_TIMEOUT_SECONDS", raising=False)
        coord = create_grant_coordinator(MagicMock)
        assert coord.finalizer == GRANT_FINALIZER
        assert coord.poll_interval == 1.0
        assert coord.poll_timeout == 5.0

    def test_coordinator_env_overrides(self, monkeypatch):
        """Test that the poll window can be configured."""
        monkeypatch.setenv("GRANT_USER_POLL_INTERVAL_SECONDS", "0.5")
        monkeypatch.setenv("GRANT_USER_POLL_TIMEOUT_SECONDS", "2")
        coord = create_grant_coordinator(MagicMock)
        assert coord.poll_interval == 0.5
        assert coord.poll_timeout == 2.0
