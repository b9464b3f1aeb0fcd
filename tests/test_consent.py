"""Tests for the permission matrix and the read rule."""
import pytest

from core.consent import PermissionMatrix, can_read
from core.errors import CallerIsProvider, NotRegistered, WrongRole
from core.identity import IdentityRegistry


class TestPermissionMatrix:
    def setup_method(self):
        self.registry = IdentityRegistry()
        self.registry.register("0xpat", "Alice", "alice@example.org", False)
        self.registry.register("0xpat2", "Carol", "carol@example.org", False)
        self.registry.register("0xdoc", "Dr. Bob", "bob@clinic.example.org", True)
        self.matrix = PermissionMatrix(self.registry)

    def test_default_is_no_access(self):
        assert self.matrix.check("0xpat", "0xdoc") is False
        assert self.matrix.check("0xunknown", "0xalso_unknown") is False

    def test_grant_and_revoke(self):
        self.matrix.set_permission("0xpat", "0xdoc", True)
        assert self.matrix.check("0xpat", "0xdoc") is True
        self.matrix.set_permission("0xpat", "0xdoc", False)
        assert self.matrix.check("0xpat", "0xdoc") is False

    def test_edges_are_directed_and_per_patient(self):
        self.matrix.set_permission("0xpat", "0xdoc", True)
        assert self.matrix.check("0xpat2", "0xdoc") is False
        assert self.matrix.check("0xdoc", "0xpat") is False

    def test_setting_same_value_twice_is_allowed(self):
        self.matrix.set_permission("0xpat", "0xdoc", True)
        self.matrix.set_permission("0xpat", "0xdoc", True)
        assert self.matrix.check("0xpat", "0xdoc") is True

    def test_unregistered_caller(self):
        with pytest.raises(NotRegistered):
            self.matrix.set_permission("0xstranger", "0xdoc", True)

    def test_provider_cannot_grant(self):
        with pytest.raises(CallerIsProvider):
            self.matrix.set_permission("0xdoc", "0xdoc", True)
        assert self.matrix.check("0xdoc", "0xdoc") is False

    def test_target_must_be_registered(self):
        with pytest.raises(NotRegistered):
            self.matrix.set_permission("0xpat", "0xghost", True)

    def test_target_must_be_provider(self):
        with pytest.raises(WrongRole):
            self.matrix.set_permission("0xpat", "0xpat2", True)
        assert self.matrix.check("0xpat", "0xpat2") is False


class TestReadRule:
    def setup_method(self):
        self.registry = IdentityRegistry()
        self.registry.register("0xpat", "Alice", "alice@example.org", False)
        self.registry.register("0xpat2", "Carol", "carol@example.org", False)
        self.registry.register("0xdoc", "Dr. Bob", "bob@clinic.example.org", True)
        self.matrix = PermissionMatrix(self.registry)

    def test_patient_reads_own(self):
        assert can_read(self.registry, self.matrix, "0xpat", "0xpat")

    def test_provider_needs_permission(self):
        assert not can_read(self.registry, self.matrix, "0xdoc", "0xpat")
        self.matrix.set_permission("0xpat", "0xdoc", True)
        assert can_read(self.registry, self.matrix, "0xdoc", "0xpat")

    def test_other_patient_never_reads(self):
        assert not can_read(self.registry, self.matrix, "0xpat2", "0xpat")

    def test_unregistered_never_reads(self):
        assert not can_read(self.registry, self.matrix, "0xstranger", "0xpat")
