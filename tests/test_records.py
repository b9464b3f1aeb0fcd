"""Tests for the record store."""
import pytest

from core.errors import EmptyField, NoPermission, NotFound, NotRegistered, WrongRole
from core.identity import IdentityRegistry
from core.records import RecordStore

NOW = 1_700_000_000


class TestRecordStore:
    def setup_method(self):
        self.registry = IdentityRegistry()
        self.registry.register("0xpat", "Alice", "alice@example.org", False)
        self.registry.register("0xpat2", "Carol", "carol@example.org", False)
        self.registry.register("0xdoc", "Dr. Bob", "bob@clinic.example.org", True)
        self.store = RecordStore(self.registry)

    def _create(self, patient="0xpat", content_ref="ipfs://Qm1", record_type="diagnosis", permission=True):
        return self.store.create_record(patient, "0xdoc", content_ref, record_type, permission, NOW)

    def test_create_assigns_ids_from_zero(self):
        assert self.store.total == 0
        assert self._create() == 0
        assert self._create(patient="0xpat2") == 1
        assert self._create() == 2
        assert self.store.total == 3

    def test_record_fields(self):
        record_id = self._create(content_ref="enc:abc", record_type="prescription")
        record = self.store.get(record_id)
        assert record.patient == "0xpat"
        assert record.provider == "0xdoc"
        assert record.content_ref == "enc:abc"
        assert record.record_type == "prescription"
        assert record.created_at == NOW
        assert record.active is True

    def test_index_keeps_insertion_order_per_patient(self):
        self._create()
        self._create(patient="0xpat2")
        self._create()
        assert self.store.index_for("0xpat") == (0, 2)
        assert self.store.index_for("0xpat2") == (1,)
        assert self.store.index_for("0xnobody") == ()
        assert self.store.authored_by("0xdoc") == (0, 1, 2)

    def test_unregistered_patient(self):
        with pytest.raises(NotRegistered):
            self._create(patient="0xghost", content_ref="", record_type="", permission=False)

    def test_patient_is_provider(self):
        with pytest.raises(WrongRole):
            self._create(patient="0xdoc", content_ref="", permission=False)

    def test_empty_content_ref_before_record_type(self):
        with pytest.raises(EmptyField) as exc_info:
            self._create(content_ref="", record_type="", permission=False)
        assert exc_info.value.field == "content_ref"

    def test_empty_record_type(self):
        with pytest.raises(EmptyField) as exc_info:
            self._create(record_type="", permission=False)
        assert exc_info.value.field == "record_type"

    def test_no_permission(self):
        with pytest.raises(NoPermission):
            self._create(permission=False)

    def test_failed_create_consumes_no_id(self):
        with pytest.raises(NoPermission):
            self._create(permission=False)
        assert self.store.total == 0
        assert self.store.index_for("0xpat") == ()
        assert self._create() == 0

    def test_get_missing(self):
        with pytest.raises(NotFound):
            self.store.get(0)

    def test_deactivate_is_idempotent(self):
        record_id = self._create()
        self.store.deactivate(record_id)
        assert self.store.get(record_id).active is False
        self.store.deactivate(record_id)
        assert self.store.get(record_id).active is False
        # Still listed, id not reused
        assert self.store.index_for("0xpat") == (record_id,)
        assert self._create() == record_id + 1

    def test_deactivate_missing(self):
        with pytest.raises(NotFound):
            self.store.deactivate(42)

    def test_deactivate_leaves_other_fields(self):
        record_id = self._create(content_ref="enc:xyz")
        before = self.store.get(record_id)
        self.store.deactivate(record_id)
        after = self.store.get(record_id)
        assert after.model_dump(exclude={"active"}) == before.model_dump(exclude={"active"})
