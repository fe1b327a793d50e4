import os
import json
import base64
import pytest
from portal.audit.audit_logger import AuditLogger


@pytest.fixture
def temp_log_dir(tmp_path):
    """Create a temporary directory for test logs."""
    log_dir = tmp_path / "test_logs"
    log_dir.mkdir()
    return str(log_dir)


@pytest.fixture
def audit_logger(temp_log_dir):
    return AuditLogger(log_dir=temp_log_dir)


def test_init_creates_log_directory(temp_log_dir):
    os.rmdir(temp_log_dir)
    AuditLogger(log_dir=temp_log_dir)
    assert os.path.exists(temp_log_dir)


def test_log_event_basic(audit_logger, temp_log_dir):
    data = {"email": "jane@x.com", "success": True}

    audit_logger.log_event("LOGIN_SUCCESS", data, "user123")

    log_file = os.path.join(temp_log_dir, 'audit.log')
    with open(log_file, 'r') as f:
        log_entry = json.loads(f.readline())

    assert log_entry['event_type'] == "LOGIN_SUCCESS"
    assert log_entry['data'] == data
    assert log_entry['user_id'] == "user123"
    assert 'timestamp' in log_entry
    assert 'hash' in log_entry
    assert 'signature' in log_entry
    assert log_entry['previous_hash'] is None


def test_hash_chaining(audit_logger):
    audit_logger.log_event("PETITION_SUBMITTED", {"petition_id": "p1"})
    first_hash = audit_logger.previous_hash
    audit_logger.log_event("PETITION_STATUS_CHANGED", {"petition_id": "p1"})

    with open(audit_logger.log_file, 'r') as f:
        second_entry = json.loads(f.readlines()[1])

    assert second_entry['previous_hash'] == first_hash


def test_signature_covers_entry_without_hash(audit_logger):
    audit_logger.log_event("TEST_EVENT", {"data": "test"})

    with open(audit_logger.log_file, 'r') as f:
        log_entry = json.loads(f.readline())

    signature = log_entry.pop('signature')
    log_entry.pop('hash')
    entry_json = json.dumps(log_entry, sort_keys=True).encode()

    # raises InvalidSignature if the signed payload differs
    audit_logger.signing_key.public_key().verify(base64.b64decode(signature), entry_json)


def test_verify_log_integrity_valid(audit_logger):
    audit_logger.log_event("EVENT1", {"data": "first"})
    audit_logger.log_event("EVENT2", {"data": "second"})
    audit_logger.log_event("EVENT3", {"data": "third"})

    assert audit_logger.verify_log_integrity() is True


def test_verify_log_integrity_empty(audit_logger):
    assert audit_logger.verify_log_integrity() is True


def test_verify_log_integrity_appended_garbage(audit_logger):
    audit_logger.log_event("EVENT1", {"data": "first"})

    with open(audit_logger.log_file, 'a') as f:
        f.write('{"tampered": true}\n')

    assert audit_logger.verify_log_integrity() is False


def test_verify_log_integrity_edited_entry(audit_logger):
    audit_logger.log_event("ROLE_CHANGED", {"role": "clerk"})

    with open(audit_logger.log_file, 'r') as f:
        entry = json.loads(f.readline())
    entry['data']['role'] = 'admin'
    with open(audit_logger.log_file, 'w') as f:
        f.write(json.dumps(entry) + "\n")

    assert audit_logger.verify_log_integrity() is False


def test_load_previous_hash(temp_log_dir):
    key_hex = "11" * 32
    logger1 = AuditLogger(log_dir=temp_log_dir, signing_key_hex=key_hex)
    logger1.log_event("EVENT1", {"data": "first"})

    logger2 = AuditLogger(log_dir=temp_log_dir, signing_key_hex=key_hex)
    assert logger2.previous_hash == logger1.previous_hash

    logger2.log_event("EVENT2", {"data": "second"})
    assert logger2.verify_log_integrity() is True


def test_read_entries(audit_logger):
    for n in range(3):
        audit_logger.log_event("EVENT", {"n": n})

    newest = audit_logger.read_entries()
    assert [e['data']['n'] for e in newest] == [2, 1, 0]

    oldest = audit_logger.read_entries(newest_first=False, limit=2)
    assert [e['data']['n'] for e in oldest] == [0, 1]


def test_read_entries_without_log(audit_logger):
    assert audit_logger.read_entries() == []


def test_error_handling(audit_logger, monkeypatch):
    def mock_open(*args, **kwargs):
        raise PermissionError("Access denied")

    monkeypatch.setattr("builtins.open", mock_open)

    # must not raise
    audit_logger.log_event("ERROR_TEST", {"data": "test"})
    assert audit_logger.previous_hash is None


def test_unserializable_data_is_not_written(audit_logger):
    audit_logger.log_event("BAD", {"value": object()})
    assert audit_logger.read_entries() == []


def test_restart_without_configured_key_keeps_log_verifiable(temp_log_dir):
    AuditLogger(log_dir=temp_log_dir).log_event("EVENT1", {"data": "first"})

    restarted = AuditLogger(log_dir=temp_log_dir)
    restarted.log_event("EVENT2", {"data": "second"})

    assert restarted.verify_log_integrity() is True
    assert AuditLogger(log_dir=temp_log_dir).verify_log_integrity() is True


def test_generated_key_is_persisted_privately(temp_log_dir):
    first = AuditLogger(log_dir=temp_log_dir)
    key_file = os.path.join(temp_log_dir, 'audit_signing.key')

    assert os.path.exists(key_file)
    assert os.stat(key_file).st_mode & 0o077 == 0
    second = AuditLogger(log_dir=temp_log_dir)
    assert first.signing_key.public_key().public_bytes_raw() == second.signing_key.public_key().public_bytes_raw()


def test_configured_key_is_not_written_to_disk(temp_log_dir):
    AuditLogger(log_dir=temp_log_dir, signing_key_hex="22" * 32)
    assert not os.path.exists(os.path.join(temp_log_dir, 'audit_signing.key'))


def test_read_entries_non_positive_limit_returns_nothing(audit_logger):
    for n in range(3):
        audit_logger.log_event("EVENT", {"n": n})

    assert audit_logger.read_entries(limit=-1) == []
    assert audit_logger.read_entries(limit=0) == []
