# portal/audit/audit_logger.py

import os
import json
import hashlib
import base64
import logging
from datetime import datetime, timezone
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey
from cryptography.exceptions import InvalidSignature

# Append-only audit trail of portal security events, hash chained and Ed25519 signed

logger = logging.getLogger(__name__)


class AuditLogger:
    def __init__(self, log_dir='logs', signing_key_hex=None):
        self.log_dir = log_dir
        self.log_file = os.path.join(log_dir, 'audit.log')
        self.key_file = os.path.join(log_dir, 'audit_signing.key')
        self.previous_hash = None

        os.makedirs(log_dir, exist_ok=True)

        if signing_key_hex:
            self.signing_key = Ed25519PrivateKey.from_private_bytes(bytes.fromhex(signing_key_hex))
        else:
            self.signing_key = self._load_or_create_key()
        self._load_previous_hash()

    def _load_or_create_key(self):
        # One key per log directory, persisted beside the log
        try:
            fd = os.open(self.key_file, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o600)
        except FileExistsError:
            with open(self.key_file, 'r') as f:
                return Ed25519PrivateKey.from_private_bytes(bytes.fromhex(f.read().strip()))
        key = Ed25519PrivateKey.generate()
        raw = key.private_bytes(
            encoding=serialization.Encoding.Raw,
            format=serialization.PrivateFormat.Raw,
            encryption_algorithm=serialization.NoEncryption(),
        )
        with os.fdopen(fd, 'w') as f:
            f.write(raw.hex())
        logger.warning(f"No audit signing key configured; generated one at {self.key_file}")
        return key

    def _load_previous_hash(self):
        if os.path.exists(self.log_file):
            with open(self.log_file, 'r') as f:
                lines = [line for line in f.readlines() if line.strip()]
                if lines:
                    try:
                        last_entry = json.loads(lines[-1])
                        self.previous_hash = last_entry.get('hash')
                    except ValueError:
                        self.previous_hash = None

    def log_event(self, event_type, data, user_id=None):
        # Write failures are logged, not raised
        try:
            log_entry = {
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "event_type": event_type,
                "data": data,
                "user_id": user_id,
                "previous_hash": self.previous_hash,
            }
            entry_json = json.dumps(log_entry, sort_keys=True)
            entry_hash = hashlib.sha256(entry_json.encode()).hexdigest()

            signature = self.signing_key.sign(entry_json.encode())
            log_entry['hash'] = entry_hash
            log_entry['signature'] = base64.b64encode(signature).decode()

            with open(self.log_file, 'a') as f:
                f.write(json.dumps(log_entry) + "\n")

            self.previous_hash = entry_hash
        except (OSError, TypeError, ValueError) as e:
            logger.error(f"Audit log error: {str(e)}")

    def read_entries(self, newest_first=True, limit=None):
        entries = []
        if not os.path.exists(self.log_file):
            return entries
        with open(self.log_file, 'r') as f:
            for line in f:
                line = line.strip()
                if not line:
                    continue
                try:
                    entries.append(json.loads(line))
                except ValueError:
                    entries.append({'raw': line})
        if newest_first:
            entries.reverse()
        if limit is not None:
            entries = entries[:max(limit, 0)]
        return entries

    def verify_log_integrity(self):
        if not os.path.exists(self.log_file):
            return True
        public_key = self.signing_key.public_key()
        previous_hash = None
        try:
            with open(self.log_file, 'r') as f:
                for line in f:
                    if not line.strip():
                        continue
                    log_entry = json.loads(line)
                    if log_entry.get('previous_hash') != previous_hash:
                        return False
                    entry_copy = dict(log_entry)
                    signature = base64.b64decode(entry_copy.pop('signature'))
                    entry_hash = entry_copy.pop('hash')
                    entry_json = json.dumps(entry_copy, sort_keys=True).encode()
                    if hashlib.sha256(entry_json).hexdigest() != entry_hash:
                        return False
                    public_key.verify(signature, entry_json)
                    previous_hash = entry_hash
        except (KeyError, ValueError, InvalidSignature):
            return False
        return True
