"""
JSON-file registry used by the command-line front-end.

Layout:
    {
      "suite": "ed25519-x25519-sha256",
      "ksf": {"name": "identity", "params": {}},
      "server_setup": "<base64>",
      "records": {"<credential id>": "<base64 ServerRegistration>"}
    }
"""

import json
import logging
from pathlib import Path

from .core.ciphersuite import get_suite
from .core.errors import OpaqueError
from .core.ksf import ksf_from_name
from .encoding import from_base64, to_base64
from .registration import ServerRegistration
from .server_setup import ServerSetup

logger = logging.getLogger(__name__)


class StoreError(OpaqueError):
    """The registry file is missing or unreadable"""


class RecordStore:
    """File-backed ServerSetup plus registration records"""

    def __init__(self, path, server_setup, records=None):
        self.path = Path(path)
        self.server_setup = server_setup
        self.records = dict(records or {})

    @property
    def suite(self):
        return self.server_setup.suite

    @classmethod
    def create(cls, path, suite, rng=None):
        """Generate fresh server secrets and write an empty registry"""
        store = cls(path, ServerSetup.generate(suite, rng))
        store.save()
        logger.info("Created record store at %s", store.path)
        return store

    @classmethod
    def load(cls, path):
        path = Path(path)
        if not path.exists():
            raise StoreError(f"No record store at {path}, run 'setup' first")
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            ksf = ksf_from_name(data["ksf"]["name"], **data["ksf"]["params"])
            suite = get_suite(data["suite"], ksf)
            server_setup = from_base64(ServerSetup, data["server_setup"], suite)
            records = {
                ident: from_base64(ServerRegistration, encoded, suite)
                for ident, encoded in data["records"].items()
            }
        except (ValueError, KeyError, TypeError) as e:
            raise StoreError(f"Corrupt record store {path}: {e}") from e
        logger.debug("Loaded %d record(s) from %s", len(records), path)
        return cls(path, server_setup, records)

    def save(self):
        suite = self.suite
        data = {
            "suite": suite.name,
            "ksf": {"name": suite.ksf.name, "params": suite.ksf.params()},
            "server_setup": to_base64(self.server_setup),
            "records": {
                ident: to_base64(record) for ident, record in self.records.items()
            },
        }
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data, indent=2), encoding="utf-8")

    def get(self, credential_identifier):
        return self.records.get(credential_identifier)

    def put(self, credential_identifier, record):
        self.records[credential_identifier] = record
        self.save()

    def __contains__(self, credential_identifier):
        return credential_identifier in self.records

    def __len__(self):
        return len(self.records)
