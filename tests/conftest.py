# OPAQUE Engine test configuration
# Shared fixtures: deterministic random sources, server setup, registered users

import hashlib
import os
import sys

import pytest

# Add project root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from opaque_engine import ServerSetup, login, registration
from opaque_engine.core.ciphersuite import DEFAULT_SUITE, SUITES

PASSWORD = "Tr0ub4dor&3"
USER = "alice@example.com"


class DeterministicRng:
    """SHA-256 counter stream, same calling convention as os.urandom"""

    def __init__(self, seed=b"opaque-engine-tests"):
        self.seed = seed if isinstance(seed, bytes) else str(seed).encode()
        self.counter = 0

    def __call__(self, n):
        out = b""
        while len(out) < n:
            out += hashlib.sha256(self.seed + self.counter.to_bytes(8, "big")).digest()
            self.counter += 1
        return out[:n]


def broken_rng(n):
    raise OSError("entropy source unavailable")


def register_user(server_setup, password, credential_identifier, rng=None, identifiers=None):
    """Run the full registration flow and return (record, export_key)"""
    suite = server_setup.suite
    rng = rng or DeterministicRng(b"register-" + str(credential_identifier).encode())
    request, state = registration.client_start(password, rng, suite)
    response = registration.server_start(request, credential_identifier, server_setup)
    upload, export_key = registration.client_finish(
        state, password, response, rng, identifiers
    )
    return registration.server_finish(upload), export_key


def run_login(server_setup, record, password, credential_identifier, rng=None,
              client_params=None, server_params=None):
    """Run the full login flow and return (client_result, server_session_key)"""
    suite = server_setup.suite
    rng = rng or DeterministicRng(b"login")
    request, client_state = login.client_start(password, rng, suite)
    response, server_state = login.server_start(
        request, record, credential_identifier, server_setup, rng, server_params
    )
    result = login.client_finish(client_state, response, client_params)
    return result, login.server_finish(server_state, result.message)


@pytest.fixture
def rng():
    """Fresh deterministic random source."""
    return DeterministicRng()


@pytest.fixture
def rng_factory():
    """Build independent deterministic random sources from a seed."""
    return DeterministicRng


@pytest.fixture
def suite():
    return DEFAULT_SUITE


@pytest.fixture(params=sorted(SUITES))
def any_suite(request):
    """Every registered ciphersuite."""
    return SUITES[request.param]


@pytest.fixture
def server_setup(suite):
    return ServerSetup.generate(suite, DeterministicRng(b"server"))


@pytest.fixture
def registered(server_setup):
    """(record, export_key) for the default user and password."""
    return register_user(server_setup, PASSWORD, USER)
