"""
Shared fixtures for proof_conversion tests
"""

import pytest

from proof_conversion.curve import Bn254Curve
from proof_conversion.testing import FakeCurve, make_groth16_fixture


@pytest.fixture(scope="session")
def curve():
    return Bn254Curve()


@pytest.fixture
def fake_curve():
    return FakeCurve()


@pytest.fixture(scope="session")
def groth16_fixture():
    """Valid BN254 proof and key with three public inputs"""
    return make_groth16_fixture([1, 2, 3])
