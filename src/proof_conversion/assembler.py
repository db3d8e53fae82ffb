"""
Proof/VK assembly from a point source.

Counts are validated before any point is decoded, so a malformed input fails
fast and never produces partially converted output.
"""

import logging
from abc import ABC, abstractmethod
from typing import List, Tuple

from .config import FIXED_PUBLIC_INPUTS
from .curve import CurveBackend
from .transform import check_capacity
from .types import FormatError, G1Point, G2Point, Groth16Proof, InvariantError, Layout, VerificationKey

logger = logging.getLogger(__name__)


class PointSource(ABC):
    """A prover toolchain's proof, public inputs and verification key"""

    name: str = "source"
    default_layout: Layout = Layout.FIXED

    def __init__(self, curve: CurveBackend):
        self.curve = curve

    @abstractmethod
    def public_inputs(self) -> List[int]:
        pass

    @abstractmethod
    def declared_public_count(self) -> int:
        """Public input count as declared by the verification key"""

    @abstractmethod
    def commitment_count(self) -> int:
        """Number of IC / K points in the verification key"""

    @abstractmethod
    def decode_proof(self) -> Tuple[G1Point, G2Point, G1Point]:
        pass

    @abstractmethod
    def decode_verification_key(self) -> VerificationKey:
        pass


def validate_counts(source: PointSource, layout: Layout) -> List[int]:
    """Check the count invariants and return the public inputs"""
    inputs = source.public_inputs()
    declared = source.declared_public_count()
    if declared != len(inputs):
        raise InvariantError(
            f"verification key declares {declared} public inputs, got {len(inputs)}",
            stage="assemble",
            field="public_inputs",
        )
    commitments = source.commitment_count()
    if commitments != len(inputs) + 1:
        raise InvariantError(
            f"{len(inputs)} public inputs need {len(inputs) + 1} IC points, key has {commitments}",
            stage="assemble",
            field="ic",
        )
    check_capacity(len(inputs), layout, FIXED_PUBLIC_INPUTS, "public_inputs")
    for i, value in enumerate(inputs):
        if value >= source.curve.curve_order:
            raise FormatError(
                f"public input {value} is not below the group order", stage="assemble", field=f"public[{i}]"
            )
    return inputs


def assemble(source: PointSource, layout: Layout) -> Tuple[Groth16Proof, VerificationKey]:
    inputs = validate_counts(source, layout)
    logger.info("%s: %d public inputs, %d IC points", source.name, len(inputs), len(inputs) + 1)
    a, b, c = source.decode_proof()
    vk = source.decode_verification_key()
    return Groth16Proof(a, b, c, tuple(inputs)), vk
