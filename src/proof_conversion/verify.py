"""
Groth16 verification over a CurveBackend
"""

import logging
from typing import Sequence

from .curve import CurveBackend
from .types import G1Point, Groth16Proof, InvariantError, VerificationError, VerificationKey

logger = logging.getLogger(__name__)


def compute_pi(curve: CurveBackend, ic: Sequence[G1Point], inputs: Sequence[int]) -> G1Point:
    """PI = IC[0] + sum(inputs[i] * IC[i + 1])"""
    if len(ic) < len(inputs) + 1:
        raise InvariantError(
            f"{len(inputs)} public inputs need {len(inputs) + 1} IC points, have {len(ic)}",
            stage="verify",
            field="ic",
        )
    acc = ic[0]
    for point, value in zip(ic[1:], inputs):
        acc = curve.g1_add(acc, curve.g1_mul(point, value))
    return acc


def verify_proof(curve: CurveBackend, vk: VerificationKey, proof: Groth16Proof) -> None:
    """
    Check e(A, B) == e(alpha, beta) * e(PI, gamma) * e(C, delta).

    Raises:
        VerificationError: if the pairing equation does not hold
    """
    pi = compute_pi(curve, vk.ic, proof.public_inputs)
    logger.debug("verifying proof with %d public inputs", len(proof.public_inputs))
    ok = curve.pairing_check([
        (curve.g1_negate(proof.a), proof.b),
        (vk.alpha, vk.beta),
        (pi, vk.gamma),
        (proof.c, vk.delta),
    ])
    if not ok:
        raise VerificationError("pairing equation does not hold", stage="verify", field="proof")
