"""
Canonical transform: decoded Groth16 objects -> target-schema objects.

The verifier circuit checks e(negA, B) * e(alpha, beta) * e(PI, gamma) *
e(C, delta) == 1, so A is negated here once and never again downstream.
"""

from typing import Sequence

from .config import FIXED_COMMITMENT_POINTS, FIXED_PUBLIC_INPUTS
from .curve import CurveBackend
from .types import CanonicalProof, G1Point, Groth16Proof, InvariantError, Layout, Slots


def check_capacity(count: int, layout: Layout, capacity: int, field: str) -> None:
    if layout is Layout.FIXED and count > capacity:
        raise InvariantError(
            f"{count} values do not fit the fixed layout ({capacity} slots)", stage="transform", field=field
        )


def public_input_slots(values: Sequence[int], layout: Layout, capacity: int = FIXED_PUBLIC_INPUTS) -> Slots:
    """pi1..piN"""
    check_capacity(len(values), layout, capacity, "public_inputs")
    return Slots(tuple(values), first_key=1)


def commitment_slots(
    points: Sequence[G1Point], layout: Layout, capacity: int = FIXED_COMMITMENT_POINTS
) -> Slots:
    """ic0..icN"""
    check_capacity(len(points), layout, capacity, "ic")
    return Slots(tuple(points), first_key=0)


def to_canonical_proof(curve: CurveBackend, proof: Groth16Proof, layout: Layout) -> CanonicalProof:
    return CanonicalProof(
        neg_a=curve.g1_negate(proof.a),
        b=proof.b,
        c=proof.c,
        public_inputs=public_input_slots(proof.public_inputs, layout),
        layout=layout,
    )
