"""
Pairing witness generation.

Alongside the usual verification key points the verifier circuit consumes
two precomputed Fp12 values:

- ``alpha_beta``: the Miller loop of (alpha, beta), without the final
  exponentiation, so the circuit can multiply it into its own loop output.
- ``w27``: a fixed primitive 27th root of unity, used by the residue
  witness below to shift a loop output into the cubic residues.

The residue witness replaces the final exponentiation in-circuit: for a loop
output ``f`` that pairs to one, it finds ``c`` and ``i`` in {0, 1, 2} with
``c ** lambda == f * w27 ** i`` where ``lambda = 6x + 2 + p - p^2 + p^3``.
"""

import logging
from abc import ABC, abstractmethod

from py_ecc.bn128 import FQ12, curve_order, field_modulus

from .config import FIXED_COMMITMENT_POINTS
from .curve import CurveBackend, fp12_from_flat, fp12_to_flat
from .transform import commitment_slots
from .types import (
    AuxWitness,
    CanonicalProof,
    CanonicalVerificationKey,
    Fp12Element,
    G1Point,
    G2Point,
    Layout,
    VerificationKey,
    WitnessError,
)
from .verify import compute_pi

logger = logging.getLogger(__name__)

W27 = Fp12Element(
    g20=8204864362109909869166472767738877274689483185363591877943943203703805152849,
    g21=17912368812864921115467448876996876278487602260484145953989158612875588124088,
)

# BN254 curve parameter
BN_X = 4965661367192848881

LAMBDA = 6 * BN_X + 2 + field_modulus - field_modulus ** 2 + field_modulus ** 3
GROUP_ORDER = field_modulus ** 12 - 1
COFACTOR = GROUP_ORDER // curve_order
M = LAMBDA // curve_order
M_PRIME = M // 3
T = GROUP_ORDER // 27

# x -> x^ROOT_EXP inverts x -> x^(r * m') on the subgroup of order h
ROOT_EXP = pow(curve_order, -1, COFACTOR) * pow(M_PRIME, -1, COFACTOR) % COFACTOR
# Projections onto the 3-Sylow part (order 27) and its complement (order T)
COMPLEMENT_EXP = 27 * pow(27, -1, T) % GROUP_ORDER
SYLOW_EXP = (1 - COMPLEMENT_EXP) % GROUP_ORDER
CUBE_ROOT_EXP = COMPLEMENT_EXP * pow(3, -1, T) % GROUP_ORDER


def fq12_pow(base, exponent: int):
    """Square-and-multiply over FQ12, iterative"""
    result = FQ12.one()
    while exponent > 0:
        if exponent & 1:
            result = result * base
        base = base * base
        exponent >>= 1
    return result


def compute_alpha_beta(curve: CurveBackend, alpha: G1Point, beta: G2Point) -> Fp12Element:
    return curve.miller_loop(alpha, beta)


def build_verification_key(curve: CurveBackend, vk: VerificationKey, layout: Layout) -> CanonicalVerificationKey:
    """Attach alpha_beta and w27 to a decoded key and lay out its IC points"""
    logger.debug("computing alpha_beta Miller loop")
    return CanonicalVerificationKey(
        alpha=vk.alpha,
        beta=vk.beta,
        gamma=vk.gamma,
        delta=vk.delta,
        alpha_beta=compute_alpha_beta(curve, vk.alpha, vk.beta),
        w27=W27,
        ic=commitment_slots(vk.ic, layout, FIXED_COMMITMENT_POINTS),
        layout=layout,
    )


def multi_miller_loop_output(
    curve: CurveBackend, proof: CanonicalProof, vk: CanonicalVerificationKey
) -> Fp12Element:
    """
    Product of the Miller loops of the Groth16 equation, alpha_beta included.

    (negA, B), (PI, gamma) and (C, delta) are looped here; (alpha, beta) comes
    precomputed from the key. The final exponentiation of the result is one
    exactly when the proof verifies.
    """
    inputs = [value for _, value in proof.public_inputs.items()]
    ic = [point for _, point in vk.ic.items()]
    pi = compute_pi(curve, ic, inputs)
    loops = curve.multi_miller_loop([
        (proof.neg_a, proof.b),
        (pi, vk.gamma),
        (proof.c, vk.delta),
    ])
    return curve.fp12_mul(loops, vk.alpha_beta)


class AuxWitnessRoutine(ABC):
    """Membership check and witness for a Miller-loop output"""

    @abstractmethod
    def assert_membership(self, f: Fp12Element) -> None:
        """Raise WitnessError unless f ** h == 1"""

    @abstractmethod
    def compute_auxiliary_witness(self, f: Fp12Element) -> AuxWitness:
        pass


class ResidueWitness(AuxWitnessRoutine):
    """BN254 residue witness over py_ecc's FQ12"""

    def __init__(self):
        self._w27 = self._to_fq12(W27)

    @staticmethod
    def _to_fq12(element: Fp12Element):
        return FQ12(fp12_to_flat(element, field_modulus))

    @staticmethod
    def _from_fq12(f) -> Fp12Element:
        return fp12_from_flat([c.n for c in f.coeffs], field_modulus)

    def assert_membership(self, f: Fp12Element) -> None:
        if fq12_pow(self._to_fq12(f), COFACTOR) != FQ12.one():
            raise WitnessError("Miller loop output does not pair to one", stage="witness", field="mlo")

    def _shift_power(self, f) -> int:
        """Smallest i such that f * w27^i is a cubic residue"""
        residue = fq12_pow(f, GROUP_ORDER // 3)
        step = fq12_pow(self._w27, (GROUP_ORDER // 3) % 27)
        for i in range(3):
            if residue == FQ12.one():
                return i
            residue = residue * step
        raise WitnessError("no w27 shift makes the output a cubic residue", stage="witness", field="shift_power")

    def _discrete_log_w27(self, y) -> int:
        power = FQ12.one()
        for e in range(27):
            if power == y:
                return e
            power = power * self._w27
        raise WitnessError("3-Sylow component is not a power of w27", stage="witness", field="c")

    def compute_auxiliary_witness(self, f: Fp12Element) -> AuxWitness:
        f12 = self._to_fq12(f)
        shift = self._shift_power(f12)
        shifted = f12 * fq12_pow(self._w27, shift)
        logger.debug("shift power %d", shift)

        # shifted = x ** (r * m'), so c ** 3 == x with c a cube root of x
        x = fq12_pow(shifted, ROOT_EXP)
        cube_root = fq12_pow(x, CUBE_ROOT_EXP)
        sylow = fq12_pow(x, SYLOW_EXP)
        e = self._discrete_log_w27(sylow)
        if e % 3:
            raise WitnessError("3-Sylow component has no cube root", stage="witness", field="c")
        c = cube_root * fq12_pow(self._w27, e // 3)
        return AuxWitness(shift_power=shift, c=self._from_fq12(c))

    def check(self, f: Fp12Element, witness: AuxWitness) -> bool:
        """c ** lambda == f * w27 ** shift_power"""
        c = self._to_fq12(witness.c)
        expected = self._to_fq12(f) * fq12_pow(self._w27, witness.shift_power)
        return fq12_pow(c, LAMBDA) == expected
