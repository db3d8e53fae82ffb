"""
Testing utilities and fake implementations for proof_conversion
"""

from typing import Any, Dict, List, Optional, Sequence, Tuple

from py_ecc.bn128 import G1, G2, curve_order, multiply

from .curve import CurveBackend
from .types import (
    AuxWitness,
    CurveError,
    Fp12Element,
    G1Point,
    G2Point,
    Groth16Proof,
    VerificationKey,
)
from .witness import AuxWitnessRoutine


class FakeCurve(CurveBackend):
    """
    y^2 = x^3 + 3 over F_103, with the same Fq2 twist as BN254.

    Point decoding, decompression and G1 arithmetic are real. The "pairing"
    is a toy: miller_loop hashes its inputs into g00 and fp12_mul multiplies
    g00 values, so results are deterministic but not bilinear.
    """

    field_modulus = 103
    curve_order = 124

    def __init__(self):
        self.miller_loop_calls: List[Tuple[G1Point, G2Point]] = []

    def _on_g1(self, x: int, y: int) -> bool:
        p = self.field_modulus
        return (y * y - x ** 3 - self.b_coeff) % p == 0

    def _on_g2(self, x: Tuple[int, int], y: Tuple[int, int]) -> bool:
        p = self.field_modulus
        lhs = self.fq2_mul(y, y)
        x3 = self.fq2_mul(self.fq2_mul(x, x), x)
        tb = self.twist_b()
        return lhs == ((x3[0] + tb[0]) % p, (x3[1] + tb[1]) % p)

    def g1_from_coords(self, x: int, y: int) -> G1Point:
        self.check_coord(x, "g1.x")
        self.check_coord(y, "g1.y")
        point = G1Point(x, y)
        if not point.is_infinity and not self._on_g1(x, y):
            raise CurveError(f"({x}, {y}) is not on the curve", stage="decode", field="g1")
        return point

    def g2_from_coords(self, x_c0: int, x_c1: int, y_c0: int, y_c1: int) -> G2Point:
        for name, value in (("x_c0", x_c0), ("x_c1", x_c1), ("y_c0", y_c0), ("y_c1", y_c1)):
            self.check_coord(value, "g2." + name)
        point = G2Point(x_c0, x_c1, y_c0, y_c1)
        if not point.is_infinity and not self._on_g2(point.x, point.y):
            raise CurveError("point is not on the twist", stage="decode", field="g2")
        return point

    def g1_negate(self, point: G1Point) -> G1Point:
        if point.is_infinity:
            return point
        return G1Point(point.x, (-point.y) % self.field_modulus)

    def g1_add(self, p: G1Point, q: G1Point) -> G1Point:
        mod = self.field_modulus
        if p.is_infinity:
            return q
        if q.is_infinity:
            return p
        if p.x == q.x:
            if (p.y + q.y) % mod == 0:
                return G1Point.infinity()
            slope = 3 * p.x * p.x * pow(2 * p.y, mod - 2, mod) % mod
        else:
            slope = (q.y - p.y) * pow(q.x - p.x, mod - 2, mod) % mod
        x = (slope * slope - p.x - q.x) % mod
        return G1Point(x, (slope * (p.x - x) - p.y) % mod)

    def g1_mul(self, point: G1Point, scalar: int) -> G1Point:
        result = G1Point.infinity()
        scalar %= self.curve_order
        while scalar:
            if scalar & 1:
                result = self.g1_add(result, point)
            point = self.g1_add(point, point)
            scalar >>= 1
        return result

    def miller_loop(self, p: G1Point, q: G2Point) -> Fp12Element:
        self.miller_loop_calls.append((p, q))
        if p.is_infinity or q.is_infinity:
            return self.fp12_one()
        mixed = p.x + 2 * p.y + 3 * q.x_c0 + 5 * q.x_c1 + 7 * q.y_c0 + 11 * q.y_c1
        return Fp12Element(g00=mixed % (self.field_modulus - 1) + 1)

    def fp12_mul(self, a: Fp12Element, b: Fp12Element) -> Fp12Element:
        return Fp12Element(g00=a.g00 * b.g00 % self.field_modulus)

    def final_exponentiate(self, f: Fp12Element) -> Fp12Element:
        return f


class FakeWitness(AuxWitnessRoutine):
    """Records its inputs and returns the Miller-loop output itself as c"""

    def __init__(self, shift_power: int = 0):
        self.shift_power = shift_power
        self.membership_calls: List[Fp12Element] = []
        self.witness_calls: List[Fp12Element] = []

    def assert_membership(self, f: Fp12Element) -> None:
        self.membership_calls.append(f)

    def compute_auxiliary_witness(self, f: Fp12Element) -> AuxWitness:
        self.witness_calls.append(f)
        return AuxWitness(shift_power=self.shift_power, c=f)


# Points on FakeCurve
FAKE_G1 = (G1Point(1, 2), G1Point(3, 37), G1Point(5, 5), G1Point(6, 42))
FAKE_G2 = (G2Point(0, 1, 1, 29), G2Point(0, 2, 25, 69))


# -- BN254 fixtures -----------------------------------------------------------

def _g1(pt) -> G1Point:
    return G1Point(int(pt[0]), int(pt[1]))


def _g2(pt) -> G2Point:
    return G2Point(*(int(c) for coord in pt for c in coord.coeffs))


def g1_generator_multiple(k: int) -> G1Point:
    k %= curve_order
    return G1Point.infinity() if k == 0 else _g1(multiply(G1, k))


def g2_generator_multiple(k: int) -> G2Point:
    k %= curve_order
    return G2Point.infinity() if k == 0 else _g2(multiply(G2, k))


def make_groth16_fixture(
    public_inputs: Sequence[int],
    alpha: int = 3,
    beta: int = 5,
    gamma: int = 7,
    delta: int = 11,
    ic: Optional[Sequence[int]] = None,
    c: int = 13,
) -> Tuple[Groth16Proof, VerificationKey]:
    """
    A valid BN254 proof/key pair built from known discrete logs.

    With B = G2 the verification equation reduces to
    a == alpha*beta + l*gamma + c*delta where l = ic[0] + sum(x_i * ic[i+1]),
    so A is simply a*G1.
    """
    ic = list(ic) if ic is not None else [17 + 2 * i for i in range(len(public_inputs) + 1)]
    l_scalar = (ic[0] + sum(x * k for x, k in zip(public_inputs, ic[1:]))) % curve_order
    a = (alpha * beta + l_scalar * gamma + c * delta) % curve_order
    proof = Groth16Proof(
        a=g1_generator_multiple(a),
        b=g2_generator_multiple(1),
        c=g1_generator_multiple(c),
        public_inputs=tuple(public_inputs),
    )
    vk = VerificationKey(
        alpha=g1_generator_multiple(alpha),
        beta=g2_generator_multiple(beta),
        gamma=g2_generator_multiple(gamma),
        delta=g2_generator_multiple(delta),
        ic=tuple(g1_generator_multiple(k) for k in ic),
    )
    return proof, vk


# -- snarkjs documents ----------------------------------------------------------

def snarkjs_g1(point: G1Point) -> List[str]:
    if point.is_infinity:
        return ["0", "1", "0"]
    return [str(point.x), str(point.y), "1"]


def snarkjs_g2(point: G2Point) -> List[List[str]]:
    if point.is_infinity:
        return [["0", "0"], ["1", "0"], ["0", "0"]]
    return [
        [str(point.x_c0), str(point.x_c1)],
        [str(point.y_c0), str(point.y_c1)],
        ["1", "0"],
    ]


def snarkjs_documents(
    proof: Groth16Proof, vk: VerificationKey
) -> Tuple[Dict[str, Any], List[str], Dict[str, Any]]:
    """(proof.json, public.json, verification_key.json) contents as written by snarkjs"""
    proof_json = {
        "pi_a": snarkjs_g1(proof.a),
        "pi_b": snarkjs_g2(proof.b),
        "pi_c": snarkjs_g1(proof.c),
        "protocol": "groth16",
        "curve": "bn128",
    }
    vk_json = {
        "protocol": "groth16",
        "curve": "bn128",
        "nPublic": len(proof.public_inputs),
        "vk_alpha_1": snarkjs_g1(vk.alpha),
        "vk_beta_2": snarkjs_g2(vk.beta),
        "vk_gamma_2": snarkjs_g2(vk.gamma),
        "vk_delta_2": snarkjs_g2(vk.delta),
        "IC": [snarkjs_g1(point) for point in vk.ic],
    }
    return proof_json, [str(x) for x in proof.public_inputs], vk_json
