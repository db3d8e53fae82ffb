"""
Parser for snarkjs Groth16 JSON (proof.json, public.json, verification_key.json).

snarkjs writes field elements as base-10 strings and points in projective
form with a trailing z coordinate:

    G1: ["x", "y", "1"]
    G2: [["x_c0", "x_c1"], ["y_c0", "y_c1"], ["1", "0"]]

A z of zero marks the point at infinity; any other z is divided out.
"""

import logging
import re
from pathlib import Path
from typing import Any, Dict, List, Tuple

from .assembler import PointSource
from .curve import CurveBackend
from .files import PathLike, read_json
from .types import CurveError, FormatError, G1Point, G2Point, Layout, VerificationKey

logger = logging.getLogger(__name__)

_DECIMAL = re.compile(r"[0-9]+")


def parse_decimal(value: Any, field: str) -> int:
    """Base-10 string (or JSON integer) -> non-negative int"""
    if isinstance(value, bool):
        raise FormatError(f"expected a decimal string, got {value!r}", stage="parse", field=field)
    if isinstance(value, int):
        if value < 0:
            raise FormatError(f"negative value {value}", stage="parse", field=field)
        return value
    if isinstance(value, str) and _DECIMAL.fullmatch(value):
        return int(value)
    raise FormatError(f"expected a decimal string, got {value!r}", stage="parse", field=field)


def _expect_list(value: Any, lengths: Tuple[int, ...], field: str) -> List[Any]:
    if not isinstance(value, list) or len(value) not in lengths:
        wanted = " or ".join(str(n) for n in lengths)
        raise FormatError(f"expected a list of {wanted} elements", stage="parse", field=field)
    return value


def parse_g1(curve: CurveBackend, coords: Any, field: str) -> G1Point:
    coords = _expect_list(coords, (2, 3), field)
    x, y = (parse_decimal(v, f"{field}[{i}]") for i, v in enumerate(coords[:2]))
    try:
        if len(coords) == 3:
            z = curve.check_coord(parse_decimal(coords[2], f"{field}[2]"), f"{field}[2]")
            if z == 0:
                return G1Point.infinity()
            if z != 1:
                p = curve.field_modulus
                z_inv = pow(z, p - 2, p)
                x, y = curve.check_coord(x, field) * z_inv % p, curve.check_coord(y, field) * z_inv % p
        return curve.g1_from_coords(x, y)
    except (CurveError, FormatError) as e:
        e.field = field
        raise


def _parse_fq2(value: Any, field: str) -> Tuple[int, int]:
    value = _expect_list(value, (2,), field)
    return parse_decimal(value[0], f"{field}[0]"), parse_decimal(value[1], f"{field}[1]")


def parse_g2(curve: CurveBackend, coords: Any, field: str) -> G2Point:
    coords = _expect_list(coords, (2, 3), field)
    x = _parse_fq2(coords[0], f"{field}[0]")
    y = _parse_fq2(coords[1], f"{field}[1]")
    try:
        if len(coords) == 3:
            z = _parse_fq2(coords[2], f"{field}[2]")
            for value in z + x + y:
                curve.check_coord(value, field)
            if z == (0, 0):
                return G2Point.infinity()
            if z != (1, 0):
                z_inv = curve.fq2_inv(z)
                x, y = curve.fq2_mul(x, z_inv), curve.fq2_mul(y, z_inv)
        return curve.g2_from_coords(x[0], x[1], y[0], y[1])
    except (CurveError, FormatError) as e:
        e.field = field
        raise


def _require(document: Dict[str, Any], key: str, what: str) -> Any:
    if not isinstance(document, dict):
        raise FormatError(f"{what} must be a JSON object", stage="parse", field=what)
    if key not in document:
        raise FormatError(f"missing field {key!r}", stage="parse", field=f"{what}.{key}")
    return document[key]


class SnarkjsSource(PointSource):
    """Point source over the three snarkjs JSON documents"""

    name = "snarkjs"
    default_layout = Layout.FIXED

    def __init__(self, curve: CurveBackend, proof: Dict[str, Any], public: List[Any], vk: Dict[str, Any]):
        super().__init__(curve)
        self.proof = proof
        self.public = public
        self.vk = vk

    @classmethod
    def from_files(
        cls, curve: CurveBackend, proof_path: PathLike, public_path: PathLike, vk_path: PathLike
    ) -> "SnarkjsSource":
        logger.debug("reading snarkjs files %s, %s, %s", proof_path, public_path, vk_path)
        return cls(
            curve,
            read_json(Path(proof_path), "proof"),
            read_json(Path(public_path), "public"),
            read_json(Path(vk_path), "vk"),
        )

    def public_inputs(self) -> List[int]:
        if not isinstance(self.public, list):
            raise FormatError("public inputs must be a JSON array", stage="parse", field="public")
        return [parse_decimal(value, f"public[{i}]") for i, value in enumerate(self.public)]

    def declared_public_count(self) -> int:
        return parse_decimal(_require(self.vk, "nPublic", "vk"), "vk.nPublic")

    def commitment_count(self) -> int:
        ic = _require(self.vk, "IC", "vk")
        if not isinstance(ic, list):
            raise FormatError("IC must be a JSON array", stage="parse", field="vk.IC")
        return len(ic)

    def decode_proof(self) -> Tuple[G1Point, G2Point, G1Point]:
        return (
            parse_g1(self.curve, _require(self.proof, "pi_a", "proof"), "proof.pi_a"),
            parse_g2(self.curve, _require(self.proof, "pi_b", "proof"), "proof.pi_b"),
            parse_g1(self.curve, _require(self.proof, "pi_c", "proof"), "proof.pi_c"),
        )

    def decode_verification_key(self) -> VerificationKey:
        return VerificationKey(
            alpha=parse_g1(self.curve, _require(self.vk, "vk_alpha_1", "vk"), "vk.vk_alpha_1"),
            beta=parse_g2(self.curve, _require(self.vk, "vk_beta_2", "vk"), "vk.vk_beta_2"),
            gamma=parse_g2(self.curve, _require(self.vk, "vk_gamma_2", "vk"), "vk.vk_gamma_2"),
            delta=parse_g2(self.curve, _require(self.vk, "vk_delta_2", "vk"), "vk.vk_delta_2"),
            ic=tuple(
                parse_g1(self.curve, point, f"vk.IC[{i}]")
                for i, point in enumerate(_require(self.vk, "IC", "vk"))
            ),
        )
