"""
Type definitions and error classes for proof conversion
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple


class Layout(Enum):
    """How public inputs and commitment points are rendered"""
    FIXED = "fixed"   # pi1..pi5 / ic0..ic5, absent slots defaulted
    KEYED = "keyed"   # pi1..piN / ic0..icN, sized to the input count


class ConversionError(Exception):
    """Base exception for every failure of a conversion run"""

    kind = "conversion"

    def __init__(self, message: str, stage: Optional[str] = None, field: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.stage = stage
        self.field = field

    def __str__(self) -> str:
        where = ".".join(part for part in (self.stage, self.field) if part)
        return f"[{self.kind}] {where}: {self.message}" if where else f"[{self.kind}] {self.message}"


class FormatError(ConversionError):
    """Malformed JSON, bad decimal strings, non-canonical coordinates"""
    kind = "format"


class InvalidFlagError(FormatError):
    """Unrecognized compression flag bits"""
    kind = "flag"


class BufferLengthError(FormatError):
    """Byte buffer of the wrong size"""
    kind = "length"


class InvariantError(ConversionError):
    """Public-input and commitment-point counts disagree"""
    kind = "invariant"


class CurveError(ConversionError):
    """Point is not on the curve or cannot be decompressed"""
    kind = "curve"


class VerificationError(ConversionError):
    """Decoded proof does not satisfy the pairing equation"""
    kind = "verification"


class WitnessError(ConversionError):
    """Miller-loop output rejected by the auxiliary witness routine"""
    kind = "witness"


class ConversionIOError(ConversionError):
    """Unreadable input or unwritable output"""
    kind = "io"


@dataclass(frozen=True)
class G1Point:
    """Affine G1 point; (0, 0) is the point at infinity"""
    x: int
    y: int

    @classmethod
    def infinity(cls) -> "G1Point":
        return cls(0, 0)

    @property
    def is_infinity(self) -> bool:
        return self.x == 0 and self.y == 0


@dataclass(frozen=True)
class G2Point:
    """Affine G2 point over Fq2 = Fq[u]/(u^2 + 1), coordinates as (c0, c1)"""
    x_c0: int
    x_c1: int
    y_c0: int
    y_c1: int

    @classmethod
    def infinity(cls) -> "G2Point":
        return cls(0, 0, 0, 0)

    @property
    def is_infinity(self) -> bool:
        return not (self.x_c0 or self.x_c1 or self.y_c0 or self.y_c1)

    @property
    def x(self) -> Tuple[int, int]:
        return (self.x_c0, self.x_c1)

    @property
    def y(self) -> Tuple[int, int]:
        return (self.y_c0, self.y_c1)


FP12_COMPONENTS = (
    "g00", "g01", "g10", "g11", "g20", "g21",
    "h00", "h01", "h10", "h11", "h20", "h21",
)


@dataclass(frozen=True)
class Fp12Element:
    """
    Degree-12 extension element in tower form.

    The element is g + h*w with g, h in Fq6 = Fq2[v]/(v^3 - (9 + u)) and
    w^2 = v. Component gij is coefficient j (0 real, 1 imaginary) of the
    Fq2 coefficient of v^i in g; likewise for h.
    """
    g00: int = 0
    g01: int = 0
    g10: int = 0
    g11: int = 0
    g20: int = 0
    g21: int = 0
    h00: int = 0
    h01: int = 0
    h10: int = 0
    h11: int = 0
    h20: int = 0
    h21: int = 0

    @classmethod
    def from_components(cls, values: Dict[str, int]) -> "Fp12Element":
        return cls(**{name: values[name] for name in FP12_COMPONENTS})

    def components(self) -> List[Tuple[str, int]]:
        return [(name, getattr(self, name)) for name in FP12_COMPONENTS]


@dataclass(frozen=True)
class Groth16Proof:
    """Decoded source proof, before any target-schema transform"""
    a: G1Point
    b: G2Point
    c: G1Point
    public_inputs: Tuple[int, ...] = ()


@dataclass(frozen=True)
class VerificationKey:
    """Decoded source verification key; ic[0] is the constant term"""
    alpha: G1Point
    beta: G2Point
    gamma: G2Point
    delta: G2Point
    ic: Tuple[G1Point, ...] = ()

    @property
    def public_input_count(self) -> int:
        return len(self.ic) - 1


@dataclass(frozen=True)
class Slots:
    """Keyed mapping position -> value, rendered per Layout by the serializer"""
    values: Tuple = ()
    first_key: int = 0

    def items(self):
        return [(self.first_key + i, v) for i, v in enumerate(self.values)]

    def __len__(self) -> int:
        return len(self.values)


@dataclass(frozen=True)
class CanonicalProof:
    neg_a: G1Point
    b: G2Point
    c: G1Point
    public_inputs: Slots = field(default_factory=lambda: Slots(first_key=1))
    layout: Layout = Layout.FIXED


@dataclass(frozen=True)
class CanonicalVerificationKey:
    alpha: G1Point
    beta: G2Point
    gamma: G2Point
    delta: G2Point
    alpha_beta: Fp12Element
    w27: Fp12Element
    ic: Slots = field(default_factory=Slots)
    layout: Layout = Layout.FIXED


@dataclass(frozen=True)
class AuxWitness:
    """c^lambda == f * w27^shift_power for the Miller-loop output f"""
    shift_power: int
    c: Fp12Element
