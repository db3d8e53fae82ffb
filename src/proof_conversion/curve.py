"""
Curve and pairing backends.

The conversion core talks to the curve through ``CurveBackend``. Byte-level
point codecs and square roots are shared here; group arithmetic and the
Miller loop come from the concrete backend. ``Bn254Curve`` uses py_ecc.

Compressed layout (little-endian, flags in the top two bits of the last byte):

    00  y is the smaller of {y, -y}
    10  y is the larger of {y, -y}
    01  point at infinity

Fq2 elements are ordered by c1 first, then c0.
"""

import logging
from abc import ABC, abstractmethod
from typing import Iterable, List, Sequence, Tuple

from py_ecc.bn128 import (
    FQ,
    FQ2,
    FQ12,
    add,
    b,
    b2,
    curve_order,
    double,
    field_modulus,
    final_exponentiate,
    is_on_curve,
    multiply,
    neg,
)
from py_ecc.bn128.bn128_pairing import (
    ate_loop_count,
    cast_point_to_fq12,
    linefunc,
    log_ate_loop_count,
    twist,
)

from .types import (
    BufferLengthError,
    CurveError,
    Fp12Element,
    FormatError,
    G1Point,
    G2Point,
    InvalidFlagError,
)

logger = logging.getLogger(__name__)

FLAG_MASK = 0b11 << 6
FLAG_POSITIVE = 0b00 << 6
FLAG_NEGATIVE = 0b10 << 6
FLAG_INFINITY = 0b01 << 6

FQ_BYTES = 32

# (tower name of the Fq2 coefficient, flat index k); the flat basis pairs C[k] with C[k+6]
_TOWER_SLOTS = (("g0", 0), ("h0", 1), ("g1", 2), ("h1", 3), ("g2", 4), ("h2", 5))


def fp12_from_flat(coeffs: Sequence[int], modulus: int) -> Fp12Element:
    """Flat Fq[w]/(w^12 - 18w^6 + 82) coefficients -> tower components"""
    values = {}
    for name, k in _TOWER_SLOTS:
        values[name + "0"] = (coeffs[k] + 9 * coeffs[k + 6]) % modulus
        values[name + "1"] = coeffs[k + 6] % modulus
    return Fp12Element.from_components(values)


def fp12_to_flat(element: Fp12Element, modulus: int) -> List[int]:
    """Tower components -> flat coefficients (inverse of fp12_from_flat)"""
    coeffs = [0] * 12
    for name, k in _TOWER_SLOTS:
        re = getattr(element, name + "0")
        im = getattr(element, name + "1")
        coeffs[k] = (re - 9 * im) % modulus
        coeffs[k + 6] = im % modulus
    return coeffs


def _n(value) -> int:
    return int(getattr(value, "n", value))


class CurveBackend(ABC):
    """Curve and pairing primitives consumed by the conversion core"""

    field_modulus: int
    curve_order: int
    b_coeff: int = 3
    xi: Tuple[int, int] = (9, 1)

    # -- group arithmetic -------------------------------------------------

    @abstractmethod
    def g1_from_coords(self, x: int, y: int) -> G1Point:
        """Build a G1 point, rejecting out-of-range or off-curve coordinates"""

    @abstractmethod
    def g2_from_coords(self, x_c0: int, x_c1: int, y_c0: int, y_c1: int) -> G2Point:
        """Build a G2 point, rejecting out-of-range or off-curve coordinates"""

    @abstractmethod
    def g1_negate(self, point: G1Point) -> G1Point:
        pass

    @abstractmethod
    def g1_add(self, p: G1Point, q: G1Point) -> G1Point:
        pass

    @abstractmethod
    def g1_mul(self, point: G1Point, scalar: int) -> G1Point:
        pass

    # -- pairing ----------------------------------------------------------

    @abstractmethod
    def miller_loop(self, p: G1Point, q: G2Point) -> Fp12Element:
        """Miller loop of e(p, q) without the final exponentiation"""

    @abstractmethod
    def fp12_mul(self, a: Fp12Element, b: Fp12Element) -> Fp12Element:
        pass

    @abstractmethod
    def final_exponentiate(self, f: Fp12Element) -> Fp12Element:
        pass

    def fp12_one(self) -> Fp12Element:
        return Fp12Element(g00=1)

    def multi_miller_loop(self, pairs: Iterable[Tuple[G1Point, G2Point]]) -> Fp12Element:
        acc = self.fp12_one()
        for p, q in pairs:
            acc = self.fp12_mul(acc, self.miller_loop(p, q))
        return acc

    def pairing_check(self, pairs: Iterable[Tuple[G1Point, G2Point]]) -> bool:
        """True when the product of e(p, q) over all pairs is one"""
        return self.final_exponentiate(self.multi_miller_loop(pairs)) == self.fp12_one()

    # -- field helpers ----------------------------------------------------

    def check_coord(self, value: int, field: str) -> int:
        if value < 0 or value >= self.field_modulus:
            raise FormatError(f"coordinate {value} is outside the base field", stage="decode", field=field)
        return value

    def _fp_sqrt(self, a: int):
        p = self.field_modulus
        root = pow(a % p, (p + 1) // 4, p)
        return root if root * root % p == a % p else None

    def fq2_mul(self, a, b):
        p = self.field_modulus
        return ((a[0] * b[0] - a[1] * b[1]) % p, (a[0] * b[1] + a[1] * b[0]) % p)

    def fq2_inv(self, a):
        p = self.field_modulus
        norm_inv = pow((a[0] * a[0] + a[1] * a[1]) % p, p - 2, p)
        return (a[0] * norm_inv % p, -a[1] * norm_inv % p)

    def _fq2_sqrt(self, a):
        p = self.field_modulus
        a0, a1 = a[0] % p, a[1] % p
        if a1 == 0:
            root = self._fp_sqrt(a0)
            if root is not None:
                return (root, 0)
            root = self._fp_sqrt(-a0 % p)
            return None if root is None else (0, root)
        norm = self._fp_sqrt(a0 * a0 + a1 * a1)
        if norm is None:
            return None
        half = pow(2, p - 2, p)
        x0 = self._fp_sqrt((a0 + norm) * half)
        if x0 is None:
            x0 = self._fp_sqrt((a0 - norm) * half)
        if x0 is None or x0 == 0:
            return None
        x1 = a1 * pow(2 * x0, p - 2, p) % p
        return (x0, x1) if self.fq2_mul((x0, x1), (x0, x1)) == (a0, a1) else None

    def twist_b(self) -> Tuple[int, int]:
        return self.fq2_mul((self.b_coeff, 0), self.fq2_inv(self.xi))

    def _fp_is_greatest(self, y: int) -> bool:
        return y > (self.field_modulus - y) % self.field_modulus

    def _fq2_is_greatest(self, y: Tuple[int, int]) -> bool:
        p = self.field_modulus
        negated = ((-y[0]) % p, (-y[1]) % p)
        return (y[1], y[0]) > (negated[1], negated[0])

    # -- decompression ----------------------------------------------------

    def _g1_decompress(self, x: int, greatest: bool) -> G1Point:
        p = self.field_modulus
        y = self._fp_sqrt((pow(x, 3, p) + self.b_coeff) % p)
        if y is None:
            raise CurveError(f"no G1 point with x = {x}", stage="decompress", field="x")
        if self._fp_is_greatest(y) != greatest:
            y = (p - y) % p
        return G1Point(x, y)

    def _g2_decompress(self, x: Tuple[int, int], greatest: bool) -> G2Point:
        p = self.field_modulus
        x_cubed = self.fq2_mul(self.fq2_mul(x, x), x)
        tb = self.twist_b()
        y = self._fq2_sqrt(((x_cubed[0] + tb[0]) % p, (x_cubed[1] + tb[1]) % p))
        if y is None:
            raise CurveError(f"no G2 point with x = {x}", stage="decompress", field="x")
        if self._fq2_is_greatest(y) != greatest:
            y = ((-y[0]) % p, (-y[1]) % p)
        return G2Point(x[0], x[1], y[0], y[1])

    @staticmethod
    def _split_flags(buf: bytes) -> Tuple[bytes, int]:
        flags = buf[-1] & FLAG_MASK
        return buf[:-1] + bytes([buf[-1] & ~FLAG_MASK & 0xFF]), flags

    @staticmethod
    def _expect_length(buf: bytes, size: int, what: str) -> None:
        if len(buf) != size:
            raise BufferLengthError(f"expected {size} bytes, got {len(buf)}", stage="decode", field=what)

    def _flag_to_greatest(self, flags: int, what: str) -> bool:
        if flags == FLAG_POSITIVE:
            return False
        if flags == FLAG_NEGATIVE:
            return True
        raise InvalidFlagError(f"unsupported flag bits {flags:#04x}", stage="decode", field=what)

    def g1_from_compressed(self, buf: bytes) -> G1Point:
        self._expect_length(buf, FQ_BYTES, "g1")
        body, flags = self._split_flags(buf)
        if flags == FLAG_INFINITY:
            return G1Point.infinity()
        x = self.check_coord(int.from_bytes(body, "little"), "g1.x")
        return self._g1_decompress(x, self._flag_to_greatest(flags, "g1"))

    def g2_from_compressed(self, buf: bytes) -> G2Point:
        self._expect_length(buf, 2 * FQ_BYTES, "g2")
        body, flags = self._split_flags(buf)
        if flags == FLAG_INFINITY:
            return G2Point.infinity()
        x_c0 = self.check_coord(int.from_bytes(body[:FQ_BYTES], "little"), "g2.x_c0")
        x_c1 = self.check_coord(int.from_bytes(body[FQ_BYTES:], "little"), "g2.x_c1")
        return self._g2_decompress((x_c0, x_c1), self._flag_to_greatest(flags, "g2"))

    def g1_from_uncompressed(self, buf: bytes) -> G1Point:
        self._expect_length(buf, 2 * FQ_BYTES, "g1")
        # no flag bits: only the all-zero encoding is infinity
        x = int.from_bytes(buf[:FQ_BYTES], "little")
        y = int.from_bytes(buf[FQ_BYTES:], "little")
        return self.g1_from_coords(x, y)

    def g2_from_uncompressed(self, buf: bytes) -> G2Point:
        self._expect_length(buf, 4 * FQ_BYTES, "g2")
        coords = [
            int.from_bytes(buf[i:i + FQ_BYTES], "little")
            for i in range(0, 4 * FQ_BYTES, FQ_BYTES)
        ]
        return self.g2_from_coords(*coords)

    def g1_to_compressed(self, point: G1Point) -> bytes:
        if point.is_infinity:
            return bytes(FQ_BYTES - 1) + bytes([FLAG_INFINITY])
        flag = FLAG_NEGATIVE if self._fp_is_greatest(point.y) else FLAG_POSITIVE
        out = bytearray(point.x.to_bytes(FQ_BYTES, "little"))
        out[-1] |= flag
        return bytes(out)

    def g2_to_compressed(self, point: G2Point) -> bytes:
        if point.is_infinity:
            return bytes(2 * FQ_BYTES - 1) + bytes([FLAG_INFINITY])
        flag = FLAG_NEGATIVE if self._fq2_is_greatest(point.y) else FLAG_POSITIVE
        out = bytearray(point.x_c0.to_bytes(FQ_BYTES, "little") + point.x_c1.to_bytes(FQ_BYTES, "little"))
        out[-1] |= flag
        return bytes(out)


class Bn254Curve(CurveBackend):
    """BN254 (alt_bn128) backend on top of py_ecc.bn128"""

    field_modulus = field_modulus
    curve_order = curve_order

    @staticmethod
    def _g1(point: G1Point):
        if point.is_infinity:
            return None
        return (FQ(point.x), FQ(point.y))

    @staticmethod
    def _g2(point: G2Point):
        if point.is_infinity:
            return None
        return (FQ2([point.x_c0, point.x_c1]), FQ2([point.y_c0, point.y_c1]))

    @staticmethod
    def _from_g1(pt) -> G1Point:
        if pt is None:
            return G1Point.infinity()
        return G1Point(_n(pt[0]), _n(pt[1]))

    def _fq12(self, element: Fp12Element):
        return FQ12(fp12_to_flat(element, self.field_modulus))

    def _from_fq12(self, f) -> Fp12Element:
        return fp12_from_flat([_n(c) for c in f.coeffs], self.field_modulus)

    def g1_from_coords(self, x: int, y: int) -> G1Point:
        self.check_coord(x, "g1.x")
        self.check_coord(y, "g1.y")
        point = G1Point(x, y)
        if not point.is_infinity and not is_on_curve(self._g1(point), b):
            raise CurveError(f"({x}, {y}) is not on G1", stage="decode", field="g1")
        return point

    def g2_from_coords(self, x_c0: int, x_c1: int, y_c0: int, y_c1: int) -> G2Point:
        for name, value in (("x_c0", x_c0), ("x_c1", x_c1), ("y_c0", y_c0), ("y_c1", y_c1)):
            self.check_coord(value, "g2." + name)
        point = G2Point(x_c0, x_c1, y_c0, y_c1)
        if not point.is_infinity and not is_on_curve(self._g2(point), b2):
            raise CurveError("point is not on the G2 twist", stage="decode", field="g2")
        return point

    def g1_negate(self, point: G1Point) -> G1Point:
        return self._from_g1(neg(self._g1(point)))

    def g1_add(self, p: G1Point, q: G1Point) -> G1Point:
        return self._from_g1(add(self._g1(p), self._g1(q)))

    def g1_mul(self, point: G1Point, scalar: int) -> G1Point:
        scalar %= self.curve_order
        if scalar == 0 or point.is_infinity:
            return G1Point.infinity()
        return self._from_g1(multiply(self._g1(point), scalar))

    def _raw_miller_loop(self, p: G1Point, q: G2Point):
        """Optimal ate loop over the twisted point, stopping before the final exponentiation"""
        if p.is_infinity or q.is_infinity:
            return FQ12.one()
        Q = twist(self._g2(q))
        P = cast_point_to_fq12(self._g1(p))
        R = Q
        f = FQ12.one()
        for i in range(log_ate_loop_count, -1, -1):
            f = f * f * linefunc(R, R, P)
            R = double(R)
            if ate_loop_count & (2 ** i):
                f = f * linefunc(R, Q, P)
                R = add(R, Q)
        Q1 = (Q[0] ** field_modulus, Q[1] ** field_modulus)
        nQ2 = (Q1[0] ** field_modulus, -(Q1[1] ** field_modulus))
        f = f * linefunc(R, Q1, P)
        R = add(R, Q1)
        return f * linefunc(R, nQ2, P)

    def miller_loop(self, p: G1Point, q: G2Point) -> Fp12Element:
        return self._from_fq12(self._raw_miller_loop(p, q))

    def fp12_mul(self, a: Fp12Element, b: Fp12Element) -> Fp12Element:
        return self._from_fq12(self._fq12(a) * self._fq12(b))

    def final_exponentiate(self, f: Fp12Element) -> Fp12Element:
        return self._from_fq12(final_exponentiate(self._fq12(f)))

    def pairing_check(self, pairs: Iterable[Tuple[G1Point, G2Point]]) -> bool:
        acc = FQ12.one()
        for p, q in pairs:
            acc = acc * self._raw_miller_loop(p, q)
        logger.debug("running final exponentiation")
        return final_exponentiate(acc) == FQ12.one()
