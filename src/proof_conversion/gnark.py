"""
Decoder for gnark's binary Groth16 encodings.

gnark writes every coordinate big-endian and keeps its point flags in the top
two bits of the FIRST byte. The curve backend expects little-endian chunks
with its own flag convention in the LAST byte, so each buffer has its flag
bits remapped through ``GNARK_TO_TARGET_FLAGS`` and its bytes reversed chunk
by chunk before being handed over.

    gnark  10  smallest y   ->  00
    gnark  11  largest y    ->  10
    gnark  01  infinity     ->  01

Field elements of Fq2 are written imaginary part first (A1 || A0), which the
full reversal of a 64-byte chunk turns into c0 || c1.
"""

import logging
from typing import List, Tuple

from .assembler import PointSource
from .curve import FLAG_INFINITY, FLAG_MASK, FLAG_NEGATIVE, FLAG_POSITIVE, CurveBackend
from .files import PathLike, read_bytes
from .types import (
    BufferLengthError,
    G1Point,
    G2Point,
    Groth16Proof,
    InvalidFlagError,
    Layout,
    VerificationKey,
)

logger = logging.getLogger(__name__)

GNARK_MASK = 0b11 << 6
GNARK_UNCOMPRESSED = 0b00 << 6
GNARK_COMPRESSED_POSITIVE = 0b10 << 6
GNARK_COMPRESSED_NEGATIVE = 0b11 << 6
GNARK_COMPRESSED_INFINITY = 0b01 << 6

GNARK_TO_TARGET_FLAGS = {
    GNARK_COMPRESSED_POSITIVE: FLAG_POSITIVE,
    GNARK_COMPRESSED_NEGATIVE: FLAG_NEGATIVE,
    GNARK_COMPRESSED_INFINITY: FLAG_INFINITY,
}
TARGET_TO_GNARK_FLAGS = {target: source for source, target in GNARK_TO_TARGET_FLAGS.items()}

G1_COMPRESSED_SIZE = 32
G2_COMPRESSED_SIZE = 64
G1_UNCOMPRESSED_SIZE = 64
G2_UNCOMPRESSED_SIZE = 128

PROOF_SIZE = 2 * G1_UNCOMPRESSED_SIZE + G2_UNCOMPRESSED_SIZE
SELECTOR_SIZE = 4
SCALAR_SIZE = 32

# Compressed VerifyingKey layout
VK_ALPHA = slice(0, 32)
VK_BETA_G2 = slice(64, 128)
VK_GAMMA_G2 = slice(128, 192)
VK_DELTA_G2 = slice(224, 288)
VK_K_COUNT = slice(288, 292)
VK_HEADER_SIZE = 292


def convert_endianness(data: bytes, chunk_size: int) -> bytes:
    """Reverse the bytes inside each chunk, keeping chunk order"""
    if chunk_size <= 0 or len(data) % chunk_size:
        raise BufferLengthError(
            f"{len(data)} bytes is not a multiple of {chunk_size}", stage="decode", field="chunk"
        )
    return b"".join(data[i:i + chunk_size][::-1] for i in range(0, len(data), chunk_size))


def gnark_flag_to_target(msb: int) -> int:
    """Rewrite the flag bits of a compressed point's first byte"""
    flag = msb & GNARK_MASK
    try:
        target = GNARK_TO_TARGET_FLAGS[flag]
    except KeyError:
        raise InvalidFlagError(f"unrecognized gnark flag bits {flag:#04x}", stage="decode", field="flags") from None
    return (msb & ~GNARK_MASK & 0xFF) | target


def gnark_compressed_to_target(buf: bytes) -> bytes:
    out = bytearray(buf)
    out[0] = gnark_flag_to_target(out[0])
    return convert_endianness(bytes(out), len(out))


def _expect(buf: bytes, size: int, what: str) -> None:
    if len(buf) != size:
        raise BufferLengthError(f"expected {size} bytes, got {len(buf)}", stage="decode", field=what)


def decompress_g1(curve: CurveBackend, buf: bytes) -> G1Point:
    _expect(buf, G1_COMPRESSED_SIZE, "g1")
    return curve.g1_from_compressed(gnark_compressed_to_target(buf))


def decompress_g2(curve: CurveBackend, buf: bytes) -> G2Point:
    _expect(buf, G2_COMPRESSED_SIZE, "g2")
    return curve.g2_from_compressed(gnark_compressed_to_target(buf))


def _check_uncompressed_flags(buf: bytes, what: str) -> None:
    if buf[0] & GNARK_MASK != GNARK_UNCOMPRESSED:
        raise InvalidFlagError(
            f"flag bits {buf[0] & GNARK_MASK:#04x} on an uncompressed point", stage="decode", field=what
        )


def decode_g1(curve: CurveBackend, buf: bytes) -> G1Point:
    _expect(buf, G1_UNCOMPRESSED_SIZE, "g1")
    if not any(buf):
        return G1Point.infinity()
    _check_uncompressed_flags(buf, "g1")
    return curve.g1_from_uncompressed(convert_endianness(buf, G1_COMPRESSED_SIZE))


def decode_g2(curve: CurveBackend, buf: bytes) -> G2Point:
    _expect(buf, G2_UNCOMPRESSED_SIZE, "g2")
    if not any(buf):
        return G2Point.infinity()
    _check_uncompressed_flags(buf, "g2")
    return curve.g2_from_uncompressed(convert_endianness(buf, G2_COMPRESSED_SIZE))


def compress_g1(curve: CurveBackend, point: G1Point) -> bytes:
    return _target_to_gnark(curve.g1_to_compressed(point))


def compress_g2(curve: CurveBackend, point: G2Point) -> bytes:
    return _target_to_gnark(curve.g2_to_compressed(point))


def _target_to_gnark(buf: bytes) -> bytes:
    out = bytearray(buf[::-1])
    out[0] = (out[0] & ~FLAG_MASK & 0xFF) | TARGET_TO_GNARK_FLAGS[out[0] & FLAG_MASK]
    return bytes(out)


def encode_g1(point: G1Point) -> bytes:
    if point.is_infinity:
        return bytes(G1_UNCOMPRESSED_SIZE)
    return point.x.to_bytes(32, "big") + point.y.to_bytes(32, "big")


def encode_g2(point: G2Point) -> bytes:
    if point.is_infinity:
        return bytes(G2_UNCOMPRESSED_SIZE)
    return b"".join(
        value.to_bytes(32, "big") for value in (point.x_c1, point.x_c0, point.y_c1, point.y_c0)
    )


# -- proofs -----------------------------------------------------------------

def split_proof_container(data: bytes) -> Tuple[bytes, List[int]]:
    """
    Split a proof container into the raw gnark proof and its public inputs.

    Layout: 4-byte verifier selector, 256-byte proof (A, B, C uncompressed),
    u32 big-endian input count, then 32-byte big-endian inputs.
    """
    header = SELECTOR_SIZE + PROOF_SIZE
    if len(data) < header + 4:
        raise BufferLengthError(
            f"proof container is {len(data)} bytes, need at least {header + 4}", stage="read", field="proof"
        )
    proof = data[SELECTOR_SIZE:header]
    count = int.from_bytes(data[header:header + 4], "big")
    expected = header + 4 + count * SCALAR_SIZE
    if len(data) != expected:
        raise BufferLengthError(
            f"proof container declares {count} public inputs and should be {expected} bytes, got {len(data)}",
            stage="read",
            field="public_inputs",
        )
    offset = header + 4
    inputs = [
        int.from_bytes(data[offset + i * SCALAR_SIZE:offset + (i + 1) * SCALAR_SIZE], "big")
        for i in range(count)
    ]
    return proof, inputs


def load_proof_points(curve: CurveBackend, proof: bytes) -> Tuple[G1Point, G2Point, G1Point]:
    _expect(proof, PROOF_SIZE, "proof")
    a = decode_g1(curve, proof[:64])
    b = decode_g2(curve, proof[64:192])
    c = decode_g1(curve, proof[192:256])
    return a, b, c


def encode_proof_container(proof: Groth16Proof, selector: bytes = bytes(SELECTOR_SIZE)) -> bytes:
    _expect(selector, SELECTOR_SIZE, "selector")
    body = encode_g1(proof.a) + encode_g2(proof.b) + encode_g1(proof.c)
    inputs = b"".join(value.to_bytes(SCALAR_SIZE, "big") for value in proof.public_inputs)
    return selector + body + len(proof.public_inputs).to_bytes(4, "big") + inputs


# -- verification keys ------------------------------------------------------

def vk_commitment_count(blob: bytes) -> int:
    """Number of K (input commitment) points declared by a VerifyingKey blob"""
    if len(blob) < VK_HEADER_SIZE:
        raise BufferLengthError(
            f"verification key is {len(blob)} bytes, need at least {VK_HEADER_SIZE}", stage="read", field="vk"
        )
    count = int.from_bytes(blob[VK_K_COUNT], "big")
    if len(blob) < VK_HEADER_SIZE + count * G1_COMPRESSED_SIZE:
        raise BufferLengthError(
            f"verification key declares {count} K points but is only {len(blob)} bytes",
            stage="read",
            field="vk.K",
        )
    return count


def load_verification_key(curve: CurveBackend, blob: bytes) -> VerificationKey:
    count = vk_commitment_count(blob)
    logger.debug("decompressing verification key with %d K points", count)
    offsets = range(VK_HEADER_SIZE, VK_HEADER_SIZE + count * G1_COMPRESSED_SIZE, G1_COMPRESSED_SIZE)
    return VerificationKey(
        alpha=decompress_g1(curve, blob[VK_ALPHA]),
        beta=decompress_g2(curve, blob[VK_BETA_G2]),
        gamma=decompress_g2(curve, blob[VK_GAMMA_G2]),
        delta=decompress_g2(curve, blob[VK_DELTA_G2]),
        ic=tuple(decompress_g1(curve, blob[o:o + G1_COMPRESSED_SIZE]) for o in offsets),
    )


def encode_verification_key(curve: CurveBackend, vk: VerificationKey) -> bytes:
    """Compressed VerifyingKey blob; the unused G1 beta/delta slots hold infinity"""
    g1_placeholder = compress_g1(curve, G1Point.infinity())
    return b"".join([
        compress_g1(curve, vk.alpha),
        g1_placeholder,
        compress_g2(curve, vk.beta),
        compress_g2(curve, vk.gamma),
        g1_placeholder,
        compress_g2(curve, vk.delta),
        len(vk.ic).to_bytes(4, "big"),
        b"".join(compress_g1(curve, point) for point in vk.ic),
    ])


class GnarkSource(PointSource):
    """Point source over a gnark proof container and a compressed VerifyingKey blob"""

    name = "gnark"
    default_layout = Layout.KEYED

    def __init__(self, curve: CurveBackend, container: bytes, vk_blob: bytes):
        super().__init__(curve)
        self.proof_bytes, self.inputs = split_proof_container(container)
        self.vk_blob = vk_blob

    @classmethod
    def from_files(cls, curve: CurveBackend, proof_path: PathLike, vk_path: PathLike) -> "GnarkSource":
        logger.debug("reading gnark proof %s with verification key %s", proof_path, vk_path)
        return cls(curve, read_bytes(proof_path, "proof"), read_bytes(vk_path, "vk"))

    def public_inputs(self) -> List[int]:
        return list(self.inputs)

    def declared_public_count(self) -> int:
        # gnark keys carry no separate input count
        return self.commitment_count() - 1

    def commitment_count(self) -> int:
        return vk_commitment_count(self.vk_blob)

    def decode_proof(self) -> Tuple[G1Point, G2Point, G1Point]:
        return load_proof_points(self.curve, self.proof_bytes)

    def decode_verification_key(self) -> VerificationKey:
        return load_verification_key(self.curve, self.vk_blob)
