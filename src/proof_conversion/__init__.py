"""
Proof Conversion

Converts Groth16 proofs and verification keys produced by snarkjs and gnark
into the canonical BN254 verifier JSON schema.
"""

from .converter import compute_aux_witness_files, convert, convert_gnark, convert_snarkjs
from .curve import Bn254Curve, CurveBackend
from .types import (
    BufferLengthError,
    ConversionError,
    ConversionIOError,
    CurveError,
    FormatError,
    InvalidFlagError,
    InvariantError,
    Layout,
    VerificationError,
    WitnessError,
)
from .witness import W27, ResidueWitness

__version__ = "0.1.0"

__all__ = [
    "Bn254Curve",
    "CurveBackend",
    "Layout",
    "ResidueWitness",
    "W27",
    "convert",
    "convert_snarkjs",
    "convert_gnark",
    "compute_aux_witness_files",
    "ConversionError",
    "FormatError",
    "InvalidFlagError",
    "BufferLengthError",
    "InvariantError",
    "CurveError",
    "VerificationError",
    "WitnessError",
    "ConversionIOError",
]
