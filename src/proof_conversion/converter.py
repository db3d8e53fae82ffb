"""
End-to-end conversion pipelines.

Each pipeline validates and decodes everything in memory first and only then
writes its outputs, so a failed run leaves no partial documents behind.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from .assembler import PointSource, assemble
from .config import VK_ENV_VAR, resolve_vk_path
from .curve import Bn254Curve, CurveBackend
from .files import PathLike, dumps, read_json, write_atomically
from .gnark import GnarkSource
from .serializer import (
    aux_witness_document,
    fp12_to_json,
    load_proof_document,
    load_vk_document,
    proof_document,
    vk_document,
)
from .snarkjs import SnarkjsSource
from .transform import to_canonical_proof
from .types import AuxWitness, ConversionIOError, Fp12Element, Layout
from .verify import verify_proof
from .witness import AuxWitnessRoutine, ResidueWitness, build_verification_key, multi_miller_loop_output

logger = logging.getLogger(__name__)


@dataclass
class ConversionResult:
    """Rendered documents plus what the CLI reports about them"""
    proof: Dict[str, Any]
    vk: Dict[str, Any]
    public_inputs: int
    layout: Layout


def convert(
    source: PointSource, curve: CurveBackend, layout: Optional[Layout] = None, verify: bool = False
) -> ConversionResult:
    """Assemble, optionally re-verify, transform and render one source"""
    layout = layout or source.default_layout
    proof, vk = assemble(source, layout)
    if verify:
        verify_proof(curve, vk, proof)
        logger.info("%s proof verifies", source.name)
    canonical_proof = to_canonical_proof(curve, proof, layout)
    canonical_vk = build_verification_key(curve, vk, layout)
    return ConversionResult(
        proof=proof_document(canonical_proof),
        vk=vk_document(canonical_vk),
        public_inputs=len(proof.public_inputs),
        layout=layout,
    )


def convert_snarkjs(
    proof_path: PathLike,
    public_path: PathLike,
    vk_path: PathLike,
    out_proof: PathLike,
    out_vk: PathLike,
    layout: Optional[Layout] = None,
    curve: Optional[CurveBackend] = None,
    verify: bool = False,
) -> ConversionResult:
    curve = curve or Bn254Curve()
    source = SnarkjsSource.from_files(curve, proof_path, public_path, vk_path)
    result = convert(source, curve, layout, verify=verify)
    write_atomically({out_proof: dumps(result.proof), out_vk: dumps(result.vk)})
    return result


def convert_gnark(
    proof_path: PathLike,
    out_proof: PathLike,
    out_vk: PathLike,
    vk_path: Optional[PathLike] = None,
    layout: Optional[Layout] = None,
    curve: Optional[CurveBackend] = None,
) -> ConversionResult:
    """
    Convert a gnark proof container, re-verifying it against the key first.

    The key blob comes from ``vk_path`` or, when omitted, from
    ``config.resolve_vk_path``.
    """
    curve = curve or Bn254Curve()
    resolved = resolve_vk_path(str(vk_path) if vk_path else None)
    if not resolved.exists():
        raise ConversionIOError(
            f"no gnark verification key at {resolved}; pass --vk or set {VK_ENV_VAR}",
            stage="read",
            field="vk",
        )
    source = GnarkSource.from_files(curve, proof_path, resolved)
    result = convert(source, curve, layout, verify=True)
    write_atomically({out_proof: dumps(result.proof), out_vk: dumps(result.vk)})
    return result


def compute_aux_witness(
    proof_doc: Dict[str, Any],
    vk_doc: Dict[str, Any],
    curve: Optional[CurveBackend] = None,
    routine: Optional[AuxWitnessRoutine] = None,
    layout: Layout = Layout.KEYED,
) -> Tuple[Fp12Element, AuxWitness]:
    """Miller-loop output of a converted proof/key pair and its residue witness"""
    curve = curve or Bn254Curve()
    routine = routine or ResidueWitness()
    proof = load_proof_document(curve, proof_doc, layout)
    vk = load_vk_document(curve, vk_doc, layout)
    mlo = multi_miller_loop_output(curve, proof, vk)
    routine.assert_membership(mlo)
    return mlo, routine.compute_auxiliary_witness(mlo)


def compute_aux_witness_files(
    proof_path: PathLike,
    vk_path: PathLike,
    out_mlo: PathLike,
    out_aux: PathLike,
    curve: Optional[CurveBackend] = None,
    routine: Optional[AuxWitnessRoutine] = None,
    layout: Layout = Layout.KEYED,
) -> AuxWitness:
    mlo, witness = compute_aux_witness(
        read_json(proof_path, "proof"), read_json(vk_path, "vk"), curve=curve, routine=routine, layout=layout
    )
    write_atomically({out_mlo: dumps(fp12_to_json(mlo)), out_aux: dumps(aux_witness_document(witness))})
    return witness
