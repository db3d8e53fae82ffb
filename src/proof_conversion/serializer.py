"""
Target-schema JSON rendering and reading.

Every field element is a base-10 string; zero is "0". Proof documents are
keyed negA, B, C, pi1..; verification key documents alpha, beta, gamma,
delta, alpha_beta, w27, ic0...
"""

from typing import Any, Callable, Dict, List

from .config import FIXED_COMMITMENT_POINTS, FIXED_PUBLIC_INPUTS
from .curve import CurveBackend
from .snarkjs import parse_decimal
from .types import (
    FP12_COMPONENTS,
    AuxWitness,
    CanonicalProof,
    CanonicalVerificationKey,
    Fp12Element,
    FormatError,
    G1Point,
    G2Point,
    Layout,
    Slots,
)


def field_to_str(value: int) -> str:
    return str(value)


def g1_to_json(point: G1Point) -> Dict[str, str]:
    return {"x": field_to_str(point.x), "y": field_to_str(point.y)}


def g2_to_json(point: G2Point) -> Dict[str, str]:
    return {
        "x_c0": field_to_str(point.x_c0),
        "x_c1": field_to_str(point.x_c1),
        "y_c0": field_to_str(point.y_c0),
        "y_c1": field_to_str(point.y_c1),
    }


def fp12_to_json(element: Fp12Element) -> Dict[str, str]:
    return {name: field_to_str(value) for name, value in element.components()}


def render_slots(
    slots: Slots, layout: Layout, prefix: str, capacity: int, default: Any, encode: Callable[[Any], Any]
) -> Dict[str, Any]:
    """Slots -> {prefix<key>: value}; the fixed layout always has `capacity` entries"""
    values = dict(slots.items())
    if layout is Layout.FIXED:
        keys = range(slots.first_key, slots.first_key + capacity)
    else:
        keys = range(slots.first_key, slots.first_key + len(slots))
    return {f"{prefix}{key}": encode(values.get(key, default)) for key in keys}


def proof_document(proof: CanonicalProof) -> Dict[str, Any]:
    document = {
        "negA": g1_to_json(proof.neg_a),
        "B": g2_to_json(proof.b),
        "C": g1_to_json(proof.c),
    }
    document.update(
        render_slots(proof.public_inputs, proof.layout, "pi", FIXED_PUBLIC_INPUTS, 0, field_to_str)
    )
    return document


def vk_document(vk: CanonicalVerificationKey) -> Dict[str, Any]:
    document = {
        "alpha": g1_to_json(vk.alpha),
        "beta": g2_to_json(vk.beta),
        "gamma": g2_to_json(vk.gamma),
        "delta": g2_to_json(vk.delta),
        "alpha_beta": fp12_to_json(vk.alpha_beta),
        "w27": fp12_to_json(vk.w27),
    }
    document.update(
        render_slots(vk.ic, vk.layout, "ic", FIXED_COMMITMENT_POINTS, G1Point.infinity(), g1_to_json)
    )
    return document


def aux_witness_document(witness: AuxWitness) -> Dict[str, Any]:
    return {"c": fp12_to_json(witness.c), "shift_power": str(witness.shift_power)}


# -- readers ------------------------------------------------------------------

def _get(document: Any, key: str, what: str) -> Any:
    if not isinstance(document, dict) or key not in document:
        raise FormatError(f"missing field {key!r}", stage="load", field=f"{what}.{key}")
    return document[key]


def _field(document: Any, key: str, what: str) -> int:
    return parse_decimal(_get(document, key, what), f"{what}.{key}")


def g1_from_json(curve: CurveBackend, document: Any, what: str) -> G1Point:
    return curve.g1_from_coords(_field(document, "x", what), _field(document, "y", what))


def g2_from_json(curve: CurveBackend, document: Any, what: str) -> G2Point:
    return curve.g2_from_coords(*(_field(document, name, what) for name in ("x_c0", "x_c1", "y_c0", "y_c1")))


def fp12_from_json(document: Any, what: str) -> Fp12Element:
    return Fp12Element.from_components({name: _field(document, name, what) for name in FP12_COMPONENTS})


def _keyed(document: Dict[str, Any], prefix: str, first_key: int) -> List[Any]:
    values = []
    key = first_key
    while f"{prefix}{key}" in document:
        values.append(document[f"{prefix}{key}"])
        key += 1
    return values


def _check_layout(layout: Layout, count: int, capacity: int, what: str) -> None:
    if layout is Layout.FIXED and count != capacity:
        raise FormatError(
            f"fixed layout needs {capacity} {what} slots, document has {count}", stage="load", field=what
        )


def load_proof_document(curve: CurveBackend, document: Any, layout: Layout = Layout.KEYED) -> CanonicalProof:
    """
    Read a rendered proof back.

    Documents do not record their layout, so the caller names it. Every pi slot
    present is loaded, padded fixed-layout slots included, and comes back as
    zero. FIXED additionally requires exactly the fixed number of slots.
    """
    inputs = [
        parse_decimal(value, f"proof.pi{i + 1}") for i, value in enumerate(_keyed(document, "pi", 1))
    ]
    _check_layout(layout, len(inputs), FIXED_PUBLIC_INPUTS, "proof.pi")
    return CanonicalProof(
        neg_a=g1_from_json(curve, _get(document, "negA", "proof"), "proof.negA"),
        b=g2_from_json(curve, _get(document, "B", "proof"), "proof.B"),
        c=g1_from_json(curve, _get(document, "C", "proof"), "proof.C"),
        public_inputs=Slots(tuple(inputs), first_key=1),
        layout=layout,
    )


def load_vk_document(curve: CurveBackend, document: Any, layout: Layout = Layout.KEYED) -> CanonicalVerificationKey:
    ic = [g1_from_json(curve, point, f"vk.ic{i}") for i, point in enumerate(_keyed(document, "ic", 0))]
    if not ic:
        raise FormatError("verification key has no ic0", stage="load", field="vk.ic0")
    _check_layout(layout, len(ic), FIXED_COMMITMENT_POINTS, "vk.ic")
    return CanonicalVerificationKey(
        alpha=g1_from_json(curve, _get(document, "alpha", "vk"), "vk.alpha"),
        beta=g2_from_json(curve, _get(document, "beta", "vk"), "vk.beta"),
        gamma=g2_from_json(curve, _get(document, "gamma", "vk"), "vk.gamma"),
        delta=g2_from_json(curve, _get(document, "delta", "vk"), "vk.delta"),
        alpha_beta=fp12_from_json(_get(document, "alpha_beta", "vk"), "vk.alpha_beta"),
        w27=fp12_from_json(_get(document, "w27", "vk"), "vk.w27"),
        ic=Slots(tuple(ic), first_key=0),
        layout=layout,
    )
