"""
Tests for proof assembly and the canonical transform
"""

import pytest

from proof_conversion.assembler import assemble, validate_counts
from proof_conversion.snarkjs import SnarkjsSource
from proof_conversion.testing import FAKE_G1, FAKE_G2, snarkjs_g1, snarkjs_g2
from proof_conversion.transform import commitment_slots, public_input_slots, to_canonical_proof
from proof_conversion.types import (
    FormatError,
    G1Point,
    Groth16Proof,
    InvariantError,
    Layout,
    Slots,
)


def fake_documents(inputs, n_public=None, ic_count=None):
    """snarkjs documents over FakeCurve points"""
    n_public = len(inputs) if n_public is None else n_public
    ic_count = len(inputs) + 1 if ic_count is None else ic_count
    proof = {
        "pi_a": snarkjs_g1(FAKE_G1[0]),
        "pi_b": snarkjs_g2(FAKE_G2[0]),
        "pi_c": snarkjs_g1(FAKE_G1[1]),
    }
    vk = {
        "nPublic": n_public,
        "vk_alpha_1": snarkjs_g1(FAKE_G1[2]),
        "vk_beta_2": snarkjs_g2(FAKE_G2[1]),
        "vk_gamma_2": snarkjs_g2(FAKE_G2[0]),
        "vk_delta_2": snarkjs_g2(FAKE_G2[1]),
        "IC": [snarkjs_g1(FAKE_G1[i % len(FAKE_G1)]) for i in range(ic_count)],
    }
    return proof, [str(x) for x in inputs], vk


class TestCountValidation:
    """Test the public-input / commitment-point invariants"""

    def test_matching_counts(self, fake_curve):
        """3 inputs, nPublic 3, 4 IC points"""
        source = SnarkjsSource(fake_curve, *fake_documents([1, 2, 3]))
        assert validate_counts(source, Layout.FIXED) == [1, 2, 3]

    def test_npublic_mismatch(self, fake_curve):
        """nPublic must equal the number of public inputs"""
        source = SnarkjsSource(fake_curve, *fake_documents([1, 2, 3], n_public=2, ic_count=4))
        with pytest.raises(InvariantError) as exc_info:
            validate_counts(source, Layout.FIXED)
        assert exc_info.value.field == "public_inputs"

    def test_ic_mismatch_rejected_before_decoding(self, fake_curve):
        """nPublic 3 with only 3 IC points fails without touching any point"""
        proof, public, vk = fake_documents([1, 2, 3], ic_count=3)
        proof["pi_a"] = ["1", "3", "1"]  # off the curve
        source = SnarkjsSource(fake_curve, proof, public, vk)
        with pytest.raises(InvariantError) as exc_info:
            assemble(source, Layout.FIXED)
        assert exc_info.value.field == "ic"

    def test_fixed_overflow(self, fake_curve):
        """More than five inputs do not fit the fixed layout"""
        source = SnarkjsSource(fake_curve, *fake_documents([1, 2, 3, 4, 5, 6]))
        with pytest.raises(InvariantError):
            validate_counts(source, Layout.FIXED)
        assert len(validate_counts(source, Layout.KEYED)) == 6

    def test_input_above_order(self, fake_curve):
        """Public inputs must be scalars"""
        source = SnarkjsSource(fake_curve, *fake_documents([1, 124]))
        with pytest.raises(FormatError) as exc_info:
            validate_counts(source, Layout.FIXED)
        assert exc_info.value.field == "public[1]"


class TestAssemble:
    """Test decoding after validation"""

    def test_assemble(self, fake_curve):
        """Points and inputs end up in the proof and key"""
        proof, vk = assemble(SnarkjsSource(fake_curve, *fake_documents([5, 6])), Layout.FIXED)
        assert proof.a == FAKE_G1[0]
        assert proof.b == FAKE_G2[0]
        assert proof.public_inputs == (5, 6)
        assert vk.public_input_count == 2
        assert vk.alpha == FAKE_G1[2]


class TestTransform:
    """Test the canonical transform"""

    def test_negates_a_only(self, fake_curve):
        """negA = -A; B and C pass through"""
        proof = Groth16Proof(FAKE_G1[0], FAKE_G2[0], FAKE_G1[1], (7,))
        canonical = to_canonical_proof(fake_curve, proof, Layout.FIXED)
        assert canonical.neg_a == G1Point(1, 101)
        assert fake_curve.g1_negate(canonical.neg_a) == proof.a
        assert canonical.b == proof.b
        assert canonical.c == proof.c
        assert canonical.public_inputs.items() == [(1, 7)]

    def test_slots_keys(self):
        """pi slots start at 1, ic slots at 0"""
        assert public_input_slots([4, 5], Layout.KEYED).items() == [(1, 4), (2, 5)]
        assert commitment_slots([FAKE_G1[0]], Layout.FIXED).items() == [(0, FAKE_G1[0])]
        assert len(Slots()) == 0

    def test_slot_capacity(self):
        """Fixed capacity applies to commitment points too"""
        with pytest.raises(InvariantError):
            commitment_slots([FAKE_G1[0]] * 7, Layout.FIXED)
        assert len(commitment_slots([FAKE_G1[0]] * 7, Layout.KEYED)) == 7
