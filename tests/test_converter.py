"""
End-to-end tests for the conversion pipelines
"""

import json
import os
from pathlib import Path

import pytest

from proof_conversion.config import VK_ENV_VAR
from proof_conversion.converter import compute_aux_witness_files, convert_gnark, convert_snarkjs
from proof_conversion.files import write_atomically
from proof_conversion.gnark import encode_proof_container, encode_verification_key
from proof_conversion.testing import FAKE_G1, FAKE_G2, FakeWitness, snarkjs_documents, snarkjs_g1, snarkjs_g2
from proof_conversion.types import (
    ConversionIOError,
    G1Point,
    Groth16Proof,
    InvariantError,
    Layout,
    VerificationError,
)


def write_json(path: Path, document) -> Path:
    path.write_text(json.dumps(document), encoding="utf-8")
    return path


def write_snarkjs(directory: Path, proof, public, vk):
    return (
        write_json(directory / "proof.json", proof),
        write_json(directory / "public.json", public),
        write_json(directory / "verification_key.json", vk),
    )


class TestSnarkjsPipeline:
    """Test snarkjs JSON -> target JSON"""

    def test_three_inputs_fixed_layout(self, tmp_path, curve, groth16_fixture):
        """3 inputs, nPublic 3, 4 IC points: pi4 and pi5 are "0" """
        proof, vk = groth16_fixture
        paths = write_snarkjs(tmp_path, *snarkjs_documents(proof, vk))
        out_proof, out_vk = tmp_path / "converted_proof.json", tmp_path / "converted_vk.json"

        result = convert_snarkjs(*paths, out_proof, out_vk, curve=curve)

        assert result.public_inputs == 3
        assert result.layout is Layout.FIXED
        document = json.loads(out_proof.read_text(encoding="utf-8"))
        assert [document[f"pi{i}"] for i in range(1, 6)] == ["1", "2", "3", "0", "0"]
        assert document["negA"] == {"x": str(proof.a.x), "y": str(curve.g1_negate(proof.a).y)}
        vk_doc = json.loads(out_vk.read_text(encoding="utf-8"))
        assert vk_doc["ic3"] == {"x": str(vk.ic[3].x), "y": str(vk.ic[3].y)}
        assert vk_doc["ic4"] == {"x": "0", "y": "0"}
        assert vk_doc["ic5"] == {"x": "0", "y": "0"}
        assert vk_doc["w27"]["g00"] == "0"

    def test_alpha_beta_independent_of_proof(self, tmp_path, curve, groth16_fixture):
        """Two proofs against one key render the same alpha_beta"""
        proof, vk = groth16_fixture
        other = Groth16Proof(proof.c, proof.b, proof.a, proof.public_inputs)
        outputs = []
        for name, candidate in (("first", proof), ("second", other)):
            directory = tmp_path / name
            directory.mkdir()
            paths = write_snarkjs(directory, *snarkjs_documents(candidate, vk))
            convert_snarkjs(*paths, directory / "p.json", directory / "vk.json", curve=curve)
            outputs.append((directory / "vk.json").read_text(encoding="utf-8"))
        assert outputs[0] == outputs[1]

    def test_missing_commitment_point(self, tmp_path, curve, groth16_fixture):
        """nPublic 3 with 3 IC points is rejected and nothing is written"""
        proof, vk = groth16_fixture
        proof_json, public, vk_json = snarkjs_documents(proof, vk)
        vk_json["IC"] = vk_json["IC"][:3]
        proof_json["pi_a"] = ["1", "3", "1"]
        paths = write_snarkjs(tmp_path, proof_json, public, vk_json)
        out_proof, out_vk = tmp_path / "converted_proof.json", tmp_path / "converted_vk.json"

        with pytest.raises(InvariantError):
            convert_snarkjs(*paths, out_proof, out_vk, curve=curve)

        assert not out_proof.exists()
        assert not out_vk.exists()

    def test_keyed_override(self, tmp_path, curve, groth16_fixture):
        """--layout keyed drops the padding"""
        proof, vk = groth16_fixture
        paths = write_snarkjs(tmp_path, *snarkjs_documents(proof, vk))
        convert_snarkjs(*paths, tmp_path / "p.json", tmp_path / "vk.json", layout=Layout.KEYED, curve=curve)
        document = json.loads((tmp_path / "p.json").read_text(encoding="utf-8"))
        assert "pi4" not in document

    def test_unreadable_input(self, tmp_path, curve):
        """Missing files are I/O errors"""
        with pytest.raises(ConversionIOError):
            convert_snarkjs(
                tmp_path / "nope.json", tmp_path / "public.json", tmp_path / "vk.json",
                tmp_path / "a.json", tmp_path / "b.json", curve=curve,
            )

    def test_unwritable_output(self, tmp_path, curve, groth16_fixture):
        """A missing output directory fails both outputs"""
        proof, vk = groth16_fixture
        paths = write_snarkjs(tmp_path, *snarkjs_documents(proof, vk))
        out_proof = tmp_path / "converted_proof.json"
        with pytest.raises(ConversionIOError):
            convert_snarkjs(*paths, out_proof, tmp_path / "missing" / "vk.json", curve=curve)
        assert not out_proof.exists()
        assert sorted(p.name for p in tmp_path.iterdir()) == ["proof.json", "public.json", "verification_key.json"]


class TestGnarkPipeline:
    """Test gnark binary -> target JSON"""

    def test_converts_and_verifies(self, tmp_path, curve, groth16_fixture):
        """A valid container converts with the keyed layout"""
        proof, vk = groth16_fixture
        container = tmp_path / "proof.bin"
        container.write_bytes(encode_proof_container(proof))
        blob = tmp_path / "vk.bin"
        blob.write_bytes(encode_verification_key(curve, vk))

        result = convert_gnark(container, tmp_path / "p.json", tmp_path / "vk.json", vk_path=blob, curve=curve)

        assert result.layout is Layout.KEYED
        document = json.loads((tmp_path / "p.json").read_text(encoding="utf-8"))
        assert [key for key in document if key.startswith("pi")] == ["pi1", "pi2", "pi3"]
        vk_doc = json.loads((tmp_path / "vk.json").read_text(encoding="utf-8"))
        assert [key for key in vk_doc if key.startswith("ic")] == ["ic0", "ic1", "ic2", "ic3"]

    def test_failed_verification_writes_nothing(self, tmp_path, curve, groth16_fixture):
        """A proof that does not verify produces no output"""
        proof, vk = groth16_fixture
        tampered = Groth16Proof(proof.a, proof.b, proof.c, (1, 2, 5))
        container = tmp_path / "proof.bin"
        container.write_bytes(encode_proof_container(tampered))
        blob = tmp_path / "vk.bin"
        blob.write_bytes(encode_verification_key(curve, vk))
        out_proof, out_vk = tmp_path / "p.json", tmp_path / "vk.json"

        with pytest.raises(VerificationError):
            convert_gnark(container, out_proof, out_vk, vk_path=blob, curve=curve)

        assert not out_proof.exists()
        assert not out_vk.exists()

    def test_key_from_environment(self, tmp_path, monkeypatch, curve, groth16_fixture):
        """PROOF_CONVERSION_VK is used when no path is given"""
        proof, vk = groth16_fixture
        container = tmp_path / "proof.bin"
        container.write_bytes(encode_proof_container(proof))
        blob = tmp_path / "env_vk.bin"
        blob.write_bytes(encode_verification_key(curve, vk))
        monkeypatch.setenv(VK_ENV_VAR, str(blob))

        convert_gnark(container, tmp_path / "p.json", tmp_path / "vk.json", curve=curve)
        assert (tmp_path / "vk.json").exists()

    def test_missing_key(self, tmp_path, curve):
        """No key blob anywhere is an I/O error"""
        with pytest.raises(ConversionIOError) as exc_info:
            convert_gnark(tmp_path / "proof.bin", tmp_path / "p.json", tmp_path / "vk.json",
                          vk_path=tmp_path / "absent.bin", curve=curve)
        assert exc_info.value.field == "vk"


class TestAuxWitnessPipeline:
    """Test converted documents -> Miller-loop output and witness"""

    def test_fake_round_trip(self, tmp_path, fake_curve):
        """Converted documents feed the witness routine"""
        proof = {
            "pi_a": snarkjs_g1(FAKE_G1[0]),
            "pi_b": snarkjs_g2(FAKE_G2[0]),
            "pi_c": snarkjs_g1(FAKE_G1[1]),
        }
        vk = {
            "nPublic": "1",
            "vk_alpha_1": snarkjs_g1(FAKE_G1[2]),
            "vk_beta_2": snarkjs_g2(FAKE_G2[1]),
            "vk_gamma_2": snarkjs_g2(FAKE_G2[0]),
            "vk_delta_2": snarkjs_g2(FAKE_G2[1]),
            "IC": [snarkjs_g1(FAKE_G1[3]), snarkjs_g1(G1Point.infinity())],
        }
        paths = write_snarkjs(tmp_path, proof, ["9"], vk)
        convert_snarkjs(*paths, tmp_path / "p.json", tmp_path / "vk.json", curve=fake_curve)

        routine = FakeWitness(shift_power=2)
        witness = compute_aux_witness_files(
            tmp_path / "p.json", tmp_path / "vk.json", tmp_path / "mlo.json", tmp_path / "aux.json",
            curve=fake_curve, routine=routine,
        )

        assert witness.shift_power == 2
        assert routine.membership_calls == routine.witness_calls
        mlo = json.loads((tmp_path / "mlo.json").read_text(encoding="utf-8"))
        aux = json.loads((tmp_path / "aux.json").read_text(encoding="utf-8"))
        assert aux["shift_power"] == "2"
        assert aux["c"] == mlo
        assert list(mlo) == ["g00", "g01", "g10", "g11", "g20", "g21", "h00", "h01", "h10", "h11", "h20", "h21"]


class TestAtomicWrite:
    """Test that outputs are written together or not at all"""

    def test_directory_target(self, tmp_path):
        """A directory in place of the second output leaves the first unwritten"""
        out_proof, out_vk = tmp_path / "proof.json", tmp_path / "vk.json"
        out_vk.mkdir()
        with pytest.raises(ConversionIOError):
            write_atomically({out_proof: "{}\n", out_vk: "{}\n"})
        assert not out_proof.exists()
        assert sorted(p.name for p in tmp_path.iterdir()) == ["vk.json"]

    def test_failed_rename_restores_previous_output(self, tmp_path, monkeypatch):
        """An earlier output is put back when a later rename fails"""
        out_proof, out_vk = tmp_path / "proof.json", tmp_path / "vk.json"
        out_proof.write_text("old\n", encoding="utf-8")
        replace = os.replace

        def failing_replace(src, dst):
            if Path(dst) == out_vk:
                raise PermissionError(13, "Permission denied", str(dst))
            replace(src, dst)

        monkeypatch.setattr(os, "replace", failing_replace)
        with pytest.raises(ConversionIOError):
            write_atomically({out_proof: "new\n", out_vk: "{}\n"})
        monkeypatch.undo()

        assert out_proof.read_text(encoding="utf-8") == "old\n"
        assert sorted(p.name for p in tmp_path.iterdir()) == ["proof.json"]

    def test_replaces_existing_outputs(self, tmp_path):
        """Previous outputs are overwritten and no backups are left"""
        out_proof, out_vk = tmp_path / "proof.json", tmp_path / "vk.json"
        out_proof.write_text("old\n", encoding="utf-8")
        write_atomically({out_proof: "new\n", out_vk: "{}\n"})
        assert out_proof.read_text(encoding="utf-8") == "new\n"
        assert sorted(p.name for p in tmp_path.iterdir()) == ["proof.json", "vk.json"]
