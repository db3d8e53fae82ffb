"""
Tests for the command line entry points
"""

import json

import pytest

from proof_conversion.cli import build_parser, gnark_main, main, snarkjs_main
from proof_conversion.config import VK_ENV_VAR
from proof_conversion.gnark import encode_proof_container, encode_verification_key
from proof_conversion.testing import snarkjs_documents
from proof_conversion.types import Layout


@pytest.fixture
def snarkjs_files(tmp_path, groth16_fixture):
    proof, vk = groth16_fixture
    names = ("proof.json", "public.json", "verification_key.json")
    paths = []
    for name, document in zip(names, snarkjs_documents(proof, vk)):
        path = tmp_path / name
        path.write_text(json.dumps(document), encoding="utf-8")
        paths.append(str(path))
    return paths


class TestParser:
    """Test argument parsing"""

    def test_layout_option(self):
        """--layout accepts fixed and keyed"""
        args = build_parser().parse_args(["snarkjs", "a", "b", "c", "d", "e", "--layout", "keyed"])
        assert args.layout is Layout.KEYED
        assert args.command == "snarkjs"

    def test_unknown_layout(self):
        """Anything else is a usage error"""
        with pytest.raises(SystemExit) as exc_info:
            build_parser().parse_args(["snarkjs", "a", "b", "c", "d", "e", "--layout", "wide"])
        assert exc_info.value.code == 2

    def test_missing_arguments(self):
        """Sub-commands need all their positional paths"""
        with pytest.raises(SystemExit):
            build_parser().parse_args(["aux-witness", "proof.json"])


class TestCommands:
    """Test running the sub-commands"""

    def test_snarkjs(self, tmp_path, snarkjs_files, capsys):
        """Success prints status lines and exits 0"""
        out_proof, out_vk = str(tmp_path / "p.json"), str(tmp_path / "vk.json")
        assert main(["snarkjs", *snarkjs_files, out_proof, out_vk]) == 0
        captured = capsys.readouterr()
        assert "✅" in captured.out
        assert "3 public inputs, fixed layout" in captured.out
        assert json.loads((tmp_path / "p.json").read_text(encoding="utf-8"))["pi5"] == "0"

    def test_snarkjs_legacy_script(self, tmp_path, snarkjs_files):
        """convert-from-snarkjs takes the same arguments"""
        assert snarkjs_main([*snarkjs_files, str(tmp_path / "p.json"), str(tmp_path / "vk.json")]) == 0

    def test_error_exit_code(self, tmp_path, capsys):
        """Conversion errors go to stderr with exit status 1"""
        missing = str(tmp_path / "missing.json")
        assert main(["snarkjs", missing, missing, missing, str(tmp_path / "a"), str(tmp_path / "b")]) == 1
        captured = capsys.readouterr()
        assert captured.err.startswith("❌ [io] read.proof:")

    def test_gnark(self, tmp_path, curve, groth16_fixture, capsys):
        """convert-from-gnark with an explicit key"""
        proof, vk = groth16_fixture
        (tmp_path / "proof.bin").write_bytes(encode_proof_container(proof))
        (tmp_path / "vk.bin").write_bytes(encode_verification_key(curve, vk))
        code = gnark_main([
            str(tmp_path / "proof.bin"), str(tmp_path / "p.json"), str(tmp_path / "vk.json"),
            "--vk", str(tmp_path / "vk.bin"),
        ])
        assert code == 0
        assert "Proof verified" in capsys.readouterr().out

    def test_gnark_without_key(self, tmp_path, monkeypatch, capsys):
        """Without --vk or the environment variable the missing key is reported"""
        monkeypatch.delenv(VK_ENV_VAR, raising=False)
        monkeypatch.setattr("proof_conversion.config.packaged_vk_path", lambda: tmp_path / "absent.bin")
        code = gnark_main([str(tmp_path / "proof.bin"), str(tmp_path / "p.json"), str(tmp_path / "vk.json")])
        assert code == 1
        err = capsys.readouterr().err
        assert "--vk" in err and VK_ENV_VAR in err

    def test_aux_witness_layout_option(self):
        """aux-witness reads keyed documents unless told otherwise"""
        args = build_parser().parse_args(["aux-witness", "a", "b", "c", "d"])
        assert args.layout is Layout.KEYED
        args = build_parser().parse_args(["aux-witness", "a", "b", "c", "d", "--layout", "fixed"])
        assert args.layout is Layout.FIXED
