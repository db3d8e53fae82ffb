"""
Command line entry points.

    proof-conversion snarkjs <proof.json> <public.json> <vk.json> <out_proof.json> <out_vk.json>
    proof-conversion gnark <proof.bin> <out_proof.json> <out_vk.json> [--vk PATH]
    proof-conversion aux-witness <proof.json> <vk.json> <out_mlo.json> <out_aux.json>

``convert-from-snarkjs`` and ``convert-from-gnark`` run the first two
sub-commands directly.
"""

import argparse
import logging
import sys
from typing import List, Optional

from . import __version__
from .config import VK_BLOB_NAME, VK_ENV_VAR
from .converter import compute_aux_witness_files, convert_gnark, convert_snarkjs
from .types import ConversionError, Layout


def _layout(value: str) -> Layout:
    try:
        return Layout(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"unknown layout {value!r} (choose fixed or keyed)") from None


def _add_common(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("-v", "--verbose", action="store_true", help="log progress at DEBUG level")


def _add_snarkjs(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("proof", help="snarkjs proof.json")
    parser.add_argument("public", help="snarkjs public.json")
    parser.add_argument("vk", help="snarkjs verification_key.json")
    parser.add_argument("out_proof", help="converted proof output")
    parser.add_argument("out_vk", help="converted verification key output")
    parser.add_argument("--layout", type=_layout, default=None, help="fixed (default) or keyed")
    parser.add_argument("--verify", action="store_true", help="re-verify the proof before writing")
    _add_common(parser)


def _add_gnark(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("proof", help="gnark proof container (selector, proof, public inputs)")
    parser.add_argument("out_proof", help="converted proof output")
    parser.add_argument("out_vk", help="converted verification key output")
    parser.add_argument(
        "--vk",
        default=None,
        help=f"compressed VerifyingKey blob; required unless ${VK_ENV_VAR} is set or data/{VK_BLOB_NAME} is installed",
    )
    parser.add_argument("--layout", type=_layout, default=None, help="keyed (default) or fixed")
    _add_common(parser)


def _add_aux_witness(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("proof", help="converted proof.json")
    parser.add_argument("vk", help="converted vk.json")
    parser.add_argument("out_mlo", help="Miller-loop output")
    parser.add_argument("out_aux", help="auxiliary witness output")
    parser.add_argument(
        "--layout", type=_layout, default=Layout.KEYED, help="layout the documents were written with (default keyed)"
    )
    _add_common(parser)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="proof-conversion",
        description="Convert Groth16 proofs and verification keys to the canonical BN254 verifier schema",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    commands = parser.add_subparsers(dest="command", required=True)
    _add_snarkjs(commands.add_parser("snarkjs", help="convert snarkjs JSON"))
    _add_gnark(commands.add_parser("gnark", help="convert a gnark binary proof"))
    _add_aux_witness(commands.add_parser("aux-witness", help="Miller-loop output and residue witness"))
    return parser


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _run_snarkjs(args: argparse.Namespace) -> None:
    print("🔄 Converting snarkjs proof...")
    result = convert_snarkjs(
        args.proof, args.public, args.vk, args.out_proof, args.out_vk, layout=args.layout, verify=args.verify
    )
    print(f"✅ Proof written to {args.out_proof}")
    print(f"✅ Verification key written to {args.out_vk}")
    print(f"📊 {result.public_inputs} public inputs, {result.layout.value} layout")


def _run_gnark(args: argparse.Namespace) -> None:
    print("🔄 Converting gnark proof...")
    result = convert_gnark(args.proof, args.out_proof, args.out_vk, vk_path=args.vk, layout=args.layout)
    print("✅ Proof verified against the verification key")
    print(f"✅ Proof written to {args.out_proof}")
    print(f"✅ Verification key written to {args.out_vk}")
    print(f"📊 {result.public_inputs} public inputs, {result.layout.value} layout")


def _run_aux_witness(args: argparse.Namespace) -> None:
    print("🔄 Computing Miller-loop output and auxiliary witness...")
    witness = compute_aux_witness_files(args.proof, args.vk, args.out_mlo, args.out_aux, layout=args.layout)
    print(f"✅ Miller-loop output written to {args.out_mlo}")
    print(f"✅ Auxiliary witness written to {args.out_aux} (shift power {witness.shift_power})")


COMMANDS = {
    "snarkjs": _run_snarkjs,
    "gnark": _run_gnark,
    "aux-witness": _run_aux_witness,
}


def _run(command: str, args: argparse.Namespace) -> int:
    _configure_logging(args.verbose)
    try:
        COMMANDS[command](args)
    except ConversionError as e:
        print(f"❌ {e}", file=sys.stderr)
        return 1
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    return _run(args.command, args)


def snarkjs_main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="convert-from-snarkjs", description="Convert snarkjs JSON")
    _add_snarkjs(parser)
    return _run("snarkjs", parser.parse_args(argv))


def gnark_main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="convert-from-gnark", description="Convert a gnark binary proof")
    _add_gnark(parser)
    return _run("gnark", parser.parse_args(argv))


if __name__ == "__main__":
    sys.exit(main())
