"""
Setup script for proof-conversion
"""
from pathlib import Path

from setuptools import setup, find_packages

# Read version from file if it exists
def get_version():
    version_file = Path(__file__).parent / "VERSION"
    if version_file.exists():
        return version_file.read_text(encoding="utf-8").strip()
    return "0.1.0"

# Read requirements
def get_requirements():
    req_file = Path(__file__).parent / "requirements.txt"
    if req_file.exists():
        return [
            line.strip()
            for line in req_file.read_text(encoding="utf-8").splitlines()
            if line.strip() and not line.startswith("#")
        ]
    return ['py_ecc>=7.0.0']

setup(
    name="proof-conversion",
    version=get_version(),
    description="Convert snarkjs and gnark Groth16 proofs into the canonical BN254 verifier JSON schema",
    long_description=(Path(__file__).parent / "README.md").read_text(encoding="utf-8"),
    long_description_content_type="text/markdown",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    package_data={"proof_conversion": ["data/*.bin"]},
    include_package_data=True,
    zip_safe=False,
    python_requires=">=3.8",
    install_requires=get_requirements(),
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-cov>=4.0.0",
        ],
        "test": [
            "pytest>=7.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "proof-conversion=proof_conversion.cli:main",
            "convert-from-snarkjs=proof_conversion.cli:snarkjs_main",
            "convert-from-gnark=proof_conversion.cli:gnark_main",
        ]
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Security :: Cryptography",
    ],
    keywords="groth16 bn254 snarkjs gnark pairing zero-knowledge",
)
