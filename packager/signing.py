"""Detached Ed25519 signatures backed by PyCryptodomex.

Keys are raw bytes in the NaCl layout so they interoperate with libsodium and
tweetnacl tooling: a private key is the 32-byte seed followed by the 32-byte
public key, a public key is 32 bytes and a signature is 64 bytes. A bare
32-byte seed is accepted wherever a private key is expected.
"""

from __future__ import annotations

import os
from typing import Optional, Tuple

from Cryptodome.PublicKey import ECC
from Cryptodome.Signature import eddsa

from .constants import PRIVATE_KEY_SIZE, PUBLIC_KEY_SIZE, SEED_SIZE, SIGNATURE_SIZE
from .errors import KeyFormatError


def _public_raw(key: ECC.EccKey) -> bytes:
    return key.public_key().export_key(format="raw")


def _load_private(private_key: bytes) -> ECC.EccKey:
    if len(private_key) not in (SEED_SIZE, PRIVATE_KEY_SIZE):
        raise KeyFormatError(
            f"Ed25519 private key must be {SEED_SIZE} or {PRIVATE_KEY_SIZE} bytes, got {len(private_key)}"
        )
    try:
        key = eddsa.import_private_key(bytes(private_key[:SEED_SIZE]))
    except ValueError as e:
        raise KeyFormatError(f"invalid Ed25519 private key: {e}") from e
    if len(private_key) == PRIVATE_KEY_SIZE and _public_raw(key) != bytes(private_key[SEED_SIZE:]):
        raise KeyFormatError("Ed25519 private key does not match its embedded public key")
    return key


def _load_public(public_key: bytes) -> ECC.EccKey:
    if len(public_key) != PUBLIC_KEY_SIZE:
        raise KeyFormatError(f"Ed25519 public key must be {PUBLIC_KEY_SIZE} bytes, got {len(public_key)}")
    try:
        return eddsa.import_public_key(bytes(public_key))
    except ValueError as e:
        raise KeyFormatError(f"invalid Ed25519 public key: {e}") from e


def generate_keypair() -> Tuple[bytes, bytes]:
    """Return ``(public_key, private_key)`` as raw bytes."""
    key = ECC.generate(curve="Ed25519")
    public = _public_raw(key)
    return public, key.seed + public


def derive_public_key(private_key: bytes) -> bytes:
    return _public_raw(_load_private(private_key))


def sign_data(data: bytes, private_key: bytes) -> bytes:
    signer = eddsa.new(_load_private(private_key), "rfc8032")
    return signer.sign(data)


def verify_data(data: bytes, signature: bytes, public_key: bytes) -> bool:
    verifier = eddsa.new(_load_public(public_key), "rfc8032")
    if len(signature) != SIGNATURE_SIZE:
        return False
    try:
        verifier.verify(data, signature)
    except ValueError:
        return False
    return True


def _read(path: str) -> bytes:
    with open(path, "rb") as f:
        return f.read()


def _write(path: str, data: bytes) -> None:
    os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)
    with open(path, "wb") as f:
        f.write(data)


def _resolve_key(key: Optional[bytes], key_path: Optional[str], what: str) -> bytes:
    if key is not None:
        return key
    if key_path:
        return _read(key_path)
    raise ValueError(f"{what} or path to {what} file is required")


def sign_file(
    file_path: str,
    signature_path: str,
    *,
    private_key: Optional[bytes] = None,
    private_key_path: Optional[str] = None,
) -> bytes:
    """Sign the contents of *file_path* and write the detached signature."""
    key = _resolve_key(private_key, private_key_path, "private key")
    signature = sign_data(_read(file_path), key)
    _write(signature_path, signature)
    return signature


def verify_file(
    file_path: str,
    signature_path: str,
    *,
    public_key: Optional[bytes] = None,
    public_key_path: Optional[str] = None,
) -> bool:
    key = _resolve_key(public_key, public_key_path, "public key")
    return verify_data(_read(file_path), _read(signature_path), key)


def generate_and_save_keypair(private_key_path: str, public_key_path: str) -> Tuple[bytes, bytes]:
    public, private = generate_keypair()
    _write(private_key_path, private)
    os.chmod(private_key_path, 0o600)
    _write(public_key_path, public)
    return public, private


def derive_and_save_public_key(private_key_path: str, public_key_path: str) -> bytes:
    public = derive_public_key(_read(private_key_path))
    _write(public_key_path, public)
    return public
