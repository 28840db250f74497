"""Hashing, address derivation and 32-byte ABI word helpers."""

from __future__ import annotations

from typing import Union

from Crypto.Hash import keccak

AddressLike = Union[bytes, bytearray, str]

ADDRESS_LENGTH = 20
WORD_LENGTH = 32
ZERO_ADDRESS = bytes(ADDRESS_LENGTH)
_MAX_UINT256 = (1 << 256) - 1
_MAX_NONCE = (1 << 64) - 1


def keccak256(data: bytes) -> bytes:
    """Return the Keccak-256 digest of ``data``."""
    digest = keccak.new(digest_bits=256)
    digest.update(bytes(data))
    return digest.digest()


KECCAK_EMPTY = keccak256(b"")


def to_address(address: AddressLike) -> bytes:
    """Normalise a 20-byte address given as bytes or a hex string."""
    if isinstance(address, str):
        text = address[2:] if address[:2].lower() == "0x" else address
        try:
            raw = bytes.fromhex(text)
        except ValueError as exc:
            raise ValueError(f"invalid address: {address!r}") from exc
    else:
        raw = bytes(address)
    if len(raw) != ADDRESS_LENGTH:
        raise ValueError(f"address must be {ADDRESS_LENGTH} bytes, got {len(raw)}")
    return raw


def checksum_address(address: AddressLike) -> str:
    """Return the mixed-case checksummed hex form of an address."""
    lower = to_address(address).hex()
    hashed = keccak256(lower.encode("ascii")).hex()
    chars = (
        char.upper() if char.isalpha() and int(nibble, 16) >= 8 else char
        for char, nibble in zip(lower, hashed)
    )
    return "0x" + "".join(chars)


def _rlp_string(payload: bytes) -> bytes:
    if len(payload) == 1 and payload[0] < 0x80:
        return payload
    if len(payload) >= 56:
        raise ValueError("payload too long for a short RLP string")
    return bytes([0x80 + len(payload)]) + payload


def create_address(caller: AddressLike, nonce: int) -> bytes:
    """Address of a contract created with CREATE by ``caller`` at ``nonce``."""
    if not 0 <= nonce <= _MAX_NONCE:
        raise ValueError(f"nonce out of range: {nonce}")
    nonce_bytes = nonce.to_bytes((nonce.bit_length() + 7) // 8, "big")
    payload = _rlp_string(to_address(caller)) + _rlp_string(nonce_bytes)
    encoded = bytes([0xC0 + len(payload)]) + payload
    return keccak256(encoded)[12:]


def create2_address(caller: AddressLike, salt: Union[bytes, int], init_code: bytes) -> bytes:
    """Address of a contract created with CREATE2."""
    salt_word = uint_to_word(salt) if isinstance(salt, int) else bytes(salt)
    if len(salt_word) != WORD_LENGTH:
        raise ValueError(f"salt must be {WORD_LENGTH} bytes, got {len(salt_word)}")
    preimage = b"\xff" + to_address(caller) + salt_word + keccak256(init_code)
    return keccak256(preimage)[12:]


def address_to_word(address: AddressLike) -> bytes:
    """ABI-encode an address as a left-padded 32-byte word."""
    return to_address(address).rjust(WORD_LENGTH, b"\x00")


def uint_to_word(value: int) -> bytes:
    """ABI-encode an unsigned 256-bit integer as a big-endian word."""
    if not 0 <= value <= _MAX_UINT256:
        raise ValueError(f"value does not fit in uint256: {value}")
    return value.to_bytes(WORD_LENGTH, "big")