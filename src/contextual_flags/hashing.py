"""Allocation hashing.

An allocation hash maps ``(salt, identifier)`` to a point in the unit interval.
The same inputs always produce the same point in every process, which is what
makes traffic allocation sticky for a user without storing any state.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING, Protocol, runtime_checkable

import xxhash

if TYPE_CHECKING:
    from contextual_flags.models.variant import Variant

__all__ = [
    "AllocationHash",
    "FnvHashV1",
    "FnvHashV2",
    "XxHashAllocation",
    "compute_variant_hash",
    "fnv1a32",
    "get_allocation_hash",
]

_FNV_OFFSET_BASIS = 0x811C9DC5
_FNV_PRIME = 0x01000193
_UINT32_MAX = 0xFFFFFFFF


@runtime_checkable
class AllocationHash(Protocol):
    """Protocol for functions placing an identifier on the unit interval."""

    name: str

    def get_allocation_spot(self, salt: str, identifier: str) -> float:
        """Return a deterministic point for ``identifier`` under ``salt``.

        Args:
            salt: Per-feature (or per-variant) salt.
            identifier: The allocation unit value, e.g. a user id.

        Returns:
            A float in the closed interval [0, 1]. An implementation may
            return exactly ``1.0``, which only a range closed at 1 contains.
        """
        ...


def _utf16_units(value: str) -> Iterable[int]:
    encoded = value.encode("utf-16-le")
    for index in range(0, len(encoded), 2):
        yield encoded[index] | (encoded[index + 1] << 8)


def fnv1a32(value: str) -> int:
    """32-bit FNV-1a over the UTF-16 code units of ``value``.

    Hashing code units rather than UTF-8 bytes keeps results identical to
    SDKs which hash native 16-bit strings.
    """
    result = _FNV_OFFSET_BASIS
    for unit in _utf16_units(value):
        result ^= unit
        result = (result * _FNV_PRIME) & _UINT32_MAX
    return result


class FnvHashV1:
    """FNV-1a of ``identifier + salt`` bucketed into thousandths."""

    name = "fnv-v1"

    def get_allocation_spot(self, salt: str, identifier: str) -> float:
        return (fnv1a32(identifier + salt) % 1000) / 1000.0

    def __repr__(self) -> str:
        return "FnvHashV1()"


class FnvHashV2:
    """Double FNV-1a of ``salt + identifier`` bucketed into ten-thousandths.

    The inner hash is rendered as a decimal string and hashed again, which
    spreads sequential identifiers better than a single pass. The bucket is
    divided with true division, not integer division, so spots keep their
    fractional part.
    """

    name = "fnv-v2"

    def get_allocation_spot(self, salt: str, identifier: str) -> float:
        inner = fnv1a32(salt + identifier)
        return (fnv1a32(str(inner)) % 10000) / 10000.0

    def __repr__(self) -> str:
        return "FnvHashV2()"


class XxHashAllocation:
    """General purpose allocation hash based on 32-bit xxHash.

    The hashed text is ``f"{salt}_{identifier}"`` encoded as UTF-16LE and the
    digest is scaled by ``2**32 - 1`` so the full closed interval is reachable,
    including ``1.0`` for the maximum digest.
    """

    name = "xxhash"

    def get_allocation_spot(self, salt: str, identifier: str) -> float:
        source = f"{salt}_{identifier}".encode("utf-16-le")
        return xxhash.xxh32_intdigest(source) / _UINT32_MAX

    def __repr__(self) -> str:
        return "XxHashAllocation()"


_HASHES: dict[str, AllocationHash] = {
    XxHashAllocation.name: XxHashAllocation(),
    FnvHashV1.name: FnvHashV1(),
    FnvHashV2.name: FnvHashV2(),
    "1": FnvHashV1(),
    "2": FnvHashV2(),
}


def get_allocation_hash(name: str | int) -> AllocationHash:
    """Look up a built-in allocation hash by name or hash version.

    Args:
        name: ``"xxhash"``, ``"fnv-v1"``, ``"fnv-v2"`` or a version number ``1``/``2``.

    Raises:
        KeyError: If no hash is registered under ``name``.
    """
    key = str(name).strip().lower()
    try:
        return _HASHES[key]
    except KeyError:
        raise KeyError(f"Unknown allocation hash: {name!r}") from None


def compute_variant_hash(variants: Iterable[Variant]) -> int:
    """Stable 64-bit hash of a sequence of selected variants.

    Only the variant ids and their order contribute, so the value can key a
    cache of merged configurations.
    """
    hasher = xxhash.xxh64()
    for variant in variants:
        hasher.update(variant.id.encode("utf-16-le"))
    return hasher.intdigest()
