"""Signature domain model.

A Signature is an attestation by one user, under one role, that a
progress unit has been trained and checked.

Constraints:
- Immutable once created; the only permitted change is deletion
- At most one signature per (unit, role) and per (unit, signer)
- Only the signer may delete their own signature
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

import blake3

from training_signoff.domain.models.role import Role


@dataclass(frozen=True, eq=True)
class Signature:
    """A sign-off attached to a progress unit.

    Attributes:
        signature_id: Unique identifier for this signature.
        unit_id: The progress unit this signature is attached to.
        role: Role the signer signed under.
        signer_id: Identity of the user who signed.
        signed_at: When the signature was recorded (UTC timezone-aware).
        content_hash: BLAKE3 hash of the canonical content (32 bytes).
    """

    signature_id: UUID
    unit_id: UUID
    role: Role
    signer_id: UUID
    signed_at: datetime
    content_hash: bytes

    def __post_init__(self) -> None:
        """Validate signature fields after initialization.

        Raises:
            ValueError: If any field validation fails.
        """
        if self.signed_at.tzinfo is None:
            raise ValueError("signed_at must be timezone-aware (UTC)")

        if len(self.content_hash) != 32:
            raise ValueError(
                f"content_hash must be 32 bytes (BLAKE3), got {len(self.content_hash)}"
            )

    @classmethod
    def create(
        cls,
        signature_id: UUID,
        unit_id: UUID,
        role: Role,
        signer_id: UUID,
        signed_at: datetime,
    ) -> Signature:
        """Build a signature, computing its content hash."""
        return cls(
            signature_id=signature_id,
            unit_id=unit_id,
            role=role,
            signer_id=signer_id,
            signed_at=signed_at,
            content_hash=cls.compute_content_hash(unit_id, role, signer_id, signed_at),
        )

    @staticmethod
    def compute_content_hash(
        unit_id: UUID, role: Role, signer_id: UUID, signed_at: datetime
    ) -> bytes:
        """Compute BLAKE3 hash for signature content.

        Canonical format: unit_id|role|signer_id|signed_at_iso

        Args:
            unit_id: The progress unit being signed.
            role: Role the signature is made under.
            signer_id: The signing user.
            signed_at: When the signature is being recorded.

        Returns:
            32-byte BLAKE3 hash of the canonical content.
        """
        content = (
            f"{unit_id}|{role.value}|{signer_id}|{signed_at.isoformat()}"
        ).encode("utf-8")
        return blake3.blake3(content).digest()

    def verify_content_hash(self) -> bool:
        """Return True if content_hash matches the signature's fields."""
        expected = self.compute_content_hash(
            self.unit_id, self.role, self.signer_id, self.signed_at
        )
        return self.content_hash == expected

    def to_dict(self) -> dict:
        """Serialize to a JSON-friendly dictionary.

        WARNING: Never use asdict() - it breaks UUID/datetime serialization.
        """
        return {
            "signature_id": str(self.signature_id),
            "unit_id": str(self.unit_id),
            "role": self.role.value,
            "signer_id": str(self.signer_id),
            "signed_at": self.signed_at.isoformat(),
            "content_hash": self.content_hash.hex(),
        }
