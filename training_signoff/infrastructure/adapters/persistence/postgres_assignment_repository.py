"""PostgreSQL implementation of AssignmentRepositoryProtocol.

Uses SQLAlchemy async sessions with plain SQL (asyncpg driver). The
schema lives in migrations/001_create_training_tables.sql.

Constraints:
- Signature uniqueness is enforced by the unique indexes on
  unit_signatures (unit_id, role) and (unit_id, signer_id); the insert
  uses ON CONFLICT DO NOTHING so racing inserts never raise integrity
  errors, and the loser is told which constraint it hit
- Soft-deleted assignments are filtered in every read and write
- Each write commits in its own transaction

SQL Pattern (signature insert):
    INSERT INTO unit_signatures (...)
    SELECT ... WHERE EXISTS (live unit)
    ON CONFLICT DO NOTHING
    RETURNING id
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from datetime import datetime
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from structlog import get_logger

from training_signoff.domain.errors import (
    AlreadySignedError,
    AssignmentNotFoundError,
    ProgressUnitNotFoundError,
    SignatureNotFoundError,
    SignerAlreadySignedError,
)
from training_signoff.domain.models.assignment import Assignment
from training_signoff.domain.models.curriculum import (
    CurriculumItemRef,
    CurriculumModuleRef,
)
from training_signoff.domain.models.progress_unit import ProgressUnit
from training_signoff.domain.models.role import Role
from training_signoff.domain.models.signature import Signature

logger = get_logger(__name__)

_ASSIGNMENT_COLUMNS = """
    a.id, a.trainee_id, a.module_id, a.module_name, a.training_year,
    a.active_cycle, a.notes, a.deleted, a.created_at
"""

_UNIT_COLUMNS = """
    u.id, u.assignment_id, u.trainee_id, u.item_id, u.item_code, u.item_title,
    u.requires_practical, u.position, u.ojt_done, u.practical_done
"""

_SIGNATURE_COLUMNS = """
    s.id, s.unit_id, s.role, s.signer_id, s.signed_at, s.content_hash
"""


def _row_to_signature(row: Mapping[str, Any]) -> Signature:
    return Signature(
        signature_id=row["id"],
        unit_id=row["unit_id"],
        role=Role(row["role"]),
        signer_id=row["signer_id"],
        signed_at=row["signed_at"],
        content_hash=bytes(row["content_hash"]),
    )


def _row_to_item(row: Mapping[str, Any]) -> CurriculumItemRef:
    return CurriculumItemRef(
        item_id=row["item_id"],
        code=row["item_code"],
        title=row["item_title"],
        requires_practical=row["requires_practical"],
    )


def _row_to_unit(
    row: Mapping[str, Any], signatures: Sequence[Signature] = ()
) -> ProgressUnit:
    return ProgressUnit(
        unit_id=row["id"],
        assignment_id=row["assignment_id"],
        trainee_id=row["trainee_id"],
        curriculum_item=_row_to_item(row),
        ojt_done=row["ojt_done"],
        practical_done=row["practical_done"],
        signatures=tuple(signatures),
    )


class PostgresAssignmentRepository:
    """AssignmentRepositoryProtocol backed by PostgreSQL.

    Attributes:
        _session_factory: SQLAlchemy async session factory for DB access.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        """Initialize the repository.

        Args:
            session_factory: SQLAlchemy async session factory.
        """
        self._session_factory = session_factory

    async def _hydrate(
        self,
        session: AsyncSession,
        assignment_rows: Sequence[Mapping[str, Any]],
    ) -> list[Assignment]:
        """Attach units and signatures to assignment rows (two queries)."""
        if not assignment_rows:
            return []
        ids = [row["id"] for row in assignment_rows]

        unit_result = await session.execute(
            text(f"""
                SELECT {_UNIT_COLUMNS}
                FROM progress_units u
                WHERE u.assignment_id = ANY(:ids)
                ORDER BY u.assignment_id, u.position
            """),
            {"ids": ids},
        )
        unit_rows = unit_result.mappings().all()

        sig_result = await session.execute(
            text(f"""
                SELECT {_SIGNATURE_COLUMNS}
                FROM unit_signatures s
                JOIN progress_units u ON u.id = s.unit_id
                WHERE u.assignment_id = ANY(:ids)
                ORDER BY s.signed_at, s.id
            """),
            {"ids": ids},
        )
        signatures_by_unit: dict[UUID, list[Signature]] = {}
        for row in sig_result.mappings().all():
            signatures_by_unit.setdefault(row["unit_id"], []).append(
                _row_to_signature(row)
            )

        units_by_assignment: dict[UUID, list[Mapping[str, Any]]] = {}
        for row in unit_rows:
            units_by_assignment.setdefault(row["assignment_id"], []).append(row)

        assignments = []
        for row in assignment_rows:
            rows = units_by_assignment.get(row["id"], [])
            assignments.append(
                Assignment(
                    assignment_id=row["id"],
                    trainee_id=row["trainee_id"],
                    curriculum_module=CurriculumModuleRef(
                        module_id=row["module_id"],
                        name=row["module_name"],
                        items=tuple(_row_to_item(u) for u in rows),
                    ),
                    training_year=row["training_year"],
                    active_cycle=row["active_cycle"],
                    notes=row["notes"],
                    progress_units=tuple(
                        _row_to_unit(u, signatures_by_unit.get(u["id"], ())) for u in rows
                    ),
                    deleted=row["deleted"],
                    created_at=row["created_at"],
                )
            )
        return assignments

    async def load_assignment(self, assignment_id: UUID) -> Assignment:
        async with self._session_factory() as session:
            result = await session.execute(
                text(f"""
                    SELECT {_ASSIGNMENT_COLUMNS}
                    FROM training_assignments a
                    WHERE a.id = :assignment_id AND NOT a.deleted
                """),
                {"assignment_id": assignment_id},
            )
            rows = result.mappings().all()
            if not rows:
                raise AssignmentNotFoundError(assignment_id)
            return (await self._hydrate(session, rows))[0]

    async def load_assignments_for_trainee(self, trainee_id: UUID) -> list[Assignment]:
        async with self._session_factory() as session:
            result = await session.execute(
                text(f"""
                    SELECT {_ASSIGNMENT_COLUMNS}
                    FROM training_assignments a
                    WHERE a.trainee_id = :trainee_id AND NOT a.deleted
                    ORDER BY a.created_at, a.id
                """),
                {"trainee_id": trainee_id},
            )
            return await self._hydrate(session, result.mappings().all())

    async def load_assignments_for_module(self, module_id: UUID) -> list[Assignment]:
        async with self._session_factory() as session:
            result = await session.execute(
                text(f"""
                    SELECT {_ASSIGNMENT_COLUMNS}
                    FROM training_assignments a
                    WHERE a.module_id = :module_id AND NOT a.deleted
                    ORDER BY a.created_at, a.id
                """),
                {"module_id": module_id},
            )
            return await self._hydrate(session, result.mappings().all())

    async def load_progress_unit(self, unit_id: UUID) -> ProgressUnit:
        async with self._session_factory() as session:
            return await self._load_unit(session, unit_id)

    async def _load_unit(self, session: AsyncSession, unit_id: UUID) -> ProgressUnit:
        result = await session.execute(
            text(f"""
                SELECT {_UNIT_COLUMNS}
                FROM progress_units u
                JOIN training_assignments a ON a.id = u.assignment_id
                WHERE u.id = :unit_id AND NOT a.deleted
            """),
            {"unit_id": unit_id},
        )
        row = result.mappings().first()
        if row is None:
            raise ProgressUnitNotFoundError(unit_id)

        sig_result = await session.execute(
            text(f"""
                SELECT {_SIGNATURE_COLUMNS}
                FROM unit_signatures s
                WHERE s.unit_id = :unit_id
                ORDER BY s.signed_at, s.id
            """),
            {"unit_id": unit_id},
        )
        return _row_to_unit(
            row, [_row_to_signature(r) for r in sig_result.mappings().all()]
        )

    async def load_signature(self, signature_id: UUID) -> Signature:
        async with self._session_factory() as session:
            result = await session.execute(
                text(f"""
                    SELECT {_SIGNATURE_COLUMNS}
                    FROM unit_signatures s
                    JOIN progress_units u ON u.id = s.unit_id
                    JOIN training_assignments a ON a.id = u.assignment_id
                    WHERE s.id = :signature_id AND NOT a.deleted
                """),
                {"signature_id": signature_id},
            )
            row = result.mappings().first()
            if row is None:
                raise SignatureNotFoundError(signature_id)
            return _row_to_signature(row)

    async def insert_signature_if_absent(
        self,
        unit_id: UUID,
        role: Role,
        signer_id: UUID,
        signed_at: datetime,
    ) -> Signature:
        signature = Signature.create(
            signature_id=uuid4(),
            unit_id=unit_id,
            role=role,
            signer_id=signer_id,
            signed_at=signed_at,
        )
        log = logger.bind(unit_id=str(unit_id), role=role.value)

        params = {
            "id": signature.signature_id,
            "unit_id": unit_id,
            "role": role.value,
            "signer_id": signer_id,
            "signed_at": signed_at,
            "content_hash": signature.content_hash,
        }
        row = None
        async with self._session_factory() as session:
            # A conflicting signature removed before it can be read frees
            # the slot, so the insert is tried once more
            for attempt in range(2):
                result = await session.execute(
                    text("""
                        INSERT INTO unit_signatures
                            (id, unit_id, role, signer_id, signed_at, content_hash)
                        SELECT CAST(:id AS UUID), CAST(:unit_id AS UUID),
                               CAST(:role AS TEXT), CAST(:signer_id AS UUID),
                               CAST(:signed_at AS TIMESTAMPTZ),
                               CAST(:content_hash AS BYTEA)
                        WHERE EXISTS (
                            SELECT 1
                            FROM progress_units u
                            JOIN training_assignments a ON a.id = u.assignment_id
                            WHERE u.id = :unit_id AND NOT a.deleted
                        )
                        ON CONFLICT DO NOTHING
                        RETURNING id
                    """),
                    params,
                )
                inserted = result.scalar()
                await session.commit()
                if inserted is not None:
                    log.debug(
                        "signature_inserted",
                        signature_id=str(signature.signature_id),
                        attempt=attempt + 1,
                    )
                    return signature

                # Nothing inserted: find out which constraint (or the unit) stopped it
                conflict = await session.execute(
                    text("""
                        SELECT id, role, signer_id, signed_at
                        FROM unit_signatures
                        WHERE unit_id = :unit_id
                          AND (role = :role OR signer_id = :signer_id)
                        ORDER BY (role = :role) DESC
                    """),
                    {"unit_id": unit_id, "role": role.value, "signer_id": signer_id},
                )
                row = conflict.mappings().first()
                if row is not None:
                    break
                log.debug("signature_conflict_not_found", attempt=attempt + 1)

        if row is None:
            raise ProgressUnitNotFoundError(unit_id)
        if row["role"] == role.value:
            raise AlreadySignedError(
                unit_id=unit_id,
                role=role,
                existing_signature_id=row["id"],
                signed_at=row["signed_at"],
            )
        raise SignerAlreadySignedError(
            unit_id=unit_id,
            signer_id=signer_id,
            existing_signature_id=row["id"],
        )

    async def delete_signature(self, signature_id: UUID) -> None:
        async with self._session_factory() as session:
            result = await session.execute(
                text("DELETE FROM unit_signatures WHERE id = :signature_id RETURNING id"),
                {"signature_id": signature_id},
            )
            deleted = result.scalar()
            await session.commit()
        if deleted is None:
            raise SignatureNotFoundError(signature_id)

    async def update_active_cycle(self, assignment_id: UUID, active_cycle: bool) -> None:
        async with self._session_factory() as session:
            result = await session.execute(
                text("""
                    UPDATE training_assignments
                    SET active_cycle = :active_cycle
                    WHERE id = :assignment_id AND NOT deleted
                    RETURNING id
                """),
                {"assignment_id": assignment_id, "active_cycle": active_cycle},
            )
            updated = result.scalar()
            await session.commit()
        if updated is None:
            raise AssignmentNotFoundError(assignment_id)

    async def distinct_training_years(self, trainee_id: UUID) -> set[int]:
        async with self._session_factory() as session:
            result = await session.execute(
                text("""
                    SELECT DISTINCT training_year
                    FROM training_assignments
                    WHERE trainee_id = :trainee_id AND NOT deleted
                """),
                {"trainee_id": trainee_id},
            )
            return set(result.scalars().all())

    async def create_assignment(self, assignment: Assignment) -> Assignment:
        async with self._session_factory() as session:
            await session.execute(
                text("""
                    INSERT INTO training_assignments
                        (id, trainee_id, module_id, module_name, training_year,
                         active_cycle, notes, deleted, created_at)
                    VALUES
                        (:id, :trainee_id, :module_id, :module_name, :training_year,
                         :active_cycle, :notes, :deleted, :created_at)
                """),
                {
                    "id": assignment.assignment_id,
                    "trainee_id": assignment.trainee_id,
                    "module_id": assignment.module_id,
                    "module_name": assignment.curriculum_module.name,
                    "training_year": assignment.training_year,
                    "active_cycle": assignment.active_cycle,
                    "notes": assignment.notes,
                    "deleted": assignment.deleted,
                    "created_at": assignment.created_at,
                },
            )
            if assignment.progress_units:
                await session.execute(
                    text("""
                        INSERT INTO progress_units
                            (id, assignment_id, trainee_id, item_id, item_code,
                             item_title, requires_practical, position,
                             ojt_done, practical_done)
                        VALUES
                            (:id, :assignment_id, :trainee_id, :item_id, :item_code,
                             :item_title, :requires_practical, :position,
                             :ojt_done, :practical_done)
                    """),
                    [
                        {
                            "id": unit.unit_id,
                            "assignment_id": assignment.assignment_id,
                            "trainee_id": unit.trainee_id,
                            "item_id": unit.curriculum_item.item_id,
                            "item_code": unit.curriculum_item.code,
                            "item_title": unit.curriculum_item.title,
                            "requires_practical": unit.requires_practical,
                            "position": position,
                            "ojt_done": unit.ojt_done,
                            "practical_done": unit.practical_done,
                        }
                        for position, unit in enumerate(assignment.progress_units)
                    ],
                )
            await session.commit()

        logger.info(
            "assignment_created",
            assignment_id=str(assignment.assignment_id),
            units=len(assignment.progress_units),
        )
        return assignment

    async def update_unit_progress(
        self,
        unit_id: UUID,
        ojt_done: bool | None = None,
        practical_done: bool | None = None,
    ) -> ProgressUnit:
        async with self._session_factory() as session:
            result = await session.execute(
                text("""
                    UPDATE progress_units u
                    SET ojt_done = COALESCE(CAST(:ojt_done AS BOOLEAN), u.ojt_done),
                        practical_done = COALESCE(
                            CAST(:practical_done AS BOOLEAN), u.practical_done
                        )
                    FROM training_assignments a
                    WHERE u.id = :unit_id
                      AND a.id = u.assignment_id
                      AND NOT a.deleted
                    RETURNING u.id
                """),
                {
                    "unit_id": unit_id,
                    "ojt_done": ojt_done,
                    "practical_done": practical_done,
                },
            )
            updated = result.scalar()
            await session.commit()
            if updated is None:
                raise ProgressUnitNotFoundError(unit_id)
            return await self._load_unit(session, unit_id)

    async def update_notes(self, assignment_id: UUID, notes: str) -> Assignment:
        async with self._session_factory() as session:
            result = await session.execute(
                text("""
                    UPDATE training_assignments
                    SET notes = :notes
                    WHERE id = :assignment_id AND NOT deleted
                    RETURNING id
                """),
                {"assignment_id": assignment_id, "notes": notes},
            )
            updated = result.scalar()
            await session.commit()
        if updated is None:
            raise AssignmentNotFoundError(assignment_id)
        return await self.load_assignment(assignment_id)

    async def mark_deleted(self, assignment_id: UUID) -> None:
        async with self._session_factory() as session:
            result = await session.execute(
                text("""
                    UPDATE training_assignments
                    SET deleted = TRUE
                    WHERE id = :assignment_id AND NOT deleted
                    RETURNING id
                """),
                {"assignment_id": assignment_id},
            )
            updated = result.scalar()
            await session.commit()
        if updated is None:
            raise AssignmentNotFoundError(assignment_id)
        logger.info("assignment_soft_deleted", assignment_id=str(assignment_id))
