"""Atomic rename of a chapter's primary key.

A chapter id is referenced from several tables. Renaming it clones the
chapter row under the new id, repoints every referencing row, rewrites
prerequisite lists that mention the old id and finally removes the old
row, all inside the session's single transaction. Any failure rolls the
whole transaction back.
"""

import logging
from datetime import datetime
from typing import Dict, List, Tuple

from sqlalchemy import Column, Table, delete, inspect
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from handbook import db
from handbook.errors import Conflict, HandbookError, NotFound, TransactionAborted, ValidationError
from handbook.models.chapter import Chapter
from handbook.repositories.chapter_repository import ChapterRepository
from handbook.services.run_log import RenameRunLog
from handbook.validation import validate_chapter_id


logger = logging.getLogger(__name__)


def chapter_reference_columns(metadata=None) -> List[Tuple[Table, Column]]:
    """Every (table, column) pair holding a foreign key to a chapter id.

    Read from the metadata so tables added later are migrated without
    touching the rename code.
    """
    metadata = metadata if metadata is not None else db.metadata
    chapter_table = Chapter.__table__
    refs = []
    for table in metadata.sorted_tables:
        if table is chapter_table:
            continue
        for fk in sorted(table.foreign_keys, key=lambda f: f.parent.name):
            if fk.column.table is chapter_table:
                refs.append((table, fk.parent))
    return refs


class ChapterRenamer:
    def __init__(self, session=None, chapter_repository=None, run_logs_path=None):
        self.session = session if session is not None else db.session
        self.chapter_repository = chapter_repository or ChapterRepository(self.session)
        self.run_logs_path = run_logs_path

    def rename_chapter(self, old_id, new_id):
        run_log = RenameRunLog(self.run_logs_path, old_id, new_id)
        context = {"old_id": old_id, "new_id": new_id, "run_id": run_log.run_id}
        logger.info("chapter rename started", extra={"extra_data": context})
        try:
            self._check(old_id, new_id)
            migrated = self._apply(old_id, new_id)
        except HandbookError as exc:
            run_log.fail(exc.message, failed_check=exc.code)
            logger.warning(
                "chapter rename rejected: %s",
                exc.message,
                extra={"extra_data": dict(context, check=exc.code)},
            )
            raise
        except Exception as exc:
            run_log.fail(str(exc), failed_check=type(exc).__name__)
            logger.exception("chapter rename failed", extra={"extra_data": context})
            raise
        run_log.finish(migrated)
        logger.info(
            "chapter rename committed",
            extra={"extra_data": dict(context, rows=sum(migrated.values()))},
        )
        return {"id": new_id, "previous_id": old_id, "migrated": migrated}

    def _check(self, old_id, new_id):
        if not old_id:
            raise ValidationError("Current chapter id is required", field="old_id", code="fields_required")
        if old_id == new_id:
            raise ValidationError(
                "New chapter id must differ from the current one",
                field="new_id",
                code="same_identifier",
            )
        validate_chapter_id(new_id, field="new_id")
        if not self.chapter_repository.exists(old_id):
            raise NotFound(f"Chapter {old_id} not found", field="old_id", code="chapter_not_found")
        if self.chapter_repository.exists(new_id):
            raise Conflict(f"Chapter id {new_id} already exists", field="new_id", code="chapter_exists")

    def _apply(self, old_id, new_id) -> Dict[str, int]:
        try:
            chapter = self.chapter_repository.get_by_id(old_id)
            if chapter is None:
                raise NotFound(f"Chapter {old_id} not found", field="old_id", code="chapter_not_found")
            try:
                self._insert_clone(chapter, new_id)
            except IntegrityError as exc:
                # A concurrent rename or create took new_id after the pre-check.
                raise Conflict(
                    f"Chapter id {new_id} already exists", field="new_id", code="chapter_exists"
                ) from exc
            migrated = self._repoint_dependents(old_id, new_id)
            migrated["prerequisite_chapters"] = self._rewrite_prerequisites(old_id, new_id)
            self._drop_old(old_id)
            self.session.commit()
        except HandbookError:
            self.session.rollback()
            raise
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise TransactionAborted(
                f"Rename of {old_id} to {new_id} failed and was rolled back: {exc}",
                code="transaction_aborted",
            ) from exc
        except Exception:
            self.session.rollback()
            raise
        return migrated

    def _insert_clone(self, chapter, new_id):
        values = {attr.key: getattr(chapter, attr.key) for attr in inspect(Chapter).column_attrs}
        values["id"] = new_id
        values["updated_at"] = datetime.utcnow()
        if values.get("prerequisite_chapters") is not None:
            values["prerequisite_chapters"] = list(values["prerequisite_chapters"])
        clone = Chapter(**values)
        self.session.add(clone)
        self.session.flush()
        return clone

    def _repoint_dependents(self, old_id, new_id) -> Dict[str, int]:
        migrated: Dict[str, int] = {}
        for table, column in chapter_reference_columns():
            result = self.session.execute(
                table.update().where(column == old_id).values({column.name: new_id})
            )
            migrated[table.name] = migrated.get(table.name, 0) + (result.rowcount or 0)
        return migrated

    def _rewrite_prerequisites(self, old_id, new_id) -> int:
        rewritten = 0
        for other in self.session.query(Chapter).filter(Chapter.id != old_id).all():
            prereqs = other.prerequisite_chapters or []
            if old_id in prereqs:
                other.prerequisite_chapters = [new_id if p == old_id else p for p in prereqs]
                rewritten += 1
        self.session.flush()
        return rewritten

    def _drop_old(self, old_id):
        self.session.execute(delete(Chapter).where(Chapter.id == old_id))
