import uuid

from handbook import db
from handbook.errors import ValidationError
from handbook.models.content_version import ContentVersion
from handbook.repositories.content_version_repository import ContentVersionRepository
from handbook.validation import validate_choice


CHANGE_TYPES = ("create", "update", "delete")


class ContentVersionService:
    """Append-only content history. There is no update or delete."""

    def __init__(self, repository=None, session=None):
        self.session = session if session is not None else db.session
        self.repository = repository or ContentVersionRepository(self.session)

    def record_version(
        self,
        snapshot,
        change_type,
        created_by,
        chapter_id=None,
        section_id=None,
        version=None,
        version_note=None,
        change_description=None,
    ):
        if not chapter_id and not section_id:
            raise ValidationError(
                "A version needs a chapter_id or a section_id",
                field="chapter_id,section_id",
                code="owner_required",
            )
        if snapshot is None:
            raise ValidationError("content snapshot is required", field="content_snapshot", code="fields_required")
        validate_choice(change_type, CHANGE_TYPES, "change_type")
        if not version:
            version = f"v{self.repository.count_for(chapter_id, section_id) + 1}"
        entry = ContentVersion(
            id=str(uuid.uuid4()),
            chapter_id=chapter_id,
            section_id=section_id,
            version=version,
            version_note=version_note,
            content_snapshot=snapshot,
            change_type=change_type,
            change_description=change_description,
            created_by=created_by,
        )
        self.repository.add(entry)
        self.session.commit()
        return entry

    def list_versions(self, chapter_id=None, section_id=None):
        return self.repository.list_for(chapter_id, section_id)
