import logging
import uuid
from datetime import datetime

from sqlalchemy.exc import IntegrityError

from handbook import db
from handbook.errors import Conflict, NotFound, ValidationError
from handbook.models.chapter import Chapter
from handbook.repositories.chapter_repository import ChapterRepository
from handbook.repositories.section_repository import SectionRepository
from handbook.services.chapter_renamer import ChapterRenamer
from handbook.services.image_resolver import pagination_meta
from handbook.validation import (
    CONTENT_FORMATS,
    PAYMENT_TYPES,
    PUBLISH_STATUSES,
    reject_nulls,
    require_fields,
    validate_chapter_id,
    validate_choice,
)


logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("title", "description", "order", "province", "estimated_read_time")

# Columns a plain update may touch; the id only changes through rename.
EDITABLE_FIELDS = (
    "title",
    "title_en",
    "description",
    "description_en",
    "order",
    "province",
    "content_format",
    "estimated_read_time",
    "cover_image_url",
    "cover_image_alt",
    "payment_type",
    "free_preview_sections",
    "prerequisite_chapters",
    "publish_status",
    "author_id",
    "last_edited_by",
)

# Columns that may be omitted from an update but never set to null.
NOT_NULL_FIELDS = REQUIRED_FIELDS + ("content_format", "payment_type", "publish_status")

ORDERABLE = {
    "order": Chapter.order,
    "createdAt": Chapter.created_at,
    "updatedAt": Chapter.updated_at,
}


def _check_choices(data):
    if "content_format" in data and data["content_format"] is not None:
        validate_choice(data["content_format"], CONTENT_FORMATS, "content_format")
    if "payment_type" in data and data["payment_type"] is not None:
        validate_choice(data["payment_type"], PAYMENT_TYPES, "payment_type")
    if "publish_status" in data and data["publish_status"] is not None:
        validate_choice(data["publish_status"], PUBLISH_STATUSES, "publish_status")
    if "province" in data and data["province"] is not None:
        province = data["province"]
        if not isinstance(province, str) or len(province) != 2 or not province.isalpha():
            raise ValidationError("province must be a 2-letter code", field="province", code="invalid_province")
    prereqs = data.get("prerequisite_chapters")
    if prereqs is not None and not isinstance(prereqs, list):
        raise ValidationError("prerequisite_chapters must be a list", field="prerequisite_chapters")


class ChapterService:
    def __init__(self, chapter_repository=None, section_repository=None, renamer=None, session=None):
        self.session = session if session is not None else db.session
        self.chapter_repository = chapter_repository or ChapterRepository(self.session)
        self.section_repository = section_repository or SectionRepository(self.session)
        self.renamer = renamer or ChapterRenamer(self.session, self.chapter_repository)

    def create_chapter(self, data):
        require_fields(data, REQUIRED_FIELDS)
        _check_choices(data)

        chapter_id = data.get("id")
        if isinstance(chapter_id, str) and chapter_id.strip():
            chapter_id = validate_chapter_id(chapter_id.strip())
            if self.chapter_repository.exists(chapter_id):
                raise Conflict(f"Chapter id {chapter_id} already exists", field="id", code="chapter_exists")
        else:
            chapter_id = str(uuid.uuid4())

        chapter = Chapter(id=chapter_id)
        for key in EDITABLE_FIELDS:
            if data.get(key) is not None:
                setattr(chapter, key, data[key])
        chapter.province = chapter.province.upper()
        if chapter.publish_status == "PUBLISHED":
            chapter.published_at = datetime.utcnow()
        self.chapter_repository.add(chapter)
        try:
            self.session.commit()
        except IntegrityError as exc:
            self.session.rollback()
            raise Conflict(f"Chapter id {chapter_id} already exists", field="id", code="chapter_exists") from exc
        logger.info("chapter created", extra={"extra_data": {"chapter_id": chapter_id}})
        return chapter

    def get_chapter(self, chapter_id):
        chapter = self.chapter_repository.get_by_id(chapter_id)
        if chapter is None:
            raise NotFound(f"Chapter {chapter_id} not found", field="id", code="chapter_not_found")
        return chapter

    def get_chapter_with_sections(self, chapter_id):
        chapter = self.get_chapter(chapter_id)
        sections = self.section_repository.get_for_chapter(chapter_id)
        return chapter, sections

    def describe_chapter(self, chapter_id):
        chapter, sections = self.get_chapter_with_sections(chapter_id)
        data = chapter.to_dict()
        data["sections"] = [s.to_dict() for s in sections]
        data["totalSections"] = len(sections)
        data["freeSections"] = sum(1 for s in sections if s.is_free)
        return data

    def list_chapters(self, publish_status=None, province=None, order_by="order", order="asc", page=1, per_page=20):
        if publish_status:
            validate_choice(publish_status, PUBLISH_STATUSES, "publish_status")
        if page < 1 or per_page < 1:
            raise ValidationError("page and per_page must be positive", field="page", code="invalid_page")
        column = ORDERABLE.get(order_by, Chapter.order)
        direction = column.desc() if order == "desc" else column.asc()
        q = self.chapter_repository.query(publish_status, province.upper() if province else None)
        total = q.count()
        chapters = q.order_by(direction, Chapter.id.asc()).limit(per_page).offset((page - 1) * per_page).all()
        return {"data": chapters, "pagination": pagination_meta(page, per_page, total)}

    def update_chapter(self, chapter_id, data):
        if "id" in data and data["id"] != chapter_id:
            raise ValidationError(
                "Chapter ids change only through rename",
                field="id",
                code="id_immutable",
            )
        reject_nulls(data, NOT_NULL_FIELDS)
        _check_choices(data)
        chapter = self.get_chapter(chapter_id)
        for key in EDITABLE_FIELDS:
            if key in data:
                setattr(chapter, key, data[key])
        if "province" in data and chapter.province:
            chapter.province = chapter.province.upper()
        if data.get("publish_status") == "PUBLISHED" and chapter.published_at is None:
            chapter.published_at = datetime.utcnow()
        chapter.updated_at = datetime.utcnow()
        self.session.commit()
        return chapter

    def delete_chapter(self, chapter_id):
        chapter = self.get_chapter(chapter_id)
        if self.chapter_repository.count_sections(chapter_id) > 0:
            raise ValidationError(
                "Cannot delete: there are sections under this chapter, delete them first",
                field="id",
                code="chapter_not_empty",
            )
        self.chapter_repository.delete(chapter)
        self.session.commit()
        logger.info("chapter deleted", extra={"extra_data": {"chapter_id": chapter_id}})
        return {"id": chapter_id, "deleted": True}

    def batch_update_status(self, chapter_ids, publish_status):
        if not chapter_ids or not isinstance(chapter_ids, list):
            raise ValidationError("chapter_ids must be a non-empty list", field="chapter_ids", code="chapter_ids_required")
        validate_choice(publish_status, PUBLISH_STATUSES, "publish_status")
        chapters = self.chapter_repository.get_many(chapter_ids)
        found = {c.id for c in chapters}
        missing = [c for c in chapter_ids if c not in found]
        if missing:
            raise NotFound(f"Chapters not found: {', '.join(missing)}", field="chapter_ids", code="chapter_not_found")
        now = datetime.utcnow()
        for chapter in chapters:
            chapter.publish_status = publish_status
            chapter.updated_at = now
            if publish_status == "PUBLISHED":
                chapter.published_at = now
        self.session.commit()
        return chapters

    def rename_chapter(self, old_id, new_id):
        return self.renamer.rename_chapter(old_id, new_id)
