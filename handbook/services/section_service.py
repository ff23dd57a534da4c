import logging
from datetime import datetime

from handbook import db
from handbook.errors import Conflict, NotFound, ValidationError
from handbook.models.section import Section
from handbook.repositories.chapter_repository import ChapterRepository
from handbook.repositories.section_repository import SectionRepository
from handbook.validation import (
    CHAPTER_ID_PATTERN,
    SECTION_ID_PATTERN,
    estimate_read_time,
    reject_nulls,
    require_fields,
)


logger = logging.getLogger(__name__)

EDITABLE_FIELDS = (
    "title",
    "title_en",
    "order",
    "content",
    "content_en",
    "is_free",
    "required_user_type",
)

NOT_NULL_FIELDS = ("title", "order", "content", "is_free")

# Attempts at the next free sequence number before giving up.
_ID_RETRIES = 5


class SectionService:
    def __init__(self, section_repository=None, chapter_repository=None, session=None):
        self.session = session if session is not None else db.session
        self.section_repository = section_repository or SectionRepository(self.session)
        self.chapter_repository = chapter_repository or ChapterRepository(self.session)

    def _chapter(self, chapter_id):
        chapter = self.chapter_repository.get_by_id(chapter_id)
        if chapter is None:
            raise NotFound(f"Chapter {chapter_id} not found", field="chapter_id", code="chapter_not_found")
        return chapter

    def list_sections(self, chapter_id):
        self._chapter(chapter_id)
        return self.section_repository.get_for_chapter(chapter_id)

    def get_section(self, chapter_id, section_id):
        section = self.section_repository.get_in_chapter(chapter_id, section_id)
        if section is None:
            raise NotFound(f"Section {section_id} not found", field="section_id", code="section_not_found")
        return section

    def _explicit_id(self, chapter, requested):
        chapter_match = CHAPTER_ID_PATTERN.match(chapter.id)
        section_match = SECTION_ID_PATTERN.match(requested)
        if not chapter_match or not section_match:
            raise ValidationError("Invalid section id format", field="id", code="invalid_format")
        if (
            chapter_match.group(1).lower() != section_match.group(1).lower()
            or chapter_match.group(2) != section_match.group(2)
        ):
            raise ValidationError("Section id does not match the chapter id", field="id", code="section_id_mismatch")
        if self.section_repository.get_by_id(requested) is not None:
            raise Conflict(f"Section id {requested} already exists", field="id", code="section_exists")
        return requested

    def _generated_id(self, chapter):
        match = CHAPTER_ID_PATTERN.match(chapter.id)
        if match:
            province, chapter_no = match.group(1).lower(), match.group(2)
        else:
            province = (chapter.province or "on").lower()
            chapter_no = str(chapter.order or 1).zfill(3)

        existing = self.section_repository.ids_for_chapter(chapter.id)
        max_seq = 0
        for section_id in existing:
            m = SECTION_ID_PATTERN.match(section_id)
            if m:
                max_seq = max(max_seq, int(m.group(3)))
        seq = max(len(existing), max_seq) + 1

        for _ in range(_ID_RETRIES):
            candidate = f"sec-{province}-{chapter_no}-{str(seq).zfill(3)}"
            if self.section_repository.get_by_id(candidate) is None:
                return candidate
            seq += 1
        raise Conflict("Could not allocate a free section id", field="id", code="section_exists")

    def create_section(self, chapter_id, data):
        chapter = self._chapter(chapter_id)
        require_fields(data, ("title", "order", "content"))

        requested = data.get("id")
        if isinstance(requested, str) and requested.strip():
            section_id = self._explicit_id(chapter, requested.strip())
        else:
            section_id = self._generated_id(chapter)

        section = Section(id=section_id, chapter_id=chapter.id)
        for key in EDITABLE_FIELDS:
            if data.get(key) is not None:
                setattr(section, key, data[key])
        section.word_count = len(section.content)
        section.estimated_read_time = estimate_read_time(section.content)
        self.section_repository.add(section)
        self.session.commit()
        logger.info("section created", extra={"extra_data": {"chapter_id": chapter.id, "section_id": section_id}})
        return section

    def update_section(self, chapter_id, section_id, data):
        if "chapter_id" in data and data["chapter_id"] != chapter_id:
            raise ValidationError("A section cannot move to another chapter", field="chapter_id", code="owner_immutable")
        reject_nulls(data, NOT_NULL_FIELDS)
        section = self.get_section(chapter_id, section_id)
        for key in EDITABLE_FIELDS:
            if key in data:
                setattr(section, key, data[key])
        if "content" in data:
            section.word_count = len(section.content or "")
            section.estimated_read_time = estimate_read_time(section.content)
        section.updated_at = datetime.utcnow()
        self.session.commit()
        return section

    def delete_section(self, chapter_id, section_id):
        section = self.get_section(chapter_id, section_id)
        removed = self.section_repository.delete_with_images(section)
        self.session.commit()
        logger.info(
            "section deleted",
            extra={"extra_data": {"section_id": section_id, "images_removed": removed}},
        )
        return {"id": section_id, "deleted": True, "imagesRemoved": removed}
