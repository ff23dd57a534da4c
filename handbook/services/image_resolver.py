"""Image ownership writes and context-aware image reads.

Write side: ``associate`` moves images to exactly one owner, either a
chapter or a section. Section ownership also stores the section's chapter
in ``Image.chapter_id``; that copy is derived data and is rewritten here on
every ownership change.

Read side: ``resolve_context`` walks a fixed waterfall (section, then
chapter, then orphans) and always returns images in
``(order, created_at, id)`` order. ``recommend`` returns named groups for
the editor and does not deduplicate between them; ``dedupe_images`` is the
helper for callers that merge groups.
"""

import logging
import math
from datetime import datetime, timedelta
from typing import Dict, Iterable, List

from sqlalchemy.exc import SQLAlchemyError

from handbook import db
from handbook.errors import NotFound, TransactionAborted, ValidationError
from handbook.models.image import Image
from handbook.repositories.chapter_repository import ChapterRepository
from handbook.repositories.image_repository import ImageRepository
from handbook.repositories.section_repository import SectionRepository
from handbook.validation import require_single_owner, validate_usage


logger = logging.getLogger(__name__)


def dedupe_images(*groups: Iterable) -> List:
    """Flatten groups keeping the first occurrence of each image id."""
    seen = set()
    merged = []
    for group in groups:
        for image in group or ():
            if image.id in seen:
                continue
            seen.add(image.id)
            merged.append(image)
    return merged


def pagination_meta(page: int, limit: int, total: int) -> Dict:
    total_pages = math.ceil(total / limit) if limit else 0
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "totalPages": total_pages,
        "hasNextPage": page < total_pages,
        "hasPrevPage": page > 1,
    }


class ImageResolver:
    def __init__(
        self,
        image_repository=None,
        chapter_repository=None,
        section_repository=None,
        session=None,
    ):
        self.session = session if session is not None else db.session
        self.image_repository = image_repository or ImageRepository(self.session)
        self.chapter_repository = chapter_repository or ChapterRepository(self.session)
        self.section_repository = section_repository or SectionRepository(self.session)

    # -- write path ---------------------------------------------------------

    def associate(self, image_ids, chapter_id=None, section_id=None, usage=None, start_order=0):
        if not image_ids or not isinstance(image_ids, (list, tuple)):
            raise ValidationError("image_ids must be a non-empty list", field="image_ids", code="image_ids_required")
        if not all(isinstance(i, str) and i.strip() for i in image_ids):
            raise ValidationError("image_ids must be non-empty strings", field="image_ids", code="invalid_image_ids")
        if len(set(image_ids)) != len(image_ids):
            # One image cannot take two positions in the same ordering.
            raise ValidationError("image_ids contains duplicates", field="image_ids", code="duplicate_image_ids")
        require_single_owner(chapter_id, section_id)
        validate_usage(usage)
        if not isinstance(start_order, int) or isinstance(start_order, bool):
            raise ValidationError("start_order must be an integer", field="start_order", code="invalid_start_order")

        if section_id:
            section = self.section_repository.get_by_id(section_id)
            if section is None:
                raise NotFound(f"Section {section_id} not found", field="section_id", code="section_not_found")
            owner = {"section_id": section.id, "chapter_id": section.chapter_id}
        else:
            if not self.chapter_repository.exists(chapter_id):
                raise NotFound(f"Chapter {chapter_id} not found", field="chapter_id", code="chapter_not_found")
            owner = {"section_id": None, "chapter_id": chapter_id}

        images = {img.id: img for img in self.image_repository.get_many(list(image_ids))}
        missing = [i for i in image_ids if i not in images]
        if missing:
            raise NotFound(
                f"Images not found: {', '.join(missing)}",
                field="image_ids",
                code="image_not_found",
            )

        results = []
        try:
            for offset, image_id in enumerate(image_ids):
                image = images[image_id]
                image.section_id = owner["section_id"]
                image.chapter_id = owner["chapter_id"]
                if usage:
                    image.usage = usage
                image.order = start_order + offset
                results.append(
                    {
                        "image_id": image_id,
                        "chapter_id": image.chapter_id,
                        "section_id": image.section_id,
                        "order": image.order,
                        "updated": True,
                    }
                )
            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise TransactionAborted(f"Image association failed and was rolled back: {exc}") from exc

        logger.info(
            "associated %d image(s)",
            len(results),
            extra={"extra_data": dict(owner, usage=usage, start_order=start_order)},
        )
        return results

    # -- read path ----------------------------------------------------------

    def _context_query(self, chapter_id, section_id, usage, include_sub_sections, orphans, search):
        validate_usage(usage)
        if section_id:
            q = self.image_repository.for_section(section_id, usage, search)
        elif chapter_id:
            q = self.image_repository.for_chapter(
                chapter_id, usage, search, include_sub_sections=include_sub_sections
            )
        elif orphans:
            q = self.image_repository.orphans(usage, search)
        else:
            raise ValidationError(
                "Either chapter_id or section_id is required",
                field="chapter_id,section_id",
                code="owner_required",
            )
        return self.image_repository.ordered(q)

    def resolve_context(
        self,
        chapter_id=None,
        section_id=None,
        usage=None,
        include_sub_sections=False,
        orphans=False,
        search=None,
        limit=None,
    ):
        q = self._context_query(chapter_id, section_id, usage, include_sub_sections, orphans, search)
        if limit:
            q = q.limit(limit)
        return q.all()

    def paginate_context(
        self,
        chapter_id=None,
        section_id=None,
        usage=None,
        include_sub_sections=False,
        orphans=False,
        search=None,
        page=1,
        per_page=20,
    ):
        if page < 1 or per_page < 1:
            raise ValidationError("page and per_page must be positive", field="page", code="invalid_page")
        q = self._context_query(chapter_id, section_id, usage, include_sub_sections, orphans, search)
        total = q.order_by(None).count()
        data = q.limit(per_page).offset((page - 1) * per_page).all()
        return {"data": data, "pagination": pagination_meta(page, per_page, total)}

    def recent_images(self, chapter_id, limit=10):
        q = self.image_repository.by_chapter_reference(chapter_id)
        return self.image_repository.newest_first(q).limit(limit).all()

    def suggested_images(self, chapter_id, usage, limit=5):
        validate_usage(usage)
        q = self.image_repository.by_chapter_reference(chapter_id, usage)
        return self.image_repository.newest_first(q).limit(limit).all()

    def recommend(self, chapter_id, usage=None, limit=10):
        if not chapter_id:
            raise ValidationError("chapter_id is required", field="chapter_id", code="owner_required")
        validate_usage(usage)
        groups = []
        if usage:
            groups.append(
                {
                    "type": "sameUsage",
                    "title": f"Same usage ({usage})",
                    "images": self.suggested_images(chapter_id, usage, limit),
                }
            )
        groups.append(
            {
                "type": "recent",
                "title": "Recently uploaded",
                "images": self.recent_images(chapter_id, limit),
            }
        )
        return groups

    # -- orphans ------------------------------------------------------------

    def find_orphans(self, older_than_days=30, now=None):
        """Report orphans created before the cutoff. Never deletes."""
        if older_than_days is None or older_than_days < 0:
            raise ValidationError("older_than_days must be >= 0", field="older_than_days", code="invalid_cutoff")
        cutoff = (now or datetime.utcnow()) - timedelta(days=older_than_days)
        q = self.image_repository.orphans(created_before=cutoff)
        return q.order_by(Image.created_at.asc(), Image.id.asc()).all()

    def purge_orphans(self, image_ids, confirm=False):
        if not confirm:
            raise ValidationError(
                "Deleting orphan images must be confirmed explicitly",
                field="confirm",
                code="confirmation_required",
            )
        if not image_ids:
            return []
        deleted = []
        try:
            for image in self.image_repository.get_many(list(image_ids)):
                if image.owner_kind is not None:
                    continue
                self.image_repository.delete(image)
                deleted.append(image.id)
            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise TransactionAborted(f"Orphan purge failed and was rolled back: {exc}") from exc
        order = {image_id: i for i, image_id in enumerate(image_ids)}
        deleted.sort(key=lambda i: order[i])
        logger.info("purged %d orphan image(s)", len(deleted), extra={"extra_data": {"ids": deleted}})
        return deleted

    # -- invariant checks ---------------------------------------------------

    def check_ownership(self, image) -> List[str]:
        problems = []
        if image.section_id:
            section = self.section_repository.get_by_id(image.section_id)
            if section is None:
                problems.append("section_missing")
            elif image.chapter_id != section.chapter_id:
                problems.append("stale_chapter_reference")
        elif image.chapter_id and not self.chapter_repository.exists(image.chapter_id):
            problems.append("chapter_missing")
        return problems

    def audit_ownership(self) -> Dict[str, List[str]]:
        report = {}
        for image in self.image_repository.all():
            problems = self.check_ownership(image)
            if problems:
                report[image.id] = problems
        return report
