import logging
from dataclasses import dataclass, field
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError

from handbook.errors import PartialResultWarning
from handbook.services.image_resolver import ImageResolver, dedupe_images


logger = logging.getLogger(__name__)


@dataclass
class EditableContext:
    context_images: List
    recent_images: Optional[List] = None
    suggestions: Optional[List] = None
    warnings: List[PartialResultWarning] = field(default_factory=list)

    def merged(self):
        # Lists may overlap; callers that want one list get context > recent > suggestions.
        return dedupe_images(self.context_images, self.recent_images, self.suggestions)

    def to_dict(self):
        data = {"contextImages": [img.to_dict() for img in self.context_images]}
        if self.recent_images is not None:
            data["recentImages"] = [img.to_dict() for img in self.recent_images]
        if self.suggestions is not None:
            data["suggestions"] = [img.to_dict() for img in self.suggestions]
        if self.warnings:
            data["warnings"] = [w.to_dict() for w in self.warnings]
        return data


class ContextService:
    def __init__(self, resolver=None, context_limit=50, recent_limit=10, suggestion_limit=5):
        self.resolver = resolver or ImageResolver()
        self.context_limit = context_limit
        self.recent_limit = recent_limit
        self.suggestion_limit = suggestion_limit

    def get_editable_context(self, chapter_id=None, section_id=None, usage=None, include_recent=False):
        context_images = self.resolver.resolve_context(
            chapter_id=chapter_id,
            section_id=section_id,
            usage=usage,
            limit=self.context_limit,
        )
        result = EditableContext(context_images=context_images)

        if include_recent and chapter_id:
            result.recent_images = self._optional(
                result,
                "recentImages",
                lambda: self.resolver.recent_images(chapter_id, self.recent_limit),
            )

        if usage and chapter_id:
            result.suggestions = self._optional(
                result,
                "suggestions",
                lambda: self.resolver.suggested_images(chapter_id, usage, self.suggestion_limit),
            )

        return result

    def _optional(self, result, branch, query):
        try:
            return query()
        except SQLAlchemyError as exc:
            self.resolver.session.rollback()
            warning = PartialResultWarning(branch, exc)
            result.warnings.append(warning)
            logger.warning(
                "optional context branch failed: %s",
                branch,
                exc_info=True,
                extra={"extra_data": {"branch": branch}},
            )
            return None
