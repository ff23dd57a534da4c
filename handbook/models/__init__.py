# Every model is imported here so db.metadata sees all tables, including
# the ones only the rename transaction touches.
from handbook.models.chapter import Chapter
from handbook.models.section import Section
from handbook.models.image import Image
from handbook.models.content_version import ContentVersion
from handbook.models.reading_record import ReadingRecord
from handbook.models.bookmark import Bookmark
from handbook.models.chapter_progress import ChapterProgress

__all__ = [
    "Chapter",
    "Section",
    "Image",
    "ContentVersion",
    "ReadingRecord",
    "Bookmark",
    "ChapterProgress",
]
