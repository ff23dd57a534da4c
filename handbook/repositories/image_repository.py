from sqlalchemy import and_, or_, select

from handbook import db
from handbook.models.image import Image
from handbook.models.section import Section


class ImageRepository:
    def __init__(self, session=None):
        self.session = session if session is not None else db.session

    def get_by_id(self, image_id):
        return self.session.get(Image, image_id)

    def get_many(self, image_ids):
        return self.session.query(Image).filter(Image.id.in_(image_ids)).all()

    def add(self, image):
        self.session.add(image)
        return image

    def delete(self, image):
        self.session.delete(image)

    def base_query(self, usage=None, search=None):
        q = self.session.query(Image)
        if usage:
            q = q.filter(Image.usage == usage)
        if search:
            q = q.filter(Image.original_name.like(f"%{search}%"))
        return q

    @staticmethod
    def ordered(q):
        # (order, created_at, id) is a total order, so repeated reads agree.
        return q.order_by(Image.order.asc(), Image.created_at.asc(), Image.id.asc())

    @staticmethod
    def newest_first(q):
        return q.order_by(Image.created_at.desc(), Image.id.desc())

    def for_section(self, section_id, usage=None, search=None):
        return self.base_query(usage, search).filter(Image.section_id == section_id)

    def for_chapter(self, chapter_id, usage=None, search=None, include_sub_sections=False):
        direct = and_(Image.chapter_id == chapter_id, Image.section_id.is_(None))
        q = self.base_query(usage, search)
        if include_sub_sections:
            owned_sections = select(Section.id).where(Section.chapter_id == chapter_id)
            return q.filter(or_(direct, Image.section_id.in_(owned_sections)))
        return q.filter(direct)

    def orphans(self, usage=None, search=None, created_before=None):
        q = self.base_query(usage, search).filter(
            Image.chapter_id.is_(None), Image.section_id.is_(None)
        )
        if created_before is not None:
            q = q.filter(Image.created_at < created_before)
        return q

    def by_chapter_reference(self, chapter_id, usage=None):
        # Uses the cached chapter_id, so section images of the chapter count too.
        q = self.session.query(Image).filter(Image.chapter_id == chapter_id)
        if usage:
            q = q.filter(Image.usage == usage)
        return q

    def all(self):
        return self.session.query(Image).order_by(Image.id.asc()).all()
