from handbook import db
from handbook.models.image import Image
from handbook.models.section import Section


class SectionRepository:
    def __init__(self, session=None):
        self.session = session if session is not None else db.session

    def get_for_chapter(self, chapter_id):
        return (
            self.session.query(Section)
            .filter_by(chapter_id=chapter_id)
            .order_by(Section.order.asc(), Section.id.asc())
            .all()
        )

    def get_by_id(self, section_id):
        return self.session.get(Section, section_id)

    def get_in_chapter(self, chapter_id, section_id):
        return (
            self.session.query(Section)
            .filter_by(id=section_id, chapter_id=chapter_id)
            .first()
        )

    def ids_for_chapter(self, chapter_id):
        return [row.id for row in self.session.query(Section.id).filter_by(chapter_id=chapter_id)]

    def add(self, section):
        self.session.add(section)
        return section

    def delete_with_images(self, section):
        removed = (
            self.session.query(Image)
            .filter(Image.section_id == section.id)
            .delete(synchronize_session="fetch")
        )
        self.session.delete(section)
        return removed
