from handbook import db
from handbook.models.chapter import Chapter
from handbook.models.section import Section


class ChapterRepository:
    def __init__(self, session=None):
        self.session = session if session is not None else db.session

    def get_by_id(self, chapter_id):
        return self.session.get(Chapter, chapter_id)

    def exists(self, chapter_id):
        return (
            self.session.query(Chapter.id).filter_by(id=chapter_id).first()
            is not None
        )

    def get_many(self, chapter_ids):
        return self.session.query(Chapter).filter(Chapter.id.in_(chapter_ids)).all()

    def query(self, publish_status=None, province=None):
        q = self.session.query(Chapter)
        if publish_status:
            q = q.filter(Chapter.publish_status == publish_status)
        if province:
            q = q.filter(Chapter.province == province)
        return q

    def count_sections(self, chapter_id):
        return self.session.query(Section).filter_by(chapter_id=chapter_id).count()

    def add(self, chapter):
        self.session.add(chapter)
        return chapter

    def delete(self, chapter):
        self.session.delete(chapter)
