from handbook import db
from handbook.models.content_version import ContentVersion


class ContentVersionRepository:
    def __init__(self, session=None):
        self.session = session if session is not None else db.session

    def list_for(self, chapter_id=None, section_id=None):
        q = self.session.query(ContentVersion)
        if chapter_id:
            q = q.filter(ContentVersion.chapter_id == chapter_id)
        if section_id:
            q = q.filter(ContentVersion.section_id == section_id)
        return q.order_by(ContentVersion.created_at.asc(), ContentVersion.id.asc()).all()

    def count_for(self, chapter_id=None, section_id=None):
        q = self.session.query(ContentVersion)
        if chapter_id:
            q = q.filter(ContentVersion.chapter_id == chapter_id)
        if section_id:
            q = q.filter(ContentVersion.section_id == section_id)
        return q.count()

    def add(self, version):
        self.session.add(version)
        return version
