from datetime import datetime

from handbook import db


class ContentVersion(db.Model):
    __tablename__ = "handbook_content_versions"

    id = db.Column(db.String(36), primary_key=True)
    chapter_id = db.Column(
        db.String(36),
        db.ForeignKey("handbook_chapters.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    section_id = db.Column(
        db.String(36),
        db.ForeignKey("handbook_sections.id", ondelete="CASCADE"),
        nullable=True,
    )

    version = db.Column(db.String(20), nullable=False)
    version_note = db.Column(db.Text, nullable=True)

    content_snapshot = db.Column(db.JSON, nullable=False)

    change_type = db.Column(db.String(50), nullable=False)
    change_description = db.Column(db.Text, nullable=True)

    created_by = db.Column(db.String(36), nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "chapter_id": self.chapter_id,
            "section_id": self.section_id,
            "version": self.version,
            "version_note": self.version_note,
            "content_snapshot": self.content_snapshot,
            "change_type": self.change_type,
            "change_description": self.change_description,
            "created_by": self.created_by,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
