from datetime import datetime

from handbook import db


class Bookmark(db.Model):
    __tablename__ = "bookmarks"

    id = db.Column(db.String(36), primary_key=True)
    user_id = db.Column(db.String(36), nullable=False, index=True)
    chapter_id = db.Column(
        db.String(36),
        db.ForeignKey("handbook_chapters.id", ondelete="CASCADE"),
        nullable=False,
    )
    section_id = db.Column(
        db.String(36),
        db.ForeignKey("handbook_sections.id", ondelete="CASCADE"),
        nullable=True,
    )

    province = db.Column(db.String(2), nullable=False)
    position = db.Column(db.Integer, nullable=False)

    note = db.Column(db.Text, nullable=True)
    highlighted_text = db.Column(db.Text, nullable=True)

    color = db.Column(db.String(20), nullable=True, default="yellow")
    is_private = db.Column(db.Boolean, nullable=True, default=True)

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
