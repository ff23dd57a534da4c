from datetime import datetime

from handbook import db


class Section(db.Model):
    __tablename__ = "handbook_sections"

    id = db.Column(db.String(36), primary_key=True)
    chapter_id = db.Column(
        db.String(36),
        db.ForeignKey("handbook_chapters.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    title = db.Column(db.String(200), nullable=False)
    title_en = db.Column(db.String(200), nullable=True)
    order = db.Column(db.Integer, nullable=False)

    content = db.Column(db.Text, nullable=False)
    content_en = db.Column(db.Text, nullable=True)

    is_free = db.Column(db.Boolean, nullable=False, default=True)
    required_user_type = db.Column(db.JSON, nullable=True)

    word_count = db.Column(db.Integer, nullable=True, default=0)
    estimated_read_time = db.Column(db.Integer, nullable=True, default=0)

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    chapter = db.relationship("Chapter", back_populates="sections")
    images = db.relationship(
        "Image",
        back_populates="section",
        order_by="Image.order",
        lazy="select",
        passive_deletes=True,
    )

    def to_dict(self):
        return {
            "id": self.id,
            "chapter_id": self.chapter_id,
            "title": self.title,
            "title_en": self.title_en,
            "order": self.order,
            "content": self.content,
            "content_en": self.content_en,
            "is_free": self.is_free,
            "required_user_type": self.required_user_type or [],
            "word_count": self.word_count,
            "estimated_read_time": self.estimated_read_time,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
