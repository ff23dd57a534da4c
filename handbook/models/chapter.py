from datetime import datetime

from handbook import db


class Chapter(db.Model):
    __tablename__ = "handbook_chapters"

    id = db.Column(db.String(36), primary_key=True)
    title = db.Column(db.String(200), nullable=False)
    title_en = db.Column(db.String(200), nullable=True)
    description = db.Column(db.Text, nullable=False)
    description_en = db.Column(db.Text, nullable=True)
    order = db.Column(db.Integer, nullable=False)

    province = db.Column(db.String(2), nullable=False)

    content_format = db.Column(db.String(20), nullable=False, default="HTML")
    estimated_read_time = db.Column(db.Integer, nullable=False)

    cover_image_url = db.Column(db.String(500), nullable=True)
    cover_image_alt = db.Column(db.String(200), nullable=True)

    payment_type = db.Column(db.String(20), nullable=False, default="FREE")
    free_preview_sections = db.Column(db.Integer, nullable=True, default=0)

    # Chapter ids; kept in step with renames by the rename transaction.
    prerequisite_chapters = db.Column(db.JSON, nullable=True)

    publish_status = db.Column(db.String(20), nullable=False, default="DRAFT")
    published_at = db.Column(db.DateTime, nullable=True)

    author_id = db.Column(db.String(36), nullable=True)
    last_edited_by = db.Column(db.String(36), nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    sections = db.relationship(
        "Section",
        back_populates="chapter",
        order_by="Section.order",
        lazy="select",
        passive_deletes=True,
    )

    def to_dict(self):
        return {
            "id": self.id,
            "title": self.title,
            "title_en": self.title_en,
            "description": self.description,
            "description_en": self.description_en,
            "order": self.order,
            "province": self.province,
            "content_format": self.content_format,
            "estimated_read_time": self.estimated_read_time,
            "cover_image_url": self.cover_image_url,
            "cover_image_alt": self.cover_image_alt,
            "payment_type": self.payment_type,
            "free_preview_sections": self.free_preview_sections,
            "prerequisite_chapters": self.prerequisite_chapters or [],
            "publish_status": self.publish_status,
            "published_at": self.published_at.isoformat() if self.published_at else None,
            "author_id": self.author_id,
            "last_edited_by": self.last_edited_by,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
