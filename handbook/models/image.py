from datetime import datetime

from handbook import db


class Image(db.Model):
    """A handbook image and its owner.

    The authoritative owner is ``section_id`` when set, otherwise
    ``chapter_id``. For section-owned images ``chapter_id`` is a cached copy
    of the section's chapter so chapter-wide queries need no join; the
    image resolver rewrites it on every ownership change. An image with
    neither set is an orphan.
    """

    __tablename__ = "handbook_images"

    id = db.Column(db.String(36), primary_key=True)

    chapter_id = db.Column(
        db.String(36),
        db.ForeignKey("handbook_chapters.id", ondelete="CASCADE"),
        nullable=True,
    )
    section_id = db.Column(
        db.String(36),
        db.ForeignKey("handbook_sections.id", ondelete="CASCADE"),
        nullable=True,
    )

    filename = db.Column(db.String(255), nullable=False)
    original_name = db.Column(db.String(255), nullable=False)
    file_url = db.Column(db.String(500), nullable=False)
    file_size = db.Column(db.Integer, nullable=False)
    mime_type = db.Column(db.String(100), nullable=False)

    width = db.Column(db.Integer, nullable=True)
    height = db.Column(db.Integer, nullable=True)
    alt_text = db.Column(db.String(200), nullable=True)
    caption = db.Column(db.Text, nullable=True)
    caption_en = db.Column(db.Text, nullable=True)

    usage = db.Column(db.String(20), nullable=False, default="content")
    order = db.Column(db.Integer, nullable=False, default=0)

    uploaded_by = db.Column(db.String(36), nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    section = db.relationship("Section", back_populates="images")

    __table_args__ = (
        db.Index("idx_handbook_images_chapter_usage", "chapter_id", "usage"),
        db.Index("idx_handbook_images_section_usage", "section_id", "usage"),
        db.Index("idx_handbook_images_chapter_order", "chapter_id", "order"),
        db.Index("idx_handbook_images_section_order", "section_id", "order"),
        db.Index("idx_handbook_images_created_at", "created_at"),
    )

    @property
    def owner_kind(self):
        if self.section_id:
            return "section"
        if self.chapter_id:
            return "chapter"
        return None

    def to_dict(self):
        return {
            "id": self.id,
            "chapter_id": self.chapter_id,
            "section_id": self.section_id,
            "owner": self.owner_kind,
            "filename": self.filename,
            "original_name": self.original_name,
            "file_url": self.file_url,
            "file_size": self.file_size,
            "mime_type": self.mime_type,
            "width": self.width,
            "height": self.height,
            "alt_text": self.alt_text,
            "caption": self.caption,
            "caption_en": self.caption_en,
            "usage": self.usage,
            "order": self.order,
            "uploaded_by": self.uploaded_by,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
