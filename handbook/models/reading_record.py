from datetime import datetime

from handbook import db


class ReadingRecord(db.Model):
    __tablename__ = "reading_records"

    id = db.Column(db.String(36), primary_key=True)
    user_id = db.Column(db.String(36), nullable=False, index=True)
    chapter_id = db.Column(
        db.String(36),
        db.ForeignKey("handbook_chapters.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    section_id = db.Column(
        db.String(36),
        db.ForeignKey("handbook_sections.id", ondelete="CASCADE"),
        nullable=True,
    )

    province = db.Column(db.String(2), nullable=False)

    progress = db.Column(db.Integer, nullable=False, default=0)
    current_position = db.Column(db.Integer, nullable=False, default=0)
    total_length = db.Column(db.Integer, nullable=False)
    time_spent = db.Column(db.Integer, nullable=False, default=0)

    is_completed = db.Column(db.Boolean, nullable=False, default=False)
    last_read_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    started_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    completed_at = db.Column(db.DateTime, nullable=True)

    reading_language = db.Column(db.String(10), nullable=True, default="ZH")
