from datetime import datetime

from handbook import db


class ChapterProgress(db.Model):
    __tablename__ = "chapter_progress"

    id = db.Column(db.String(36), primary_key=True)
    user_id = db.Column(db.String(36), nullable=False)
    chapter_id = db.Column(
        db.String(36),
        db.ForeignKey("handbook_chapters.id", ondelete="CASCADE"),
        nullable=False,
    )
    reading_progress = db.Column(db.Integer, nullable=False, default=0)
    is_reading_completed = db.Column(db.Boolean, nullable=False, default=False)
    practice_count = db.Column(db.Integer, nullable=False, default=0)
    last_practice_at = db.Column(db.DateTime, nullable=True)
    is_unlocked = db.Column(db.Boolean, nullable=False, default=False)
    unlocked_at = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    __table_args__ = (
        db.UniqueConstraint("user_id", "chapter_id", name="uq_chapter_progress_user_chapter"),
    )
