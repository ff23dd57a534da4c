import uuid
from datetime import datetime

from handbook import db
from handbook.models.reading_record import ReadingRecord


class ReadingRecordRepository:
    def __init__(self, session=None):
        self.session = session if session is not None else db.session

    def get_record(self, user_id, chapter_id, section_id=None):
        return (
            self.session.query(ReadingRecord)
            .filter_by(user_id=user_id, chapter_id=chapter_id, section_id=section_id)
            .first()
        )

    def upsert_record(self, user_id, chapter_id, section_id, province, position, total_length, time_spent=0):
        now = datetime.utcnow()
        record = self.get_record(user_id, chapter_id, section_id)
        if record is None:
            record = ReadingRecord(
                id=str(uuid.uuid4()),
                user_id=user_id,
                chapter_id=chapter_id,
                section_id=section_id,
                province=province,
                total_length=total_length,
                started_at=now,
            )
            self.session.add(record)
        record.current_position = position
        record.total_length = total_length
        record.time_spent = (record.time_spent or 0) + time_spent
        record.progress = min(100, int(position * 100 / total_length)) if total_length else 0
        record.last_read_at = now
        if record.progress >= 100 and not record.is_completed:
            record.is_completed = True
            record.completed_at = now
        self.session.commit()
        return record
