from handbook.errors import ValidationError
from handbook.repositories.reading_record_repository import ReadingRecordRepository


class ReadingRecordService:
    def __init__(self, repository=None):
        self.repository = repository or ReadingRecordRepository()

    def get_record(self, user_id, chapter_id, section_id=None):
        return self.repository.get_record(user_id, chapter_id, section_id)

    def save_progress(self, user_id, chapter_id, province, position, total_length, section_id=None, time_spent=0):
        if total_length is None or total_length < 0 or position < 0:
            raise ValidationError("position and total_length must be >= 0", field="position", code="invalid_position")
        return self.repository.upsert_record(
            user_id, chapter_id, section_id, province, position, total_length, time_spent
        )
