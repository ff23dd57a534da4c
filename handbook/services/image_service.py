import logging
import uuid
from datetime import datetime

from sqlalchemy.exc import IntegrityError

from handbook import db
from handbook.errors import Conflict, NotFound, ValidationError
from handbook.models.image import Image
from handbook.repositories.image_repository import ImageRepository
from handbook.validation import reject_nulls, require_fields, validate_usage


logger = logging.getLogger(__name__)

REGISTER_FIELDS = ("filename", "original_name", "file_url", "file_size", "mime_type")

# Ownership changes only through ImageResolver.associate.
EDITABLE_FIELDS = ("alt_text", "caption", "caption_en", "usage", "width", "height")
NOT_NULL_FIELDS = ("usage",)


class ImageService:
    """Metadata side of the upload pipeline.

    The pipeline stores the bytes elsewhere and hands over filename, URL,
    size and dimensions; the row starts out as an orphan.
    """

    def __init__(self, image_repository=None, session=None):
        self.session = session if session is not None else db.session
        self.image_repository = image_repository or ImageRepository(self.session)

    def register_image(self, data):
        require_fields(data, REGISTER_FIELDS)
        validate_usage(data.get("usage"))
        if data.get("chapter_id") or data.get("section_id"):
            raise ValidationError(
                "Owners are assigned through image association",
                field="chapter_id,section_id",
                code="owner_not_allowed",
            )
        image_id = data.get("id") or str(uuid.uuid4())
        if not isinstance(image_id, str):
            raise ValidationError("id must be a string", field="id", code="invalid_format")
        if self.image_repository.get_by_id(image_id) is not None:
            raise Conflict(f"Image id {image_id} already exists", field="id", code="image_exists")
        image = Image(id=image_id)
        for key in REGISTER_FIELDS + EDITABLE_FIELDS + ("uploaded_by",):
            if data.get(key) is not None:
                setattr(image, key, data[key])
        created_at = data.get("created_at")
        if isinstance(created_at, str):
            try:
                created_at = datetime.fromisoformat(created_at)
            except ValueError:
                raise ValidationError("created_at must be an ISO timestamp", field="created_at", code="invalid_created_at")
        if created_at is not None:
            image.created_at = created_at
        self.image_repository.add(image)
        try:
            self.session.commit()
        except IntegrityError as exc:
            self.session.rollback()
            raise Conflict(f"Image id {image_id} already exists", field="id", code="image_exists") from exc
        logger.info("image registered", extra={"extra_data": {"image_id": image.id}})
        return image

    def get_image(self, image_id):
        image = self.image_repository.get_by_id(image_id)
        if image is None:
            raise NotFound(f"Image {image_id} not found", field="id", code="image_not_found")
        return image

    def update_image(self, image_id, data):
        if "chapter_id" in data or "section_id" in data:
            raise ValidationError(
                "Owners are assigned through image association",
                field="chapter_id,section_id",
                code="owner_not_allowed",
            )
        reject_nulls(data, NOT_NULL_FIELDS)
        validate_usage(data.get("usage"))
        image = self.get_image(image_id)
        for key in EDITABLE_FIELDS:
            if key in data:
                setattr(image, key, data[key])
        self.session.commit()
        return image

    def delete_image(self, image_id):
        image = self.get_image(image_id)
        self.image_repository.delete(image)
        self.session.commit()
        return {"id": image_id, "deleted": True}
