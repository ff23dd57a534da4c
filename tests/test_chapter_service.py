import pytest

from handbook import db
from handbook.errors import Conflict, NotFound, ValidationError
from handbook.models.chapter import Chapter
from handbook.services.chapter_service import ChapterService
from tests.conftest import make_chapter, make_section


def _payload(**overrides):
    data = {
        "title": "Rules of the road",
        "description": "Right of way and signals",
        "order": 1,
        "province": "on",
        "estimated_read_time": 15,
    }
    data.update(overrides)
    return data


@pytest.fixture
def service(app):
    return ChapterService()


class TestCreate:
    def test_explicit_id(self, service):
        chapter = service.create_chapter(_payload(id="ch-on-001"))
        assert chapter.id == "ch-on-001"
        assert chapter.province == "ON"
        assert chapter.publish_status == "DRAFT"
        assert chapter.published_at is None

    def test_generated_id(self, service):
        chapter = service.create_chapter(_payload())
        assert len(chapter.id) == 36

    def test_duplicate_id_is_a_conflict(self, service):
        service.create_chapter(_payload(id="ch-on-001"))
        with pytest.raises(Conflict):
            service.create_chapter(_payload(id="ch-on-001"))

    def test_missing_fields(self, service):
        with pytest.raises(ValidationError) as excinfo:
            service.create_chapter({"title": "Only a title"})
        assert excinfo.value.code == "fields_required"
        assert "description" in excinfo.value.field

    def test_bad_choices(self, service):
        with pytest.raises(ValidationError):
            service.create_chapter(_payload(payment_type="GRATIS"))
        with pytest.raises(ValidationError):
            service.create_chapter(_payload(province="ONT"))

    def test_published_on_create_sets_timestamp(self, service):
        chapter = service.create_chapter(_payload(publish_status="PUBLISHED"))
        assert chapter.published_at is not None


class TestReadAndList:
    def test_describe_includes_sections(self, app, service):
        make_chapter("ch-on-001")
        make_section("sec-on-001-002", "ch-on-001", order=2, is_free=False)
        make_section("sec-on-001-001", "ch-on-001", order=1)
        db.session.commit()
        data = service.describe_chapter("ch-on-001")
        assert [s["id"] for s in data["sections"]] == ["sec-on-001-001", "sec-on-001-002"]
        assert data["totalSections"] == 2
        assert data["freeSections"] == 1

    def test_missing_chapter(self, service):
        with pytest.raises(NotFound):
            service.get_chapter("ch-on-404")

    def test_list_filters_and_paginates(self, app, service):
        make_chapter("ch-on-001", order=1, publish_status="PUBLISHED")
        make_chapter("ch-on-002", order=2)
        make_chapter("ch-bc-001", order=3, province="BC", publish_status="PUBLISHED")
        db.session.commit()

        published = service.list_chapters(publish_status="PUBLISHED")
        assert [c.id for c in published["data"]] == ["ch-on-001", "ch-bc-001"]

        ontario = service.list_chapters(province="on", order="desc")
        assert [c.id for c in ontario["data"]] == ["ch-on-002", "ch-on-001"]

        page = service.list_chapters(page=2, per_page=2)
        assert [c.id for c in page["data"]] == ["ch-bc-001"]
        assert page["pagination"]["total"] == 3
        assert page["pagination"]["hasNextPage"] is False


class TestUpdateAndDelete:
    def test_update_fields(self, app, service):
        make_chapter("ch-on-001")
        db.session.commit()
        chapter = service.update_chapter("ch-on-001", {"title": "New title", "publish_status": "PUBLISHED"})
        assert chapter.title == "New title"
        assert chapter.published_at is not None

    def test_id_changes_only_through_rename(self, app, service):
        make_chapter("ch-on-001")
        db.session.commit()
        with pytest.raises(ValidationError) as excinfo:
            service.update_chapter("ch-on-001", {"id": "ch-on-002"})
        assert excinfo.value.code == "id_immutable"

    def test_required_fields_cannot_be_cleared(self, app, service):
        make_chapter("ch-on-001")
        db.session.commit()
        with pytest.raises(ValidationError) as excinfo:
            service.update_chapter("ch-on-001", {"title": None, "description": "still here"})
        assert excinfo.value.code == "field_not_nullable"
        assert excinfo.value.field == "title"
        assert service.get_chapter("ch-on-001").title == "Chapter ch-on-001"

    def test_delete_empty_chapter(self, app, service):
        make_chapter("ch-on-001")
        db.session.commit()
        assert service.delete_chapter("ch-on-001") == {"id": "ch-on-001", "deleted": True}
        assert db.session.get(Chapter, "ch-on-001") is None

    def test_delete_refuses_chapter_with_sections(self, app, service):
        make_chapter("ch-on-001")
        make_section("sec-1", "ch-on-001")
        db.session.commit()
        with pytest.raises(ValidationError) as excinfo:
            service.delete_chapter("ch-on-001")
        assert excinfo.value.code == "chapter_not_empty"

    def test_batch_status(self, app, service):
        make_chapter("ch-on-001")
        make_chapter("ch-on-002", order=2)
        db.session.commit()
        chapters = service.batch_update_status(["ch-on-001", "ch-on-002"], "REVIEW")
        assert {c.publish_status for c in chapters} == {"REVIEW"}

    def test_batch_status_unknown_chapter(self, app, service):
        make_chapter("ch-on-001")
        db.session.commit()
        with pytest.raises(NotFound):
            service.batch_update_status(["ch-on-001", "ch-on-404"], "REVIEW")
        assert db.session.get(Chapter, "ch-on-001").publish_status == "DRAFT"

    def test_rename_delegates(self, populated_chapter, service):
        result = service.rename_chapter("ch-on-001", "ch-on-777")
        assert result["id"] == "ch-on-777"
        assert service.get_chapter("ch-on-777").title == "Chapter ch-on-001"
