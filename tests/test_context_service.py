import logging
from datetime import timedelta

import pytest
from sqlalchemy.exc import OperationalError

from handbook import db
from handbook.errors import PartialResultWarning, ValidationError
from handbook.services.context_service import ContextService
from handbook.services.image_resolver import ImageResolver
from tests.conftest import BASE_TIME, make_image


@pytest.fixture
def service(app):
    return ContextService(ImageResolver(), context_limit=50, recent_limit=10, suggestion_limit=5)


def _ids(images):
    return [img.id for img in images]


class TestEditableContext:
    def test_context_only_by_default(self, context_chapter, service):
        result = service.get_editable_context(chapter_id="ch-1")
        assert _ids(result.context_images) == ["img-1", "img-2"]
        assert result.recent_images is None
        assert result.suggestions is None
        assert result.warnings == []
        assert set(result.to_dict()) == {"contextImages"}

    def test_recent_and_suggestions(self, context_chapter, service):
        make_image("img-cover", chapter_id="ch-1", usage="cover", created_at=BASE_TIME + timedelta(hours=1))
        db.session.commit()
        result = service.get_editable_context(chapter_id="ch-1", usage="cover", include_recent=True)
        assert _ids(result.context_images) == ["img-cover"]
        assert _ids(result.recent_images)[0] == "img-cover"
        assert _ids(result.suggestions) == ["img-cover"]

    def test_groups_overlap_until_merged(self, context_chapter, service):
        result = service.get_editable_context(chapter_id="ch-1", include_recent=True)
        overlap = set(_ids(result.context_images)) & set(_ids(result.recent_images))
        assert overlap == {"img-1", "img-2"}
        merged = _ids(result.merged())
        assert len(merged) == len(set(merged)) == 5
        assert merged[:2] == ["img-1", "img-2"]

    def test_section_context_with_chapter_extras(self, context_chapter, service):
        result = service.get_editable_context(chapter_id="ch-1", section_id="sec-1", include_recent=True)
        assert _ids(result.context_images) == ["img-s0", "img-s1", "img-s2"]
        assert len(result.recent_images) == 5

    def test_recent_needs_a_chapter(self, context_chapter, service):
        result = service.get_editable_context(section_id="sec-1", include_recent=True)
        assert result.recent_images is None

    def test_limits(self, context_chapter):
        service = ContextService(ImageResolver(), context_limit=1, recent_limit=2)
        result = service.get_editable_context(chapter_id="ch-1", include_recent=True)
        assert _ids(result.context_images) == ["img-1"]
        assert len(result.recent_images) == 2

    def test_required_branch_failure_propagates(self, context_chapter, service):
        with pytest.raises(ValidationError):
            service.get_editable_context()


class TestPartialFailure:
    def test_optional_branch_failure_becomes_warning(self, context_chapter, service, monkeypatch, caplog):
        def broken(chapter_id, limit=10):
            raise OperationalError("SELECT", {}, Exception("database is locked"))

        monkeypatch.setattr(service.resolver, "recent_images", broken)
        with caplog.at_level(logging.WARNING, logger="handbook"):
            result = service.get_editable_context(chapter_id="ch-1", usage="content", include_recent=True)

        assert _ids(result.context_images) == ["img-1", "img-2"]
        assert result.recent_images is None
        assert result.suggestions is not None
        assert len(result.warnings) == 1
        warning = result.warnings[0]
        assert isinstance(warning, PartialResultWarning)
        assert warning.branch == "recentImages"
        assert "database is locked" in warning.to_dict()["cause"]
        assert result.to_dict()["warnings"][0]["branch"] == "recentImages"
        assert "optional context branch failed" in caplog.text

    def test_both_optional_branches_can_fail(self, context_chapter, service, monkeypatch):
        def broken(*args, **kwargs):
            raise OperationalError("SELECT", {}, Exception("gone"))

        monkeypatch.setattr(service.resolver, "recent_images", broken)
        monkeypatch.setattr(service.resolver, "suggested_images", broken)
        result = service.get_editable_context(chapter_id="ch-1", usage="content", include_recent=True)
        assert [w.branch for w in result.warnings] == ["recentImages", "suggestions"]
        assert len(result.context_images) == 2
