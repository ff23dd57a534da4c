import uuid
from datetime import datetime, timedelta

import pytest

from handbook import create_app, db
from handbook.config import TestingConfig
from handbook.models.bookmark import Bookmark
from handbook.models.chapter import Chapter
from handbook.models.chapter_progress import ChapterProgress
from handbook.models.content_version import ContentVersion
from handbook.models.image import Image
from handbook.models.reading_record import ReadingRecord
from handbook.models.section import Section


BASE_TIME = datetime(2024, 1, 1, 12, 0, 0)


@pytest.fixture
def app():
    app = create_app(TestingConfig)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def session(app):
    return db.session


def make_chapter(chapter_id, order=1, province="ON", **overrides):
    values = dict(
        id=chapter_id,
        title=f"Chapter {chapter_id}",
        description="About driving",
        order=order,
        province=province,
        estimated_read_time=10,
    )
    values.update(overrides)
    chapter = Chapter(**values)
    db.session.add(chapter)
    return chapter


def make_section(section_id, chapter_id, order=1, **overrides):
    values = dict(
        id=section_id,
        chapter_id=chapter_id,
        title=f"Section {section_id}",
        order=order,
        content="Road signs and signals.",
    )
    values.update(overrides)
    section = Section(**values)
    db.session.add(section)
    return section


def make_image(image_id, chapter_id=None, section_id=None, order=0, usage="content", created_at=None, **overrides):
    values = dict(
        id=image_id,
        chapter_id=chapter_id,
        section_id=section_id,
        filename=f"{image_id}.png",
        original_name=f"{image_id}.png",
        file_url=f"/uploads/{image_id}.png",
        file_size=1024,
        mime_type="image/png",
        usage=usage,
        order=order,
        created_at=created_at or BASE_TIME,
    )
    values.update(overrides)
    image = Image(**values)
    db.session.add(image)
    return image


def make_reading_record(chapter_id, section_id=None, user_id="user-1"):
    record = ReadingRecord(
        id=str(uuid.uuid4()),
        user_id=user_id,
        chapter_id=chapter_id,
        section_id=section_id,
        province="ON",
        total_length=100,
    )
    db.session.add(record)
    return record


def make_bookmark(chapter_id, section_id=None, user_id="user-1"):
    bookmark = Bookmark(
        id=str(uuid.uuid4()),
        user_id=user_id,
        chapter_id=chapter_id,
        section_id=section_id,
        province="ON",
        position=5,
    )
    db.session.add(bookmark)
    return bookmark


def make_version(chapter_id=None, section_id=None, version="v1"):
    entry = ContentVersion(
        id=str(uuid.uuid4()),
        chapter_id=chapter_id,
        section_id=section_id,
        version=version,
        content_snapshot={"title": "snapshot"},
        change_type="create",
        created_by="editor-1",
    )
    db.session.add(entry)
    return entry


def make_progress(chapter_id, user_id="user-1"):
    progress = ChapterProgress(id=str(uuid.uuid4()), user_id=user_id, chapter_id=chapter_id)
    db.session.add(progress)
    return progress


@pytest.fixture
def populated_chapter(app):
    """ch-on-001 with two sections, two direct images and three section images.

    Every table that references a chapter gets at least one row.
    """
    make_chapter("ch-on-001")
    make_section("sec-1", "ch-on-001", order=1)
    make_section("sec-2", "ch-on-001", order=2)
    db.session.flush()

    make_image("img-d1", chapter_id="ch-on-001", order=0)
    make_image("img-d2", chapter_id="ch-on-001", order=1)
    make_image("img-s1", chapter_id="ch-on-001", section_id="sec-1", order=0)
    make_image("img-s2", chapter_id="ch-on-001", section_id="sec-1", order=1)
    make_image("img-s3", chapter_id="ch-on-001", section_id="sec-2", order=0)

    make_reading_record("ch-on-001", "sec-1")
    make_bookmark("ch-on-001", "sec-2")
    make_version(chapter_id="ch-on-001")
    make_progress("ch-on-001")

    make_chapter("ch-on-002", order=2, prerequisite_chapters=["ch-on-001"])
    db.session.commit()
    return "ch-on-001"


@pytest.fixture
def context_chapter(app):
    """ch-1 with two direct images and one section holding three images."""
    make_chapter("ch-1")
    make_section("sec-1", "ch-1")
    db.session.flush()
    make_image("img-1", chapter_id="ch-1", order=0)
    make_image("img-2", chapter_id="ch-1", order=1)
    for i in range(3):
        make_image(f"img-s{i}", chapter_id="ch-1", section_id="sec-1", order=i,
                   created_at=BASE_TIME + timedelta(minutes=i))
    db.session.commit()
    return "ch-1"
