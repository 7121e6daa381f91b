"""
Repository Tests
CRUD behaviour of the generic repository and the domain queries built on it,
against a mocked Motor collection.
"""
from unittest.mock import AsyncMock, MagicMock

import pytest
from bson import ObjectId
from pymongo.errors import AutoReconnect, DuplicateKeyError

from marketlens.models.project import ProjectStatus
from marketlens.repositories import (
    DocumentRepository,
    FocusGroupRepository,
    PersistenceFailed,
    ProjectRepository,
    SegmentationResultRepository,
)


pytestmark = pytest.mark.asyncio

PROJECT_OID = ObjectId("65f000000000000000000001")


def project_doc(**overrides):
    doc = {
        "_id": PROJECT_OID,
        "context": {"business_type": "B2C", "industry": "Electric Vehicles"},
        "status": "draft",
        "created_at": "2025-01-01T00:00:00+00:00",
        "updated_at": "2025-01-01T00:00:00+00:00",
    }
    doc.update(overrides)
    return doc


class FakeCursor:
    """Chainable stand-in for a Motor cursor."""

    def __init__(self, docs):
        self.docs = docs
        self.sort_spec = None
        self.skipped = None
        self.limited = None

    def skip(self, n):
        self.skipped = n
        return self

    def limit(self, n):
        self.limited = n
        return self

    def sort(self, spec):
        self.sort_spec = spec
        return self

    async def to_list(self, length=None):
        return self.docs


@pytest.fixture
def collection():
    return MagicMock()


@pytest.fixture
def database(collection):
    db = MagicMock()
    db.__getitem__.return_value = collection
    return db


class TestCreate:

    async def test_single_insert_populates_id(self, database, collection, sample_segmentation):
        collection.insert_one = AsyncMock(return_value=MagicMock(inserted_id=ObjectId("65f0000000000000000000ff")))
        repo = SegmentationResultRepository(database)
        record = sample_segmentation.model_copy(update={"id": None})

        created = await repo.create(record)

        assert created.id == "65f0000000000000000000ff"
        collection.insert_one.assert_awaited_once()
        stored = collection.insert_one.await_args.args[0]
        assert "_id" not in stored
        assert stored["project_id"] == "65f000000000000000000001"
        assert stored["segments"][0]["name"] == "Eco-Conscious Professionals"
        assert isinstance(stored["created_at"], str)

    async def test_driver_error_wrapped(self, database, collection, sample_segmentation):
        collection.insert_one = AsyncMock(side_effect=DuplicateKeyError("dup"))

        with pytest.raises(PersistenceFailed):
            await SegmentationResultRepository(database).create(sample_segmentation)


class TestReads:

    async def test_find_by_id(self, database, collection):
        collection.find_one = AsyncMock(return_value=project_doc())

        project = await ProjectRepository(database).find_by_id(str(PROJECT_OID))

        assert project.id == str(PROJECT_OID)
        assert project.context.industry == "Electric Vehicles"
        collection.find_one.assert_awaited_once_with({"_id": PROJECT_OID})

    async def test_find_by_invalid_id_skips_query(self, database, collection):
        collection.find_one = AsyncMock()

        assert await ProjectRepository(database).find_by_id("not-an-object-id") is None
        collection.find_one.assert_not_awaited()

    async def test_unknown_keys_dropped(self, database, collection):
        collection.find_one = AsyncMock(return_value=project_doc(legacy_field="x"))

        project = await ProjectRepository(database).find_by_id(str(PROJECT_OID))

        assert not hasattr(project, "legacy_field")

    async def test_read_failure_wrapped(self, database, collection):
        collection.find_one = AsyncMock(side_effect=AutoReconnect("lost"))

        with pytest.raises(PersistenceFailed):
            await ProjectRepository(database).find_by_id(str(PROJECT_OID))

    async def test_list_recent_sorts_newest_first(self, database, collection):
        cursor = FakeCursor([project_doc()])
        collection.find = MagicMock(return_value=cursor)

        projects = await ProjectRepository(database).list_recent(limit=5)

        assert len(projects) == 1
        assert cursor.sort_spec == [("created_at", -1)]
        assert cursor.limited == 5

    async def test_latest_segmentation(self, database, collection, sample_segmentation):
        stored = sample_segmentation.model_dump(by_alias=True)
        stored["_id"] = ObjectId(stored["_id"])
        collection.find_one = AsyncMock(return_value=stored)

        latest = await SegmentationResultRepository(database).latest_for_project("65f000000000000000000001")

        assert latest.segments[0].name == "Eco-Conscious Professionals"
        collection.find_one.assert_awaited_once_with(
            {"project_id": "65f000000000000000000001"}, sort=[("created_at", -1)]
        )

    async def test_focus_group_filter_by_segment(self, database, collection):
        collection.find = MagicMock(return_value=FakeCursor([]))

        await FocusGroupRepository(database).list_for_project("p1", segment_name="Commuters")

        collection.find.assert_called_once_with({"project_id": "p1", "segment_name": "Commuters"})

    async def test_pending_documents_filter(self, database, collection):
        collection.find = MagicMock(return_value=FakeCursor([]))

        await DocumentRepository(database).pending_for_project("p1")

        filter_dict = collection.find.call_args.args[0]
        assert filter_dict["status"] == {"$in": ["uploaded", "processing"]}


class TestWrites:

    async def test_set_status_clears_error_unless_error(self, database, collection):
        collection.find_one_and_update = AsyncMock(return_value=project_doc(status="completed"))
        repo = ProjectRepository(database)

        await repo.set_status(str(PROJECT_OID), ProjectStatus.COMPLETED, error_message="ignored",
                              latest_segmentation_id="65f0000000000000000000aa")

        update = collection.find_one_and_update.await_args.args[1]["$set"]
        assert update["status"] == "completed"
        assert update["error_message"] is None
        assert update["latest_segmentation_id"] == "65f0000000000000000000aa"
        assert "updated_at" in update

    async def test_set_status_error_keeps_message(self, database, collection):
        collection.find_one_and_update = AsyncMock(return_value=project_doc(status="error"))

        project = await ProjectRepository(database).set_status(str(PROJECT_OID), ProjectStatus.ERROR, "vendors down")

        update = collection.find_one_and_update.await_args.args[1]["$set"]
        assert update["error_message"] == "vendors down"
        assert project.status == ProjectStatus.ERROR

    async def test_update_missing_document(self, database, collection):
        collection.find_one_and_update = AsyncMock(return_value=None)

        assert await ProjectRepository(database).update_fields(str(PROJECT_OID), {"status": "draft"}) is None

    async def test_delete(self, database, collection):
        collection.delete_one = AsyncMock(return_value=MagicMock(deleted_count=1))

        assert await ProjectRepository(database).delete(str(PROJECT_OID)) is True
        assert await ProjectRepository(database).delete("bad-id") is False

    async def test_delete_for_project(self, database, collection):
        collection.delete_many = AsyncMock(return_value=MagicMock(deleted_count=3))

        assert await DocumentRepository(database).delete_for_project("p1") == 3
        collection.delete_many.assert_awaited_once_with({"project_id": "p1"})

    async def test_count(self, database, collection):
        collection.count_documents = AsyncMock(return_value=7)

        assert await SegmentationResultRepository(database).count() == 7
        collection.count_documents.assert_awaited_once_with({})
