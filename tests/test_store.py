"""Tests for the SQLite-backed license store."""

import json
from datetime import datetime, timedelta

import pytest
import sqlalchemy as sa

from dlscrape.common.data_models import LicenseRecord, PersonalInfo
from dlscrape.common.exceptions import RecordValidationError
from dlscrape.store.repository import LicenseStore


@pytest.fixture
async def store(tmp_path):
    async with LicenseStore.open(tmp_path / "licenses.db") as store:
        yield store


def _record(ref: str, name: str = "John Doe", **kwargs) -> LicenseRecord:
    return LicenseRecord(
        reference_no=ref, personal_info=PersonalInfo(name=name), **kwargs
    )


async def test_schema_has_licenses_table(store):
    async with store.engine.connect() as conn:
        result = await conn.execute(sa.text("PRAGMA table_info(licenses)"))
        columns = {row[1] for row in result.all()}

    assert {
        "id",
        "reference_no",
        "reference_date",
        "license_type",
        "vehicle_class",
        "personal_info_json",
        "photo",
        "created_at",
        "updated_at",
    } <= columns


class TestUpsert:
    async def test_creates_new_document(self, store):
        doc, created = await store.upsert(_record("12345", license_type="Smart"))

        assert created is True
        assert doc.id is not None
        assert doc.created_at is not None
        assert doc.updated_at is None
        assert doc.to_record() == _record("12345", license_type="Smart")

    async def test_updates_existing_in_place(self, store):
        first, _ = await store.upsert(_record("12345", "Old Name"))
        second, created = await store.upsert(_record("12345", "New Name"))

        assert created is False
        assert second.id == first.id
        assert second.updated_at is not None
        assert second.to_record().personal_info.name == "New Name"
        assert await store.count() == 1

    async def test_timestamps_share_one_format(self, store):
        await store.upsert(_record("12345"))
        doc, _ = await store.upsert(_record("12345", "Renamed"))

        created = datetime.fromisoformat(doc.created_at)
        updated = datetime.fromisoformat(doc.updated_at)

        assert created.utcoffset() == timedelta(0)
        assert updated.utcoffset() == timedelta(0)
        assert updated >= created

    @pytest.mark.parametrize("ref", ["", "   "])
    async def test_blank_reference_rejected(self, store, ref):
        with pytest.raises(RecordValidationError) as exc_info:
            await store.upsert(_record(ref))

        assert exc_info.value.errors == ["referenceNo is required"]
        assert await store.count() == 0

    async def test_personal_info_stored_as_json(self, store):
        await store.upsert(_record("1", "মোঃ রহিম"))

        async with store.engine.connect() as conn:
            result = await conn.execute(
                sa.text("SELECT personal_info_json FROM licenses")
            )
            stored = json.loads(result.scalar_one())

        assert stored["name"] == "মোঃ রহিম"


class TestQueries:
    async def test_get(self, store):
        await store.upsert(_record("1"))

        assert (await store.get("1")).reference_no == "1"
        assert await store.get("2") is None

    async def test_list_all_oldest_first(self, store):
        for ref in ["b", "a", "c"]:
            await store.upsert(_record(ref))

        docs = await store.list_all()

        assert [d.reference_no for d in docs] == ["b", "a", "c"]

    async def test_count(self, store):
        assert await store.count() == 0
        await store.upsert(_record("1"))
        await store.upsert(_record("2"))
        assert await store.count() == 2

    async def test_delete(self, store):
        await store.upsert(_record("1"))

        deleted = await store.delete("1")

        assert deleted.reference_no == "1"
        assert await store.get("1") is None
        assert await store.delete("1") is None

    async def test_api_dict_shape(self, store):
        doc, _ = await store.upsert(_record("1"))

        data = doc.to_api_dict()

        assert data["id"] == doc.id
        assert data["referenceNo"] == "1"
        assert data["personalInfo"]["name"] == "John Doe"
        assert "createdAt" in data
        assert "updatedAt" in data


async def test_self_test_leaves_no_trace(store):
    await store.upsert(_record("keep"))

    assert await store.self_test() == 1
    assert [d.reference_no for d in await store.list_all()] == ["keep"]


async def test_data_survives_reopen(tmp_path):
    db_path = tmp_path / "licenses.db"
    async with LicenseStore.open(db_path) as store:
        await store.upsert(_record("1"))

    async with LicenseStore.open(db_path) as store:
        assert (await store.get("1")).to_record() == _record("1")
