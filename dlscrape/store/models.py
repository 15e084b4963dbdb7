"""SQLModel table definitions for the license store.

Tables:
- licenses: one row per license record, keyed by reference number
"""

from __future__ import annotations

import json
from datetime import datetime, timezone

from sqlmodel import Field, SQLModel

from dlscrape.common.data_models import LicenseRecord, PersonalInfo


def utc_timestamp() -> str:
    """Current UTC time as ISO-8601 with offset, used for both row timestamps."""
    return datetime.now(timezone.utc).isoformat()


class LicenseDocument(SQLModel, table=True):  # type: ignore[call-arg]
    """A stored license record."""

    __tablename__ = "licenses"

    id: int | None = Field(default=None, primary_key=True)
    reference_no: str = Field(unique=True)
    reference_date: str = ""
    license_type: str = ""
    vehicle_class: str = ""
    personal_info_json: str = "{}"
    photo: str = ""

    created_at: str = Field(default_factory=utc_timestamp)
    updated_at: str | None = None

    @classmethod
    def from_record(cls, record: LicenseRecord) -> LicenseDocument:
        doc = cls(reference_no=record.reference_no)
        doc.apply(record)
        return doc

    def apply(self, record: LicenseRecord) -> None:
        """Copy every field of ``record`` onto this row."""
        self.reference_no = record.reference_no
        self.reference_date = record.reference_date
        self.license_type = record.license_type
        self.vehicle_class = record.vehicle_class
        self.personal_info_json = json.dumps(
            record.personal_info.model_dump(), ensure_ascii=False
        )
        self.photo = record.photo

    def to_record(self) -> LicenseRecord:
        return LicenseRecord(
            reference_no=self.reference_no,
            reference_date=self.reference_date,
            license_type=self.license_type,
            vehicle_class=self.vehicle_class,
            personal_info=PersonalInfo.model_validate(
                json.loads(self.personal_info_json or "{}")
            ),
            photo=self.photo,
        )

    def to_api_dict(self) -> dict:
        """Record fields (camelCase) plus row metadata."""
        return {
            "id": self.id,
            **self.to_record().to_json_dict(),
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }
