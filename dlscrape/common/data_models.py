"""Pydantic models for extracted license records.

Field names are snake_case in Python and camelCase on the wire, which is
the shape stored in the JSON cache and returned by the API.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def to_json_dict(self) -> dict[str, Any]:
        """Dump with camelCase keys, as written to the cache file."""
        return self.model_dump(by_alias=True)


class PersonalInfo(_CamelModel):
    """Holder details shown on the license page."""

    name: str = ""
    father_name: str = ""
    mother_name: str = ""
    date_of_birth: str = ""
    blood_group: str = ""
    mobile_no: str = ""
    nid_number: str = ""
    permanent_address: str = ""
    present_address: str = ""
    licensing_authority: str = ""


class LicenseRecord(_CamelModel):
    """A personal driving-license record.

    Every field is a string. Fields the page did not show are empty
    strings, never None.
    """

    reference_no: str = ""
    reference_date: str = ""
    license_type: str = ""
    vehicle_class: str = ""
    personal_info: PersonalInfo = Field(default_factory=PersonalInfo)
    photo: str = ""

    def has_data(self) -> bool:
        """Return True if any field, nested ones included, is non-blank."""
        return any(value.strip() for value in _iter_strings(self))


def _iter_strings(model: BaseModel):
    for name in type(model).model_fields:
        value = getattr(model, name)
        if isinstance(value, BaseModel):
            yield from _iter_strings(value)
        elif isinstance(value, str):
            yield value
