"""Mapping from portal element ids to license record fields.

The portal renders each value into an element with a fixed id, sometimes as
an ``<input>`` value and sometimes as plain text. This table is the only
place that knows those ids; when the portal markup changes, update it here.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from dlscrape.common.data_models import LicenseRecord


@dataclass(frozen=True)
class FieldSpec:
    """One record field and the element that carries it.

    Attributes:
        element_id: The DOM id on the portal page.
        path: Attribute path on LicenseRecord, e.g. ``("personal_info", "name")``.
    """

    element_id: str
    path: tuple[str, ...]


# Element whose presence means the record has rendered. It carries the
# record's own reference number.
READY_ANCHOR_ID = "registerno"

PHOTO_ELEMENT_ID = "photoId"

LICENSE_FIELDS: tuple[FieldSpec, ...] = (
    FieldSpec("registerno", ("reference_no",)),
    FieldSpec("refDate", ("reference_date",)),
    FieldSpec("licetype", ("license_type",)),
    FieldSpec("vehicle", ("vehicle_class",)),
    FieldSpec("name", ("personal_info", "name")),
    FieldSpec("fathername", ("personal_info", "father_name")),
    FieldSpec("mothername", ("personal_info", "mother_name")),
    FieldSpec("dateofbirth", ("personal_info", "date_of_birth")),
    FieldSpec("bloodgrp", ("personal_info", "blood_group")),
    FieldSpec("mobilenumber", ("personal_info", "mobile_no")),
    FieldSpec("nidnumber", ("personal_info", "nid_number")),
    FieldSpec("permanentaddress", ("personal_info", "permanent_address")),
    FieldSpec("presentaddress", ("personal_info", "present_address")),
    FieldSpec("office", ("personal_info", "licensing_authority")),
)


def resolve_value(raw: dict[str, Any] | None) -> str:
    """Pick a field's value from what the page reported for its element.

    The input value wins. Trimmed text content is the fallback. A missing
    element, or one with neither, yields an empty string.

    Args:
        raw: ``{"value": ..., "text": ...}`` for the element, or None.

    Returns:
        The resolved string, possibly empty.
    """
    if not raw:
        return ""
    value = raw.get("value")
    if isinstance(value, str) and value:
        return value
    text = raw.get("text")
    if isinstance(text, str):
        return text.strip()
    return ""


def build_record(
    elements: dict[str, dict[str, Any] | None], photo: str | None
) -> LicenseRecord:
    """Assemble a LicenseRecord from per-element page readings.

    Args:
        elements: Element id to ``{"value", "text"}`` readings (None if the
            element is absent).
        photo: The portrait ``src``, or None.

    Returns:
        The record; every field is a string.
    """
    top: dict[str, Any] = {}
    personal: dict[str, str] = {}
    for spec in LICENSE_FIELDS:
        value = resolve_value(elements.get(spec.element_id))
        if spec.path[0] == "personal_info":
            personal[spec.path[1]] = value
        else:
            top[spec.path[0]] = value
    return LicenseRecord(
        **top,
        personal_info=personal,
        photo=photo if isinstance(photo, str) else "",
    )


# Runs inside the page. Reports the raw input value and text content of
# each element so the precedence rule stays in resolve_value().
READ_ELEMENTS_SCRIPT = """
({ ids, photoId }) => {
    const elements = {};
    for (const id of ids) {
        const el = document.getElementById(id);
        if (!el) {
            elements[id] = null;
            continue;
        }
        elements[id] = {
            value: typeof el.value === "string" ? el.value : "",
            text: el.textContent || "",
        };
    }
    const photoEl = document.getElementById(photoId);
    return {
        elements,
        photo: photoEl && photoEl.src ? photoEl.src : "",
    };
}
"""


def script_arguments() -> dict[str, Any]:
    """Argument passed to READ_ELEMENTS_SCRIPT."""
    return {
        "ids": [spec.element_id for spec in LICENSE_FIELDS],
        "photoId": PHOTO_ELEMENT_ID,
    }
