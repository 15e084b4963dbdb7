"""Tests for the license record models."""

import pytest

from dlscrape.common.data_models import LicenseRecord, PersonalInfo


class TestHasData:
    def test_default_record_is_empty(self):
        assert not LicenseRecord().has_data()

    @pytest.mark.parametrize("blank", ["", " ", "\n\t  "])
    def test_whitespace_only_is_empty(self, blank):
        record = LicenseRecord(
            reference_no=blank, personal_info=PersonalInfo(name=blank)
        )
        assert not record.has_data()

    def test_nested_value_counts(self):
        record = LicenseRecord(personal_info=PersonalInfo(blood_group="O+"))
        assert record.has_data()

    def test_photo_counts(self):
        assert LicenseRecord(photo="data:image/png;base64,AA").has_data()


class TestSerialization:
    def test_dump_uses_camel_case(self):
        record = LicenseRecord(
            reference_no="12345",
            personal_info=PersonalInfo(name="John Doe", nid_number="1"),
        )

        dumped = record.to_json_dict()

        assert list(dumped) == [
            "referenceNo",
            "referenceDate",
            "licenseType",
            "vehicleClass",
            "personalInfo",
            "photo",
        ]
        assert dumped["personalInfo"]["name"] == "John Doe"
        assert dumped["personalInfo"]["nidNumber"] == "1"
        assert "fatherName" in dumped["personalInfo"]

    def test_validate_from_camel_case(self):
        record = LicenseRecord.model_validate(
            {
                "referenceNo": "12345",
                "personalInfo": {"mobileNo": "017", "licensingAuthority": "X"},
            }
        )

        assert record.reference_no == "12345"
        assert record.personal_info.mobile_no == "017"
        assert record.personal_info.licensing_authority == "X"
        assert record.photo == ""

    def test_populate_by_field_name(self):
        record = LicenseRecord(reference_no="1", vehicle_class="Light")
        assert record.vehicle_class == "Light"

    def test_personal_info_defaults_are_independent(self):
        a = LicenseRecord()
        b = LicenseRecord()
        assert a.personal_info is not b.personal_info
