"""Tests for vessel request models and status derivation."""

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from shipline.models.vessel import VesselStatus, as_utc, derive_status
from shipline.vessels.schemas import VesselCreate, VesselListQuery, VesselUpdate
from shipline.vessels.service import is_valid_id, search_terms


def _body(**overrides):
    body = {
        "vesselName": "  MSC DIANA  ",
        "voyageNo": "DIA001E",
        "country": "Panama",
        "portName": "Port of Hamburg",
        "ETA": "2024-01-15T08:00:00Z",
        "ETD": "2024-01-17T18:00:00Z",
    }
    body.update(overrides)
    return body


class TestVesselCreate:
    """Tests for the create body."""

    @pytest.mark.unit
    def test_strings_are_trimmed(self):
        vessel = VesselCreate.model_validate(_body())

        assert vessel.vessel_name == "MSC DIANA"

    @pytest.mark.unit
    def test_naive_timestamps_are_read_as_utc(self):
        vessel = VesselCreate.model_validate(_body(ETA="2024-01-15T08:00:00", ETD="2024-01-16T08:00:00"))

        assert vessel.eta == datetime(2024, 1, 15, 8, tzinfo=timezone.utc)

    @pytest.mark.unit
    def test_offsets_are_converted_to_utc(self):
        vessel = VesselCreate.model_validate(_body(ETA="2024-01-15T10:00:00+02:00"))

        assert vessel.eta == datetime(2024, 1, 15, 8, tzinfo=timezone.utc)
        assert vessel.eta.utcoffset() == timedelta(0)

    @pytest.mark.unit
    @pytest.mark.parametrize("etd", ["2024-01-15T08:00:00Z", "2024-01-14T08:00:00Z"])
    def test_etd_must_follow_eta(self, etd):
        with pytest.raises(ValidationError) as excinfo:
            VesselCreate.model_validate(_body(ETD=etd))

        assert excinfo.value.errors()[0]["loc"] == ("ETD",)

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "field,value",
        [
            ("vesselName", "M"),
            ("vesselName", "MSC <script>"),
            ("voyageNo", "V.1"),
            ("country", "Panama 1"),
            ("portName", "x" * 81),
            ("ETA", "1899-12-31T00:00:00Z"),
            ("ETA", "not a date"),
        ],
    )
    def test_field_rules(self, field, value):
        with pytest.raises(ValidationError):
            VesselCreate.model_validate(_body(**{field: value}))

    @pytest.mark.unit
    def test_unknown_keys_are_rejected(self):
        with pytest.raises(ValidationError):
            VesselCreate.model_validate(_body(status="DEPARTED"))

    @pytest.mark.unit
    def test_all_fields_required(self):
        body = _body()
        del body["country"]

        with pytest.raises(ValidationError):
            VesselCreate.model_validate(body)


class TestVesselUpdate:
    """Tests for the partial update body."""

    @pytest.mark.unit
    def test_changes_only_lists_sent_fields(self):
        update = VesselUpdate.model_validate({"portName": "Port of Hull"})

        assert update.changes() == {"port_name": "Port of Hull"}

    @pytest.mark.unit
    def test_explicit_nulls_are_ignored(self):
        update = VesselUpdate.model_validate({"country": None, "voyageNo": "V2"})

        assert update.changes() == {"voyage_no": "V2"}

    @pytest.mark.unit
    def test_schedule_checked_when_both_sent(self):
        with pytest.raises(ValidationError):
            VesselUpdate.model_validate({"ETA": "2024-01-02T00:00:00Z", "ETD": "2024-01-01T00:00:00Z"})

    @pytest.mark.unit
    def test_single_timestamp_is_accepted(self):
        update = VesselUpdate.model_validate({"ETD": "2024-01-01T00:00:00Z"})

        assert "etd" in update.changes()


class TestVesselListQuery:
    """Tests for the listing query model."""

    @pytest.mark.unit
    def test_defaults(self):
        params = VesselListQuery()

        assert params.page == 1
        assert params.limit == 10
        assert params.sort == "-ETA"

    @pytest.mark.unit
    def test_numbers_from_strings(self):
        params = VesselListQuery.model_validate({"page": "3", "limit": "25"})

        assert (params.page, params.limit) == (3, 25)

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "query",
        [{"page": "0"}, {"limit": "101"}, {"sort": "status"}, {"sort": "--ETA"}, {"q": "x" * 201}, {"foo": "1"}],
    )
    def test_rejected_values(self, query):
        with pytest.raises(ValidationError):
            VesselListQuery.model_validate(query)

    @pytest.mark.unit
    def test_cache_buster_is_tolerated(self):
        params = VesselListQuery.model_validate({"_t": "1712345678"})

        assert "_t" not in params.filters()


class TestHelpers:
    """Tests for id validation, search term splitting and status."""

    @pytest.mark.unit
    def test_id_shape(self):
        assert is_valid_id("0b6f7c1e-5d0a-4c0e-9a51-3f2b8e7d9c10")
        assert is_valid_id("0B6F7C1E-5D0A-4C0E-9A51-3F2B8E7D9C10")
        assert not is_valid_id("not-an-id")
        assert not is_valid_id("507f1f77bcf86cd799439011")
        assert not is_valid_id("")

    @pytest.mark.unit
    def test_search_terms_keep_quoted_phrases(self):
        assert search_terms('maersk "port of hamburg"  diana') == ["maersk", "port of hamburg", "diana"]

    @pytest.mark.unit
    def test_search_terms_of_blank_input(self):
        assert search_terms("   ") == []

    @pytest.mark.unit
    def test_status_follows_the_clock(self):
        eta = datetime(2024, 1, 1, tzinfo=timezone.utc)
        etd = datetime(2024, 1, 3, tzinfo=timezone.utc)

        assert derive_status(eta, etd, now=eta - timedelta(hours=1)) is VesselStatus.UPCOMING
        assert derive_status(eta, etd, now=eta) is VesselStatus.AT_PORT
        assert derive_status(eta, etd, now=etd) is VesselStatus.AT_PORT
        assert derive_status(eta, etd, now=etd + timedelta(seconds=1)) is VesselStatus.DEPARTED

    @pytest.mark.unit
    def test_status_accepts_naive_store_values(self):
        eta = datetime(2024, 1, 1)
        etd = datetime(2024, 1, 3)

        assert derive_status(eta, etd, now=datetime(2024, 1, 2, tzinfo=timezone.utc)) is VesselStatus.AT_PORT

    @pytest.mark.unit
    def test_as_utc(self):
        assert as_utc(None) is None
        assert as_utc(datetime(2024, 1, 1)).tzinfo is timezone.utc
