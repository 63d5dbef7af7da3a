"""Tests for value cast functions."""

from datetime import datetime, timezone

import pytest
from bson import ObjectId

from crudbase.core.exceptions import CastError
from crudbase.domain.entities.collection_definition import SemanticType
from crudbase.domain.services.casters import (
    cast_date,
    cast_function_for,
    cast_geo_point,
    cast_object_id,
    identity,
)


class TestCastDate:
    """Dates from ISO strings or epoch milliseconds."""

    def test_iso_string_with_zulu(self):
        assert cast_date("2020-09-16T12:00:00.000Z") == datetime(2020, 9, 16, 12, 0, tzinfo=timezone.utc)

    def test_iso_string_with_offset(self):
        value = cast_date("2020-09-16T14:00:00+02:00")

        assert value == datetime(2020, 9, 16, 12, 0, tzinfo=timezone.utc)

    def test_date_only_is_utc(self):
        assert cast_date("2020-09-16") == datetime(2020, 9, 16, tzinfo=timezone.utc)

    def test_epoch_milliseconds(self):
        assert cast_date(1600257600000) == datetime(2020, 9, 16, 12, 0, tzinfo=timezone.utc)

    def test_datetime_passes_through(self):
        now = datetime.now(timezone.utc)

        assert cast_date(now) is now

    def test_none(self):
        assert cast_date(None) is None

    @pytest.mark.parametrize("value", ["not a date", "2020-13-45", True, {"a": 1}, [2020]])
    def test_invalid(self, value):
        with pytest.raises(CastError, match="Invalid Date"):
            cast_date(value)


class TestCastObjectId:
    """ObjectIds from hex strings or 12-byte strings."""

    def test_hex_string(self):
        assert cast_object_id("5f61f2c8e8a1b2c3d4e5f601") == ObjectId("5f61f2c8e8a1b2c3d4e5f601")

    def test_twelve_byte_string(self):
        assert cast_object_id("aaaaaaaaaaaa") == ObjectId(b"aaaaaaaaaaaa")

    def test_object_id_passes(self):
        oid = ObjectId()

        assert cast_object_id(oid) == oid

    def test_none(self):
        assert cast_object_id(None) is None

    @pytest.mark.parametrize("value", ["not-an-id", "", 1234, 12.5, "5f61f2c8e8a1b2c3d4e5f60z"])
    def test_invalid(self, value):
        with pytest.raises(CastError, match="Invalid objectId"):
            cast_object_id(value)


class TestOtherCasts:
    """GeoPoint and identity casts."""

    def test_geo_point(self):
        assert cast_geo_point([12.5, 41.9]) == {"type": "Point", "coordinates": [12.5, 41.9]}

    def test_identity(self):
        value = ["a", "b"]

        assert identity(value) is value


class TestCastFunctionFor:
    """Cast function registry."""

    def test_cast_types(self):
        assert cast_function_for(SemanticType.DATE) is cast_date
        assert cast_function_for(SemanticType.OBJECT_ID) is cast_object_id
        assert cast_function_for(SemanticType.GEO_POINT) is cast_geo_point
        assert cast_function_for(SemanticType.ARRAY) is identity

    @pytest.mark.parametrize(
        "field_type",
        [SemanticType.STRING, SemanticType.NUMBER, SemanticType.BOOLEAN, SemanticType.RAW_OBJECT],
    )
    def test_uncast_types(self, field_type):
        assert cast_function_for(field_type) is None

    def test_every_type_is_handled(self):
        for field_type in SemanticType:
            cast_function_for(field_type)
