"""Tests for the filter operator legality matrix."""

import pytest

from crudbase.domain.entities.collection_definition import SemanticType
from crudbase.domain.services.casters import cast_date, cast_geo_point
from crudbase.domain.services.query_operators import (
    FILTER_OPERATORS,
    cast_each,
    cast_near_sphere,
    cast_operand,
    get_filter_operator,
    is_operator_supported,
    pass_through,
)

COMPARISONS = ["$gt", "$lt", "$gte", "$lte", "$eq", "$ne"]
SET_OPERATORS = ["$in", "$nin", "$all"]


class TestLegality:
    """Which operators are legal on which field types."""

    @pytest.mark.parametrize("operator", COMPARISONS + SET_OPERATORS + ["$regex", "$options"])
    def test_element_operators(self, operator):
        for field_type in (
            SemanticType.STRING,
            SemanticType.NUMBER,
            SemanticType.BOOLEAN,
            SemanticType.DATE,
            SemanticType.OBJECT_ID,
            SemanticType.GEO_POINT,
        ):
            assert is_operator_supported(operator, field_type), field_type
        assert not is_operator_supported(operator, SemanticType.ARRAY)
        assert not is_operator_supported(operator, SemanticType.RAW_OBJECT)

    def test_exists_is_legal_everywhere(self):
        for field_type in SemanticType:
            assert is_operator_supported("$exists", field_type)

    def test_near_sphere_only_on_geo_points(self):
        supported = {t for t in SemanticType if is_operator_supported("$nearSphere", t)}

        assert supported == {SemanticType.GEO_POINT}

    def test_elem_match_only_on_arrays(self):
        supported = {t for t in SemanticType if is_operator_supported("$elemMatch", t)}

        assert supported == {SemanticType.ARRAY}

    def test_unknown_operator(self):
        assert get_filter_operator("$where") is None
        assert not is_operator_supported("$where", SemanticType.STRING)

    def test_registry_is_keyed_by_name(self):
        for name, operator in FILTER_OPERATORS.items():
            assert operator.name == name


class TestAppliers:
    """Operand cast strategies."""

    def test_cast_operand(self):
        assert cast_operand("2020-09-16", cast_date).year == 2020

    def test_cast_each(self):
        values = cast_each(["2020-09-16", "2021-01-01"], cast_date)

        assert [value.year for value in values] == [2020, 2021]

    def test_pass_through(self):
        operand = {"$gt": 3}

        assert pass_through(operand, cast_date) is operand

    def test_near_sphere_with_distances(self):
        result = cast_near_sphere({"from": [1, 2], "minDistance": 10, "maxDistance": 100}, cast_geo_point)

        assert result == {
            "$geometry": {"type": "Point", "coordinates": [1, 2]},
            "$minDistance": 10,
            "$maxDistance": 100,
        }

    def test_near_sphere_omits_missing_distances(self):
        result = cast_near_sphere({"from": [1, 2]}, cast_geo_point)

        assert result == {"$geometry": {"type": "Point", "coordinates": [1, 2]}}
