"""End-to-end column filtering through FilterableMixin on SQLite."""

from __future__ import annotations

from datetime import date, datetime

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from cqrs_ddd_filterable import FilterEngine
from cqrs_ddd_filterable.exceptions import (
    IllegalOperatorError,
    InvalidFilterColumnError,
    OperatorNotAllowedForTypeError,
)
from cqrs_ddd_filterable.sqla import SQLAlchemyQueryBuilder
from filterable_models import SampleModel


async def names(session: AsyncSession, filters, stmt=None) -> list[str]:
    result = await session.execute(SampleModel.apply_filters(filters, stmt))
    return sorted(model.name for model in result.scalars().all())


@pytest.fixture
async def seeded(session: AsyncSession) -> AsyncSession:
    session.add_all(
        [
            SampleModel(
                name="John Doe",
                email="john@example.com",
                age=25,
                price=99.99,
                active=True,
                settings={"theme": "dark", "notifications": {"email": True}},
                tags=["php", "laravel"],
            ),
            SampleModel(
                name="Jane Smith",
                email="jane@example.com",
                age=30,
                price=149.99,
                active=False,
                settings={"theme": "light", "notifications": {"email": False}},
                tags=["python"],
            ),
            SampleModel(
                name="Bob Johnson",
                email="bob@example.com",
                age=35,
                price=199.99,
                active=True,
                tags=["go", "php"],
            ),
        ]
    )
    await session.commit()
    return session


async def test_integer_equals(seeded: AsyncSession) -> None:
    assert await names(seeded, {"age": 25}) == ["John Doe"]


async def test_integer_equals_string_value(seeded: AsyncSession) -> None:
    assert await names(seeded, {"age": "25"}) == ["John Doe"]


@pytest.mark.parametrize(
    ("operators", "expected"),
    [
        ({">": 30}, ["Bob Johnson"]),
        ({"<": 30}, ["John Doe"]),
        ({">=": 30}, ["Bob Johnson", "Jane Smith"]),
        ({"<=": 30}, ["Jane Smith", "John Doe"]),
        ({"<>": 30}, ["Bob Johnson", "John Doe"]),
        ({"gte": "25", "lte": "30"}, ["Jane Smith", "John Doe"]),
        ({"%3E": 30}, ["Bob Johnson"]),
    ],
)
async def test_integer_comparisons(
    seeded: AsyncSession, operators: dict, expected: list[str]
) -> None:
    assert await names(seeded, {"age": operators}) == expected


async def test_integer_in_comma_list(seeded: AsyncSession) -> None:
    assert await names(seeded, {"age": {"in": "25,35"}}) == ["Bob Johnson", "John Doe"]


async def test_integer_in_list(seeded: AsyncSession) -> None:
    assert await names(seeded, {"age": {"in": [25, 30]}}) == ["Jane Smith", "John Doe"]


async def test_string_filters(seeded: AsyncSession) -> None:
    assert await names(seeded, {"name": "Jane Smith"}) == ["Jane Smith"]
    assert await names(seeded, {"name": {"like": "%John%"}}) == [
        "Bob Johnson",
        "John Doe",
    ]
    assert await names(seeded, {"name": {"<>": "John Doe"}}) == [
        "Bob Johnson",
        "Jane Smith",
    ]


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (True, ["Bob Johnson", "John Doe"]),
        (False, ["Jane Smith"]),
        ("true", ["Bob Johnson", "John Doe"]),
        ("false", ["Jane Smith"]),
        ("1", ["Bob Johnson", "John Doe"]),
        ("0", ["Jane Smith"]),
        ("yes", ["Bob Johnson", "John Doe"]),
        ("off", ["Jane Smith"]),
    ],
)
async def test_boolean_filtering(
    seeded: AsyncSession, value: object, expected: list[str]
) -> None:
    assert await names(seeded, {"active": value}) == expected


async def test_multiple_filters_are_anded(seeded: AsyncSession) -> None:
    filters = {"active": "true", "age": {">": 25}}
    assert await names(seeded, filters) == ["Bob Johnson"]


async def test_null_checks(seeded: AsyncSession) -> None:
    seeded.add(SampleModel(name="No Age"))
    await seeded.commit()

    assert await names(seeded, {"age": {"is": "null"}}) == ["No Age"]
    assert "No Age" not in await names(seeded, {"age": {"not": "null"}})


async def test_null_token_is_case_insensitive(seeded: AsyncSession) -> None:
    seeded.add(SampleModel(name="Null Test Upper"))
    await seeded.commit()

    assert await names(seeded, {"age": {"is": "NULL"}}) == ["Null Test Upper"]
    not_null = await names(seeded, {"age": {"not": "NuLl"}})
    assert "Null Test Upper" not in not_null
    assert len(not_null) == 3


async def test_id_filtering(seeded: AsyncSession) -> None:
    result = await seeded.execute(select(SampleModel.id).order_by(SampleModel.id))
    second = result.scalars().all()[1]
    assert await names(seeded, {"id": second}) == ["Jane Smith"]
    assert await names(seeded, {"id": {"in": [second]}}) == ["Jane Smith"]


async def test_float_filtering(seeded: AsyncSession) -> None:
    assert await names(seeded, {"price": {">": "150"}}) == ["Bob Johnson"]
    assert await names(seeded, {"price": {"<": 100}}) == ["John Doe"]


async def test_json_path(seeded: AsyncSession) -> None:
    assert await names(seeded, {"settings->theme": "dark"}) == ["John Doe"]


async def test_nested_json_path(seeded: AsyncSession) -> None:
    filters = {"settings->notifications->email": True}
    assert await names(seeded, filters) == ["John Doe"]


async def test_array_in_single_value(seeded: AsyncSession) -> None:
    assert await names(seeded, {"tags": {"in": "php"}}) == ["Bob Johnson", "John Doe"]


async def test_array_in_several_values(seeded: AsyncSession) -> None:
    filters = {"tags": {"in": "python,go"}}
    assert await names(seeded, filters) == ["Bob Johnson", "Jane Smith"]


async def test_empty_filters_return_all(seeded: AsyncSession) -> None:
    assert len(await names(seeded, {})) == 3
    assert len(await names(seeded, None)) == 3


async def test_undeclared_column_is_skipped(seeded: AsyncSession) -> None:
    assert len(await names(seeded, {"unknown_column": "x"})) == 3


async def test_filter_preserves_statement_state(seeded: AsyncSession) -> None:
    stmt = select(SampleModel).where(SampleModel.active.is_(True))
    assert await names(seeded, {"age": {">=": 20}}, stmt) == [
        "Bob Johnson",
        "John Doe",
    ]


async def test_same_request_selects_same_rows(seeded: AsyncSession) -> None:
    filters = {
        "age": {">=": "25"},
        "active": "true",
        "name": {"like": "%o%"},
        "tags": {"in": "php,python"},
        "email": {"not": "null"},
    }
    engine = SampleModel.filter_engine()

    async def selected(builder: SQLAlchemyQueryBuilder) -> set[int]:
        result = await seeded.execute(engine.apply(filters, builder).statement)
        return {model.id for model in result.scalars().all()}

    first = SQLAlchemyQueryBuilder(SampleModel)
    narrowed = first.where("price", "<", 150)
    rows = await selected(first)

    assert len(rows) == 2
    assert await selected(SQLAlchemyQueryBuilder(SampleModel)) == rows
    assert await selected(first) == rows
    narrowed_rows = await selected(narrowed)
    assert len(narrowed_rows) == 1
    assert narrowed_rows < rows
    assert await selected(narrowed) == narrowed_rows
    assert first.criteria == ()
    assert len(narrowed.criteria) == 1


async def test_special_characters(seeded: AsyncSession) -> None:
    seeded.add_all(
        [
            SampleModel(name="O'Brien"),
            SampleModel(name="Test & Co."),
            SampleModel(name="50% off"),
        ]
    )
    await seeded.commit()

    assert await names(seeded, {"name": "O'Brien"}) == ["O'Brien"]
    assert await names(seeded, {"name": {"like": "%&%"}}) == ["Test & Co."]
    assert await names(seeded, {"name": {"like": "50%"}}) == ["50% off"]


async def test_empty_string_and_zero_values(seeded: AsyncSession) -> None:
    seeded.add_all(
        [
            SampleModel(name="", email="empty@example.com"),
            SampleModel(name="Zero Age", age=0),
        ]
    )
    await seeded.commit()

    assert await names(seeded, {"name": ""}) == [""]
    assert await names(seeded, {"age": 0}) == ["Zero Age"]


async def test_errors_propagate(seeded: AsyncSession) -> None:
    with pytest.raises(IllegalOperatorError, match="Illegal operator @"):
        SampleModel.apply_filters({"name": {"@": "test"}})
    with pytest.raises(OperatorNotAllowedForTypeError):
        SampleModel.apply_filters({"age": {"like": "%25%"}})


async def test_default_operator_override(seeded: AsyncSession) -> None:
    seeded.add_all(
        [SampleModel(name="Default Like Test"), SampleModel(name="Another Test")]
    )
    await seeded.commit()

    engine = FilterEngine.from_mapping({"name": "string"}, default_operator="like")
    builder = engine.apply({"name": "%Test"}, SQLAlchemyQueryBuilder(SampleModel))
    result = await seeded.execute(builder.statement)
    assert sorted(m.name for m in result.scalars().all()) == [
        "Another Test",
        "Default Like Test",
    ]


async def test_empty_filterable_returns_all(seeded: AsyncSession) -> None:
    engine = FilterEngine.from_mapping({})
    builder = SQLAlchemyQueryBuilder(SampleModel)
    assert engine.apply({"name": "John Doe"}, builder) is builder
    result = await seeded.execute(builder.statement)
    assert len(result.scalars().all()) == 3


class TestColumnValidation:
    @pytest.fixture
    def engine(self) -> FilterEngine:
        return FilterEngine.from_mapping(
            {"name": "string", "email": "string"}, validate_columns=True
        )

    async def test_valid_column(
        self, seeded: AsyncSession, engine: FilterEngine
    ) -> None:
        builder = SQLAlchemyQueryBuilder(SampleModel)
        builder = engine.apply({"name": "Jane Smith"}, builder)
        result = await seeded.execute(builder.statement)
        assert [m.name for m in result.scalars().all()] == ["Jane Smith"]

    def test_invalid_column(self, engine: FilterEngine) -> None:
        with pytest.raises(
            InvalidFilterColumnError, match="Filter column 'age' is not allowed."
        ):
            engine.apply({"age": 25}, SQLAlchemyQueryBuilder(SampleModel))


class TestDateTimeFiltering:
    @pytest.fixture
    async def dated(self, session: AsyncSession) -> AsyncSession:
        session.add_all(
            [
                SampleModel(
                    name="Morning Record",
                    birth_date=date(1990, 1, 15),
                    created_at=datetime(2023, 1, 15, 8, 0, 0),
                ),
                SampleModel(
                    name="Evening Record",
                    birth_date=date(1990, 1, 15),
                    created_at=datetime(2023, 1, 15, 20, 30, 0),
                ),
                SampleModel(
                    name="Next Day Record",
                    birth_date=date(1995, 6, 20),
                    created_at=datetime(2023, 6, 20, 14, 45, 0),
                ),
            ]
        )
        await session.commit()
        return session

    async def test_date_only_value_matches_whole_day(self, dated: AsyncSession) -> None:
        assert await names(dated, {"created_at": "2023-01-15"}) == [
            "Evening Record",
            "Morning Record",
        ]

    async def test_full_timestamp_matches_exactly(self, dated: AsyncSession) -> None:
        filters = {"created_at": "2023-01-15 08:00:00"}
        assert await names(dated, filters) == ["Morning Record"]

    async def test_date_comparisons(self, dated: AsyncSession) -> None:
        after = await names(dated, {"birth_date": {">": "1992-01-01"}})
        assert after == ["Next Day Record"]
        on_or_before = await names(dated, {"birth_date": {"<=": "1990-01-15"}})
        assert on_or_before == ["Evening Record", "Morning Record"]

    async def test_datetime_comparisons_with_aliases(self, dated: AsyncSession) -> None:
        after_morning = await names(
            dated, {"created_at": {"gt": "2023-01-15 08:00:00"}}
        )
        assert after_morning == ["Evening Record", "Next Day Record"]
        until_evening = await names(
            dated, {"created_at": {"lte": "2023-01-15 20:30:00"}}
        )
        assert until_evening == ["Evening Record", "Morning Record"]
