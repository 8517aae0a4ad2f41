"""Unit tests for parameter normalization."""

from __future__ import annotations

from slim_orm.core.params import coerce_params, normalize_params


class TestNormalizeParams:
    def test_named_passthrough(self) -> None:
        sql = "SELECT * FROM users WHERE id = :user_id"
        assert normalize_params(sql, "named") == sql

    def test_pyformat_conversion(self) -> None:
        sql = "SELECT * FROM users WHERE id = :user_id"
        expected = "SELECT * FROM users WHERE id = %(user_id)s"
        assert normalize_params(sql, "pyformat") == expected

    def test_typecast_exclusion(self) -> None:
        sql = "SELECT value::integer FROM t WHERE id = :id"
        expected = "SELECT value::integer FROM t WHERE id = %(id)s"
        assert normalize_params(sql, "pyformat") == expected

    def test_string_literal_exclusion(self) -> None:
        sql = "SELECT * FROM t WHERE col = ':not_a_param' AND id = :id"
        expected = "SELECT * FROM t WHERE col = ':not_a_param' AND id = %(id)s"
        assert normalize_params(sql, "pyformat") == expected

    def test_generated_update_statement(self) -> None:
        sql = 'UPDATE "users" SET "name" = :name WHERE "id" = :__pk'
        expected = 'UPDATE "users" SET "name" = %(name)s WHERE "id" = %(__pk)s'
        assert normalize_params(sql, "pyformat") == expected


class TestCoerceParams:
    def test_no_params(self) -> None:
        assert coerce_params(()) is None

    def test_single_dict_is_named(self) -> None:
        params = {"id": 1}
        assert coerce_params((params,)) is params

    def test_single_sequence_is_positional(self) -> None:
        assert coerce_params(([1, 2],)) == (1, 2)
        assert coerce_params(((1, 2),)) == (1, 2)

    def test_varargs_are_positional(self) -> None:
        assert coerce_params((1, "a")) == (1, "a")

    def test_single_scalar(self) -> None:
        assert coerce_params((5,)) == (5,)
