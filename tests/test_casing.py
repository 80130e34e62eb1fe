"""Tests for apibind.casing."""

from __future__ import annotations

import pytest

from apibind.casing import (
    camel_case,
    enum_member,
    is_identifier,
    member_access,
    string_literal,
    upper_camel,
    upper_first,
)


class TestCamelCase:
    @pytest.mark.parametrize(
        "value, expected",
        [
            ("todo-archive", "todoArchive"),
            ("admin_users", "adminUsers"),
            ("admin-users-list", "adminUsersList"),
            ("v2-Items", "v2-Items"),
            ("todos", "todos"),
        ],
    )
    def test_folds_separators_before_lowercase(self, value: str, expected: str) -> None:
        assert camel_case(value) == expected

    def test_upper_camel(self) -> None:
        assert upper_camel("created-at") == "CreatedAt"
        assert upper_first("getTodo") == "GetTodo"
        assert upper_first("") == ""


class TestEnumMember:
    def test_hyphen_becomes_underscore(self) -> None:
        assert enum_member("in-progress") == "IN_PROGRESS"

    def test_leading_digit_is_prefixed(self) -> None:
        assert enum_member("2fa") == "_2FA"

    def test_spaces_and_dots(self) -> None:
        assert enum_member("v1.0 beta") == "V1_0_BETA"


class TestLiterals:
    def test_string_literal_escapes_quotes_and_backslashes(self) -> None:
        assert string_literal("it's") == "'it\\'s'"
        assert string_literal("a\\b") == "'a\\\\b'"

    def test_is_identifier(self) -> None:
        assert is_identifier("createdAt")
        assert is_identifier("$ref")
        assert not is_identifier("content-type")
        assert not is_identifier("1st")

    def test_member_access(self) -> None:
        assert member_access("pathParams", "id") == "pathParams.id"
        assert member_access("queryParams", "page", optional=True) == "queryParams?.page"
        assert member_access("queryParams", "sort-by", optional=True) == "queryParams?.['sort-by']"
        assert member_access("pathParams", "user-id") == "pathParams['user-id']"
