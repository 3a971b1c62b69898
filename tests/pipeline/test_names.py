"""Tests for project name validation."""

import pytest

from stencil.foundation.errors import ErrorCode, ValidationError
from stencil.pipeline import validate_name


class TestValidateName:

    def test_strips_whitespace(self) -> None:
        assert validate_name("  acme ") == "acme"

    @pytest.mark.parametrize("raw", [None, "", "   "])
    def test_empty_rejected(self, raw) -> None:
        with pytest.raises(ValidationError) as exc_info:
            validate_name(raw)
        assert exc_info.value.code == ErrorCode.INVALID_NAME

    @pytest.mark.parametrize("raw", ["a/b", "../etc", "a\\b", "/abs"])
    def test_separators_rejected(self, raw: str) -> None:
        with pytest.raises(ValidationError):
            validate_name(raw)

    @pytest.mark.parametrize("raw", [".", ".."])
    def test_dot_names_rejected(self, raw: str) -> None:
        with pytest.raises(ValidationError):
            validate_name(raw)

    def test_dashes_and_dots_allowed(self) -> None:
        assert validate_name("my-app.v2") == "my-app.v2"
