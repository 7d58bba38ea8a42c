# This test file validates how storage constraint violations map onto API errors.
# It exists to ensure MySQL error numbers and SQLite messages land on the same codes.

from __future__ import annotations

import pytest
from sqlalchemy.exc import IntegrityError

from src.api.error_handlers import Conflict, ReferencedRecordError, ValidationError, translate_integrity_error


class FakeDriverError(Exception):
    pass


def _integrity_error(*args: object) -> IntegrityError:
    return IntegrityError("INSERT ...", {}, FakeDriverError(*args))


@pytest.mark.parametrize(
    ("args", "expected_type", "expected_code"),
    [
        ((1062, "Duplicate entry 'SERV-00001' for key 'numero'"), Conflict, "DUPLICATE_ENTRY"),
        (("UNIQUE constraint failed: usuarios.email",), Conflict, "DUPLICATE_ENTRY"),
        ((1451, "Cannot delete or update a parent row"), ReferencedRecordError, "REFERENCED_RECORD"),
        ((1452, "Cannot add or update a child row"), ValidationError, "VALIDATION_ERROR"),
        (("FOREIGN KEY constraint failed",), ValidationError, "VALIDATION_ERROR"),
        ((1048, "Column 'nombre' cannot be null"), ValidationError, "VALIDATION_ERROR"),
    ],
)
def test_integrity_errors_are_translated(
    args: tuple[object, ...],
    expected_type: type,
    expected_code: str,
) -> None:
    translated = translate_integrity_error(_integrity_error(*args))

    assert isinstance(translated, expected_type)
    assert translated.error_code == expected_code


def test_missing_reference_names_the_field() -> None:
    translated = translate_integrity_error(_integrity_error(1452, "Cannot add or update a child row"))

    assert translated.details == [
        {"field": "foreign_key", "message": "Referencia inválida: el registro relacionado no existe"}
    ]
