from datetime import datetime

import pytest

from otc_migrate.exceptions import RecordValidationError
from otc_migrate.models.record import TableRecord, parse_prisma_datetime, partition
from otc_migrate.models.schema import order_tables, quote_identifier
from otc_migrate.services.validator import RecordValidator


def records(count):
    return [TableRecord.model_validate({"id": i}) for i in range(count)]


def test_partition_sizes_and_order():
    batches = partition("User", records(1200), 500)

    assert [len(b) for b in batches] == [500, 500, 200]
    assert [b.index for b in batches] == [1, 2, 3]
    assert [b.offset for b in batches] == [0, 500, 1000]
    assert [r.id for b in batches for r in b.records] == list(range(1200))


def test_partition_empty_and_exact():
    assert partition("User", [], 500) == []
    assert [len(b) for b in partition("User", records(10), 5)] == [5, 5]


def test_partition_rejects_non_positive_size():
    with pytest.raises(ValueError):
        partition("User", records(3), 0)


@pytest.mark.parametrize("value, expected", [
    (1735689600000, datetime(2025, 1, 1)),
    ("1735689600000", datetime(2025, 1, 1)),
    ("2025-01-01T03:30:00+03:30", datetime(2025, 1, 1)),
    ("2025-01-01 00:00:00", datetime(2025, 1, 1)),
    (None, None),
    ("", None),
])
def test_parse_prisma_datetime(value, expected):
    assert parse_prisma_datetime(value) == expected


def test_order_tables_follows_dependencies():
    assert order_tables(["FAQ", "Custom", "User", "Reminder"]) == ["User", "Reminder", "FAQ", "Custom"]


def test_quote_identifier():
    assert quote_identifier("PatientProfile") == '"PatientProfile"'
    with pytest.raises(ValueError):
        quote_identifier('bad"name')


def test_validator_uses_registered_schema():
    class AuditRecord(TableRecord):
        action: str

    validator = RecordValidator({"Audit": AuditRecord})

    validated = validator.validate_rows("Audit", [{"id": 1, "action": "login", "ip": "10.0.0.1"}])
    assert isinstance(validated[0], AuditRecord)
    assert validated[0].to_row() == {"id": 1, "action": "login", "ip": "10.0.0.1"}

    with pytest.raises(RecordValidationError, match=r"Invalid Audit record \(row 1\)"):
        validator.validate_rows("Audit", [{"id": 1, "action": "a"}, {"id": 2}])


def test_unknown_tables_only_require_an_id():
    validator = RecordValidator()

    assert validator.validate_rows("Anything", [{"id": "x", "v": 1}])[0].to_row() == {"id": "x", "v": 1}
    with pytest.raises(RecordValidationError):
        validator.validate_rows("Anything", [{"v": 1}])
