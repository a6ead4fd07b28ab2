"""Structural validation of submission payloads.

Payloads arrive as arbitrary JSON. ``as_payload`` tags them once as either a
single form record, a list of tabular records, or a bare scalar, so the rules
below dispatch on the tag rather than probing types inline.
"""

from dataclasses import dataclass, field
from typing import Any

SEVERITY_ERROR = 'error'
SEVERITY_WARNING = 'warning'

TABULAR_DATA_TYPES = ('csv_upload', 'excel_upload')


@dataclass(frozen=True)
class FormRecord:
    fields: dict


@dataclass(frozen=True)
class TabularRecords:
    rows: list


@dataclass(frozen=True)
class ScalarValue:
    value: Any


Payload = FormRecord | TabularRecords | ScalarValue


@dataclass
class ValidationIssue:
    field: str
    message: str
    severity: str = SEVERITY_ERROR

    def as_dict(self) -> dict:
        return {'field': self.field, 'message': self.message, 'severity': self.severity}


@dataclass
class ValidationResult:
    errors: list[ValidationIssue] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not any(issue.severity == SEVERITY_ERROR for issue in self.errors)

    @property
    def validation_status(self) -> str:
        return 'valid' if self.is_valid else 'needs_review'

    def issues(self) -> list[dict]:
        return [issue.as_dict() for issue in self.errors]


def as_payload(raw: Any) -> Payload:
    if isinstance(raw, FormRecord | TabularRecords | ScalarValue):
        return raw
    if isinstance(raw, dict):
        return FormRecord(raw)
    if isinstance(raw, list | tuple):
        return TabularRecords(list(raw))
    return ScalarValue(raw)


def is_empty(payload: Payload) -> bool:
    if isinstance(payload, TabularRecords):
        return len(payload.rows) == 0
    if isinstance(payload, ScalarValue):
        # null, false, 0 and "" carry no data
        return not payload.value
    return False


def _column_count(row: Any) -> int:
    return len(row) if isinstance(row, dict) else 0


def validate_submission_data(raw: Any, data_type: str) -> ValidationResult:
    payload = as_payload(raw)
    result = ValidationResult()

    if is_empty(payload):
        result.errors.append(ValidationIssue('data', 'Data cannot be empty'))
        return result

    if data_type == 'form_data':
        if not isinstance(payload, FormRecord):
            result.errors.append(ValidationIssue('data', 'Form data must be an object'))
    elif data_type in TABULAR_DATA_TYPES:
        if not isinstance(payload, TabularRecords):
            result.errors.append(ValidationIssue('data', 'Uploaded data must be an array of records'))
        else:
            expected_columns = _column_count(payload.rows[0])
            for index, row in enumerate(payload.rows):
                if _column_count(row) != expected_columns:
                    result.errors.append(
                        ValidationIssue(
                            f'data[{index}]',
                            f'Row {index + 1} has inconsistent number of columns',
                            SEVERITY_WARNING,
                        )
                    )

    return result


def count_records(raw: Any) -> tuple[int, int]:
    """Return ``(record_count, field_count)`` for a stored payload."""
    payload = as_payload(raw)
    if isinstance(payload, TabularRecords):
        fields = _column_count(payload.rows[0]) if payload.rows else 0
        return len(payload.rows), fields
    if isinstance(payload, FormRecord):
        return 1, len(payload.fields)
    return 1, 0
