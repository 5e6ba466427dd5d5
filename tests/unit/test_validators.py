"""Unit tests for task field validators and request schemas."""

from datetime import UTC, datetime, timedelta

import pytest
from pydantic import ValidationError

from taskapi.core.errors import RequestValidationFailure
from taskapi.core.timestamps import parse_timestamp
from taskapi.domain import TaskCategory, TaskCreate, TaskPriority, TaskUpdate
from taskapi.domain.validators import (
    clean_category,
    clean_completed,
    clean_deadline,
    clean_description,
    clean_priority,
    clean_title,
    collect_field_errors,
)
from taskapi.interface.validation import sanitize_payload
from tests.helpers import future_deadline, make_task_payload, past_deadline


# ISO datetimes whose UTC equivalent falls outside datetime's range
OUT_OF_RANGE_DEADLINES = ["9999-12-31T23:00:00-05:00", "0001-01-01T00:30:00+01:00"]


def _messages(exc_info: pytest.ExceptionInfo[ValidationError]) -> dict[str, str]:
    return {error.field: error.message for error in collect_field_errors(exc_info.value)}


@pytest.mark.unit
class TestFieldValidators:
    """Tests for the per-field clean_* functions."""

    def test_title_is_trimmed(self):
        """Test surrounding whitespace is removed from titles."""
        assert clean_title("  Write report  ", required=True) == "Write report"

    def test_title_rejects_non_string(self):
        """Test a numeric title is rejected."""
        with pytest.raises(ValueError, match="Title must be a string"):
            clean_title(123, required=True)

    def test_title_empty_message_depends_on_required(self):
        """Test blank titles read as missing on create and empty on update."""
        with pytest.raises(ValueError, match="Title is required"):
            clean_title("   ", required=True)
        with pytest.raises(ValueError, match="Title cannot be empty"):
            clean_title("", required=False)

    def test_title_length_bounds(self):
        """Test titles of 3 to 100 characters are accepted."""
        assert clean_title("abc", required=True) == "abc"
        assert clean_title("a" * 100, required=True) == "a" * 100

        with pytest.raises(ValueError, match="at least 3 characters"):
            clean_title("ab", required=True)
        with pytest.raises(ValueError, match="cannot be more than 100 characters"):
            clean_title("a" * 101, required=True)

    def test_title_length_measured_after_trim(self):
        """Test padding does not count towards the minimum length."""
        with pytest.raises(ValueError, match="at least 3 characters"):
            clean_title("  ab  ", required=True)

    def test_description_allows_empty(self):
        """Test a blank description trims to the empty string."""
        assert clean_description("   ") == ""

    def test_description_max_length(self):
        """Test descriptions are capped at 500 characters."""
        assert clean_description("d" * 500) == "d" * 500
        with pytest.raises(ValueError, match="cannot be more than 500 characters"):
            clean_description("d" * 501)

    def test_category_accepts_members(self):
        """Test every category is accepted after trimming."""
        for category in TaskCategory:
            assert clean_category(f" {category.value} ", required=True) is category

    def test_category_rejects_unknown(self):
        """Test the error lists the allowed categories."""
        with pytest.raises(ValueError, match="Category must be one of: Work, Personal, Study, Health, Other"):
            clean_category("Chores", required=True)

    def test_category_is_case_sensitive(self):
        """Test categories must match exactly."""
        with pytest.raises(ValueError, match="Category must be one of"):
            clean_category("work", required=True)

    def test_priority_accepts_members(self):
        """Test a known priority maps to its enum member."""
        assert clean_priority("High", required=True) is TaskPriority.HIGH

    def test_priority_rejects_unknown(self):
        """Test the error lists the allowed priorities."""
        with pytest.raises(ValueError, match="Priority must be one of: Low, Medium, High"):
            clean_priority("Urgent", required=True)

    def test_priority_empty_when_required(self):
        """Test an empty priority reads as missing on create."""
        with pytest.raises(ValueError, match="Priority is required"):
            clean_priority("", required=True)

    def test_deadline_parses_date_only_as_utc_midnight(self):
        """Test a bare date resolves to midnight UTC."""
        deadline = clean_deadline("2099-01-31", require_future=True)
        assert deadline == datetime(2099, 1, 31, tzinfo=UTC)

    def test_deadline_converts_offsets_to_utc(self):
        """Test offset datetimes are normalised to UTC."""
        deadline = clean_deadline("2099-01-31T10:00:00+02:00", require_future=True)
        assert deadline == datetime(2099, 1, 31, 8, 0, tzinfo=UTC)

    def test_deadline_rejects_garbage(self):
        """Test non-date values are rejected."""
        for value in ("not-a-date", 12345, True, None):
            with pytest.raises(ValueError, match="Deadline must be a valid date"):
                clean_deadline(value, require_future=False)

    @pytest.mark.parametrize("value", OUT_OF_RANGE_DEADLINES)
    def test_deadline_outside_utc_range_is_invalid(self, value):
        """Test a datetime that overflows when converted to UTC is an invalid date."""
        with pytest.raises(ValueError, match="Deadline must be a valid date"):
            clean_deadline(value, require_future=False)

    def test_deadline_future_check(self):
        """Test the future check compares against the reference time."""
        now = datetime(2030, 1, 1, tzinfo=UTC)
        with pytest.raises(ValueError, match="Deadline must be in the future"):
            clean_deadline("2030-01-01T00:00:00Z", require_future=True, now=now)
        assert clean_deadline("2029-12-31T00:00:00Z", require_future=False, now=now).year == 2029

    def test_completed_accepts_booleans_and_strings(self):
        """Test booleans and "true"/"false" strings are accepted."""
        assert clean_completed(True) is True
        assert clean_completed("false") is False
        assert clean_completed(" TRUE ") is True

    def test_completed_rejects_other_values(self):
        """Test integers and other strings are not coerced."""
        for value in (1, "yes", None, "done"):
            with pytest.raises(ValueError, match="Completed must be a boolean value"):
                clean_completed(value)


@pytest.mark.unit
class TestParseTimestamp:
    """Tests for parse_timestamp."""

    def test_naive_values_are_utc(self):
        """Test a timestamp without offset is taken as UTC."""
        assert parse_timestamp("2030-05-01T12:00:00") == datetime(2030, 5, 1, 12, tzinfo=UTC)

    @pytest.mark.parametrize("value", OUT_OF_RANGE_DEADLINES)
    def test_overflow_raises_value_error(self, value):
        """Test an out-of-range UTC conversion surfaces as ValueError."""
        with pytest.raises(ValueError, match="out of range"):
            parse_timestamp(value)


@pytest.mark.unit
class TestTaskCreate:
    """Tests for the create schema."""

    def test_valid_payload_is_sanitized(self):
        """Test strings are trimmed, unknown keys dropped and defaults applied."""
        payload = make_task_payload(title="  Padded title  ", owner="someone")
        fields = TaskCreate.model_validate(payload).sanitized()

        assert fields["title"] == "Padded title"
        assert fields["completed"] is False
        assert "owner" not in fields
        assert fields["category"] == TaskCategory.WORK

    def test_description_defaults_to_empty(self):
        """Test an omitted description becomes the empty string."""
        payload = make_task_payload()
        del payload["description"]

        fields = TaskCreate.model_validate(payload).sanitized()

        assert fields["description"] == ""

    def test_missing_required_fields_are_all_reported(self):
        """Test every missing required field gets its own message."""
        with pytest.raises(ValidationError) as exc_info:
            TaskCreate.model_validate({})

        assert _messages(exc_info) == {
            "title": "Title is required",
            "category": "Category is required",
            "priority": "Priority is required",
            "deadline": "Deadline is required",
        }

    def test_every_violation_reported_in_one_pass(self):
        """Test independent field errors are collected together."""
        payload = make_task_payload(title="ab", priority="Urgent", deadline=past_deadline(), completed="maybe")

        with pytest.raises(ValidationError) as exc_info:
            TaskCreate.model_validate(payload)

        messages = _messages(exc_info)
        assert set(messages) == {"title", "priority", "deadline", "completed"}
        assert messages["deadline"] == "Deadline must be in the future"

    def test_past_deadline_rejected(self):
        """Test a new task cannot be due in the past."""
        with pytest.raises(ValidationError) as exc_info:
            TaskCreate.model_validate(make_task_payload(deadline=past_deadline()))

        assert _messages(exc_info) == {"deadline": "Deadline must be in the future"}

    @pytest.mark.parametrize("value", OUT_OF_RANGE_DEADLINES)
    def test_out_of_range_deadline_is_a_field_error(self, value):
        """Test an overflowing deadline is reported against the deadline field."""
        with pytest.raises(ValidationError) as exc_info:
            TaskCreate.model_validate(make_task_payload(deadline=value))

        assert _messages(exc_info) == {"deadline": "Deadline must be a valid date"}


@pytest.mark.unit
class TestTaskUpdate:
    """Tests for the update schema."""

    def test_only_sent_fields_are_returned(self):
        """Test the sanitized mapping holds only the fields the client sent."""
        fields = TaskUpdate.model_validate({"title": " New title ", "junk": 1}).sanitized()

        assert fields == {"title": "New title"}

    def test_empty_payload_rejected(self):
        """Test an update must name at least one field."""
        with pytest.raises(ValidationError) as exc_info:
            TaskUpdate.model_validate({})

        assert _messages(exc_info) == {"": "At least one field must be provided for update"}

    def test_only_unknown_keys_rejected(self):
        """Test unknown keys alone do not count as an update."""
        with pytest.raises(ValidationError):
            TaskUpdate.model_validate({"owner": "x"})

    def test_past_deadline_allowed(self):
        """Test an update may move the deadline into the past."""
        fields = TaskUpdate.model_validate({"deadline": past_deadline(days=3)}).sanitized()

        assert fields["deadline"] < datetime.now(UTC) - timedelta(days=2)

    @pytest.mark.parametrize("value", OUT_OF_RANGE_DEADLINES)
    def test_out_of_range_deadline_is_a_field_error(self, value):
        """Test an overflowing deadline is rejected on update too."""
        with pytest.raises(ValidationError) as exc_info:
            TaskUpdate.model_validate({"deadline": value})

        assert _messages(exc_info) == {"deadline": "Deadline must be a valid date"}

    def test_explicit_null_rejected(self):
        """Test null is not a valid title."""
        with pytest.raises(ValidationError) as exc_info:
            TaskUpdate.model_validate({"title": None})

        assert _messages(exc_info) == {"title": "Title must be a string"}

    def test_empty_title_message(self):
        """Test a blank title on update reads as empty, not missing."""
        with pytest.raises(ValidationError) as exc_info:
            TaskUpdate.model_validate({"title": "   "})

        assert _messages(exc_info) == {"title": "Title cannot be empty"}


@pytest.mark.unit
class TestSanitizePayload:
    """Tests for the schema runner used by the request dependency."""

    def test_returns_sanitized_mapping(self):
        """Test the validated mapping is returned."""
        fields = sanitize_payload(TaskCreate, make_task_payload(completed="true"))

        assert fields["completed"] is True

    def test_wraps_errors_as_request_validation_failure(self):
        """Test schema errors become a RequestValidationFailure."""
        with pytest.raises(RequestValidationFailure) as exc_info:
            sanitize_payload(TaskCreate, make_task_payload(category="Chores"))

        assert [error.field for error in exc_info.value.errors] == ["category"]
        assert exc_info.value.message == "Validation error"

    def test_non_object_body_rejected(self):
        """Test a JSON array body is rejected."""
        with pytest.raises(RequestValidationFailure) as exc_info:
            sanitize_payload(TaskUpdate, ["title"])

        assert exc_info.value.errors[0].message == "Request body must be a JSON object"

    def test_update_deadline_round_trips(self):
        """Test a deadline in store format parses back to the same instant."""
        deadline = future_deadline(days=30)
        fields = sanitize_payload(TaskUpdate, {"deadline": deadline})

        assert fields["deadline"].isoformat(timespec="milliseconds").replace("+00:00", "Z") == deadline
