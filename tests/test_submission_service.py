"""
Tests for the submission pipeline
"""
import pytest
from sqlalchemy.exc import OperationalError

from formbuilder.constants.error import ERROR
from formbuilder.constants.form_constants import NO_RESPONSE
from formbuilder.exceptions import InternalError, NotFoundError, UnavailableError, ValidationFailure
from formbuilder.models.form_model import FormEntry, FormValue
from formbuilder.schema.form_schema import FieldUpdate, FormUpdate
from formbuilder.services.field_service import update_field
from formbuilder.services.form_service import update_form
from formbuilder.services.submission_service import SubmissionMeta, submit_entry


def stored_values(db_session, entry_id):
    values = (
        db_session.query(FormValue)
        .filter(FormValue.entry_id == entry_id)
        .order_by(FormValue.position)
        .all()
    )
    return {value.field_name: value.value for value in values}


def counts(db_session):
    return db_session.query(FormEntry).count(), db_session.query(FormValue).count()


@pytest.fixture
def gated_form(make_form):
    """`b` becomes required when `a` is "yes"."""
    return make_form({
        "title": "Gated",
        "sections": [{"title": "S", "fields": [
            {"type": "text", "label": "A", "name": "a"},
            {"type": "text", "label": "B", "name": "b",
             "conditional": {"dependsOnFieldId": "a", "operator": "equals",
                             "comparisonValue": "yes", "action": "require"}},
        ]}],
    })


class TestContactScenario:
    """Required name, optional country"""

    def test_empty_submission_is_rejected(self, db_session, contact_form):
        with pytest.raises(ValidationFailure) as exc_info:
            submit_entry(db_session, contact_form.form_id, {})

        assert exc_info.value.errors == {"name": "required"}
        assert exc_info.value.status_code == 400
        assert counts(db_session) == (0, 0)

    def test_blank_answers_get_the_sentinel(self, db_session, contact_form):
        entry_id = submit_entry(db_session, contact_form.form_id, {"name": "Alice"})

        assert stored_values(db_session, entry_id) == {"name": "Alice", "country": NO_RESPONSE}
        assert counts(db_session) == (1, 2)

    def test_lookup_by_slug(self, db_session, contact_form):
        entry_id = submit_entry(db_session, contact_form.slug, {"name": "Bob", "country": "KE"})
        assert stored_values(db_session, entry_id) == {"name": "Bob", "country": "KE"}

    def test_metadata_is_recorded(self, db_session, contact_form, owner):
        meta = SubmissionMeta(ip="10.0.0.1", user_agent="pytest", referrer="https://example.com")
        entry_id = submit_entry(db_session, contact_form.form_id, {"name": "Alice"}, owner.id, meta)

        entry = db_session.query(FormEntry).filter(FormEntry.entry_id == entry_id).one()
        assert entry.submitter_id == owner.id
        assert entry.ip == "10.0.0.1"
        assert entry.meta["userAgent"] == "pytest"
        assert entry.meta["referrer"] == "https://example.com"
        assert entry.meta["submittedAt"]


class TestConditionalRequirement:
    """Rules evaluated server-side"""

    def test_not_required_when_condition_fails(self, db_session, gated_form):
        entry_id = submit_entry(db_session, gated_form.form_id, {"a": "no"})
        assert stored_values(db_session, entry_id) == {"a": "no", "b": NO_RESPONSE}

    def test_required_when_condition_holds(self, db_session, gated_form):
        with pytest.raises(ValidationFailure) as exc_info:
            submit_entry(db_session, gated_form.form_id, {"a": "yes"})
        assert exc_info.value.errors == {"b": "required"}
        assert counts(db_session) == (0, 0)

    def test_hidden_required_field_is_waived(self, db_session, make_form):
        form = make_form({
            "title": "Hidden",
            "sections": [{"title": "S", "fields": [
                {"type": "radio", "label": "Employed?", "name": "employed", "options": ["yes", "no"]},
                {"type": "text", "label": "Employer", "name": "employer", "required": True,
                 "conditional": {"dependsOnFieldId": "employed", "operator": "equals",
                                 "comparisonValue": "yes", "action": "show"}},
            ]}],
        })

        entry_id = submit_entry(db_session, form.form_id, {"employed": "no"})
        assert stored_values(db_session, entry_id)["employer"] == NO_RESPONSE

        with pytest.raises(ValidationFailure) as exc_info:
            submit_entry(db_session, form.form_id, {"employed": "yes"})
        assert exc_info.value.errors == {"employer": "required"}

    def test_hidden_answer_is_not_stored(self, db_session, make_form):
        form = make_form({
            "title": "Stale",
            "sections": [{"title": "S", "fields": [
                {"type": "text", "label": "A", "name": "a"},
                {"type": "number", "label": "B", "name": "b",
                 "conditional": {"dependsOnFieldId": "a", "operator": "equals",
                                 "comparisonValue": "yes", "action": "show"}},
            ]}],
        })
        entry_id = submit_entry(db_session, form.form_id, {"a": "no", "b": "not a number"})
        assert stored_values(db_session, entry_id) == {"a": "no", "b": NO_RESPONSE}

    def test_hidden_section_waives_its_fields(self, db_session, make_form):
        form = make_form({
            "title": "Sections",
            "sections": [
                {"title": "Intro", "fields": [
                    {"type": "radio", "label": "Student?", "name": "student", "options": ["yes", "no"]},
                ]},
                {"title": "School",
                 "conditional": {"dependsOnFieldId": "student", "operator": "equals",
                                 "comparisonValue": "yes", "action": "show"},
                 "fields": [{"type": "text", "label": "School", "name": "school", "required": True}]},
            ],
        })
        entry_id = submit_entry(db_session, form.form_id, {"student": "no"})
        assert stored_values(db_session, entry_id) == {"student": "no", "school": NO_RESPONSE}


class TestCollectedErrors:
    """All failures reported together, in form order"""

    def test_errors_follow_field_order(self, db_session, make_form):
        form = make_form({
            "title": "Many",
            "sections": [
                {"title": "One", "fields": [
                    {"type": "email", "label": "Email", "name": "email", "required": True},
                    {"type": "number", "label": "Age", "name": "age", "validation": {"min": 18}},
                ]},
                {"title": "Two", "fields": [
                    {"type": "select", "label": "Plan", "name": "plan", "options": ["free", "pro"]},
                ]},
            ],
        })

        with pytest.raises(ValidationFailure) as exc_info:
            submit_entry(db_session, form.form_id, {"plan": "gold", "age": 12, "nickname": "x"})

        errors = exc_info.value.errors
        assert list(errors) == ["email", "age", "plan", "nickname"]
        assert errors["email"] == "required"
        assert errors["age"] == "must be at least 18"
        assert errors["plan"] == "is not one of the allowed options"
        assert errors["nickname"] == "unknown field"
        assert counts(db_session) == (0, 0)


class TestUniformValueSet:
    """One value per active field"""

    def test_value_count_matches_active_fields(self, db_session, make_form, owner):
        form = make_form({
            "title": "Uniform",
            "sections": [
                {"title": "One", "fields": [
                    {"type": "text", "label": "A", "name": "a"},
                    {"type": "text", "label": "B", "name": "b"},
                    {"type": "text", "label": "Old", "name": "old", "is_active": False},
                ]},
                {"title": "Archived", "is_active": False, "fields": [
                    {"type": "text", "label": "C", "name": "c", "required": True},
                ]},
            ],
        })

        entry_id = submit_entry(db_session, form.form_id, {"a": "1", "old": "ignored"})
        assert stored_values(db_session, entry_id) == {"a": "1", "b": NO_RESPONSE}

        b = form.sections[0].fields[1]
        update_field(db_session, b.field_id, FieldUpdate(is_active=False), owner)
        second = submit_entry(db_session, form.form_id, {"a": "2", "b": "x"})
        assert stored_values(db_session, second) == {"a": "2"}


class TestAvailability:
    """Unpublished forms refuse submissions"""

    def test_missing_form(self, db_session):
        with pytest.raises(NotFoundError):
            submit_entry(db_session, "no-such-form", {})

    @pytest.mark.parametrize("patch", [{"is_active": False}, {"is_public": False}, {"allowSubmissions": False}])
    def test_unavailable_form(self, db_session, contact_form, owner, patch):
        update_form(db_session, contact_form.form_id, FormUpdate(**patch), owner)

        with pytest.raises(UnavailableError) as exc_info:
            submit_entry(db_session, contact_form.form_id, {"name": "Alice"})
        assert exc_info.value.status_code == 403
        assert counts(db_session) == (0, 0)


class TestStorageFailure:
    """Entry and values are written in one transaction"""

    def test_failed_commit_leaves_nothing_behind(self, db_session, contact_form, monkeypatch):
        def failing_commit():
            raise OperationalError("INSERT INTO form_values", {}, Exception("disk I/O error"))

        monkeypatch.setattr(db_session, "commit", failing_commit)

        with pytest.raises(InternalError) as exc_info:
            submit_entry(db_session, contact_form.form_id, {"name": "Alice", "country": "KE"})

        assert exc_info.value.status_code == 500
        assert exc_info.value.message == ERROR.INTERNAL_ERROR
        monkeypatch.undo()
        assert counts(db_session) == (0, 0)
