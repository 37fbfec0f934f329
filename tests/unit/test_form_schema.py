"""Unit tests for validation rules and the form schemas."""

from datetime import date

import pytest

from tradepulse.forms.definitions import (
    FEEDBACK_SCHEMA,
    NOTIFICATIONS_SCHEMA,
    PROFILE_SCHEMA,
    SIGNUP_SCHEMA,
)
from tradepulse.forms.preview import SelectedFile
from tradepulse.forms.schema import (
    ConfirmsField,
    Email,
    FieldSpec,
    FormSchema,
    Length,
    PasswordComplexity,
    Required,
    is_empty,
)


def profile_draft(**overrides: object) -> dict:
    draft = PROFILE_SCHEMA.defaults()
    draft.update({"email": "jane@example.com", "first_name": "Jane", "last_name": "Doe"})
    draft.update(overrides)
    return draft


class TestRules:
    """Tests for single-field rules."""

    @pytest.mark.parametrize("value", [None, "", "   ", [], {}, b""])
    def test_is_empty(self, value: object) -> None:
        assert is_empty(value)

    @pytest.mark.parametrize("value", ["x", 0, False, date(2000, 1, 1)])
    def test_is_not_empty(self, value: object) -> None:
        assert not is_empty(value)

    @pytest.mark.parametrize("value", ["jane@example.com", "  jane.doe+news@example.co.uk "])
    def test_email_accepts_valid_addresses(self, value: str) -> None:
        assert Email().check(value) is None

    @pytest.mark.parametrize("value", ["not-an-email", "jane..doe@example.com", "jane@-bad-.com", "jane@", 42])
    def test_email_rejects_malformed_addresses(self, value: object) -> None:
        assert Email().check(value) == "Invalid email address"

    def test_length_ignores_surrounding_whitespace(self) -> None:
        rule = Length(min=10, message="too short")
        assert rule.check("   short    ") == "too short"
        assert rule.check("long enough") is None

    @pytest.mark.parametrize(
        ("password", "message"),
        [
            ("Ab1", "Password must be at least 8 characters."),
            ("abcdefg1", "Password must contain at least one uppercase letter."),
            ("ABCDEFG1", "Password must contain at least one lowercase letter."),
            ("Abcdefgh", "Password must contain at least one number."),
            ("Abcdefg1", None),
        ],
    )
    def test_password_complexity(self, password: str, message: str | None) -> None:
        assert PasswordComplexity().check(password) == message


class TestFormSchema:
    """Tests for FormSchema behaviour."""

    def test_cross_field_rule_must_target_known_field(self) -> None:
        with pytest.raises(ValueError):
            FormSchema(
                "broken",
                fields=[FieldSpec("a")],
                cross_field_rules=[ConfirmsField(source="a", target="b")],
            )

    def test_empty_optional_field_skips_rules(self) -> None:
        schema = FormSchema("f", fields=[FieldSpec("nickname", rules=(Length(min=3),))])
        assert schema.validate({"nickname": ""}) == {}
        assert schema.validate({"nickname": "ab"}) == {"nickname": "Must be at least 3 characters."}

    def test_required_reported_before_other_rules(self) -> None:
        schema = FormSchema(
            "f",
            fields=[FieldSpec("name", rules=(Required("Name is required."), Length(min=3)))],
        )
        assert schema.validate({"name": "  "}) == {"name": "Name is required."}

    def test_validation_is_pure(self) -> None:
        draft = profile_draft(first_name="")
        first = PROFILE_SCHEMA.validate(draft)
        second = PROFILE_SCHEMA.validate(draft)
        assert first == second == {"first_name": "First name is required."}


class TestProfileSchema:
    """Tests for the profile settings schema."""

    def test_valid_draft(self) -> None:
        assert PROFILE_SCHEMA.validate(profile_draft()) == {}

    def test_names_required(self) -> None:
        errors = PROFILE_SCHEMA.validate(profile_draft(first_name="", last_name=" "))
        assert errors == {
            "first_name": "First name is required.",
            "last_name": "Last name is required.",
        }

    def test_email_is_read_only(self) -> None:
        assert PROFILE_SCHEMA.fields["email"].read_only

    def test_password_fields_are_secret_and_ephemeral(self) -> None:
        assert set(PROFILE_SCHEMA.secret_fields) == {"new_password", "confirm_password"}
        assert "new_password" in PROFILE_SCHEMA.ephemeral_fields
        assert "avatar_file" in PROFILE_SCHEMA.ephemeral_fields

    def test_password_change_optional(self) -> None:
        assert "new_password" not in PROFILE_SCHEMA.validate(profile_draft())

    def test_confirmation_required_when_new_password_given(self) -> None:
        errors = PROFILE_SCHEMA.validate(profile_draft(new_password="Abcdefg1"))
        assert errors == {"confirm_password": "Both password fields are required."}

    def test_confirmation_must_match(self) -> None:
        errors = PROFILE_SCHEMA.validate(
            profile_draft(new_password="Abcdefg1", confirm_password="Abcdefg2")
        )
        assert errors == {"confirm_password": "Passwords do not match."}

    def test_weak_new_password(self) -> None:
        errors = PROFILE_SCHEMA.validate(profile_draft(new_password="short", confirm_password="short"))
        assert errors == {"new_password": "Password must be at least 8 characters."}

    def test_dob_and_avatar_types(self) -> None:
        file = SelectedFile(name="me.png", content_type="image/png", data=b"x")
        assert PROFILE_SCHEMA.validate(profile_draft(dob=date(1990, 5, 17), avatar_file=file)) == {}
        assert PROFILE_SCHEMA.validate(profile_draft(dob="yesterday")) == {"dob": "Invalid date of birth."}


class TestFeedbackSchema:
    """Tests for the feedback schema."""

    def test_short_subject_and_message(self) -> None:
        errors = FEEDBACK_SCHEMA.validate({"subject": "Short", "message": "Also short"})
        assert errors == {
            "subject": "Subject must be at least 10 characters.",
            "message": "Message must be at least 10 characters.",
        }

    def test_empty_fields_get_length_message(self) -> None:
        errors = FEEDBACK_SCHEMA.validate(FEEDBACK_SCHEMA.defaults())
        assert errors["subject"] == "Subject must be at least 10 characters."

    def test_valid_feedback(self) -> None:
        draft = {"subject": "Broken chart legend", "message": "The legend overlaps the axis labels."}
        assert FEEDBACK_SCHEMA.validate(draft) == {}


class TestOtherSchemas:
    def test_notifications_push_choice(self) -> None:
        draft = NOTIFICATIONS_SCHEMA.defaults()
        assert NOTIFICATIONS_SCHEMA.validate(draft) == {}
        draft["push_notifications"] = "sometimes"
        assert NOTIFICATIONS_SCHEMA.validate(draft) == {
            "push_notifications": "Must be one of: all, mentions, none."
        }

    def test_signup_username_rules(self) -> None:
        draft = {
            "email": "jane@example.com",
            "password": "Abcdefg1",
            "first_name": "Jane",
            "last_name": "Doe",
            "username": "jd",
        }
        assert SIGNUP_SCHEMA.validate(draft) == {
            "username": "Username must be between 3 and 30 characters."
        }
        draft["username"] = "jane doe"
        assert "username" in SIGNUP_SCHEMA.validate(draft)
        draft["username"] = "jane.doe"
        assert SIGNUP_SCHEMA.validate(draft) == {}

    def test_signup_invalid_email(self) -> None:
        errors = SIGNUP_SCHEMA.validate({"email": "not-an-email"})
        assert errors["email"] == "Invalid email address"
