"""
Unit tests for input validation helpers.
"""

import pytest

from app.utils.validation import (VALIDATION_RULES, ValidationRules,
                                  detect_suspicious_activity, is_valid_ipv4,
                                  sanitize_input, validate_field,
                                  validate_fields, validate_json_structure,
                                  validate_request_body_size)


class TestValidateField:

    def test_required_empty_short_circuits(self):
        result = validate_field("  ", VALIDATION_RULES["username"], "username")

        assert result.is_valid is False
        assert result.errors == ["username is required"]

    def test_optional_empty_passes(self):
        result = validate_field("", VALIDATION_RULES["general_text"], "bio")

        assert result.is_valid is True
        assert result.errors == []

    def test_errors_accumulate(self):
        result = validate_field("a.", VALIDATION_RULES["username"], "username")

        assert "username must be at least 3 characters long" in result.errors
        assert "username format is invalid" in result.errors
        assert len(result.errors) == 3

    def test_custom_receives_context(self):
        seen = {}

        def custom(value, context):
            seen.update(context or {})
            return None

        validate_field("x", ValidationRules(custom=custom), "field", {"email": "a@b.co"})

        assert seen == {"email": "a@b.co"}


class TestUsernameRules:

    @pytest.mark.parametrize("username", ["player_one", "abc", "team-42"])
    def test_valid(self, username):
        assert validate_field(username, VALIDATION_RULES["username"], "username").is_valid

    @pytest.mark.parametrize("username", ["superadmin", "RootUser"])
    def test_restricted_words(self, username):
        result = validate_field(username, VALIDATION_RULES["username"], "username")

        assert "Username cannot contain restricted words" in result.errors

    def test_too_long(self):
        result = validate_field("a" * 21, VALIDATION_RULES["username"], "username")

        assert "username must be no more than 20 characters long" in result.errors


class TestEmailRules:

    def test_valid(self):
        assert validate_field("player@example.com", VALIDATION_RULES["email"], "email").is_valid

    def test_invalid_format(self):
        result = validate_field("not-an-email", VALIDATION_RULES["email"], "email")

        assert result.errors == ["email format is invalid"]

    def test_domain_too_long(self):
        email = "a@" + "d" * 60 + ".com"
        result = validate_field(email, VALIDATION_RULES["email"], "email")

        assert "Email domain is too long" in result.errors


class TestPasswordRules:

    def test_strong_password(self):
        result = validate_field("Str0ng!Pass9", VALIDATION_RULES["password"], "password")

        assert result.is_valid, result.errors

    def test_missing_character_class(self):
        result = validate_field("alllowercase1!", VALIDATION_RULES["password"], "password")

        assert "password format is invalid" in result.errors

    def test_common_pattern(self):
        result = validate_field("MyPassword1!", VALIDATION_RULES["password"], "password")

        assert "Password cannot contain common patterns" in result.errors

    def test_spaces_rejected(self):
        result = validate_field("Str0ng! Pass9", VALIDATION_RULES["password"], "password")

        assert "Password cannot contain spaces" in result.errors

    def test_similar_to_email(self):
        result = validate_field(
            "Gamer!Zed42x", VALIDATION_RULES["password"], "password", {"email": "gamer@example.com"}
        )

        assert "Password cannot be similar to your email" in result.errors

    def test_short_local_part_ignored(self):
        result = validate_field(
            "Bob!Zed42xyz", VALIDATION_RULES["password"], "password", {"email": "bob@example.com"}
        )

        assert result.is_valid, result.errors

    def test_repeated_characters(self):
        result = validate_field("Str0ng!Paaa9", VALIDATION_RULES["password"], "password")

        assert "Password cannot contain more than 2 consecutive identical characters" in result.errors


class TestGeneralText:

    @pytest.mark.parametrize("text", ["<script>x</script>", "JavaScript:void(0)", "img onerror = x"])
    def test_xss_rejected(self, text):
        result = validate_field(text, VALIDATION_RULES["general_text"], "text")

        assert "Invalid characters detected" in result.errors

    def test_max_length(self):
        result = validate_field("x" * 1001, VALIDATION_RULES["general_text"], "text")

        assert result.is_valid is False


def test_validate_fields_aggregates():
    result = validate_fields({
        "username": ("", VALIDATION_RULES["username"]),
        "email": ("bad", VALIDATION_RULES["email"]),
    })

    assert result.is_valid is False
    assert result.errors == ["username is required", "email format is invalid"]


class TestSanitize:

    def test_non_string(self):
        assert sanitize_input(None) == ""
        assert sanitize_input(42) == ""

    def test_strips_dangerous_content(self):
        assert sanitize_input("  <b>hi</b> javascript:go onclick=run ") == "bhi/b go run"

    def test_truncates(self):
        assert len(sanitize_input("a" * 2000)) == 1000


class TestSuspiciousActivity:

    @pytest.mark.parametrize(
        "text",
        [
            "aaaaaaaaaaa",
            "<div>",
            "javascript:x",
            "onload=go",
            "eval(1)",
            "document.cookie",
            "window.location",
            "alert(1)",
            "prompt(1)",
            "confirm(1)",
        ],
    )
    def test_detected(self, text):
        assert detect_suspicious_activity(text) is True

    @pytest.mark.parametrize("text", ['{"name": "Ali", "note": "hello there"}', "aaaaaaaaaa"])
    def test_clean(self, text):
        assert detect_suspicious_activity(text) is False


class TestBodyAndStructure:

    def test_body_size_counts_utf8_bytes(self):
        # 아랍어 문자는 UTF-8 2바이트
        result = validate_request_body_size("مرحبا", max_size=9)

        assert result.is_valid is False
        assert result.errors == ["Request body is too large. Maximum size is 9 bytes"]

    def test_body_size_ok(self):
        assert validate_request_body_size("abc", max_size=3).is_valid

    def test_json_structure_requires_object(self):
        result = validate_json_structure([1, 2], ["a"])

        assert result.errors == ["Request body must be a valid JSON object"]

    def test_json_structure_missing_fields(self):
        result = validate_json_structure({"a": 1}, ["a", "b", "c"])

        assert result.errors == ["Missing required field: b", "Missing required field: c"]


@pytest.mark.parametrize(
    "ip,expected",
    [("192.168.0.1", True), ("256.1.1.1", False), ("1.2.3", False), ("::1", False), ("abc", False)],
)
def test_is_valid_ipv4(ip, expected):
    assert is_valid_ipv4(ip) is expected
