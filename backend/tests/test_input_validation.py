"""
Tests for validate_subject_fields in schemas/opportunities.py.
"""
import pytest

from opportunity_research.schemas.opportunities import Subject, validate_subject_fields


class TestValidateSubjectFields:
    """Tests for request field validation."""

    def test_valid_fields_are_trimmed(self):
        """Surrounding whitespace is removed before the Subject is built."""
        subject, errors = validate_subject_fields("  Jane Doe ", "VP Engineering\n", "\tAcme Corp")
        assert errors == []
        assert subject == Subject(name="Jane Doe", title="VP Engineering", company="Acme Corp")

    @pytest.mark.parametrize(
        "name, title, company",
        [
            (None, "VP", "Acme"),
            ("Jane", "", "Acme"),
            ("Jane", "VP", "   "),
            ("Jane", 42, "Acme"),
            ("Jane", "VP", ["Acme"]),
        ],
    )
    def test_missing_fields(self, name, title, company):
        """Absent, blank or non-string fields count as missing."""
        subject, errors = validate_subject_fields(name, title, company)
        assert subject is None
        assert errors == ["All fields are required"]

    def test_length_limits(self):
        """Limits are inclusive; one character over is rejected per field."""
        assert validate_subject_fields("n" * 100, "t" * 150, "c" * 150)[1] == []

        _, errors = validate_subject_fields("n" * 101, "t" * 151, "c" * 151)
        assert errors == [
            "Name must be less than 100 characters",
            "Title must be less than 150 characters",
            "Company must be less than 150 characters",
        ]

    @pytest.mark.parametrize(
        "value",
        [
            "<script>alert(1)</script>",
            "<SCRIPT src=x>",
            "javascript:alert(1)",
            "Jane onerror=alert(1)",
            "x onMouseOver=y",
        ],
    )
    def test_injection_patterns_rejected(self, value):
        """Script tags, javascript: URLs and inline handlers are refused."""
        _, errors = validate_subject_fields("Jane Doe", value, "Acme Corp")
        assert errors == ["Invalid characters detected"]

    def test_ordinary_punctuation_is_allowed(self):
        """Apostrophes, ampersands and angle brackets alone are fine."""
        subject, errors = validate_subject_fields(
            "Renée O'Brien-Smith", "Head of R&D (EMEA)", "Acme, Inc. <Holdings>"
        )
        assert errors == []
        assert subject.company == "Acme, Inc. <Holdings>"

    def test_all_violations_are_reported_together(self):
        """Every violated rule is listed, in rule order."""
        _, errors = validate_subject_fields("", "t" * 151, "<script>")
        assert errors == [
            "All fields are required",
            "Title must be less than 150 characters",
            "Invalid characters detected",
        ]
