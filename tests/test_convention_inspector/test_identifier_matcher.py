"""Tests for src.convention_inspector.services.identifier_matcher.

Covers:
    - has_valid_identifier: empty/None docs, single-segment tags, tags
      without description, identifiers embedded in longer text
    - extract_identifier: first match wins, trimming
    - parse_identifier: tag/description split
"""
from __future__ import annotations

import pytest

from src.convention_inspector.services.identifier_matcher import (
    extract_identifier,
    has_valid_identifier,
    parse_identifier,
)


# ---------------------------------------------------------------------------
# has_valid_identifier
# ---------------------------------------------------------------------------


class TestHasValidIdentifier:
    @pytest.mark.parametrize("doc", [None, "", "   "])
    def test_empty_docs_are_invalid(self, doc):
        assert has_valid_identifier(doc) is False

    @pytest.mark.parametrize(
        "doc",
        [
            "PAY-A-001 process payment",
            "M-BANK-USR mobile user query",
            "Handles payments.\nPAY-001 charge a card",
            "ab-cd x",
        ],
    )
    def test_valid_identifiers(self, doc):
        assert has_valid_identifier(doc) is True

    @pytest.mark.parametrize(
        "doc",
        [
            "PAYMENT process payment",  # single segment
            "PAY-A-001",  # no description
            "PAY--001 double hyphen",
            "Just a sentence about payments.",
        ],
    )
    def test_invalid_identifiers(self, doc):
        assert has_valid_identifier(doc) is False

    def test_underscore_breaks_segment(self):
        # Synthesized templates are not themselves valid identifiers.
        assert has_valid_identifier("API-ORDER_SUBMITORDER") is False


# ---------------------------------------------------------------------------
# extract_identifier
# ---------------------------------------------------------------------------


class TestExtractIdentifier:
    def test_none_when_invalid(self):
        assert extract_identifier("no identifier here") is None
        assert extract_identifier(None) is None

    def test_extracts_and_trims(self):
        assert extract_identifier("  PAY-A-001 process payment   ") == "PAY-A-001 process payment"

    def test_first_match_only(self):
        doc = "PAY-A-001 first\nPAY-A-002 second"
        assert extract_identifier(doc) == "PAY-A-001 first"

    def test_match_inside_sentence(self):
        doc = "See PAY-A-001 process payment"
        assert extract_identifier(doc) == "PAY-A-001 process payment"

    @pytest.mark.parametrize("doc", ["PAY-S-001  ", "PAY-S-001 \t", "See PAY-S-001   "])
    def test_whitespace_only_description_is_not_extracted(self, doc):
        assert has_valid_identifier(doc) is True
        assert extract_identifier(doc) is None


# ---------------------------------------------------------------------------
# parse_identifier
# ---------------------------------------------------------------------------


class TestParseIdentifier:
    def test_splits_tag_and_description(self):
        identifier = parse_identifier("M-BANK-USR mobile user query")
        assert identifier is not None
        assert identifier.tag == "M-BANK-USR"
        assert identifier.description == "mobile user query"
        assert identifier.text == "M-BANK-USR mobile user query"

    def test_none_without_identifier(self):
        assert parse_identifier("nothing") is None

    def test_none_for_whitespace_only_description(self):
        assert parse_identifier("PAY-S-001  ") is None
