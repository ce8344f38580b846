"""Tests for the delimited-text parser and numeric normalizer."""

import math

import pytest

from ad_metrics.domain.models import RawRecord
from ad_metrics.infrastructure.report_exporter import serialize_csv
from ad_metrics.ingestion import ParserOptions, parse_records, parse_with_diagnostics, to_number


class TestToNumber:
    @pytest.mark.parametrize(
        "value, expected",
        [
            ("", 0.0),
            ("-", 0.0),
            (None, 0.0),
            ("abc", 0.0),
            ("R$ 1.234,56", 1234.56),
            ("3.5", 3.5),
            ("1.234", 1.234),
            ("1.234.567,8", 1234567.8),
            ("12%", 12.0),
            ("2,5", 2.5),
            ("1,5,3", 1.5),
            (" 42 ", 42.0),
        ],
    )
    def test_locale_text(self, value, expected):
        assert to_number(value) == pytest.approx(expected)

    def test_negative_values_clamp_to_zero(self):
        assert to_number("-5") == 0.0
        assert to_number("R$ -1.000,00") == 0.0

    def test_numeric_input_passes_through(self):
        assert to_number(12) == 12.0
        assert to_number(0.25) == 0.25

    def test_non_finite_numbers_become_zero(self):
        assert to_number(float("nan")) == 0.0
        assert to_number(math.inf) == 0.0

    def test_booleans_are_not_numbers(self):
        assert to_number(True) == 0.0


class TestParser:
    def test_quoted_fields_keep_delimiters_and_escaped_quotes(self):
        text = 'Name,Note,Value\n"Acme, Inc","He said ""hi""",3\n'

        records = parse_records(text)

        assert len(records) == 1
        assert records[0].get("Name") == "Acme, Inc"
        assert records[0].get("Note") == 'He said "hi"'
        assert records[0].get("Value") == "3"

    def test_unquoted_fields_are_trimmed(self):
        records = parse_records("A,B\n  x ,y  \n")

        assert records[0].get("A") == "x"
        assert records[0].get("B") == "y"

    def test_short_row_is_dropped_in_strict_mode(self):
        text = "A,B,C,D,E\n1,2,3,4,5\n1,2,3,4\n"

        result = parse_with_diagnostics(text)

        assert len(result.records) == 1
        assert result.diagnostics.rows_dropped_width == 1
        assert result.diagnostics.rows_dropped == 1

    def test_short_row_is_padded_in_lenient_mode(self):
        text = "A,B,C,D,E\n1,2,3,4\n1,2,3,4,5,6\n"

        result = parse_with_diagnostics(text, ParserOptions(strict_width=False))

        assert len(result.records) == 2
        assert result.records[0].get("E") == ""
        assert result.records[1].get("E") == "5"
        assert "6" not in result.records[1].values.values()
        assert result.diagnostics.fields_defaulted == 1

    def test_blank_and_whitespace_rows_are_skipped(self):
        text = "A,B\n1,2\n\n , \n3,4\n"

        result = parse_with_diagnostics(text)

        assert [record.get("A") for record in result.records] == ["1", "3"]
        assert result.diagnostics.blank_lines == 2
        assert result.diagnostics.rows_dropped_empty == 1

    def test_all_empty_fields_row_is_dropped(self):
        result = parse_with_diagnostics('A,B\n"",""\n1,2\n')

        assert len(result.records) == 1
        assert result.diagnostics.rows_dropped_empty == 1

    def test_header_only_input_yields_no_records(self):
        assert parse_records("A,B\n") == []
        assert parse_records("A,B") == []
        assert parse_records("") == []

    def test_bom_and_crlf_are_handled(self):
        result = parse_with_diagnostics("\ufeffDay,Impressions\r\n2024-03-01,10\r\n")

        assert result.headers == ["Day", "Impressions"]
        assert result.records[0].day == "2024-03-01"
        assert result.records[0].field("impressions") == "10"

    def test_duplicate_and_empty_headers_are_renamed(self):
        result = parse_with_diagnostics("A,A,\n1,2,3\n")

        assert result.headers == ["A", "A_2", "column_3"]

    def test_missing_logical_fields_are_reported(self):
        result = parse_with_diagnostics("Day,Impressions\n2024-03-01,10\n")

        assert "spend" in result.diagnostics.missing_fields
        assert "impressions" not in result.diagnostics.missing_fields

    def test_records_are_indexed_in_input_order(self):
        records = parse_records("A\n1\n2\n3\n")

        assert [record.index for record in records] == [0, 1, 2]

    def test_field_aliases_take_first_non_empty_column(self):
        records = parse_records("Amount Spent,Cost\n,7.5\n")
        assert records[0].field("spend") == "7.5"

    @pytest.mark.parametrize(
        "header, field_name",
        [
            ("Valor Gasto", "spend"),
            ("Clicks", "clicks_all"),
            ("3-Second Video Plays", "video_3s"),
            ("Video Plays at 75%", "video_75"),
            ("Video Plays at 95%", "video_95"),
        ],
    )
    def test_alternate_export_headers_resolve(self, header, field_name):
        records = parse_records(f"{header}\n42\n")

        assert records[0].field(field_name) == "42"

    def test_primary_header_wins_over_alternate(self):
        records = parse_records("Clicks (All),Clicks\n9,4\n")

        assert records[0].field("clicks_all") == "9"

    @pytest.mark.parametrize(
        "line, expected",
        [
            ('"a" b,c', ["a b", "c"]),
            ('"a"   ,c', ["a", "c"]),
            ('"a"  ', ["a"]),
        ],
    )
    def test_text_after_closing_quote(self, line, expected):
        headers = ",".join(f"h{idx}" for idx in range(len(expected)))

        records = parse_records(f"{headers}\n{line}\n")

        assert list(records[0].values.values()) == expected

    def test_round_trip_through_serializer(self):
        original = [
            RawRecord.build(0, {"Campaign Name": "Promo, Spring", "Ad Name": 'Video "A"', "Impressions": "100"}),
            RawRecord.build(1, {"Campaign Name": "Plain", "Ad Name": "  padded  ", "Impressions": "5"}),
        ]

        parsed = parse_records(serialize_csv(original))

        assert [dict(record.values) for record in parsed] == [dict(record.values) for record in original]
