import pytest
from app.models import RepositoryCaseSource, TestRunType
from app.services.imports.formats import (
    FORMATS,
    TestResultFormat,
    accepted_extensions,
    estimate_from_duration,
    extract_class_name,
    is_valid_format,
    normalize_status,
    parse_duration,
)
from app.services.imports.parsed import ParsedCase, ParsedSuite


@pytest.mark.parametrize("raw,expected", [
    ("PASS", "passed"),
    ("Success", "passed"),
    ("ok", "passed"),
    ("FAIL", "failed"),
    ("Failure", "failed"),
    ("errored", "error"),
    ("broken", "error"),
    ("pending", "skipped"),
    ("Ignored", "skipped"),
    ("not_run", "skipped"),
    ("Not-Executed", "skipped"),
    ("undefined", "skipped"),
    ("inconclusive", "skipped"),
    ("something-else", "passed"),
    ("", "passed"),
    (None, "passed"),
])
def test_normalize_status(raw, expected):
    assert normalize_status(raw) == expected


@pytest.mark.parametrize("value,expected", [
    (1.5, 1.5),
    (2, 2.0),
    ("0.25", 0.25),
    (" 3 ", 3.0),
    ("abc", 0.0),
    (None, 0.0),
    (float("nan"), 0.0),
    (True, 0.0),
])
def test_parse_duration(value, expected):
    assert parse_duration(value) == expected


def test_estimate_from_duration_is_at_least_one_second():
    assert estimate_from_duration(0) == 1
    assert estimate_from_duration(0.4) == 1
    assert estimate_from_duration(2.6) == 3


def test_extract_class_name():
    suite = ParsedSuite(name="Checkout")
    assert extract_class_name(ParsedCase(name="a", class_name="com.app.Cart"), suite) == "com.app.Cart"
    assert extract_class_name(ParsedCase(name="a"), suite) == "Checkout"
    assert extract_class_name(ParsedCase(name="a"), ParsedSuite(name="")) == "Unknown"


def test_format_registry():
    """全形式に実行タイプとケースのソースが対応している"""
    assert set(FORMATS) == set(TestResultFormat)
    assert FORMATS[TestResultFormat.JUNIT].run_type == TestRunType.JUNIT
    assert FORMATS[TestResultFormat.CUCUMBER].source == RepositoryCaseSource.CUCUMBER
    assert accepted_extensions(TestResultFormat.MSTEST) == ".trx,.xml"


def test_is_valid_format():
    assert is_valid_format("junit")
    assert not is_valid_format("auto")
    assert not is_valid_format("allure")
    assert not is_valid_format(None)
