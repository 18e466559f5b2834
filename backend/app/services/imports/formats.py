"""
対応するテスト結果形式のメタデータと、形式に依存しない正規化ヘルパー
"""
import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

from app.models.enums import TestRunType, RepositoryCaseSource
from .parsed import ParsedCase, ParsedSuite


class TestResultFormat(str, Enum):
    __test__ = False

    JUNIT = "junit"
    TESTNG = "testng"
    XUNIT = "xunit"
    NUNIT = "nunit"
    MSTEST = "mstest"
    MOCHA = "mocha"
    CUCUMBER = "cucumber"


AUTO_FORMAT = "auto"


@dataclass(frozen=True)
class FormatInfo:
    label: str
    extensions: List[str]
    run_type: TestRunType
    source: RepositoryCaseSource


FORMATS: Dict[TestResultFormat, FormatInfo] = {
    TestResultFormat.JUNIT: FormatInfo("JUnit XML", [".xml"], TestRunType.JUNIT, RepositoryCaseSource.JUNIT),
    TestResultFormat.TESTNG: FormatInfo("TestNG XML", [".xml"], TestRunType.TESTNG, RepositoryCaseSource.TESTNG),
    TestResultFormat.XUNIT: FormatInfo("xUnit XML", [".xml"], TestRunType.XUNIT, RepositoryCaseSource.XUNIT),
    TestResultFormat.NUNIT: FormatInfo("NUnit XML", [".xml"], TestRunType.NUNIT, RepositoryCaseSource.NUNIT),
    TestResultFormat.MSTEST: FormatInfo("MSTest TRX", [".trx", ".xml"], TestRunType.MSTEST, RepositoryCaseSource.MSTEST),
    TestResultFormat.MOCHA: FormatInfo("Mocha JSON", [".json"], TestRunType.MOCHA, RepositoryCaseSource.MOCHA),
    TestResultFormat.CUCUMBER: FormatInfo("Cucumber JSON", [".json"], TestRunType.CUCUMBER, RepositoryCaseSource.CUCUMBER),
}


def is_valid_format(value: Optional[str]) -> bool:
    return value in {f.value for f in TestResultFormat}


def get_format(value: str) -> TestResultFormat:
    return TestResultFormat(value)


def accepted_extensions(fmt: TestResultFormat) -> str:
    return ",".join(FORMATS[fmt].extensions)


# 各形式のステータス語彙を passed / failed / error / skipped に寄せる
STATUS_MAP: Dict[str, str] = {
    "pass": "passed",
    "passed": "passed",
    "success": "passed",
    "ok": "passed",
    "fail": "failed",
    "failed": "failed",
    "failure": "failed",
    "error": "error",
    "errored": "error",
    "broken": "error",
    "skip": "skipped",
    "skipped": "skipped",
    "pending": "skipped",
    "ignored": "skipped",
    "todo": "skipped",
    "undefined": "skipped",
    "disabled": "skipped",
    "notrun": "skipped",
    "notexecuted": "skipped",
    "inconclusive": "skipped",
}

NORMALIZED_STATUSES = ("passed", "failed", "error", "skipped")


def normalize_status(status: Optional[str]) -> str:
    """ステータス文字列を正規化する。不明・空の場合は passed とみなす"""
    if not status:
        return "passed"
    key = status.strip().lower().replace("_", "").replace("-", "")
    return STATUS_MAP.get(key, "passed")


def parse_duration(value: Any) -> float:
    """数値または数値文字列を秒数として解釈する。解釈できない場合は0"""
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        return 0.0 if math.isnan(value) or math.isinf(value) else float(value)
    if isinstance(value, str):
        try:
            parsed = float(value.strip())
        except ValueError:
            return 0.0
        return 0.0 if math.isnan(parsed) or math.isinf(parsed) else parsed
    return 0.0


def estimate_from_duration(seconds: float) -> int:
    return max(1, round(seconds))


def extract_class_name(case: ParsedCase, suite: ParsedSuite) -> str:
    """
    ケースのクラス名を決める。リポジトリケースの自然キーの一部になる

    JUnit/TestNGは完全修飾クラス名、Cucumberはフィーチャー名、
    Mochaはdescribeブロック名がクラスに相当する。
    """
    if case.class_name:
        return case.class_name
    if suite.name:
        return suite.name
    return "Unknown"
