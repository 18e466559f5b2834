"""
アップロードされたファイルの内容と拡張子からテスト結果形式を判定する

I/Oを行わない純粋関数のみを提供する。
"""
import json
from typing import Iterable, Optional

from .formats import TestResultFormat
from .parsed import UploadedFile

MSTEST_NAMESPACE_MARKER = "microsoft.com/schemas/VisualStudio"


def _extension(file_name: Optional[str]) -> str:
    if not file_name or "." not in file_name:
        return ""
    return file_name.rsplit(".", 1)[-1].lower()


def _detect_json(content: str) -> Optional[TestResultFormat]:
    try:
        data = json.loads(content)
    except (json.JSONDecodeError, ValueError):
        return None

    if isinstance(data, list):
        first = data[0] if data else None
        if isinstance(first, dict) and "elements" in first and ("keyword" in first or "uri" in first):
            return TestResultFormat.CUCUMBER
        return None

    if isinstance(data, dict):
        if "stats" in data and any(key in data for key in ("tests", "passes", "failures")):
            return TestResultFormat.MOCHA
        if isinstance(data.get("results"), list):
            return TestResultFormat.MOCHA
    return None


def _detect_xml(content: str) -> Optional[TestResultFormat]:
    if "<TestRun" in content and MSTEST_NAMESPACE_MARKER in content:
        return TestResultFormat.MSTEST
    if "<testng-results" in content:
        return TestResultFormat.TESTNG
    if "<test-results" in content or ("<test-run" in content and "nunit" in content.lower()):
        return TestResultFormat.NUNIT
    if "<assemblies" in content:
        return TestResultFormat.XUNIT
    if "<testsuite" in content:
        # <testsuites> も含む
        return TestResultFormat.JUNIT
    return None


def detect_format(content: str, file_name: Optional[str] = None) -> Optional[TestResultFormat]:
    """
    1ファイルの形式を判定する

    Args:
        content: ファイル内容
        file_name: ファイル名（拡張子のヒントに使う）

    Returns:
        判定した形式。判定できない場合はNone
    """
    if _extension(file_name) == "trx":
        return TestResultFormat.MSTEST

    trimmed = (content or "").lstrip("\ufeff").strip()
    if not trimmed:
        return None

    if trimmed[0] in "[{":
        detected = _detect_json(trimmed)
        if detected:
            return detected

    if trimmed.startswith("<"):
        return _detect_xml(trimmed)

    return None


def detect(files: Iterable[UploadedFile]) -> Optional[TestResultFormat]:
    """
    すべてのファイルが同じ形式と判定された場合のみ、その形式を返す

    1つでも判定できないファイルがある場合や、形式が混在している場合はNoneを返し、
    呼び出し側に形式の明示指定を求めさせる。
    """
    detected: Optional[TestResultFormat] = None
    seen_any = False
    for uploaded in files:
        seen_any = True
        fmt = detect_format(uploaded.content, uploaded.name)
        if fmt is None:
            return None
        if detected is None:
            detected = fmt
        elif detected != fmt:
            return None
    return detected if seen_any else None
