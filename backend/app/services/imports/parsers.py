"""
テスト結果ファイルのパーサー

JUnit / TestNG / xUnit / NUnit / MSTest(TRX) / Mocha JSON / Cucumber JSON を
共通の ParsedResult 構造に変換する。時間はすべて秒に正規化する。

ファイルとして読めない内容（壊れたXML・JSON）は ResultParseException として扱い、
読めたが想定外の要素があった場合は警告として ParsedResult.errors に積む。
"""
import json
import re
import xml.etree.ElementTree as ET
from collections import OrderedDict
from typing import Any, Callable, Dict, List, Optional, Tuple

from app.exceptions import ResultParseException, UnsupportedFormatException
from app.logging_config import logger
from .formats import TestResultFormat, normalize_status, parse_duration
from .parsed import (
    ParsedAttachment,
    ParsedCase,
    ParsedResult,
    ParsedStep,
    ParsedSuite,
    UploadedFile,
)

ATTACHMENT_PATTERN = re.compile(r"\[\[ATTACHMENT\|([^\]]+)\]\]")
TRX_DURATION_PATTERN = re.compile(r"^(\d+):(\d+):(\d+(?:\.\d+)?)$")
XUNIT_COLLECTION_PREFIX = "Test collection for "

SuitesAndWarnings = Tuple[List[ParsedSuite], List[str]]


# XMLヘルパー
def _local(tag: str) -> str:
    return tag.rsplit("}", 1)[-1] if "}" in tag else tag


def _children(elem: ET.Element, name: str) -> List[ET.Element]:
    return [child for child in elem if _local(child.tag) == name]


def _child(elem: Optional[ET.Element], name: str) -> Optional[ET.Element]:
    if elem is None:
        return None
    for child in elem:
        if _local(child.tag) == name:
            return child
    return None


def _descendants(elem: ET.Element, name: str) -> List[ET.Element]:
    return [node for node in elem.iter() if _local(node.tag) == name]


def _text(elem: Optional[ET.Element]) -> Optional[str]:
    if elem is None:
        return None
    value = "".join(elem.itertext()).strip()
    return value or None


def _int_attr(elem: ET.Element, name: str) -> Optional[int]:
    value = elem.get(name)
    if value is None:
        return None
    try:
        return int(float(value))
    except ValueError:
        return None


def _first_line(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    return value.strip().splitlines()[0] if value.strip() else None


def _parse_xml(content: str) -> ET.Element:
    return ET.fromstring(content.lstrip("\ufeff").strip())


def _build_suite(
    name: str,
    cases: List[ParsedCase],
    duration: Optional[float] = None,
    total: Optional[int] = None,
    failed: Optional[int] = None,
    errors: Optional[int] = None,
    skipped: Optional[int] = None,
) -> ParsedSuite:
    """パーサー側の集計値があればそれを使い、なければケースから数える"""
    return ParsedSuite(
        name=name,
        duration=duration if duration is not None else sum(case.duration for case in cases),
        total=total if total is not None else len(cases),
        failed=failed if failed is not None else sum(1 for case in cases if case.status == "failed"),
        errors=errors if errors is not None else sum(1 for case in cases if case.status == "error"),
        skipped=skipped if skipped is not None else sum(1 for case in cases if case.status == "skipped"),
        cases=cases,
    )


def _group_cases(pairs: List[Tuple[str, ParsedCase]]) -> List[ParsedSuite]:
    grouped: "OrderedDict[str, List[ParsedCase]]" = OrderedDict()
    for suite_name, case in pairs:
        grouped.setdefault(suite_name, []).append(case)
    return [_build_suite(name, cases) for name, cases in grouped.items()]


# JUnit
def _junit_case(elem: ET.Element) -> ParsedCase:
    status = "passed"
    failure = None
    stack_trace = None
    for child in elem:
        tag = _local(child.tag)
        if tag in ("failure", "error"):
            status = "failed" if tag == "failure" else "error"
            stack_trace = _text(child)
            failure = child.get("message") or _first_line(stack_trace) or child.get("type")
            break
        if tag == "skipped":
            status = "skipped"
            failure = child.get("message") or _text(child)

    attachments = []
    for output_tag in ("system-out", "system-err"):
        output = _text(_child(elem, output_tag))
        if output:
            for path in ATTACHMENT_PATTERN.findall(output):
                attachments.append(ParsedAttachment(name=path.replace("\\", "/").rsplit("/", 1)[-1], path=path))

    return ParsedCase(
        name=elem.get("name", ""),
        duration=parse_duration(elem.get("time")),
        status=status,
        class_name=elem.get("classname") or None,
        failure=failure,
        stack_trace=stack_trace,
        attachments=attachments,
    )


def parse_junit(uploaded: UploadedFile) -> SuitesAndWarnings:
    root = _parse_xml(uploaded.content)
    suites: List[ParsedSuite] = []
    warnings: List[str] = []

    for suite_elem in _descendants(root, "testsuite"):
        case_elems = _children(suite_elem, "testcase")
        # 子スイートだけを持つ入れ物のスイートは出力しない
        if not case_elems and _children(suite_elem, "testsuite"):
            continue

        cases = []
        for case_elem in case_elems:
            if not case_elem.get("name"):
                warnings.append(f"testcase without a name in suite '{suite_elem.get('name', '')}' was ignored")
                continue
            cases.append(_junit_case(case_elem))

        skipped = _int_attr(suite_elem, "skipped")
        if skipped is None:
            skipped = _int_attr(suite_elem, "disabled")
        time = suite_elem.get("time")
        suites.append(_build_suite(
            name=suite_elem.get("name") or "Test Suite",
            cases=cases,
            duration=parse_duration(time) if time is not None else None,
            total=_int_attr(suite_elem, "tests"),
            failed=_int_attr(suite_elem, "failures"),
            errors=_int_attr(suite_elem, "errors"),
            skipped=skipped,
        ))

    if not suites and _local(root.tag) not in ("testsuites", "testsuite"):
        warnings.append(f"unexpected root element <{_local(root.tag)}>")
    return suites, warnings


# TestNG
def parse_testng(uploaded: UploadedFile) -> SuitesAndWarnings:
    root = _parse_xml(uploaded.content)
    suites: List[ParsedSuite] = []
    warnings: List[str] = []

    for class_elem in _descendants(root, "class"):
        class_name = class_elem.get("name") or "Unknown"
        cases = []
        for method in _children(class_elem, "test-method"):
            if method.get("is-config") == "true":
                continue
            exception = _child(method, "exception")
            message = _text(_child(exception, "message"))
            stack_trace = _text(_child(exception, "full-stacktrace"))
            status = normalize_status(method.get("status"))
            cases.append(ParsedCase(
                name=method.get("name") or method.get("signature") or "",
                duration=parse_duration(method.get("duration-ms")) / 1000,
                status=status,
                class_name=class_name,
                failure=message or (exception.get("class") if exception is not None else None),
                stack_trace=stack_trace,
            ))
        if cases:
            suites.append(_build_suite(class_name, cases))

    if _local(root.tag) != "testng-results":
        warnings.append(f"unexpected root element <{_local(root.tag)}>")
    return suites, warnings


# xUnit
def _xunit_case(test: ET.Element) -> ParsedCase:
    failure_elem = _child(test, "failure")
    message = _text(_child(failure_elem, "message"))
    stack_trace = _text(_child(failure_elem, "stack-trace"))
    status = normalize_status(test.get("result"))
    if status == "skipped":
        message = _text(_child(test, "reason")) or message
    return ParsedCase(
        name=test.get("method") or test.get("name") or "",
        duration=parse_duration(test.get("time")),
        status=status,
        class_name=test.get("type") or None,
        failure=message,
        stack_trace=stack_trace,
    )


def parse_xunit(uploaded: UploadedFile) -> SuitesAndWarnings:
    root = _parse_xml(uploaded.content)
    suites: List[ParsedSuite] = []
    warnings: List[str] = []

    for assembly in _descendants(root, "assembly"):
        collections = _children(assembly, "collection")
        if collections:
            for collection in collections:
                name = collection.get("name") or assembly.get("name") or "Test Collection"
                if name.startswith(XUNIT_COLLECTION_PREFIX):
                    name = name[len(XUNIT_COLLECTION_PREFIX):]
                cases = [_xunit_case(test) for test in _children(collection, "test")]
                time = collection.get("time")
                suites.append(_build_suite(
                    name=name,
                    cases=cases,
                    duration=parse_duration(time) if time is not None else None,
                    total=_int_attr(collection, "total"),
                    failed=_int_attr(collection, "failed"),
                    skipped=_int_attr(collection, "skipped"),
                ))
        else:
            # コレクションを持たない形式はクラス単位でまとめる
            pairs = []
            for test in _descendants(assembly, "test"):
                case = _xunit_case(test)
                pairs.append((case.class_name or assembly.get("name") or "Tests", case))
            suites.extend(_group_cases(pairs))

    if _local(root.tag) not in ("assemblies", "assembly"):
        warnings.append(f"unexpected root element <{_local(root.tag)}>")
    return suites, warnings


# NUnit (v2 / v3)
def _nunit_status(case_elem: ET.Element) -> str:
    result = (case_elem.get("result") or "").lower()
    label = (case_elem.get("label") or "").lower()
    if label == "error" or result == "error":
        return "error"
    if result in ("notrunnable", "invalid") or case_elem.get("executed") == "False":
        return "skipped"
    return normalize_status(result)


def _split_nunit_name(full_name: str) -> Tuple[Optional[str], str]:
    base = full_name.split("(", 1)[0]
    if "." not in base:
        return None, full_name
    class_name = base.rsplit(".", 1)[0]
    return class_name, full_name[len(class_name) + 1:]


def parse_nunit(uploaded: UploadedFile) -> SuitesAndWarnings:
    root = _parse_xml(uploaded.content)
    warnings: List[str] = []
    pairs: List[Tuple[str, ParsedCase]] = []
    is_v2 = _local(root.tag) == "test-results"

    for case_elem in _descendants(root, "test-case"):
        name = case_elem.get("name") or ""
        class_name = case_elem.get("classname")
        if is_v2 or not class_name:
            split_class, split_name = _split_nunit_name(case_elem.get("fullname") or name)
            class_name = class_name or split_class
            if is_v2:
                name = split_name
        if not name:
            warnings.append("test-case without a name was ignored")
            continue

        status = _nunit_status(case_elem)
        failure_elem = _child(case_elem, "failure")
        message = _text(_child(failure_elem, "message"))
        if status == "skipped":
            message = _text(_child(_child(case_elem, "reason"), "message")) or message
        attachments = [
            ParsedAttachment(
                name=(_text(_child(att, "description")) or _text(_child(att, "filePath")) or "attachment"),
                path=_text(_child(att, "filePath")) or "",
            )
            for att in _descendants(case_elem, "attachment")
            if _text(_child(att, "filePath"))
        ]
        duration = case_elem.get("duration") if case_elem.get("duration") is not None else case_elem.get("time")
        case = ParsedCase(
            name=name,
            duration=parse_duration(duration),
            status=status,
            class_name=class_name,
            failure=message,
            stack_trace=_text(_child(failure_elem, "stack-trace")),
            attachments=attachments,
        )
        pairs.append((class_name or "NUnit Tests", case))

    if _local(root.tag) not in ("test-run", "test-results"):
        warnings.append(f"unexpected root element <{_local(root.tag)}>")
    return _group_cases(pairs), warnings


# MSTest (TRX)
def _trx_duration(value: Optional[str]) -> float:
    if not value:
        return 0.0
    match = TRX_DURATION_PATTERN.match(value.strip())
    if not match:
        return parse_duration(value)
    hours, minutes, seconds = match.groups()
    return int(hours) * 3600 + int(minutes) * 60 + float(seconds)


def _trx_status(outcome: Optional[str]) -> str:
    value = (outcome or "").lower()
    if value in ("timeout", "aborted"):
        return "error"
    if value in ("notexecuted", "notrunnable", "pending", "disconnected", "warning"):
        return "skipped"
    return normalize_status(value)


def parse_mstest(uploaded: UploadedFile) -> SuitesAndWarnings:
    root = _parse_xml(uploaded.content)
    warnings: List[str] = []

    definitions: Dict[str, Tuple[str, str]] = {}
    for unit_test in _descendants(root, "UnitTest"):
        method = _child(unit_test, "TestMethod")
        class_name = (method.get("className") if method is not None else None) or "Unknown"
        # "Namespace.Class, Assembly, Version=..." の形式からクラス名だけを取り出す
        class_name = class_name.split(",", 1)[0].strip()
        method_name = (method.get("name") if method is not None else None) or unit_test.get("name") or ""
        definitions[unit_test.get("id", "")] = (class_name, method_name)

    pairs: List[Tuple[str, ParsedCase]] = []
    for result in _descendants(root, "UnitTestResult"):
        test_id = result.get("testId", "")
        if test_id not in definitions:
            warnings.append(f"result '{result.get('testName', '')}' has no matching test definition")
        class_name, method_name = definitions.get(test_id, ("Unknown", result.get("testName", "")))
        error_info = _child(_child(result, "Output"), "ErrorInfo")
        attachments = [
            ParsedAttachment(name=path.replace("\\", "/").rsplit("/", 1)[-1], path=path)
            for path in (rf.get("path") for rf in _descendants(result, "ResultFile"))
            if path
        ]
        case = ParsedCase(
            name=method_name or result.get("testName", ""),
            duration=_trx_duration(result.get("duration")),
            status=_trx_status(result.get("outcome")),
            class_name=class_name,
            failure=_text(_child(error_info, "Message")),
            stack_trace=_text(_child(error_info, "StackTrace")),
            attachments=attachments,
        )
        pairs.append((class_name, case))

    if _local(root.tag) != "TestRun":
        warnings.append(f"unexpected root element <{_local(root.tag)}>")
    return _group_cases(pairs), warnings


# Mocha (既定のJSONレポーター / mochawesome)
def _mocha_error(test: Dict[str, Any]) -> Tuple[Optional[str], Optional[str]]:
    err = test.get("err") or {}
    if not isinstance(err, dict) or not err:
        return None, None
    return err.get("message"), err.get("stack") or err.get("estack")


def _mocha_awesome_suite(node: Dict[str, Any], path: List[str], pairs: List[Tuple[str, ParsedCase]]) -> None:
    title = (node.get("title") or "").strip()
    current = path + [title] if title else path
    suite_name = "/".join(current) or node.get("file") or "Root Suite"
    for test in node.get("tests") or []:
        if test.get("skipped") or test.get("pending") or test.get("state") == "pending":
            status = "skipped"
        else:
            status = normalize_status(test.get("state") or ("failed" if test.get("fail") else "passed"))
        message, stack = _mocha_error(test)
        pairs.append((suite_name, ParsedCase(
            name=test.get("title") or "",
            duration=parse_duration(test.get("duration")) / 1000,
            status=status,
            class_name=suite_name,
            failure=message,
            stack_trace=stack,
        )))
    for child in node.get("suites") or []:
        _mocha_awesome_suite(child, current, pairs)


def parse_mocha(uploaded: UploadedFile) -> SuitesAndWarnings:
    data = json.loads(uploaded.content.lstrip("\ufeff"))
    warnings: List[str] = []
    pairs: List[Tuple[str, ParsedCase]] = []

    if not isinstance(data, dict):
        raise ValueError("Mocha report must be a JSON object")

    if isinstance(data.get("results"), list):
        for result in data["results"]:
            _mocha_awesome_suite(result, [], pairs)
        return _group_cases(pairs), warnings

    pending_titles = {test.get("fullTitle") for test in data.get("pending") or []}
    for test in data.get("tests") or []:
        title = test.get("title") or ""
        full_title = test.get("fullTitle") or title
        suite_name = full_title[: len(full_title) - len(title)].strip() if full_title.endswith(title) else ""
        suite_name = suite_name or test.get("file") or "Mocha Tests"
        message, stack = _mocha_error(test)
        if full_title in pending_titles or test.get("pending"):
            status = "skipped"
        elif message:
            status = "failed"
        else:
            status = "passed"
        pairs.append((suite_name, ParsedCase(
            name=title,
            duration=parse_duration(test.get("duration")) / 1000,
            status=status,
            class_name=suite_name,
            failure=message,
            stack_trace=stack,
        )))

    if "tests" not in data:
        warnings.append("Mocha report has no 'tests' array")
    return _group_cases(pairs), warnings


# Cucumber
def _cucumber_step(step: Dict[str, Any]) -> ParsedStep:
    result = step.get("result") or {}
    raw_status = (result.get("status") or "").lower()
    status = "failed" if raw_status == "ambiguous" else normalize_status(raw_status)
    return ParsedStep(
        name=f"{(step.get('keyword') or '').strip()} {step.get('name') or ''}".strip(),
        status=status,
        duration=parse_duration(result.get("duration")) / 1_000_000_000,
        failure=result.get("error_message"),
    )


def parse_cucumber(uploaded: UploadedFile) -> SuitesAndWarnings:
    data = json.loads(uploaded.content.lstrip("\ufeff"))
    if not isinstance(data, list):
        raise ValueError("Cucumber report must be a JSON array of features")

    suites: List[ParsedSuite] = []
    warnings: List[str] = []
    for feature in data:
        feature_name = feature.get("name") or feature.get("uri") or "Feature"
        cases = []
        for element in feature.get("elements") or []:
            if (element.get("type") or "").lower() == "background":
                continue
            steps = [_cucumber_step(step) for step in element.get("steps") or []]
            hooks = [_cucumber_step(hook) for hook in (element.get("before") or []) + (element.get("after") or [])]
            outcomes = [step.status for step in steps + hooks]
            if "failed" in outcomes:
                status = "failed"
            elif "error" in outcomes:
                status = "error"
            elif "skipped" in outcomes:
                status = "skipped"
            else:
                status = "passed"
            failing = next((step for step in steps + hooks if step.failure), None)
            cases.append(ParsedCase(
                name=element.get("name") or element.get("id") or "",
                duration=sum(step.duration for step in steps + hooks),
                status=status,
                failure=_first_line(failing.failure) if failing else None,
                stack_trace=failing.failure if failing else None,
                steps=steps,
            ))
        if not feature.get("elements"):
            warnings.append(f"feature '{feature_name}' has no scenarios")
        suites.append(_build_suite(feature_name, cases))
    return suites, warnings


class ResultParser:
    """形式ごとのパーサーをまとめた既定のパーサー"""

    def __init__(self):
        self._handlers: Dict[TestResultFormat, Callable[[UploadedFile], SuitesAndWarnings]] = {
            TestResultFormat.JUNIT: parse_junit,
            TestResultFormat.TESTNG: parse_testng,
            TestResultFormat.XUNIT: parse_xunit,
            TestResultFormat.NUNIT: parse_nunit,
            TestResultFormat.MSTEST: parse_mstest,
            TestResultFormat.MOCHA: parse_mocha,
            TestResultFormat.CUCUMBER: parse_cucumber,
        }

    def parse(self, files: List[UploadedFile], fmt: TestResultFormat) -> ParsedResult:
        """
        ファイル群をパースする

        Args:
            files: アップロードされたファイル
            fmt: パースに使う形式

        Returns:
            すべてのファイルのスイートと警告をまとめた結果

        Raises:
            ResultParseException: いずれかのファイルが読めない場合
        """
        handler = self._handlers.get(fmt)
        if handler is None:
            raise UnsupportedFormatException(f"Unsupported format: {fmt}")

        parsed = ParsedResult()
        for uploaded in files:
            try:
                suites, warnings = handler(uploaded)
            except (ET.ParseError, ValueError, TypeError, AttributeError, KeyError) as e:
                logger.warning(f"Failed to parse {uploaded.name} as {fmt.value}: {e}")
                raise ResultParseException(
                    f"Failed to parse {fmt.value} files: {uploaded.name}: {e}",
                    details={"file": uploaded.name, "format": fmt.value},
                ) from e

            if not suites:
                warnings.append("no test suites found")
            parsed.suites.extend(suites)
            parsed.errors.extend(f"{uploaded.name}: {warning}" for warning in warnings)

        return parsed
