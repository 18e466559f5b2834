from enum import Enum


class TestRunType(str, Enum):
    """テスト実行の種類。インポート形式ごとに1つの自動テスト系統を持つ"""
    __test__ = False

    REGULAR = "REGULAR"
    JUNIT = "JUNIT"
    TESTNG = "TESTNG"
    XUNIT = "XUNIT"
    NUNIT = "NUNIT"
    MSTEST = "MSTEST"
    MOCHA = "MOCHA"
    CUCUMBER = "CUCUMBER"


class RepositoryCaseSource(str, Enum):
    """リポジトリケースの作成元"""
    MANUAL = "MANUAL"
    JUNIT = "JUNIT"
    TESTNG = "TESTNG"
    XUNIT = "XUNIT"
    NUNIT = "NUNIT"
    MSTEST = "MSTEST"
    MOCHA = "MOCHA"
    CUCUMBER = "CUCUMBER"


class TestResultType(str, Enum):
    """インポートされた実行結果の種類"""
    __test__ = False

    PASSED = "PASSED"
    FAILURE = "FAILURE"
    ERROR = "ERROR"
    SKIPPED = "SKIPPED"


class WorkflowType(str, Enum):
    NOT_STARTED = "NOT_STARTED"
    IN_PROGRESS = "IN_PROGRESS"
    DONE = "DONE"


class WorkflowScope(str, Enum):
    CASES = "CASES"
    RUNS = "RUNS"
    SESSIONS = "SESSIONS"
