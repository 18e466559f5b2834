# テスト実行関連モデルのパッケージ
from .run import TestRun, TestRunCase, TestRunTagLink
from .suite import TestSuite
from .result import TestResult, TestResultStep, TestResultAttachment

__all__ = [
    "TestRun",
    "TestRunCase",
    "TestRunTagLink",
    "TestSuite",
    "TestResult",
    "TestResultStep",
    "TestResultAttachment",
]
