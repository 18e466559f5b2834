"""
サービス層のモジュール
"""
from .imports import (
    AUTO_FORMAT, FORMATS, TestResultFormat,
    detect, detect_format, ResultParser,
    StatusResolver, FolderPathBuilder, CaseUpsertEngine, ResultRecorder,
    ProgressReporter, stream_events,
    ImportOrchestrator, ImportRequest, ImportSummary,
)

__all__ = [
    # 形式
    "AUTO_FORMAT", "FORMATS", "TestResultFormat",
    "detect", "detect_format", "ResultParser",

    # インポート処理
    "StatusResolver", "FolderPathBuilder", "CaseUpsertEngine", "ResultRecorder",
    "ProgressReporter", "stream_events",
    "ImportOrchestrator", "ImportRequest", "ImportSummary",
]
