from .formats import AUTO_FORMAT, FORMATS, TestResultFormat, normalize_status
from .parsed import ParsedCase, ParsedResult, ParsedStep, ParsedSuite, ParsedAttachment, UploadedFile
from .detector import detect, detect_format
from .parsers import ResultParser
from .status_resolver import StatusCandidate, StatusResolver
from .folders import FolderPathBuilder, split_suite_name
from .cases import CaseMetadata, CaseUpsertEngine
from .recorder import ResultRecorder
from .progress import ProgressReporter, stream_events
from .audit import AuditSink, CeleryAuditSink, DatabaseAuditSink, get_audit_sink
from .orchestrator import ImportOrchestrator, ImportRequest, ImportState, ImportSummary, ItemResult

__all__ = [
    "AUTO_FORMAT", "FORMATS", "TestResultFormat", "normalize_status",
    "ParsedCase", "ParsedResult", "ParsedStep", "ParsedSuite", "ParsedAttachment", "UploadedFile",
    "detect", "detect_format",
    "ResultParser",
    "StatusResolver",
    "StatusCandidate",
    "FolderPathBuilder", "split_suite_name",
    "CaseMetadata", "CaseUpsertEngine",
    "ResultRecorder",
    "ProgressReporter", "stream_events",
    "AuditSink", "CeleryAuditSink", "DatabaseAuditSink", "get_audit_sink",
    "ImportOrchestrator", "ImportRequest", "ImportState", "ImportSummary", "ItemResult",
]
