"""
パーサー境界の型定義

各形式のパーサーは、生のファイル内容をここで定義する厳密な構造に変換する。
オーケストレーターは形式判定・パースの後は形式ごとの分岐を行わない。
"""
from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class UploadedFile:
    """アップロードされた1ファイル（リクエスト中のみ保持）"""
    name: str
    content: str


@dataclass
class ParsedStep:
    name: str
    status: str = "passed"
    duration: float = 0.0
    failure: Optional[str] = None


@dataclass
class ParsedAttachment:
    name: str
    path: str


@dataclass
class ParsedCase:
    name: str
    duration: float = 0.0
    status: str = "passed"
    # 形式側で分かる場合のクラス名（JUnitのclassname、MSTestのclassNameなど）
    class_name: Optional[str] = None
    failure: Optional[str] = None
    stack_trace: Optional[str] = None
    steps: List[ParsedStep] = field(default_factory=list)
    attachments: List[ParsedAttachment] = field(default_factory=list)


@dataclass
class ParsedSuite:
    name: str
    duration: float = 0.0
    total: int = 0
    failed: int = 0
    errors: int = 0
    skipped: int = 0
    cases: List[ParsedCase] = field(default_factory=list)


@dataclass
class ParsedResult:
    suites: List[ParsedSuite] = field(default_factory=list)
    # パーサーが許容した非致命的な問題
    errors: List[str] = field(default_factory=list)

    def count_cases(self) -> int:
        return sum(len(suite.cases) for suite in self.suites)
