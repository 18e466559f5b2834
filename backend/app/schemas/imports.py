from typing import Dict, List, Optional
from datetime import datetime
from pydantic import BaseModel, ConfigDict


class FormatInfo(BaseModel):
    id: str
    label: str
    extensions: str


class FormatList(BaseModel):
    formats: List[FormatInfo]


class DetectResult(BaseModel):
    format: Optional[str] = None


class SuiteSummary(BaseModel):
    id: int
    name: str
    time: float
    tests: int
    failures: int
    errors: int
    skipped: int
    timestamp: datetime

    model_config = ConfigDict(from_attributes=True)


class RunSummary(BaseModel):
    id: int
    project_id: int
    name: str
    test_run_type: str
    state_id: int
    config_id: Optional[int] = None
    milestone_id: Optional[int] = None
    tag_ids: List[int] = []
    suites: List[SuiteSummary] = []
    case_count: int = 0
    completed_count: int = 0
    # ステータスIDごとの実行ケース数（キーは文字列化したID、未設定は "none"）
    status_counts: Dict[str, int] = {}
