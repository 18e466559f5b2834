"""
正規化済みステータス（passed / failed / error / skipped）をプロジェクトのステータスに対応付ける

候補の読み込みはインポート1回につきプロジェクトごとに1度だけ行い、
StatusResolver インスタンスに保持する。モジュールレベルの共有キャッシュは持たない。
候補はORMインスタンスではなく StatusCandidate として保持するため、ケースごとのコミットで失効しない。
"""
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from sqlmodel import Session, select

from app.config import config
from app.exceptions import StatusResolutionException
from app.logging_config import logger
from app.models import Status, StatusProjectLink, StatusScopeLink

# 正規化ステータスごとの照合語（優先順）
LOOKUP_TERMS: Dict[str, List[str]] = {
    "passed": ["passed"],
    "failed": ["failed", "failure"],
    "error": ["error"],
    "skipped": ["skipped"],
}

UNTESTED = "untested"


@dataclass(frozen=True)
class StatusCandidate:
    """照合に使うステータスの値"""
    id: int
    system_name: str
    name: str
    aliases: Tuple[str, ...]
    is_success: bool

    @classmethod
    def from_status(cls, status: Status) -> "StatusCandidate":
        return cls(
            id=status.id,
            system_name=status.system_name or "",
            name=status.name or "",
            aliases=tuple(status.alias_list()),
            is_success=status.is_success,
        )


def _match(candidates: List[StatusCandidate], terms: List[str]) -> Optional[StatusCandidate]:
    """system_name完全一致 → name完全一致 → エイリアス部分一致 の順に探す"""
    for term in terms:
        for status in candidates:
            if status.system_name.lower() == term:
                return status
    for term in terms:
        for status in candidates:
            if status.name.lower() == term:
                return status
    for term in terms:
        for status in candidates:
            if any(term in alias for alias in status.aliases):
                return status
    return None


class StatusResolver:
    """1回のインポート中に使うステータス解決器"""

    def __init__(self, session: Session, scope: Optional[str] = None):
        self.session = session
        self.scope = scope or config.get("import", "automation_scope")
        self._scoped: Dict[int, List[StatusCandidate]] = {}
        self._all: Dict[int, List[StatusCandidate]] = {}

    def _project_statuses(self, project_id: int, scoped: bool) -> List[StatusCandidate]:
        cache = self._scoped if scoped else self._all
        if project_id not in cache:
            query = (
                select(Status)
                .join(StatusProjectLink, StatusProjectLink.status_id == Status.id)
                .where(
                    StatusProjectLink.project_id == project_id,
                    Status.is_enabled == True,  # noqa: E712
                    Status.is_deleted == False,  # noqa: E712
                )
            )
            if scoped:
                query = query.join(StatusScopeLink, StatusScopeLink.status_id == Status.id).where(
                    StatusScopeLink.scope == self.scope
                )
            query = query.order_by(Status.order, Status.id)
            cache[project_id] = [StatusCandidate.from_status(status) for status in self.session.exec(query).all()]
        return cache[project_id]

    def match_status(self, status: str, project_id: int) -> Optional[StatusCandidate]:
        """フォールバックなしで一致するステータスを探す"""
        terms = LOOKUP_TERMS.get(status, [status])
        return _match(self._project_statuses(project_id, scoped=True), terms)

    def resolve(self, status: str, project_id: int) -> int:
        """
        正規化ステータスをステータスIDに解決する

        Args:
            status: 正規化済みステータス
            project_id: プロジェクトID

        Returns:
            ステータスID

        Raises:
            StatusResolutionException: プロジェクトに有効なステータスが1つもない場合
        """
        matched = self.match_status(status, project_id)
        if matched:
            return matched.id

        scoped = self._project_statuses(project_id, scoped=True)
        if status == "passed":
            success = next((s for s in scoped if s.is_success), None)
            if success:
                return success.id

        untested = _match(scoped, [UNTESTED])
        if untested:
            logger.debug(f"Status '{status}' not found for project {project_id}, using '{untested.name}'")
            return untested.id

        everything = self._project_statuses(project_id, scoped=False)
        untested = _match(everything, [UNTESTED])
        if untested:
            return untested.id

        if everything:
            logger.warning(f"Status '{status}' not found for project {project_id}, falling back to '{everything[0].name}'")
            return everything[0].id

        raise StatusResolutionException(
            f"No status is configured for project {project_id}",
            details={"project_id": project_id, "status": status},
        )
