# app/core/state_machine.py
# 各實體的狀態轉換表：所有狀態變更都必須經過 ensure_transition 檢查
from typing import Dict, Set

from fastapi import HTTPException, status

from app.models.project import ProjectStatusEnum
from app.models.proposal import ProposalStatusEnum
from app.models.contract import ContractStatusEnum

PROPOSAL = "proposal"
PROJECT = "project"
CONTRACT = "contract"

# 已接受 (accepted) 的提案為終態
PROPOSAL_TRANSITIONS: Dict[str, Set[str]] = {
    ProposalStatusEnum.submitted: {
        ProposalStatusEnum.shortlisted,
        ProposalStatusEnum.accepted,
        ProposalStatusEnum.rejected,
        ProposalStatusEnum.withdrawn,
    },
    ProposalStatusEnum.shortlisted: {
        ProposalStatusEnum.submitted,
        ProposalStatusEnum.accepted,
        ProposalStatusEnum.rejected,
        ProposalStatusEnum.withdrawn,
    },
    ProposalStatusEnum.withdrawn: {ProposalStatusEnum.rejected},
    # 重複拒絕視為無作用的更新
    ProposalStatusEnum.rejected: {ProposalStatusEnum.rejected},
    ProposalStatusEnum.accepted: set(),
}

PROJECT_TRANSITIONS: Dict[str, Set[str]] = {
    ProjectStatusEnum.open: {ProjectStatusEnum.awarded, ProjectStatusEnum.cancelled},
    ProjectStatusEnum.awarded: {ProjectStatusEnum.in_progress, ProjectStatusEnum.cancelled},
    ProjectStatusEnum.in_progress: {ProjectStatusEnum.completed, ProjectStatusEnum.cancelled},
    ProjectStatusEnum.completed: set(),
    ProjectStatusEnum.cancelled: set(),
}

CONTRACT_TRANSITIONS: Dict[str, Set[str]] = {
    ContractStatusEnum.active: {ContractStatusEnum.completed, ContractStatusEnum.terminated},
    ContractStatusEnum.completed: set(),
    ContractStatusEnum.terminated: set(),
}

_TABLES = {
    PROPOSAL: PROPOSAL_TRANSITIONS,
    PROJECT: PROJECT_TRANSITIONS,
    CONTRACT: CONTRACT_TRANSITIONS,
}


def _value(state) -> str:
    return getattr(state, "value", state)


def can_transition(entity: str, current: str, target: str) -> bool:
    # 轉換表以 Enum 為鍵，比對時一律換成字串值
    table = {_value(k): {_value(s) for s in v} for k, v in _TABLES[entity].items()}
    return _value(target) in table.get(_value(current), set())


def ensure_transition(entity: str, current: str, target: str) -> None:
    """
    不合法的狀態轉換拋出 400 (invalid-state)
    """
    if not can_transition(entity, current, target):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Cannot change {entity} status from '{_value(current)}' to '{_value(target)}'",
        )
