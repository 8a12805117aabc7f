"""兼容性检查 Schema"""

from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from configurator.schemas.validation import ErrorCode, TypedValue


class CompatibilityStatus(str, Enum):
    VALID = "valid"
    WARNING = "warning"
    ERROR = "error"


class IssueLevel(str, Enum):
    ERROR = "error"
    WARNING = "warning"


class IssueSeverity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class SelectedComponent(BaseModel):
    """配置中已选择的一个组件（已解析的规格快照）"""
    product_id: int
    name: str
    category_id: int
    specifications: Dict[int, TypedValue] = Field(default_factory=dict, description="按模板ID的规格值")


class CompatibilityIssue(BaseModel):
    type: ErrorCode
    level: IssueLevel
    severity: IssueSeverity
    component1: str
    component2: str
    message: str
    details: str = ""
    rule_id: Optional[int] = None


class CompatibilityEvaluationResult(BaseModel):
    status: CompatibilityStatus = CompatibilityStatus.VALID
    issues: List[CompatibilityIssue] = []
    rules_checked: int = 0
    rules_passed: int = 0


class CompatibleCandidate(BaseModel):
    """候选组件及其加入当前配置后的结论"""
    product_id: int
    name: str
    status: CompatibilityStatus
    issues: List[CompatibilityIssue] = []


# ==================== 接口请求 ====================

class CompatibilityCheckRequest(BaseModel):
    product_ids: List[int] = Field(..., description="已选择的商品ID")


class CompatibleProductsRequest(BaseModel):
    product_ids: List[int] = Field([], description="已选择的商品ID")
    target_category_id: int = Field(..., description="候选商品所在分类")
    in_stock_only: bool = False


class CompatibleProductsResponse(BaseModel):
    target_category_id: int
    total_candidates: int
    compatible: List[CompatibleCandidate]
