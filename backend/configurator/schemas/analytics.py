"""规格完整度统计 Schema"""

from typing import List

from pydantic import BaseModel


class ProductMissingSpecs(BaseModel):
    product_id: int
    product_name: str
    missing: List[str] = []


class CompletionStats(BaseModel):
    total: int = 0
    complete: int = 0
    incomplete: int = 0
    completion_rate: float = 0.0


class RuleCoverageIssue(BaseModel):
    """规则引用的模板在部分商品上没有值"""
    rule_id: int
    rule_name: str
    template_id: int
    template_name: str
    product_ids: List[int] = []


class CategoryAnalyticsReport(BaseModel):
    category_id: int
    category_name: str
    template_count: int
    required_template_count: int
    stats: CompletionStats
    missing_required: List[ProductMissingSpecs] = []
    missing_key_specifications: List[ProductMissingSpecs] = []
    rule_coverage: List[RuleCoverageIssue] = []
