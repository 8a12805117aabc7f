"""兼容规则API"""

from typing import Any, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from configurator.core.deps import get_db, get_enum_registry
from configurator.core.exceptions import ConfiguratorError, to_http_exception
from configurator.engine.enums import EnumRegistry
from configurator.models import CompatibilityRule
from configurator.schemas.compatibility_rule import RuleCreate, RuleListResponse, RuleResponse, RuleUpdate
from configurator.services import rule_service

router = APIRouter()


def _build_response(rule: CompatibilityRule) -> RuleResponse:
    """构建响应"""
    return RuleResponse(
        id=rule.id,
        name=rule.name,
        description=rule.description,
        primary_category_id=rule.primary_category_id,
        primary_specification_template_id=rule.primary_specification_template_id,
        secondary_category_id=rule.secondary_category_id,
        secondary_specification_template_id=rule.secondary_specification_template_id,
        rule_type=rule.rule_type,
        lower_factor=rule.lower_factor,
        upper_factor=rule.upper_factor,
        min_value=rule.min_value,
        max_value=rule.max_value,
        value_sets=rule.value_sets,
        sum_terms=rule.sum_terms,
        level=rule.level,
        is_active=rule.is_active,
        primary_category_name=rule.primary_category.name if rule.primary_category else None,
        secondary_category_name=rule.secondary_category.name if rule.secondary_category else None,
        primary_template_name=rule.primary_template.name if rule.primary_template else None,
        secondary_template_name=rule.secondary_template.name if rule.secondary_template else None,
        created_at=rule.created_at)


@router.get("/", response_model=RuleListResponse)
async def list_rules(
    *,
    db: AsyncSession = Depends(get_db),
    category_id: Optional[int] = Query(None, description="涉及该分类的规则"),
    is_active: Optional[bool] = Query(None)) -> Any:
    """获取兼容规则列表"""
    rules = await rule_service.list_rules(db, category_id=category_id, is_active=is_active)
    return RuleListResponse(data=[_build_response(r) for r in rules], total=len(rules))


@router.get("/{rule_id}", response_model=RuleResponse)
async def get_rule(
    *,
    db: AsyncSession = Depends(get_db),
    rule_id: int) -> Any:
    """获取规则详情"""
    try:
        rule = await rule_service.get_rule(db, rule_id)
    except ConfiguratorError as e:
        raise to_http_exception(e)
    return _build_response(rule)


@router.post("/", response_model=RuleResponse)
async def create_rule(
    *,
    db: AsyncSession = Depends(get_db),
    registry: EnumRegistry = Depends(get_enum_registry),
    rule_in: RuleCreate) -> Any:
    """创建兼容规则"""
    try:
        rule, _ = await rule_service.create_rule(db, rule_in, registry)
    except ConfiguratorError as e:
        raise to_http_exception(e)
    return _build_response(rule)


@router.put("/{rule_id}", response_model=RuleResponse)
async def update_rule(
    *,
    db: AsyncSession = Depends(get_db),
    registry: EnumRegistry = Depends(get_enum_registry),
    rule_id: int,
    rule_in: RuleUpdate) -> Any:
    """更新兼容规则"""
    try:
        rule, _ = await rule_service.update_rule(db, rule_id, rule_in, registry)
    except ConfiguratorError as e:
        raise to_http_exception(e)
    return _build_response(rule)


@router.delete("/{rule_id}")
async def delete_rule(
    *,
    db: AsyncSession = Depends(get_db),
    rule_id: int) -> Any:
    """删除兼容规则"""
    try:
        await rule_service.delete_rule(db, rule_id)
    except ConfiguratorError as e:
        raise to_http_exception(e)
    return {"message": "删除成功"}
