"""规格模板API"""

from typing import Any, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from configurator.core.deps import get_db, get_enum_registry
from configurator.core.exceptions import ConfiguratorError, to_http_exception
from configurator.engine.enums import EnumRegistry
from configurator.engine.template_validator import (
    autocomplete_values, recommended_settings, validate_template_definition,
)
from configurator.models import SpecificationTemplate
from configurator.schemas.specification_template import (
    AutocompleteResponse, TemplateCreate, TemplateDefinitionCheck, TemplateListResponse,
    TemplateResponse, TemplateUpdate, TemplateValidationResponse,
)
from configurator.schemas.validation import SpecificationDataType
from configurator.services import template_service

router = APIRouter()


def _build_response(template: SpecificationTemplate) -> TemplateResponse:
    """构建响应"""
    return TemplateResponse(
        id=template.id,
        category_id=template.category_id,
        category_name=template.category.name if template.category else None,
        name=template.name,
        display_name=template.display_name,
        description=template.description,
        data_type=template.data_type,
        is_required=template.is_required,
        is_compatibility_key=template.is_compatibility_key,
        is_filterable=template.is_filterable,
        filter_type=template.filter_type,
        enum_source=template.enum_source,
        enum_values=template.enum_values,
        validation_rules=template.validation_rules,
        display_order=template.display_order,
        created_at=template.created_at)


@router.get("/", response_model=TemplateListResponse)
async def list_templates(
    *,
    db: AsyncSession = Depends(get_db),
    category_id: Optional[int] = Query(None, description="分类ID")) -> Any:
    """获取模板列表"""
    templates = await template_service.list_templates(db, category_id)
    return TemplateListResponse(data=[_build_response(t) for t in templates], total=len(templates))


@router.post("/validate", response_model=TemplateValidationResponse)
async def validate_template(
    *,
    template_in: TemplateDefinitionCheck,
    registry: EnumRegistry = Depends(get_enum_registry)) -> Any:
    """只校验模板定义，不保存"""
    result = validate_template_definition(template_in, registry)
    return TemplateValidationResponse(is_valid=result.is_valid, result=result)


@router.get("/recommended/{data_type}")
async def get_recommended_settings(data_type: SpecificationDataType) -> Any:
    """数据类型的推荐设置"""
    return recommended_settings(data_type)


@router.get("/{template_id}", response_model=TemplateResponse)
async def get_template(
    *,
    db: AsyncSession = Depends(get_db),
    template_id: int) -> Any:
    """获取模板详情"""
    try:
        template = await template_service.get_template(db, template_id)
    except ConfiguratorError as e:
        raise to_http_exception(e)
    return _build_response(template)


@router.get("/{template_id}/autocomplete", response_model=AutocompleteResponse)
async def get_autocomplete_values(
    *,
    db: AsyncSession = Depends(get_db),
    registry: EnumRegistry = Depends(get_enum_registry),
    template_id: int) -> Any:
    """输入提示值"""
    try:
        template = await template_service.get_template(db, template_id)
    except ConfiguratorError as e:
        raise to_http_exception(e)
    return AutocompleteResponse(template_id=template_id, values=autocomplete_values(template, registry))


@router.post("/", response_model=TemplateValidationResponse)
async def create_template(
    *,
    db: AsyncSession = Depends(get_db),
    registry: EnumRegistry = Depends(get_enum_registry),
    template_in: TemplateCreate) -> Any:
    """创建模板"""
    try:
        template, check = await template_service.create_template(db, template_in, registry)
    except ConfiguratorError as e:
        raise to_http_exception(e)
    return {"is_valid": True, "result": check, "template": _build_response(template)}


@router.put("/{template_id}", response_model=TemplateValidationResponse)
async def update_template(
    *,
    db: AsyncSession = Depends(get_db),
    registry: EnumRegistry = Depends(get_enum_registry),
    template_id: int,
    template_in: TemplateUpdate) -> Any:
    """更新模板"""
    try:
        template, check = await template_service.update_template(db, template_id, template_in, registry)
    except ConfiguratorError as e:
        raise to_http_exception(e)
    return {"is_valid": True, "result": check, "template": _build_response(template)}


@router.delete("/{template_id}")
async def delete_template(
    *,
    db: AsyncSession = Depends(get_db),
    template_id: int) -> Any:
    """删除模板"""
    try:
        await template_service.delete_template(db, template_id)
    except ConfiguratorError as e:
        raise to_http_exception(e)
    return {"message": "删除成功"}
