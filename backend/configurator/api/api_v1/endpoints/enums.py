"""共享枚举API（只读）"""

from typing import Any
from fastapi import APIRouter, Depends, HTTPException

from configurator.core.deps import get_enum_registry
from configurator.engine.enums import EnumRegistry

router = APIRouter()


@router.get("/")
async def list_enums(registry: EnumRegistry = Depends(get_enum_registry)) -> Any:
    """全部枚举来源及其规范值"""
    return {
        name: {
            "values": source.values,
            "display_names": source.display_names,
            "description": source.description,
        }
        for name, source in registry.sources.items()
    }


@router.get("/{source_name}")
async def get_enum(source_name: str, registry: EnumRegistry = Depends(get_enum_registry)) -> Any:
    """单个枚举来源"""
    if not registry.has_source(source_name):
        raise HTTPException(status_code=404, detail=f"枚举来源不存在: {source_name}")
    source = registry.sources[source_name]
    return {
        "name": source.name,
        "values": source.values,
        "display_names": source.display_names,
        "aliases": registry.aliases.get(source_name, {}),
        "description": source.description,
    }
