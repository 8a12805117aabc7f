"""
共享枚举注册表

插槽、内存类型、芯片组等共享枚举在进程启动时加载一次，之后不可修改，
通过参数显式传给校验器（测试中可以传入替代的枚举集）。

注册表包含三部分数据：
- sources: 枚举来源及其规范值
- aliases: 各来源的别名表（如 "LGA 1700" → LGA1700）
- relations: 值之间的关联（如 芯片组 → 支持的插槽），用于跨字段校验
"""

import json
import logging
import re
from functools import lru_cache
from pathlib import Path
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, Field

from configurator.schemas.validation import SpecificationDataType

logger = logging.getLogger(__name__)


SOCKET_TYPE = "SOCKET_TYPE"
MEMORY_TYPE = "MEMORY_TYPE"
CHIPSET_TYPE = "CHIPSET_TYPE"
FORM_FACTOR = "FORM_FACTOR"
POWER_CONNECTOR_TYPE = "POWER_CONNECTOR_TYPE"

# 数据类型未声明 enum_source 时使用的默认来源
DEFAULT_ENUM_SOURCES: Dict[str, str] = {
    SpecificationDataType.SOCKET.value: SOCKET_TYPE,
    SpecificationDataType.MEMORY_TYPE.value: MEMORY_TYPE,
    SpecificationDataType.CHIPSET.value: CHIPSET_TYPE,
    SpecificationDataType.POWER_CONNECTOR.value: POWER_CONNECTOR_TYPE,
}

# 封闭枚举必须声明的来源
REQUIRED_ENUM_SOURCES: Dict[str, str] = {
    SpecificationDataType.SOCKET.value: SOCKET_TYPE,
    SpecificationDataType.MEMORY_TYPE.value: MEMORY_TYPE,
    SpecificationDataType.CHIPSET.value: CHIPSET_TYPE,
}

_SEPARATORS = re.compile(r"[\s_\-]+")


def _compact(value: str) -> str:
    """去掉空格/下划线/连字符并转大写，用于宽松匹配"""
    return _SEPARATORS.sub("", value).upper()


class EnumSource(BaseModel):
    """一个枚举来源"""
    name: str
    values: List[str]
    display_names: Dict[str, str] = {}
    description: Optional[str] = None

    class Config:
        frozen = True


class ValueRelation(BaseModel):
    """值关联

    校验 data_type 类型的字段时，若上下文中存在 context_key，
    则上下文值必须属于 allowed[当前值]。当前值不在表中时不做判断
    """
    data_type: SpecificationDataType
    context_key: str
    allowed: Dict[str, List[str]]
    level: str = Field("error", description="error/warning")
    message: str = Field("{value} 与 {context_value} 不兼容，支持: {allowed}")

    class Config:
        frozen = True


class EnumRegistry(BaseModel):
    """不可变的枚举注册表"""
    sources: Dict[str, EnumSource]
    aliases: Dict[str, Dict[str, str]] = {}
    relations: List[ValueRelation] = []

    class Config:
        frozen = True

    def has_source(self, name: Optional[str]) -> bool:
        return bool(name) and name in self.sources

    def source_names(self) -> List[str]:
        return list(self.sources.keys())

    def values(self, name: str) -> List[str]:
        """来源的规范值，未知来源返回空列表"""
        source = self.sources.get(name)
        return list(source.values) if source else []

    def canonicalize(self, source_name: str, raw: str) -> Optional[str]:
        """
        把输入映射到来源的规范值

        依次尝试：精确匹配、忽略大小写、别名表、忽略分隔符。找不到返回 None
        """
        source = self.sources.get(source_name)
        if source is None:
            return None

        text = str(raw).strip()
        if text in source.values:
            return text

        upper = text.upper()
        for value in source.values:
            if value.upper() == upper:
                return value

        alias_table = self.aliases.get(source_name, {})
        for alias, canonical in alias_table.items():
            if alias.upper() == upper:
                return canonical

        compact = _compact(text)
        for value in source.values:
            if _compact(value) == compact:
                return value
        return None

    def relations_for(self, data_type: Union[SpecificationDataType, str]) -> List[ValueRelation]:
        data_type = SpecificationDataType(data_type)
        return [r for r in self.relations if r.data_type == data_type]


# ==================== 内置注册表 ====================

_CHIPSET_SOCKETS = {
    # AMD
    "B450": ["AM4"],
    "B550": ["AM4"],
    "X570": ["AM4"],
    "X670E": ["AM5"],
    "B650": ["AM5"],
    "B650E": ["AM5"],
    "X670": ["AM5"],
    # Intel
    "B560": ["LGA1200"],
    "Z490": ["LGA1200"],
    "Z590": ["LGA1200"],
    "B660": ["LGA1700"],
    "B760": ["LGA1700"],
    "H610": ["LGA1700"],
    "H670": ["LGA1700"],
    "H770": ["LGA1700"],
    "Z690": ["LGA1700"],
    "Z790": ["LGA1700"],
}

_SOCKET_MEMORY = {
    "AM4": ["DDR4"],
    "AM5": ["DDR5"],
    "LGA1700": ["DDR4", "DDR5"],
    "LGA1200": ["DDR4"],
    "LGA1151": ["DDR4"],
    "LGA2066": ["DDR4"],
}


def _builtin_data() -> dict:
    return {
        "sources": {
            SOCKET_TYPE: {
                "name": SOCKET_TYPE,
                "values": ["AM4", "AM5", "LGA1700", "LGA1200", "LGA1151", "LGA2066"],
                "display_names": {
                    "AM4": "AMD AM4",
                    "AM5": "AMD AM5",
                    "LGA1700": "Intel LGA 1700",
                    "LGA1200": "Intel LGA 1200",
                    "LGA1151": "Intel LGA 1151",
                    "LGA2066": "Intel LGA 2066",
                },
                "description": "处理器与主板插槽",
            },
            MEMORY_TYPE: {
                "name": MEMORY_TYPE,
                "values": ["DDR4", "DDR5"],
                "description": "内存类型",
            },
            CHIPSET_TYPE: {
                "name": CHIPSET_TYPE,
                "values": list(_CHIPSET_SOCKETS.keys()),
                "description": "主板芯片组",
            },
            FORM_FACTOR: {
                "name": FORM_FACTOR,
                "values": ["ATX", "Micro ATX", "Mini ITX", "E-ATX"],
                "description": "板型/机箱规格",
            },
            POWER_CONNECTOR_TYPE: {
                "name": POWER_CONNECTOR_TYPE,
                "values": ["6-pin", "8-pin", "24-pin", "12VHPWR", "4+4-pin"],
                "description": "电源接口",
            },
        },
        "aliases": {
            SOCKET_TYPE: {
                "LGA 1700": "LGA1700",
                "LGA-1700": "LGA1700",
                "INTEL LGA1700": "LGA1700",
                "SOCKET 1700": "LGA1700",
                "SOCKET AM4": "AM4",
                "AMD AM4": "AM4",
                "SOCKET AM5": "AM5",
                "AMD AM5": "AM5",
                "LGA 1200": "LGA1200",
                "LGA-1200": "LGA1200",
                "LGA 1151": "LGA1151",
                "LGA-1151": "LGA1151",
            },
            FORM_FACTOR: {
                "MATX": "Micro ATX",
                "MICRO-ATX": "Micro ATX",
                "ITX": "Mini ITX",
                "MINI-ITX": "Mini ITX",
                "EATX": "E-ATX",
            },
        },
        "relations": [
            {
                "data_type": SpecificationDataType.CHIPSET.value,
                "context_key": "socket",
                "allowed": _CHIPSET_SOCKETS,
                "level": "error",
                "message": "芯片组 {value} 不支持插槽 {context_value}，支持的插槽: {allowed}",
            },
            {
                "data_type": SpecificationDataType.SOCKET.value,
                "context_key": "memory_type",
                "allowed": _SOCKET_MEMORY,
                "level": "warning",
                "message": "插槽 {value} 不支持内存 {context_value}，支持的内存类型: {allowed}",
            },
        ],
    }


@lru_cache(maxsize=1)
def default_registry() -> EnumRegistry:
    """内置注册表（进程内只构建一次）"""
    return EnumRegistry.model_validate(_builtin_data())


def load_enum_registry(path: Optional[str] = None) -> EnumRegistry:
    """
    加载枚举注册表

    Args:
        path: JSON 文件路径，格式与内置数据相同（sources/aliases/relations）。
              为空时返回内置注册表
    """
    if not path:
        return default_registry()

    file_path = Path(path)
    if not file_path.exists():
        raise FileNotFoundError(f"枚举注册表文件不存在: {path}")

    with open(file_path, "r", encoding="utf-8") as f:
        data = json.load(f)

    registry = EnumRegistry.model_validate(data)
    logger.info(f"📚 已加载枚举注册表: {path}（{len(registry.sources)} 个来源）")
    return registry
