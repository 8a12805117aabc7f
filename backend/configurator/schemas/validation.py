"""规格值与校验结果 Schema

规格值是带标签的联合类型 {kind, value}，同一时刻只能是一种类型
"""

from enum import Enum
from typing import Annotated, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field


class SpecificationDataType(str, Enum):
    """模板数据类型"""
    TEXT = "text"
    NUMBER = "number"
    BOOLEAN = "boolean"
    ENUM = "enum"
    SOCKET = "socket"
    MEMORY_TYPE = "memory_type"
    CHIPSET = "chipset"
    POWER_CONNECTOR = "power_connector"
    FREQUENCY = "frequency"
    MEMORY_SIZE = "memory_size"
    POWER_CONSUMPTION = "power_consumption"


class ValueKind(str, Enum):
    """规格值的存储类型"""
    ENUM = "enum"
    NUMBER = "number"
    TEXT = "text"
    BOOLEAN = "boolean"


NUMERIC_DATA_TYPES = frozenset({
    SpecificationDataType.NUMBER,
    SpecificationDataType.FREQUENCY,
    SpecificationDataType.MEMORY_SIZE,
    SpecificationDataType.POWER_CONSUMPTION,
})

ENUM_DATA_TYPES = frozenset({
    SpecificationDataType.ENUM,
    SpecificationDataType.SOCKET,
    SpecificationDataType.MEMORY_TYPE,
    SpecificationDataType.CHIPSET,
    SpecificationDataType.POWER_CONNECTOR,
})

# 封闭枚举：必须声明 enum_source，且 enum_values 必须是来源的子集
CLOSED_ENUM_DATA_TYPES = frozenset({
    SpecificationDataType.SOCKET,
    SpecificationDataType.MEMORY_TYPE,
    SpecificationDataType.CHIPSET,
})


def value_kind_for(data_type: Union[SpecificationDataType, str]) -> ValueKind:
    """数据类型对应的值类型"""
    data_type = SpecificationDataType(data_type)
    if data_type in NUMERIC_DATA_TYPES:
        return ValueKind.NUMBER
    if data_type in ENUM_DATA_TYPES:
        return ValueKind.ENUM
    if data_type == SpecificationDataType.BOOLEAN:
        return ValueKind.BOOLEAN
    return ValueKind.TEXT


def format_number(value: float) -> str:
    """数字的规范字符串：整数不带小数点"""
    if float(value).is_integer():
        return str(int(value))
    return str(value)


# ==================== 带标签的规格值 ====================

class EnumValue(BaseModel):
    kind: Literal["enum"] = "enum"
    value: str

    def canonical(self) -> str:
        return self.value

    def display(self) -> str:
        return self.value


class NumberValue(BaseModel):
    kind: Literal["number"] = "number"
    value: float
    unit: Optional[str] = None

    def canonical(self) -> str:
        return format_number(self.value)

    def display(self) -> str:
        if self.unit:
            return f"{format_number(self.value)} {self.unit}"
        return format_number(self.value)


class TextValue(BaseModel):
    kind: Literal["text"] = "text"
    value: str

    def canonical(self) -> str:
        return self.value

    def display(self) -> str:
        return self.value


class BooleanValue(BaseModel):
    kind: Literal["boolean"] = "boolean"
    value: bool

    def canonical(self) -> str:
        return "true" if self.value else "false"

    def display(self) -> str:
        return self.canonical()


TypedValue = Annotated[
    Union[EnumValue, NumberValue, TextValue, BooleanValue],
    Field(discriminator="kind"),
]


# ==================== 校验结果 ====================

class ErrorCode(str, Enum):
    """校验与兼容性问题编码"""
    TYPE_ERROR = "type_error"
    RANGE_ERROR = "range_error"
    ENUM_VIOLATION = "enum_violation"
    MISSING_REQUIRED = "missing_required"
    MISSING_SPECIFICATION = "missing_specification"
    RULE_VIOLATION = "rule_violation"
    INVALID_DEFINITION = "invalid_definition"
    UNKNOWN_SPECIFICATION = "unknown_specification"


class ValidationMessage(BaseModel):
    """单条错误或警告"""
    code: ErrorCode
    message: str
    field: Optional[str] = None


class ValidationResult(BaseModel):
    """单个字段（或模板定义）的校验结果"""
    is_valid: bool = True
    errors: List[ValidationMessage] = []
    warnings: List[ValidationMessage] = []
    normalized_value: Optional[TypedValue] = None
    suggestions: List[str] = []

    def add_error(self, code: ErrorCode, message: str, field: Optional[str] = None) -> None:
        self.is_valid = False
        self.errors.append(ValidationMessage(code=code, message=message, field=field))

    def add_warning(self, code: ErrorCode, message: str, field: Optional[str] = None) -> None:
        self.warnings.append(ValidationMessage(code=code, message=message, field=field))

    @property
    def error_messages(self) -> List[str]:
        return [e.message for e in self.errors]


class SpecificationSetResult(BaseModel):
    """一组规格（一个商品）的校验结果"""
    is_valid: bool = True
    errors: List[ValidationMessage] = []
    warnings: List[ValidationMessage] = []
    details: Dict[str, ValidationResult] = Field(default_factory=dict, description="按模板名的逐字段结果")
    normalized: Dict[str, TypedValue] = Field(default_factory=dict, description="按模板名的规范化值")
