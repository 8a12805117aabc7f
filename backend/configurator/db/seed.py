"""
演示数据：PC 组件分类、规格模板、兼容规则和若干商品

商品通过 ProductSpecificationService 写入，与接口走同一套校验
"""

import logging
from decimal import Decimal
from typing import Dict

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from configurator.engine.enums import CHIPSET_TYPE, FORM_FACTOR, MEMORY_TYPE, SOCKET_TYPE, EnumRegistry
from configurator.models import Category, CompatibilityRule, SpecificationTemplate
from configurator.services.catalog_store import CatalogStore
from configurator.services.product_specification_service import ProductSpecificationService

logger = logging.getLogger(__name__)


CATEGORIES = [
    # slug, 名称, 组件类型, 显示顺序
    ("cpu", "处理器", "cpu", 1),
    ("motherboard", "主板", "motherboard", 2),
    ("memory", "内存", "memory", 3),
    ("gpu", "显卡", "gpu", 4),
    ("psu", "电源", "psu", 5),
    ("case", "机箱", "case", 6),
    ("cooling", "散热器", "cooling", 7),
    ("storage", "存储", "storage", 8),
]

_BRAND = dict(name="brand", display_name="品牌", data_type="text", is_required=True,
              validation_rules={"min_length": 1, "max_length": 50})

TEMPLATES = {
    "cpu": [
        _BRAND,
        dict(name="socket", display_name="插槽", data_type="socket", enum_source=SOCKET_TYPE,
             is_required=True, is_compatibility_key=True, is_filterable=True, filter_type="checkbox"),
        dict(name="cores", display_name="核心数", data_type="number",
             validation_rules={"min_value": 1, "max_value": 128}),
        dict(name="base_frequency", display_name="基础频率", data_type="frequency",
             validation_rules={"min_value": 500, "max_value": 6000}),
        dict(name="tdp", display_name="功耗", data_type="power_consumption",
             validation_rules={"min_value": 1, "max_value": 500}),
    ],
    "motherboard": [
        _BRAND,
        dict(name="socket", display_name="插槽", data_type="socket", enum_source=SOCKET_TYPE,
             is_required=True, is_compatibility_key=True, is_filterable=True, filter_type="checkbox"),
        dict(name="chipset", display_name="芯片组", data_type="chipset", enum_source=CHIPSET_TYPE,
             is_required=True, is_compatibility_key=True, is_filterable=True, filter_type="checkbox"),
        dict(name="memory_type", display_name="内存类型", data_type="memory_type", enum_source=MEMORY_TYPE,
             is_required=True, is_compatibility_key=True, is_filterable=True, filter_type="checkbox"),
        dict(name="form_factor", display_name="板型", data_type="enum", enum_source=FORM_FACTOR,
             is_filterable=True, filter_type="checkbox"),
    ],
    "memory": [
        _BRAND,
        dict(name="memory_type", display_name="内存类型", data_type="memory_type", enum_source=MEMORY_TYPE,
             is_required=True, is_compatibility_key=True, is_filterable=True, filter_type="checkbox"),
        dict(name="capacity", display_name="容量", data_type="memory_size",
             validation_rules={"min_value": 1, "max_value": 256}),
        dict(name="frequency", display_name="频率", data_type="frequency",
             validation_rules={"min_value": 1600, "max_value": 9000}),
    ],
    "gpu": [
        _BRAND,
        dict(name="power_requirement", display_name="推荐电源功率", data_type="power_consumption",
             is_required=True, is_compatibility_key=True, is_filterable=True, filter_type="range",
             validation_rules={"min_value": 100, "max_value": 2000}),
        dict(name="power_connector", display_name="供电接口", data_type="power_connector"),
        dict(name="power_consumption", display_name="整卡功耗", data_type="power_consumption",
             validation_rules={"min_value": 10, "max_value": 1000}),
    ],
    "psu": [
        _BRAND,
        dict(name="wattage", display_name="额定功率", data_type="power_consumption",
             is_required=True, is_compatibility_key=True, is_filterable=True, filter_type="range",
             validation_rules={"min_value": 200, "max_value": 2000}),
        dict(name="modular", display_name="模组化", data_type="boolean"),
    ],
    "case": [
        _BRAND,
        dict(name="form_factor", display_name="最大支持板型", data_type="enum", enum_source=FORM_FACTOR,
             is_required=True, is_compatibility_key=True, is_filterable=True, filter_type="checkbox"),
    ],
}

# 机箱的最大板型 → 能装下的主板板型
CASE_BOARD_FORM_FACTORS = {
    "E-ATX": ["E-ATX", "ATX", "Micro ATX", "Mini ITX"],
    "ATX": ["ATX", "Micro ATX", "Mini ITX"],
    "Micro ATX": ["Micro ATX", "Mini ITX"],
    "Mini ITX": ["Mini ITX"],
}

# 整机功耗的累加项：分类, 模板（None 表示只计固定功耗）, 固定功耗 W（模板缺值时也用它）
POWER_TERMS = [
    ("gpu", "power_consumption", 150),
    ("motherboard", None, 30),
    ("memory", None, 5),
    ("storage", None, 10),
    ("cooling", None, 25),
]

# 主分类, 主模板, 次分类, 次模板, 规则
RULES = [
    ("cpu", "socket", "motherboard", "socket",
     dict(name="处理器与主板插槽一致", rule_type="exact_match")),
    ("motherboard", "memory_type", "memory", "memory_type",
     dict(name="主板与内存类型一致", rule_type="exact_match")),
    ("gpu", "power_requirement", "psu", "wattage",
     dict(name="电源功率满足显卡需求", rule_type="range", lower_factor=1.0)),
    ("case", "form_factor", "motherboard", "form_factor",
     dict(name="机箱支持主板板型", rule_type="value_set", value_sets=CASE_BOARD_FORM_FACTORS, level="warning")),
    ("cpu", "tdp", "psu", "wattage",
     dict(name="电源功率满足整机功耗", rule_type="sum_range", lower_factor=1.0)),
    ("cpu", "tdp", "psu", "wattage",
     dict(name="电源功率预留 20% 余量", rule_type="sum_range", lower_factor=1.2, level="warning")),
]

PRODUCTS = [
    ("cpu", dict(name="AMD Ryzen 5 5600X", slug="ryzen-5-5600x", brand="AMD", price=Decimal("1099")),
     {"brand": "AMD", "socket": "AM4", "cores": 6, "base_frequency": "3.7 GHz", "tdp": "65W"}),
    ("cpu", dict(name="Intel Core i5-13600K", slug="core-i5-13600k", brand="Intel", price=Decimal("2299")),
     {"brand": "Intel", "socket": "LGA 1700", "cores": 14, "base_frequency": "3500 MHz", "tdp": "125 W"}),
    ("motherboard", dict(name="MSI B550 Tomahawk", slug="msi-b550-tomahawk", brand="MSI", price=Decimal("1199")),
     {"brand": "MSI", "socket": "AM4", "chipset": "B550", "memory_type": "DDR4", "form_factor": "ATX"}),
    ("motherboard", dict(name="ASUS Z790-P", slug="asus-z790-p", brand="ASUS", price=Decimal("1599")),
     {"brand": "ASUS", "socket": "LGA1700", "chipset": "Z790", "memory_type": "DDR5", "form_factor": "ATX"}),
    ("memory", dict(name="Kingston Fury 16GB DDR4", slug="fury-16gb-ddr4", brand="Kingston", price=Decimal("299")),
     {"brand": "Kingston", "memory_type": "DDR4", "capacity": "16 GB", "frequency": "3200"}),
    ("memory", dict(name="Corsair Vengeance 32GB DDR5", slug="vengeance-32gb-ddr5", brand="Corsair",
                    price=Decimal("799")),
     {"brand": "Corsair", "memory_type": "DDR5", "capacity": "32 GB", "frequency": "6000 MHz"}),
    ("gpu", dict(name="NVIDIA RTX 4070", slug="rtx-4070", brand="NVIDIA", price=Decimal("4599")),
     {"brand": "NVIDIA", "power_requirement": "650 W", "power_connector": "12VHPWR", "power_consumption": "200 W"}),
    ("psu", dict(name="Seasonic Focus 550W", slug="focus-550", brand="Seasonic", price=Decimal("499")),
     {"brand": "Seasonic", "wattage": "550W", "modular": "true"}),
    ("psu", dict(name="Corsair RM750", slug="rm750", brand="Corsair", price=Decimal("699")),
     {"brand": "Corsair", "wattage": "750W", "modular": "true"}),
    ("case", dict(name="Fractal Pop Mini", slug="pop-mini", brand="Fractal", price=Decimal("499")),
     {"brand": "Fractal", "form_factor": "Micro ATX"}),
    ("case", dict(name="Lian Li Lancool 216", slug="lancool-216", brand="Lian Li", price=Decimal("599")),
     {"brand": "Lian Li", "form_factor": "ATX"}),
]


def _socket_chipsets(registry: EnumRegistry) -> Dict[str, list]:
    """由芯片组→插槽的关联反推 插槽→芯片组"""
    socket_chipsets: Dict[str, list] = {}
    for relation in registry.relations_for("chipset"):
        if relation.context_key != "socket":
            continue
        for chipset, sockets in relation.allowed.items():
            for socket in sockets:
                socket_chipsets.setdefault(socket, []).append(chipset)
    return socket_chipsets


async def seed_demo_data(db: AsyncSession, registry: EnumRegistry) -> bool:
    """写入演示数据，已存在 cpu 分类时跳过；返回是否写入"""
    existing = await db.execute(select(Category).where(Category.slug == "cpu"))
    if existing.scalar_one_or_none():
        logger.info("演示数据已存在，跳过")
        return False

    categories: Dict[str, Category] = {}
    for slug, name, component_type, order in CATEGORIES:
        category = Category(
            name=name, slug=slug, level=1, sort_order=order,
            is_pc_component=True, pc_component_type=component_type, pc_display_order=order,
        )
        db.add(category)
        categories[slug] = category
    await db.flush()

    templates: Dict[tuple, SpecificationTemplate] = {}
    for slug, definitions in TEMPLATES.items():
        for order, definition in enumerate(definitions):
            template = SpecificationTemplate(
                category_id=categories[slug].id, display_order=order, **definition
            )
            db.add(template)
            templates[(slug, definition["name"])] = template
    await db.flush()

    sum_terms = [
        {"category_id": categories[slug].id,
         "template_id": templates[(slug, name)].id if name else None,
         "constant": constant}
        for slug, name, constant in POWER_TERMS
    ]
    for p_slug, p_name, s_slug, s_name, rule in RULES:
        db.add(CompatibilityRule(
            primary_category_id=categories[p_slug].id,
            primary_specification_template_id=templates[(p_slug, p_name)].id,
            secondary_category_id=categories[s_slug].id,
            secondary_specification_template_id=templates[(s_slug, s_name)].id,
            sum_terms=sum_terms if rule["rule_type"] == "sum_range" else None,
            **rule,
        ))
    db.add(CompatibilityRule(
        name="主板插槽与芯片组匹配",
        primary_category_id=categories["motherboard"].id,
        primary_specification_template_id=templates[("motherboard", "socket")].id,
        secondary_category_id=categories["motherboard"].id,
        secondary_specification_template_id=templates[("motherboard", "chipset")].id,
        rule_type="value_set",
        value_sets=_socket_chipsets(registry),
    ))
    await db.commit()

    service = ProductSpecificationService(CatalogStore(db), registry)
    created = 0
    for slug, product_data, specifications in PRODUCTS:
        result = await service.create_product_with_specifications(
            {**product_data, "category_id": categories[slug].id}, specifications
        )
        if result.success:
            created += 1
        else:
            logger.warning(f"演示商品 {product_data['name']} 未创建: {[e.message for e in result.errors]}")

    logger.info(f"🌱 演示数据已写入: {len(categories)} 个分类，{len(templates)} 个模板，{created} 个商品")
    return True
