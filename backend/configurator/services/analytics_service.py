"""规格完整度统计服务（只读）"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from configurator.core.exceptions import CategoryNotFoundError
from configurator.engine.completeness import (
    completion_stats,
    missing_key_specifications,
    missing_required_specifications,
    rule_coverage_issues,
)
from configurator.schemas.analytics import CategoryAnalyticsReport
from configurator.services.catalog_store import CatalogStore

logger = logging.getLogger(__name__)


async def category_report(db: AsyncSession, category_id: int) -> CategoryAnalyticsReport:
    """分类的规格完整度报告"""
    store = CatalogStore(db)
    category = await store.get_category(category_id)
    if category is None:
        raise CategoryNotFoundError(category_id)

    templates = await store.get_templates_for_category(category_id)
    products = await store.list_products_for_category(category_id)
    rules = await store.list_rules(active_only=True)

    rule_template_ids = set()
    for rule in rules:
        rule_template_ids.add(rule.primary_specification_template_id)
        rule_template_ids.add(rule.secondary_specification_template_id)
    templates_by_id = await store.get_templates_by_ids(sorted(rule_template_ids))

    report = CategoryAnalyticsReport(
        category_id=category.id,
        category_name=category.name,
        template_count=len(templates),
        required_template_count=sum(1 for t in templates if t.is_required),
        stats=completion_stats(products, templates),
        missing_required=missing_required_specifications(products, templates),
        missing_key_specifications=missing_key_specifications(products, templates),
        rule_coverage=rule_coverage_issues(category_id, products, rules, templates_by_id),
    )
    logger.debug(f"完整度统计 {category.name}: {report.stats.completion_rate}%")
    return report
