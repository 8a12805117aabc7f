"""兼容性检查服务：从目录加载快照后交给求值器"""

import logging
from typing import List, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from configurator.core.exceptions import CategoryNotFoundError, ProductNotFoundError
from configurator.engine.evaluator import evaluate_compatibility, find_compatible_products
from configurator.schemas.compatibility import CompatibilityEvaluationResult, CompatibleCandidate
from configurator.services.catalog_store import CatalogStore

logger = logging.getLogger(__name__)


async def check_selection(db: AsyncSession, product_ids: Sequence[int]) -> CompatibilityEvaluationResult:
    store = CatalogStore(db)
    selection = await store.load_selection(product_ids)
    found = {c.product_id for c in selection}
    for product_id in product_ids:
        if product_id not in found:
            raise ProductNotFoundError(product_id)

    rules = await store.list_rules(active_only=True)
    result = evaluate_compatibility(selection, rules)
    logger.info(
        f"🔍 兼容性检查 {list(product_ids)}: {result.status.value}，"
        f"规则 {result.rules_passed}/{result.rules_checked} 通过"
    )
    return result


async def compatible_products(
    db: AsyncSession, product_ids: Sequence[int], target_category_id: int, in_stock_only: bool = False
) -> tuple:
    """返回 (候选总数, 兼容的候选列表)"""
    store = CatalogStore(db)
    if await store.get_category(target_category_id) is None:
        raise CategoryNotFoundError(target_category_id)

    selection = await store.load_selection(product_ids)
    candidates = [
        store.to_component(p)
        for p in await store.list_products_for_category(target_category_id, in_stock_only=in_stock_only)
    ]
    rules = await store.list_rules(active_only=True)
    compatible: List[CompatibleCandidate] = find_compatible_products(
        selection, candidates, target_category_id, rules
    )
    return len(candidates), compatible
