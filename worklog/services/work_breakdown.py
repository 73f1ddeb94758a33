"""
Work-breakdown trees: flat rows in, nested dicts with rolled-up progress out.

A node's progress is its own status value, or, when it has children, the
larger of that value and the plain mean of the children's progress.
"""
import logging
from typing import Dict, List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, delete
from worklog.config import settings
from worklog.models.project_report import ProjectWeeklyReportItem
from worklog.models.work_breakdown import WorkBreakdownItem
from worklog.services.cache import TTLCache

logger = logging.getLogger(__name__)

MAX_LEVEL = 4
STATUS_PROGRESS = {
    "未开始": 0,
    "已暂停": 25,
    "进行中": 50,
    "已完成": 100,
}

tree_cache = TTLCache(ttl=settings.WORK_BREAKDOWN_CACHE_SECONDS)

NODE_FIELDS = (
    "id", "name", "description", "level", "position", "is_expanded", "status",
    "tags", "members", "progress_notes", "planned_start_time", "planned_end_time",
    "actual_start_time", "actual_end_time", "is_milestone",
)


class WorkBreakdownError(ValueError):
    pass


def status_progress(status: Optional[str]) -> int:
    return STATUS_PROGRESS.get(status or "", 0)


def calculate_progress(node: dict) -> float:
    own = status_progress(node.get("status"))
    children = node.get("children") or []
    if not children:
        return own
    mean = sum(calculate_progress(child) for child in children) / len(children)
    return max(own, mean)


def build_tree(items: List[WorkBreakdownItem]) -> List[dict]:
    nodes: Dict[int, dict] = {}
    for item in items:
        node = {name: getattr(item, name) for name in NODE_FIELDS}
        node["children"] = []
        nodes[item.id] = node

    roots = []
    for item in items:
        node = nodes[item.id]
        if item.parent_id and item.parent_id in nodes:
            nodes[item.parent_id]["children"].append(node)
        else:
            roots.append(node)

    def finish(siblings: List[dict]) -> None:
        siblings.sort(key=lambda n: n["position"])
        for node in siblings:
            finish(node["children"])
            node["progress"] = calculate_progress(node)

    finish(roots)
    return roots


async def load_items(db: AsyncSession, project_id: int, user_id: int) -> List[WorkBreakdownItem]:
    result = await db.execute(
        select(WorkBreakdownItem)
        .where(WorkBreakdownItem.project_id == project_id)
        .where(WorkBreakdownItem.user_id == user_id)
        .order_by(WorkBreakdownItem.level, WorkBreakdownItem.position)
    )
    return list(result.scalars().all())


async def get_tree(db: AsyncSession, project_id: int, user_id: int) -> List[dict]:
    key = (project_id, user_id)
    cached = tree_cache.get(key)
    if cached is not None:
        return cached
    tree = build_tree(await load_items(db, project_id, user_id))
    tree_cache.set(key, tree)
    return tree


async def get_item(db: AsyncSession, item_id: int, user_id: int) -> Optional[WorkBreakdownItem]:
    result = await db.execute(
        select(WorkBreakdownItem)
        .where(WorkBreakdownItem.id == item_id)
        .where(WorkBreakdownItem.user_id == user_id)
    )
    return result.scalar_one_or_none()


async def _next_position(db: AsyncSession, project_id: int, parent_id: Optional[int]) -> int:
    items = await db.execute(
        select(WorkBreakdownItem.position)
        .where(WorkBreakdownItem.project_id == project_id)
        .where(WorkBreakdownItem.parent_id.is_(None) if parent_id is None else WorkBreakdownItem.parent_id == parent_id)
    )
    positions = list(items.scalars().all())
    return max(positions) + 1 if positions else 0


async def add_item(db: AsyncSession, project_id: int, user_id: int, parent_id: Optional[int], fields: dict) -> WorkBreakdownItem:
    level = 0
    if parent_id is not None:
        parent = await get_item(db, parent_id, user_id)
        if parent is None or parent.project_id != project_id:
            raise WorkBreakdownError("上级工作项不存在")
        level = parent.level + 1
        if level > MAX_LEVEL:
            raise WorkBreakdownError("工作分解最多支持5级")

    position = fields.pop("position", None)
    if position is None:
        position = await _next_position(db, project_id, parent_id)

    item = WorkBreakdownItem(
        project_id=project_id,
        user_id=user_id,
        parent_id=parent_id,
        level=level,
        position=position,
        **fields,
    )
    db.add(item)
    await db.commit()
    await db.refresh(item)
    tree_cache.invalidate((project_id, user_id))
    return item


async def update_item(db: AsyncSession, item: WorkBreakdownItem, fields: dict) -> WorkBreakdownItem:
    for name, value in fields.items():
        setattr(item, name, value)
    db.add(item)
    await db.commit()
    await db.refresh(item)
    tree_cache.invalidate((item.project_id, item.user_id))
    return item


def _subtree_ids(items: List[WorkBreakdownItem], root_id: int) -> List[int]:
    children: Dict[Optional[int], List[WorkBreakdownItem]] = {}
    for item in items:
        children.setdefault(item.parent_id, []).append(item)
    found, stack = [], [root_id]
    while stack:
        current = stack.pop()
        found.append(current)
        stack.extend(child.id for child in children.get(current, []))
    return found


async def move_item(db: AsyncSession, item: WorkBreakdownItem, new_parent_id: Optional[int], position: Optional[int]) -> WorkBreakdownItem:
    items = await load_items(db, item.project_id, item.user_id)
    by_id = {i.id: i for i in items}
    subtree = _subtree_ids(items, item.id)

    new_level = 0
    if new_parent_id is not None:
        parent = by_id.get(new_parent_id)
        if parent is None:
            raise WorkBreakdownError("上级工作项不存在")
        if new_parent_id in subtree:
            raise WorkBreakdownError("不能移动到自身或其下级工作项")
        new_level = parent.level + 1

    shift = new_level - item.level
    deepest = max(by_id[i].level for i in subtree) + shift
    if deepest > MAX_LEVEL:
        raise WorkBreakdownError("工作分解最多支持5级")

    for item_id in subtree:
        by_id[item_id].level += shift
    item.parent_id = new_parent_id
    item.position = position if position is not None else await _next_position(db, item.project_id, new_parent_id)

    await db.commit()
    await db.refresh(item)
    tree_cache.invalidate((item.project_id, item.user_id))
    return item


async def delete_item(db: AsyncSession, item: WorkBreakdownItem) -> int:
    """Delete the item and all its descendants. Returns how many rows went."""
    key, root_id = (item.project_id, item.user_id), item.id
    items = await load_items(db, *key)
    doomed = _subtree_ids(items, root_id)

    await db.execute(
        update(ProjectWeeklyReportItem)
        .where(ProjectWeeklyReportItem.work_item_id.in_(doomed))
        .values(work_item_id=None)
    )
    # children before parents
    levels = {i.id: i.level for i in items}
    for item_id in sorted(doomed, key=lambda i: levels[i], reverse=True):
        await db.execute(delete(WorkBreakdownItem).where(WorkBreakdownItem.id == item_id))
    await db.commit()
    tree_cache.invalidate(key)
    logger.info("deleted %d work breakdown items under %s", len(doomed), root_id)
    return len(doomed)
