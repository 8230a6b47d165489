"""空库时灌入默认账户（唯一的默认账户）和常用支出分类"""

import logging

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from finance_tracker.models.account import Account
from finance_tracker.models.category import Category

logger = logging.getLogger(__name__)


# (name, type, icon, color, is_default)
DEFAULT_ACCOUNTS: list[tuple[str, str, str, str, bool]] = [
    ("Cash", "cash", "💵", "#10b981", True),
    ("Bank", "bank", "🏦", "#0066cc", False),
    ("E-Wallet", "ewallet", "📱", "#00aa13", False),
]

# (name, icon, color)
DEFAULT_CATEGORIES: list[tuple[str, str, str]] = [
    ("Food & Drinks", "🍔", "#FF6B6B"),
    ("Transport", "🚗", "#4ECDC4"),
    ("Shopping", "🛍️", "#FFE66D"),
    ("Bills", "💡", "#95E1D3"),
    ("Entertainment", "🎮", "#F38181"),
    ("Health", "💊", "#AA96DA"),
    ("Education", "📚", "#FCBAD3"),
    ("Others", "📦", "#A8D8EA"),
]


async def seed_defaults(db: AsyncSession) -> None:
    account_count = (await db.execute(select(func.count()).select_from(Account))).scalar()
    if account_count == 0:
        for name, acc_type, icon, color, is_default in DEFAULT_ACCOUNTS:
            db.add(Account(
                name=name, type=acc_type, icon=icon, color=color, is_default=is_default,
            ))
        logger.info(f"已灌入 {len(DEFAULT_ACCOUNTS)} 个默认账户")

    category_count = (await db.execute(select(func.count()).select_from(Category))).scalar()
    if category_count == 0:
        for name, icon, color in DEFAULT_CATEGORIES:
            db.add(Category(name=name, icon=icon, color=color))
        logger.info(f"已灌入 {len(DEFAULT_CATEGORIES)} 个默认分类")

    await db.flush()
