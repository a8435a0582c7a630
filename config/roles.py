"""角色权限配置

每个内置角色对应一组固定的功能权限（capability），
判断权限只做集合查找，不依赖继承或分支逻辑。

自定义角色直接保存权限ID列表，启用时替代内置角色的权限。
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, List, Optional, Union


class UserRole(Enum):
    """内置用户角色"""
    ADMIN = "admin"
    SELLER = "vendedor"
    CASHIER = "cajero"
    CUSTOMER = "cliente"


# 功能模块开关
CAPABILITIES = (
    "dashboard", "inventory", "products", "sales", "pos", "reports",
    "clients", "settings", "documents", "taxes", "dian", "integrations",
    "quotes", "user_management", "role_management",
)

ROLE_CAPABILITIES: Dict[UserRole, FrozenSet[str]] = {
    UserRole.ADMIN: frozenset(CAPABILITIES),
    UserRole.SELLER: frozenset({"dashboard", "products", "sales", "quotes"}),
    UserRole.CASHIER: frozenset({"dashboard", "products", "pos"}),
    UserRole.CUSTOMER: frozenset(),
}


@dataclass(frozen=True)
class Permission:
    """细粒度权限定义"""
    id: str
    name: str
    category: str  # dashboard / inventory / sales / reports / settings / documents


AVAILABLE_PERMISSIONS: List[Permission] = [
    Permission("dashboard_view", "View dashboard", "dashboard"),
    Permission("dashboard_edit", "Customize dashboard widgets", "dashboard"),
    Permission("inventory_view", "View products and stock", "inventory"),
    Permission("inventory_edit", "Edit products and stock", "inventory"),
    Permission("inventory_transfer", "Transfer stock between warehouses", "inventory"),
    Permission("inventory_count", "Run physical inventory counts", "inventory"),
    Permission("sales_online", "Manage the online store", "sales"),
    Permission("sales_pos", "Use the point of sale", "sales"),
    Permission("sales_quotes", "Create and send quotes", "sales"),
    Permission("reports_view", "View sales reports", "reports"),
    Permission("reports_export", "Export reports", "reports"),
    Permission("documents_view", "View document templates", "documents"),
    Permission("documents_edit", "Edit document templates", "documents"),
    Permission("settings_general", "Edit store settings", "settings"),
    Permission("settings_users", "Manage users and roles", "settings"),
    Permission("settings_dian", "Configure electronic invoicing", "settings"),
]

PERMISSION_IDS: FrozenSet[str] = frozenset(p.id for p in AVAILABLE_PERMISSIONS)


@dataclass
class CustomRole:
    """租户自定义角色"""
    id: str
    name: str
    permissions: List[str] = field(default_factory=list)
    active: bool = True

    def unknown_permissions(self) -> List[str]:
        """返回不在权限目录中的权限ID"""
        return [p for p in self.permissions if p not in PERMISSION_IDS]


def _parse_role(role: Union[UserRole, str]) -> Optional[UserRole]:
    try:
        return UserRole(role)
    except ValueError:
        return None


def capabilities_for(role: Union[UserRole, str]) -> FrozenSet[str]:
    """获取角色的功能权限集合，未知角色返回空集合"""
    parsed = _parse_role(role)
    if parsed is None:
        return frozenset()
    return ROLE_CAPABILITIES[parsed]


def has_capability(role: Union[UserRole, str], capability: str) -> bool:
    return capability in capabilities_for(role)


def permissions_by_category(category: str) -> List[Permission]:
    return [p for p in AVAILABLE_PERMISSIONS if p.category == category]


def effective_permissions(role: Union[UserRole, str],
                          custom_role: Optional[CustomRole] = None
                          ) -> FrozenSet[str]:
    """计算用户实际拥有的权限。

    启用的自定义角色优先，返回其权限ID集合；
    否则返回内置角色的功能权限集合。
    """
    if custom_role is not None and custom_role.active:
        return frozenset(custom_role.permissions)
    return capabilities_for(role)
