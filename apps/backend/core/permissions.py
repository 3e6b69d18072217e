from rest_framework.permissions import SAFE_METHODS, BasePermission


ROLE_GRC_ADMIN = "grc_admin"
ROLE_COMPLIANCE_MANAGER = "compliance_manager"
ROLE_RISK_MANAGER = "risk_manager"
ROLE_ASSET_MANAGER = "asset_manager"

ROLE_NAMES = [
    ROLE_GRC_ADMIN,
    ROLE_COMPLIANCE_MANAGER,
    ROLE_RISK_MANAGER,
    ROLE_ASSET_MANAGER,
]


def has_any_role(user, *role_names: str) -> bool:
    if not user or not user.is_authenticated:
        return False
    if user.is_superuser:
        return True
    return user.groups.filter(name__in=role_names).exists()


def can_manage_organization(user) -> bool:
    return has_any_role(user, ROLE_GRC_ADMIN)


def can_manage_context(user) -> bool:
    return has_any_role(user, ROLE_GRC_ADMIN, ROLE_COMPLIANCE_MANAGER)


def can_manage_risks(user) -> bool:
    return has_any_role(user, ROLE_GRC_ADMIN, ROLE_RISK_MANAGER)


def can_manage_assets(user) -> bool:
    return has_any_role(user, ROLE_GRC_ADMIN, ROLE_ASSET_MANAGER)


class _RoleOrReadOnly(BasePermission):
    roles: tuple[str, ...] = ()

    def has_permission(self, request, view):
        if request.method in SAFE_METHODS:
            return bool(request.user and request.user.is_authenticated)
        return has_any_role(request.user, *self.roles)


class IsGrcAdminOrReadOnly(_RoleOrReadOnly):
    roles = (ROLE_GRC_ADMIN,)


class IsComplianceManagerOrReadOnly(_RoleOrReadOnly):
    roles = (ROLE_GRC_ADMIN, ROLE_COMPLIANCE_MANAGER)


class IsRiskManagerOrReadOnly(_RoleOrReadOnly):
    roles = (ROLE_GRC_ADMIN, ROLE_RISK_MANAGER)


class IsAssetManagerOrReadOnly(_RoleOrReadOnly):
    roles = (ROLE_GRC_ADMIN, ROLE_ASSET_MANAGER)


class CanViewAuditLog(BasePermission):
    def has_permission(self, request, view):
        return has_any_role(request.user, ROLE_GRC_ADMIN)
