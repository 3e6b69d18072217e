from django.urls import include, path
from rest_framework.routers import DefaultRouter

from asset.views import (
    AssetCategoryViewSet,
    AssetGroupViewSet,
    AssetLifecycleStatusViewSet,
    AssetSensitivityViewSet,
    AssetSubCategoryViewSet,
    AssetViewSet,
    CIARatingViewSet,
)
from compliance.views import AuditCategoryViewSet, AuditRiskViewSet, ControlViewSet, FrameworkViewSet
from core.views import AuditEventViewSet
from organization.views import (
    DepartmentViewSet,
    IssueViewSet,
    OptionValueViewSet,
    OrganizationProfileView,
    ProcessViewSet,
    RegulationViewSet,
    StakeholderViewSet,
    UserViewSet,
)
from risk.views import (
    ControlStrengthViewSet,
    ImpactRatingViewSet,
    RiskCategoryViewSet,
    RiskLikelihoodViewSet,
    RiskRangeViewSet,
    RiskViewSet,
)

router = DefaultRouter()
router.register(r"issues", IssueViewSet, basename="issue")
router.register(r"stakeholders", StakeholderViewSet, basename="stakeholder")
router.register(r"departments", DepartmentViewSet, basename="department")
router.register(r"users", UserViewSet, basename="user")
router.register(r"regulations", RegulationViewSet, basename="regulation")
router.register(r"processes", ProcessViewSet, basename="process")
router.register(r"option-values", OptionValueViewSet, basename="option-value")
router.register(r"assets", AssetViewSet, basename="asset")
router.register(r"asset-categories", AssetCategoryViewSet, basename="asset-category")
router.register(r"asset-sub-categories", AssetSubCategoryViewSet, basename="asset-sub-category")
router.register(r"asset-groups", AssetGroupViewSet, basename="asset-group")
router.register(r"asset-lifecycle-statuses", AssetLifecycleStatusViewSet, basename="asset-lifecycle-status")
router.register(r"asset-sensitivities", AssetSensitivityViewSet, basename="asset-sensitivity")
router.register(r"cia-ratings", CIARatingViewSet, basename="cia-rating")
router.register(r"risks", RiskViewSet, basename="risk")
router.register(r"risk-categories", RiskCategoryViewSet, basename="risk-category")
router.register(r"control-strengths", ControlStrengthViewSet, basename="control-strength")
router.register(r"risk-likelihoods", RiskLikelihoodViewSet, basename="risk-likelihood")
router.register(r"impact-ratings", ImpactRatingViewSet, basename="impact-rating")
router.register(r"risk-ranges", RiskRangeViewSet, basename="risk-range")
router.register(r"frameworks", FrameworkViewSet, basename="framework")
router.register(r"controls", ControlViewSet, basename="control")
router.register(r"audit-categories", AuditCategoryViewSet, basename="audit-category")
router.register(r"audit-risks", AuditRiskViewSet, basename="audit-risk")
router.register(r"audit-logs", AuditEventViewSet, basename="audit-log")

urlpatterns = [
    path("organization/", OrganizationProfileView.as_view(), name="organization-profile"),
    path("", include(router.urls)),
]
