from rest_framework import serializers

from .models import AuditCategory, AuditRisk, Control, Framework


def _required_text(value: str, label: str) -> str:
    text = value.strip()
    if not text:
        raise serializers.ValidationError(f"{label} cannot be empty.")
    return text


class FrameworkSerializer(serializers.ModelSerializer):
    control_count = serializers.SerializerMethodField()

    class Meta:
        model = Framework
        fields = [
            "id",
            "name",
            "description",
            "framework_type",
            "status",
            "country",
            "industry",
            "is_custom",
            "control_count",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["created_at", "updated_at"]

    def get_control_count(self, obj) -> int:
        annotated = getattr(obj, "control_count", None)
        return obj.controls.count() if annotated is None else annotated

    def validate_name(self, value: str) -> str:
        return _required_text(value, "Name")


class ControlSerializer(serializers.ModelSerializer):
    framework_name = serializers.CharField(source="framework.name", read_only=True)
    department_name = serializers.CharField(source="department.name", read_only=True, default=None)
    owner_username = serializers.CharField(source="owner.username", read_only=True, default=None)

    class Meta:
        model = Control
        fields = [
            "id",
            "framework",
            "framework_name",
            "control_code",
            "name",
            "description",
            "control_question",
            "functional_grouping",
            "status",
            "department",
            "department_name",
            "owner",
            "owner_username",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["created_at", "updated_at"]

    def validate_control_code(self, value: str) -> str:
        return _required_text(value, "Control code").upper()

    def validate_name(self, value: str) -> str:
        return _required_text(value, "Name")

    def validate(self, attrs: dict) -> dict:
        attrs = super().validate(attrs)
        framework = attrs.get("framework", getattr(self.instance, "framework", None))
        code = attrs.get("control_code", getattr(self.instance, "control_code", None))
        duplicates = Control.objects.filter(framework=framework, control_code=code)
        if self.instance is not None:
            duplicates = duplicates.exclude(pk=self.instance.pk)
        if framework is not None and code and duplicates.exists():
            raise serializers.ValidationError({"control_code": f"{code} already exists in {framework}."})
        return attrs


class AuditCategorySerializer(serializers.ModelSerializer):
    class Meta:
        model = AuditCategory
        fields = ["id", "name", "description", "is_active"]

    def validate_name(self, value: str) -> str:
        return _required_text(value, "Name")


class AuditRiskSerializer(serializers.ModelSerializer):
    department_name = serializers.CharField(source="department.name", read_only=True, default=None)
    category_name = serializers.CharField(source="category.name", read_only=True, default=None)

    class Meta:
        model = AuditRisk
        fields = [
            "id",
            "risk_id",
            "name",
            "department",
            "department_name",
            "category",
            "category_name",
            "section_process",
            "sub_process",
            "activity",
            "description",
            "inherent_likelihood",
            "inherent_impact",
            "inherent_score",
            "control_description",
            "control_effectiveness",
            "residual_likelihood",
            "residual_impact",
            "residual_score",
            "risk_level",
            "creation_date",
            "audit_comment",
            "status",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["risk_id", "inherent_score", "residual_score", "risk_level", "created_at", "updated_at"]

    def validate_name(self, value: str) -> str:
        return _required_text(value, "Risk name")

    def validate(self, attrs: dict) -> dict:
        attrs = super().validate(attrs)
        new_status = attrs.get("status")
        if self.instance and new_status and not self.instance.can_transition_to(new_status):
            raise serializers.ValidationError(
                {"status": f"Invalid transition from {self.instance.status} to {new_status}."}
            )
        return attrs
