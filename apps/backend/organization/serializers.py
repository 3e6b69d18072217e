from django.contrib.auth import get_user_model
from django.db import transaction
from rest_framework import serializers

from .models import (
    Department,
    Issue,
    IssueStakeholderNeed,
    OptionValue,
    Organization,
    Process,
    Regulation,
    Stakeholder,
)

User = get_user_model()


class OrganizationSerializer(serializers.ModelSerializer):
    class Meta:
        model = Organization
        fields = [
            "id",
            "name",
            "established_date",
            "employee_count",
            "branch_count",
            "head_office_location",
            "head_office_address",
            "website",
            "description",
            "vision",
            "mission",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["created_at", "updated_at"]

    def validate_name(self, value: str) -> str:
        name = value.strip()
        if not name:
            raise serializers.ValidationError("Organization name cannot be empty.")
        return name


class DepartmentSerializer(serializers.ModelSerializer):
    user_count = serializers.IntegerField(source="members.count", read_only=True)
    issue_count = serializers.IntegerField(source="issues.count", read_only=True)

    class Meta:
        model = Department
        fields = ["id", "name", "user_count", "issue_count", "created_at", "updated_at"]
        read_only_fields = ["created_at", "updated_at"]

    def validate_name(self, value: str) -> str:
        name = value.strip()
        if not name:
            raise serializers.ValidationError("Department name cannot be empty.")
        return name


class UserSerializer(serializers.ModelSerializer):
    full_name = serializers.SerializerMethodField()
    designation = serializers.SerializerMethodField()
    department = serializers.SerializerMethodField()
    department_name = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = ["id", "username", "email", "full_name", "designation", "department", "department_name"]
        read_only_fields = fields

    def _profile(self, obj):
        return getattr(obj, "profile", None)

    def get_full_name(self, obj) -> str:
        profile = self._profile(obj)
        if profile is not None:
            return profile.display_name
        return obj.get_full_name() or obj.get_username()

    def get_designation(self, obj) -> str:
        profile = self._profile(obj)
        return profile.designation if profile else ""

    def get_department(self, obj):
        profile = self._profile(obj)
        return profile.department_id if profile else None

    def get_department_name(self, obj):
        profile = self._profile(obj)
        if profile and profile.department_id:
            return profile.department.name
        return None


class RegulationSerializer(serializers.ModelSerializer):
    class Meta:
        model = Regulation
        fields = ["id", "name", "version", "scope", "status", "created_at", "updated_at"]
        read_only_fields = ["created_at", "updated_at"]


class ProcessSerializer(serializers.ModelSerializer):
    department_name = serializers.CharField(source="department.name", read_only=True, default=None)
    owner_username = serializers.CharField(source="owner.username", read_only=True, default=None)

    class Meta:
        model = Process
        fields = [
            "id",
            "process_code",
            "name",
            "description",
            "process_type",
            "department",
            "department_name",
            "owner",
            "owner_username",
            "status",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["created_at", "updated_at"]
        extra_kwargs = {"process_code": {"required": False, "allow_blank": True}}


class StakeholderSerializer(serializers.ModelSerializer):
    type = serializers.ChoiceField(source="stakeholder_type", choices=Stakeholder.TYPE_CHOICES, required=False)
    department_name = serializers.CharField(source="department.name", read_only=True, default=None)

    class Meta:
        model = Stakeholder
        fields = ["id", "name", "email", "type", "status", "department", "department_name", "created_at", "updated_at"]
        read_only_fields = ["created_at", "updated_at"]

    def validate_name(self, value: str) -> str:
        name = value.strip()
        if not name:
            raise serializers.ValidationError("Stakeholder name cannot be empty.")
        return name


class OptionValueSerializer(serializers.ModelSerializer):
    class Meta:
        model = OptionValue
        fields = ["id", "list_key", "value", "is_custom", "created_at"]
        read_only_fields = ["is_custom", "created_at"]

    def validate_value(self, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise serializers.ValidationError("Option value cannot be empty.")
        return cleaned

    def validate(self, attrs: dict) -> dict:
        attrs = super().validate(attrs)
        list_key = attrs.get("list_key", getattr(self.instance, "list_key", None))
        value = attrs.get("value", getattr(self.instance, "value", None))
        if value in OptionValue.DEFAULTS.get(list_key, []):
            raise serializers.ValidationError({"value": "This option already exists."})
        return attrs


class IssueStakeholderNeedSerializer(serializers.ModelSerializer):
    stakeholder_name = serializers.CharField(source="stakeholder.name", read_only=True)

    class Meta:
        model = IssueStakeholderNeed
        fields = ["stakeholder", "stakeholder_name", "need_expectation"]

    def validate_need_expectation(self, value: str) -> str:
        need = value.strip()
        if not need:
            raise serializers.ValidationError("Need / expectation cannot be empty.")
        return need


class IssueSerializer(serializers.ModelSerializer):
    department_name = serializers.CharField(source="department.name", read_only=True, default=None)
    owner_username = serializers.CharField(source="owner.username", read_only=True, default=None)
    regulation_ids = serializers.PrimaryKeyRelatedField(
        source="regulations", queryset=Regulation.objects.all(), many=True, required=False
    )
    process_ids = serializers.PrimaryKeyRelatedField(
        source="processes", queryset=Process.objects.all(), many=True, required=False
    )
    stakeholder_needs = IssueStakeholderNeedSerializer(many=True, required=False)

    class Meta:
        model = Issue
        fields = [
            "id",
            "title",
            "description",
            "domain",
            "category",
            "issue_type",
            "status",
            "due_date",
            "department",
            "department_name",
            "owner",
            "owner_username",
            "regulation_ids",
            "process_ids",
            "stakeholder_needs",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["created_at", "updated_at"]

    def validate_title(self, value: str) -> str:
        title = value.strip()
        if not title:
            raise serializers.ValidationError("Title cannot be empty.")
        return title

    @transaction.atomic
    def create(self, validated_data: dict) -> Issue:
        regulations = validated_data.pop("regulations", [])
        processes = validated_data.pop("processes", [])
        needs = validated_data.pop("stakeholder_needs", [])
        issue = Issue.objects.create(**validated_data)
        issue.regulations.set(self._distinct(regulations))
        issue.processes.set(self._distinct(processes))
        self._write_needs(issue, needs)
        return issue

    @transaction.atomic
    def update(self, instance: Issue, validated_data: dict) -> Issue:
        regulations = validated_data.pop("regulations", None)
        processes = validated_data.pop("processes", None)
        needs = validated_data.pop("stakeholder_needs", None)
        for attr, value in validated_data.items():
            setattr(instance, attr, value)
        instance.save()
        if regulations is not None:
            instance.regulations.set(self._distinct(regulations))
        if processes is not None:
            instance.processes.set(self._distinct(processes))
        if needs is not None:
            instance.stakeholder_needs.all().delete()
            self._write_needs(instance, needs)
        return instance

    def _distinct(self, objects: list) -> list:
        seen = {}
        for obj in objects:
            seen.setdefault(obj.pk, obj)
        return list(seen.values())

    def _write_needs(self, issue: Issue, needs: list[dict]) -> None:
        IssueStakeholderNeed.objects.bulk_create(
            [
                IssueStakeholderNeed(
                    issue=issue,
                    stakeholder=need["stakeholder"],
                    need_expectation=need["need_expectation"],
                    position=position,
                )
                for position, need in enumerate(needs)
            ]
        )
