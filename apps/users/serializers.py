"""Serializers for user-related API endpoints."""

from __future__ import annotations

from django.contrib.auth import get_user_model  # type: ignore
from rest_framework import serializers  # type: ignore

User = get_user_model()


class UserSerializer(serializers.ModelSerializer):
    """Main user serializer."""

    class Meta:
        model = User
        fields = [
            "id",
            "email",
            "username",
            "first_name",
            "last_name",
            "phone",
            "role",
            "department",
            "is_active",
            "created_at",
            "updated_at",
        ]
        read_only_fields = [
            "id",
            "email",
            "role",
            "is_active",
            "created_at",
            "updated_at",
        ]


class UserAdminSerializer(UserSerializer):
    """Admins may change roles and deactivate accounts."""

    class Meta(UserSerializer.Meta):
        read_only_fields = ["id", "email", "created_at", "updated_at"]


class UserShortSerializer(serializers.ModelSerializer):
    """Compact user representation embedded in other resources."""

    class Meta:
        model = User
        fields = ["id", "email", "first_name", "last_name", "role"]
