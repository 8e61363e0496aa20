"""API tests for authentication and profile endpoints."""

from __future__ import annotations

from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from apps.users.models import User


class AuthAPITests(APITestCase):
    def test_register_returns_tokens(self) -> None:
        payload = {
            "email": "renter@example.com",
            "first_name": "Rita",
            "last_name": "Renter",
            "password": "StrongPass123",
            "password_confirm": "StrongPass123",
        }

        response = self.client.post(reverse("auth:register"), payload, format="json")
        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertIn("tokens", response.data)
        self.assertEqual(response.data["user"]["email"], payload["email"])
        self.assertEqual(response.data["user"]["role"], User.RoleChoices.EXTERNAL)

    def test_register_rejects_mismatched_passwords(self) -> None:
        payload = {
            "email": "typo@example.com",
            "password": "StrongPass123",
            "password_confirm": "StrongPass124",
        }
        response = self.client.post(reverse("auth:register"), payload, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(User.objects.filter(email=payload["email"]).exists())

    def test_register_cannot_escalate_role(self) -> None:
        payload = {
            "email": "sneaky@example.com",
            "password": "StrongPass123",
            "password_confirm": "StrongPass123",
            "role": "admin",
        }
        response = self.client.post(reverse("auth:register"), payload, format="json")
        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(User.objects.get(email=payload["email"]).role, User.RoleChoices.EXTERNAL)

    def test_login_returns_tokens(self) -> None:
        User.objects.create_user(email="desk@example.com", password="CorrectPassword1")

        response = self.client.post(
            reverse("auth:login"),
            {"email": "desk@example.com", "password": "CorrectPassword1"},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertIn("access", response.data["tokens"])

    def test_login_wrong_password(self) -> None:
        User.objects.create_user(email="desk@example.com", password="CorrectPassword1")

        response = self.client.post(
            reverse("auth:login"),
            {"email": "desk@example.com", "password": "wrong"},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_access_token_authenticates_requests(self) -> None:
        User.objects.create_user(email="jwt@example.com", password="CorrectPassword1")
        login = self.client.post(
            reverse("auth:login"),
            {"email": "jwt@example.com", "password": "CorrectPassword1"},
            format="json",
        )
        access = login.data["tokens"]["access"]

        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {access}")
        response = self.client.get(reverse("user-me"))
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["email"], "jwt@example.com")


class UserAPITests(APITestCase):
    def setUp(self) -> None:
        self.admin = User.objects.create_user(
            email="admin@example.com",
            password="pass12345",
            role=User.RoleChoices.ADMIN,
        )
        self.staff = User.objects.create_user(
            email="staff@example.com",
            password="pass12345",
            role=User.RoleChoices.STAFF,
        )
        self.external = User.objects.create_user(email="ext@example.com", password="pass12345")

    def test_me_requires_authentication(self) -> None:
        response = self.client.get(reverse("user-me"))
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_me_updates_profile_but_not_role(self) -> None:
        self.client.force_authenticate(self.external)
        response = self.client.patch(
            reverse("user-me"),
            {"department": "Camera", "role": "admin"},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.external.refresh_from_db()
        self.assertEqual(self.external.department, "Camera")
        self.assertEqual(self.external.role, User.RoleChoices.EXTERNAL)

    def test_user_list_admin_only(self) -> None:
        self.client.force_authenticate(self.staff)
        response = self.client.get(reverse("user-list"))
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        self.client.force_authenticate(self.admin)
        response = self.client.get(reverse("user-list"))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["count"], 3)

    def test_admin_can_promote_user(self) -> None:
        self.client.force_authenticate(self.admin)
        response = self.client.patch(
            reverse("user-detail", args=[self.external.pk]),
            {"role": "staff"},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.external.refresh_from_db()
        self.assertTrue(self.external.is_staff_member())

    def test_role_helpers(self) -> None:
        self.assertTrue(self.admin.is_admin())
        self.assertTrue(self.staff.is_staff_member())
        self.assertFalse(self.staff.is_admin())
        self.assertFalse(self.external.is_staff_member())
