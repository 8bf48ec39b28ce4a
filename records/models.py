"""
Database models for the SmartQR emergency records backend.

These models capture the tenants (hospitals), the people who log in
(users with a role), the patient records each hospital manages and the
small amount of bookkeeping around them (patient change requests and
the audit trail).  Field names are snake_case here; the API layer maps
them to the camelCase keys the front-end expects.
"""
from __future__ import annotations

import secrets

from django.contrib.auth.models import AbstractUser, BaseUserManager
from django.core.validators import MaxValueValidator, MinValueValidator, RegexValidator
from django.db import models


PHONE_RE = r'^[+]?[\d\s\-()]+$'

phone_validator = RegexValidator(PHONE_RE, 'Please provide a valid phone number')


def generate_qr_token() -> str:
    """Return an unguessable public lookup token (192 bits from the OS CSPRNG)."""
    return secrets.token_urlsafe(24)


class Hospital(models.Model):
    """A tenant.  Created by public self-registration, approved by the owner."""
    STATUS_PENDING = 'PENDING'
    STATUS_APPROVED = 'APPROVED'
    STATUS_REJECTED = 'REJECTED'
    STATUS_CHOICES = [
        (STATUS_PENDING, 'Pending'),
        (STATUS_APPROVED, 'Approved'),
        (STATUS_REJECTED, 'Rejected'),
    ]

    name = models.CharField(max_length=255)
    email = models.EmailField(unique=True)
    phone = models.CharField(max_length=32, blank=True)
    address = models.TextField(blank=True)
    primary_contact_name = models.CharField(max_length=255, blank=True)
    # The owner's hospital list filters on status.
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=STATUS_PENDING, db_index=True)
    admin_user = models.ForeignKey(
        'User', null=True, blank=True, on_delete=models.SET_NULL, related_name='administered_hospitals'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    @property
    def is_approved(self) -> bool:
        return self.status == self.STATUS_APPROVED

    def __str__(self) -> str:
        return f"{self.name} ({self.status})"


class UserManager(BaseUserManager):
    """Manager for the email-keyed user model."""

    def create_user(self, email, password=None, **extra_fields):
        if not email:
            raise ValueError('email is required')
        email = self.normalize_email(email).lower()
        user = self.model(email=email, **extra_fields)
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_superuser(self, email, password=None, **extra_fields):
        extra_fields.setdefault('role', User.ROLE_SUPER_ADMIN)
        extra_fields.setdefault('is_staff', True)
        extra_fields.setdefault('is_superuser', True)
        return self.create_user(email, password, **extra_fields)


class User(AbstractUser):
    """A login identity.

    Users log in with their email address.  ``role`` decides what the
    issued session token may do; ``hospital`` binds hospital admins and
    patients to their tenant.  Hospital admins stay inactive until the
    owner approves their hospital.
    """
    ROLE_SUPER_ADMIN = 'SUPER_ADMIN'
    ROLE_HOSPITAL_ADMIN = 'HOSPITAL_ADMIN'
    ROLE_PATIENT = 'PATIENT'
    ROLE_CHOICES = [
        (ROLE_SUPER_ADMIN, 'System owner'),
        (ROLE_HOSPITAL_ADMIN, 'Hospital administrator'),
        (ROLE_PATIENT, 'Patient'),
    ]

    username = None
    email = models.EmailField(unique=True)
    name = models.CharField(max_length=255, blank=True)
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default=ROLE_HOSPITAL_ADMIN)
    hospital = models.ForeignKey(
        Hospital, null=True, blank=True, on_delete=models.PROTECT, related_name='users', db_index=True
    )

    USERNAME_FIELD = 'email'
    REQUIRED_FIELDS: list[str] = []

    objects = UserManager()

    def __str__(self) -> str:
        return f"{self.email} ({self.role})"


class Patient(models.Model):
    """A patient record owned by exactly one hospital.

    ``qr_token`` is generated once when the row is created and is the
    only key the public emergency endpoint accepts.  Neither it nor
    ``hospital`` is ever changed by an update.
    """
    GENDER_CHOICES = [('Male', 'Male'), ('Female', 'Female'), ('Other', 'Other')]
    BLOOD_GROUP_CHOICES = [(g, g) for g in ('A+', 'A-', 'B+', 'B-', 'AB+', 'AB-', 'O+', 'O-')]
    RISK_LOW = 'Low'
    RISK_MEDIUM = 'Medium'
    RISK_HIGH = 'High'
    RISK_CHOICES = [(RISK_LOW, 'Low'), (RISK_MEDIUM, 'Medium'), (RISK_HIGH, 'High')]

    full_name = models.CharField(max_length=255)
    age = models.PositiveSmallIntegerField(validators=[MinValueValidator(0), MaxValueValidator(150)])
    gender = models.CharField(max_length=10, choices=GENDER_CHOICES)
    photo_url = models.TextField(blank=True, default='')
    blood_group = models.CharField(max_length=3, choices=BLOOD_GROUP_CHOICES)
    allergies = models.JSONField(default=list, blank=True)
    medical_conditions = models.JSONField(default=list, blank=True)
    medications = models.JSONField(default=list, blank=True)
    emergency_contact_name = models.CharField(max_length=255)
    emergency_contact_phone = models.CharField(max_length=32, validators=[phone_validator])
    risk_level = models.CharField(max_length=10, choices=RISK_CHOICES, default=RISK_LOW, db_index=True)
    # Filled in by the external summariser; staff-only.
    ai_summary = models.TextField(blank=True, default='')
    hospital = models.ForeignKey(Hospital, on_delete=models.PROTECT, related_name='patients')
    account = models.OneToOneField(
        User, null=True, blank=True, on_delete=models.SET_NULL, related_name='patient_record'
    )
    qr_token = models.CharField(max_length=64, unique=True, editable=False, default=generate_qr_token)
    qr_code_url = models.CharField(max_length=255, blank=True, default='')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        indexes = [
            models.Index(fields=['hospital', 'created_at'], name='patient_hospital_created_idx'),
        ]

    def __str__(self) -> str:
        return f"{self.full_name} (#{self.pk})"


class ChangeRequest(models.Model):
    """A patient's request to change fields of their own record.

    Patients cannot edit their record directly; hospital staff review the
    requested changes and apply or discard them.
    """
    STATUS_PENDING = 'PENDING'
    STATUS_APPROVED = 'APPROVED'
    STATUS_REJECTED = 'REJECTED'
    STATUS_CHOICES = [
        (STATUS_PENDING, 'Pending'),
        (STATUS_APPROVED, 'Approved'),
        (STATUS_REJECTED, 'Rejected'),
    ]

    patient = models.ForeignKey(Patient, on_delete=models.CASCADE, related_name='change_requests')
    requested_by = models.ForeignKey(
        User, null=True, blank=True, on_delete=models.SET_NULL, related_name='change_requests'
    )
    requested_changes = models.JSONField(default=dict)
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=STATUS_PENDING, db_index=True)
    reviewed_by = models.ForeignKey(
        User, null=True, blank=True, on_delete=models.SET_NULL, related_name='reviewed_change_requests'
    )
    reviewed_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:
        return f"change#{self.pk} patient={self.patient_id} {self.status}"


class AuditEvent(models.Model):
    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True)
    action = models.CharField(max_length=64)
    object_type = models.CharField(max_length=64, blank=True, null=True)
    object_id = models.IntegerField(blank=True, null=True)
    detail = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=['action', 'created_at'], name='audit_action_created_idx'),
            models.Index(fields=['object_type', 'object_id', 'created_at'], name='audit_object_created_idx'),
        ]

    def __str__(self):
        return f"{self.action}:{self.user_id}@{self.created_at:%F %T}"
