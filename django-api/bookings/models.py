"""Django ORM models (persistence layer).

These models handle database concerns. Domain logic lives in domain/models.py.
"""

import uuid

from django.db import models
from django.db.models import Q


class FitnessClass(models.Model):
    """Persistence model for scheduled classes."""

    class Status(models.TextChoices):
        ACTIVE = "active"
        INACTIVE = "inactive"
        CANCELLED = "cancelled"
        COMPLETED = "completed"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=255)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.ACTIVE)
    start_date = models.DateField()
    end_date = models.DateField()
    start_time = models.TimeField(blank=True, null=True)
    max_capacity = models.PositiveIntegerField()
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["start_date", "name"]
        verbose_name_plural = "fitness classes"
        indexes = [
            models.Index(fields=["status"], name="bookings_fi_status_6d0e1b_idx"),
        ]

    def __str__(self) -> str:
        return self.name


class Member(models.Model):
    """Persistence model for members. Email is the natural key."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=100)
    email = models.EmailField(max_length=255, unique=True)
    phone = models.CharField(max_length=50, blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]

    def __str__(self) -> str:
        return f"{self.name} <{self.email}>"


class Booking(models.Model):
    """Persistence model for bookings."""

    class Status(models.TextChoices):
        CONFIRMED = "confirmed"
        CANCELLED = "cancelled"
        ATTENDED = "attended"
        NO_SHOW = "no_show"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    fitness_class = models.ForeignKey(
        FitnessClass, on_delete=models.CASCADE, related_name="bookings"
    )
    member = models.ForeignKey(Member, on_delete=models.CASCADE, related_name="bookings")
    participation_date = models.DateField()
    notes = models.TextField(blank=True, null=True)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.CONFIRMED)
    attended_at = models.DateTimeField(blank=True, null=True)
    cancelled_at = models.DateTimeField(blank=True, null=True)
    cancelled_by = models.CharField(max_length=255, blank=True, null=True)
    cancellation_reason = models.CharField(max_length=255, blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["fitness_class", "status"], name="bookings_bo_fitness_3c1f2a_idx"),
            models.Index(
                fields=["fitness_class", "participation_date"], name="bookings_bo_fitness_8a7d45_idx"
            ),
            models.Index(fields=["member", "participation_date"], name="bookings_bo_member__5e9b10_idx"),
            models.Index(fields=["-created_at"], name="bookings_bo_created_b42f7c_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(cancellation_reason__isnull=True) | Q(status="cancelled"),
                name="booking_reason_only_when_cancelled",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.member_id} - {self.fitness_class_id} on {self.participation_date}"
