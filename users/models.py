# users/models.py
from django.contrib.auth.models import AbstractUser, UserManager as BaseUserManager
from django.db import models


class UserManager(BaseUserManager):
    def create_user(self, username, email=None, password=None, **extra_fields):
        if email:
            email = email.strip().lower()
        return super().create_user(username, email=email, password=password, **extra_fields)


class User(AbstractUser):
    ROLE_PARTICIPANT = "participant"
    ROLE_ORGANIZER = "organizer"
    ROLE_ADMIN = "admin"

    ROLE_CHOICES = (
        (ROLE_PARTICIPANT, 'Participant'),
        (ROLE_ORGANIZER, 'Organizer'),
        (ROLE_ADMIN, 'Admin'),
    )

    TYPE_IIIT = "iiit"
    TYPE_NON_IIIT = "non_iiit"

    PARTICIPANT_TYPE_CHOICES = (
        (TYPE_IIIT, 'IIIT'),
        (TYPE_NON_IIIT, 'Non-IIIT'),
    )

    email = models.EmailField(unique=True)

    role = models.CharField(
        max_length=30,
        choices=ROLE_CHOICES,
        default=ROLE_PARTICIPANT
    )
    # Only meaningful for participants
    participant_type = models.CharField(
        max_length=16,
        choices=PARTICIPANT_TYPE_CHOICES,
        blank=True,
        null=True,
    )

    phone = models.CharField(max_length=20, blank=True, null=True)
    college = models.CharField(max_length=255, blank=True, null=True)
    bio = models.TextField(blank=True, null=True)
    interests = models.JSONField(default=list, blank=True)

    objects = UserManager()

    class Meta:
        indexes = [
            models.Index(fields=["role"], name="user_role_idx"),
            models.Index(fields=["date_joined"], name="user_joined_idx"),
        ]

    def save(self, *args, **kwargs):
        if self.email:
            self.email = self.email.strip().lower()
        super().save(*args, **kwargs)

    @property
    def display_name(self):
        return f"{self.first_name} {self.last_name}".strip() or self.username

    @property
    def is_admin(self):
        return self.role == self.ROLE_ADMIN or self.is_superuser

    @property
    def is_organizer(self):
        return self.role == self.ROLE_ORGANIZER

    @property
    def is_participant(self):
        return self.role == self.ROLE_PARTICIPANT

    def __str__(self):
        return self.username
