"""
Core Models - Tenant root (Business) and platform users
"""
from django.contrib.auth.models import AbstractUser, UserManager as DjangoUserManager
from django.db import models


def default_card_design():
    return {
        'primaryColor': '#0f172a',
        'secondaryColor': '#334155',
        'pattern': 'geometric',
        'textColor': '#ffffff',
    }


class Business(models.Model):
    """
    Business model - Represents each tenant running a loyalty program
    """
    name = models.CharField(
        max_length=200,
        unique=True,
        help_text="Public-facing business name"
    )
    slug = models.SlugField(
        max_length=220,
        unique=True,
        help_text="URL-safe identifier used by public dashboards (e.g. 'my-coffee-shop')"
    )

    # Business Information
    category = models.CharField(max_length=100, blank=True)
    city = models.CharField(max_length=100, blank=True, db_index=True)
    region = models.CharField(max_length=100, blank=True)
    contact_email = models.EmailField(blank=True)
    logo_url = models.URLField(blank=True)

    # Loyalty Policy
    allow_negative_points = models.BooleanField(
        default=False,
        help_text="Allow client balances to go below zero?"
    )
    activation_code = models.CharField(
        max_length=50,
        blank=True,
        help_text="Code end-users must supply to claim a pre-created card"
    )
    card_design = models.JSONField(default=default_card_design, blank=True)

    created_by = models.ForeignKey(
        'core.User',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='created_businesses',
        help_text="Admin who created this business"
    )

    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        verbose_name = 'Business'
        verbose_name_plural = 'Businesses'

    def __str__(self):
        return self.name


class UserManager(DjangoUserManager):
    """Superusers created from the shell are platform admins"""

    def create_superuser(self, username, email=None, password=None, **extra_fields):
        extra_fields.setdefault('role', User.ROLE_ADMIN)
        return super().create_superuser(username, email, password, **extra_fields)


class User(AbstractUser):
    """
    Platform user: either a global admin or an operator of one business
    """
    ROLE_ADMIN = 'admin'
    ROLE_BUSINESS_USER = 'business_user'
    ROLE_CHOICES = [
        (ROLE_ADMIN, 'Admin'),
        (ROLE_BUSINESS_USER, 'Business User'),
    ]

    email = models.EmailField(unique=True)
    role = models.CharField(
        max_length=20,
        choices=ROLE_CHOICES,
        default=ROLE_BUSINESS_USER,
        db_index=True
    )
    business = models.ForeignKey(
        Business,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name='users',
        help_text="Business this operator works for (empty for admins)"
    )

    objects = UserManager()

    class Meta:
        constraints = [
            models.CheckConstraint(
                condition=models.Q(role='admin') | models.Q(business__isnull=False),
                name='business_user_has_business'
            )
        ]

    def __str__(self):
        return self.email or self.username

    @property
    def is_platform_admin(self):
        return self.role == self.ROLE_ADMIN

    @property
    def is_business_user(self):
        return self.role == self.ROLE_BUSINESS_USER


class BusinessScopedModel(models.Model):
    """
    Abstract base model that adds the owning business to every tenant record
    """
    business = models.ForeignKey(
        Business,
        on_delete=models.CASCADE,
        related_name='%(class)s_set',
        help_text="Which business owns this record"
    )

    class Meta:
        abstract = True
