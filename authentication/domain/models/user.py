import uuid

from django.contrib.auth.models import AbstractUser
from django.db import models


class CustomUser(AbstractUser):
    """
    Marketplace account, identified by email.

    Any account can bid or list; ``role`` only marks delivery partners, who
    may advance deliveries they are assigned to, and staff admins.
    """

    class Role(models.TextChoices):
        USER = "user", "User"
        SELLER = "seller", "Seller"
        DELIVERY_PARTNER = "delivery_partner", "Delivery Partner"
        ADMIN = "admin", "Admin"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    email = models.EmailField(unique=True)
    first_name = models.CharField(max_length=30, blank=True)
    last_name = models.CharField(max_length=30, blank=True)
    date_joined = models.DateTimeField(auto_now_add=True)
    role = models.CharField(max_length=20, choices=Role.choices, default=Role.USER)

    USERNAME_FIELD = "email"
    REQUIRED_FIELDS = ["username"]

    class Meta:
        app_label = "authentication"

    @property
    def display_name(self) -> str:
        # Used on invoices, so never empty.
        return self.get_full_name() or self.username or self.email

    def is_admin(self) -> bool:
        return self.is_superuser or self.role == self.Role.ADMIN

    def is_delivery_partner(self) -> bool:
        return self.role == self.Role.DELIVERY_PARTNER

    def __str__(self):
        return self.email
