import typing as t

from django.core.exceptions import ValidationError
from django.db import models

from common.models import TimeStampedModel
from events.models import Event


class PaymentMethodQuerySet(models.QuerySet["PaymentMethod"]):
    def active(self) -> t.Self:
        return self.filter(is_active=True)


class PaymentMethod(TimeStampedModel):
    """How buyers should pay an event's organizer, offline.

    Each ``kind`` is a distinct variant with its own required fields:

    - bank_transfer: account_title, account_number, bank_name (iban optional)
    - mobile_wallet: provider, account_title, phone_number
    - cash: instructions

    Fields that belong to another variant must stay empty.
    """

    class Kind(models.TextChoices):
        BANK_TRANSFER = "bank_transfer", "Bank transfer"
        MOBILE_WALLET = "mobile_wallet", "Mobile wallet"
        CASH = "cash", "Cash"

    class WalletProvider(models.TextChoices):
        EASYPAISA = "easypaisa", "Easypaisa"
        JAZZCASH = "jazzcash", "JazzCash"

    VARIANT_FIELDS: t.ClassVar[dict[str, tuple[str, ...]]] = {
        Kind.BANK_TRANSFER: ("account_title", "account_number", "bank_name"),
        Kind.MOBILE_WALLET: ("provider", "account_title", "phone_number"),
        Kind.CASH: ("instructions",),
    }
    OPTIONAL_VARIANT_FIELDS: t.ClassVar[dict[str, tuple[str, ...]]] = {
        Kind.BANK_TRANSFER: ("iban",),
    }
    ALL_VARIANT_FIELDS: t.ClassVar[tuple[str, ...]] = (
        "account_title",
        "account_number",
        "bank_name",
        "iban",
        "provider",
        "phone_number",
    )

    event = models.ForeignKey(Event, on_delete=models.CASCADE, related_name="payment_methods")
    kind = models.CharField(max_length=20, choices=Kind.choices, db_index=True)
    name = models.CharField(max_length=255)
    account_title = models.CharField(max_length=255, blank=True)
    account_number = models.CharField(max_length=64, blank=True)
    bank_name = models.CharField(max_length=255, blank=True)
    iban = models.CharField(max_length=34, blank=True)
    provider = models.CharField(max_length=20, choices=WalletProvider.choices, blank=True)
    phone_number = models.CharField(max_length=20, blank=True)
    instructions = models.TextField(blank=True)
    is_active = models.BooleanField(default=True, db_index=True)
    display_order = models.PositiveIntegerField(default=0)

    objects = PaymentMethodQuerySet.as_manager()

    class Meta:
        ordering = ["event", "display_order", "name"]

    def __str__(self) -> str:
        return f"{self.name} ({self.get_kind_display()})"

    def clean(self) -> None:
        """Enforce the required and forbidden fields of the selected variant."""
        super().clean()
        errors: dict[str, list[str]] = {}
        required = self.VARIANT_FIELDS.get(self.kind, ())
        allowed = set(required) | set(self.OPTIONAL_VARIANT_FIELDS.get(self.kind, ()))
        for field in required:
            if not str(getattr(self, field) or "").strip():
                errors.setdefault(field, []).append(f"This field is required for {self.get_kind_display()}.")
        for field in self.ALL_VARIANT_FIELDS:
            if field not in allowed and getattr(self, field):
                errors.setdefault(field, []).append(f"This field does not apply to {self.get_kind_display()}.")
        if errors:
            raise ValidationError(errors)
