import typing as t
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from ninja import ModelSchema, Schema
from pydantic import AwareDatetime, BaseModel, ConfigDict, EmailStr, Field, model_validator

from common.schema import OneToOneFiftyString, StrippedString

from .models import Order, PaymentMethod, Ticket, TicketType, ValidationAttempt

# ---- Orders ----


class OrderCreateSchema(Schema):
    event_id: UUID
    ticket_type_id: UUID
    quantity: int = Field(..., ge=1)
    payment_method_id: UUID


class OrderCreatedSchema(Schema):
    order_id: UUID
    status: str
    total_amount: Decimal


class PaymentDetailsSchema(BaseModel):
    """The JSON sent alongside the proof image, as the ``payment_details`` form field."""

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    transaction_id: str | None = Field(None, max_length=128)
    paid_at: str | None = Field(None, max_length=64)
    notes: str | None = Field(None, max_length=1000)
    holder_name: str | None = Field(None, max_length=255)
    holder_email: EmailStr | None = None
    holder_phone: str | None = Field(None, max_length=32)


class OrderSchema(ModelSchema):
    event_id: UUID
    ticket_type_id: UUID
    payment_method_id: UUID
    buyer_id: UUID
    has_proof: bool

    class Meta:
        model = Order
        fields = [
            "id",
            "quantity",
            "total_amount",
            "status",
            "payment_details",
            "proof_submitted_at",
            "rejection_reason",
            "verified_at",
            "ticket_code",
            "created_at",
        ]

    @staticmethod
    def resolve_has_proof(obj: Order) -> bool:
        return bool(obj.payment_proof)


class VerifyPaymentSchema(Schema):
    action: t.Literal["approve", "reject"]
    reason: StrippedString | None = Field(None, max_length=2000)


class VerifyPaymentResponse(Schema):
    success: bool = True
    status: str
    tickets_issued: int | None = None


class SuccessResponse(Schema):
    success: bool = True


class ProofURLSchema(Schema):
    url: str
    expires_in: int


# ---- Tickets ----


class TicketSchema(ModelSchema):
    order_id: UUID
    event_id: UUID
    ticket_type_id: UUID
    ticket_type_name: str

    class Meta:
        model = Ticket
        fields = [
            "id",
            "sequence",
            "ticket_number",
            "reference",
            "holder_name",
            "holder_email",
            "holder_phone",
            "status",
            "is_used",
            "used_at",
            "created_at",
        ]

    @staticmethod
    def resolve_ticket_type_name(obj: Ticket) -> str:
        return obj.ticket_type.name


class GateTicketSchema(Schema):
    """What gate staff see about a scanned ticket. The reference is not echoed back."""

    id: UUID
    ticket_number: str
    holder_name: str
    ticket_type_name: str
    status: str
    used_at: datetime | None
    validated_by_id: UUID | None
    validated_by_name: str | None

    @staticmethod
    def resolve_ticket_type_name(obj: Ticket) -> str:
        return obj.ticket_type.name

    @staticmethod
    def resolve_validated_by_name(obj: Ticket) -> str | None:
        return obj.validated_by.display_name if obj.validated_by else None


# ---- Gate ----


class ValidateTicketSchema(Schema):
    reference: str = Field(..., min_length=1, max_length=1024)
    event_id: UUID
    method: ValidationAttempt.Method = ValidationAttempt.Method.QR_SCAN


class ValidationResultSchema(Schema):
    """Built from the validator's result; ``ticket`` is resolved from the model instance."""

    valid: bool
    reason: str | None = None
    ticket: GateTicketSchema | None = None
    attempt_id: UUID

    @staticmethod
    def resolve_attempt_id(obj: t.Any) -> UUID:
        return obj.attempt.id


class ValidationAttemptSchema(ModelSchema):
    ticket_id: UUID | None
    validator_id: UUID

    class Meta:
        model = ValidationAttempt
        fields = ["id", "result", "method", "presented_reference", "notes", "created_at"]


# ---- Ticket types ----


class TicketTypeSchema(ModelSchema):
    event_id: UUID
    available: int
    sale_status: str

    class Meta:
        model = TicketType
        fields = [
            "id",
            "name",
            "description",
            "price",
            "total_quantity",
            "sales_start_at",
            "sales_end_at",
            "is_active",
        ]

    @staticmethod
    def resolve_sale_status(obj: TicketType) -> str:
        return obj.sale_status()


class TicketTypeAdminSchema(TicketTypeSchema):
    sold_count: int


class TicketTypeCreateSchema(Schema):
    name: OneToOneFiftyString
    description: StrippedString = ""
    price: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)
    total_quantity: int = Field(..., ge=0)
    sales_start_at: AwareDatetime | None = None
    sales_end_at: AwareDatetime | None = None
    is_active: bool = True

    @model_validator(mode="after")
    def check_sale_window(self) -> t.Self:
        if self.sales_start_at and self.sales_end_at and self.sales_start_at >= self.sales_end_at:
            raise ValueError("sales_end_at must be after sales_start_at.")
        return self


class TicketTypeUpdateSchema(Schema):
    name: OneToOneFiftyString | None = None
    description: StrippedString | None = None
    price: Decimal | None = Field(None, ge=0, max_digits=10, decimal_places=2)
    total_quantity: int | None = Field(None, ge=0)
    sales_start_at: AwareDatetime | None = None
    sales_end_at: AwareDatetime | None = None
    is_active: bool | None = None


# ---- Payment methods ----


class _Variant(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)


class BankTransferDetails(_Variant):
    kind: t.Literal["bank_transfer"]
    account_title: str = Field(..., min_length=1, max_length=255)
    account_number: str = Field(..., min_length=1, max_length=64)
    bank_name: str = Field(..., min_length=1, max_length=255)
    iban: str | None = Field(None, max_length=34)


class MobileWalletDetails(_Variant):
    kind: t.Literal["mobile_wallet"]
    provider: PaymentMethod.WalletProvider
    account_title: str = Field(..., min_length=1, max_length=255)
    phone_number: str = Field(..., min_length=1, max_length=20)


class CashDetails(_Variant):
    kind: t.Literal["cash"]
    instructions: str = Field(..., min_length=1, max_length=2000)


PaymentMethodDetails = t.Annotated[
    BankTransferDetails | MobileWalletDetails | CashDetails,
    Field(discriminator="kind"),
]


class PaymentMethodWriteSchema(Schema):
    name: OneToOneFiftyString
    details: PaymentMethodDetails
    is_active: bool = True
    display_order: int = Field(0, ge=0)

    def to_model_data(self) -> dict[str, t.Any]:
        """Flatten the variant into model columns."""
        return {
            "name": self.name,
            "is_active": self.is_active,
            "display_order": self.display_order,
            **self.details.model_dump(exclude_none=True),
        }


class PaymentMethodSchema(ModelSchema):
    event_id: UUID

    class Meta:
        model = PaymentMethod
        fields = [
            "id",
            "kind",
            "name",
            "account_title",
            "account_number",
            "bank_name",
            "iban",
            "provider",
            "phone_number",
            "instructions",
            "is_active",
            "display_order",
        ]


# ---- Catalog ----


class EligibilitySchema(Schema):
    eligible: bool
    reason: str | None = None
    message: str | None = None
