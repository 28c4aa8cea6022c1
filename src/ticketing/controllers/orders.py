from uuid import UUID

import orjson
import pydantic
from django.conf import settings
from django.db.models import QuerySet
from ninja import File, Form
from ninja.files import UploadedFile
from ninja_extra import api_controller, route
from ninja_extra.pagination import PageNumberPaginationExtra, PaginatedResponseSchema, paginate

from common.authentication import ContextJWTAuth
from common.controllers import UserAwareController
from common.schema import ErrorResponse
from common.throttling import UserDefaultThrottle, WriteThrottle
from ticketing import models, schema
from ticketing.exceptions import ValidationError
from ticketing.service import order_service


def parse_payment_details(raw: str) -> dict[str, str]:
    """Decode the ``payment_details`` form field.

    Raises:
        ValidationError: If the field is not a JSON object of known payment details.
    """
    try:
        details = schema.PaymentDetailsSchema.model_validate(orjson.loads(raw or "{}"))
    except (orjson.JSONDecodeError, pydantic.ValidationError) as exc:
        raise ValidationError(f"Invalid payment_details: {exc}") from None
    return details.model_dump(exclude_none=True, mode="json")


@api_controller("/orders", auth=ContextJWTAuth(), tags=["Orders"], throttle=WriteThrottle())
class OrderController(UserAwareController):
    """Buyer side of a purchase: reserve, pay offline, upload the proof."""

    @route.post(
        "/",
        url_name="create_order",
        response={201: schema.OrderCreatedSchema, 403: ErrorResponse, 404: ErrorResponse, 409: ErrorResponse},
    )
    def create_order(self, payload: schema.OrderCreateSchema) -> tuple[int, schema.OrderCreatedSchema]:
        """Reserve tickets and open an order awaiting payment.

        The reservation counts against the ticket type's inventory right away; it is
        only given back if the organizer rejects the payment.
        """
        order = order_service.create_order(
            self.user(),
            event_id=payload.event_id,
            ticket_type_id=payload.ticket_type_id,
            quantity=payload.quantity,
            payment_method_id=payload.payment_method_id,
        )
        return 201, schema.OrderCreatedSchema(order_id=order.id, status=order.status, total_amount=order.total_amount)

    @route.post(
        "/{order_id}/payment-proof",
        url_name="submit_payment_proof",
        response={200: schema.SuccessResponse, 400: ErrorResponse, 409: ErrorResponse, 503: ErrorResponse},
    )
    def submit_payment_proof(
        self, order_id: UUID, proof: File[UploadedFile], payment_details: Form[str] = "{}"
    ) -> schema.SuccessResponse:
        """Upload the payment proof image (multipart) and the payment details as a JSON string.

        A 503 with ``retryable: true`` means the upload failed and nothing changed.
        """
        if proof.size is not None and proof.size > settings.PAYMENT_PROOF_MAX_BYTES:
            raise ValidationError("The payment proof file is too large.")
        details = parse_payment_details(payment_details)
        order_service.submit_payment_proof(self.user(), order_id, details, proof.read())
        return schema.SuccessResponse()

    @route.get(
        "/",
        url_name="list_my_orders",
        response=PaginatedResponseSchema[schema.OrderSchema],
        throttle=UserDefaultThrottle(),
    )
    @paginate(PageNumberPaginationExtra, page_size=20)
    def list_my_orders(self) -> QuerySet[models.Order]:
        """The authenticated buyer's orders, newest first."""
        return order_service.list_buyer_orders(self.user())

    @route.get(
        "/{order_id}",
        url_name="get_my_order",
        response={200: schema.OrderSchema, 403: ErrorResponse, 404: ErrorResponse},
        throttle=UserDefaultThrottle(),
    )
    def get_my_order(self, order_id: UUID) -> models.Order:
        return order_service.get_order_for_buyer(self.user(), order_id)
