from uuid import UUID

from django.conf import settings
from django.db.models import QuerySet
from ninja_extra import api_controller, route
from ninja_extra.pagination import PageNumberPaginationExtra, PaginatedResponseSchema, paginate

from common.authentication import ContextJWTAuth
from common.controllers import UserAwareController
from common.schema import ErrorResponse
from common.throttling import UserDefaultThrottle, WriteThrottle
from ticketing import models, schema
from ticketing.service import order_service, payment_method_service, ticket_service, ticket_type_service
from ticketing.state_machine import OrderStatus


@api_controller("/organizer", auth=ContextJWTAuth(), tags=["Organizer"], throttle=WriteThrottle())
class OrganizerOrderController(UserAwareController):
    """Payment verification and ticket administration for an event's organizer."""

    @route.post(
        "/orders/{order_id}/verify",
        url_name="verify_payment",
        response={
            200: schema.VerifyPaymentResponse,
            400: ErrorResponse,
            403: ErrorResponse,
            404: ErrorResponse,
            409: ErrorResponse,
        },
    )
    def verify_payment(self, order_id: UUID, payload: schema.VerifyPaymentSchema) -> schema.VerifyPaymentResponse:
        """Approve a payment, issuing the tickets, or reject it with a reason, releasing the inventory."""
        outcome = order_service.verify_payment(self.user(), order_id, payload.action, payload.reason)
        tickets_issued = len(outcome.tickets) if outcome.order.status == OrderStatus.PAID else None
        return schema.VerifyPaymentResponse(status=outcome.order.status, tickets_issued=tickets_issued)

    @route.get(
        "/events/{event_id}/orders/pending",
        url_name="list_pending_verification",
        response=PaginatedResponseSchema[schema.OrderSchema],
        throttle=UserDefaultThrottle(),
    )
    @paginate(PageNumberPaginationExtra, page_size=20)
    def list_pending_verification(self, event_id: UUID) -> QuerySet[models.Order]:
        """Orders waiting for a decision, oldest proof first."""
        return order_service.list_pending_verification(self.user(), event_id)

    @route.get(
        "/events/{event_id}/orders",
        url_name="list_event_orders",
        response=PaginatedResponseSchema[schema.OrderSchema],
        throttle=UserDefaultThrottle(),
    )
    @paginate(PageNumberPaginationExtra, page_size=20)
    def list_event_orders(self, event_id: UUID, status: OrderStatus | None = None) -> QuerySet[models.Order]:
        return order_service.list_event_orders(self.user(), event_id, status=status)

    @route.get(
        "/orders/{order_id}",
        url_name="get_event_order",
        response={200: schema.OrderSchema, 403: ErrorResponse, 404: ErrorResponse},
        throttle=UserDefaultThrottle(),
    )
    def get_order(self, order_id: UUID) -> models.Order:
        return order_service.get_order_for_organizer(self.user(), order_id)

    @route.get(
        "/orders/{order_id}/proof-url",
        url_name="get_payment_proof_url",
        response={200: schema.ProofURLSchema, 403: ErrorResponse, 404: ErrorResponse},
        throttle=UserDefaultThrottle(),
    )
    def get_proof_url(self, order_id: UUID) -> schema.ProofURLSchema:
        """A signed link to the proof image. It stops working after ``expires_in`` seconds."""
        url = order_service.get_proof_url(self.user(), order_id)
        return schema.ProofURLSchema(url=url, expires_in=settings.PROOF_URL_EXPIRES_IN)

    @route.post(
        "/tickets/{ticket_id}/cancel",
        url_name="cancel_ticket",
        response={200: schema.TicketSchema, 403: ErrorResponse, 404: ErrorResponse, 409: ErrorResponse},
    )
    def cancel_ticket(self, ticket_id: UUID) -> models.Ticket:
        """Cancel an unused ticket. It will be refused at the gate."""
        return ticket_service.cancel_ticket(self.user(), ticket_id)


@api_controller("/organizer/events/{event_id}", auth=ContextJWTAuth(), tags=["Organizer"], throttle=WriteThrottle())
class OrganizerCatalogController(UserAwareController):
    """Ticket types and payment methods of an event."""

    # ---- Ticket types ----

    @route.get(
        "/ticket-types",
        url_name="list_ticket_types",
        response={200: list[schema.TicketTypeAdminSchema], 403: ErrorResponse, 404: ErrorResponse},
        throttle=UserDefaultThrottle(),
    )
    def list_ticket_types(self, event_id: UUID) -> QuerySet[models.TicketType]:
        return ticket_type_service.list_ticket_types(self.user(), event_id)

    @route.post(
        "/ticket-types",
        url_name="create_ticket_type",
        response={201: schema.TicketTypeAdminSchema, 400: ErrorResponse, 403: ErrorResponse, 404: ErrorResponse},
    )
    def create_ticket_type(
        self, event_id: UUID, payload: schema.TicketTypeCreateSchema
    ) -> tuple[int, models.TicketType]:
        ticket_type = ticket_type_service.create_ticket_type(self.user(), event_id, payload.model_dump())
        return 201, ticket_type

    @route.patch(
        "/ticket-types/{ticket_type_id}",
        url_name="update_ticket_type",
        response={200: schema.TicketTypeAdminSchema, 400: ErrorResponse, 403: ErrorResponse, 404: ErrorResponse},
    )
    def update_ticket_type(
        self, event_id: UUID, ticket_type_id: UUID, payload: schema.TicketTypeUpdateSchema
    ) -> models.TicketType:
        """Update a ticket type. ``total_quantity`` cannot go below what was already sold."""
        return ticket_type_service.update_ticket_type(
            self.user(), event_id, ticket_type_id, payload.model_dump(exclude_unset=True)
        )

    # ---- Payment methods ----

    @route.get(
        "/payment-methods",
        url_name="list_payment_methods",
        response={200: list[schema.PaymentMethodSchema], 403: ErrorResponse, 404: ErrorResponse},
        throttle=UserDefaultThrottle(),
    )
    def list_payment_methods(self, event_id: UUID) -> QuerySet[models.PaymentMethod]:
        return payment_method_service.list_payment_methods(self.user(), event_id)

    @route.post(
        "/payment-methods",
        url_name="create_payment_method",
        response={201: schema.PaymentMethodSchema, 400: ErrorResponse, 403: ErrorResponse, 404: ErrorResponse},
    )
    def create_payment_method(
        self, event_id: UUID, payload: schema.PaymentMethodWriteSchema
    ) -> tuple[int, models.PaymentMethod]:
        """Create a payment method. ``details.kind`` selects the variant and its required fields."""
        method = payment_method_service.create_payment_method(self.user(), event_id, payload.to_model_data())
        return 201, method

    @route.put(
        "/payment-methods/{payment_method_id}",
        url_name="update_payment_method",
        response={200: schema.PaymentMethodSchema, 400: ErrorResponse, 403: ErrorResponse, 404: ErrorResponse},
    )
    def update_payment_method(
        self, event_id: UUID, payment_method_id: UUID, payload: schema.PaymentMethodWriteSchema
    ) -> models.PaymentMethod:
        return payment_method_service.update_payment_method(
            self.user(), event_id, payment_method_id, payload.to_model_data()
        )

    @route.post(
        "/payment-methods/{payment_method_id}/deactivate",
        url_name="deactivate_payment_method",
        response={200: schema.PaymentMethodSchema, 403: ErrorResponse, 404: ErrorResponse},
    )
    def deactivate_payment_method(self, event_id: UUID, payment_method_id: UUID) -> models.PaymentMethod:
        return payment_method_service.deactivate_payment_method(self.user(), event_id, payment_method_id)
