from uuid import UUID

from django.db.models import QuerySet
from ninja_extra import api_controller, route

from common.authentication import ContextJWTAuth
from common.controllers import UserAwareController
from common.schema import ErrorResponse
from ticketing import models, schema
from ticketing.service import get_event_or_404, payment_method_service, ticket_type_service
from ticketing.service.eligibility import check_eligibility


@api_controller("/events/{event_id}", auth=ContextJWTAuth(), tags=["Catalog"])
class CatalogController(UserAwareController):
    """What a buyer sees before ordering."""

    @route.get(
        "/ticket-types",
        url_name="list_event_ticket_types",
        response={200: list[schema.TicketTypeSchema], 404: ErrorResponse},
    )
    def list_ticket_types(self, event_id: UUID) -> QuerySet[models.TicketType]:
        """Active ticket types with what is left and whether they are on sale right now."""
        return ticket_type_service.list_on_sale(event_id)

    @route.get(
        "/payment-methods",
        url_name="list_event_payment_methods",
        response={200: list[schema.PaymentMethodSchema], 404: ErrorResponse},
    )
    def list_payment_methods(self, event_id: UUID) -> QuerySet[models.PaymentMethod]:
        return payment_method_service.list_active(event_id)

    @route.get(
        "/eligibility",
        url_name="get_purchase_eligibility",
        response={200: schema.EligibilitySchema, 404: ErrorResponse},
    )
    def get_eligibility(self, event_id: UUID) -> schema.EligibilitySchema:
        """Whether the current user may buy tickets for this event, and if not, why."""
        eligibility = check_eligibility(self.user(), get_event_or_404(event_id))
        return schema.EligibilitySchema(
            eligible=eligibility.eligible, reason=eligibility.reason, message=eligibility.message
        )
