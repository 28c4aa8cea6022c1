from uuid import UUID

from django.db.models import QuerySet
from django.http import HttpResponse
from ninja_extra import api_controller, route
from ninja_extra.pagination import PageNumberPaginationExtra, PaginatedResponseSchema, paginate

from common.authentication import ContextJWTAuth
from common.controllers import UserAwareController
from common.schema import ErrorResponse
from ticketing import models, schema
from ticketing.service import ticket_service


@api_controller("/tickets", auth=ContextJWTAuth(), tags=["Tickets"])
class MyTicketsController(UserAwareController):
    @route.get("/", url_name="list_my_tickets", response=PaginatedResponseSchema[schema.TicketSchema])
    @paginate(PageNumberPaginationExtra, page_size=20)
    def list_my_tickets(self, event_id: UUID | None = None) -> QuerySet[models.Ticket]:
        """The authenticated user's tickets, optionally for one event."""
        return ticket_service.list_user_tickets(self.user(), event_id=event_id)

    @route.get(
        "/{ticket_id}",
        url_name="get_my_ticket",
        response={200: schema.TicketSchema, 403: ErrorResponse, 404: ErrorResponse},
    )
    def get_my_ticket(self, ticket_id: UUID) -> models.Ticket:
        return ticket_service.get_user_ticket(self.user(), ticket_id)

    @route.get(
        "/{ticket_id}/qr",
        url_name="get_my_ticket_qr",
        response={200: None, 403: ErrorResponse, 404: ErrorResponse},
    )
    def get_my_ticket_qr(self, ticket_id: UUID) -> HttpResponse:
        """The ticket's QR code as a PNG. It encodes the signed reference scanned at the gate."""
        ticket = ticket_service.get_user_ticket(self.user(), ticket_id)
        response = HttpResponse(ticket_service.render_qr_png(ticket), content_type="image/png")
        response["Content-Disposition"] = f'inline; filename="{ticket.ticket_number}.png"'
        response["Cache-Control"] = "private, no-store"
        return response
