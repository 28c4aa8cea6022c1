from uuid import UUID

from django.db.models import QuerySet
from ninja_extra import api_controller, route
from ninja_extra.pagination import PageNumberPaginationExtra, PaginatedResponseSchema, paginate

from common.authentication import ContextJWTAuth
from common.controllers import UserAwareController
from common.schema import ErrorResponse
from common.throttling import GateThrottle, UserDefaultThrottle
from ticketing import models, schema
from ticketing.service import audit, ticket_validator


@api_controller("/gate", auth=ContextJWTAuth(), tags=["Gate"], throttle=GateThrottle())
class GateController(UserAwareController):
    """Entry validation. Only an event's organizer may validate its tickets."""

    @route.post(
        "/validate",
        url_name="validate_ticket",
        response={200: schema.ValidationResultSchema, 403: ErrorResponse, 404: ErrorResponse},
    )
    def validate_ticket(self, payload: schema.ValidateTicketSchema) -> ticket_validator.ValidationResult:
        """Validate a scanned reference, or a ticket number typed in with ``method: manual``.

        A refused ticket is still a 200: ``valid`` is false and ``reason`` is one of
        ``invalid_signature``, ``wrong_event``, ``not_found``, ``already_used`` or
        ``invalid``. Every call is recorded in the event's validation history.
        """
        if payload.method == models.ValidationAttempt.Method.MANUAL:
            return ticket_validator.validate_manual(payload.reference, payload.event_id, self.user())
        return ticket_validator.validate(payload.reference, payload.event_id, self.user())

    @route.get(
        "/events/{event_id}/attempts",
        url_name="list_validation_attempts",
        response=PaginatedResponseSchema[schema.ValidationAttemptSchema],
        throttle=UserDefaultThrottle(),
    )
    @paginate(PageNumberPaginationExtra, page_size=50)
    def list_validation_attempts(
        self, event_id: UUID, result: models.ValidationAttempt.Result | None = None
    ) -> QuerySet[models.ValidationAttempt]:
        """The event's validation history, newest first."""
        return audit.list_attempts(self.user(), event_id, result=result)
