from decimal import Decimal

import pytest
from django.core.exceptions import ValidationError

from accounts.models import User
from events.models import Event
from ticketing.exceptions import AuthorizationError, NotFoundError
from ticketing.models import Order, PaymentMethod, TicketType
from ticketing.service import payment_method_service, ticket_type_service

pytestmark = pytest.mark.django_db


class TestTicketTypes:
    def test_create_ignores_sold_count(self, organizer: User, event: Event) -> None:
        ticket_type = ticket_type_service.create_ticket_type(
            organizer,
            event.id,
            {"name": "VIP", "price": Decimal("5000"), "total_quantity": 3, "sold_count": 3},
        )

        assert ticket_type.sold_count == 0
        assert ticket_type.available == 3

    def test_only_the_organizer_configures(self, other_organizer: User, event: Event) -> None:
        with pytest.raises(AuthorizationError):
            ticket_type_service.create_ticket_type(
                other_organizer, event.id, {"name": "VIP", "price": Decimal("1"), "total_quantity": 1}
            )

    def test_cannot_shrink_below_sold(self, organizer: User, event: Event, paid_order: Order) -> None:
        ticket_type = paid_order.ticket_type

        with pytest.raises(ValidationError):
            ticket_type_service.update_ticket_type(organizer, event.id, ticket_type.id, {"total_quantity": 1})

        updated = ticket_type_service.update_ticket_type(organizer, event.id, ticket_type.id, {"total_quantity": 2})
        assert updated.total_quantity == 2
        assert updated.available == 0

    def test_type_of_another_event_is_not_found(
        self, other_organizer: User, other_event: Event, ticket_type: TicketType
    ) -> None:
        with pytest.raises(NotFoundError):
            ticket_type_service.get_ticket_type(other_organizer, other_event.id, ticket_type.id)

    def test_list_on_sale_hides_inactive(self, event: Event, ticket_type: TicketType) -> None:
        TicketType.objects.create(event=event, name="Retired", price=Decimal("1"), total_quantity=1, is_active=False)

        assert list(ticket_type_service.list_on_sale(event.id)) == [ticket_type]


class TestPaymentMethods:
    def test_switching_kind_clears_the_old_variant(
        self, organizer: User, event: Event, payment_method: PaymentMethod
    ) -> None:
        method = payment_method_service.update_payment_method(
            organizer,
            event.id,
            payment_method.id,
            {
                "name": "JazzCash",
                "kind": "mobile_wallet",
                "provider": "jazzcash",
                "account_title": "Org",
                "phone_number": "03001112222",
            },
        )

        assert method.kind == PaymentMethod.Kind.MOBILE_WALLET
        assert method.bank_name == ""
        assert method.account_number == ""
        assert method.phone_number == "03001112222"

    def test_incomplete_variant_is_refused(self, organizer: User, event: Event) -> None:
        with pytest.raises(ValidationError):
            payment_method_service.create_payment_method(
                organizer, event.id, {"name": "Wallet", "kind": "mobile_wallet", "provider": "easypaisa"}
            )

    def test_deactivate_hides_from_buyers(self, organizer: User, event: Event, payment_method: PaymentMethod) -> None:
        payment_method_service.deactivate_payment_method(organizer, event.id, payment_method.id)

        assert not payment_method_service.list_active(event.id).exists()
        assert payment_method_service.list_payment_methods(organizer, event.id).count() == 1

    def test_buyer_cannot_manage(self, buyer: User, event: Event, payment_method: PaymentMethod) -> None:
        with pytest.raises(AuthorizationError):
            payment_method_service.deactivate_payment_method(buyer, event.id, payment_method.id)
