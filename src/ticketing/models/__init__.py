from .order import Order
from .payment_method import PaymentMethod
from .ticket import Ticket
from .ticket_type import TicketType
from .validation import ValidationAttempt

__all__ = [
    "Order",
    "PaymentMethod",
    "Ticket",
    "TicketType",
    "ValidationAttempt",
]
