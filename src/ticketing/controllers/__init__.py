from .catalog import CatalogController
from .gate import GateController
from .orders import OrderController
from .organizer import OrganizerCatalogController, OrganizerOrderController
from .tickets import MyTicketsController

TICKETING_CONTROLLERS: list[type] = [
    CatalogController,
    OrderController,
    MyTicketsController,
    OrganizerOrderController,
    OrganizerCatalogController,
    GateController,
]

__all__ = [
    "CatalogController",
    "GateController",
    "MyTicketsController",
    "OrderController",
    "OrganizerCatalogController",
    "OrganizerOrderController",
    "TICKETING_CONTROLLERS",
]
