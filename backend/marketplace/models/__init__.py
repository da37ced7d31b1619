from marketplace.models.profile import Profile
from marketplace.models.rfq import RFQ
from marketplace.models.supplier_quote import SupplierQuote
from marketplace.models.client_offer import ClientOffer
from marketplace.models.order import Order
from marketplace.models.logistics_job import LogisticsJob
from marketplace.models.city_distance import CityDistance
from marketplace.models.document import Document
from marketplace.models.audit_event import AuditEvent
from marketplace.models.product import ProductCategory, SupplierProduct

__all__ = [
    "Profile",
    "RFQ",
    "SupplierQuote",
    "ClientOffer",
    "Order",
    "LogisticsJob",
    "CityDistance",
    "Document",
    "AuditEvent",
    "ProductCategory",
    "SupplierProduct",
]
