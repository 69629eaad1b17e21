"""Read-only catalog of circles and loan offers queried by the ledger engine"""

from decimal import Decimal
from typing import Any, Dict, List, Optional, Protocol, Sequence
from bastion_gateway.domain.models import CatalogCircle, LoanOffer
from bastion_gateway.domain.exceptions import InvalidParametersError


class CatalogProvider(Protocol):
    """Source of externally offered circles and loan listings"""

    def get_circle(self, circle_id: str) -> Optional[CatalogCircle]: ...

    def list_circles(self) -> List[CatalogCircle]: ...

    def list_loan_offers(self) -> List[LoanOffer]: ...


class StaticCatalog:
    """In-memory catalog snapshot"""

    def __init__(self, circles: Sequence[CatalogCircle], loan_offers: Sequence[LoanOffer]):
        self._circles = {c.id: c for c in circles}
        self._loan_offers = list(loan_offers)

    def get_circle(self, circle_id: str) -> Optional[CatalogCircle]:
        return self._circles.get(circle_id)

    def list_circles(self) -> List[CatalogCircle]:
        return list(self._circles.values())

    def list_loan_offers(self) -> List[LoanOffer]:
        return list(self._loan_offers)


SAMPLE_CATALOG: Dict[str, List[Dict[str, Any]]] = {
    "circles": [
        {"id": "circle-1", "name": "Startup Entrepreneurs", "monthly_amount": "200",
         "member_count": 8, "current_members": 6, "status": "active"},
        {"id": "circle-2", "name": "Tech Workers Savings", "monthly_amount": "500",
         "member_count": 10, "current_members": 8, "status": "bidding"},
        {"id": "circle-3", "name": "Small Business Fund", "monthly_amount": "300",
         "member_count": 6, "current_members": 4, "status": "active"},
        {"id": "circle-4", "name": "Student Emergency Fund", "monthly_amount": "100",
         "member_count": 12, "current_members": 10, "status": "distributing"},
    ],
    "loan_offers": [
        {"id": "1", "amount": "500", "interest_rate": "5.5", "duration": 30, "lender": "Alice", "reputation": "4.8"},
        {"id": "2", "amount": "1000", "interest_rate": "6.0", "duration": 45, "lender": "Bob", "reputation": "4.9"},
        {"id": "3", "amount": "750", "interest_rate": "5.8", "duration": 60, "lender": "Charlie", "reputation": "4.7"},
        {"id": "4", "amount": "2000", "interest_rate": "6.2", "duration": 90, "lender": "Diana", "reputation": "5.0"},
    ],
}

_CIRCLE_STATUSES = ("active", "bidding", "distributing")


def catalog_from_payload(data: Dict[str, Any]) -> StaticCatalog:
    """
    Build a catalog snapshot from its JSON representation.

    Raises:
        InvalidParametersError: On missing fields or malformed values
    """
    try:
        circles = []
        for item in data.get("circles", []):
            if item["status"] not in _CIRCLE_STATUSES:
                raise ValueError(f"unknown circle status {item['status']!r}")
            circles.append(
                CatalogCircle(
                    id=str(item["id"]),
                    name=item["name"],
                    monthly_amount=Decimal(str(item["monthly_amount"])),
                    member_count=int(item["member_count"]),
                    current_members=int(item["current_members"]),
                    status=item["status"],
                )
            )

        offers = [
            LoanOffer(
                id=str(item["id"]),
                amount=Decimal(str(item["amount"])),
                interest_rate=Decimal(str(item["interest_rate"])),
                duration=int(item["duration"]),
                lender=item["lender"],
                reputation=Decimal(str(item["reputation"])),
            )
            for item in data.get("loan_offers", [])
        ]
    except (KeyError, ValueError, TypeError, AttributeError, ArithmeticError) as e:
        raise InvalidParametersError(f"Malformed catalog data: {e}") from e

    return StaticCatalog(circles, offers)


def default_catalog() -> StaticCatalog:
    """Built-in sample catalog: four circles and four loan offers"""
    return catalog_from_payload(SAMPLE_CATALOG)
