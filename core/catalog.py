"""Static price list of common bodywork services, offered as one-click lines."""

from decimal import Decimal
from typing import NamedTuple


class CatalogService(NamedTuple):
    description: str
    price: Decimal


COMMON_SERVICES: tuple[CatalogService, ...] = (
    CatalogService("Funilaria - Porta", Decimal("450.00")),
    CatalogService("Funilaria - Para-lama", Decimal("350.00")),
    CatalogService("Funilaria - Capô", Decimal("600.00")),
    CatalogService("Pintura - Peça Inteira", Decimal("350.00")),
    CatalogService("Pintura - Retoque", Decimal("200.00")),
    CatalogService("Polimento Completo", Decimal("400.00")),
    CatalogService("Cristalização", Decimal("600.00")),
    CatalogService("Martelinho de Ouro (unid)", Decimal("150.00")),
    CatalogService("Montagem/Desmontagem", Decimal("180.00")),
)


def get_catalog_service(index: int) -> CatalogService:
    """
    Catalog entry by position.

    Raises:
        IndexError: If index is out of range (negative indexes included)
    """
    if not 0 <= index < len(COMMON_SERVICES):
        raise IndexError(f"Catalog index {index} out of range")
    return COMMON_SERVICES[index]
