"""
Erreurs métier levées par les services.

Les endpoints les traduisent en HTTPException ; les services ne connaissent pas HTTP.
"""


class NotFound(LookupError):
    def __init__(self, entity: str, entity_id: str):
        super().__init__(f"{entity} not found")
        self.entity = entity
        self.entity_id = entity_id


class InvalidReference(ValueError):
    """Une ligne référence une entité inexistante (ex: product_id inconnu)."""


class InvalidStatusTransition(ValueError):
    def __init__(self, current, requested):
        super().__init__(f"Cannot move order from {current.value} to {requested.value}")
        self.current = current
        self.requested = requested
