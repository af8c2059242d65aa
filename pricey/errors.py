"""Exception types shared across pricey components."""


class PriceyError(Exception):
    """Base class for pricey errors."""


class CollaboratorUnavailable(PriceyError):
    """An external collaborator (embedding service, store) failed or timed out."""


class EmbeddingUnavailable(CollaboratorUnavailable):
    """Raised when the embedding backend cannot produce a vector."""


class CatalogUnavailable(CollaboratorUnavailable):
    """Raised when the product catalog cannot be read or written."""


class PriceHistoryUnavailable(CollaboratorUnavailable):
    """Raised when the price history store cannot be read or written."""
