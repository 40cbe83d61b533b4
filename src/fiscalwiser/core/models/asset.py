"""
Asset metadata and market quote models.
"""

from dataclasses import dataclass
from typing import Any

from fiscalwiser.core.exceptions.portfolio import ValidationError
from fiscalwiser.core.types.financial import is_finite_number


@dataclass(frozen=True)
class AssetMetadata:
    """Display snapshot of an asset captured from the last successful quote."""

    id: str
    name: str | None = ""
    symbol: str | None = ""
    image: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert metadata to its stored representation."""
        return {"id": self.id, "name": self.name, "symbol": self.symbol, "image": self.image}

    @classmethod
    def from_dict(cls, data: Any) -> "AssetMetadata":
        """Build metadata from a stored record.

        Raises:
            ValidationError: If the record is not a mapping with a string id,
                or a display field is neither a string nor null
        """
        if not isinstance(data, dict):
            raise ValidationError(f"Metadata must be an object, got {type(data).__name__}")
        asset_id = data.get("id")
        if not isinstance(asset_id, str) or not asset_id:
            raise ValidationError(f"Metadata id must be a non-empty string, got {asset_id!r}")
        for field in ("name", "symbol", "image"):
            value = data.get(field)
            if value is not None and not isinstance(value, str):
                raise ValidationError(f"Metadata {field} must be a string, got {value!r}")
        # Display fields are kept as stored, null and empty strings included
        return cls(
            id=asset_id,
            name=data.get("name", ""),
            symbol=data.get("symbol", ""),
            image=data.get("image"),
        )


@dataclass(frozen=True)
class Quote:
    """Current market price for an asset as returned by a price source."""

    price: float
    change_24h: float | None = None
    metadata: AssetMetadata | None = None

    def __post_init__(self) -> None:
        """Validate quote data after initialization."""
        if not is_finite_number(self.price) or self.price < 0:
            raise ValidationError(f"Quote price must be a non-negative number, got {self.price}")
        if self.change_24h is not None and not is_finite_number(self.change_24h):
            raise ValidationError(f"Quote change_24h must be finite, got {self.change_24h}")
