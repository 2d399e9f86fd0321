"""
MatchPair Value Object

The uniqueness key of a match record: one internal product, one external
product key, one source. At most one active (matched) record may exist per
pair.
"""

from pydantic import BaseModel, Field


class MatchPair(BaseModel):
    """
    Immutable (local_product_id, external_product_key, source_id) triple.

    Examples:
        >>> pair = MatchPair(local_product_id="P-1", external_product_key="B00X", source_id="src-1")
        >>> pair.key
        'P-1|B00X|src-1'
    """

    local_product_id: str = Field(..., min_length=1)
    external_product_key: str = Field(..., min_length=1)
    source_id: str = Field(..., min_length=1)

    model_config = {"frozen": True}

    @property
    def key(self) -> str:
        """Stable string form, used as a storage key."""
        return f"{self.local_product_id}|{self.external_product_key}|{self.source_id}"

    def __str__(self) -> str:
        return (
            f"local={self.local_product_id} external={self.external_product_key} "
            f"source={self.source_id}"
        )
