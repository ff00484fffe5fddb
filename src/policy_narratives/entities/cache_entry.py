"""Cache entry domain entity."""

from dataclasses import dataclass


@dataclass(frozen=True)
class CacheEntryEntity:
    """Domain entity for a stored generation result.

    Attributes:
        key: Entity identity, optionally namespaced (e.g. "dossier:Salem")
        text: Generated text; dossiers store their JSON-encoded section map
        created_at: Unix timestamp of the generation that produced it
    """

    key: str
    text: str
    created_at: float

    def to_dict(self) -> dict:
        """Convert to the durable JSON form."""
        return {"key": self.key, "text": self.text, "created_at": self.created_at}

    @classmethod
    def from_dict(cls, data: dict) -> "CacheEntryEntity":
        """Build from the durable JSON form.

        Raises:
            KeyError, TypeError, ValueError: If the record is malformed
        """
        text = data["text"]
        if not isinstance(text, str):
            raise TypeError(f"Cache entry text must be a string, got {type(text).__name__}")
        return cls(key=str(data["key"]), text=text, created_at=float(data["created_at"]))
