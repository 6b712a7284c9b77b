"""Evidence store port — upload proof of delivery and get a durable reference."""

from abc import ABC, abstractmethod


class EvidenceUploadError(Exception):
    """The evidence store refused or failed to keep the upload."""


class EvidenceStorePort(ABC):
    """Abstract interface for evidence store adapters."""

    @abstractmethod
    def upload_and_get_url(self, content: bytes, filename: str, content_type: str = "image/jpeg") -> str:
        """Store the content and return the URL that references it.

        Raises:
            EvidenceUploadError: when the content could not be stored.
        """
        ...
