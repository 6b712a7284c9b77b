"""Fake evidence store — keeps uploads in memory and hands back fake URLs."""

from uuid import uuid4

from shipping.evidence.port import EvidenceStorePort, EvidenceUploadError


class FakeEvidenceStore(EvidenceStorePort):
    def __init__(self):
        self.uploads: dict[str, dict] = {}
        self.should_succeed = True
        self.failure_reason = "Evidence storage unavailable"

    def configure(self, should_succeed: bool = True, failure_reason: str = "Evidence storage unavailable"):
        """Configure the fake store behavior for testing."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def upload_and_get_url(self, content: bytes, filename: str, content_type: str = "image/jpeg") -> str:
        if not self.should_succeed:
            raise EvidenceUploadError(self.failure_reason)
        if not content:
            raise EvidenceUploadError("Cannot store an empty upload")

        key = f"{uuid4().hex[:12]}-{filename}"
        url = f"https://evidence.fake-store.example.com/delivery/{key}"
        self.uploads[url] = {"filename": filename, "content_type": content_type, "size": len(content)}
        return url

    def reset(self):
        """Forget stored uploads (useful between tests)."""
        self.uploads.clear()
        self.should_succeed = True
        self.failure_reason = "Evidence storage unavailable"
