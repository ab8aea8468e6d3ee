"""Loading raw interchange documents from disk or over HTTP."""

from pathlib import Path

import httpx
import structlog

log = structlog.get_logger()


class SourceError(Exception):
    """Raised when a document cannot be read from its source."""


class DocumentSource:
    """Reads interchange documents from local paths or http(s) URLs."""

    def __init__(self, timeout: float = 30.0, transport: httpx.BaseTransport | None = None) -> None:
        self._client = httpx.Client(timeout=timeout, transport=transport, follow_redirects=True)

    def read(self, location: str | Path) -> str:
        """Return the document text at *location*.

        Raises:
            SourceError: if the file is missing, the request fails or the
                document is empty
        """
        location = str(location)
        if location.startswith(("http://", "https://")):
            text = self._fetch(location)
        else:
            text = self._read_file(Path(location))

        if not text.strip():
            raise SourceError(f"Document is empty: {location}")

        log.info("document_loaded", location=location, characters=len(text))
        return text

    def _fetch(self, url: str) -> str:
        try:
            response = self._client.get(url)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise SourceError(f"Failed to load {url}: {e}") from e
        return response.text

    def _read_file(self, path: Path) -> str:
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise SourceError(f"Failed to read {path}: {e}") from e

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "DocumentSource":
        return self

    def __exit__(self, *args: object) -> None:
        self.close()
