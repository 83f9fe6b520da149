"""
Source resolution for configuration files.

This module turns a source kind and a path into an open byte stream. Bundled
assets and external storage are plain directories on disk; generic URIs are
opened as local files (``file:`` or bare paths) or fetched over HTTP.
"""

import logging
from pathlib import Path
from typing import BinaryIO, Iterator, Optional, Union
from urllib.parse import urlsplit
from urllib.request import url2pathname

import requests

from ..models.configuration import ConfigurationSource, SourceDescriptor
from ..models.settings import ReaderSettings
from .errors import InvalidArgumentError, IOFailureError


logger = logging.getLogger(__name__)


class _ResponseStream:
    """Read handle over a streamed HTTP response body."""

    def __init__(self, response: requests.Response, chunk_size: int = 16 * 1024):
        self._response = response
        self._chunks: Iterator[bytes] = response.iter_content(chunk_size=chunk_size)
        self._buffer = b""

    def read(self, size: int = -1) -> bytes:
        while size < 0 or len(self._buffer) < size:
            chunk = next(self._chunks, None)
            if chunk is None:
                break
            self._buffer += chunk

        if size < 0:
            data, self._buffer = self._buffer, b""
        else:
            data, self._buffer = self._buffer[:size], self._buffer[size:]
        return data

    def close(self) -> None:
        self._response.close()


class SourceResolver:
    """
    Opens configuration files from assets, external storage or URIs.

    The resolver only opens a read handle; it never buffers the content.
    Callers own the returned stream and must close it.
    """

    LOCAL_SCHEMES = ('', 'file')
    REMOTE_SCHEMES = ('http', 'https')

    def __init__(self, settings: Optional[ReaderSettings] = None):
        """
        Initialize the source resolver.

        Args:
            settings: Reader settings holding the asset and storage roots
        """
        self.settings = settings or ReaderSettings()
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    def open_source(self, source: Union[ConfigurationSource, str], path: str) -> BinaryIO:
        """
        Open a configuration file for reading.

        Args:
            source: Where the file lives
            path: Asset path, path below external storage, or a URI

        Returns:
            Binary read handle for the file

        Raises:
            InvalidArgumentError: If the path is empty or the source is unknown
            IOFailureError: If the file cannot be opened
        """
        if not path:
            raise InvalidArgumentError("Configuration file path is empty")

        try:
            descriptor = SourceDescriptor(source=source, path=path)
        except ValueError as e:
            raise InvalidArgumentError(f"Invalid configuration source {source!r}: {e}") from e

        self.logger.debug(f"Opening configuration source {descriptor}")

        try:
            if descriptor.source is ConfigurationSource.ASSETS:
                return open(self.settings.sources.get_assets_path() / descriptor.path, 'rb')

            if descriptor.source is ConfigurationSource.EXTERNAL_STORAGE:
                uri = self.get_external_storage_file(descriptor.path).as_uri()
            else:
                uri = descriptor.path
            return self._open_uri(uri)

        except (OSError, IOError) as e:
            raise IOFailureError(f"Cannot open configuration source {descriptor}: {e}") from e
        except ValueError as e:
            raise IOFailureError(f"Malformed configuration source {descriptor}: {e}") from e

    def get_external_storage_file(self, path: str) -> Path:
        """
        Resolve a path below the external storage root.

        Leading separators are dropped so the path cannot leave the root by
        being absolute.
        """
        root = self.settings.sources.get_external_storage_path().expanduser().resolve()
        return root / path.lstrip('/\\')

    def _open_uri(self, uri: str) -> BinaryIO:
        """
        Open a generic URI.

        Raises:
            IOFailureError: If no handler exists for the URI scheme
        """
        parts = urlsplit(uri)
        scheme = parts.scheme.lower()

        # single letters are Windows drive names, not schemes
        if scheme in self.LOCAL_SCHEMES or len(scheme) == 1:
            if scheme == 'file':
                if parts.netloc not in ('', 'localhost'):
                    raise IOFailureError(f"Cannot open remote file URI: {uri}")
                return open(url2pathname(parts.path), 'rb')
            return open(uri, 'rb')

        if scheme in self.REMOTE_SCHEMES:
            response = requests.get(uri, stream=True, timeout=self.settings.sources.request_timeout)
            try:
                response.raise_for_status()
            except requests.RequestException:
                response.close()
                raise
            return _ResponseStream(response)

        raise IOFailureError(f"No handler for URI scheme '{parts.scheme}': {uri}")
