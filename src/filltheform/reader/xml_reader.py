"""
Streaming XML reader for FillTheForm configuration files.

One configuration item is written as ``<id>value</id>``. Items are usually
grouped inside ``<profile name="any_name">`` elements; items outside of a
profile are allowed and carry no profile. Package names are listed with
``<package>`` elements.

The document is scanned once, front to back, and every package and item is
pushed to the sink as soon as it is complete.
"""

import logging
import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from enum import Enum
from typing import BinaryIO, Optional, Tuple, Union

import defusedxml
import defusedxml.ElementTree as _safe_ET

from ..models.configuration import ConfigurationItem, ConfigurationSource
from ..models.settings import ReaderSettings
from .classifier import is_grouping_tag
from .errors import ConfigurationReadError, IOFailureError, MalformedDocumentError
from .sink import ConfigurationSink
from .sources import SourceResolver


logger = logging.getLogger(__name__)

CONFIGURATION_VARIABLE_PATTERN = r"&(\w+);"

PACKAGE_TAG = "package"
PROFILE_TAG = "profile"
PROFILE_NAME_ATTRIBUTE = "name"
LABEL_ATTRIBUTE = "label"

_PREDEFINED_ENTITIES = frozenset({b"amp", b"lt", b"gt", b"quot", b"apos"})
_REFERENCE = re.compile(rb"&(#[0-9]+|#x[0-9a-fA-F]+|\w+);")
_INCOMPLETE_REFERENCE = re.compile(rb"&(?:#x?)?\w*\Z")
_MARKUP_OR_REFERENCE = re.compile(rb"[<&]")

# Regions copied verbatim: ampersands in them are not references.
_VERBATIM_SECTIONS = (
    (b"<![CDATA[", b"]]>"),
    (b"<!--", b"-->"),
    (b"<?", b"?>"),
)


class _EntityEscapingStream:
    """
    Byte stream wrapper that turns stray ampersands into text.

    ``&name;`` placeholders in configuration values are not declared anywhere,
    and values such as URLs often hold a bare ``&``, so a strict tokenizer
    would reject both. The wrapper escapes every ampersand that does not start
    one of the five predefined entities or a character reference. CDATA
    sections, comments and processing instructions are passed through as is.

    A construct cut by a chunk boundary is held back until the next read.
    The input must use an ASCII compatible encoding.
    """

    CHUNK_SIZE = 16 * 1024
    MAX_REFERENCE_LENGTH = 64

    def __init__(self, stream: BinaryIO):
        self._stream = stream
        self._pending = b""
        self._section_end: Optional[bytes] = None

    def read(self, size: int = -1) -> bytes:
        while True:
            chunk = self._stream.read(size if size and size > 0 else self.CHUNK_SIZE)
            at_eof = not chunk
            output, self._pending = self._escape(self._pending + chunk, at_eof)

            # an empty result ends the tokenizer, so only return one at EOF
            if output or at_eof:
                return output

    def _escape(self, data: bytes, at_eof: bool) -> Tuple[bytes, bytes]:
        """Escape what can be decided in data, returning it with the undecided tail."""
        output = bytearray()
        position = 0
        length = len(data)

        while position < length:
            if self._section_end is not None:
                end = data.find(self._section_end, position)
                if end < 0:
                    keep = length if at_eof else max(position, length - len(self._section_end) + 1)
                    output += data[position:keep]
                    return bytes(output), data[keep:]
                end += len(self._section_end)
                output += data[position:end]
                position = end
                self._section_end = None
                continue

            special = _MARKUP_OR_REFERENCE.search(data, position)
            if special is None:
                output += data[position:]
                break

            start = special.start()
            output += data[position:start]

            if data[start:start + 1] == b"<":
                section = next((s for s in _VERBATIM_SECTIONS if data.startswith(s[0], start)), None)
                if section is not None:
                    output += section[0]
                    position = start + len(section[0])
                    self._section_end = section[1]
                elif not at_eof and any(length - start < len(opening) and opening.startswith(data[start:])
                                        for opening, _ in _VERBATIM_SECTIONS):
                    return bytes(output), data[start:]
                else:
                    output += b"<"
                    position = start + 1
                continue

            reference = _REFERENCE.match(data, start)
            if reference is not None:
                name = reference.group(1)
                if name.startswith(b"#") or name in _PREDEFINED_ENTITIES:
                    output += reference.group(0)
                else:
                    output += b"&amp;" + name + b";"
                position = reference.end()
            elif (not at_eof and length - start <= self.MAX_REFERENCE_LENGTH
                  and _INCOMPLETE_REFERENCE.match(data, start)):
                return bytes(output), data[start:]
            else:
                output += b"&amp;"
                position = start + 1

        return bytes(output), b""


class ProfileState(Enum):
    """States of the profile scan."""
    NO_PROFILE = "no_profile"
    IN_PROFILE = "in_profile"


@dataclass(frozen=True)
class ProfileContext:
    """
    Profile currently open during a scan.

    Attributes:
        state: Whether a profile is open
        name: Name of the open profile
    """
    state: ProfileState = ProfileState.NO_PROFILE
    name: Optional[str] = None

    @property
    def is_open(self) -> bool:
        return self.state is ProfileState.IN_PROFILE

    def open(self, name: Optional[str]) -> 'ProfileContext':
        """
        Enter a profile.

        A profile without a name leaves the scan outside of any profile.

        Raises:
            MalformedDocumentError: If another profile is still open
        """
        if self.is_open:
            raise MalformedDocumentError(
                f"Profile '{name}' is nested inside profile '{self.name}'"
            )
        if name is None:
            return ProfileContext()
        return ProfileContext(ProfileState.IN_PROFILE, name)

    def close(self) -> 'ProfileContext':
        """Leave the open profile."""
        return ProfileContext()


@dataclass
class _TextElement:
    """Element whose text content is delivered once its end tag is reached."""
    element: ET.Element
    name: str
    profile: Optional[str] = None
    label: Optional[str] = None
    is_package: bool = False


def _local_name(tag: str) -> str:
    return tag.rsplit('}', 1)[-1]


def _get_attribute(element: ET.Element, name: str) -> Optional[str]:
    """Get an attribute value, matching the attribute name case-insensitively."""
    for key, value in element.attrib.items():
        if _local_name(key).lower() == name:
            return value
    return None


class XmlConfigurationFileReader:
    """
    Reads a configuration document and hands its content to a sink.

    Packages are delivered with ``add_package``. Every other non-structural
    element becomes a ConfigurationItem tagged with the enclosing profile.
    The outcome of a read is reported by exactly one call to
    ``on_reading_completed`` or ``on_reading_failed``; no error escapes.
    """

    def __init__(self,
                 configuration: ConfigurationSink,
                 settings: Optional[ReaderSettings] = None,
                 resolver: Optional[SourceResolver] = None):
        """
        Initialize the reader.

        Args:
            configuration: Sink receiving packages, items and the outcome
            settings: Reader settings (defaults if None)
            resolver: Source resolver (built from settings if None)
        """
        self.configuration = configuration
        self.settings = settings or ReaderSettings()
        self.resolver = resolver or SourceResolver(self.settings)
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    def read_configuration_file(self, source: Union[ConfigurationSource, str], configuration_file_path: str) -> None:
        """
        Read a configuration file into the sink.

        Args:
            source: Where the file lives
            configuration_file_path: Asset path, path below external storage, or a URI
        """
        try:
            stream = self.resolver.open_source(source, configuration_file_path)
        except ConfigurationReadError as e:
            self._fail(e)
            return

        try:
            self.parse(stream)
        finally:
            self._close(stream)

    def parse(self, stream: BinaryIO) -> None:
        """
        Scan an open byte stream and deliver its content to the sink.

        The stream is not closed.
        """
        try:
            self._scan(stream)
        except ConfigurationReadError as e:
            self._fail(e)
            return

        self.logger.info("Configuration file read successfully")
        self.configuration.on_reading_completed()

    def get_configuration_variable_pattern(self) -> str:
        """Get the pattern of ``&name;`` placeholders in configuration values."""
        return CONFIGURATION_VARIABLE_PATTERN

    def _fail(self, error: ConfigurationReadError) -> None:
        self.logger.error(error.describe())
        self.configuration.on_reading_failed(error)

    def _close(self, stream: BinaryIO) -> None:
        # the outcome is already reported, so a failing close is only logged
        try:
            stream.close()
        except (OSError, IOError) as e:
            self.logger.warning(f"Cannot close configuration source: {e}")

    def _scan(self, stream: BinaryIO) -> None:
        """
        Walk the token stream and push packages and items to the sink.

        Raises:
            MalformedDocumentError: If the document cannot be tokenized
            IOFailureError: If reading the stream fails
        """
        if self.settings.parser.relaxed_entities:
            stream = _EntityEscapingStream(stream)

        root_tag = self.settings.parser.root_tag
        context = ProfileContext()
        text_element: Optional[_TextElement] = None
        root: Optional[ET.Element] = None
        depth = 0

        try:
            for event, element in _safe_ET.iterparse(stream, events=('start', 'end')):
                name = _local_name(element.tag)
                normalized = name.lower()

                if event == 'start':
                    if root is None:
                        root = element
                    depth += 1

                    if text_element is not None:
                        raise MalformedDocumentError(
                            f"Unexpected element <{name}> inside <{text_element.name}>"
                        )

                    if normalized == PACKAGE_TAG:
                        if context.is_open:
                            raise MalformedDocumentError(
                                f"Package declared inside profile '{context.name}'"
                            )
                        text_element = _TextElement(element, name, is_package=True)
                    elif normalized == PROFILE_TAG:
                        context = context.open(_get_attribute(element, PROFILE_NAME_ATTRIBUTE))
                    elif context.is_open or not is_grouping_tag(name, root_tag):
                        text_element = _TextElement(
                            element,
                            name,
                            profile=context.name,
                            label=_get_attribute(element, LABEL_ATTRIBUTE)
                        )
                    continue

                depth -= 1
                if text_element is not None and text_element.element is element:
                    self._deliver(text_element, element.text or "")
                    text_element = None
                elif normalized == PROFILE_TAG and context.is_open:
                    context = context.close()

                element.clear()
                if depth == 1:
                    # top-level group done, drop it from the root too
                    del root[:]

        except (ET.ParseError, defusedxml.DefusedXmlException) as e:
            raise MalformedDocumentError(f"Invalid configuration document: {e}") from e
        except (OSError, IOError) as e:
            raise IOFailureError(f"Cannot read configuration document: {e}") from e

    def _deliver(self, text_element: _TextElement, text: str) -> None:
        """Push a completed package or configuration item to the sink."""
        if text_element.is_package:
            self.logger.debug(f"Package: {text}")
            self.configuration.add_package(text)
            return

        item = ConfigurationItem(
            key=text_element.name,
            profile=text_element.profile,
            value=text,
            label=text_element.label
        )
        self.logger.debug(f"Configuration item: {item}")
        self.configuration.add_configuration_item(item)
