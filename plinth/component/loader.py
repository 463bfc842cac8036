"""
Component Descriptor Loader.

This module parses ``META-INF/components-def.xml`` documents into
ComponentDescriptor objects.

Key features:
- One document may declare many components
- Required field validation (name, code, version, enter)
- Inline config items, extension properties and listener references
- Malformed entries are skipped without losing their siblings
"""

import logging
import xml.etree.ElementTree as ET

from plinth.component.descriptor import (
    LISTENER_TYPES,
    ComponentDescriptor,
    ListenerRef,
)
from plinth.component.origin import ARCHIVE_ERRORS, DESCRIPTOR_NAME, Origin
from plinth.errors import DescriptorParseError

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("name", "code", "version", "enter")


def _text(element: ET.Element | None) -> str:
    if element is None or element.text is None:
        return ""
    return element.text.strip()


def _named_values(parent: ET.Element | None, tag: str, code: str) -> dict[str, str]:
    """Collect ``<tag name="...">value</tag>`` children into a mapping."""
    values: dict[str, str] = {}
    if parent is None:
        return values
    for child in parent.findall(tag):
        name = (child.get("name") or "").strip()
        if not name:
            logger.warning("Ignoring <%s> without a name in component %s", tag, code)
            continue
        values[name] = _text(child)
    return values


def _parse_listener(element: ET.Element | None, code: str) -> ListenerRef | None:
    if element is None:
        return None

    listener_type = (element.get("type") or "").strip()
    identifier = _text(element)
    kind = LISTENER_TYPES.get(listener_type)

    if kind is None:
        logger.error("Unknown listener type '%s' for component %s.", listener_type, code)
        return None
    if not identifier:
        logger.error("Empty listener identifier for component %s.", code)
        return None

    return ListenerRef(kind=kind, identifier=identifier)


def parse_component(element: ET.Element) -> ComponentDescriptor:
    """
    Build a descriptor from one ``<component>`` element.

    Args:
        element: Parsed component element

    Returns:
        ComponentDescriptor with no origin and no resolved listener

    Raises:
        DescriptorParseError: If a required field is missing or blank
    """
    values = {tag: _text(element.find(tag)) for tag in REQUIRED_FIELDS}
    for tag in REQUIRED_FIELDS:
        if not values[tag]:
            raise DescriptorParseError(
                f"Missing required field: {tag} (component {values['code'] or '?'})"
            )

    code = values["code"]
    config_file = _text(element.find("config-file")) or None

    config_el = element.find("config")
    if config_el is not None and (config_el.get("file") or "").strip():
        config_file = config_el.get("file").strip()

    return ComponentDescriptor(
        name=values["name"],
        code=code,
        version=values["version"],
        entry_point=values["enter"],
        description=_text(element.find("description")),
        config_file=config_file,
        inline_config=_named_values(config_el, "item", code),
        properties=_named_values(element.find("properties"), "property", code),
        listener_ref=_parse_listener(element.find("listener"), code),
    )


def parse_document(content: bytes, source: str = "<memory>") -> list[ComponentDescriptor]:
    """
    Parse a descriptor document.

    Entries that fail validation are logged and skipped.

    Args:
        content: Raw XML bytes
        source: Human-readable origin used in messages

    Returns:
        Descriptors in document order

    Raises:
        DescriptorParseError: If the document itself is not well-formed
    """
    try:
        root = ET.fromstring(content)
    except ET.ParseError as e:
        raise DescriptorParseError(f"Failed to parse descriptor {source}: {e}") from e

    descriptors = []
    for element in root.findall("component"):
        try:
            descriptors.append(parse_component(element))
        except DescriptorParseError as e:
            logger.error("Skipping component in %s: %s", source, e)

    return descriptors


def load_descriptors(origin: Origin) -> list[ComponentDescriptor]:
    """
    Read and parse the descriptor file of an origin.

    Args:
        origin: Archive or directory to read from

    Returns:
        Descriptors with ``origin`` set; empty if the origin has no file

    Raises:
        DescriptorParseError: If the file cannot be read or parsed
    """
    try:
        content = origin.read(DESCRIPTOR_NAME)
    except ARCHIVE_ERRORS as e:
        raise DescriptorParseError(f"Failed to read {DESCRIPTOR_NAME} in {origin}: {e}") from e

    if content is None:
        return []

    descriptors = parse_document(content, source=f"{origin}!/{DESCRIPTOR_NAME}")
    for descriptor in descriptors:
        descriptor.origin = origin
    return descriptors
