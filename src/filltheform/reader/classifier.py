"""Classification of structural tags in a configuration document."""

from ..models.settings import DEFAULT_ROOT_TAG


GROUPING_TAGS = frozenset({"packages", "profiles"})


def is_grouping_tag(name: str, root_tag: str = DEFAULT_ROOT_TAG) -> bool:
    """
    Check if a tag only groups other elements.

    Args:
        name: Tag name as found in the document
        root_tag: Name of the document's top-level wrapper element

    Returns:
        True for the root tag, ``packages`` and ``profiles`` (case-insensitive)
    """
    normalized = name.lower()
    return normalized == root_tag.lower() or normalized in GROUPING_TAGS
