"""
Accessors for the jCard ("vcardArray") data embedded in RDAP entities.

A vcardArray looks like:

    ["vcard", [
        ["version", {}, "text", "4.0"],
        ["fn", {}, "text", "CloudFlare, Inc."],
        ["email", {"type": "work"}, "text", "abuse@cloudflare.com"],
    ]]

Each property is [name, parameters, value type, value, ...].
"""

from dataclasses import dataclass
from typing import Any

NAME = 0
PARAMETERS = 1
VALUE_TYPE = 2
VALUE = 3


@dataclass(frozen=True)
class VCardProperty:
    name: str
    parameters: dict
    value_type: str
    value: Any


def vcard_properties(entity: dict) -> list[list]:
    """Return the property list of an entity's vcardArray, or [] if absent."""
    if not isinstance(entity, dict):
        return []
    vcard = entity.get("vcardArray")
    if not isinstance(vcard, list) or len(vcard) < 2 or not isinstance(vcard[1], list):
        return []
    return [prop for prop in vcard[1] if isinstance(prop, list) and prop]


def find_property(entity: dict, name: str) -> VCardProperty | None:
    """Find the first property called ``name``."""
    for prop in vcard_properties(entity):
        if prop[NAME] == name:
            params = prop[PARAMETERS] if len(prop) > PARAMETERS else {}
            return VCardProperty(
                name=name,
                parameters=params if isinstance(params, dict) else {},
                value_type=prop[VALUE_TYPE] if len(prop) > VALUE_TYPE else "",
                value=prop[VALUE] if len(prop) > VALUE else None,
            )
    return None


def get_text(entity: dict, name: str) -> str | None:
    """
    Get the value of the first ``name`` property when it is a plain string.

    Structured values (e.g. an "org" given as a list of units) are not
    flattened; they yield None just like a missing property.
    """
    prop = find_property(entity, name)
    if prop is None or not isinstance(prop.value, str):
        return None
    return prop.value
