"""Output key assignment for standard fields and properties."""

from collections.abc import Iterable

from jsonlayout.validation import STANDARD_FIELD_NAMES

PROPERTY_NAME_PREFIX = "properties_"


def resolve_names(
    property_names: Iterable[str],
    prefix: str = PROPERTY_NAME_PREFIX,
    reserved: Iterable[str] = STANDARD_FIELD_NAMES,
) -> list[str]:
    """Return one output key per property name, in the same order.

    The first use of a name keeps it bare. A name already taken, by a
    standard field or an earlier property, gets ``prefix`` prepended once.
    The prefixed form is not checked again, so a name used three times
    yields the same prefixed key twice.
    """
    used = set(reserved)
    keys = []
    for name in property_names:
        key = name if name not in used else prefix + name
        used.add(key)
        keys.append(key)
    return keys
