"""Human-readable titles for roles and abilities."""

import re
from typing import Optional

WILDCARD = "*"


def humanize(name: str) -> str:
    """Turn a machine name into a sentence-cased title ("ban-users" -> "Ban users")."""
    words = re.sub(r"(?<=[a-z0-9])(?=[A-Z])", " ", name)
    words = re.sub(r"[-_\s]+", " ", words).strip().lower()
    return words[:1].upper() + words[1:]


def ability_title(
    name: str,
    entity_type: Optional[str] = None,
    entity_id: Optional[str] = None
) -> str:
    """Describe an ability the way an admin screen would list it."""
    if name == WILDCARD:
        if entity_type == WILDCARD:
            return "All abilities"
        if entity_type is None:
            return "All simple abilities"
        if entity_id is None:
            return f"Manage {humanize(entity_type).lower()}s"
        return f"Manage {humanize(entity_type).lower()} #{entity_id}"

    action = humanize(name)
    if entity_type is None:
        return action
    if entity_type == WILDCARD:
        return f"{action} everything"
    if entity_id is None:
        return f"{action} {humanize(entity_type).lower()}s"
    return f"{action} {humanize(entity_type).lower()} #{entity_id}"
