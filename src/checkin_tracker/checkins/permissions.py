from __future__ import annotations

from typing import Dict, Optional, Protocol, Tuple

from ..core.enums import Role

UNIVERSAL_ROLES = frozenset({Role.ADMIN, Role.SUPER_ADMIN})

# Station-name keywords (English and Arabic) each restricted role may modify.
ROLE_STATION_KEYWORDS: Dict[Role, Tuple[str, ...]] = {
    Role.SHABEBIK: ("shabebik", "شبابيك"),
    Role.OPTIC_ET_VISION: ("optic", "vision", "بصر", "عيون"),
    Role.MEDICAL: ("medical", "طبي"),
    Role.DENTAL: ("dental", "أسنان"),
}

ROLE_DISPLAY_NAMES: Dict[Role, Tuple[str, str]] = {
    Role.ADMIN: ("Admin", "مشرف"),
    Role.SUPER_ADMIN: ("Super Admin", "المشرف الأعلى"),
    Role.SHABEBIK: ("Registration", "شبابيك"),
    Role.OPTIC_ET_VISION: ("Optics & Vision", "بصريات ورؤية"),
    Role.MEDICAL: ("Medical", "طبي"),
    Role.DENTAL: ("Dental", "أسنان"),
}


def can_modify(role: Role, station_name: str) -> bool:
    if role in UNIVERSAL_ROLES:
        return True
    name = (station_name or "").lower()
    return any(keyword in name for keyword in ROLE_STATION_KEYWORDS.get(role, ()))


def role_display_name(role: Role, *, arabic: bool = False) -> str:
    english, translated = ROLE_DISPLAY_NAMES.get(role, (role.value, role.value))
    return translated if arabic else english


class RoleDirectory(Protocol):
    """Actor identity -> role tag. Backed by the external profile store."""

    async def role_for(self, actor_id: str) -> Optional[Role]:
        raise NotImplementedError
