"""Closed set of user roles and their capabilities."""

from __future__ import annotations

from enum import Enum


class RoleName(str, Enum):
    SUPER_ADMIN = "SuperAdmin"
    ADMIN = "Administrador"
    SECRETARY = "Secretaría"
    LEADER = "Líder"
    VISITOR = "Visitante"

    @property
    def has_cross_tenant_bypass(self) -> bool:
        """Whether the role may read and write across every church."""
        return self is RoleName.SUPER_ADMIN

    @classmethod
    def parse(cls, value: str | None) -> "RoleName | None":
        """Return the matching role, or None for unknown names."""
        if value is None:
            return None
        try:
            return cls(value)
        except ValueError:
            return None


ROLE_DESCRIPTIONS = {
    RoleName.SUPER_ADMIN: "Acceso total a todas las iglesias",
    RoleName.ADMIN: "Administración completa de su iglesia",
    RoleName.SECRETARY: "Gestión de miembros, eventos y actas",
    RoleName.LEADER: "Registro de eventos y asistencia",
    RoleName.VISITOR: "Acceso de solo lectura",
}

# Shorthand allow-lists shared by the routers
EDITORS = (RoleName.ADMIN, RoleName.SECRETARY, RoleName.LEADER)
ADMIN_AND_SECRETARY = (RoleName.ADMIN, RoleName.SECRETARY)
ADMIN_ONLY = (RoleName.ADMIN,)
