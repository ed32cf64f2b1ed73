"""Modelos del dominio (Pydantic v2).

Por qué Pydantic en el dominio:
- Nos da validación estricta y documentación autocontenida (Field) sin acoplar
  el Core a librerías de I/O.
- Normaliza las respuestas heterogéneas del servicio (cuentas, listings) a
  un único `EntityRecord`.

Nota:
- Estos modelos describen *qué* es la información, no *cómo* se obtiene.
- Un `EntityRecord` solo se construye como copia de una respuesta del servidor.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic.config import ConfigDict


def _as_text(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)):
        return str(value)
    return None


class ModerationStatus(str, Enum):
    ACTIVE = "Active"
    BLOCKED = "Blocked"
    PENDING = "Pending"
    PUBLISHED = "Published"


class CollectionKey(str, Enum):
    """Colecciones remotas que la consola mantiene en caché."""

    OWNERS = "owners"
    CLIENTS = "clients"
    LISTINGS = "listings"

    @property
    def is_accounts(self) -> bool:
        return self is not CollectionKey.LISTINGS

    @property
    def role_param(self) -> str | None:
        """Valor de `?role=` para `/api/users/list`."""

        if self is CollectionKey.OWNERS:
            return "owner"
        if self is CollectionKey.CLIENTS:
            return "user"
        return None


class AdminProfile(BaseModel):
    """Perfil del operador autenticado."""

    model_config = ConfigDict(frozen=True)

    display_name: str = Field(
        default="Admin",
        min_length=1,
        description="Nombre visible del operador.",
    )
    role: str = Field(
        default="admin",
        description="Rol declarado por el servicio.",
    )
    is_restricted_agent: bool = Field(
        default=False,
        description="Perfil de agente con un subconjunto reducido de pantallas.",
    )

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "AdminProfile":
        """Construye el perfil desde la respuesta de login (`name`, `role`, `isEnvAgent`)."""

        name = _as_text(payload.get("name")) or "Admin"
        role = _as_text(payload.get("role")) or "admin"
        return cls(
            display_name=name,
            role=role,
            is_restricted_agent=bool(payload.get("isEnvAgent")),
        )


class Session(BaseModel):
    """Identidad + credencial del operador.

    Invariante: hay token si y solo si hay perfil.
    """

    model_config = ConfigDict(frozen=True)

    token: str | None = Field(default=None, min_length=1)
    profile: AdminProfile | None = None

    @model_validator(mode="after")
    def _token_iff_profile(self) -> "Session":
        if (self.token is None) != (self.profile is None):
            raise ValueError("token and profile must be both present or both absent")
        return self

    @classmethod
    def empty(cls) -> "Session":
        return cls()

    @property
    def is_authenticated(self) -> bool:
        return self.token is not None

    @property
    def is_restricted_agent(self) -> bool:
        return bool(self.profile and self.profile.is_restricted_agent)


class Address(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    line1: str | None = None
    city: str | None = None
    state: str | None = None
    pincode: str | None = None

    @field_validator("line1", "city", "state", "pincode", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> str | None:
        return _as_text(value)


def _address_from(value: Any) -> Address | None:
    if isinstance(value, dict):
        return Address.model_validate(value)
    return None


class EntityRecord(BaseModel):
    """Snapshot inmutable de una entidad remota (cuenta o listing).

    Por qué inmutable:
    - Los parches de moderación producen una copia (`model_copy`), así el resto
      de campos y registros quedan idénticos a lo que envió el servidor.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1, description="Identidad única dentro de la colección.")
    display_name: str = Field(default="", description="Nombre (cuentas) o título (listings).")
    email: str | None = None
    phone: str | None = None
    role: str | None = Field(
        default=None,
        description="Rol de la cuenta o categoría del listing.",
    )
    status: ModerationStatus
    created_at: str | None = Field(default=None, description="Timestamp crudo del servidor.")
    address: Address | None = None
    attributes: dict[str, Any] = Field(
        default_factory=dict,
        description="Payload completo del servidor (atributos de dominio).",
    )

    @classmethod
    def from_account(cls, payload: dict[str, Any]) -> "EntityRecord":
        """Mapea un elemento de `/api/users/list`."""

        return cls(
            id=_as_text(payload.get("id")) or _as_text(payload.get("_id")) or "",
            display_name=_as_text(payload.get("name")) or "",
            email=_as_text(payload.get("email")),
            phone=_as_text(payload.get("phone")),
            role=_as_text(payload.get("role")),
            status=ModerationStatus.BLOCKED if payload.get("isBlocked") else ModerationStatus.ACTIVE,
            created_at=_as_text(payload.get("createdAt")),
            address=_address_from(payload.get("address")),
            attributes=dict(payload),
        )

    @classmethod
    def from_listing(cls, payload: dict[str, Any]) -> "EntityRecord":
        """Mapea un elemento de `/api/properties/list`."""

        category = None
        for key in ("propertyType", "category"):
            value = payload.get(key)
            if isinstance(value, dict):
                category = _as_text(value.get("name"))
            elif isinstance(value, str):
                category = value
            if category:
                break

        contact = payload.get("owner") if isinstance(payload.get("owner"), dict) else {}
        return cls(
            id=_as_text(payload.get("_id")) or _as_text(payload.get("id")) or "",
            display_name=_as_text(payload.get("title")) or "Untitled Property",
            email=_as_text(payload.get("email")) or _as_text(contact.get("email")),
            phone=_as_text(payload.get("phone")) or _as_text(contact.get("phone")),
            role=category,
            status=ModerationStatus.PUBLISHED if payload.get("isApproved") else ModerationStatus.PENDING,
            created_at=_as_text(payload.get("createdAt")),
            address=_address_from(payload.get("address")),
            attributes=dict(payload),
        )

    def with_status(self, status: ModerationStatus) -> "EntityRecord":
        return self.model_copy(update={"status": status})

    def search_text(self) -> str:
        parts = (self.display_name, self.email, self.phone, self.role)
        return " ".join(p or "" for p in parts).lower()


class RoutePolicy(BaseModel):
    """Política estática de un destino navegable."""

    model_config = ConfigDict(frozen=True)

    requires_session: bool = True
    allow_restricted_agent: bool = True


class StatusPredicate(str, Enum):
    ANY = "Any"
    ACTIVE = "Active"
    BLOCKED = "Blocked"
    PENDING = "Pending"
    PUBLISHED = "Published"

    def matches(self, status: ModerationStatus) -> bool:
        if self is StatusPredicate.ANY:
            return True
        return self.value == status.value


class FilterCriteria(BaseModel):
    """Estado efímero de la UI: texto de búsqueda + filtro de estado."""

    query_text: str = ""
    status_predicate: StatusPredicate = StatusPredicate.ANY


class ModerationAction(str, Enum):
    BLOCK = "block"
    UNBLOCK = "unblock"
    APPROVE = "approve"
    DISAPPROVE = "disapprove"
    DELETE = "delete"

    def applies_to(self, collection: CollectionKey) -> bool:
        if self in (ModerationAction.BLOCK, ModerationAction.UNBLOCK):
            return collection.is_accounts
        return collection is CollectionKey.LISTINGS
