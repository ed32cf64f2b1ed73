"""Configuración del Core.

Por qué aquí:
- Centraliza variables de entorno (pydantic-settings) sin contaminar la CLI.
- Permite que adaptadores (HTTP/export) y la sesión lean config de forma consistente.
"""

from __future__ import annotations

from pathlib import Path
from typing import Mapping

import typer
from dotenv import dotenv_values, set_key
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

APP_NAME = "modconsole"
_ENV_HEADER = "# modconsole user config (.env)\n"


def get_user_config_dir() -> Path:
    """Carpeta de config del operador; aquí viven el `.env` global y la sesión."""

    return Path(typer.get_app_dir(APP_NAME))


def get_user_env_file() -> Path:
    return get_user_config_dir() / ".env"


def read_user_env_vars(env_path: Path | None = None) -> dict[str, str]:
    env_path = env_path or get_user_env_file()
    if not env_path.is_file():
        return {}
    return {key: value for key, value in dotenv_values(env_path).items() if value is not None}


def write_user_env_vars(values: Mapping[str, str | None], *, env_path: Path | None = None) -> Path:
    """Actualiza claves en el .env global sin tocar las que ya estaban."""

    env_path = env_path or get_user_env_file()
    env_path.parent.mkdir(parents=True, exist_ok=True)
    if not env_path.exists():
        env_path.write_text(_ENV_HEADER, encoding="utf-8")

    for key, value in sorted(values.items()):
        if value is None:
            continue
        set_key(str(env_path), key, value, quote_mode="never")
    return env_path


class AppSettings(BaseSettings):
    """Configuración central de la consola.

    Por qué pydantic-settings:
    - Tipado + validación en el borde (env vars) sin ensuciar el Core con lógica.
    - Un único contrato de configuración para CLI/adapters.
    """

    model_config = SettingsConfigDict(
        env_prefix="MODCONSOLE_",
        extra="ignore",
        case_sensitive=False,
        # Orden: proyecto primero (dev), luego config global de usuario.
        env_file=(".env", str(get_user_env_file())),
        env_file_encoding="utf-8",
    )

    api_base_url: str = Field(
        default="http://localhost:9000",
        min_length=8,
        description="Base URL del servicio remoto de moderación.",
    )
    login_path: str = Field(
        default="/api/admin/login",
        min_length=1,
        description="Ruta del endpoint de login de administradores.",
    )
    http_timeout_seconds: float = Field(
        default=20.0,
        gt=0,
        description="Timeout por request (segundos). Un timeout cuenta como fallo transitorio.",
    )
    user_agent: str = Field(
        default="modconsole/0.1 (+https://local)",
        min_length=1,
        description="User-Agent enviado al servicio remoto.",
    )

    session_path: Path = Field(
        default_factory=lambda: get_user_config_dir() / "session.json",
        description="Fichero donde se persiste la sesión (token + perfil).",
    )
    export_dir: Path = Field(
        default=Path("exports"),
        description="Directorio por defecto para los CSV exportados.",
    )

    log_level: str = Field(
        default="WARNING",
        description="Nivel de logging (DEBUG, INFO, WARNING, ERROR).",
    )
