"""Taxonomía de errores de la consola.

Por qué un módulo propio:
- Los adaptadores HTTP traducen respuestas a estas excepciones y el Core
  decide qué hacer con ellas (limpiar sesión, dejar la caché intacta).
- La CLI solo necesita capturar `ConsoleError` en el borde del comando.
"""

from __future__ import annotations


GENERIC_FAILURE_MESSAGE = "Action failed. Check network or server logs."


class ConsoleError(Exception):
    """Base de todos los errores que la consola muestra al operador."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class SessionExpiredError(ConsoleError):
    """El servicio respondió 401: la credencial ya no es válida."""

    def __init__(self, message: str = "Session expired or invalid token. Please log in again.") -> None:
        super().__init__(message)


class ServiceError(ConsoleError):
    """Fallo de red o respuesta de error distinta de 401."""

    def __init__(self, message: str | None = None, *, status_code: int | None = None) -> None:
        super().__init__(message or GENERIC_FAILURE_MESSAGE)
        self.status_code = status_code


class LocalGuardError(ConsoleError):
    """Rechazado localmente, antes de cualquier llamada de red."""


class NotAuthenticatedError(LocalGuardError):
    def __init__(self, message: str = "Authentication token missing. Please log in.") -> None:
        super().__init__(message)
