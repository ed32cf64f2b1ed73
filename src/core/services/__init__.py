"""Servicios del Core (sync, mutaciones, filtro y el contexto `AdminConsole`)."""
