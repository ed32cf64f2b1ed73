"""Core de la consola: sesión, guardas de ruta, caché y servicios.

No conoce httpx ni Typer; los adaptadores y la CLI dependen de él, no al revés.
"""
