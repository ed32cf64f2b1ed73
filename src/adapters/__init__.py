"""Adaptadores de infraestructura: cliente HTTP del servicio y export CSV."""
