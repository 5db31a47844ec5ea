"""Modelos y entidades del dominio.

Por qué:
- Aquí viven las estructuras de datos puras (Pydantic v2, dataclasses) y la
  taxonomía de errores.
- El dominio no conoce httpx, CLI, ni el servidor: solo conceptos del problema.
"""
