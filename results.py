"""
=============================================================================
RESULTS.PY — Resultados tipados (Ok / Err)
=============================================================================
Los repositorios y la autenticación NO lanzan excepciones para los fallos
esperados (usuario inexistente, email repetido...). Devuelven:

  Ok(valor)          → todo bien
  Err(tipo, detalle) → fallo esperado, con su ErrorKind

Las rutas (main.py) traducen cada ErrorKind a su código HTTP.
Los fallos INESPERADOS (BD caída, bugs) sí son excepciones y acaban en 500.
"""

import enum
from dataclasses import dataclass
from typing import Any, Generic, TypeVar, Union

T = TypeVar("T")


class ErrorKind(str, enum.Enum):
    not_found = "not_found"              # recurso o progresión inexistente
    owner_not_found = "owner_not_found"  # el usuario dueño no existe
    conflict = "conflict"                # registro duplicado
    bad_password = "bad_password"        # contraseña incorrecta


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T = None


@dataclass(frozen=True)
class Err:
    kind: ErrorKind
    detail: str = ""


Result = Union[Ok[Any], Err]
