"""
=============================================================================
CONFIG.PY — Configuración desde variables de entorno
=============================================================================
Lee la configuración del entorno (o de un archivo .env en local).

Obligatorias (si falta alguna, la app NO arranca):
  - DATABASE_URL    → cadena de conexión de SQLAlchemy
  - SESSION_SECRET  → clave para firmar los tokens de sesión
  - OPENAI_API_KEY  → clave del modelo de lenguaje (terapeuta virtual)

Opcionales:
  - OPENAI_MODEL           → modelo de chat (por defecto gpt-3.5-turbo)
  - SESSION_TTL_DAYS       → días que dura una sesión (por defecto 30)
  - SESSION_COOKIE_SECURE  → "true" para enviar la cookie solo por HTTPS
  - BCRYPT_ROUNDS          → coste de bcrypt (por defecto 12)
"""

import os
from dataclasses import dataclass

from dotenv import load_dotenv

REQUIRED_VARS = ("DATABASE_URL", "SESSION_SECRET", "OPENAI_API_KEY")


@dataclass(frozen=True)
class Settings:
    database_url: str
    session_secret: str
    openai_api_key: str
    openai_model: str = "gpt-3.5-turbo"
    session_ttl_days: int = 30
    session_cookie_secure: bool = False
    bcrypt_rounds: int = 12


def _as_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def load_settings() -> Settings:
    """
    Construye los Settings a partir del entorno.

    Nunca usamos un valor por defecto inseguro para los secretos:
    si falta alguna variable obligatoria, lanzamos RuntimeError con TODAS
    las que faltan para arreglarlo de una vez.
    """
    load_dotenv()

    missing = [name for name in REQUIRED_VARS if not os.getenv(name)]
    if missing:
        raise RuntimeError(
            f"Faltan variables de entorno obligatorias: {', '.join(missing)}"
        )

    return Settings(
        database_url=os.environ["DATABASE_URL"],
        session_secret=os.environ["SESSION_SECRET"],
        openai_api_key=os.environ["OPENAI_API_KEY"],
        openai_model=os.getenv("OPENAI_MODEL", "gpt-3.5-turbo"),
        session_ttl_days=int(os.getenv("SESSION_TTL_DAYS", "30")),
        session_cookie_secure=_as_bool(os.getenv("SESSION_COOKIE_SECURE", "false")),
        bcrypt_rounds=int(os.getenv("BCRYPT_ROUNDS", "12")),
    )
