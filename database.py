"""
=============================================================================
DATABASE.PY — Configuración de la Base de Datos
=============================================================================
Este archivo configura la conexión a la base de datos.

La URL llega siempre desde la configuración (DATABASE_URL). No hay valor
por defecto: en producción es PostgreSQL, en los tests SQLite en memoria.

SQLAlchemy: es una librería que te permite hablar con la base de datos
usando Python en vez de escribir SQL directamente.
"""

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool

# ─────────────────────────────────────────────────────────────────────────────
# BASE (Clase base para los modelos)
# ─────────────────────────────────────────────────────────────────────────────
# Todos los modelos (User, Habit, etc.) heredan de esta clase.

Base = declarative_base()


def normalize_database_url(url: str) -> str:
    """
    Railway/Heroku dan la URL con "postgres://" pero SQLAlchemy necesita
    "postgresql://". Además usamos psycopg (v3) como driver, así que la URL
    debe ser "postgresql+psycopg://".
    """
    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql+psycopg://", 1)
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+psycopg://", 1)
    return url


# ─────────────────────────────────────────────────────────────────────────────
# ENGINE (Motor de la base de datos)
# ─────────────────────────────────────────────────────────────────────────────

def create_db_engine(url: str) -> Engine:
    """
    Crea el engine y comprueba que la BD responde.

    connect_args={"check_same_thread": False} → solo necesario para SQLite
    porque SQLite no permite acceso desde múltiples hilos por defecto.
    Con SQLite en memoria ("sqlite://") todas las sesiones deben compartir
    la MISMA conexión, si no cada una vería una BD vacía → StaticPool.
    """
    url = normalize_database_url(url)
    engine_args = {}
    if url.startswith("sqlite"):
        engine_args["connect_args"] = {"check_same_thread": False}
        if url in ("sqlite://", "sqlite:///:memory:"):
            engine_args["poolclass"] = StaticPool

    engine = create_engine(url, echo=False, **engine_args)

    # Si la BD no está disponible, que falle YA (al arrancar) y no en la
    # primera petición.
    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))

    return engine


# ─────────────────────────────────────────────────────────────────────────────
# SESSION (Sesión de base de datos)
# ─────────────────────────────────────────────────────────────────────────────
# Una sesión es una "conversación" con la BD. SessionLocal es una "fábrica".
# expire_on_commit=False → los objetos siguen legibles después del commit
# (los repositorios los convierten a esquemas Pydantic antes de cerrar).

def create_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)


def init_db(engine: Engine):
    """
    Crea todas las tablas en la BD si no existen.
    Se llama una vez al arrancar la aplicación.
    """
    # Importar los modelos registra sus tablas en Base.metadata
    import models  # noqa: F401

    Base.metadata.create_all(bind=engine)
