"""
=============================================================================
MODELS.PY — Todos los Modelos (Tablas) de la Base de Datos
=============================================================================
Cada clase aquí = una tabla en la base de datos.
Cada atributo de la clase = una columna en esa tabla.

PROPIEDAD:
  Todo lo que no es User pertenece a UN usuario (columna user_id).
  El usuario NO guarda listas de sus cosas: se consultan por user_id.

  USER
  ├── sessions          (sesiones abiertas)
  ├── journals
  ├── habits
  ├── exercises
  ├── exercise_progressions ──→ exercise_progression_saves[]
  └── messages
"""

from datetime import datetime
from sqlalchemy import (
    Column, Integer, String, Float, Text, DateTime, ForeignKey, JSON, UniqueConstraint
)
from sqlalchemy.orm import relationship
from database import Base


# =============================================================================
# ===================== TABLA 1: USERS ========================================
# =============================================================================

class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)

    email = Column(String(255), unique=True, nullable=False, index=True)
    # unique=True → si dos registros simultáneos pasan la comprobación previa,
    # la BD rechaza el segundo (IntegrityError → 409)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    password_hash = Column(String(255), nullable=False)
    # password_hash → bcrypt ("$2b$12$..."). Nunca sale de credentials/auth.

    created_at = Column(DateTime, default=datetime.utcnow)


# =============================================================================
# ===================== TABLA 2: SESSIONS =====================================
# =============================================================================

class UserSession(Base):
    __tablename__ = "sessions"

    id = Column(String(64), primary_key=True)
    # id → identificador opaco y aleatorio (secrets.token_urlsafe)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    # user_id → lo ÚNICO que guardamos de la identidad del usuario

    created_at = Column(DateTime, default=datetime.utcnow)
    expires_at = Column(DateTime, nullable=False)


# =============================================================================
# ===================== TABLA 3: JOURNALS =====================================
# =============================================================================

class Journal(Base):
    __tablename__ = "journals"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    mood = Column(Float, nullable=False)
    # mood → escala numérica del estado de ánimo
    content = Column(Text, nullable=False)
    date = Column(String(50), nullable=False)
    # date → texto tal cual lo manda el cliente


# =============================================================================
# ===================== TABLA 4: HABITS =======================================
# =============================================================================

class Habit(Base):
    __tablename__ = "habits"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    name = Column(String(100), nullable=False)
    daily_goal = Column(Float, nullable=False)
    streak = Column(Integer, default=0, nullable=False)
    # streak → se guarda pero ninguna operación lo incrementa todavía


# =============================================================================
# ===================== TABLA 5: EXERCISES ====================================
# =============================================================================

class Exercise(Base):
    __tablename__ = "exercises"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    name = Column(String(100), nullable=False)
    weight = Column(Float, nullable=False)
    repetition1 = Column(Integer, nullable=False)
    repetition2 = Column(Integer, nullable=False)
    repetition3 = Column(Integer, nullable=False)


# =============================================================================
# ===================== TABLA 6: EXERCISE_PROGRESSIONS ========================
# =============================================================================
# Una progresión por ejercicio. Sin ForeignKey a exercises a propósito:
# si se borra el ejercicio la progresión se queda huérfana.

class ExerciseProgression(Base):
    __tablename__ = "exercise_progressions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    exercise_id = Column(Integer, nullable=False, unique=True, index=True)

    saves = relationship(
        "ExerciseProgressionSave",
        back_populates="progression",
        order_by="ExerciseProgressionSave.id",
        cascade="all, delete-orphan",
    )
    # order_by id → orden de primera escritura de cada fecha


class ExerciseProgressionSave(Base):
    __tablename__ = "exercise_progression_saves"

    id = Column(Integer, primary_key=True, autoincrement=True)
    progression_id = Column(Integer, ForeignKey("exercise_progressions.id"), nullable=False)

    weight = Column(Float, nullable=False)
    date = Column(String(10), nullable=False)
    # date → "YYYY-MM-DD" (día local del servidor)

    __table_args__ = (
        UniqueConstraint('progression_id', 'date', name='uq_progression_date'),
    )
    # Como mucho UNA muestra por día

    progression = relationship("ExerciseProgression", back_populates="saves")


# =============================================================================
# ===================== TABLA 7: MESSAGES =====================================
# =============================================================================

class Messages(Base):
    __tablename__ = "messages"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    messages = Column(JSON, nullable=False, default=list)
    # messages → [{"message": "Hola", "texter": "user"}, ...]
