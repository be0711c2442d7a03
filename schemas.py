"""
=============================================================================
SCHEMAS.PY — Esquemas de Validación (Pydantic)
=============================================================================
¿Por qué separar Models y Schemas?
  - Models (SQLAlchemy) → definen las TABLAS de la BD
  - Schemas (Pydantic) → definen qué DATOS acepta/devuelve la API
                         y qué devuelven los repositorios

Los repositorios NUNCA devuelven objetos de SQLAlchemy: los convierten a
estos esquemas (XxxRecord) antes de cerrar la sesión de BD.

En la API los campos viajan en camelCase ("firstName", "habitDailyGoal"...)
y en Python en snake_case. to_camel hace la traducción.

Convención de nombres:
  XxxCreate → para crear algo nuevo (POST)
  XxxUpdate → para actualizar algo (PUT)
  XxxRecord → lo que devuelven repositorios y API
"""

from pydantic import BaseModel, Field, EmailStr
from pydantic.alias_generators import to_camel
from typing import Optional


class CamelModel(BaseModel):
    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
        "from_attributes": True,
    }


# =============================================================================
# ===================== AUTH ==================================================
# =============================================================================

class UserRegister(CamelModel):
    """Datos para registrar un usuario nuevo"""
    email: EmailStr
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    password: str = Field(min_length=6, description="Mínimo 6 caracteres")

class UserLogin(CamelModel):
    """Datos para iniciar sesión"""
    email: EmailStr
    password: str

class Principal(CamelModel):
    """
    Identidad del usuario autenticado.
    SIN password_hash: esto es lo único que sale hacia fuera.
    """
    id: int
    email: str
    first_name: str
    last_name: str


# =============================================================================
# ===================== JOURNAL ===============================================
# =============================================================================

class JournalCreate(CamelModel):
    mood: float
    content: str = Field(min_length=1)
    date: str = Field(min_length=1)
    user_email: Optional[EmailStr] = None
    # user_email → opcional si hay sesión iniciada

class JournalRecord(CamelModel):
    id: int
    user_id: int
    mood: float
    content: str
    date: str


# =============================================================================
# ===================== HABITS ================================================
# =============================================================================

class HabitCreate(CamelModel):
    habit_name: str = Field(min_length=1, max_length=100)
    habit_daily_goal: float = Field(ge=0)
    user_email: Optional[EmailStr] = None

class HabitRecord(CamelModel):
    id: int
    user_id: int
    name: str
    daily_goal: float
    streak: int = 0


# =============================================================================
# ===================== EXERCISES =============================================
# =============================================================================

class ExerciseCreate(CamelModel):
    exercise_name: str = Field(min_length=1, max_length=100)
    exercise_weight: float = Field(ge=0)
    repetition1: int = Field(ge=0)
    repetition2: int = Field(ge=0)
    repetition3: int = Field(ge=0)
    user_email: Optional[EmailStr] = None

class ExerciseUpdate(CamelModel):
    """Reemplazo completo de nombre, peso y repeticiones"""
    exercise_id: int
    exercise_name: str = Field(min_length=1, max_length=100)
    exercise_weight: float = Field(ge=0)
    repetition1: int = Field(ge=0)
    repetition2: int = Field(ge=0)
    repetition3: int = Field(ge=0)

class ExerciseRecord(CamelModel):
    id: int
    user_id: int
    name: str
    weight: float
    repetition1: int
    repetition2: int
    repetition3: int


class ProgressionSample(CamelModel):
    weight: float
    date: str

class ExerciseProgressionRecord(CamelModel):
    id: int
    user_id: int
    exercise_id: int
    saves: list[ProgressionSample] = []


# =============================================================================
# ===================== MESSAGES ==============================================
# =============================================================================

class MessageItem(CamelModel):
    message: str
    texter: str

class MessagesRecord(CamelModel):
    id: int
    user_id: int
    messages: list[MessageItem] = []
