"""
=============================================================================
REPOSITORIES.PY — Acceso a datos por tipo de recurso
=============================================================================
Un repositorio por recurso: Journal, Habit, Exercise, ExerciseProgression,
Messages. Todos pertenecen a UN usuario (user_id).

Contrato común:
  create(owner_id, datos)   → Ok(record) | Err(owner_not_found)
  list_by_owner(owner_id)   → Ok([records]) | Err(owner_not_found)
  delete_by_id(id)          → Ok() | Err(not_found)
  update_by_id(id, datos)   → solo Exercise

El dueño se vuelve a comprobar SIEMPRE en la BD al escribir: no nos fiamos
de un user_id que venga de fuera.

Cada llamada abre y cierra su propia sesión de BD.
"""

import logging
from typing import Optional

from sqlalchemy.orm import Session, sessionmaker

from models import (
    User, Journal, Habit, Exercise, ExerciseProgression, Messages
)
from progression import build_progression, seed_progression, today_key, upsert_today
from results import Err, ErrorKind, Ok, Result
from schemas import (
    JournalCreate, JournalRecord, HabitCreate, HabitRecord,
    ExerciseCreate, ExerciseUpdate, ExerciseRecord,
    ExerciseProgressionRecord, MessageItem, MessagesRecord,
)

logger = logging.getLogger("wellbeing.repositories")


def _owner_exists(db: Session, owner_id: int) -> bool:
    return db.get(User, owner_id) is not None


class OwnedRepository:
    """Base para recursos con dueño. Las subclases dicen modelo y record."""
    model = None
    record = None

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    def _build(self, owner_id: int, data):
        raise NotImplementedError

    def create(self, owner_id: int, data) -> Result:
        with self._session_factory() as db:
            if not _owner_exists(db, owner_id):
                return Err(ErrorKind.owner_not_found, "User not found")
            row = self._build(owner_id, data)
            db.add(row)
            db.commit()
            db.refresh(row)
            return Ok(self.record.model_validate(row))

    def list_by_owner(self, owner_id: int) -> Result:
        with self._session_factory() as db:
            if not _owner_exists(db, owner_id):
                return Err(ErrorKind.owner_not_found, "User not found")
            rows = db.query(self.model).filter(self.model.user_id == owner_id).all()
            return Ok([self.record.model_validate(r) for r in rows])

    def delete_by_id(self, item_id: int) -> Result:
        with self._session_factory() as db:
            row = db.get(self.model, item_id)
            if row is None:
                return Err(ErrorKind.not_found, f"{self.model.__name__} {item_id} not found")
            db.delete(row)
            db.commit()
            return Ok()


# =============================================================================
# ===================== JOURNAL ===============================================
# =============================================================================

class JournalRepository(OwnedRepository):
    model = Journal
    record = JournalRecord

    def _build(self, owner_id: int, data: JournalCreate) -> Journal:
        return Journal(user_id=owner_id, mood=data.mood, content=data.content, date=data.date)


# =============================================================================
# ===================== HABITS ================================================
# =============================================================================

class HabitRepository(OwnedRepository):
    model = Habit
    record = HabitRecord

    def _build(self, owner_id: int, data: HabitCreate) -> Habit:
        # streak empieza en 0 y de momento nada lo incrementa
        return Habit(user_id=owner_id, name=data.habit_name, daily_goal=data.habit_daily_goal, streak=0)


# =============================================================================
# ===================== MESSAGES ==============================================
# =============================================================================

class MessagesRepository(OwnedRepository):
    model = Messages
    record = MessagesRecord

    def _build(self, owner_id: int, data: list[MessageItem]) -> Messages:
        return Messages(user_id=owner_id, messages=[item.model_dump() for item in data])


# =============================================================================
# ===================== EXERCISES =============================================
# =============================================================================

class ExerciseRepository(OwnedRepository):
    model = Exercise
    record = ExerciseRecord

    def _build(self, owner_id: int, data: ExerciseCreate) -> Exercise:
        return Exercise(
            user_id=owner_id,
            name=data.exercise_name,
            weight=data.exercise_weight,
            repetition1=data.repetition1,
            repetition2=data.repetition2,
            repetition3=data.repetition3,
        )

    def create(self, owner_id: int, data: ExerciseCreate, today: Optional[str] = None) -> Result:
        """Crea el ejercicio Y su progresión inicial en la misma transacción"""
        with self._session_factory() as db:
            if not _owner_exists(db, owner_id):
                return Err(ErrorKind.owner_not_found, "User not found")
            exercise = self._build(owner_id, data)
            db.add(exercise)
            db.flush()
            # flush → ya tenemos exercise.id sin hacer commit
            seed_progression(db, owner_id, exercise.id, exercise.weight, today or today_key())
            db.commit()
            db.refresh(exercise)
            return Ok(ExerciseRecord.model_validate(exercise))

    def update_by_id(self, exercise_id: int, data: ExerciseUpdate, today: Optional[str] = None) -> Result:
        """
        Reemplaza nombre, peso y repeticiones.
        Si el peso cambia, se registra en la progresión de hoy.
        """
        with self._session_factory() as db:
            exercise = db.get(Exercise, exercise_id)
            if exercise is None:
                return Err(ErrorKind.not_found, f"Exercise {exercise_id} not found")

            previous_weight = exercise.weight
            exercise.name = data.exercise_name
            exercise.weight = data.exercise_weight
            exercise.repetition1 = data.repetition1
            exercise.repetition2 = data.repetition2
            exercise.repetition3 = data.repetition3

            # Primero el ejercicio: un rollback dentro de upsert_today no
            # debe deshacer estos cambios
            db.commit()

            if previous_weight != data.exercise_weight:
                action = upsert_today(db, exercise.user_id, exercise.id, data.exercise_weight, today or today_key())
                logger.info(f"Progresión del ejercicio {exercise_id}: {action} ({data.exercise_weight})")

            return Ok(ExerciseRecord.model_validate(exercise))


# =============================================================================
# ===================== EXERCISE PROGRESSIONS =================================
# =============================================================================
# Se crean al crear el ejercicio (ExerciseRepository.create) y cambian con
# update_by_id. create sirve para volver a sembrar una progresión perdida.

class ProgressionRepository(OwnedRepository):
    model = ExerciseProgression
    record = ExerciseProgressionRecord

    def _build(self, owner_id: int, data: ExerciseRecord) -> ExerciseProgression:
        """Progresión nueva para un ejercicio existente, con su peso actual"""
        return build_progression(owner_id, data.id, data.weight, today_key())

    def get_by_exercise(self, exercise_id: int) -> Result:
        with self._session_factory() as db:
            progression = db.query(ExerciseProgression).filter(
                ExerciseProgression.exercise_id == exercise_id
            ).first()
            if progression is None:
                return Err(ErrorKind.not_found, f"No progression for exercise {exercise_id}")
            return Ok(ExerciseProgressionRecord.model_validate(progression))
