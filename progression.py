"""
=============================================================================
PROGRESSION.PY — Progresión de peso por ejercicio
=============================================================================
Cada ejercicio tiene UNA progresión: una lista de muestras {peso, fecha}.

Reglas:
  - Al crear el ejercicio → progresión con una sola muestra (peso, hoy)
  - Al cambiar el peso:
      · ¿Ya hay muestra de hoy?  → se sobrescribe su peso
      · ¿No la hay?              → se añade al final
  - Resultado: como mucho UNA muestra por día, con el ÚLTIMO peso del día,
    en el orden en que apareció cada día.

"Hoy" es la fecha local del servidor en formato "YYYY-MM-DD".
"""

import logging
from datetime import date
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from models import ExerciseProgression, ExerciseProgressionSave

logger = logging.getLogger("wellbeing.progression")


def today_key(today: Optional[date] = None) -> str:
    """Clave del día (sin hora). Se puede pasar un día concreto en tests."""
    return (today or date.today()).isoformat()


def build_progression(user_id: int, exercise_id: int, weight: float, today: str) -> ExerciseProgression:
    """Progresión nueva con una sola muestra (peso, hoy). Sin añadir a la sesión."""
    progression = ExerciseProgression(user_id=user_id, exercise_id=exercise_id)
    progression.saves.append(ExerciseProgressionSave(weight=weight, date=today))
    return progression


def seed_progression(db: Session, user_id: int, exercise_id: int, weight: float, today: str) -> ExerciseProgression:
    """Crea la progresión inicial. No hace commit (va con el ejercicio)."""
    progression = build_progression(user_id, exercise_id, weight, today)
    db.add(progression)
    return progression


def find_sample(db: Session, progression_id: int, today: str) -> Optional[ExerciseProgressionSave]:
    return db.query(ExerciseProgressionSave).filter(
        ExerciseProgressionSave.progression_id == progression_id,
        ExerciseProgressionSave.date == today,
    ).first()


def upsert_today(db: Session, user_id: int, exercise_id: int, weight: float, today: str) -> str:
    """
    Guarda el peso de hoy en la progresión del ejercicio y hace commit.

    Devuelve lo que hizo: "updated", "appended" o "seeded".
    Si el ejercicio no tenía progresión (nunca se sembró), se crea una.
    Si hay un rollback aquí solo se pierde lo pendiente en la sesión:
    el que llama debe haber hecho commit de sus propios cambios antes.
    """
    progression = db.query(ExerciseProgression).filter(
        ExerciseProgression.exercise_id == exercise_id
    ).first()

    if progression is None:
        logger.warning(f"Ejercicio {exercise_id} sin progresión, se crea una nueva")
        seed_progression(db, user_id, exercise_id, weight, today)
        db.commit()
        return "seeded"

    progression_id = progression.id
    sample = find_sample(db, progression_id, today)

    if sample is not None:
        sample.weight = weight
        db.commit()
        return "updated"

    db.add(ExerciseProgressionSave(progression_id=progression_id, weight=weight, date=today))
    try:
        db.commit()
        return "appended"
    except IntegrityError:
        # Otra petición añadió la muestra de hoy entre la consulta y el insert
        db.rollback()
        db.query(ExerciseProgressionSave).filter(
            ExerciseProgressionSave.progression_id == progression_id,
            ExerciseProgressionSave.date == today,
        ).update({"weight": weight})
        db.commit()
        return "updated"
