import unittest
from datetime import date
from unittest.mock import patch

from models import ExerciseProgression, ExerciseProgressionSave
from progression import today_key
from results import ErrorKind, Ok
from schemas import ExerciseCreate, ExerciseUpdate
from support import make_services, register

DAY_1 = "2026-10-16"
DAY_2 = "2026-10-17"
DAY_3 = "2026-10-18"


class ProgressionTests(unittest.TestCase):
    def setUp(self):
        self.services, self.session_factory = make_services()
        self.owner = register(self.services)
        self.exercise = self.services.exercises.create(
            self.owner.id,
            ExerciseCreate(
                exercise_name="Squat", exercise_weight=100,
                repetition1=5, repetition2=5, repetition3=5,
            ),
            today=DAY_1,
        ).value

    def set_weight(self, weight, today):
        return self.services.exercises.update_by_id(self.exercise.id, ExerciseUpdate(
            exercise_id=self.exercise.id, exercise_name="Squat", exercise_weight=weight,
            repetition1=5, repetition2=5, repetition3=5,
        ), today=today)

    def samples(self):
        saves = self.services.progressions.get_by_exercise(self.exercise.id).value.saves
        return [(s.date, s.weight) for s in saves]

    def test_creation_seeds_one_sample(self):
        self.assertEqual(self.samples(), [(DAY_1, 100)])

    def test_squat_scenario(self):
        self.set_weight(110, DAY_1)
        self.assertEqual(self.samples(), [(DAY_1, 110)])

        self.set_weight(115, DAY_2)
        self.assertEqual(self.samples(), [(DAY_1, 110), (DAY_2, 115)])

    def test_same_day_keeps_last_weight(self):
        for weight in (105, 120, 90, 107.5):
            self.set_weight(weight, DAY_2)
        self.assertEqual(self.samples(), [(DAY_1, 100), (DAY_2, 107.5)])

    def test_one_sample_per_distinct_day(self):
        updates = [(101, DAY_1), (102, DAY_2), (103, DAY_2), (104, DAY_3), (105, DAY_1), (106, DAY_3)]
        for weight, day in updates:
            self.set_weight(weight, day)
        self.assertEqual(self.samples(), [(DAY_1, 105), (DAY_2, 103), (DAY_3, 106)])

    def test_unchanged_weight_is_a_no_op(self):
        result = self.set_weight(100, DAY_2)
        self.assertEqual(result.value.weight, 100)
        self.assertEqual(self.samples(), [(DAY_1, 100)])

    def test_missing_progression_is_seeded_on_update(self):
        with self.session_factory() as db:
            db.query(ExerciseProgressionSave).delete()
            db.query(ExerciseProgression).filter(
                ExerciseProgression.exercise_id == self.exercise.id
            ).delete()
            db.commit()
        self.assertEqual(
            self.services.progressions.get_by_exercise(self.exercise.id).kind, ErrorKind.not_found
        )

        self.set_weight(120, DAY_2)
        self.assertEqual(self.samples(), [(DAY_2, 120)])


    def test_concurrent_append_falls_back_to_overwrite(self):
        # Otra petición ya escribió la muestra de hoy: la consulta no la ve,
        # el insert choca con la restricción única
        with patch("progression.find_sample", return_value=None):
            result = self.services.exercises.update_by_id(self.exercise.id, ExerciseUpdate(
                exercise_id=self.exercise.id, exercise_name="Front squat", exercise_weight=110,
                repetition1=8, repetition2=6, repetition3=4,
            ), today=DAY_1)

        self.assertIsInstance(result, Ok)
        self.assertEqual(result.value.name, "Front squat")
        self.assertEqual(result.value.weight, 110)
        self.assertEqual(self.samples(), [(DAY_1, 110)])

        stored = self.services.exercises.list_by_owner(self.owner.id).value[0]
        self.assertEqual((stored.name, stored.weight), ("Front squat", 110))
        self.assertEqual((stored.repetition1, stored.repetition2, stored.repetition3), (8, 6, 4))

    def test_lost_progression_can_be_created_again(self):
        with self.session_factory() as db:
            db.query(ExerciseProgressionSave).delete()
            db.query(ExerciseProgression).delete()
            db.commit()

        result = self.services.progressions.create(self.owner.id, self.exercise)
        self.assertIsInstance(result, Ok)
        self.assertEqual(result.value.exercise_id, self.exercise.id)
        self.assertEqual([s.weight for s in result.value.saves], [100])
        self.assertEqual(len(self.samples()), 1)

    def test_create_for_unknown_owner(self):
        result = self.services.progressions.create(999, self.exercise)
        self.assertEqual(result.kind, ErrorKind.owner_not_found)

class TodayKeyTests(unittest.TestCase):
    def test_day_granularity(self):
        self.assertEqual(today_key(date(2026, 1, 5)), "2026-01-05")
        self.assertEqual(len(today_key()), 10)


if __name__ == "__main__":
    unittest.main()
