import unittest
from datetime import datetime, timedelta
from unittest.mock import patch

from auth import hash_password, verify_password
from models import User, UserSession
from results import Err, ErrorKind, Ok
from schemas import UserRegister
from support import make_services, register


class PasswordHashingTests(unittest.TestCase):
    def test_hash_is_salted_and_verifiable(self):
        first = hash_password("secreto123", rounds=4)
        second = hash_password("secreto123", rounds=4)
        self.assertNotEqual(first, "secreto123")
        self.assertNotEqual(first, second)
        self.assertTrue(verify_password("secreto123", first))
        self.assertFalse(verify_password("otra", first))


class CredentialStoreTests(unittest.TestCase):
    def setUp(self):
        self.services, self.session_factory = make_services()

    def test_register_twice_is_conflict(self):
        data = UserRegister(email="a@x.com", first_name="Ana", last_name="García", password="secreto123")
        first = self.services.credentials.insert(data)
        second = self.services.credentials.insert(data)

        self.assertIsInstance(first, Ok)
        self.assertIsInstance(second, Err)
        self.assertEqual(second.kind, ErrorKind.conflict)
        with self.session_factory() as db:
            self.assertEqual(db.query(User).filter(User.email == "a@x.com").count(), 1)

    def test_concurrent_register_is_conflict(self):
        register(self.services)
        data = UserRegister(email="a@x.com", first_name="Otra", last_name="Persona", password="secreto456")

        # La comprobación previa no ve al usuario: decide la restricción unique
        with patch.object(self.services.credentials, "find_by_email", return_value=None):
            result = self.services.credentials.insert(data)

        self.assertIsInstance(result, Err)
        self.assertEqual(result.kind, ErrorKind.conflict)
        with self.session_factory() as db:
            self.assertEqual(db.query(User).filter(User.email == "a@x.com").count(), 1)
        self.assertEqual(self.services.credentials.find_by_email("a@x.com").first_name, "Ana")

    def test_lookup_by_email_and_id(self):
        principal = register(self.services)
        by_email = self.services.credentials.find_by_email("a@x.com")
        by_id = self.services.credentials.find_by_id(principal.id)
        self.assertEqual(by_email.id, principal.id)
        self.assertEqual(by_id.email, "a@x.com")
        self.assertIsNone(self.services.credentials.find_by_email("nadie@x.com"))
        self.assertIsNone(self.services.credentials.find_by_id(999))

    def test_password_is_never_stored_in_plain_text(self):
        register(self.services, password="secreto123")
        stored = self.services.credentials.find_by_email("a@x.com")
        self.assertNotEqual(stored.password_hash, "secreto123")
        self.assertTrue(stored.password_hash.startswith("$2"))


class AuthenticationStrategyTests(unittest.TestCase):
    def setUp(self):
        self.services, _ = make_services()
        register(self.services)

    def test_valid_credentials_return_principal_without_hash(self):
        result = self.services.authenticator.authenticate("a@x.com", "secreto123")
        self.assertIsInstance(result, Ok)
        self.assertEqual(result.value.email, "a@x.com")
        self.assertEqual(result.value.first_name, "Ana")
        self.assertNotIn("password_hash", result.value.model_dump())
        self.assertFalse(hasattr(result.value, "password_hash"))

    def test_unknown_email(self):
        result = self.services.authenticator.authenticate("nadie@x.com", "secreto123")
        self.assertEqual(result.kind, ErrorKind.not_found)

    def test_wrong_password(self):
        result = self.services.authenticator.authenticate("a@x.com", "incorrecta")
        self.assertEqual(result.kind, ErrorKind.bad_password)


class SessionResolverTests(unittest.TestCase):
    def setUp(self):
        self.services, self.session_factory = make_services()
        self.principal = register(self.services)

    def test_serialize_then_deserialize_recovers_user(self):
        session_id = self.services.sessions.serialize(self.principal)
        restored = self.services.sessions.deserialize(session_id)
        self.assertEqual(restored.id, self.principal.id)
        self.assertEqual(restored.email, self.principal.email)

    def test_session_row_stores_only_user_id(self):
        session_id = self.services.sessions.serialize(self.principal)
        with self.session_factory() as db:
            row = db.get(UserSession, session_id)
            self.assertEqual(row.user_id, self.principal.id)

    def test_deleted_user_means_no_principal(self):
        session_id = self.services.sessions.serialize(self.principal)
        with self.session_factory() as db:
            db.query(User).filter(User.id == self.principal.id).delete()
            db.commit()
        self.assertIsNone(self.services.sessions.deserialize(session_id))

    def test_expired_session_means_no_principal(self):
        session_id = self.services.sessions.serialize(self.principal)
        with self.session_factory() as db:
            row = db.get(UserSession, session_id)
            row.expires_at = datetime.utcnow() - timedelta(minutes=1)
            db.commit()
        self.assertIsNone(self.services.sessions.deserialize(session_id))

    def test_unknown_session_id(self):
        self.assertIsNone(self.services.sessions.deserialize("no-existe"))

    def test_many_sessions_per_user(self):
        ids = {self.services.sessions.serialize(self.principal) for _ in range(3)}
        self.assertEqual(len(ids), 3)
        for session_id in ids:
            self.assertIsNotNone(self.services.sessions.deserialize(session_id))

    def test_token_round_trip_and_tampering(self):
        session_id = self.services.sessions.serialize(self.principal)
        token = self.services.sessions.issue_token(session_id)
        self.assertEqual(self.services.sessions.resolve_token(token).id, self.principal.id)
        self.assertIsNone(self.services.sessions.resolve_token(token + "x"))
        self.assertIsNone(self.services.sessions.resolve_token("basura"))


if __name__ == "__main__":
    unittest.main()
