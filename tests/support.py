"""
Utilidades compartidas por los tests: configuración, BD en memoria y un
chat falso que no llama a OpenAI.
"""

from config import Settings
from database import create_db_engine, create_session_factory, init_db
from dependencies import build_services
from schemas import UserRegister

TEST_SETTINGS = Settings(
    database_url="sqlite://",
    session_secret="test-secret",
    openai_api_key="sk-test",
    bcrypt_rounds=4,
)


class FakeChat:
    def __init__(self, answer="Estoy aquí para escucharte.", error=None):
        self.answer = answer
        self.error = error
        self.prompts = []

    def reply(self, prompt):
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.answer


def make_services(chat=None):
    """Servicios sobre una BD SQLite en memoria nueva. Devuelve (services, session_factory)."""
    engine = create_db_engine(TEST_SETTINGS.database_url)
    init_db(engine)
    session_factory = create_session_factory(engine)
    return build_services(TEST_SETTINGS, session_factory, chat or FakeChat()), session_factory


def register(services, email="a@x.com", password="secreto123", first_name="Ana", last_name="García"):
    return services.credentials.insert(UserRegister(
        email=email, first_name=first_name, last_name=last_name, password=password,
    )).value
