"""
=============================================================================
DEPENDENCIES.PY — Inyección de dependencias
=============================================================================
Los repositorios, la autenticación y el chat se construyen UNA vez al
arrancar (create_app, cuando la BD ya responde) y se guardan en
app.state.services. Las rutas los piden con Depends(get_services).

Nada de variables globales ni conexiones compartidas en closures.
"""

from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import sessionmaker

from auth import (
    SESSION_COOKIE_NAME, AuthenticationStrategy, CredentialStore, SessionResolver
)
from chat import TherapistChat
from config import Settings
from repositories import (
    ExerciseRepository, HabitRepository, JournalRepository,
    MessagesRepository, ProgressionRepository,
)
from schemas import Principal


@dataclass
class Services:
    settings: Settings
    credentials: CredentialStore
    authenticator: AuthenticationStrategy
    sessions: SessionResolver
    journals: JournalRepository
    habits: HabitRepository
    exercises: ExerciseRepository
    progressions: ProgressionRepository
    messages: MessagesRepository
    chat: TherapistChat


def build_services(settings: Settings, session_factory: sessionmaker, chat: TherapistChat) -> Services:
    credentials = CredentialStore(session_factory, bcrypt_rounds=settings.bcrypt_rounds)
    return Services(
        settings=settings,
        credentials=credentials,
        authenticator=AuthenticationStrategy(credentials),
        sessions=SessionResolver(
            session_factory, credentials,
            secret=settings.session_secret, ttl_days=settings.session_ttl_days,
        ),
        journals=JournalRepository(session_factory),
        habits=HabitRepository(session_factory),
        exercises=ExerciseRepository(session_factory),
        progressions=ProgressionRepository(session_factory),
        messages=MessagesRepository(session_factory),
        chat=chat,
    )


def get_services(request: Request) -> Services:
    return request.app.state.services


security = HTTPBearer(auto_error=False)
# auto_error=False → sin header no hay 401 automático: también vale la cookie


def get_current_principal(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    services: Services = Depends(get_services),
) -> Optional[Principal]:
    """
    Principal de la sesión actual, o None si no hay sesión válida.

    El token se busca primero en "Authorization: Bearer <token>" y
    después en la cookie de sesión.
    """
    token = credentials.credentials if credentials else request.cookies.get(SESSION_COOKIE_NAME)
    if not token:
        return None
    return services.sessions.resolve_token(token)
