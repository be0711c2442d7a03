"""
=============================================================================
AUTH.PY — Sistema de Autenticación
=============================================================================
Gestiona:
  - Hashing de contraseñas (nunca guardar contraseñas en texto plano)
  - Almacén de credenciales (tabla users)
  - Estrategia de autenticación: email + contraseña → Principal
  - Sesiones: Principal ⇄ id de sesión guardado en el servidor

Flujo de sesión:
  1. Usuario envía email + contraseña a /login
  2. Si son correctos, creamos una fila en "sessions" con SOLO su user_id
  3. El id de la sesión viaja firmado (JWT) en una cookie HTTP-only
  4. En cada petición: firma OK → fila de sesión → usuario por id
  5. Si la sesión caducó o el usuario ya no existe → no hay Principal
     (se trata como "no logueado", nunca como error 500)
"""

import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

import bcrypt
from jose import JWTError, jwt
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker

from models import User, UserSession
from results import Err, ErrorKind, Ok, Result
from schemas import Principal, UserRegister

logger = logging.getLogger("wellbeing.auth")

ALGORITHM = "HS256"
# ALGORITHM → algoritmo de firma del token de sesión. HS256 es estándar.

SESSION_COOKIE_NAME = "wellbeing_session"


# ─────────────────────────────────────────────────────────────────────────────
# HASHING DE CONTRASEÑAS
# ─────────────────────────────────────────────────────────────────────────────
# bcrypt convierte "mi_contraseña" en algo como "$2b$12$LJ3m5..."
# Es IRREVERSIBLE. El salt y el coste van DENTRO del propio hash, así que
# verificar no necesita nada más que el hash guardado.

def hash_password(password: str, rounds: int = 12) -> str:
    """Convierte una contraseña en texto plano a un hash seguro"""
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Compara una contraseña en texto plano con un hash almacenado"""
    return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))


# ─────────────────────────────────────────────────────────────────────────────
# ALMACÉN DE CREDENCIALES
# ─────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class StoredUser:
    """Usuario tal cual está en la BD. El hash no sale de este módulo."""
    id: int
    email: str
    first_name: str
    last_name: str
    password_hash: str

    def to_principal(self) -> Principal:
        return Principal(
            id=self.id, email=self.email,
            first_name=self.first_name, last_name=self.last_name,
        )


def _stored(user: Optional[User]) -> Optional[StoredUser]:
    if user is None:
        return None
    return StoredUser(
        id=user.id, email=user.email, first_name=user.first_name,
        last_name=user.last_name, password_hash=user.password_hash,
    )


class CredentialStore:
    def __init__(self, session_factory: sessionmaker, bcrypt_rounds: int = 12):
        self._session_factory = session_factory
        self._bcrypt_rounds = bcrypt_rounds

    def find_by_email(self, email: str) -> Optional[StoredUser]:
        with self._session_factory() as db:
            return _stored(db.query(User).filter(User.email == email).first())

    def find_by_id(self, user_id: int) -> Optional[StoredUser]:
        with self._session_factory() as db:
            return _stored(db.get(User, user_id))

    def insert(self, data: UserRegister) -> Result:
        """
        Registra un usuario nuevo.

        1. Comprobar que el email no existe → si existe, Err(conflict)
        2. Hashear la contraseña
        3. Insertar. Si otro registro con el mismo email se coló entre
           el paso 1 y el 3, la restricción unique de la BD lo rechaza
           → también Err(conflict)
        """
        if self.find_by_email(data.email) is not None:
            return Err(ErrorKind.conflict, "User already exists")

        user = User(
            email=data.email,
            first_name=data.first_name,
            last_name=data.last_name,
            password_hash=hash_password(data.password, self._bcrypt_rounds),
        )
        with self._session_factory() as db:
            db.add(user)
            try:
                db.commit()
            except IntegrityError:
                db.rollback()
                return Err(ErrorKind.conflict, "User already exists")
            db.refresh(user)
            return Ok(_stored(user).to_principal())


# ─────────────────────────────────────────────────────────────────────────────
# ESTRATEGIA DE AUTENTICACIÓN
# ─────────────────────────────────────────────────────────────────────────────

class AuthenticationStrategy:
    def __init__(self, credentials: CredentialStore):
        self._credentials = credentials

    def authenticate(self, email: str, password: str) -> Result:
        """
        Ok(Principal) si email y contraseña son correctos.
        Err(not_found) si no hay usuario, Err(bad_password) si no coincide.

        Internamente distinguimos los dos fallos, pero la API responde
        igual a ambos para no revelar qué emails están registrados.
        """
        user = self._credentials.find_by_email(email)
        if user is None:
            return Err(ErrorKind.not_found, "No user with this email")
        if not verify_password(password, user.password_hash):
            return Err(ErrorKind.bad_password, "Password does not match")
        return Ok(user.to_principal())


# ─────────────────────────────────────────────────────────────────────────────
# SESIONES
# ─────────────────────────────────────────────────────────────────────────────

class SessionResolver:
    def __init__(
        self,
        session_factory: sessionmaker,
        credentials: CredentialStore,
        secret: str,
        ttl_days: int = 30,
    ):
        self._session_factory = session_factory
        self._credentials = credentials
        self._secret = secret
        self._ttl = timedelta(days=ttl_days)

    def serialize(self, principal: Principal) -> str:
        """Guarda una sesión nueva con SOLO el user_id y devuelve su id"""
        session_id = secrets.token_urlsafe(32)
        with self._session_factory() as db:
            db.add(UserSession(
                id=session_id,
                user_id=principal.id,
                expires_at=datetime.utcnow() + self._ttl,
            ))
            db.commit()
        return session_id

    def deserialize(self, session_id: str) -> Optional[Principal]:
        """
        id de sesión → Principal, volviendo a leer el usuario de la BD.
        None si la sesión no existe, caducó, o el usuario ya no existe.
        """
        with self._session_factory() as db:
            row = db.get(UserSession, session_id)
            if row is None or row.expires_at <= datetime.utcnow():
                return None
            user_id = row.user_id

        user = self._credentials.find_by_id(user_id)
        if user is None:
            logger.info(f"Sesión de un usuario que ya no existe (id {user_id})")
            return None
        return user.to_principal()

    # ── Token firmado que lleva el cliente ──

    def issue_token(self, session_id: str) -> str:
        """
        Firma el id de sesión con SESSION_SECRET para que nadie pueda
        inventarse uno. El token NO lleva datos del usuario.
        """
        to_encode = {
            "sid": session_id,
            "exp": datetime.utcnow() + self._ttl,
        }
        return jwt.encode(to_encode, self._secret, algorithm=ALGORITHM)

    def resolve_token(self, token: str) -> Optional[Principal]:
        """Token del cliente → Principal (o None si no vale)"""
        try:
            payload = jwt.decode(token, self._secret, algorithms=[ALGORITHM])
        except JWTError:
            return None
        session_id = payload.get("sid")
        if not session_id:
            return None
        return self.deserialize(session_id)

    @property
    def ttl_seconds(self) -> int:
        return int(self._ttl.total_seconds())
