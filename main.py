"""
=============================================================================
MAIN.PY — La API del diario de bienestar
=============================================================================
Este archivo define TODOS los endpoints de la API REST.

Organización por secciones:
  1. AUTH       → Registro, login, sesión actual
  2. JOURNAL    → Entradas del diario
  3. HABITS     → Hábitos
  4. EXERCISE   → Ejercicios y su progresión de peso
  5. CHAT       → Terapeuta virtual (OpenAI)

Arranque:
  uvicorn main:create_app --factory
"""

import logging
import traceback
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import APIRouter, FastAPI, Depends, HTTPException, status, Request, Response
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.concurrency import run_in_threadpool
from starlette.exceptions import HTTPException as StarletteHTTPException

from auth import SESSION_COOKIE_NAME
from chat import TherapistChat, create_therapist_chat
from config import Settings, load_settings
from database import create_db_engine, create_session_factory, init_db
from dependencies import Services, build_services, get_current_principal, get_services
from results import Err, ErrorKind
from schemas import (
    UserRegister, UserLogin, Principal,
    JournalCreate, JournalRecord, HabitCreate, HabitRecord,
    ExerciseCreate, ExerciseUpdate, ExerciseRecord, ProgressionSample,
)

# ─────────────────────────────────────────────────────────────────────────────
# LOGGING
# ─────────────────────────────────────────────────────────────────────────────

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(name)s] %(levelname)s: %(message)s"
)
logger = logging.getLogger("wellbeing.api")

router = APIRouter()

# Cada tipo de error esperado → su código HTTP
ERROR_STATUS = {
    ErrorKind.not_found: status.HTTP_404_NOT_FOUND,
    ErrorKind.owner_not_found: status.HTTP_404_NOT_FOUND,
    ErrorKind.conflict: status.HTTP_409_CONFLICT,
    ErrorKind.bad_password: status.HTTP_401_UNAUTHORIZED,
}


def raise_for(err: Err, message: Optional[str] = None):
    """Convierte un Err de repositorio en HTTPException"""
    raise HTTPException(status_code=ERROR_STATUS[err.kind], detail=message or err.detail)


def resolve_owner(services: Services, user_email: Optional[str], principal: Optional[Principal]) -> int:
    """
    ¿Quién es el dueño de lo que se va a crear?
      1. Si viene userEmail → el usuario con ese email (404 si no existe)
      2. Si no → el usuario de la sesión (401 si no hay sesión)
    """
    if user_email:
        user = services.credentials.find_by_email(user_email)
        if user is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
        return user.id
    if principal is not None:
        return principal.id
    raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")


# =============================================================================
# ===================== HEALTH CHECK ==========================================
# =============================================================================

@router.get("/", tags=["Health"])
def health_check():
    """Verifica que la API está viva"""
    return {"message": "Hello World"}


# =============================================================================
# ===================== SECCIÓN 1: AUTH =======================================
# =============================================================================

@router.post("/register", response_model=Principal, status_code=status.HTTP_201_CREATED, tags=["Auth"])
def register(data: UserRegister, services: Services = Depends(get_services)):
    """Registra un usuario nuevo (sin iniciar sesión)"""
    result = services.credentials.insert(data)
    if isinstance(result, Err):
        logger.info(f"Registro rechazado, email ya existe: {data.email}")
        raise_for(result)

    logger.info(f"👤 Nuevo usuario registrado: {result.value.first_name} ({result.value.email})")
    return result.value


@router.post("/login", tags=["Auth"])
def login(data: UserLogin, response: Response, services: Services = Depends(get_services)):
    """
    Inicia sesión con email y contraseña.

    Email inexistente y contraseña incorrecta dan EXACTAMENTE la misma
    respuesta (401) para no revelar qué emails están registrados.
    """
    result = services.authenticator.authenticate(data.email, data.password)
    if isinstance(result, Err):
        logger.info(f"Login fallido ({result.kind.value})")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password"
        )

    session_id = services.sessions.serialize(result.value)
    principal = services.sessions.deserialize(session_id)
    if principal is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User data not found")

    response.set_cookie(
        SESSION_COOKIE_NAME,
        services.sessions.issue_token(session_id),
        max_age=services.sessions.ttl_seconds,
        httponly=True,
        samesite="lax",
        secure=services.settings.session_cookie_secure,
    )
    logger.info(f"🔑 Login: {principal.email}")
    return {"message": principal}


@router.get("/me", response_model=Principal, tags=["Auth"])
def get_me(principal: Optional[Principal] = Depends(get_current_principal)):
    """Devuelve los datos del usuario de la sesión"""
    if principal is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    return principal


# =============================================================================
# ===================== SECCIÓN 2: JOURNAL ====================================
# =============================================================================

@router.post("/journal", response_model=JournalRecord, status_code=status.HTTP_201_CREATED, tags=["Journal"])
def create_journal(
    data: JournalCreate,
    services: Services = Depends(get_services),
    principal: Optional[Principal] = Depends(get_current_principal),
):
    owner_id = resolve_owner(services, data.user_email, principal)
    result = services.journals.create(owner_id, data)
    if isinstance(result, Err):
        raise_for(result)
    logger.info(f"📓 Entrada de diario creada (user: {owner_id})")
    return result.value


@router.get("/journals/{user_id}", response_model=list[JournalRecord], tags=["Journal"])
def list_journals(user_id: int, services: Services = Depends(get_services)):
    result = services.journals.list_by_owner(user_id)
    if isinstance(result, Err):
        raise_for(result)
    return result.value


@router.delete("/journals/{journal_id}", status_code=status.HTTP_204_NO_CONTENT, tags=["Journal"])
def delete_journal(journal_id: int, services: Services = Depends(get_services)):
    result = services.journals.delete_by_id(journal_id)
    if isinstance(result, Err):
        logger.warning(f"Borrado de diario inexistente: {journal_id}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# =============================================================================
# ===================== SECCIÓN 3: HABITS =====================================
# =============================================================================

@router.post("/habit", response_model=HabitRecord, status_code=status.HTTP_201_CREATED, tags=["Habits"])
def create_habit(
    data: HabitCreate,
    services: Services = Depends(get_services),
    principal: Optional[Principal] = Depends(get_current_principal),
):
    owner_id = resolve_owner(services, data.user_email, principal)
    result = services.habits.create(owner_id, data)
    if isinstance(result, Err):
        raise_for(result)
    logger.info(f"➕ Hábito creado: {result.value.name} (user: {owner_id})")
    return result.value


@router.get("/habit/{user_id}", response_model=list[HabitRecord], tags=["Habits"])
def list_habits(user_id: int, services: Services = Depends(get_services)):
    result = services.habits.list_by_owner(user_id)
    if isinstance(result, Err):
        raise_for(result)
    return result.value


# =============================================================================
# ===================== SECCIÓN 4: EXERCISE ===================================
# =============================================================================

@router.post("/exercise", response_model=ExerciseRecord, status_code=status.HTTP_201_CREATED, tags=["Exercise"])
def create_exercise(
    data: ExerciseCreate,
    services: Services = Depends(get_services),
    principal: Optional[Principal] = Depends(get_current_principal),
):
    """Crea el ejercicio y su progresión con la primera muestra (hoy)"""
    owner_id = resolve_owner(services, data.user_email, principal)
    result = services.exercises.create(owner_id, data)
    if isinstance(result, Err):
        raise_for(result)
    logger.info(f"🏋️ Ejercicio creado: {result.value.name} (user: {owner_id})")
    return result.value


@router.get("/exercise/{user_id}", response_model=list[ExerciseRecord], tags=["Exercise"])
def list_exercises(user_id: int, services: Services = Depends(get_services)):
    result = services.exercises.list_by_owner(user_id)
    if isinstance(result, Err):
        raise_for(result)
    return result.value


@router.delete("/exercise/{exercise_id}", status_code=status.HTTP_204_NO_CONTENT, tags=["Exercise"])
def delete_exercise(exercise_id: int, services: Services = Depends(get_services)):
    """Borra el ejercicio. Su progresión se conserva."""
    result = services.exercises.delete_by_id(exercise_id)
    if isinstance(result, Err):
        logger.warning(f"Borrado de ejercicio inexistente: {exercise_id}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.put("/exercise", status_code=status.HTTP_204_NO_CONTENT, tags=["Exercise"])
def update_exercise(data: ExerciseUpdate, services: Services = Depends(get_services)):
    """Reemplaza el ejercicio; si cambia el peso, actualiza la progresión"""
    result = services.exercises.update_by_id(data.exercise_id, data)
    if isinstance(result, Err):
        raise_for(result)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/exercise_progression/{exercise_id}", response_model=list[ProgressionSample], tags=["Exercise"])
def get_exercise_progression(exercise_id: int, services: Services = Depends(get_services)):
    result = services.progressions.get_by_exercise(exercise_id)
    if isinstance(result, Err):
        raise_for(result)
    return result.value.saves


# =============================================================================
# ===================== SECCIÓN 5: CHAT =======================================
# =============================================================================

@router.post("/chat-therapist", response_class=PlainTextResponse, tags=["Chat"])
async def chat_therapist(request: Request, services: Services = Depends(get_services)):
    """El cuerpo es el texto del usuario, sin JSON. Devuelve texto plano."""
    # Bytes que no son UTF-8 válido se sustituyen por "�" en vez de dar 500
    prompt = (await request.body()).decode("utf-8", errors="replace")
    # El cliente de OpenAI es síncrono → fuera del event loop
    reply = await run_in_threadpool(services.chat.reply, prompt)
    return PlainTextResponse(reply)


# ─────────────────────────────────────────────────────────────────────────────
# APLICACIÓN FASTAPI
# ─────────────────────────────────────────────────────────────────────────────

def create_app(settings: Optional[Settings] = None, chat: Optional[TherapistChat] = None) -> FastAPI:
    """
    Construye la aplicación.

      1. Leer configuración (falla si falta algo obligatorio)
      2. Conectar a la BD (falla si no responde) y crear tablas
      3. Construir repositorios, autenticación y chat UNA sola vez
      4. Registrar rutas, CORS y manejadores de errores
    """
    settings = settings or load_settings()

    engine = create_db_engine(settings.database_url)
    init_db(engine)
    logger.info("✅ Base de datos inicializada")

    session_factory = create_session_factory(engine)
    chat = chat or create_therapist_chat(settings.openai_api_key, settings.openai_model)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("🚀 API de bienestar operativa")
        yield
        logger.info("🛑 Apagando...")
        engine.dispose()

    app = FastAPI(
        title="Wellbeing API",
        description="Diario, hábitos, ejercicios y terapeuta virtual",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.services = build_services(settings, session_factory, chat)

    # CORS → permite que la web haga peticiones a esta API
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """Errores esperados → {"message": "..."}"""
        return JSONResponse(
            status_code=exc.status_code,
            content={"message": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Cuerpo o parámetros inválidos → 422 {"message": [errores]}"""
        return JSONResponse(
            status_code=422,
            content={"message": jsonable_encoder(exc.errors())},
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """
        Captura errores no manejados. El detalle va al log, NUNCA al
        cliente: él solo recibe un 500 genérico.
        """
        error_trace = traceback.format_exc()
        logger.error(f"❌ Error no manejado en {request.url.path}: {exc}\n{error_trace}")
        return JSONResponse(status_code=500, content={"error": "Internal server error"})

    app.include_router(router)
    return app


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(create_app(), host="0.0.0.0", port=6060)
