"""
=============================================================================
CHAT.PY — Terapeuta virtual
=============================================================================
Reenvía el mensaje del usuario al modelo de lenguaje (OpenAI) junto con un
guion fijo de "personaje" en tres partes, y devuelve el texto de la primera
respuesta TAL CUAL.

Sin reintentos, sin streaming, sin contar tokens. Si OpenAI falla, la
excepción sube y el manejador global responde 500.
"""

import logging

from openai import OpenAI

logger = logging.getLogger("wellbeing.chat")

THERAPIST_PERSONA = (
    "You are a warm, patient virtual therapist inside a personal wellbeing app. "
    "You listen carefully and answer with empathy, never with judgement.",

    "Help the user reflect on their mood, habits, sleep and exercise. "
    "Ask gentle follow-up questions and suggest small, concrete steps.",

    "You are not a doctor and do not diagnose or prescribe. If the user "
    "mentions self-harm or an emergency, encourage them to contact local "
    "emergency services or a crisis line right away.",
)


class TherapistChat:
    def __init__(self, client: OpenAI, model: str = "gpt-3.5-turbo"):
        self._client = client
        self._model = model

    def reply(self, prompt: str) -> str:
        messages = [{"role": "system", "content": part} for part in THERAPIST_PERSONA]
        messages.append({"role": "user", "content": prompt})

        response = self._client.chat.completions.create(
            model=self._model,
            messages=messages,
        )
        logger.info(f"💬 Respuesta del terapeuta ({self._model})")
        return response.choices[0].message.content


def create_therapist_chat(api_key: str, model: str) -> TherapistChat:
    return TherapistChat(OpenAI(api_key=api_key), model=model)
