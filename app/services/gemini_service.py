"""
app/services/gemini_service.py

Purpose: Hosted model integration for the survey

- Builds the Gemini client (Developer API key or Vertex AI service account)
- Extraction call: tool schema, returns structured characteristics
- Reply call: conversational system prompt, returns the next assistant message
"""

import json
from typing import Any, Dict, List, Optional

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types
from google.oauth2 import service_account

from app.core.config import settings
from app.core.exceptions import ExternalServiceError
from app.core.logging import get_logger
from app.models.chat import Message
from utils.constants import (
    CHARACTERISTICS_SCHEMA,
    EXTRACTION_FUNCTION_NAME,
    EXTRACTION_SYSTEM_PROMPT,
    SURVEY_SYSTEM_PROMPT,
)

logger = get_logger(__name__)

VERTEX_SCOPES = ["https://www.googleapis.com/auth/cloud-platform"]

# Sent (not stored) when the user opens the survey without a message
SURVEY_OPENING_TURN = "Hi! I'm ready to start the roommate survey."


def build_client() -> genai.Client:
    """
    Creates a Gemini client from settings.
    GOOGLE_API_KEY wins over VERTEX_AI_ACCOUNT when both are set.
    """
    if settings.GOOGLE_API_KEY:
        return genai.Client(api_key=settings.GOOGLE_API_KEY)

    if settings.VERTEX_AI_ACCOUNT:
        account = json.loads(settings.VERTEX_AI_ACCOUNT)
        credentials = service_account.Credentials.from_service_account_info(
            account, scopes=VERTEX_SCOPES
        )
        return genai.Client(
            vertexai=True,
            project=account["project_id"],
            location=settings.VERTEX_AI_LOCATION,
            credentials=credentials,
        )

    raise ExternalServiceError("Gemini is not configured")


def to_contents(messages: List[Message]) -> List[types.Content]:
    """Chat history in Gemini's role vocabulary (assistant -> model)."""
    return [
        types.Content(
            role="user" if message.role == "user" else "model",
            parts=[types.Part(text=message.content)],
        )
        for message in messages
        if message.content
    ]


def clean_characteristics(args: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Drops empty values and makes keys safe for dotted Mongo paths.
    """
    cleaned = {}
    for key, value in (args or {}).items():
        key = str(key).strip().lstrip("$").replace(".", "_")
        if not key or value is None or value == "" or value == []:
            continue
        cleaned[key] = value
    return cleaned


class GeminiService:
    """
    Two independent model calls per survey turn: extraction then reply.
    """

    def __init__(self, client: Optional[genai.Client] = None, model: Optional[str] = None):
        self._client = client
        self.model = model or settings.GEMINI_MODEL

    @property
    def client(self) -> genai.Client:
        if self._client is None:
            self._client = build_client()
        return self._client

    async def extract_characteristics(self, history: List[Message]) -> Dict[str, Any]:
        """
        Asks the model to call record_characteristics for what the user has said.

        Returns:
            Merged arguments of every record_characteristics call (may be empty)

        Raises:
            ExternalServiceError: If the model call fails
        """
        contents = to_contents(history)
        if not contents:
            return {}

        config = types.GenerateContentConfig(
            system_instruction=EXTRACTION_SYSTEM_PROMPT,
            temperature=0.0,
            tools=[
                types.Tool(function_declarations=[
                    types.FunctionDeclaration(
                        name=EXTRACTION_FUNCTION_NAME,
                        description="Record roommate-matching preferences stated by the user.",
                        parameters_json_schema=CHARACTERISTICS_SCHEMA,
                    )
                ])
            ],
            tool_config=types.ToolConfig(
                function_calling_config=types.FunctionCallingConfig(mode="AUTO")
            ),
            automatic_function_calling=types.AutomaticFunctionCallingConfig(disable=True),
        )

        response = await self._generate(contents, config, "extraction")

        extracted: Dict[str, Any] = {}
        for call in response.function_calls or []:
            if call.name != EXTRACTION_FUNCTION_NAME:
                logger.warning(f"Ignoring unexpected function call: {call.name}")
                continue
            extracted.update(clean_characteristics(call.args))

        logger.info(f"Extracted {len(extracted)} characteristics")
        return extracted

    async def generate_reply(self, history: List[Message]) -> str:
        """
        Produces the next assistant message for the survey.

        Raises:
            ExternalServiceError: If the model call fails or returns no text
        """
        contents = to_contents(history) or [
            types.Content(role="user", parts=[types.Part(text=SURVEY_OPENING_TURN)])
        ]
        config = types.GenerateContentConfig(
            system_instruction=SURVEY_SYSTEM_PROMPT,
            temperature=0.7,
        )

        response = await self._generate(contents, config, "reply")

        text = (response.text or "").strip()
        if not text:
            logger.error("Model returned an empty reply")
            raise ExternalServiceError("The assistant did not return a reply")
        return text

    async def _generate(self, contents, config, purpose: str):
        try:
            return await self.client.aio.models.generate_content(
                model=self.model,
                contents=contents,
                config=config,
            )
        except genai_errors.APIError as e:
            logger.error(f"Gemini {purpose} call failed: {e.code} {e.message}")
            raise ExternalServiceError(f"Assistant {purpose} failed", details={"status": e.code})
        except httpx.HTTPError as e:
            logger.error(f"Network error calling Gemini ({purpose}): {e}")
            raise ExternalServiceError(f"Unable to reach the assistant ({purpose})")


# Global Gemini service instance
_gemini_service: Optional[GeminiService] = None


def get_gemini_service() -> GeminiService:
    """Get or create the global Gemini service instance."""
    global _gemini_service
    if _gemini_service is None:
        _gemini_service = GeminiService()
    return _gemini_service
