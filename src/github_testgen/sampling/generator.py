from logging import Logger, getLogger
from typing import Protocol, override

from google.genai import Client as GoogleGenaiClient
from google.genai.types import Candidate, GenerateContentConfig, GenerateContentResponse, Part, UserContent

from github_testgen.servers.shared.utility import estimate_tokens

DEFAULT_GOOGLE_MODEL = "gemini-2.5-flash"

logger = getLogger(__name__)


class TextGenerator(Protocol):
    """Anything that can complete a prompt with free-form text."""

    async def complete(self, prompt: str) -> str: ...


class EmptyCompletionError(Exception):
    """The model returned no text for the prompt."""

    def __init__(self, message: str):
        super().__init__(message)


class GoogleGenaiTextGenerator(TextGenerator):
    def __init__(
        self,
        default_model: str = DEFAULT_GOOGLE_MODEL,
        client: GoogleGenaiClient | None = None,
        api_key: str | None = None,
        temperature: float | None = None,
    ):
        self.client: GoogleGenaiClient = client or GoogleGenaiClient(api_key=api_key)
        self.default_model: str = default_model
        self.temperature: float | None = temperature

    @override
    async def complete(self, prompt: str) -> str:
        logger.info(f"Generating content with {self.default_model} for a prompt of about {estimate_tokens(prompt)} tokens.")

        response: GenerateContentResponse = await self.client.aio.models.generate_content(
            model=self.default_model,
            contents=[UserContent(parts=[Part(text=prompt)])],
            config=GenerateContentConfig(temperature=self.temperature),
        )

        if not (text := response.text):
            candidate = get_candidate_from_response(response)

            msg = f"No content in response from completion: {candidate.finish_reason}"
            raise EmptyCompletionError(msg)

        logger.info(f"Completion was about {estimate_tokens(text)} tokens.")

        return text


def get_candidate_from_response(response: GenerateContentResponse) -> Candidate:
    if response.candidates and response.candidates[0]:
        return response.candidates[0]

    msg = "No candidate in response from completion."
    raise EmptyCompletionError(msg)


def get_text_generator(api_key: str | None, model: str | None = None, log: Logger | None = None) -> TextGenerator | None:
    if api_key:
        return GoogleGenaiTextGenerator(default_model=model or DEFAULT_GOOGLE_MODEL, api_key=api_key)

    (log or logger).warning(
        msg="No text generator configured, test case generation requests will fail. Set GOOGLE_API_KEY or GEMINI_API_KEY to enable it."
    )

    return None
