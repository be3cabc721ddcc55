"""
Grounded digest generation via the Gemini REST API.

Gemini is called with the Google Search tool enabled, so the generated digest
comes back with web citations (grounding chunks) that we keep as sources.
"""

from abc import ABC, abstractmethod
from typing import Any

import backoff
import httpx

from vortex.config import get_settings
from vortex.core.exceptions import ConfigurationError, ContentGenerationError
from vortex.core.logging import get_logger
from vortex.schemas.digest import DigestResult, GroundingSource

logger = get_logger(__name__)

# Descriptive phrases sent to the model for each catalog topic.
# Topics outside the catalog are passed through verbatim.
TOPIC_PROMPTS = {
    "technology": "teknologi terbaru, AI, gadget, software, dan inovasi tech",
    "business": "bisnis, ekonomi, startup, investasi, dan pasar saham",
    "sports": "olahraga, sepakbola, basket, MotoGP, Formula 1, dan atletik",
    "entertainment": "film, musik, selebriti, Netflix, dan hiburan",
    "science": "sains, penelitian, discovery, antariksa, dan penemuan ilmiah",
    "gaming": "game, esports, PlayStation, Xbox, Nintendo, dan game mobile",
    "world": "berita internasional, politik global, dan kejadian dunia",
    "indonesia": "berita Indonesia, politik lokal, dan kejadian nasional",
}

LANGUAGE_INSTRUCTIONS = {
    "id": "Tulis semua dalam Bahasa Indonesia yang baik dan benar.",
    "en": "Write everything in clear and professional English.",
    "es": "Escribe todo en español claro y profesional.",
    "zh": "用清晰专业的中文写作。",
    "ja": "明確でプロフェッショナルな日本語で書いてください。",
}

NO_CONTENT_FALLBACK = "Tidak ada konten yang dihasilkan."

PROBE_PROMPT = "Apa berita teknologi terpenting hari ini? Berikan 3 headline singkat."

DIGEST_PROMPT_TEMPLATE = """
Kamu adalah asisten berita profesional. Tugas kamu adalah membuat ringkasan berita harian (Daily Digest).

TOPIK: {topics}

INSTRUKSI:
1. Cari dan rangkum 5-7 berita terpenting hari ini dari topik di atas
2. Untuk setiap berita, berikan:
   - Judul singkat (1 baris)
   - Ringkasan (2-3 kalimat)
   - Mengapa ini penting
3. Urutkan dari yang paling penting/relevan
4. {language_instruction}
5. Format output dalam Markdown yang rapi
{custom_instruction}
FORMAT OUTPUT:
# 📰 Daily Digest - [Tanggal Hari Ini]

## 1. [Judul Berita 1]
[Ringkasan]
**Mengapa penting:** [Penjelasan singkat]

## 2. [Judul Berita 2]
...

---
*Digest ini dibuat otomatis oleh Vortex AI*
"""


class RetryableStatusError(ContentGenerationError):
    """Upstream returned a status worth retrying (429 or 5xx)."""

    def __init__(self, status_code: int, body: str) -> None:
        self.status_code = status_code
        super().__init__(f"Gemini API error: {status_code} {body}")


def build_digest_prompt(
    topics: list[str],
    language: str = "id",
    custom_prompt: str | None = None,
) -> str:
    """Build the digest instruction for the model."""
    topic_descriptions = ", ".join(TOPIC_PROMPTS.get(t, t) for t in topics)
    language_instruction = LANGUAGE_INSTRUCTIONS.get(language, LANGUAGE_INSTRUCTIONS["id"])
    custom_instruction = f"6. Instruksi tambahan: {custom_prompt}\n" if custom_prompt else ""

    return DIGEST_PROMPT_TEMPLATE.format(
        topics=topic_descriptions,
        language_instruction=language_instruction,
        custom_instruction=custom_instruction,
    )


def build_digest_title(topics: list[str]) -> str:
    """Title from the first three topics, e.g. "Daily Digest: technology, sports"."""
    return f"Daily Digest: {', '.join(topics[:3])}"


def extract_text(data: dict[str, Any]) -> str | None:
    """Text of the first part of the first candidate, if any."""
    candidates = data.get("candidates") or []
    if not candidates:
        return None
    parts = (candidates[0].get("content") or {}).get("parts") or []
    if not parts:
        return None
    return parts[0].get("text") or None


def extract_sources(data: dict[str, Any]) -> list[GroundingSource]:
    """Web citations from the first candidate's grounding metadata, in order."""
    candidates = data.get("candidates") or []
    if not candidates:
        return []

    metadata = candidates[0].get("groundingMetadata") or {}
    sources = []
    for chunk in metadata.get("groundingChunks") or []:
        web = chunk.get("web") or {}
        if web.get("uri") and web.get("title"):
            sources.append(GroundingSource(title=web["title"], url=web["uri"]))
    return sources


class BaseContentProvider(ABC):
    """Abstract base class for digest content providers."""

    provider_name: str = "unknown"

    @abstractmethod
    async def generate_digest(
        self,
        topics: list[str],
        language: str = "id",
        custom_prompt: str | None = None,
    ) -> DigestResult:
        """
        Generate a digest for the given topics.

        Args:
            topics: Topic ids to cover
            language: Language code for the digest
            custom_prompt: Optional extra instruction from the user

        Returns:
            DigestResult with title, markdown content and sources

        Raises:
            ConfigurationError: If the provider is not configured
            ContentGenerationError: If the upstream request fails
        """


class GeminiGroundingProvider(BaseContentProvider):
    """Gemini generateContent with the google_search tool."""

    provider_name = "gemini"

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-2.5-flash",
        base_url: str = "https://generativelanguage.googleapis.com/v1beta/models",
        timeout_seconds: float = 60.0,
        max_tries: int = 2,
    ) -> None:
        """
        Initialize the Gemini provider.

        Args:
            api_key: Gemini API key
            model: Model name
            base_url: REST base URL up to the models collection
            timeout_seconds: HTTP request timeout
            max_tries: Attempts for transient failures (transport errors, 429, 5xx)
        """
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self.max_tries = max(1, max_tries)

    async def generate_digest(
        self,
        topics: list[str],
        language: str = "id",
        custom_prompt: str | None = None,
    ) -> DigestResult:
        self._require_api_key()

        prompt = build_digest_prompt(topics, language, custom_prompt)
        logger.bind(topics=topics, language=language, model=self.model).info(
            "digest_generation_started"
        )

        data = await self._generate_content(prompt, temperature=0.7, maxOutputTokens=4096)

        content = extract_text(data) or NO_CONTENT_FALLBACK
        sources = extract_sources(data)

        logger.bind(sources=len(sources)).info("digest_generated")
        return DigestResult(
            title=build_digest_title(topics),
            content=content,
            sources=sources,
        )

    async def probe(self) -> str:
        """Send a short fixed question to check grounding works end to end."""
        self._require_api_key()
        data = await self._generate_content(PROBE_PROMPT, maxOutputTokens=1024)
        return extract_text(data) or "No response"

    def _require_api_key(self) -> None:
        if not self.api_key:
            raise ConfigurationError("GEMINI_API_KEY is not configured")

    async def _generate_content(self, prompt: str, **generation_config: Any) -> dict[str, Any]:
        payload = {
            "contents": [{"parts": [{"text": prompt}]}],
            "tools": [{"google_search": {}}],
            "generationConfig": generation_config,
        }

        post = backoff.on_exception(
            backoff.expo,
            (httpx.TransportError, RetryableStatusError),
            max_tries=self.max_tries,
            on_backoff=self._log_backoff,
        )(self._post)

        try:
            return await post(payload)
        except httpx.TransportError as e:
            logger.bind(error=str(e)).error("gemini_transport_error")
            raise ContentGenerationError(f"Gagal generate digest: {e}") from e

    async def _post(self, payload: dict[str, Any]) -> dict[str, Any]:
        url = f"{self.base_url}/{self.model}:generateContent"

        async with httpx.AsyncClient(timeout=self.timeout_seconds) as client:
            resp = await client.post(url, params={"key": self.api_key}, json=payload)

        if resp.status_code == 429 or resp.status_code >= 500:
            raise RetryableStatusError(resp.status_code, resp.text[:500])

        if resp.status_code != 200:
            logger.bind(status=resp.status_code, body=resp.text[:500]).error("gemini_api_error")
            raise ContentGenerationError(
                f"Gagal generate digest: Gemini API error {resp.status_code}"
            )

        try:
            return resp.json()
        except ValueError as e:
            raise ContentGenerationError("Gagal generate digest: invalid JSON response") from e

    @staticmethod
    def _log_backoff(details: dict[str, Any]) -> None:
        logger.bind(
            tries=details["tries"],
            wait_seconds=round(details["wait"], 2),
            error=str(details.get("exception")),
        ).warning("gemini_retry")


def get_content_provider() -> BaseContentProvider:
    """Build the content provider from settings."""
    settings = get_settings()
    return GeminiGroundingProvider(
        api_key=settings.gemini_api_key,
        model=settings.gemini_model,
        base_url=settings.gemini_base_url,
        timeout_seconds=settings.grounding_timeout_seconds,
        max_tries=settings.grounding_max_tries,
    )
