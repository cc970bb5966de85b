import time

import requests

from videodigest.captioning.base import InferenceResponse, TokenUsage
from videodigest.core.exceptions import InferenceError
from videodigest.core.logging import get_logger


class OllamaInferenceClient:
    """
    Multimodal chat client for Ollama's /api/chat endpoint.

    Responses are requested in JSON mode; token usage comes from
    prompt_eval_count / eval_count, which Ollama omits on cached prompts
    (treated as zero).
    """

    def __init__(
        self,
        base_url: str,
        model: str,
        max_tokens: int = 1024,
        temperature: float = 0.01,
        timeout: int = 300,
    ):
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.timeout = timeout
        self.logger = get_logger()

    @classmethod
    def from_settings(cls, settings) -> "OllamaInferenceClient":
        return cls(
            base_url=settings.ollama_host,
            model=settings.multimodal_model,
            max_tokens=settings.inference_max_tokens,
            temperature=settings.inference_temperature,
            timeout=settings.inference_timeout_seconds,
        )

    def invoke(self, system_prompt: str, messages: list[dict]) -> InferenceResponse:
        payload = {
            "model": self.model,
            "messages": [{"role": "system", "content": system_prompt}, *messages],
            "stream": False,
            "format": "json",
            "options": {
                "num_predict": self.max_tokens,
                "temperature": self.temperature,
            },
        }

        try:
            response = requests.post(
                f"{self.base_url}/api/chat",
                json=payload,
                timeout=self.timeout,
            )
            response.raise_for_status()
            body = response.json()
        except requests.exceptions.Timeout as e:
            raise InferenceError(
                f"Model call timed out after {self.timeout}s", cause=e
            ) from e
        except (requests.exceptions.RequestException, ValueError) as e:
            raise InferenceError("Model call failed", cause=e) from e

        usage = TokenUsage(
            input_tokens=int(body.get("prompt_eval_count") or 0),
            output_tokens=int(body.get("eval_count") or 0),
        )
        text = (body.get("message") or {}).get("content") or ""
        return InferenceResponse(text=text, usage=usage)

    # ── Endpoint readiness ─────────────────────────────────────────────────────

    def wait_until_ready(self, max_retries: int = 10, retry_delay: float = 3.0) -> None:
        url = f"{self.base_url}/api/tags"
        for attempt in range(1, max_retries + 1):
            try:
                if requests.get(url, timeout=5).status_code == 200:
                    self.logger.info("ollama_ready", host=self.base_url)
                    return
            except requests.exceptions.RequestException:
                pass
            self.logger.warning("ollama_not_ready_retrying", attempt=attempt)
            time.sleep(retry_delay)
        raise InferenceError(f"Ollama not ready after {max_retries} retries: {self.base_url}")

    def pull_model(self) -> None:
        """Pull the model if not already present. Idempotent."""
        self.logger.info("pulling_model", model=self.model)
        try:
            response = requests.post(
                f"{self.base_url}/api/pull",
                json={"name": self.model, "stream": False},
                timeout=600,
            )
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            self.logger.error("model_pull_failed", model=self.model, error=str(e))
            raise InferenceError(f"Failed to pull model {self.model}", cause=e) from e
        self.logger.info("model_ready", model=self.model)
