"""
Generation backend router.

Tries the requested backend first, then every remaining configured backend in
priority order, then the local stub. Each attempt runs under its own
wall-clock timeout; a timeout is a failure like any other. Attempts are
strictly sequential.
"""

import logging
import os
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from legal_doc_auto.config.loader import AppConfig, BackendName, GenerationConfig

from .backends import AnthropicBackend, GeminiBackend, GenerationBackend, OpenAIBackend
from .stub import LocalStubBackend

logger = logging.getLogger(__name__)

# Environment variable holding each provider's API key
API_KEY_ENV: Dict[str, str] = {
    "openai": "OPENAI_API_KEY",
    "claude": "ANTHROPIC_API_KEY",
    "gemini": "GOOGLE_AI_KEY",
}

BACKEND_CLASSES = {
    "openai": OpenAIBackend,
    "claude": AnthropicBackend,
    "gemini": GeminiBackend,
}


@dataclass(frozen=True)
class AttemptRecord:
    backend: str
    succeeded: bool
    error: Optional[str] = None


@dataclass(frozen=True)
class GenerationResult:
    """Generated text plus which backend produced it."""
    text: str
    backend: str
    attempts: Tuple[AttemptRecord, ...]


class GenerationRouter:
    """Ordered fallback across generation backends.

    Args:
        backends: Configured backends keyed by name; unconfigured ones are absent
        priority: Fallback order (the stub entry is ignored, it always runs last)
        stub: Terminal backend that never fails
        timeout_seconds: Wall-clock limit per attempt
        temperature: Sampling temperature passed to every backend
        max_tokens: Output length limit passed to every backend
    """

    def __init__(
        self,
        backends: Mapping[str, GenerationBackend],
        priority: Sequence[str],
        stub: Optional[GenerationBackend] = None,
        timeout_seconds: float = 60.0,
        temperature: float = 0.2,
        max_tokens: int = 2000,
    ):
        if timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be > 0")
        self.backends = dict(backends)
        self.priority = [name for name in priority if name != BackendName.TEST.value]
        self.stub = stub or LocalStubBackend()
        self.timeout_seconds = timeout_seconds
        self.temperature = temperature
        self.max_tokens = max_tokens
        self._executor = ThreadPoolExecutor(max_workers=4, thread_name_prefix="generation")

    def attempt_order(self, requested_backend: Optional[str]) -> List[str]:
        """Configured backends to try, requested one first, stub excluded."""
        order: List[str] = []
        if requested_backend in self.backends:
            order.append(requested_backend)
        elif requested_backend and requested_backend != BackendName.TEST.value:
            logger.warning("Requested backend %s is not configured", requested_backend)
        for name in self.priority:
            if name in self.backends and name not in order:
                order.append(name)
        return order

    def _attempt(
        self,
        backend: GenerationBackend,
        system_instruction: str,
        user_instruction: str,
        temperature: float,
        max_tokens: int,
    ) -> str:
        future = self._executor.submit(
            backend.generate,
            system_instruction,
            user_instruction,
            temperature,
            max_tokens,
        )
        try:
            return future.result(timeout=self.timeout_seconds)
        except FutureTimeout:
            # The worker thread cannot be interrupted; its late result is discarded
            future.cancel()
            raise TimeoutError(
                f"{backend.name} did not respond within {self.timeout_seconds}s"
            )

    def generate_with_details(
        self,
        requested_backend: Optional[str],
        system_instruction: str,
        user_instruction: str,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> GenerationResult:
        """Run the fallback chain. Never raises.

        Args:
            requested_backend: Backend to try first (may be unknown or None)
            system_instruction: System instruction for the backend
            user_instruction: User instruction for the backend
            temperature: Overrides the configured sampling temperature
            max_tokens: Overrides the configured output limit

        Returns:
            GenerationResult with the text and the backend that produced it
        """
        temperature = self.temperature if temperature is None else temperature
        max_tokens = self.max_tokens if max_tokens is None else max_tokens
        attempts: List[AttemptRecord] = []
        if requested_backend == BackendName.TEST.value:
            order: List[str] = []
        else:
            order = self.attempt_order(requested_backend)

        for name in order:
            backend = self.backends[name]
            try:
                text = self._attempt(
                    backend, system_instruction, user_instruction, temperature, max_tokens
                )
            except Exception as e:
                logger.warning("Generation with %s failed: %s", name, e)
                attempts.append(AttemptRecord(name, False, str(e)))
                continue
            logger.info("Generated document with %s", name)
            attempts.append(AttemptRecord(name, True))
            return GenerationResult(text=text, backend=name, attempts=tuple(attempts))

        if order:
            logger.error("All configured backends failed; using local stub")
        text = self.stub.generate(system_instruction, user_instruction, temperature, max_tokens)
        logger.info("Generated document with %s", self.stub.name)
        attempts.append(AttemptRecord(self.stub.name, True))
        return GenerationResult(text=text, backend=self.stub.name, attempts=tuple(attempts))

    def generate(
        self,
        requested_backend: Optional[str],
        system_instruction: str,
        user_instruction: str,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> str:
        return self.generate_with_details(
            requested_backend, system_instruction, user_instruction, temperature, max_tokens
        ).text

    def close(self) -> None:
        self._executor.shutdown(wait=False)


def resolve_default_backend(config: GenerationConfig, env: Mapping[str, str]) -> str:
    """AI_PROVIDER overrides the configured default when it names a known backend."""
    override = (env.get("AI_PROVIDER") or "").strip().lower()
    if override:
        valid = [backend.value for backend in BackendName]
        if override in valid:
            return override
        logger.warning("Ignoring unknown AI_PROVIDER value: %s", override)
    return config.default_backend


def build_backends(
    config: GenerationConfig,
    env: Mapping[str, str],
) -> Dict[str, GenerationBackend]:
    """Instantiate each backend whose API key is present in the environment."""
    backends: Dict[str, GenerationBackend] = {}
    for name, env_var in API_KEY_ENV.items():
        api_key = (env.get(env_var) or "").strip()
        if not api_key:
            logger.debug("%s not set; %s backend disabled", env_var, name)
            continue
        backends[name] = BACKEND_CLASSES[name](
            api_key=api_key,
            model=config.model_for(name),
            timeout=config.timeout_seconds,
        )
    return backends


def build_router(
    config: Optional[AppConfig] = None,
    env: Optional[Mapping[str, str]] = None,
) -> GenerationRouter:
    """Assemble the router once at process start.

    Args:
        config: Application configuration (defaults to built-in defaults)
        env: Environment mapping (defaults to os.environ)

    Returns:
        GenerationRouter with every backend that has credentials
    """
    generation = (config or AppConfig()).generation
    env = os.environ if env is None else env
    backends = build_backends(generation, env)
    logger.info("Configured generation backends: %s", ", ".join(backends) or "none")
    return GenerationRouter(
        backends=backends,
        priority=generation.priority,
        stub=LocalStubBackend(),
        timeout_seconds=generation.timeout_seconds,
        temperature=generation.temperature,
        max_tokens=generation.max_tokens,
    )
