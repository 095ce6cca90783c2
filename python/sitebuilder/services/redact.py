"""Keep user text and secrets out of the logs.

Prompts, generated documents, explorer file contents, session tokens and
API keys must never be logged. Log their size or a hash instead, under a key
ending in one of REDACTED_SUFFIXES:

    logger.info("llm.request.started", **safe_kv(model_name=m, prompt_chars=len(p)))
"""

import hashlib
import os

import structlog

FORBIDDEN_KEYS = frozenset(
    {
        # user and model text
        "prompt",
        "instruction",
        "message",
        "content",
        "code",
        "html",
        # credentials
        "api_key",
        "bearer",
        "token",
        "secret",
        "password",
    }
)

REDACTED_SUFFIXES = ("_sha256", "_hash", "_length", "_chars")

_STRICT_ENVS = ("local", "test")


def hash_text(value: str) -> str:
    return hashlib.sha256(value.encode("utf-8")).hexdigest()


def safe_kv(*, _env: str | None = None, **fields) -> dict:
    """Return `fields` unchanged after checking no forbidden key is present.

    In local and test a forbidden key raises ValueError so the mistake
    surfaces in development; elsewhere it is reported with a warning and the
    event is still logged. `_env` overrides SITEBUILDER_ENV.
    """
    violations = sorted(
        key for key in fields if key in FORBIDDEN_KEYS and not key.endswith(REDACTED_SUFFIXES)
    )
    if not violations:
        return fields

    env = _env or os.environ.get("SITEBUILDER_ENV", "local")
    if env in _STRICT_ENVS:
        raise ValueError(f"Forbidden log keys without redacted suffix: {violations}")

    structlog.get_logger(__name__).warning("safe_kv_violation", forbidden_keys=violations)
    return fields
