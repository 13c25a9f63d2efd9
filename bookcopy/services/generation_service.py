import time

from bookcopy.core.errors import (
    CompletionError,
    EmptyInput,
    GenerationFailed,
    MalformedResponse,
    UpstreamError,
)
from bookcopy.core.generation_config import GenerationConfigTable, get_generation_config
from bookcopy.llms.base import BaseLLM
from bookcopy.llms.openai_client import OpenAIClient
from bookcopy.llms.prompts import SYSTEM_PROMPT, GenerationType, build_prompt, parse_generation_type
from bookcopy.utils.logger import logger

UPSTREAM_BODY_LOG_LIMIT = 500


def _failure_detail(error: CompletionError) -> dict:
    detail: dict = {"error_kind": type(error).__name__}
    if isinstance(error, UpstreamError):
        detail["status_code"] = error.status_code
        detail["upstream_body"] = error.body[:UPSTREAM_BODY_LOG_LIMIT]
    elif isinstance(error, MalformedResponse):
        detail["reason"] = error.reason
    else:
        detail["reason"] = str(error)
    return detail


async def generate(
    generation_type: GenerationType | str,
    extracted_text: str,
    *,
    config: GenerationConfigTable | None = None,
    client: BaseLLM | None = None,
) -> str:
    """Generate one piece of book copy from manuscript text.

    Raises InvalidGenerationType or EmptyInput for bad arguments (before any
    network call) and GenerationFailed for every completion failure. The
    original failure is logged here and never propagated to the caller.
    """
    gen_type = parse_generation_type(generation_type)
    if not extracted_text or not extracted_text.strip():
        raise EmptyInput()

    prompt = build_prompt(gen_type, extracted_text)
    gen_config = (config or get_generation_config()).config_for(gen_type)

    owns_client = client is None
    llm = client or OpenAIClient()
    start = time.perf_counter()
    try:
        result = await llm.complete(
            SYSTEM_PROMPT,
            prompt,
            gen_config.temperature,
            gen_config.max_output_tokens,
        )
    except CompletionError as e:
        logger.error(
            "generation_failed",
            extra={"generation_type": gen_type.value, **_failure_detail(e)},
        )
        raise GenerationFailed() from None
    finally:
        if owns_client:
            await llm.close()
    latency_ms = (time.perf_counter() - start) * 1000
    logger.info(
        "generation_succeeded",
        extra={
            "generation_type": gen_type.value,
            "latency_ms": round(latency_ms, 2),
            "prompt_chars": len(prompt),
            "output_chars": len(result),
        },
    )
    return result
