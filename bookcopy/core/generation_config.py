# =============================================================================
# bookcopy/core/generation_config.py — Per-type temperature / max tokens
# =============================================================================
# The table is built once from raw override strings (OPENAI_<TYPE>_TEMPERATURE,
# OPENAI_<TYPE>_MAX_TOKENS) and is read-only afterwards. Invalid or missing
# overrides fall back to the defaults below.
# =============================================================================

import math
from collections.abc import Mapping
from dataclasses import dataclass
from functools import lru_cache
from types import MappingProxyType

from bookcopy.core.config import get_settings
from bookcopy.llms.prompts import GenerationType, parse_generation_type
from bookcopy.utils.logger import logger

MIN_TEMPERATURE = 0.0
MAX_TEMPERATURE = 2.0


@dataclass(frozen=True)
class GenerationConfig:
    temperature: float
    max_output_tokens: int


DEFAULT_GENERATION_CONFIG: Mapping[GenerationType, GenerationConfig] = MappingProxyType({
    GenerationType.BLURB: GenerationConfig(temperature=0.7, max_output_tokens=500),
    GenerationType.DESCRIPTION: GenerationConfig(temperature=0.7, max_output_tokens=500),
    GenerationType.KEYWORDS: GenerationConfig(temperature=0.5, max_output_tokens=150),
    GenerationType.CATEGORIES: GenerationConfig(temperature=0.6, max_output_tokens=200),
    GenerationType.FOREWORD: GenerationConfig(temperature=0.7, max_output_tokens=400),
    GenerationType.ANALYSIS: GenerationConfig(temperature=0.8, max_output_tokens=600),
})


def _parse_temperature(raw: str | None, default: float) -> float:
    if raw is None:
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.debug("generation_override_rejected", extra={"value": raw, "reason": "not a number"})
        return default
    if not math.isfinite(value) or not MIN_TEMPERATURE <= value <= MAX_TEMPERATURE:
        logger.debug("generation_override_rejected", extra={"value": raw, "reason": "out of range"})
        return default
    return value


def _parse_max_tokens(raw: str | None, default: int) -> int:
    if raw is None:
        return default
    try:
        value = int(raw.strip())
    except ValueError:
        logger.debug("generation_override_rejected", extra={"value": raw, "reason": "not an integer"})
        return default
    if value <= 0:
        logger.debug("generation_override_rejected", extra={"value": raw, "reason": "not positive"})
        return default
    return value


class GenerationConfigTable:
    def __init__(self, configs: Mapping[GenerationType, GenerationConfig] | None = None) -> None:
        merged = dict(DEFAULT_GENERATION_CONFIG)
        if configs:
            merged.update(configs)
        self._configs: Mapping[GenerationType, GenerationConfig] = MappingProxyType(merged)

    @classmethod
    def from_overrides(cls, overrides: Mapping[str, str]) -> "GenerationConfigTable":
        """Build a table from raw values keyed ``<TYPE>_TEMPERATURE`` / ``<TYPE>_MAX_TOKENS``.

        Keys are case-insensitive. Values that do not parse, or fall outside
        the allowed range, keep the default for that type.
        """
        normalized = {k.upper(): v for k, v in overrides.items()}
        configs = {}
        for gen_type, default in DEFAULT_GENERATION_CONFIG.items():
            prefix = gen_type.value.upper()
            configs[gen_type] = GenerationConfig(
                temperature=_parse_temperature(normalized.get(f"{prefix}_TEMPERATURE"), default.temperature),
                max_output_tokens=_parse_max_tokens(
                    normalized.get(f"{prefix}_MAX_TOKENS"), default.max_output_tokens
                ),
            )
        return cls(configs)

    def config_for(self, generation_type: GenerationType | str) -> GenerationConfig:
        return self._configs[parse_generation_type(generation_type)]


@lru_cache
def get_generation_config() -> GenerationConfigTable:
    return GenerationConfigTable.from_overrides(get_settings().generation_overrides)
