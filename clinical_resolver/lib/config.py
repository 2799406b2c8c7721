"""Configuration loader for resolver thresholds and service settings."""

import logging
import os
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from clinical_resolver.lib.errors import ConfigurationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RankerSettings:
    """Tunable constants of the relevance ranker.

    Defaults reproduce the values the clinical team calibrated against; none
    of them has a documented derivation, so they are kept configurable.
    """

    title_weight: float = 3.0
    diagnosis_weight: float = 2.5
    symptoms_weight: float = 2.0
    techniques_weight: float = 1.8
    tags_weight: float = 1.5
    content_weight: float = 1.0

    exact_match_factor: float = 1.0
    partial_match_factor: float = 0.7
    fuzzy_match_factor: float = 0.5
    fuzzy_term_threshold: float = 0.8
    normalization_factor: float = 10.0

    category_boost: float = 1.3
    specialty_boost: float = 1.2
    sparse_match_threshold: float = 0.3
    generic_search_threshold: float = 0.1
    default_limit: int = 10

    symptom_match_threshold: float = 0.8
    diagnosis_match_threshold: float = 0.6
    technique_match_threshold: float = 0.7
    fuzzy_search_threshold: float = 0.6
    fuzzy_content_threshold_factor: float = 0.8
    fuzzy_content_weight: float = 0.9
    fuzzy_tag_weight: float = 0.8

    highlight_context_chars: int = 20
    max_highlights: int = 5

    def field_weights(self) -> list[tuple[str, float]]:
        """Weighted entry fields in scoring order.

        Returns:
            List of (field name, weight)
        """
        return [
            ("title", self.title_weight),
            ("diagnosis", self.diagnosis_weight),
            ("symptoms", self.symptoms_weight),
            ("techniques", self.techniques_weight),
            ("tags", self.tags_weight),
            ("content", self.content_weight),
        ]


@dataclass(frozen=True)
class ResolverSettings:
    """Settings of the tiered resolution pipeline."""

    trust_threshold: float = 0.7
    kb_search_limit: int = 5
    fallback_confidence: float = 0.1
    error_confidence: float = 0.0
    savings_per_free_answer: float = 0.003
    metrics_history: int = 1000
    fallback_message: str = (
        "Sorry, your query could not be processed right now. All AI resources are "
        "temporarily unavailable. Please try again in a few minutes or consult the "
        "knowledge base manually."
    )
    error_message: str = (
        "An error occurred while processing your query. Please rephrase the question "
        "or contact technical support."
    )
    knowledge_base_footer: str = "*Source: internal knowledge base*"
    ranker: RankerSettings = field(default_factory=RankerSettings)


# Environment variable -> (section, key)
_ENV_OVERRIDES = {
    "RESOLVER_TRUST_THRESHOLD": ("resolver", "trust_threshold"),
    "RESOLVER_KB_SEARCH_LIMIT": ("resolver", "kb_search_limit"),
    "RESOLVER_SAVINGS_PER_FREE_ANSWER": ("resolver", "savings_per_free_answer"),
    "RESOLVER_GENERIC_SEARCH_THRESHOLD": ("ranker", "generic_search_threshold"),
    "RESOLVER_SPARSE_MATCH_THRESHOLD": ("ranker", "sparse_match_threshold"),
    "RESOLVER_FUZZY_SEARCH_THRESHOLD": ("ranker", "fuzzy_search_threshold"),
}


def _coerce(dataclass_type: type, values: dict[str, Any], section: str) -> dict[str, Any]:
    """Validate keys and coerce values to the declared field types."""
    known = {f.name: f for f in fields(dataclass_type) if f.name != "ranker"}
    coerced: dict[str, Any] = {}

    for key, raw in values.items():
        if key not in known:
            raise ConfigurationError(f"Unknown {section} setting: {key}")

        default = known[key].default
        try:
            if isinstance(default, bool):
                coerced[key] = str(raw).lower() in ("1", "true", "yes")
            elif isinstance(default, int):
                coerced[key] = int(raw)
            elif isinstance(default, float):
                coerced[key] = float(raw)
            else:
                coerced[key] = str(raw)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid value for {section}.{key}: {raw!r}") from e

    return coerced


class ConfigLoader:
    """Loads and manages resolver configuration."""

    def __init__(self, config_dir: str | None = None, env_file: str | None = None):
        """Initialize configuration loader.

        Args:
            config_dir: Directory containing resolver.yaml (default: ./config)
            env_file: Path to .env file (default: ./.env)
        """
        self.config_dir = Path(config_dir or "config")
        self.env_file = Path(env_file or ".env")

        if self.env_file.exists():
            load_dotenv(self.env_file)
            logger.info(f"Loaded environment from {self.env_file}")
        else:
            logger.debug(f"Environment file not found: {self.env_file}")

        self.raw = self._load_file()
        self.settings = self._build_settings()
        self.env = self._load_env_vars()

    def _load_file(self) -> dict[str, Any]:
        """Load resolver.yaml if present."""
        config_file = self.config_dir / "resolver.yaml"

        if not config_file.exists():
            logger.warning(f"Resolver config not found: {config_file}, using defaults")
            return {}

        with open(config_file) as f:
            try:
                data = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigurationError(f"Malformed config file {config_file}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigurationError(f"Config file {config_file} must contain a mapping")

        logger.info(f"Loaded resolver configuration from {config_file}")
        return data

    def _build_settings(self) -> ResolverSettings:
        """Merge file values and environment overrides into settings."""
        resolver_values = dict(self.raw.get("resolver") or {})
        ranker_values = dict(self.raw.get("ranker") or {})

        for env_name, (section, key) in _ENV_OVERRIDES.items():
            value = os.getenv(env_name)
            if value is None:
                continue
            target = resolver_values if section == "resolver" else ranker_values
            target[key] = value
            logger.info(f"Config override from environment: {env_name}")

        ranker = replace(RankerSettings(), **_coerce(RankerSettings, ranker_values, "ranker"))
        settings = replace(
            ResolverSettings(ranker=ranker),
            **_coerce(ResolverSettings, resolver_values, "resolver"),
        )

        if not 0.0 <= settings.trust_threshold <= 1.0:
            raise ConfigurationError(
                f"trust_threshold must be within [0, 1], got {settings.trust_threshold}"
            )
        if settings.kb_search_limit < 1:
            raise ConfigurationError("kb_search_limit must be at least 1")

        return settings

    def _load_env_vars(self) -> dict[str, Any]:
        """Load service-level environment variables."""
        return {
            "log_level": os.getenv("RESOLVER_LOG_LEVEL", "INFO"),
            "log_file": os.getenv("RESOLVER_LOG_FILE"),
            "structured_logs": os.getenv("RESOLVER_STRUCTURED_LOGS", "false").lower() == "true",
            "seed_file": os.getenv("RESOLVER_SEED_FILE", str(self.config_dir / "knowledge_seed.yaml")),
            "host": os.getenv("RESOLVER_HOST", "0.0.0.0"),
            "port": int(os.getenv("RESOLVER_PORT", "9000")),
        }

    def get_env(self, key: str, default: Any = None) -> Any:
        """Get environment variable value."""
        return self.env.get(key, default)

    def get_section(self, name: str) -> dict[str, Any]:
        """Get a raw configuration section."""
        return dict(self.raw.get(name) or {})
