"""Load settings.yaml into typed dataclasses. Reports which API keys are present."""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

logger = logging.getLogger(__name__)

_SETTINGS_PATH = Path(__file__).parent / "settings.yaml"


@dataclass
class ModelConfig:
    name: str
    sdk: str
    model: str
    api_key_env: str
    timeout_sec: int
    max_tokens: int
    base_url: str | None = None


@dataclass
class SeatConfig:
    personality: str
    provider: str
    model: str | None = None  # overrides the provider's default model


@dataclass
class LimitsConfig:
    framework_turns: int = 4
    discussion_turns: int = 18
    participant_turns: int = 3
    claims_per_check: int = 3
    fact_check_history: int = 10


@dataclass
class PromptsConfig:
    framework_opening: str
    framework_summary: str
    nominated: str
    awaiting: str
    interjection: str
    synthesis: str
    fact_check_request: str
    evaluation: str = ""


@dataclass
class EvaluatorConfig:
    provider: str
    model: str | None = None


@dataclass
class AppConfig:
    limits: LimitsConfig
    roster: list[SeatConfig]
    models: dict[str, ModelConfig]
    prompts: PromptsConfig
    evaluator: EvaluatorConfig | None = None
    available_providers: set[str] = field(default_factory=set)


def load_config(settings_path: Path = _SETTINGS_PATH) -> AppConfig:
    """Load and validate configuration from settings.yaml.

    Raises FileNotFoundError if settings file missing, ValueError if a roster
    seat or the evaluator names a provider with no ``models`` entry.
    Logs missing API keys but does not raise: a participant whose key is
    missing reports a missing_credential error when it is asked to speak.
    """
    if not settings_path.exists():
        raise FileNotFoundError(f"Settings file not found: {settings_path}")

    with settings_path.open("r", encoding="utf-8") as f:
        raw = yaml.safe_load(f)

    limits_raw = raw.get("limits", {})
    limits = LimitsConfig(**{k: int(v) for k, v in limits_raw.items()})

    prompts_raw = raw["prompts"]
    prompts = PromptsConfig(
        framework_opening=prompts_raw["framework_opening"],
        framework_summary=prompts_raw["framework_summary"],
        nominated=prompts_raw["nominated"],
        awaiting=prompts_raw["awaiting"],
        interjection=prompts_raw["interjection"],
        synthesis=prompts_raw["synthesis"],
        fact_check_request=prompts_raw["fact_check_request"],
        evaluation=prompts_raw.get("evaluation", ""),
    )

    models: dict[str, ModelConfig] = {}
    available_providers: set[str] = set()

    for provider_name, model_raw in raw["models"].items():
        model_cfg = ModelConfig(
            name=provider_name,
            sdk=model_raw["sdk"],
            model=model_raw["model"],
            api_key_env=model_raw["api_key_env"],
            timeout_sec=int(model_raw["timeout_sec"]),
            max_tokens=int(model_raw["max_tokens"]),
            base_url=model_raw.get("base_url"),
        )
        models[provider_name] = model_cfg

        api_key = os.environ.get(model_raw["api_key_env"], "").strip()
        if api_key:
            available_providers.add(provider_name)
            logger.info("Provider available: %s", provider_name)
        else:
            logger.info(
                "Provider has no API key: %s (set %s in .env)",
                provider_name,
                model_raw["api_key_env"],
            )

    roster: list[SeatConfig] = []
    for seat_raw in raw["roster"]:
        seat = SeatConfig(
            personality=str(seat_raw["personality"]),
            provider=str(seat_raw["provider"]),
            model=seat_raw.get("model"),
        )
        if seat.provider not in models:
            raise ValueError(f"Roster seat '{seat.personality}' uses unknown provider '{seat.provider}'")
        roster.append(seat)

    evaluator: EvaluatorConfig | None = None
    evaluator_raw = raw.get("evaluator")
    if evaluator_raw:
        evaluator = EvaluatorConfig(
            provider=str(evaluator_raw["provider"]),
            model=evaluator_raw.get("model"),
        )
        if evaluator.provider not in models:
            raise ValueError(f"Evaluator uses unknown provider '{evaluator.provider}'")

    return AppConfig(
        limits=limits,
        roster=roster,
        models=models,
        prompts=prompts,
        evaluator=evaluator,
        available_providers=available_providers,
    )
