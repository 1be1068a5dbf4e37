"""Load settings.yaml into typed dataclasses. Validates engine rules at startup."""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

logger = logging.getLogger(__name__)

_SETTINGS_PATH = Path(__file__).parent / "settings.yaml"


class ConfigError(Exception):
    """Raised when settings are present but unusable."""


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
class ParticipantConfig:
    id: str
    name: str
    title: str
    model: str | None = None     # key into AppConfig.models
    persona: str = ""


@dataclass
class EngineConfig:
    initial_delay_sec: float
    interval_sec: float
    approval_threshold: float
    voting_deadline_sec: float
    state_dir: Path
    output_dir: Path
    chat_log: Path | None = None


@dataclass
class ContentConfig:
    generator: str = "scripted"    # "scripted" or "personas"
    rounds: int = 3


@dataclass
class InboxConfig:
    dir: Path = Path("./inbox")
    archive_dir: Path = Path("./inbox/archive")


@dataclass
class PromptsConfig:
    debate: str = ""


@dataclass
class AppConfig:
    engine: EngineConfig
    participants: dict[str, ParticipantConfig]
    content: ContentConfig = field(default_factory=ContentConfig)
    inbox: InboxConfig = field(default_factory=InboxConfig)
    models: dict[str, ModelConfig] = field(default_factory=dict)
    prompts: PromptsConfig = field(default_factory=PromptsConfig)
    available_providers: set[str] = field(default_factory=set)


def validate_engine(engine: EngineConfig) -> None:
    """Reject pacing and voting rules the engine cannot run with.

    Raises:
        ConfigError: naming the first offending setting.
    """
    if engine.initial_delay_sec <= 0:
        raise ConfigError(f"engine.initial_delay_sec must be positive, got {engine.initial_delay_sec}")
    if engine.interval_sec <= 0:
        raise ConfigError(f"engine.interval_sec must be positive, got {engine.interval_sec}")
    if engine.voting_deadline_sec <= 0:
        raise ConfigError(f"engine.voting_deadline_sec must be positive, got {engine.voting_deadline_sec}")
    if not 0 < engine.approval_threshold <= 1:
        raise ConfigError(
            f"engine.approval_threshold must be in (0, 1], got {engine.approval_threshold}"
        )


def load_config(settings_path: Path = _SETTINGS_PATH) -> AppConfig:
    """Load and validate configuration from settings.yaml.

    Raises FileNotFoundError if settings file missing, ConfigError if the
    engine rules or participant list are invalid. Missing API keys are only
    logged; callers check available_providers when they need a model.
    """
    if not settings_path.exists():
        raise FileNotFoundError(f"Settings file not found: {settings_path}")

    with settings_path.open("r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}

    try:
        engine_raw = raw["engine"]
        engine = EngineConfig(
            initial_delay_sec=float(engine_raw["initial_delay_sec"]),
            interval_sec=float(engine_raw["interval_sec"]),
            approval_threshold=float(engine_raw["approval_threshold"]),
            voting_deadline_sec=float(engine_raw["voting_deadline_sec"]),
            state_dir=Path(engine_raw.get("state_dir", "./state")),
            output_dir=Path(engine_raw.get("output_dir", "./output")),
            chat_log=Path(engine_raw["chat_log"]) if engine_raw.get("chat_log") else None,
        )
    except KeyError as exc:
        raise ConfigError(f"Missing engine setting: {exc.args[0]}") from exc
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid engine setting: {exc}") from exc
    validate_engine(engine)

    participants: dict[str, ParticipantConfig] = {}
    for pid, p_raw in (raw.get("participants") or {}).items():
        p_raw = p_raw or {}
        participants[pid] = ParticipantConfig(
            id=pid,
            name=str(p_raw.get("name", pid.title())),
            title=str(p_raw.get("title", "Validator")),
            model=p_raw.get("model"),
            persona=str(p_raw.get("persona", "")).strip(),
        )
    if not participants:
        raise ConfigError("At least one participant is required")

    content_raw = raw.get("content") or {}
    content = ContentConfig(
        generator=str(content_raw.get("generator", "scripted")),
        rounds=int(content_raw.get("rounds", 3)),
    )
    if content.generator not in ("scripted", "personas"):
        raise ConfigError(f"content.generator must be 'scripted' or 'personas', got {content.generator!r}")
    if content.rounds < 1:
        raise ConfigError(f"content.rounds must be at least 1, got {content.rounds}")

    inbox_raw = raw.get("inbox") or {}
    inbox = InboxConfig(
        dir=Path(inbox_raw.get("dir", "./inbox")),
        archive_dir=Path(inbox_raw.get("archive_dir", "./inbox/archive")),
    )

    prompts = PromptsConfig(debate=(raw.get("prompts") or {}).get("debate", ""))

    models: dict[str, ModelConfig] = {}
    available_providers: set[str] = set()

    for provider_name, model_raw in (raw.get("models") or {}).items():
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
            logger.debug(
                "Provider skipped (no API key): %s, set %s in .env",
                provider_name,
                model_raw["api_key_env"],
            )

    return AppConfig(
        engine=engine,
        participants=participants,
        content=content,
        inbox=inbox,
        models=models,
        prompts=prompts,
        available_providers=available_providers,
    )
