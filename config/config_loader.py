"""Load settings.yaml into typed dataclasses. Reports available API keys at startup."""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

logger = logging.getLogger(__name__)

_SETTINGS_PATH = Path(__file__).parent / "settings.yaml"

DEFAULT_EXTENSIONS = [".txt", ".md"]
DEFAULT_DEBOUNCE_SEC = 0.5
DEFAULT_INSTRUCTION = "Summarize this text in 2-3 sentences:\n\n"


@dataclass
class ModelConfig:
    name: str
    sdk: str
    model: str
    api_key_env: str
    timeout_sec: int
    max_tokens: int
    base_url: str | None = None
    input_per_1m: float | None = None
    output_per_1m: float | None = None


@dataclass
class WatchConfig:
    dir: Path
    extensions: list[str] = field(default_factory=lambda: list(DEFAULT_EXTENSIONS))
    debounce_sec: float = DEFAULT_DEBOUNCE_SEC
    max_concurrent_events: int = 0  # 0 = unbounded


@dataclass
class StoreConfig:
    dir: Path


@dataclass
class PromptsConfig:
    instruction: str = DEFAULT_INSTRUCTION


@dataclass
class DefaultsConfig:
    panel: list[str] = field(default_factory=list)
    allow_partial: bool = False


@dataclass
class AppConfig:
    watch: WatchConfig
    store: StoreConfig
    prompts: PromptsConfig
    defaults: DefaultsConfig
    models: dict[str, ModelConfig]
    available_providers: set[str] = field(default_factory=set)


def _optional_float(value: object) -> float | None:
    return None if value is None else float(value)


def load_config(settings_path: Path = _SETTINGS_PATH) -> AppConfig:
    """Load and validate configuration from settings.yaml.

    Raises FileNotFoundError if settings file missing, ValueError on invalid
    values. Missing API keys are logged but do not raise; callers check
    available_providers count.
    """
    if not settings_path.exists():
        raise FileNotFoundError(f"Settings file not found: {settings_path}")

    with settings_path.open("r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}

    watch_raw = raw.get("watch", {})
    extensions = [str(e) for e in watch_raw.get("extensions", DEFAULT_EXTENSIONS)]
    if not extensions:
        raise ValueError("watch.extensions must list at least one extension")
    debounce_sec = float(watch_raw.get("debounce_sec", DEFAULT_DEBOUNCE_SEC))
    if debounce_sec < 0:
        raise ValueError(f"watch.debounce_sec must be >= 0, got {debounce_sec}")
    max_concurrent = int(watch_raw.get("max_concurrent_events", 0))
    if max_concurrent < 0:
        raise ValueError(f"watch.max_concurrent_events must be >= 0, got {max_concurrent}")
    watch_dir = Path(watch_raw.get("dir", "./inbox"))
    watch = WatchConfig(
        dir=watch_dir,
        extensions=extensions,
        debounce_sec=debounce_sec,
        max_concurrent_events=max_concurrent,
    )

    store_raw = raw.get("store", {})
    store = StoreConfig(dir=Path(store_raw.get("dir", watch_dir / "comparisons")))

    prompts_raw = raw.get("prompts", {})
    prompts = PromptsConfig(instruction=str(prompts_raw.get("instruction", DEFAULT_INSTRUCTION)))

    defaults_raw = raw.get("defaults", {})
    defaults = DefaultsConfig(
        panel=list(defaults_raw.get("panel", [])),
        allow_partial=bool(defaults_raw.get("allow_partial", False)),
    )

    models: dict[str, ModelConfig] = {}
    available_providers: set[str] = set()

    for provider_name, model_raw in raw.get("models", {}).items():
        model_cfg = ModelConfig(
            name=provider_name,
            sdk=model_raw["sdk"],
            model=model_raw["model"],
            api_key_env=model_raw["api_key_env"],
            timeout_sec=int(model_raw["timeout_sec"]),
            max_tokens=int(model_raw["max_tokens"]),
            base_url=model_raw.get("base_url"),
            input_per_1m=_optional_float(model_raw.get("input_per_1m")),
            output_per_1m=_optional_float(model_raw.get("output_per_1m")),
        )
        models[provider_name] = model_cfg

        api_key = os.environ.get(model_raw["api_key_env"], "").strip()
        if api_key:
            available_providers.add(provider_name)
            logger.info("Provider available: %s", provider_name)
        else:
            logger.info(
                "Provider skipped (no API key): %s - set %s in .env",
                provider_name,
                model_raw["api_key_env"],
            )

    return AppConfig(
        watch=watch,
        store=store,
        prompts=prompts,
        defaults=defaults,
        models=models,
        available_providers=available_providers,
    )
