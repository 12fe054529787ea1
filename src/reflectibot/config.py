"""
Configuration - the engine's rule tables, stage ladder, voices and summary limits.

Everything the classifiers match against lives here as data, so a deployment
can retune lexicons, move stage thresholds or remap voices without touching
code. Loaded from YAML or JSON; a missing, unreadable or invalid file means
defaults.
"""

import json
import logging
from dataclasses import dataclass, field, asdict
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml

from .growth import DEFAULT_ADULT_HORIZON, DEFAULT_STAGE_THRESHOLDS, StageLadder
from .models import Stage
from .rules import RuleTables
from .summary import DEFAULT_SUMMARY_TIMEOUT
from .voice import VoiceConfig

logger = logging.getLogger(__name__)


@dataclass
class StageConfig:
    """Vocabulary sizes at which each stage after Infant begins."""
    thresholds: List[List[Any]] = field(default_factory=lambda: [
        [stage.value, size] for stage, size in DEFAULT_STAGE_THRESHOLDS
    ])
    adult_horizon: int = DEFAULT_ADULT_HORIZON

    def pairs(self) -> List[Tuple[Stage, int]]:
        return [(Stage(name), int(size)) for name, size in self.thresholds]

    def to_ladder(self) -> StageLadder:
        return StageLadder(self.pairs(), adult_horizon=self.adult_horizon)

    def validate(self) -> Tuple[bool, Optional[str]]:
        try:
            pairs = self.pairs()
        except (ValueError, TypeError) as e:
            return False, f"Bad stage threshold entry: {e}"
        sizes = [size for _, size in pairs]
        if any(size <= 0 for size in sizes):
            return False, "Stage thresholds must be positive"
        if any(b <= a for a, b in zip(sizes, sizes[1:])):
            return False, "Stage thresholds must be strictly increasing"
        ranks = [stage.rank for stage, _ in pairs]
        if any(b <= a for a, b in zip(ranks, ranks[1:])):
            return False, "Stage thresholds must follow stage order"
        if sizes and self.adult_horizon <= sizes[-1]:
            return False, "adult_horizon must exceed the last stage threshold"
        return True, None


@dataclass
class SummaryConfig:
    timeout_seconds: float = DEFAULT_SUMMARY_TIMEOUT
    max_tokens: int = 800
    temperature: float = 0.7
    message_window: int = 50  # most recent messages fed into a summary

    def validate(self) -> Tuple[bool, Optional[str]]:
        if self.timeout_seconds <= 0:
            return False, "timeout_seconds must be positive"
        if self.max_tokens <= 0:
            return False, "max_tokens must be positive"
        if not (0 <= self.temperature <= 2):
            return False, "temperature must be 0-2"
        if self.message_window <= 0:
            return False, "message_window must be positive"
        return True, None


def _default_metadata() -> Dict[str, Any]:
    return {
        "last_updated": None,
        "last_updated_by": None,  # "manual", "automatic", "agent"
        "update_count": 0,
    }


@dataclass
class EngineConfig:
    """Complete configuration for the engine."""
    rules: RuleTables = field(default_factory=RuleTables)
    stages: StageConfig = field(default_factory=StageConfig)
    voice: VoiceConfig = field(default_factory=VoiceConfig)
    summary: SummaryConfig = field(default_factory=SummaryConfig)
    recent_message_window: int = 10

    metadata: Dict[str, Any] = field(default_factory=_default_metadata)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rules": self.rules.to_dict(),
            "stages": asdict(self.stages),
            "voice": asdict(self.voice),
            "summary": asdict(self.summary),
            "recent_message_window": self.recent_message_window,
            "metadata": self.metadata.copy(),
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "EngineConfig":
        """Create from dictionary. Missing sections keep their defaults."""
        data = data or {}
        return cls(
            rules=RuleTables.from_dict(data.get("rules")),
            stages=StageConfig(**data.get("stages", {})),
            voice=VoiceConfig(**data.get("voice", {})),
            summary=SummaryConfig(**data.get("summary", {})),
            recent_message_window=data.get("recent_message_window", 10),
            metadata=data.get("metadata") or _default_metadata(),
        )

    def validate(self) -> Tuple[bool, Optional[str]]:
        """Validate entire configuration."""
        valid, error = self.stages.validate()
        if not valid:
            return False, f"Stages: {error}"

        valid, error = self.voice.validate()
        if not valid:
            return False, f"Voice: {error}"

        valid, error = self.summary.validate()
        if not valid:
            return False, f"Summary: {error}"

        if self.rules.keywords.min_length < 1 or self.rules.keywords.max_keywords < 1:
            return False, "Keyword min_length and max_keywords must be positive"

        if self.recent_message_window < 0:
            return False, "recent_message_window must be >= 0"

        return True, None


def _is_yaml(path: Path) -> bool:
    return path.suffix in (".yaml", ".yml")


class ConfigManager:
    """Manages configuration loading and saving."""

    def __init__(self, config_path: Optional[Path] = None):
        """
        Initialize config manager.

        Args:
            config_path: Path to config file (default: reflectibot.yaml in current dir)
        """
        if config_path is None:
            config_path = Path("reflectibot.yaml")
        self.config_path = Path(config_path)
        self._config: Optional[EngineConfig] = None

    def load(self, force_reload: bool = False) -> EngineConfig:
        """Load configuration from file or return defaults."""
        if self._config is not None and not force_reload:
            return self._config

        if self.config_path.exists():
            try:
                with open(self.config_path, "r") as f:
                    if _is_yaml(self.config_path):
                        data = yaml.safe_load(f)
                    else:
                        data = json.load(f)

                self._config = EngineConfig.from_dict(data)

                valid, error = self._config.validate()
                if not valid:
                    logger.warning("[Config] Invalid config, using defaults: %s", error)
                    self._config = EngineConfig()
            except Exception as e:
                logger.warning("[Config] Error loading config, using defaults: %s", e)
                self._config = EngineConfig()
        else:
            self._config = EngineConfig()

        return self._config

    def save(self, config: Optional[EngineConfig] = None, update_source: Optional[str] = None) -> bool:
        """
        Save configuration to file.

        Args:
            config: Config to save (uses current if None)
            update_source: Source of update ("manual", "automatic", "agent") for tracking

        Returns:
            True if saved successfully
        """
        if config is None:
            config = self._config or self.load()

        valid, error = config.validate()
        if not valid:
            logger.warning("[Config] Cannot save invalid config: %s", error)
            return False

        if update_source:
            config.metadata["last_updated"] = datetime.now().isoformat()
            config.metadata["last_updated_by"] = update_source
            config.metadata["update_count"] = config.metadata.get("update_count", 0) + 1

        try:
            data = config.to_dict()
            with open(self.config_path, "w") as f:
                if _is_yaml(self.config_path):
                    yaml.dump(data, f, default_flow_style=False, sort_keys=False)
                else:
                    json.dump(data, f, indent=2)
            self._config = config
            return True
        except Exception as e:
            logger.warning("[Config] Error saving config: %s", e)
            return False

    def reload(self) -> EngineConfig:
        """Force reload configuration from file."""
        self._config = None
        return self.load()
