"""Configuration for the decision engine."""

from dataclasses import dataclass, asdict, field
from pathlib import Path
from typing import Dict, Mapping, Optional, Tuple
import json
import math
import os

from sharpcap.constants import LEAGUE_PARAMS, NBA, SUPPORTED_SPORTS
from sharpcap.exceptions import ConfigurationError


_DEFAULT_SPORT = NBA
_DEFAULT_POLICY = "baseline"
_DEFAULT_MAX_PICKS = 3
_DEFAULT_TIME_BUFFER_MINUTES = 15
_DEFAULT_MAX_CONCURRENCY = 5
_DEFAULT_RESEARCH_TIMEOUT_SECONDS = 5.0
_DEFAULT_REGISTRY_TTL_SECONDS = 300
_DEFAULT_OUTPUT_DIR = "runs"
_DEFAULT_ENSEMBLE_SIZE = 0
_DEFAULT_ENSEMBLE_NOISE = 1.5
_DEFAULT_MAX_EDGE_POINTS = 15.0

# Heavy-favorite guard
_DEFAULT_FAVORITE_GUARD_ODDS = -250
_DEFAULT_FAVORITE_GUARD_CONFIDENCE = 9.0

# Market comparator tiers: (minimum gap, confidence), highest first
_DEFAULT_TOTAL_TIERS: Tuple[Tuple[float, float], ...] = (
    (15.0, 9.0),
    (10.0, 8.0),
    (7.0, 7.0),
    (4.0, 6.0),
)
_DEFAULT_TOTAL_FLOOR = 5.0
_DEFAULT_SPREAD_TIERS: Tuple[Tuple[float, float], ...] = (
    (7.0, 8.5),
    (4.0, 7.5),
    (1.0, 6.5),
    (-3.0, 5.5),
)
_DEFAULT_SPREAD_FLOOR = 4.0
_DEFAULT_MONEYLINE_TIERS: Tuple[Tuple[float, float], ...] = (
    (14.0, 8.5),
    (10.0, 8.0),
    (7.0, 7.0),
    (4.0, 6.0),
)
_DEFAULT_MONEYLINE_FLOOR = 5.5
_DEFAULT_SPREAD_UPSET = 8.0
_DEFAULT_MONEYLINE_UPSET = 8.5

# Unit sizing: (minimum confidence, units), highest first
_DEFAULT_UNIT_TIERS: Tuple[Tuple[float, float], ...] = ((9.0, 3), (7.5, 2))
_DEFAULT_BASE_UNITS = 1


def _strip_quotes(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
        return value[1:-1]
    return value


def _coerce_float(value: Optional[str], default: float) -> float:
    if value is None or value == "":
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _coerce_int(value: Optional[str], default: int) -> int:
    if value is None or value == "":
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _coerce_optional_int(value: Optional[str], default: Optional[int] = None) -> Optional[int]:
    if value is None or value == "":
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _coerce_optional_float(value: Optional[str], default: Optional[float] = None) -> Optional[float]:
    if value is None or value == "":
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _parse_env_file(path: Path) -> Dict[str, str]:
    data: Dict[str, str] = {}
    for raw_line in path.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" not in line:
            continue
        key, value = line.split("=", 1)
        data[key.strip()] = _strip_quotes(value.strip())
    return data


def _load_config_data(path: Path) -> Dict[str, str]:
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    if path.suffix.lower() == ".json":
        payload = json.loads(path.read_text(encoding="utf-8"))
        return {
            str(k): json.dumps(v) if isinstance(v, (dict, list)) else str(v)
            for k, v in payload.items()
            if v is not None
        }
    return _parse_env_file(path)


def _parse_weights(setting: str, raw: Optional[str]) -> Dict[str, float]:
    if not raw:
        return {}
    try:
        return {str(k): float(v) for k, v in json.loads(raw).items()}
    except (TypeError, ValueError, AttributeError) as exc:
        raise ConfigurationError(setting, f"expected a JSON object: {exc}") from exc


def _check_descending(setting: str, tiers: Tuple[Tuple[float, float], ...]) -> None:
    if not tiers:
        raise ConfigurationError(setting, "tier table is empty")
    thresholds = [threshold for threshold, _ in tiers]
    if thresholds != sorted(thresholds, reverse=True):
        raise ConfigurationError(setting, f"tiers must be ordered highest first: {thresholds}")


# =============================================================================
# LEAGUE PARAMETERS
# =============================================================================

@dataclass(frozen=True)
class LeagueParameters:
    sport: str
    spread_sigma: float
    total_sigma: float
    min_spread_deviation: float
    min_total_deviation: float
    min_ev_spread: float
    min_ev_total: float
    min_ev_moneyline_dog: float
    min_ev_moneyline_fav: float
    max_moneyline_lay: int

    @classmethod
    def for_sport(cls, sport: str) -> "LeagueParameters":
        params = LEAGUE_PARAMS.get(sport)
        if params is None:
            raise ConfigurationError("sport", f"no league parameters for '{sport}'")
        return cls(sport=sport, **params)


# =============================================================================
# MARKET TIERS
# =============================================================================

@dataclass(frozen=True)
class MarketTiers:
    """Gap -> confidence tables for the market comparator (0-10 scale)."""

    total: Tuple[Tuple[float, float], ...] = _DEFAULT_TOTAL_TIERS
    total_floor: float = _DEFAULT_TOTAL_FLOOR
    spread: Tuple[Tuple[float, float], ...] = _DEFAULT_SPREAD_TIERS
    spread_floor: float = _DEFAULT_SPREAD_FLOOR
    moneyline: Tuple[Tuple[float, float], ...] = _DEFAULT_MONEYLINE_TIERS
    moneyline_floor: float = _DEFAULT_MONEYLINE_FLOOR
    spread_upset: float = _DEFAULT_SPREAD_UPSET
    moneyline_upset: float = _DEFAULT_MONEYLINE_UPSET

    def __post_init__(self) -> None:
        _check_descending("market_tiers.total", self.total)
        _check_descending("market_tiers.spread", self.spread)
        _check_descending("market_tiers.moneyline", self.moneyline)


# =============================================================================
# DECISION POLICY
# =============================================================================

@dataclass(frozen=True)
class PolicyConfig:
    name: str = _DEFAULT_POLICY
    min_confidence: float = 6.5
    favorite_guard_odds: int = _DEFAULT_FAVORITE_GUARD_ODDS
    favorite_guard_confidence: float = _DEFAULT_FAVORITE_GUARD_CONFIDENCE
    unit_tiers: Tuple[Tuple[float, float], ...] = _DEFAULT_UNIT_TIERS
    base_units: float = _DEFAULT_BASE_UNITS
    # factor key -> multiplier on its effect size; unlisted factors weigh 1.0
    factor_weights: Mapping[str, float] = field(default_factory=dict)

    def __post_init__(self) -> None:
        _check_descending(f"policy.{self.name}.unit_tiers", self.unit_tiers)
        for key, weight in self.factor_weights.items():
            if not math.isfinite(weight) or weight < 0:
                raise ConfigurationError(
                    f"policy.{self.name}.factor_weights.{key}",
                    f"must be a finite non-negative number, got {weight}",
                )
        if not 0 <= self.min_confidence <= 10:
            raise ConfigurationError(
                f"policy.{self.name}.min_confidence",
                f"must be on the 0-10 scale, got {self.min_confidence}",
            )

    def to_dict(self) -> Dict:
        payload = asdict(self)
        payload["unit_tiers"] = [list(tier) for tier in self.unit_tiers]
        payload["factor_weights"] = dict(self.factor_weights)
        return payload


POLICY_PRESETS: Dict[str, PolicyConfig] = {
    "baseline": PolicyConfig(name="baseline", min_confidence=6.5),
    "strict": PolicyConfig(
        name="strict",
        min_confidence=7.5,
        unit_tiers=((9.0, 3), (8.0, 2)),
    ),
    "aggressive": PolicyConfig(
        name="aggressive",
        min_confidence=6.0,
        unit_tiers=((8.5, 3), (7.5, 2)),
    ),
}


def policy_preset(name: str, **overrides) -> PolicyConfig:
    """Look up a named policy, optionally overriding some of its fields."""
    preset = POLICY_PRESETS.get((name or "").lower())
    if preset is None:
        raise ConfigurationError(
            "policy",
            f"unknown policy '{name}'. Valid policies: {', '.join(sorted(POLICY_PRESETS))}",
        )
    values = {k: v for k, v in overrides.items() if v is not None}
    if not values:
        return preset
    return PolicyConfig(**{**asdict(preset), **values})


# =============================================================================
# RUN CONFIG
# =============================================================================

@dataclass
class Config:
    sport: str = _DEFAULT_SPORT
    policy: str = _DEFAULT_POLICY
    min_confidence: Optional[float] = None
    max_picks: int = _DEFAULT_MAX_PICKS
    time_buffer_minutes: int = _DEFAULT_TIME_BUFFER_MINUTES
    favorite_guard_odds: int = _DEFAULT_FAVORITE_GUARD_ODDS
    favorite_guard_confidence: float = _DEFAULT_FAVORITE_GUARD_CONFIDENCE
    max_concurrency: int = _DEFAULT_MAX_CONCURRENCY
    research_timeout_seconds: float = _DEFAULT_RESEARCH_TIMEOUT_SECONDS
    registry_ttl_seconds: int = _DEFAULT_REGISTRY_TTL_SECONDS
    output_dir: str = _DEFAULT_OUTPUT_DIR
    ensemble_seed: Optional[int] = None
    ensemble_size: int = _DEFAULT_ENSEMBLE_SIZE
    ensemble_noise: float = _DEFAULT_ENSEMBLE_NOISE
    max_edge_points: float = _DEFAULT_MAX_EDGE_POINTS
    learned_weights: Dict[str, float] = field(default_factory=dict)
    factor_weights: Dict[str, float] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.sport = (self.sport or _DEFAULT_SPORT).lower()
        if self.sport not in SUPPORTED_SPORTS:
            raise ConfigurationError("SHARPCAP_SPORT", f"unsupported sport '{self.sport}'")
        if self.max_picks < 0:
            raise ConfigurationError("MAX_PICKS", "must not be negative")
        if self.max_concurrency < 1:
            raise ConfigurationError("MAX_CONCURRENCY", "must be at least 1")

    @classmethod
    def _from_mapping(cls, data: Mapping[str, str], base: "Config") -> "Config":
        weights = {
            **base.learned_weights,
            **_parse_weights("LEARNED_WEIGHTS", data.get("LEARNED_WEIGHTS")),
        }
        factor_weights = {
            **base.factor_weights,
            **_parse_weights("FACTOR_WEIGHTS", data.get("FACTOR_WEIGHTS")),
        }
        return cls(
            sport=data.get("SHARPCAP_SPORT", base.sport),
            policy=data.get("POLICY", base.policy),
            min_confidence=_coerce_optional_float(data.get("MIN_CONFIDENCE"), base.min_confidence),
            max_picks=_coerce_int(data.get("MAX_PICKS"), base.max_picks),
            time_buffer_minutes=_coerce_int(
                data.get("TIME_BUFFER_MINUTES"),
                base.time_buffer_minutes,
            ),
            favorite_guard_odds=_coerce_int(
                data.get("FAVORITE_GUARD_ODDS"),
                base.favorite_guard_odds,
            ),
            favorite_guard_confidence=_coerce_float(
                data.get("FAVORITE_GUARD_CONFIDENCE"),
                base.favorite_guard_confidence,
            ),
            max_concurrency=_coerce_int(data.get("MAX_CONCURRENCY"), base.max_concurrency),
            research_timeout_seconds=_coerce_float(
                data.get("RESEARCH_TIMEOUT_SECONDS"),
                base.research_timeout_seconds,
            ),
            registry_ttl_seconds=_coerce_int(
                data.get("REGISTRY_TTL_SECONDS"),
                base.registry_ttl_seconds,
            ),
            output_dir=data.get("SHARPCAP_OUTPUT_DIR", base.output_dir),
            ensemble_seed=_coerce_optional_int(data.get("ENSEMBLE_SEED"), base.ensemble_seed),
            ensemble_size=_coerce_int(data.get("ENSEMBLE_SIZE"), base.ensemble_size),
            ensemble_noise=_coerce_float(data.get("ENSEMBLE_NOISE"), base.ensemble_noise),
            max_edge_points=_coerce_float(data.get("MAX_EDGE_POINTS"), base.max_edge_points),
            learned_weights=weights,
            factor_weights=factor_weights,
        )

    @classmethod
    def from_env(cls) -> "Config":
        return cls._from_mapping(os.environ, cls())

    @classmethod
    def load(cls, config_path: Optional[str] = None) -> "Config":
        env_config = cls.from_env()
        if not config_path:
            return env_config
        file_data = _load_config_data(Path(config_path))
        return cls._from_mapping(file_data, env_config)

    def policy_config(self) -> PolicyConfig:
        return policy_preset(
            self.policy,
            min_confidence=self.min_confidence,
            favorite_guard_odds=self.favorite_guard_odds,
            favorite_guard_confidence=self.favorite_guard_confidence,
            factor_weights=self.factor_weights or None,
        )

    def league_parameters(self) -> LeagueParameters:
        return LeagueParameters.for_sport(self.sport)

    def to_dict(self) -> Dict[str, str]:
        return {k: str(v) for k, v in asdict(self).items()}
