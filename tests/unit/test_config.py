"""Unit tests for sharpcap/config.py"""

import json

import pytest

from sharpcap.config import Config, LeagueParameters, MarketTiers, PolicyConfig, policy_preset
from sharpcap.constants import NFL
from sharpcap.exceptions import ConfigurationError

ENV_KEYS = [
    "SHARPCAP_SPORT",
    "POLICY",
    "MIN_CONFIDENCE",
    "MAX_PICKS",
    "TIME_BUFFER_MINUTES",
    "FAVORITE_GUARD_ODDS",
    "FAVORITE_GUARD_CONFIDENCE",
    "MAX_CONCURRENCY",
    "RESEARCH_TIMEOUT_SECONDS",
    "REGISTRY_TTL_SECONDS",
    "SHARPCAP_OUTPUT_DIR",
    "ENSEMBLE_SEED",
    "ENSEMBLE_SIZE",
    "ENSEMBLE_NOISE",
    "MAX_EDGE_POINTS",
    "LEARNED_WEIGHTS",
    "FACTOR_WEIGHTS",
]


@pytest.fixture
def clean_env(monkeypatch):
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    return monkeypatch


class TestConfigFromEnv:
    def test_defaults(self, clean_env):
        config = Config.from_env()
        assert config.sport == "nba"
        assert config.policy == "baseline"
        assert config.max_picks == 3
        assert config.time_buffer_minutes == 15
        assert config.ensemble_seed is None
        assert config.learned_weights == {}

    def test_env_overrides(self, clean_env):
        clean_env.setenv("SHARPCAP_SPORT", "NFL")
        clean_env.setenv("MAX_PICKS", "5")
        clean_env.setenv("MIN_CONFIDENCE", "7.0")
        clean_env.setenv("ENSEMBLE_SEED", "42")
        config = Config.from_env()
        assert config.sport == NFL
        assert config.max_picks == 5
        assert config.min_confidence == 7.0
        assert config.ensemble_seed == 42

    def test_unparseable_numbers_keep_defaults(self, clean_env):
        clean_env.setenv("MAX_PICKS", "lots")
        clean_env.setenv("RESEARCH_TIMEOUT_SECONDS", "soon")
        config = Config.from_env()
        assert config.max_picks == 3
        assert config.research_timeout_seconds == 5.0

    def test_learned_weights_json(self, clean_env):
        clean_env.setenv("LEARNED_WEIGHTS", '{"Matchup Pace Index": 1.5}')
        assert Config.from_env().learned_weights == {"Matchup Pace Index": 1.5}

    def test_bad_learned_weights(self, clean_env):
        clean_env.setenv("LEARNED_WEIGHTS", "[1, 2]")
        with pytest.raises(ConfigurationError):
            Config.from_env()

    def test_factor_weights_json(self, clean_env):
        clean_env.setenv("FACTOR_WEIGHTS", '{"pace_mismatch": 0.5, "momentum": 0}')
        config = Config.from_env()
        assert config.factor_weights == {"pace_mismatch": 0.5, "momentum": 0.0}
        assert config.policy_config().factor_weights == {"pace_mismatch": 0.5, "momentum": 0.0}

    def test_bad_factor_weights(self, clean_env):
        clean_env.setenv("FACTOR_WEIGHTS", "not json")
        with pytest.raises(ConfigurationError, match="FACTOR_WEIGHTS"):
            Config.from_env()

    def test_unsupported_sport(self, clean_env):
        clean_env.setenv("SHARPCAP_SPORT", "curling")
        with pytest.raises(ConfigurationError, match="unsupported sport"):
            Config.from_env()

    @pytest.mark.parametrize("key,value", [("MAX_PICKS", "-1"), ("MAX_CONCURRENCY", "0")])
    def test_invalid_limits(self, clean_env, key, value):
        clean_env.setenv(key, value)
        with pytest.raises(ConfigurationError):
            Config.from_env()


class TestConfigLoad:
    def test_json_file_overrides_env(self, clean_env, tmp_path):
        clean_env.setenv("MAX_PICKS", "5")
        path = tmp_path / "config.json"
        path.write_text(json.dumps({
            "MAX_PICKS": 2,
            "POLICY": "strict",
            "LEARNED_WEIGHTS": {"Net Rating Differential": 0.8},
        }))
        config = Config.load(str(path))
        assert config.max_picks == 2
        assert config.policy == "strict"
        assert config.learned_weights == {"Net Rating Differential": 0.8}

    def test_env_file(self, clean_env, tmp_path):
        path = tmp_path / "sharpcap.env"
        path.write_text("# comment\nPOLICY='aggressive'\nTIME_BUFFER_MINUTES=30\nnot a pair\n")
        config = Config.load(str(path))
        assert config.policy == "aggressive"
        assert config.time_buffer_minutes == 30

    def test_missing_file(self, clean_env, tmp_path):
        with pytest.raises(FileNotFoundError):
            Config.load(str(tmp_path / "absent.json"))

    def test_to_dict_is_stringly(self, clean_env):
        payload = Config.from_env().to_dict()
        assert payload["max_picks"] == "3"


class TestPolicyConfig:
    def test_presets(self):
        assert policy_preset("baseline").min_confidence == 6.5
        assert policy_preset("STRICT").min_confidence == 7.5

    def test_unknown_preset(self):
        with pytest.raises(ConfigurationError, match="Valid policies: aggressive, baseline, strict"):
            policy_preset("hunch")

    def test_overrides_build_new_config(self):
        config = policy_preset("baseline", min_confidence=8.0, favorite_guard_odds=None)
        assert config.min_confidence == 8.0
        assert config.favorite_guard_odds == -250
        assert policy_preset("baseline").min_confidence == 6.5

    def test_config_policy_config_applies_overrides(self, clean_env):
        clean_env.setenv("MIN_CONFIDENCE", "7.2")
        clean_env.setenv("FAVORITE_GUARD_CONFIDENCE", "9.5")
        policy = Config.from_env().policy_config()
        assert policy.name == "baseline"
        assert policy.min_confidence == 7.2
        assert policy.favorite_guard_confidence == 9.5

    def test_confidence_scale_enforced(self):
        with pytest.raises(ConfigurationError):
            PolicyConfig(name="broken", min_confidence=65.0)

    def test_unit_tiers_must_descend(self):
        with pytest.raises(ConfigurationError, match="highest first"):
            PolicyConfig(name="broken", unit_tiers=((7.5, 2), (9.0, 3)))

    def test_to_dict(self):
        payload = policy_preset("strict").to_dict()
        assert payload["unit_tiers"] == [[9.0, 3], [8.0, 2]]
        assert payload["factor_weights"] == {}

    def test_factor_weights_override(self):
        config = policy_preset("aggressive", factor_weights={"rest_advantage": 2.0})
        assert config.factor_weights == {"rest_advantage": 2.0}
        assert policy_preset("aggressive").factor_weights == {}

    @pytest.mark.parametrize("weight", [-0.5, float("nan"), float("inf")])
    def test_factor_weights_must_be_finite_and_non_negative(self, weight):
        with pytest.raises(ConfigurationError, match="factor_weights.momentum"):
            PolicyConfig(name="broken", factor_weights={"momentum": weight})


class TestTables:
    def test_market_tiers_must_descend(self):
        with pytest.raises(ConfigurationError):
            MarketTiers(total=((4.0, 6.0), (10.0, 8.0)))

    def test_empty_tiers_rejected(self):
        with pytest.raises(ConfigurationError, match="empty"):
            MarketTiers(spread=())

    def test_league_parameters(self):
        params = LeagueParameters.for_sport(NFL)
        assert params.sport == NFL
        assert params.total_sigma == 13.5

    def test_unknown_league(self):
        with pytest.raises(ConfigurationError):
            LeagueParameters.for_sport("cricket")
