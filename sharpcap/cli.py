"""Command line entry points."""

from dataclasses import asdict
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional, Sequence
import argparse
import hashlib
import json
import logging
import subprocess

from sharpcap.batch import BatchOrchestrator, games_from_payload
from sharpcap.config import POLICY_PRESETS, Config, PolicyConfig, policy_preset
from sharpcap.exceptions import ConfigurationError
from sharpcap.ingestion import StaticInjuryProvider, StaticStatsProvider
from sharpcap.ops import InMemoryMetricsRecorder, configure_logging
from sharpcap.policy import ExistingPicks, PolicyRegistry
from sharpcap.reporting import write_passes_csv, write_picks_csv
from sharpcap.runtime import RunManifest

logger = logging.getLogger(__name__)


def _get_git_sha(repo_root: Path) -> Optional[str]:
    try:
        output = subprocess.check_output(
            ["git", "rev-parse", "HEAD"],
            cwd=str(repo_root),
            stderr=subprocess.DEVNULL,
        )
        return output.decode("utf-8").strip()
    except (OSError, subprocess.CalledProcessError):
        return None


def _hash_config(config: Config) -> str:
    payload = json.dumps(asdict(config), sort_keys=True, default=str).encode("utf-8")
    return hashlib.sha256(payload).hexdigest()


def _write_manifest(manifest: RunManifest, output_dir: Path) -> Path:
    output_dir.mkdir(parents=True, exist_ok=True)
    manifest_path = output_dir / f"manifest_{manifest.run_id}.json"
    manifest.outputs["manifest"] = str(manifest_path)
    manifest_path.write_text(
        json.dumps(manifest.to_dict(), indent=2, sort_keys=True),
        encoding="utf-8",
    )
    return manifest_path


def _load_slate(path: Path) -> Dict[str, Any]:
    payload = json.loads(path.read_text(encoding="utf-8"))
    if isinstance(payload, list):
        return {"games": payload}
    if not isinstance(payload, dict):
        raise ValueError(f"slate must be a JSON object or list, got {type(payload).__name__}")
    return payload


def _parse_now(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _policy_loader(config: Config):
    def load(name: str) -> PolicyConfig:
        return policy_preset(
            name,
            min_confidence=config.min_confidence,
            favorite_guard_odds=config.favorite_guard_odds,
            favorite_guard_confidence=config.favorite_guard_confidence,
            factor_weights=config.factor_weights or None,
        )

    return load


def run_slate(
    slate_path: str,
    config_path: Optional[str] = None,
    policy: Optional[str] = None,
    max_picks: Optional[int] = None,
    output_dir: Optional[str] = None,
    now: Optional[str] = None,
) -> int:
    """Run one slate file through the engine and write picks, passes, metrics and manifest."""
    try:
        config = Config.load(config_path=config_path)
        if policy:
            config.policy = policy
        if max_picks is not None:
            config.max_picks = max_picks
        if output_dir:
            config.output_dir = output_dir
        fixed_now = _parse_now(now)
    except (ConfigurationError, FileNotFoundError, ValueError) as exc:
        configure_logging()
        logger.error("Invalid configuration: %s", exc)
        return 2

    manifest = RunManifest()
    manifest.git_sha = _get_git_sha(Path(__file__).resolve().parents[1])
    manifest.config_hash = _hash_config(config)
    configure_logging(run_id=manifest.run_id)
    if config_path:
        logger.info("Loaded config from %s", config_path)

    try:
        slate = _load_slate(Path(slate_path))
    except (OSError, ValueError) as exc:
        logger.error("Could not read slate %s: %s", slate_path, exc)
        return 1

    registry = PolicyRegistry(
        loader=_policy_loader(config),
        ttl_seconds=config.registry_ttl_seconds,
    )
    try:
        decision_policy = registry.get(config.policy)
    except ConfigurationError as exc:
        logger.error("%s", exc)
        return 2
    manifest.policy = decision_policy.name

    games, rejected = games_from_payload(slate.get("games") or [])
    existing = ExistingPicks.from_mapping(slate.get("existing_picks") or {})
    injuries = slate.get("injuries")
    metrics = InMemoryMetricsRecorder()
    orchestrator = BatchOrchestrator(
        policy=decision_policy,
        stats_provider=StaticStatsProvider(slate.get("stats") or {}),
        injury_provider=StaticInjuryProvider(injuries) if injuries is not None else None,
        config=config,
        metrics=metrics,
        clock=(lambda: fixed_now) if fixed_now else None,
    )
    result = orchestrator.run_batch(games, existing)
    result.passes.extend(rejected)

    runs_dir = Path(config.output_dir)
    picks_path = runs_dir / f"picks_{manifest.run_id}.csv"
    passes_path = runs_dir / f"passes_{manifest.run_id}.csv"
    write_picks_csv(result.picks, str(picks_path))
    write_passes_csv(result.passes, str(passes_path))
    manifest.outputs["picks"] = str(picks_path)
    manifest.outputs["passes"] = str(passes_path)

    metrics_path = runs_dir / f"metrics_{manifest.run_id}.json"
    metrics_path.write_text(
        json.dumps(metrics.snapshot(), indent=2, sort_keys=True),
        encoding="utf-8",
    )
    manifest.outputs["metrics"] = str(metrics_path)

    summary = result.summary()
    manifest.counts = {
        "games": len(games) + len(rejected),
        "picks": summary["picks"],
        "passes": len(result.passes),
        "errors": summary["errors"],
    }
    manifest.finished_at = datetime.now(timezone.utc)
    manifest_path = _write_manifest(manifest, runs_dir)

    for pick in result.picks:
        logger.info(
            "PICK %s %s %s %+d conf=%.1f units=%g",
            pick.game_id, pick.pick_type, pick.selection, pick.odds, pick.confidence, pick.units,
        )
    logger.info("Wrote %s", manifest_path)
    return 0


def list_policies() -> int:
    for name in sorted(POLICY_PRESETS):
        print(json.dumps(POLICY_PRESETS[name].to_dict(), sort_keys=True))
    return 0


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="sharpcap decision engine CLI")
    subparsers = parser.add_subparsers(dest="command", required=True)

    run = subparsers.add_parser("run", help="Evaluate a slate and write picks")
    run.add_argument("slate_path", help="Slate JSON with games, existing_picks, stats, injuries")
    run.add_argument("--config", dest="config_path", help="Path to config file")
    run.add_argument("--policy", dest="policy", help="Policy preset (baseline, strict, aggressive)")
    run.add_argument("--max-picks", dest="max_picks", type=int, help="Pick budget for this run")
    run.add_argument("--output-dir", dest="output_dir", help="Output directory for run artifacts")
    run.add_argument("--now", dest="now", help="Evaluate as of this ISO timestamp (replays)")

    subparsers.add_parser("policies", help="List policy presets")

    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command == "run":
        return run_slate(
            slate_path=args.slate_path,
            config_path=args.config_path,
            policy=getattr(args, "policy", None),
            max_picks=getattr(args, "max_picks", None),
            output_dir=getattr(args, "output_dir", None),
            now=getattr(args, "now", None),
        )
    if args.command == "policies":
        return list_policies()
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
