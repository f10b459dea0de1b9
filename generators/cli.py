"""CLI entry point for synthetic analytics data.

Usage:
    python -m generators activity --seed 42 --count 50
    python -m generators activity --config configs/activity.yaml --output file
    python -m generators activity --count 50 --output store --database-url sqlite:///./demo.db
"""

import argparse
import json
import sys
from pathlib import Path

import yaml


def main() -> None:
    parser = argparse.ArgumentParser(description="Inspirasi Insights synthetic data generators")
    parser.add_argument("generator", choices=["activity"], help="Which generator to run")
    parser.add_argument("--config", type=str, default=None, help="Path to YAML config file")
    parser.add_argument("--seed", type=int, default=42, help="Random seed for reproducibility")
    parser.add_argument("--count", type=int, default=50, help="Number of users to simulate")
    parser.add_argument(
        "--output",
        type=str,
        default="stdout",
        choices=["stdout", "file", "store"],
        help="Output destination",
    )
    parser.add_argument("--output-file", type=str, default=None, help="Output file path")
    parser.add_argument(
        "--database-url", type=str, default=None, help="Database for --output store"
    )

    args = parser.parse_args()

    config = {}
    if args.config:
        with open(args.config) as f:
            config = yaml.safe_load(f) or {}

    from .activity_generator import ActivityGenerator

    gen = ActivityGenerator(config=config, seed=args.seed)
    events = gen.generate(num_users=args.count)

    if args.output == "stdout":
        for event in events:
            print(event.model_dump_json(by_alias=True))
    elif args.output == "file":
        output_path = args.output_file or f"output/{args.generator}_events.jsonl"
        Path(output_path).parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, "w") as f:
            for event in events:
                f.write(event.model_dump_json(by_alias=True) + "\n")
        print(f"Wrote {len(events)} events to {output_path}", file=sys.stderr)
    elif args.output == "store":
        from inspirasi.config import Settings
        from inspirasi.domains.analytics.service import create_analytics_service

        overrides = {"analytics_storage_backend": "sql"}
        if args.database_url:
            overrides["database_url"] = args.database_url
        service = create_analytics_service(Settings(**overrides))
        service.start()
        try:
            stored = len(events) if service.store.extend(events) else 0
            print(
                f"Stored {stored} of {len(events)} events "
                f"(retained: {service.store.count()})",
                file=sys.stderr,
            )
            report = service.generate_app_insights("30d")
            print(json.dumps(report.overview.model_dump(by_alias=True), indent=2))
        finally:
            service.close()
