#!/usr/bin/env python3
"""Main entry point for Lunar Graph.

Builds a graph from a demo scenario, detects fraud rings, runs the pattern
analyzers and the correlation analyzer, and logs the results.

Usage:
    python main.py --scenario opposite_trading --seed 7
    python main.py --scenario all --output context.json
"""

import argparse
import json

from lunar_graph.common.config import Config, get_thresholds
from lunar_graph.common.logging import get_logger
from lunar_graph.data.generators import DEMO_SCENARIOS, ScenarioGenerator, as_feeds
from lunar_graph.orchestration import LunarGraphEngine, build_investigation_context

logger = get_logger(__name__)


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Run the Lunar Graph pipeline on demo data")
    parser.add_argument("--seed", type=int, default=42, help="Random seed for reproducibility")
    parser.add_argument(
        "--scenario",
        choices=[s.type.value for s in DEMO_SCENARIOS] + ["all"],
        default="all",
        help="Demo scenario to generate",
    )
    parser.add_argument("--output", type=str, default=None, help="Write the investigation context as JSON")
    args = parser.parse_args()

    config = Config()
    get_logger(level=config.log_level.value)
    logger.info(f"Lunar Graph initialized in {config.environment.value} mode")

    generator = ScenarioGenerator(seed=args.seed)
    snapshot = generator.generate_all() if args.scenario == "all" else generator.generate(args.scenario)

    engine = LunarGraphEngine(thresholds=get_thresholds(), config=config)
    graph = engine.build_graph_from_feeds(as_feeds(snapshot))
    rings = engine.detect_fraud_rings(graph)
    for ring in rings:
        logger.info(
            f"{ring.name}: {ring.type.value}, severity {ring.severity.value}, "
            f"confidence {ring.confidence}, {len(ring.entities)} entities"
        )

    analyses = engine.run_all_analyzers(graph)
    for analysis in analyses:
        logger.info(f"{analysis.agent_name}: {analysis.summary}")

    correlations = engine.run_correlation_analysis(snapshot.trades)
    context = build_investigation_context(graph, rings, analyses, correlations)
    logger.info(context.graph_summary.summary_text)

    if args.output:
        with open(args.output, "w") as f:
            json.dump(context.to_dict(), f, indent=2)
        logger.info(f"Investigation context written to {args.output}")


if __name__ == "__main__":
    main()
