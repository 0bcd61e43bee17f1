"""
Sunlight & View Analysis - command-line entry point.

Loads a GLB model in a background worker, runs the sunlight and field-of-view
analyses and writes the per-unit results as JSON.

Usage:
    python run_analysis.py model.glb --config config.yaml --output results.json
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from utils.config_loader import load_config
from worker import AnalysisWorker, Command, Response
from worker.host import setup_logging

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Per-unit sunlight and view analysis of a GLB building model')
    parser.add_argument('model', type=str, help='Path or URL of the GLB model')
    parser.add_argument('--config', type=str, default='config.yaml', help='YAML configuration file')
    parser.add_argument('--term', type=str, default=None, help='Solar term selecting the date (e.g. winter_solstice)')
    parser.add_argument('--date', type=str, default=None, help='Explicit analysis date (YYYY-MM-DD), overrides --term')
    parser.add_argument('--latitude', type=float, default=None, help='Site latitude (degrees)')
    parser.add_argument('--longitude', type=float, default=None, help='Site longitude (degrees)')
    parser.add_argument('--output', type=str, default=None, help='Write results JSON here (default: stdout)')
    parser.add_argument('--snapshot', type=str, default=None, help='Save a plan diagram PNG here')
    parser.add_argument('--chart', type=str, default=None, help='Save a sunlight duration chart PNG here')
    return parser


def apply_overrides(config: dict, args: argparse.Namespace) -> dict:
    """Merge command-line options into the configuration."""
    solar = config.setdefault('solar', {})
    location = config.setdefault('location', {})
    if args.term:
        solar['term'] = args.term
    if args.date:
        solar['date'] = args.date
    if args.latitude is not None:
        location['latitude'] = args.latitude
    if args.longitude is not None:
        location['longitude'] = args.longitude
    return config


def main(argv=None) -> int:
    """Run the analysis; returns the process exit code."""
    args = build_parser().parse_args(argv)
    setup_logging()

    config = apply_overrides(load_config(args.config), args)
    results = {'model': args.model, 'sunlight': {}, 'field_view': {}}

    with AnalysisWorker(config=config) as worker:
        worker.post(Command.INIT, {'snapshot_path': args.snapshot, 'chart_path': args.chart})
        worker.post(Command.LOAD_MODEL, args.model)
        worker.post(Command.CALCULATE)

        for message in worker.events():
            if message.type == Response.PROCESSING:
                logger.info(message.data)
            elif message.type == Response.MODEL_LOADED:
                logger.info(f"Model loaded: {len(message.data['units'])} housing unit(s)")
            elif message.type == Response.SUNLIGHT_CALC_FINISH:
                results['sunlight'] = message.data
            elif message.type == Response.FIELD_VIEW_CALC_FINISH:
                results['field_view'] = message.data
            elif message.type in (Response.MODEL_LOAD_ERROR, Response.MODEL_NOT_READY, Response.ERROR):
                logger.error(f"{message.type.value}: {message.data}")
                return 1
            elif message.type == Response.FINISHED:
                logger.info("Analysis finished")

    text = json.dumps(results, ensure_ascii=False, indent=2)
    if args.output:
        Path(args.output).write_text(text, encoding='utf-8')
        logger.info(f"Results written to {args.output}")
    else:
        print(text)
    return 0


if __name__ == '__main__':
    sys.exit(main())
