#!/usr/bin/env python3
"""
Command line interface.

    multihypotracking track    -g graph.json -w weights.json -o result.json
    multihypotracking train    -g graph.json -t gt.json -o weights.json
    multihypotracking validate -g graph.json -t gt.json
    multihypotracking weights  -g graph.json
"""

import argparse
import sys

from config import load_config
from data.json_io import (
    load_graph,
    load_ground_truth,
    load_weights,
    save_result,
    save_weights
)
from utils import get_logger, set_log_level
from visualization.graph_viz import save_dot

from . import pipeline

logger = get_logger('cli')


def _parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description='Multi hypotheses tracking with integer linear programming and structured learning'
    )
    parser.add_argument('--config', type=str, default=None, help='YAML config file')
    parser.add_argument('--log-level', type=str, default=None, help='Overrides the configured log level')

    sub = parser.add_subparsers(dest='command', required=True)

    track = sub.add_parser('track', help='Find the best solution for given weights')
    track.add_argument('-g', '--graph', required=True, help='Graph JSON file')
    track.add_argument('-w', '--weights', required=True, help='Weights JSON file')
    track.add_argument('-o', '--output', required=True, help='Result JSON file')
    track.add_argument('--dot', default=None, help='Also save the solved graph as Graphviz file')

    train = sub.add_parser('train', help='Learn weights from ground truth')
    train.add_argument('-g', '--graph', required=True, help='Graph JSON file')
    train.add_argument('-t', '--ground-truth', required=True, help='Ground truth JSON file')
    train.add_argument('-o', '--output', required=True, help='Weights JSON file')

    validate = sub.add_parser('validate', help='Check that ground truth is a valid solution')
    validate.add_argument('-g', '--graph', required=True, help='Graph JSON file')
    validate.add_argument('-t', '--ground-truth', required=True, help='Ground truth JSON file')

    weights = sub.add_parser('weights', help='Print the weight descriptions of a graph')
    weights.add_argument('-g', '--graph', required=True, help='Graph JSON file')

    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = _parse_args(argv)

    cfg = load_config(args.config)
    set_log_level(args.log_level or cfg.logging.level)

    graph = load_graph(args.graph)
    logger.info(graph.summarize())

    if args.command == 'track':
        weights = load_weights(args.weights)
        solution = pipeline.infer(graph, weights, cfg)
        if not pipeline.verify(graph, solution):
            logger.warning("Solver returned a solution that violates the model constraints")
        save_result(args.output, pipeline.export(graph, solution))
        if args.dot:
            save_dot(graph, args.dot, solution)

    elif args.command == 'train':
        descriptions = pipeline.weight_descriptions(graph)
        weights = pipeline.learn(graph, load_ground_truth(args.ground_truth), cfg)
        save_weights(args.output, weights, descriptions)

    elif args.command == 'validate':
        solution = pipeline.reconstruct_ground_truth(graph, load_ground_truth(args.ground_truth))
        valid = pipeline.verify(graph, solution)
        print("valid" if valid else "invalid")
        return 0 if valid else 1

    elif args.command == 'weights':
        for i, description in enumerate(pipeline.weight_descriptions(graph)):
            print(f"{i}: {description}")

    return 0


if __name__ == '__main__':
    sys.exit(main())
