"""Reading and writing graph, ground truth, result and weight files."""

from .json_io import (
    load_json,
    save_json,
    load_graph_spec,
    load_graph,
    load_ground_truth,
    load_weights,
    save_result,
    save_weights
)

__all__ = [
    'load_json',
    'save_json',
    'load_graph_spec',
    'load_graph',
    'load_ground_truth',
    'load_weights',
    'save_result',
    'save_weights'
]
