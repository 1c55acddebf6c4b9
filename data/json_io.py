"""
JSON files for graphs, ground truth, results and weights.

The file contents use the same dictionary layout the pipeline consumes:

- graph:        {"segmentationHypotheses": [...], "linkingHypotheses": [...], "exclusions": [...]}
- ground truth: {"linkResults": [{"src", "dest", "value"}]}
- result:       same layout as ground truth
- weights:      {"weights": [...], "weightDescriptions": [...]}
"""

import json
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

import numpy as np

from tracking.hypothesis_graph import (
    LINK_RESULTS_KEY,
    WEIGHT_DESCRIPTIONS_KEY,
    WEIGHTS_KEY,
    HypothesisGraph
)
from utils import get_logger

logger = get_logger('data.json_io')

PathLike = Union[str, Path]


class NumpyEncoder(json.JSONEncoder):
    """Custom encoder for numpy data types"""
    def default(self, obj):
        if isinstance(obj, np.integer):
            return int(obj)
        elif isinstance(obj, np.floating):
            return float(obj)
        elif isinstance(obj, np.bool_):
            return bool(obj)
        elif isinstance(obj, np.ndarray):
            return obj.tolist()
        return json.JSONEncoder.default(self, obj)


def load_json(path: PathLike) -> Dict:
    """
    Read a JSON object from a file.

    Raises:
        OSError: If the file cannot be read.
    """
    with open(path, 'r') as f:
        return json.load(f)


def save_json(path: PathLike, data: Dict):
    path = Path(path)
    if path.parent and not path.parent.exists():
        path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w') as f:
        json.dump(data, f, indent=2, cls=NumpyEncoder)


def load_graph_spec(path: PathLike) -> Dict:
    spec = load_json(path)
    logger.info(f"Read graph specification from {path}")
    return spec


def load_graph(path: PathLike) -> HypothesisGraph:
    """Read a graph specification file and create the hypothesis graph."""
    return HypothesisGraph.from_spec(load_graph_spec(path))


def load_ground_truth(path: PathLike) -> Dict:
    spec = load_json(path)
    if not isinstance(spec.get(LINK_RESULTS_KEY, []), list):
        raise ValueError(f"'{LINK_RESULTS_KEY}' in {path} is not a list")
    logger.info(f"\tcontains {len(spec.get(LINK_RESULTS_KEY, []))} linking annotations")
    return spec


def save_result(path: PathLike, result: Dict):
    """Write a result specification {"linkResults": [...]}."""
    if not isinstance(result.get(LINK_RESULTS_KEY), list):
        raise ValueError("Cannot save results without a link results list")
    save_json(path, result)
    logger.info(f"Saved result to {path}")


def load_weights(path: PathLike) -> List[float]:
    data = load_json(path)
    if WEIGHTS_KEY not in data:
        raise KeyError(f"Weights file {path} has no '{WEIGHTS_KEY}' entry")
    return [float(w) for w in data[WEIGHTS_KEY]]


def save_weights(
    path: PathLike,
    weights: Sequence[float],
    descriptions: Optional[Sequence[str]] = None
):
    data = {WEIGHTS_KEY: [float(w) for w in weights]}
    if descriptions is not None:
        if len(descriptions) != len(weights):
            raise ValueError(
                f"Got {len(descriptions)} weight descriptions for {len(weights)} weights"
            )
        data[WEIGHT_DESCRIPTIONS_KEY] = list(descriptions)
    save_json(path, data)
    logger.info(f"Saved {len(weights)} weights to {path}")
