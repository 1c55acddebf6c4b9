"""
Hypothesis graph and weight visualization tools.
"""

from collections import deque

import numpy as np
import matplotlib.pyplot as plt
import seaborn as sns
from typing import Dict, List, Optional, Sequence, Tuple
from pathlib import Path

from tracking.hypothesis_graph import HypothesisGraph
from tracking.weight_layout import CATEGORY_ORDER, NUM_STATES, WeightLayout
from utils import get_logger

logger = get_logger('visualization.graph_viz')

ACTIVE_COLOR = '#d62728'
INACTIVE_COLOR = '#7f7f7f'


def _node_label(hyp, solution) -> str:
    label = str(hyp.id)
    if solution is None:
        return label
    events = []
    for name, variable in (('app', hyp.appearance), ('dis', hyp.disappearance), ('div', hyp.division)):
        if variable is not None and variable.is_active(solution):
            events.append(name)
    if events:
        label += f" ({', '.join(events)})"
    return label


def to_dot(graph: HypothesisGraph, solution=None) -> str:
    """
    Graphviz representation of a graph.

    Args:
        graph: Hypothesis graph. Must be built if a solution is given.
        solution: Optional solution; active nodes and links are drawn in red.

    Returns:
        Dot source.
    """
    if solution is not None:
        graph.require_built()
        solution = graph.model.check_solution(solution)

    lines = ["digraph G {"]

    for hyp in graph.segmentation_hypotheses():
        active = solution is not None and hyp.detection.is_active(solution)
        color = ACTIVE_COLOR if active else INACTIVE_COLOR
        lines.append(f'    "{hyp.id}" [label="{_node_label(hyp, solution)}", color="{color}"];')

    for link in graph.linking_hypotheses():
        active = solution is not None and link.is_active(solution)
        color = ACTIVE_COLOR if active else INACTIVE_COLOR
        lines.append(f'    "{link.source_id}" -> "{link.dest_id}" [color="{color}"];')

    for exclusion in graph.exclusion_constraints():
        members = exclusion.to_list()
        for a, b in zip(members[:-1], members[1:]):
            lines.append(f'    "{a}" -> "{b}" [style=dashed, dir=none, constraint=false];')

    lines.append("}")
    return "\n".join(lines)


def save_dot(graph: HypothesisGraph, path: str, solution=None):
    """Write the Graphviz representation of a graph to a file."""
    with open(path, 'w') as f:
        f.write(to_dot(graph, solution))
    logger.info(f"Saved graph to {path}")


def compute_layers(graph: HypothesisGraph) -> Dict[int, int]:
    """
    Depth of every segmentation hypothesis along the links.

    Hypotheses without incoming links are at depth 0, every other hypothesis
    is one deeper than its deepest predecessor. Links are expected to point
    forward in time; hypotheses on a cycle are placed one below their
    deepest already placed predecessor.
    """
    depth: Dict[int, int] = {}
    num_pending = {hyp.id: len(graph.incoming_links(hyp.id)) for hyp in graph.segmentation_hypotheses()}
    remaining = set(num_pending)
    ready = deque(sorted(hyp_id for hyp_id, n in num_pending.items() if n == 0))

    while remaining:
        if not ready:
            # cycle: release the smallest remaining id
            ready.append(min(remaining))
        hyp_id = ready.popleft()
        if hyp_id not in remaining:
            continue
        remaining.discard(hyp_id)

        preds = [depth[l.source_id] for l in graph.incoming_links(hyp_id) if l.source_id in depth]
        depth[hyp_id] = max(preds) + 1 if preds else 0

        for link in graph.outgoing_links(hyp_id):
            num_pending[link.dest_id] -= 1
            if num_pending[link.dest_id] == 0:
                ready.append(link.dest_id)

    return depth


def plot_solution(
    graph: HypothesisGraph,
    solution=None,
    save_path: Optional[str] = None,
    figsize: Tuple[int, int] = (12, 6)
) -> plt.Figure:
    """
    Plot hypotheses by depth with active nodes and links highlighted.

    Args:
        graph: Hypothesis graph (built if a solution is given).
        solution: Optional solution vector.
        save_path: Optional path to save figure.
        figsize: Figure size.

    Returns:
        Matplotlib figure.
    """
    if solution is not None:
        graph.require_built()
        solution = graph.model.check_solution(solution)

    fig, ax = plt.subplots(figsize=figsize)

    depth = compute_layers(graph)
    rows: Dict[int, int] = {}
    positions = {}
    for hyp in graph.segmentation_hypotheses():
        d = depth[hyp.id]
        positions[hyp.id] = (d, rows.get(d, 0))
        rows[d] = rows.get(d, 0) + 1

    for link in graph.linking_hypotheses():
        (x0, y0), (x1, y1) = positions[link.source_id], positions[link.dest_id]
        active = solution is not None and link.is_active(solution)
        ax.plot(
            [x0, x1], [y0, y1],
            color=ACTIVE_COLOR if active else INACTIVE_COLOR,
            linewidth=2.5 if active else 1.0,
            alpha=0.9 if active else 0.4,
            zorder=1
        )

    for hyp in graph.segmentation_hypotheses():
        x, y = positions[hyp.id]
        active = solution is not None and hyp.detection.is_active(solution)
        ax.scatter(
            [x], [y], s=300,
            color=ACTIVE_COLOR if active else 'white',
            edgecolors='black', zorder=2
        )
        ax.annotate(_node_label(hyp, solution), (x, y), ha='center', va='center', fontsize=8, zorder=3)

    ax.set_xlabel('Depth', fontsize=12)
    ax.set_yticks([])
    ax.set_title('Hypothesis Graph', fontsize=14, fontweight='bold')
    ax.grid(True, alpha=0.3, axis='x')

    plt.tight_layout()

    if save_path:
        plt.savefig(save_path, dpi=300, bbox_inches='tight')
        logger.info(f"Saved solution plot to {save_path}")

    return fig


def weight_matrix(weights: Sequence[float], layout: WeightLayout) -> Tuple[np.ndarray, List[str]]:
    """
    Arrange a weight vector as (category, state) rows by feature columns.

    Missing features are NaN.

    Returns:
        Tuple of (matrix, row labels).
    """
    weights = np.asarray(weights, dtype=float)
    if weights.size != layout.num_weights:
        raise ValueError(f"Expected {layout.num_weights} weights, got {weights.size}")

    width = max([layout.num_features(c) for c in CATEGORY_ORDER] + [1])
    rows, labels = [], []
    for category, ids in layout.weight_ids().items():
        n = layout.num_features(category)
        for state in range(NUM_STATES):
            row = np.full(width, np.nan)
            row[:n] = weights[ids[state * n:(state + 1) * n]]
            rows.append(row)
            labels.append(f"{category.value} = {state}")
    return np.vstack(rows), labels


def plot_weights(
    weights: Sequence[float],
    layout: WeightLayout,
    save_path: Optional[str] = None,
    figsize: Tuple[int, int] = (10, 6)
) -> plt.Figure:
    """
    Heatmap of a weight vector by category, state and feature.

    Args:
        weights: Weight vector.
        layout: Layout the weights belong to.
        save_path: Optional path to save figure.
        figsize: Figure size.

    Returns:
        Matplotlib figure.
    """
    matrix, labels = weight_matrix(weights, layout)

    fig, ax = plt.subplots(figsize=figsize)
    sns.heatmap(
        matrix,
        ax=ax,
        cmap='RdBu_r',
        center=0.0,
        annot=matrix.shape[1] <= 12,
        fmt='.2f',
        yticklabels=labels,
        cbar_kws={'label': 'Weight'}
    )
    ax.set_xlabel('Feature', fontsize=12)
    ax.set_title('Weights', fontsize=14, fontweight='bold')

    plt.tight_layout()

    if save_path:
        plt.savefig(save_path, dpi=300, bbox_inches='tight')
        logger.info(f"Saved weight plot to {save_path}")

    return fig
