"""Visualization tools for hypothesis graphs and weights."""

from .graph_viz import (
    to_dot,
    save_dot,
    compute_layers,
    plot_solution,
    plot_weights,
    weight_matrix
)

__all__ = [
    'to_dot',
    'save_dot',
    'compute_layers',
    'plot_solution',
    'plot_weights',
    'weight_matrix'
]
