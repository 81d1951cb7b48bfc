"""Plotting helpers for water-extent series and their decomposition."""

from .visualizer import Visualizer

__all__ = ["Visualizer"]
