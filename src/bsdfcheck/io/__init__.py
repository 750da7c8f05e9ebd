"""Readers for on-disk BSDF formats."""

from __future__ import annotations

from .window_xml import load_dataset

__all__ = ["load_dataset"]
