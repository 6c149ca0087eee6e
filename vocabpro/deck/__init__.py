"""Deck export module."""

from .exporter import DeckExporter, default_output_path

__all__ = ['DeckExporter', 'default_output_path']
