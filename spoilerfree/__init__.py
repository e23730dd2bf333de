"""Spoiler-free cycling: curation pipeline for race broadcasts, riders and static pages."""

__version__ = "0.4.0"
