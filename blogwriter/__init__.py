"""SEO blog writer backend."""

__version__ = "1.0.0"
