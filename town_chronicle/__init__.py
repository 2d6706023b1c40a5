"""Town Chronicle — collaborative town storytelling with derived crests and mottos."""

__version__ = "0.1.0"
