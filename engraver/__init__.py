"""engraver: accidental display decisions for engraved sheet music."""

__version__ = "0.1.0"
