"""PlayerTracker : moteur de similarité et de détection d'alias.

(Player similarity and alias-detection engine)
"""

__version__ = "0.1.0"
