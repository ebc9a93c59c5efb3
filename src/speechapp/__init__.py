"""
Kenali organ reproduksimu: a spoken menu that listens for a numeric choice
and reads back the matching information.
"""

__version__ = "0.1.0"
