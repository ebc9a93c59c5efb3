"""
Presentation surfaces for the voice menu.
"""

from speechapp.io.surface import InstallTarget, PresentationSurface, TerminalSurface

__all__ = [
    "InstallTarget",
    "PresentationSurface",
    "TerminalSurface",
]
