"""
Menu script and spoken-choice classification.
"""

from speechapp.menu.classifier import Classification, classify, normalize
from speechapp.menu.script import MENU_OPTIONS, MenuOption

__all__ = [
    "Classification",
    "MENU_OPTIONS",
    "MenuOption",
    "classify",
    "normalize",
]
