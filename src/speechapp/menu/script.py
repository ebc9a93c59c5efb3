"""
The fixed menu script.

Defines the spoken texts and the four menu options with their keywords and
canned responses. Option order is the matching priority.
"""

from pydantic import BaseModel, ConfigDict, Field

GREETING = "Kenali organ reproduksimu. Silahkan tekan button di tengah untuk memulai."

MENU_PROMPT = (
    "Silahkan pilih info apa yang ingin kamu ketahui:\n"
    "1. Bagian bagian reproduksi.\n"
    " 2. Pubertas dan Menstruasi.\n"
    " 3. Permasalahan Organ Reproduksi.\n"
    " 4. Menjaga Kebersihan Organ Reproduksi.\n"
    " Silahkan berbicara sekarang"
)

RECOGNITION_PROMPT = "Silahkan sebutkan nomor pilihan anda."

NOT_DETECTED_MESSAGE = "tidak terdeteksi"

RECOGNITION_FAILED_TEXT = "[Speech recognition failed.]"

SYNTHESIS_FAILED_TEXT = "[Speech synthesis failed.]"

FALLBACK_PREFIX = "input is"


class MenuOption(BaseModel):
    """One selectable menu entry."""

    model_config = ConfigDict(frozen=True)

    number: int = Field(..., ge=1, description="Position of the option in the menu")
    keywords: tuple[str, ...] = Field(..., description="Substrings that select this option")
    response: str = Field(..., description="Canned response spoken for this option")


MENU_OPTIONS: tuple[MenuOption, ...] = (
    MenuOption(number=1, keywords=("satu", "1"), response="Bagian bagian reproduksi."),
    MenuOption(number=2, keywords=("dua", "2"), response="Pubertas dan Menstruasi."),
    MenuOption(number=3, keywords=("tiga", "3"), response="Permasalahan Organ Reproduksi."),
    MenuOption(number=4, keywords=("empat", "4"), response="Menjaga Kebersihan Organ Reproduksi."),
)
