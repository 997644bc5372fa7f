"""Canonical platform vocabulary shared by every provider."""

from __future__ import annotations

from enum import StrEnum


class CanonicalPlatform(StrEnum):
    """Physical game platforms a collection item can belong to."""

    SNES = "SNES"
    NES = "NES"
    N64 = "N64"
    GAMECUBE = "GameCube"
    WII = "Wii"
    WIIU = "WiiU"
    SWITCH = "Switch"
    PS1 = "PS1"
    PS2 = "PS2"
    PS3 = "PS3"
    PS4 = "PS4"
    PS5 = "PS5"
    PSP = "PSP"
    PSVITA = "PSVita"
    XBOX = "Xbox"
    XBOX360 = "Xbox360"
    XBOXONE = "XboxOne"
    XBOXSERIESX = "XboxSeriesX"
    GAMEBOY = "GameBoy"
    GAMEBOYCOLOR = "GameBoyColor"
    GAMEBOYADVANCE = "GameBoyAdvance"
    DS = "DS"
    N3DS = "3DS"
    GENESIS = "Genesis"
    DREAMCAST = "DreamCast"
    SATURN = "Saturn"
    ATARI2600 = "Atari2600"
    OTHER = "Other"

    @classmethod
    def parse(cls, value: str | None) -> CanonicalPlatform | None:
        """Case-insensitive lookup by value; None for empty or unknown input."""
        if not value:
            return None
        wanted = value.strip().lower()
        for member in cls:
            if member.value.lower() == wanted:
                return member
        return None
