"""
Machine profiles for the MU0 emulator.

A profile fixes the accumulator word width and the default step budget for
run(). The assembler is profile-independent: DEFW literals are stored as
written, and only values passing through the accumulator are wrapped.
"""

from typing import Any, Dict, Optional

MACHINE_PROFILES: Dict[str, Dict[str, Any]] = {
    "default": {
        "word_bits": None,
        "max_steps": None,
        "description": "Unbounded integer accumulator, runs until STP",
    },
    "mu0": {
        "word_bits": 16,
        "max_steps": None,
        "description": "16-bit signed accumulator (two's complement wraparound)",
    },
    "bounded": {
        "word_bits": None,
        "max_steps": 100_000,
        "description": "Unbounded accumulator, gives up after 100000 steps",
    },
}


def get_profile(name: str) -> Dict[str, Any]:
    try:
        return MACHINE_PROFILES[name]
    except KeyError:
        raise ValueError(f"Unknown machine profile {name!r} "
                         f"(choose from {', '.join(MACHINE_PROFILES)})") from None


def wrap_word(value: int, word_bits: Optional[int]) -> int:
    """Wrap value to a signed two's complement word; None leaves it unbounded."""
    if word_bits is None:
        return value
    mask = (1 << word_bits) - 1
    value &= mask
    if value & (1 << (word_bits - 1)):
        value -= 1 << word_bits
    return value
