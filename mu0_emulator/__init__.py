# MU0 Emulator — executes Programs built by mu0_assembler.
#
#   memory.py   — flat cell array shared by code and data, watchpoints
#   emu.py      — fetch/execute loop, step() and run(), state display
#   profiles.py — word width and step budget presets

from .emu import Mu0Emulator, ExecutionFault, StepResult, StopReason
from .memory import Memory
from .profiles import MACHINE_PROFILES, get_profile, wrap_word
