"""
Pyramid Push - Pushup Pyramid Session Controller

Tracks a pyramid pushup workout (1, 2, ... peak, ... 2, 1 reps), drives the
rep-by-rep cadence, times countdowns and rests, supports pause/resume without
losing the exact phase, and emits sound-cue and wake-hold commands.
"""

__version__ = "0.1.0"
__author__ = "Pyramid Push Team"
