#!/usr/bin/env python3
"""
Session Demo - Pyramid Push workout controller

This script walks a peak-3 pyramid (1, 2, 3, 2, 1 reps) on a virtual clock,
showing how the session moves through its states:
- idle → countdown → working (start → down/up → lastDown → lastUp) → resting
- pause and deep-history resume mid-rest
- finished, with the cue totals the audio subsystem received

Run: python examples/session_demo.py
"""

from collections import Counter

from pyramid_app.effects.audio import QueueAudioSink
from pyramid_app.effects.wake_hold import LogWakeHold
from pyramid_app.engine import WorkoutEngine
from pyramid_app.logging.config import configure_logging
from pyramid_app.state.runtime import SessionSnapshot
from pyramid_app.timers.scheduler import ManualScheduler

START_MS = 1_700_000_000_000


class TransitionTracker:
    """Records every state change the session reports."""

    def __init__(self, clock: ManualScheduler):
        self.clock = clock
        self.transitions = []
        self._last_path = None

    def __call__(self, snapshot: SessionSnapshot):
        path = snapshot.configuration.path
        if path == self._last_path:
            return
        self._last_path = path
        self.transitions.append({
            'elapsed_ms': self.clock.now_ms() - START_MS,
            'state': path,
            'set_index': snapshot.context.current_set_index,
            'reps': snapshot.context.completed_reps_in_set,
        })

    def print_transition_summary(self):
        print("📊 STATE TRANSITION SUMMARY")
        print("=" * 50)
        for transition in self.transitions:
            print(f"  +{transition['elapsed_ms'] / 1000:6.1f}s  set {transition['set_index'] + 1}  "
                  f"reps {transition['reps']}  {transition['state']}")


def demonstrate_full_pyramid():
    """Run a whole peak-3 pyramid with one pause during the first rest."""
    print("\n🏋️ FULL PYRAMID (peak 3)")
    print("=" * 50)

    clock = ManualScheduler(start_ms=START_MS)
    audio = QueueAudioSink()
    engine = WorkoutEngine(scheduler=clock, audio=audio, wake_hold=LogWakeHold(), session_id="demo")
    tracker = TransitionTracker(clock)
    engine.subscribe(tracker)

    engine.set_peak(3)
    print(f"Pyramid: {engine.summary()['pyramid']}")
    engine.start()

    # First set finishes at +6.6s; pause three seconds into the rest
    clock.advance(9600)
    summary = engine.summary()
    print(f"Pausing with {summary['rest_seconds']}s of rest left")
    engine.pause()

    clock.advance(60_000)
    engine.resume()
    print(f"Resumed with {engine.summary()['rest_seconds']}s of rest left")

    clock.run_until_idle()
    engine.close()

    print()
    tracker.print_transition_summary()

    cues = Counter(cmd.cue.value for cmd in audio.drain() if cmd.kind == "play")
    print("\n🔊 CUES PLAYED")
    for cue, count in sorted(cues.items()):
        print(f"  {cue:<15} {count}")


def demonstrate_settings():
    """Peak clamping and tempo selection through the engine verbs."""
    print("\n⚙️ SETTINGS")
    print("=" * 50)

    engine = WorkoutEngine(scheduler=ManualScheduler(start_ms=START_MS))
    engine.open_settings()
    print(f"Requested peak 25 → {engine.set_peak(25)}")
    print(f"Requested peak 1 → {engine.set_peak(1)}")
    print(f"Tempo 'slow' → {engine.set_tempo('slow')} ms per rep")
    engine.close_settings()

    summary = engine.summary()
    print(f"Total volume: {summary['total_volume']} reps over {summary['set_count']} sets")
    engine.close()


def main():
    """Main demonstration function."""
    configure_logging(level="WARNING")

    print("🎭 PYRAMID PUSH SESSION DEMO")
    print("=" * 60)
    print("This demo drives the workout session on a virtual clock.")

    demonstrate_full_pyramid()
    demonstrate_settings()

    print("\n✅ Session demo completed!")
    print("   Key takeaways:")
    print("   - Each rep is timed by the tempo: half down, half up")
    print("   - The last rep of every set gets its own cue")
    print("   - Pause/resume restores the exact sub-state and remaining rest")


if __name__ == "__main__":
    main()
