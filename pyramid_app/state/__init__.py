"""
Workout session state machine.

models   - context, state configuration, events and effect records
machine  - pure transition function, guards and state classification
runtime  - WorkoutSession: applies effects, owns timers, notifies subscribers
"""
