"""Viewport interaction: input state machine and the headless map session."""
