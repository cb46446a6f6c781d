"""Test package for the WPM trainer.

Core tests drive the typing session headlessly with a fake clock. The UI
smoke tests use pygame's dummy video driver so no real window opens. Run
``pytest`` from the project root.
"""
