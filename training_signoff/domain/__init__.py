"""Domain layer for the training sign-off engine.

Pure models, policies and predicates. Nothing in this package performs
I/O or depends on infrastructure.
"""
