"""
Training Sign-off Engine

Completion and co-signature workflow for aviation training records.
A training unit counts as complete only when a Coordinator, a Trainer
and the Trainee have each signed it off, on-the-job training is done,
and any required practical has been passed. Assignments are grouped
into training cycles (year plus active/archived flag) that are archived
and restored in bulk.
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
