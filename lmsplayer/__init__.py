"""
lms-player: course player and timed practice-test player for the LMS platform.

Packages:
- core: domain models, error taxonomy, events and collaborator interfaces
- engine: assessment state machines (quiz, sections, progress, recording)
- integrations: LMS HTTP client and audio device protocol
- delivery: terminal presentation (typer + rich)
"""

__version__ = "1.0.0"
