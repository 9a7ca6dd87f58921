"""
Terminal delivery for lms-player.

- cli: typer app with the course, test and print-page commands
"""
