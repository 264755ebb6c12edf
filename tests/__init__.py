"""
Test package for Taskboard.

- unit/: store, access layer, models, settings and the client data layer
- api/: HTTP endpoints through the FastAPI TestClient
- cli/: terminal commands through typer's CliRunner
"""
