# ==============================================================================
# CLI Commands Module
# ==============================================================================
"""
CLI commands for the session analysis pipeline.

Commands are organized into separate modules for maintainability:
- shared.py: Colors, box-drawing characters and helpers
- run.py: Run an analysis task and print its report
- data.py: Mock data generation
- config.py: Configuration display
"""
