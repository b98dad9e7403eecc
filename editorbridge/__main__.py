"""
Entry point for running editorbridge as a module: python -m editorbridge
"""

from editorbridge.cli.commands import app

if __name__ == "__main__":
    app()
