"""CLI module for editorbridge."""
