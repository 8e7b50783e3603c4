"""
Command-line interface layer: Typer commands and Rich output.
"""
