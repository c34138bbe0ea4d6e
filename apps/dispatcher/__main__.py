"""
Dispatcher Module Entry Point

Allows execution via: python -m apps.dispatcher
"""

from apps.dispatcher.runner import cli

if __name__ == "__main__":
    cli()
