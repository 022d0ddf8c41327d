"""
Games module - Card content and game setup.

Each game has its own subpackage with:
- Card definitions (stats and scripts)
- Deck composition
- Setup producing an initial GameState
"""
