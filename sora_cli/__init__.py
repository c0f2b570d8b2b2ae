"""
SORA zones CLI - Command-line interface for the zone engine.

Usage:
    sora-zones compute missions/survey.yaml
    sora-zones render missions/survey.yaml --output survey.png
    sora-zones import-route routes/survey.kmz --output missions/survey.yaml
    sora-zones publish missions/survey.yaml --broker localhost
"""

__version__ = "1.0.0"
