"""
Farmer-facing assistant flows: crop diagnosis, market forecasts, government
scheme navigation, advisory calendars and voice interaction.
"""

__version__ = "0.1.0"
