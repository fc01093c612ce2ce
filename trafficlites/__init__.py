"""
Trafficlites - crowd-sourced traffic signal timing and departure advice.
"""

__version__ = "0.3.0"
