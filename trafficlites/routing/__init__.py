"""
Routing module: light mapping along supplied routes and departure-time advice.
"""
