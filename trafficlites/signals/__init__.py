"""
Signals module: observation clustering, cycle tracking, timing estimation and prediction.
"""
