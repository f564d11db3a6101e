# Drawing takeoff: calibration, geometry measurement and cost aggregation

__version__ = "0.1.0"
