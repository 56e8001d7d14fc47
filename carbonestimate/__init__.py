"""Power and CO2 emission estimates for cloud compute resources, with text and JSON reports."""

__version__ = "0.1.0"