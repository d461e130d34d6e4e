"""Import Vestro fuel and sales data for Agriwin producers and post it back to Agriwin."""

__version__ = "0.1.0"